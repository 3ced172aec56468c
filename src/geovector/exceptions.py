# src/geovector/exceptions.py

"""
Exception hierarchy shared by the codecs and the geometry engine.
"""

__all__ = [
    "GeoVectorError",
    "FormatError",
    "GeometryError"
]

class GeoVectorError(Exception):
    """Base class for every error raised by geovector."""

class FormatError(GeoVectorError, ValueError):
    """
    Malformed or unsupported input handed to a codec.

    Raised for truncated bytes, unknown format versions, unknown geometry
    types and missing required fields. A decode that raises this never
    leaves a partial collection behind.
    """

class GeometryError(GeoVectorError, ValueError):
    """
    An operation needs a feature family the collection does not hold,
    e.g. a centroid on a collection without any areal feature.
    """
