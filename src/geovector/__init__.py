# src/geovector/__init__.py
#
# Copyright (c) The geovector project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
geovector: a vector feature geometry engine.

Collections of point, linear and areal features with attribute tables, read
from GeoJSON, shapefiles and a binary cache format, with spatial queries,
reprojection, subdivision, clipping and tesselation.
"""

__version__ = "0.1.0"

# The vector subpackage is imported before codecs: the codecs build vector
# collections and vector.io dispatches back to the codecs.
from .vector import (
    VectorCollection,
    VectorKind,
    load_vector,
    save_vector
)

from .codecs import (
    decode_geojson,
    decode_geojson_assembly,
    read_shapefile
)

from .coords import (
    Coordinate,
    BoundingBox,
    NULL_BOUNDING_BOX
)

from .exceptions import (
    GeoVectorError,
    FormatError,
    GeometryError
)

__all__ = [
    "__version__",
    "VectorCollection",
    "VectorKind",
    "load_vector",
    "save_vector",
    "decode_geojson",
    "decode_geojson_assembly",
    "read_shapefile",
    "Coordinate",
    "BoundingBox",
    "NULL_BOUNDING_BOX",
    "GeoVectorError",
    "FormatError",
    "GeometryError"
]
