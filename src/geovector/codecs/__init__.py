# src/geovector/codecs/__init__.py
#
# Copyright (c) The geovector project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The codecs subpackage reads and writes vector collections: GeoJSON (fast and
compatible parser paths plus the relaxed assembly dialect), the binary cache
format and shapefiles.
"""

from .geojson import (
    decode_geojson,
    decode_geojson_assembly
)

from .binary import (
    FORMAT_VERSION,
    encode_vector,
    decode_vector,
    encode_feature,
    decode_feature
)

from .shapefile import (
    read_shapefile,
    read_shapefile_frame,
    feature_from_shape
)

__all__ = [
    # GeoJSON
    "decode_geojson",
    "decode_geojson_assembly",

    # Binary cache
    "FORMAT_VERSION",
    "encode_vector",
    "decode_vector",
    "encode_feature",
    "decode_feature",

    # Shapefile
    "read_shapefile",
    "read_shapefile_frame",
    "feature_from_shape"
]
