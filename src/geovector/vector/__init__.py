# src/geovector/vector/__init__.py
#
# Copyright (c) The geovector project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The vector subpackage provides the feature model (points, lines, polygons and
their attributes) and the geometric operations performed on collections.
"""

# Data structures
from .attributes import (
    AttributeTable
)

from .features import (
    GeometryFamily,
    Geometry,
    Point,
    MultiPoint,
    LineString,
    MultiLineString,
    Polygon,
    MultiPolygon
)

from .layer import (
    VectorKind,
    VectorCollection
)

# I/O
from .io import (
    load_vector,
    save_vector,
    resolve_vector
)

# Geometric operations and spatial queries
from .geom import (
    reproject,
    filter_vector,
    select_attributes,
    linears_to_areals,
    areals_to_linears
)

from .query import (
    point_in_polygon,
    point_near_linear,
    bounding_box,
    center,
    area_of_outer_loops,
    largest_loop_center,
    centroid,
    linear_middle,
    linear_middle_rotation,
    middle_coordinate
)

from .subdivide import (
    SubdivideMode,
    subdivide
)

from .clip import (
    clip_to_grid,
    clip_to_bounding_box
)

from .tesselate import (
    tesselate,
    triangulate_polygon
)

__all__ = [
    # Data structures
    "AttributeTable",
    "GeometryFamily",
    "Geometry",
    "Point",
    "MultiPoint",
    "LineString",
    "MultiLineString",
    "Polygon",
    "MultiPolygon",
    "VectorKind",
    "VectorCollection",

    # I/O
    "load_vector",
    "save_vector",
    "resolve_vector",

    # Geometric operations and spatial queries
    "reproject",
    "filter_vector",
    "select_attributes",
    "linears_to_areals",
    "areals_to_linears",
    "point_in_polygon",
    "point_near_linear",
    "bounding_box",
    "center",
    "area_of_outer_loops",
    "largest_loop_center",
    "centroid",
    "linear_middle",
    "linear_middle_rotation",
    "middle_coordinate",
    "SubdivideMode",
    "subdivide",
    "clip_to_grid",
    "clip_to_bounding_box",
    "tesselate",
    "triangulate_polygon"
]
