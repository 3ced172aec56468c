# src/geovector/vector/query.py

"""
This module provides the geometric queries run against a vector collection:
point in polygon, proximity to linears, bounding box, areas, label
placement points and the middle of a linear feature.

Queries never fail on empty input. They return False, 0.0, None or the null
bounding box instead. A collection that has features but none of the family
a query needs raises GeometryError.
"""

import logging
import math
from typing import Optional, Tuple, List, Union

import numpy as np

from geovector.coords import Coordinate, BoundingBox, NULL_BOUNDING_BOX
from geovector.crs import CoordinateSystem, DisplaySystem, FlatDisplay
from geovector.exceptions import GeometryError
from geovector.vector.features import LineString, Polygon
from geovector.vector.io import resolve_vector
from geovector.vector.layer import VectorCollection
from geovector.vector.loops import (
    loop_area, loop_centroid, point_in_loop, point_segment_distance
)

log = logging.getLogger(__name__)

__all__ = [
    "point_in_polygon",
    "point_near_linear",
    "bounding_box",
    "center",
    "area_of_outer_loops",
    "largest_loop_center",
    "centroid",
    "linear_middle",
    "linear_middle_rotation",
    "middle_coordinate"
]

def _polygons(vector: VectorCollection) -> List[Polygon]:
    return [poly for feature in vector for poly in feature.polygons()]

def _lines(vector: VectorCollection) -> List[LineString]:
    return [line for feature in vector for line in feature.lines()]

def _point_in_polygon(x: float, y: float, poly: Polygon) -> bool:
    # holes XOR'd against the exterior
    inside = point_in_loop(x, y, poly.exterior)
    for hole in poly.holes:
        if point_in_loop(x, y, hole):
            inside = not inside
    return inside

@resolve_vector
def point_in_polygon(vector: VectorCollection, coord: Coordinate) -> bool:
    """True if coord falls inside any areal feature, holes excluded."""
    x, y = coord[0], coord[1]
    for poly in _polygons(vector):
        box = BoundingBox.from_points(poly.exterior)
        if not box.contains(Coordinate(x, y)):
            continue
        if _point_in_polygon(x, y, poly):
            return True
    return False

@resolve_vector
def point_near_linear(
    vector: VectorCollection,
    coord: Coordinate,
    max_distance: float,
    display: Optional[DisplaySystem] = None
) -> bool:
    """
    True if any linear segment lies within max_distance of coord.

    Args:
        vector: Collection to search.
        coord: Geographic query point.
        max_distance: Threshold measured in display coordinates.
        display: Display system supplied by the renderer. Defaults to a flat
            plate carree plane.
    """
    display = display or FlatDisplay()
    target = display.to_display(np.array([[coord[0], coord[1]]]))[0]

    for line in _lines(vector):
        if len(line.coords) == 0:
            continue
        pts = display.to_display(line.coords[:, :2])
        if len(pts) == 1:
            dist = np.linalg.norm(pts - target, axis=1)
        else:
            dist = point_segment_distance(target, pts[:-1], pts[1:])
        if float(dist.min()) <= max_distance:
            return True
    return False

@resolve_vector
def bounding_box(vector: VectorCollection) -> BoundingBox:
    """Union of every feature's box. The null box when there is nothing to bound."""
    return BoundingBox.union_all(f.bounding_box() for f in vector)

@resolve_vector
def center(vector: VectorCollection) -> Optional[Coordinate]:
    return bounding_box(vector).center

@resolve_vector
def area_of_outer_loops(vector: VectorCollection) -> float:
    """
    Sum of the unsigned planar areas of every exterior loop.

    Holes are ignored and no projection correction is applied, so the units
    are those of the coordinates (square radians for geographic data).
    """
    return float(sum(loop_area(poly.exterior) for poly in _polygons(vector)))

def _largest_loop(vector: VectorCollection) -> Optional[np.ndarray]:
    if vector.is_empty:
        return None
    polygons = _polygons(vector)
    if not polygons:
        raise GeometryError(f"No areal features in {vector!r}")

    best, best_area = None, -1.0
    for poly in polygons:
        for loop in poly.loops:
            if len(loop) == 0:
                continue
            area = loop_area(loop)
            if area > best_area:
                best, best_area = loop, area
    return best

@resolve_vector
def largest_loop_center(vector: VectorCollection) -> Optional[Tuple[Coordinate, BoundingBox]]:
    """
    Finds the loop with the largest area over every areal feature.

    Returns:
        The centre of that loop's bounding box and the box itself, or None
        when the collection is empty or holds only empty loops.
    """
    loop = _largest_loop(vector)
    if loop is None:
        return None
    box = BoundingBox.from_points(loop)
    return box.center, box

@resolve_vector
def centroid(vector: VectorCollection) -> Optional[Coordinate]:
    """
    Area weighted centroid of the largest loop. A better label position than
    largest_loop_center() for concave shapes.
    """
    loop = _largest_loop(vector)
    if loop is None:
        return None
    return Coordinate(*loop_centroid(loop))

def _first_line(vector: VectorCollection) -> Optional[LineString]:
    if vector.is_empty:
        return None
    lines = _lines(vector)
    if not lines:
        raise GeometryError(f"No linear features in {vector!r}")
    return lines[0]

@resolve_vector
def linear_middle(
    vector: VectorCollection,
    coord_system: Optional[Union[CoordinateSystem, FlatDisplay]] = None
) -> Optional[Tuple[Coordinate, float]]:
    """
    Finds the point halfway along the first linear feature and the bearing of
    the segment it sits on. Think road label placement.

    Lengths and the bearing are measured in coord_system (plate carree by
    default). The bearing is in radians, clockwise from the +y axis.

    Returns:
        (middle, bearing) with middle in the collection's coordinates, or None
        for an empty collection or a line without length.
    """
    line = _first_line(vector)
    if line is None or len(line.coords) < 2:
        return None

    if isinstance(coord_system, FlatDisplay):
        coord_system = coord_system.coord_system
    display = FlatDisplay(coord_system)

    geo = line.coords[:, :2]
    pts = display.to_display(geo)
    seg_len = np.linalg.norm(np.diff(pts, axis=0), axis=1)
    total = float(seg_len.sum())
    if not math.isfinite(total) or total <= 0.0:
        return None

    half = total / 2.0
    cumulative = np.cumsum(seg_len)
    idx = int(np.searchsorted(cumulative, half))
    idx = min(idx, len(seg_len) - 1)
    start = cumulative[idx] - seg_len[idx]
    t = (half - start) / seg_len[idx] if seg_len[idx] > 0 else 0.0

    p0, p1 = pts[idx], pts[idx + 1]
    local_mid = p0 + (p1 - p0) * t
    mid = display.coord_system.to_geographic(local_mid.reshape(1, 2))[0]
    bearing = math.atan2(p1[0] - p0[0], p1[1] - p0[1])

    if line.is_3d:
        z = line.coords[idx, 2] + (line.coords[idx + 1, 2] - line.coords[idx, 2]) * t
        return Coordinate(float(mid[0]), float(mid[1]), float(z)), bearing
    return Coordinate(float(mid[0]), float(mid[1])), bearing

@resolve_vector
def linear_middle_rotation(
    vector: VectorCollection,
    coord_system: Optional[CoordinateSystem] = None
) -> Optional[float]:
    result = linear_middle(vector, coord_system)
    return None if result is None else result[1]

@resolve_vector
def middle_coordinate(vector: VectorCollection) -> Optional[Coordinate]:
    """The middle vertex (by index) of the first linear feature."""
    line = _first_line(vector)
    if line is None or len(line.coords) == 0:
        return None
    row = line.coords[len(line.coords) // 2]
    return Coordinate(*(float(v) for v in row))
