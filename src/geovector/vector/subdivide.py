# src/geovector/vector/subdivide.py

"""
This module breaks up long edges so linears and areal loops follow the
curved surface they are displayed on.

Each edge is split at its midpoint, recursively, until the sub-edge is within
epsilon of the true path. Epsilon is in display units (unit sphere radius or
plate carree radians). The split test only looks at the two stored endpoints
of an edge, so a second pass with the same or a larger epsilon finds nothing
to split.
"""

import logging
import math
from enum import Enum
from typing import Callable, List, Optional, Tuple, Union

import numpy as np

from geovector.vector.io import resolve_vector
from geovector.vector.layer import VectorCollection

log = logging.getLogger(__name__)

__all__ = [
    "SubdivideMode",
    "subdivide"
]

MAX_DEPTH = 24

Point = Tuple[float, ...]
Midpoint = Callable[[Point, Point], Tuple[Optional[Point], float]]

class SubdivideMode(Enum):
    """
    Modes:
        GLOBE: Interpolate in geographic coordinates, measure against the
            unit sphere.
        GREAT_CIRCLE: Follow the great circle between the endpoints, measure
            against the unit sphere.
        FLAT_GREAT_CIRCLE: Follow the great circle, measure in the flat
            plate carree plane. For showing great circle routes on a map.
    """
    GLOBE = "globe"
    GREAT_CIRCLE = "great_circle"
    FLAT_GREAT_CIRCLE = "flat_great_circle"

def _to_sphere(lon: float, lat: float) -> Tuple[float, float, float]:
    cos_lat = math.cos(lat)
    return cos_lat * math.cos(lon), cos_lat * math.sin(lon), math.sin(lat)

def _with_z(p0: Point, p1: Point, xy: Tuple[float, float]) -> Point:
    if len(p0) > 2:
        return (xy[0], xy[1], (p0[2] + p1[2]) / 2.0)
    return xy

def _great_circle_mid(p0: Point, p1: Point) -> Optional[Tuple[Tuple[float, float, float], float]]:
    a = _to_sphere(p0[0], p0[1])
    b = _to_sphere(p1[0], p1[1])
    s = (a[0] + b[0], a[1] + b[1], a[2] + b[2])
    norm = math.sqrt(s[0] * s[0] + s[1] * s[1] + s[2] * s[2])
    if norm < 1e-12:
        # antipodal, no unique great circle
        return None
    return (s[0] / norm, s[1] / norm, s[2] / norm), norm

def _mid_globe(p0: Point, p1: Point) -> Tuple[Optional[Point], float]:
    mid = ((p0[0] + p1[0]) / 2.0, (p0[1] + p1[1]) / 2.0)
    a = _to_sphere(p0[0], p0[1])
    b = _to_sphere(p1[0], p1[1])
    m = _to_sphere(mid[0], mid[1])
    dev = math.sqrt(sum((m[i] - (a[i] + b[i]) / 2.0) ** 2 for i in range(3)))
    return _with_z(p0, p1, mid), dev

def _mid_great_circle(p0: Point, p1: Point) -> Tuple[Optional[Point], float]:
    result = _great_circle_mid(p0, p1)
    if result is None:
        return None, 0.0
    m, norm = result
    mid = (math.atan2(m[1], m[0]), math.asin(max(-1.0, min(1.0, m[2]))))
    # distance from the chord midpoint out to the sphere
    return _with_z(p0, p1, mid), 1.0 - norm / 2.0

def _unwrap_lon(lon: float, ref: float) -> float:
    while lon - ref > math.pi:
        lon -= 2.0 * math.pi
    while lon - ref < -math.pi:
        lon += 2.0 * math.pi
    return lon

def _mid_flat_great_circle(p0: Point, p1: Point) -> Tuple[Optional[Point], float]:
    result = _great_circle_mid(p0, p1)
    if result is None:
        return None, 0.0
    m, _ = result
    # measure the edge the short way round, across the antimeridian if needed
    lon1 = _unwrap_lon(p1[0], p0[0])
    lin_lon = (p0[0] + lon1) / 2.0
    lin_lat = (p0[1] + p1[1]) / 2.0
    lon = _unwrap_lon(math.atan2(m[1], m[0]), lin_lon)
    lat = math.asin(max(-1.0, min(1.0, m[2])))
    return _with_z(p0, p1, (lon, lat)), math.hypot(lon - lin_lon, lat - lin_lat)

_MIDPOINTS = {
    SubdivideMode.GLOBE: _mid_globe,
    SubdivideMode.GREAT_CIRCLE: _mid_great_circle,
    SubdivideMode.FLAT_GREAT_CIRCLE: _mid_flat_great_circle,
}

def _subdivide_edge(p0: Point, p1: Point, epsilon: float, midpoint: Midpoint, out: List[Point], depth: int) -> None:
    mid, dev = midpoint(p0, p1)
    if mid is None or dev <= epsilon or depth >= MAX_DEPTH:
        return
    _subdivide_edge(p0, mid, epsilon, midpoint, out, depth + 1)
    out.append(mid)
    _subdivide_edge(mid, p1, epsilon, midpoint, out, depth + 1)

def _subdivide_array(arr: np.ndarray, epsilon: float, midpoint: Midpoint, closed: bool) -> np.ndarray:
    if len(arr) < 2:
        return arr
    pts = [tuple(float(v) for v in row) for row in arr]
    out: List[Point] = []
    for p0, p1 in zip(pts[:-1], pts[1:]):
        out.append(p0)
        _subdivide_edge(p0, p1, epsilon, midpoint, out, 0)
    out.append(pts[-1])
    if closed and len(pts) > 2:
        _subdivide_edge(pts[-1], pts[0], epsilon, midpoint, out, 0)
    if len(out) == len(arr):
        return arr
    return np.array(out, dtype=np.float64)

@resolve_vector
def subdivide(
    vector: VectorCollection,
    epsilon: float,
    mode: Union[SubdivideMode, str] = SubdivideMode.GLOBE
) -> VectorCollection:
    """
    Subdivides every linear and areal loop edge in place.

    Args:
        vector: Collection in geographic radians.
        epsilon: Largest allowed deviation from the curved path, in display units.
        mode: Which curved path to follow (see SubdivideMode).

    Returns:
        VectorCollection: The same collection, modified.
    """
    if epsilon <= 0.0:
        raise ValueError(f"epsilon must be positive, got {epsilon}")
    mode = SubdivideMode(mode)
    midpoint = _MIDPOINTS[mode]

    added = 0
    for feature in vector:
        for line in feature.lines():
            before = len(line.coords)
            line.coords = _subdivide_array(line.coords, epsilon, midpoint, closed=False)
            added += len(line.coords) - before
        for poly in feature.polygons():
            before = sum(len(loop) for loop in poly.loops)
            poly.map_coordinates(lambda loop: _subdivide_array(loop, epsilon, midpoint, closed=True))
            added += sum(len(loop) for loop in poly.loops) - before

    log.debug(f"Subdivided {len(vector)} features ({mode.value}, eps={epsilon}): {added} points added")
    return vector
