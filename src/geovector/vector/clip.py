# src/geovector/vector/clip.py

"""
This module clips areal features against a regular grid or a single box.

Every loop of a polygon, holes included, is clipped on its own against the
rectangle (Sutherland-Hodgman). Which pieces are exteriors and which are
holes is then worked out again from loop containment, since clipping can
split or open up the original nesting.
"""

import logging
import math
from typing import List, Tuple, Union

import numpy as np

from geovector.coords import Coordinate, BoundingBox
from geovector.vector.features import Polygon
from geovector.vector.io import resolve_vector
from geovector.vector.layer import VectorCollection
from geovector.vector.loops import (
    is_degenerate, loop_area, loop_centroid, point_in_loop, signed_area
)

log = logging.getLogger(__name__)

__all__ = [
    "clip_loop",
    "clip_to_grid",
    "clip_to_bounding_box"
]

Rect = Tuple[float, float, float, float]

def _dedupe(pts: List[Tuple[float, float]]) -> List[Tuple[float, float]]:
    out = []
    for p in pts:
        if not out or p != out[-1]:
            out.append(p)
    while len(out) > 1 and out[0] == out[-1]:
        out.pop()
    return out

def clip_loop(loop: np.ndarray, rect: Rect) -> np.ndarray:
    """
    Clips one loop against rect = (xmin, ymin, xmax, ymax).

    Returns:
        np.ndarray: The clipped loop, possibly empty. Concave input can come
            back with zero width connecting edges along the rectangle border;
            they add no area.
    """
    xmin, ymin, xmax, ymax = rect
    pts = [(float(x), float(y)) for x, y in loop[:, :2]]

    def cross_x(p, q, x):
        t = (x - p[0]) / (q[0] - p[0])
        return (x, p[1] + t * (q[1] - p[1]))

    def cross_y(p, q, y):
        t = (y - p[1]) / (q[1] - p[1])
        return (p[0] + t * (q[0] - p[0]), y)

    edges = (
        (lambda p: p[0] >= xmin, lambda p, q: cross_x(p, q, xmin)),
        (lambda p: p[0] <= xmax, lambda p, q: cross_x(p, q, xmax)),
        (lambda p: p[1] >= ymin, lambda p, q: cross_y(p, q, ymin)),
        (lambda p: p[1] <= ymax, lambda p, q: cross_y(p, q, ymax)),
    )

    for inside, intersect in edges:
        if not pts:
            break
        output = []
        prev = pts[-1]
        prev_in = inside(prev)
        for cur in pts:
            cur_in = inside(cur)
            if cur_in:
                if not prev_in:
                    output.append(intersect(prev, cur))
                output.append(cur)
            elif prev_in:
                output.append(intersect(prev, cur))
            prev, prev_in = cur, cur_in
        pts = output

    pts = _dedupe(pts)
    if not pts:
        return np.empty((0, 2), dtype=np.float64)
    return np.array(pts, dtype=np.float64)

def _interior_point(loop: np.ndarray) -> Tuple[float, float]:
    cx, cy = loop_centroid(loop)
    if point_in_loop(cx, cy, loop):
        return cx, cy

    # step a little inwards from each edge midpoint until one lands inside
    orientation = 1.0 if signed_area(loop) > 0 else -1.0
    span = float(np.ptp(loop[:, :2], axis=0).max()) or 1.0
    step = span * 1e-6
    nxt = np.roll(loop[:, :2], -1, axis=0)
    for p, q in zip(loop[:, :2], nxt):
        dx, dy = q[0] - p[0], q[1] - p[1]
        length = math.hypot(dx, dy)
        if length == 0.0:
            continue
        mx, my = (p[0] + q[0]) / 2.0, (p[1] + q[1]) / 2.0
        # left normal points inside a counter-clockwise loop
        px = mx - orientation * dy / length * step
        py = my + orientation * dx / length * step
        if point_in_loop(px, py, loop):
            return px, py
    return cx, cy

def _assemble(loops: List[np.ndarray]) -> List[Tuple[np.ndarray, List[np.ndarray]]]:
    """Groups loops into (exterior, holes) by how deeply each one is nested."""
    if not loops:
        return []
    areas = [loop_area(loop) for loop in loops]
    samples = [_interior_point(loop) for loop in loops]

    parents = []
    depths = []
    for i, (px, py) in enumerate(samples):
        # identical loops (a cell lying inside a hole) nest in input order
        containers = [
            j for j, other in enumerate(loops)
            if j != i and (areas[j] > areas[i] or (areas[j] == areas[i] and j < i))
            and point_in_loop(px, py, other)
        ]
        depths.append(len(containers))
        parents.append(min(containers, key=lambda j: areas[j]) if containers else None)

    shells = {i: (loops[i], []) for i, d in enumerate(depths) if d % 2 == 0}
    for i, d in enumerate(depths):
        if d % 2 == 1 and parents[i] in shells:
            shells[parents[i]][1].append(loops[i])
    return [shells[i] for i in sorted(shells)]

def _clip_polygon(poly: Polygon, rect: Rect) -> List[Tuple[np.ndarray, List[np.ndarray]]]:
    pieces = []
    for loop in poly.loops:
        if len(loop) < 3:
            continue
        clipped = clip_loop(loop, rect)
        if is_degenerate(clipped):
            continue
        pieces.append(clipped)
    return _assemble(pieces)

def _clip_areals(vector: VectorCollection, cells) -> VectorCollection:
    out = []
    dropped = 0
    for feature in vector:
        polygons = feature.polygons()
        if not polygons:
            out.append(feature.copy())
            continue
        for poly in polygons:
            if len(poly.exterior) < 3:
                dropped += 1
                continue
            box = BoundingBox.from_points(poly.exterior)
            for rect in cells(box):
                for exterior, holes in _clip_polygon(poly, rect):
                    out.append(Polygon(exterior, holes, feature.attributes))

    if dropped:
        log.debug(f"Skipped {dropped} polygons with fewer than three exterior points")
    return VectorCollection._adopt(out)

@resolve_vector
def clip_to_grid(vector: VectorCollection, cell_size: Union[float, Tuple[float, float]]) -> VectorCollection:
    """
    Clips every areal loop against a grid anchored at the origin.

    Args:
        vector: Collection (or a path to one) to clip.
        cell_size: Cell width and height, or one value for square cells, in
            the collection's units (radians for geographic data).

    Returns:
        VectorCollection: One polygon per grid cell piece, each with a copy of
            its source attributes. Non areal features are copied through
            unclipped.
    """
    if isinstance(cell_size, (int, float)):
        size_x = size_y = float(cell_size)
    else:
        size_x, size_y = (float(v) for v in cell_size)
    if size_x <= 0.0 or size_y <= 0.0:
        raise ValueError(f"Grid cell size must be positive, got {cell_size}")

    def cells(box: BoundingBox):
        for ix in range(math.floor(box.ll.x / size_x), math.floor(box.ur.x / size_x) + 1):
            for iy in range(math.floor(box.ll.y / size_y), math.floor(box.ur.y / size_y) + 1):
                yield (ix * size_x, iy * size_y, (ix + 1) * size_x, (iy + 1) * size_y)

    result = _clip_areals(vector, cells)
    log.debug(f"Clipped {len(vector)} features to a {size_x}x{size_y} grid: {len(result)} features out")
    return result

@resolve_vector
def clip_to_bounding_box(vector: VectorCollection, ll: Coordinate, ur: Coordinate) -> VectorCollection:
    """
    Clips every areal loop against the box (ll, ur). Non areal features are
    copied through unclipped.
    """
    rect = (min(ll[0], ur[0]), min(ll[1], ur[1]), max(ll[0], ur[0]), max(ll[1], ur[1]))
    clip_box = BoundingBox(Coordinate(rect[0], rect[1]), Coordinate(rect[2], rect[3]))

    def cells(box: BoundingBox):
        if box.intersects(clip_box):
            yield rect

    return _clip_areals(vector, cells)
