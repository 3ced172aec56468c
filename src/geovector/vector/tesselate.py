# src/geovector/vector/tesselate.py

"""
This module triangulates areal features, holes included.

Holes are merged into the exterior loop through bridge edges (rightmost hole
vertex to a visible exterior vertex) and the resulting single loop is ear
clipped. Output triangles carry no attributes.

Self-intersecting or otherwise broken loops give best-effort triangles rather
than an error; this is a display aid.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from geovector.vector.features import Polygon
from geovector.vector.io import resolve_vector
from geovector.vector.layer import VectorCollection
from geovector.vector.loops import signed_area, strip_closing_point

log = logging.getLogger(__name__)

__all__ = [
    "triangulate_polygon",
    "tesselate"
]

XY = Tuple[float, float]

def _orient(p: XY, q: XY, r: XY) -> float:
    """Positive when r is left of p -> q."""
    return (q[0] - p[0]) * (r[1] - p[1]) - (q[1] - p[1]) * (r[0] - p[0])

def _in_triangle(a: XY, b: XY, c: XY, p: XY) -> bool:
    return _orient(a, b, p) >= 0 and _orient(b, c, p) >= 0 and _orient(c, a, p) >= 0

def _clean_loop(loop: np.ndarray) -> List[XY]:
    pts = []
    for x, y in strip_closing_point(loop[:, :2]):
        p = (float(x), float(y))
        if not pts or p != pts[-1]:
            pts.append(p)
    while len(pts) > 1 and pts[0] == pts[-1]:
        pts.pop()
    return pts

def _locally_inside(pts: List[XY], ring: List[int], k: int, m: XY) -> bool:
    """True if m lies inside the interior angle of the ring at position k."""
    n = len(ring)
    a = pts[ring[(k - 1) % n]]
    v = pts[ring[k]]
    b = pts[ring[(k + 1) % n]]
    if _orient(a, v, b) > 0:
        return _orient(v, b, m) >= 0 and _orient(v, a, m) <= 0
    return _orient(v, b, m) >= 0 or _orient(v, a, m) <= 0

def _find_bridge(pts: List[XY], ring: List[int], m: XY) -> Optional[int]:
    """
    Ring position of an exterior vertex visible from hole vertex m.

    Casts a ray from m towards +x, takes the nearest upward edge it hits and
    then prefers any ring vertex inside the triangle (m, hit, edge end) that
    makes the smallest angle with the ray.
    """
    n = len(ring)
    best_x = math.inf
    best_k = None
    for k in range(n):
        a = pts[ring[k]]
        b = pts[ring[(k + 1) % n]]
        if not (a[1] <= m[1] <= b[1] and a[1] < b[1]):
            continue
        x = a[0] + (m[1] - a[1]) * (b[0] - a[0]) / (b[1] - a[1])
        if m[0] <= x < best_x:
            best_x = x
            if x == a[0] and m[1] == a[1]:
                best_k = k
            elif x == b[0] and m[1] == b[1]:
                best_k = (k + 1) % n
            else:
                best_k = k if a[0] > b[0] else (k + 1) % n

    if best_k is None:
        return None

    hit = (best_x, m[1])
    target = pts[ring[best_k]]
    if target == hit:
        return _pick_copy(pts, ring, target, m, best_k)

    # some other vertex may block the line of sight to the edge end
    tan_min = math.inf
    chosen = best_k
    if hit[1] < target[1]:
        tri = (m, hit, target)
    else:
        tri = (m, target, hit)
    for k in range(n):
        p = pts[ring[k]]
        if p == target or p[0] <= m[0] or p[0] > max(hit[0], target[0]):
            continue
        if _in_triangle(tri[0], tri[1], tri[2], p):
            tan = abs(m[1] - p[1]) / (p[0] - m[0])
            if tan < tan_min or (tan == tan_min and p[0] > pts[ring[chosen]][0]):
                tan_min = tan
                chosen = k
    return _pick_copy(pts, ring, pts[ring[chosen]], m, chosen)

def _pick_copy(pts: List[XY], ring: List[int], target: XY, m: XY, default: int) -> int:
    # earlier bridges duplicate vertices; use the copy whose angle faces m
    for k, idx in enumerate(ring):
        if pts[idx] == target and _locally_inside(pts, ring, k, m):
            return k
    return default

def _merge_holes(pts: List[XY], ring: List[int], holes: List[List[int]]) -> List[int]:
    holes = sorted(holes, key=lambda h: max(pts[i][0] for i in h), reverse=True)
    for hole in holes:
        start = max(range(len(hole)), key=lambda i: (pts[hole[i]][0], -pts[hole[i]][1]))
        m = pts[hole[start]]
        k = _find_bridge(pts, ring, m)
        if k is None:
            log.debug(f"No bridge found for hole at {m}, hole skipped")
            continue
        hole_seq = hole[start:] + hole[:start] + [hole[start]]
        ring = ring[:k + 1] + hole_seq + [ring[k]] + ring[k + 1:]
    return ring

def _crosses(p: XY, q: XY, r: XY, s: XY) -> bool:
    """Proper crossing of segments p-q and r-s, shared endpoints excluded."""
    d1 = _orient(p, q, r)
    d2 = _orient(p, q, s)
    d3 = _orient(r, s, p)
    d4 = _orient(r, s, q)
    return ((d1 > 0 > d2) or (d1 < 0 < d2)) and ((d3 > 0 > d4) or (d3 < 0 < d4))

def _inside_ring(pts: List[XY], ring: List[int], p: XY) -> bool:
    inside = False
    n = len(ring)
    for k in range(n):
        a = pts[ring[k]]
        b = pts[ring[(k + 1) % n]]
        if (a[1] > p[1]) != (b[1] > p[1]):
            x = a[0] + (p[1] - a[1]) * (b[0] - a[0]) / (b[1] - a[1])
            if p[0] < x:
                inside = not inside
    return inside

def _is_ear(pts: List[XY], ring: List[int], i: int) -> bool:
    n = len(ring)
    a = pts[ring[(i - 1) % n]]
    b = pts[ring[i]]
    c = pts[ring[(i + 1) % n]]
    if _orient(a, b, c) <= 0:
        return False
    for k in range(n):
        if k in ((i - 1) % n, i, (i + 1) % n):
            continue
        p = pts[ring[k]]
        if p == a or p == b or p == c:
            continue
        if _in_triangle(a, b, c, p):
            return False

    # touching holes leave duplicated vertices that the test above skips:
    # the cut a-c must not cross the ring and the ear must lie inside it
    for k in range(n):
        p = pts[ring[k]]
        q = pts[ring[(k + 1) % n]]
        if p in (a, c) or q in (a, c):
            continue
        if _crosses(a, c, p, q):
            return False
    centroid = ((a[0] + b[0] + c[0]) / 3.0, (a[1] + b[1] + c[1]) / 3.0)
    return _inside_ring(pts, ring, centroid)

def _find_degenerate(pts: List[XY], ring: List[int]) -> Optional[int]:
    n = len(ring)
    for i in range(n):
        a = pts[ring[(i - 1) % n]]
        b = pts[ring[i]]
        c = pts[ring[(i + 1) % n]]
        if _orient(a, b, c) == 0:
            return i
    return None

def _ear_clip(pts: List[XY], ring: List[int]) -> List[Tuple[int, int, int]]:
    triangles = []
    ring = list(ring)
    i = 0
    stalled = 0
    while len(ring) > 3:
        n = len(ring)
        if _is_ear(pts, ring, i):
            triangles.append((ring[(i - 1) % n], ring[i], ring[(i + 1) % n]))
            ring.pop(i)
            i %= len(ring)
            stalled = 0
            continue

        i = (i + 1) % n
        stalled += 1
        if stalled < n:
            continue

        # no ear in a whole pass: drop a flat vertex, or cut one anyway
        k = _find_degenerate(pts, ring)
        if k is None:
            triangles.append((ring[(i - 1) % n], ring[i], ring[(i + 1) % n]))
            k = i
        ring.pop(k)
        i = k % len(ring)
        stalled = 0

    if len(ring) == 3 and _orient(pts[ring[0]], pts[ring[1]], pts[ring[2]]) != 0:
        triangles.append((ring[0], ring[1], ring[2]))
    return triangles

def triangulate_polygon(exterior: np.ndarray, holes: Sequence[np.ndarray] = ()) -> List[np.ndarray]:
    """
    Triangulates one polygon.

    Args:
        exterior: Exterior loop, either orientation.
        holes: Hole loops, either orientation.

    Returns:
        List[np.ndarray]: (3, 2) arrays, counter-clockwise.
    """
    outer = _clean_loop(exterior)
    if len(outer) < 3 or signed_area(np.array(outer)) == 0.0:
        return []
    if signed_area(np.array(outer)) < 0:
        outer.reverse()

    pts = list(outer)
    ring = list(range(len(outer)))
    hole_rings = []
    for hole in holes:
        cleaned = _clean_loop(hole)
        if len(cleaned) < 3:
            continue
        area = signed_area(np.array(cleaned))
        if area == 0.0:
            continue
        if area > 0:
            cleaned.reverse()
        start = len(pts)
        pts.extend(cleaned)
        hole_rings.append(list(range(start, start + len(cleaned))))

    if hole_rings:
        ring = _merge_holes(pts, ring, hole_rings)

    return [np.array([pts[a], pts[b], pts[c]], dtype=np.float64) for a, b, c in _ear_clip(pts, ring)]

@resolve_vector
def tesselate(vector: VectorCollection) -> VectorCollection:
    """
    Triangulates every areal feature.

    Returns:
        VectorCollection: One polygon per triangle, with empty attributes.
            Non areal features are not carried over.
    """
    triangles = []
    for feature in vector:
        for poly in feature.polygons():
            for tri in triangulate_polygon(poly.exterior, poly.holes):
                triangles.append(Polygon(tri))
    log.debug(f"Tesselated {len(vector)} features into {len(triangles)} triangles")
    return VectorCollection._adopt(triangles)
