# src/geovector/vector/loops.py

"""
Planar helpers on single loops and segments.

Loops are (n, 2) arrays without the closing coordinate repeated.
"""

from typing import Tuple

import numpy as np

__all__ = [
    "signed_area",
    "loop_area",
    "loop_centroid",
    "point_in_loop",
    "point_segment_distance",
    "strip_closing_point",
    "is_degenerate"
]

AREA_EPSILON = 1e-14

def strip_closing_point(loop: np.ndarray) -> np.ndarray:
    if len(loop) > 1 and np.array_equal(loop[0, :2], loop[-1, :2]):
        return loop[:-1]
    return loop

def signed_area(loop: np.ndarray) -> float:
    """Shoelace area. Positive for counter-clockwise loops."""
    if len(loop) < 3:
        return 0.0
    x = loop[:, 0]
    y = loop[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y))

def loop_area(loop: np.ndarray) -> float:
    return abs(signed_area(loop))

def is_degenerate(loop: np.ndarray, eps: float = AREA_EPSILON) -> bool:
    return len(loop) < 3 or loop_area(loop) <= eps

def loop_centroid(loop: np.ndarray) -> Tuple[float, float]:
    """
    Area weighted centroid of a loop. Falls back to the vertex mean when the
    loop has no area.
    """
    if len(loop) == 0:
        raise ValueError("Cannot take the centroid of an empty loop")
    # shift towards the origin to keep the cross products well conditioned
    origin = loop[0, :2]
    pts = loop[:, :2] - origin
    x, y = pts[:, 0], pts[:, 1]
    xn, yn = np.roll(x, -1), np.roll(y, -1)
    cross = x * yn - xn * y
    area = cross.sum() / 2.0
    if abs(area) <= AREA_EPSILON:
        mean = pts.mean(axis=0) + origin
        return float(mean[0]), float(mean[1])
    cx = ((x + xn) * cross).sum() / (6.0 * area)
    cy = ((y + yn) * cross).sum() / (6.0 * area)
    return float(cx + origin[0]), float(cy + origin[1])

def point_in_loop(x: float, y: float, loop: np.ndarray) -> bool:
    """Even-odd ray crossing test."""
    n = len(loop)
    if n < 3:
        return False
    xs = loop[:, 0]
    ys = loop[:, 1]
    xj = np.roll(xs, 1)
    yj = np.roll(ys, 1)
    straddles = (ys > y) != (yj > y)
    with np.errstate(divide="ignore", invalid="ignore"):
        x_cross = (xj - xs) * (y - ys) / (yj - ys) + xs
    crossings = np.count_nonzero(straddles & (x < x_cross))
    return bool(crossings % 2)

def point_segment_distance(p: np.ndarray, a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Distance from point p to every segment a[i] -> b[i]. Works in 2D or 3D.
    """
    ab = b - a
    ap = p - a
    denom = np.einsum("ij,ij->i", ab, ab)
    with np.errstate(divide="ignore", invalid="ignore"):
        t = np.where(denom > 0.0, np.einsum("ij,ij->i", ap, ab) / denom, 0.0)
    t = np.clip(t, 0.0, 1.0)
    closest = a + ab * t[:, None]
    return np.linalg.norm(p - closest, axis=1)
