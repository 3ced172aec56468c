# src/geovector/vector/geom.py

"""
This module provides structural operations on vector collections:
reprojection, linear/areal conversion and attribute level filtering.
"""

from typing import Callable, Iterable
import logging

import numpy as np

from geovector.crs import CoordinateSystem
from geovector.vector.attributes import AttributeTable
from geovector.vector.features import LineString, Polygon
from geovector.vector.io import resolve_vector
from geovector.vector.layer import VectorCollection
from geovector.vector.loops import strip_closing_point

log = logging.getLogger(__name__)

__all__ = [
    "reproject",
    "linears_to_areals",
    "areals_to_linears",
    "filter_vector",
    "select_attributes"
]

@resolve_vector
def reproject(vector: VectorCollection, src: CoordinateSystem, dest: CoordinateSystem, inplace: bool = True) -> VectorCollection:
    if src == dest:
        return vector if inplace else vector.deep_copy()

    def convert(arr: np.ndarray) -> np.ndarray:
        if len(arr) == 0:
            return arr
        out = arr.copy()
        out[:, :2] = dest.from_geographic(src.to_geographic(arr[:, :2]))
        return out

    target = vector if inplace else vector.deep_copy()
    for feature in target:
        feature.map_coordinates(convert)

    log.debug(f"Reprojected {len(target)} features from {src!r} to {dest!r}")
    return target

@resolve_vector
def linears_to_areals(vector: VectorCollection) -> VectorCollection:
    """
    Closes every linear feature into a polygon with one exterior loop. Other
    features are copied through unchanged.
    """
    out = []
    for feature in vector:
        lines = feature.lines()
        if not lines:
            out.append(feature.copy())
            continue
        for line in lines:
            loop = strip_closing_point(line.coords[:, :2])
            out.append(Polygon(loop, attributes=feature.attributes))
    return VectorCollection._adopt(out)

@resolve_vector
def areals_to_linears(vector: VectorCollection) -> VectorCollection:
    """
    Turns every polygon loop (exterior and holes) into a closed line string.
    Other features are copied through unchanged.
    """
    out = []
    for feature in vector:
        polygons = feature.polygons()
        if not polygons:
            out.append(feature.copy())
            continue
        for poly in polygons:
            for loop in poly.loops:
                if len(loop) == 0:
                    continue
                closed = np.vstack([loop, loop[:1]])
                out.append(LineString(closed, feature.attributes))
    return VectorCollection._adopt(out)

@resolve_vector
def filter_vector(vector: VectorCollection, condition: Callable[[AttributeTable], bool], inplace: bool = False) -> VectorCollection:
    kept = [f for f in vector if condition(f.attributes)]

    if inplace:
        vector._features = kept
        return vector
    return VectorCollection(kept)

@resolve_vector
def select_attributes(vector: VectorCollection, keys: Iterable[str], inplace: bool = False) -> VectorCollection:
    keys = list(keys)
    target = vector if inplace else vector.deep_copy()
    for feature in target:
        feature.replace_attributes({k: feature.attributes[k] for k in keys if k in feature.attributes})
    return target
