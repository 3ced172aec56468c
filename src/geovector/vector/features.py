# src/geovector/vector/features.py

"""
This module defines the geometry variants held by a vector collection.

Every variant owns its coordinate arrays (float64, shape (n, 2) or (n, 3))
and one AttributeTable. Polygon loops are implicitly closed: the first
coordinate is not repeated at the end.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional, Sequence, Union, Mapping

import numpy as np

from geovector.coords import Coordinate, BoundingBox, NULL_BOUNDING_BOX
from geovector.vector.attributes import AttributeTable

log = logging.getLogger(__name__)

__all__ = [
    "GeometryFamily",
    "Geometry",
    "Point",
    "MultiPoint",
    "LineString",
    "MultiLineString",
    "Polygon",
    "MultiPolygon",
    "as_coords"
]

CoordsLike = Union[np.ndarray, Sequence]
AttrsLike = Optional[Union[AttributeTable, Mapping]]
ArrayMap = Callable[[np.ndarray], np.ndarray]

class GeometryFamily(Enum):
    POINT = "point"
    LINEAR = "linear"
    LINEAR_3D = "linear3d"
    AREAL = "areal"

def as_coords(coords: CoordsLike, allow_3d: bool = True) -> np.ndarray:
    """
    Normalises coordinates into a contiguous float64 array.

    Accepts an (n, k) array, a sequence of Coordinate/tuples, or a flat
    sequence of numbers read as x, y pairs. Coordinates without z (or with
    z set to None) give an (n, 2) array.
    """
    if isinstance(coords, np.ndarray):
        arr = np.array(coords, dtype=np.float64)
        if arr.ndim == 1:
            arr = arr.reshape(-1, 2)
    else:
        seq = list(coords)
        if seq and all(isinstance(c, (int, float)) and not isinstance(c, bool) for c in seq):
            if len(seq) % 2:
                raise ValueError(f"Flat coordinate list needs an even length, got {len(seq)}")
            arr = np.asarray(seq, dtype=np.float64).reshape(-1, 2)
        else:
            rows = []
            for c in seq:
                row = tuple(c)
                if len(row) > 2 and row[2] is None:
                    row = row[:2]
                rows.append(row)
            if not rows:
                return np.empty((0, 2), dtype=np.float64)
            dims = min(len(r) for r in rows)
            if dims < 2:
                raise ValueError("Coordinates need at least two values")
            arr = np.array([r[:dims] for r in rows], dtype=np.float64)

    if arr.size == 0:
        return np.empty((0, 2), dtype=np.float64)
    if arr.shape[1] < 2:
        raise ValueError("Coordinates need at least two values")

    dims = 3 if allow_3d and arr.shape[1] >= 3 else 2
    return np.ascontiguousarray(arr[:, :dims])

def _arrays_equal(a: Sequence[np.ndarray], b: Sequence[np.ndarray]) -> bool:
    return len(a) == len(b) and all(x.shape == y.shape and np.array_equal(x, y) for x, y in zip(a, b))

class Geometry:
    """
    Common behaviour for the geometry variants.

    Subclasses expose their coordinate arrays through coordinate_arrays() and
    rewrite them through map_coordinates(); queries and transforms work on
    those two hooks plus lines() and polygons().
    """
    family: GeometryFamily = None

    def __init__(self, attributes: AttrsLike = None):
        self._attributes = AttributeTable(attributes)

    @property
    def attributes(self) -> AttributeTable:
        return self._attributes

    def replace_attributes(self, attributes: AttrsLike) -> None:
        self._attributes = AttributeTable(attributes)

    def coordinate_arrays(self) -> List[np.ndarray]:
        raise NotImplementedError

    def map_coordinates(self, func: ArrayMap) -> None:
        raise NotImplementedError

    def lines(self) -> List['LineString']:
        return []

    def polygons(self) -> List['Polygon']:
        return []

    def copy(self) -> 'Geometry':
        raise NotImplementedError

    def bounding_box(self) -> BoundingBox:
        arrays = [a for a in self.coordinate_arrays() if len(a)]
        if not arrays:
            return NULL_BOUNDING_BOX
        return BoundingBox.from_points(np.vstack([a[:, :2] for a in arrays]))

    def _structure(self) -> List[List[np.ndarray]]:
        return [self.coordinate_arrays()]

    def __eq__(self, other) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        if self._attributes != other._attributes:
            return False
        mine, theirs = self._structure(), other._structure()
        return len(mine) == len(theirs) and all(_arrays_equal(a, b) for a, b in zip(mine, theirs))

    __hash__ = None

    def __repr__(self) -> str:
        sizes = [len(a) for a in self.coordinate_arrays()]
        return f"<{type(self).__name__} coords={sizes} attributes={len(self._attributes)}>"

class Point(Geometry):
    family = GeometryFamily.POINT

    def __init__(self, coord: Union[Coordinate, Sequence[float]], attributes: AttrsLike = None):
        super().__init__(attributes)
        self.coords = as_coords([coord])

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(*(float(v) for v in self.coords[0]))

    def coordinate_arrays(self) -> List[np.ndarray]:
        return [self.coords]

    def map_coordinates(self, func: ArrayMap) -> None:
        self.coords = func(self.coords)

    def copy(self) -> 'Point':
        return Point(self.coords[0], self._attributes)

class MultiPoint(Geometry):
    family = GeometryFamily.POINT

    def __init__(self, coords: CoordsLike, attributes: AttrsLike = None):
        super().__init__(attributes)
        self.coords = as_coords(coords)

    def coordinate_arrays(self) -> List[np.ndarray]:
        return [self.coords]

    def map_coordinates(self, func: ArrayMap) -> None:
        self.coords = func(self.coords)

    def copy(self) -> 'MultiPoint':
        return MultiPoint(self.coords, self._attributes)

class LineString(Geometry):
    def __init__(self, coords: CoordsLike, attributes: AttrsLike = None):
        super().__init__(attributes)
        self.coords = as_coords(coords)

    @property
    def is_3d(self) -> bool:
        return self.coords.shape[1] == 3

    @property
    def family(self) -> GeometryFamily:
        return GeometryFamily.LINEAR_3D if self.is_3d else GeometryFamily.LINEAR

    def coordinate_arrays(self) -> List[np.ndarray]:
        return [self.coords]

    def map_coordinates(self, func: ArrayMap) -> None:
        self.coords = func(self.coords)

    def lines(self) -> List['LineString']:
        return [self]

    def copy(self) -> 'LineString':
        return LineString(self.coords, self._attributes)

class MultiLineString(Geometry):
    def __init__(self, parts: Sequence[Union[LineString, CoordsLike]], attributes: AttrsLike = None):
        super().__init__(attributes)
        self.parts = [LineString(p.coords if isinstance(p, LineString) else p) for p in parts]

    @property
    def is_3d(self) -> bool:
        return bool(self.parts) and all(p.is_3d for p in self.parts)

    @property
    def family(self) -> GeometryFamily:
        return GeometryFamily.LINEAR_3D if self.is_3d else GeometryFamily.LINEAR

    def coordinate_arrays(self) -> List[np.ndarray]:
        return [p.coords for p in self.parts]

    def map_coordinates(self, func: ArrayMap) -> None:
        for part in self.parts:
            part.map_coordinates(func)

    def lines(self) -> List[LineString]:
        return list(self.parts)

    def copy(self) -> 'MultiLineString':
        return MultiLineString(self.parts, self._attributes)

    def _structure(self) -> List[List[np.ndarray]]:
        return [[p.coords] for p in self.parts]

class Polygon(Geometry):
    """
    One exterior loop and zero or more holes.

    Loops are stored 2D. Hole containment is not checked here; bad input
    only shows up as odd query results.
    """
    family = GeometryFamily.AREAL

    def __init__(self, exterior: CoordsLike, holes: Optional[Sequence[CoordsLike]] = None, attributes: AttrsLike = None):
        super().__init__(attributes)
        self.exterior = as_coords(exterior, allow_3d=False)
        self.holes = [as_coords(h, allow_3d=False) for h in (holes or [])]

    @property
    def loops(self) -> List[np.ndarray]:
        return [self.exterior] + self.holes

    def add_hole(self, coords: CoordsLike) -> None:
        self.holes.append(as_coords(coords, allow_3d=False))

    def coordinate_arrays(self) -> List[np.ndarray]:
        return self.loops

    def map_coordinates(self, func: ArrayMap) -> None:
        self.exterior = func(self.exterior)
        self.holes = [func(h) for h in self.holes]

    def polygons(self) -> List['Polygon']:
        return [self]

    def copy(self) -> 'Polygon':
        return Polygon(self.exterior, self.holes, self._attributes)

class MultiPolygon(Geometry):
    family = GeometryFamily.AREAL

    def __init__(self, parts: Sequence[Polygon], attributes: AttrsLike = None):
        super().__init__(attributes)
        self.parts = [Polygon(p.exterior, p.holes) for p in parts]

    def coordinate_arrays(self) -> List[np.ndarray]:
        return [loop for p in self.parts for loop in p.loops]

    def map_coordinates(self, func: ArrayMap) -> None:
        for part in self.parts:
            part.map_coordinates(func)

    def polygons(self) -> List[Polygon]:
        return list(self.parts)

    def copy(self) -> 'MultiPolygon':
        return MultiPolygon(self.parts, self._attributes)

    def _structure(self) -> List[List[np.ndarray]]:
        return [p.loops for p in self.parts]
