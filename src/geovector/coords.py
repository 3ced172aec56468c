# src/geovector/coords.py

"""
This module defines the coordinate and bounding box value types.

Coordinates are geographic radians (longitude = x, latitude = y) unless a
collection has been reprojected into some other system.
"""

import math
from typing import NamedTuple, Optional, Iterable

import numpy as np

__all__ = [
    "Coordinate",
    "BoundingBox",
    "NULL_BOUNDING_BOX"
]

class Coordinate(NamedTuple):
    x: float
    y: float
    z: Optional[float] = None

    @classmethod
    def from_degrees(cls, lon: float, lat: float, z: Optional[float] = None) -> 'Coordinate':
        return cls(math.radians(lon), math.radians(lat), z)

    def to_degrees(self) -> 'Coordinate':
        return Coordinate(math.degrees(self.x), math.degrees(self.y), self.z)

    @property
    def is_3d(self) -> bool:
        return self.z is not None

    def as_array(self) -> np.ndarray:
        if self.z is None:
            return np.array([self.x, self.y], dtype=np.float64)
        return np.array([self.x, self.y, self.z], dtype=np.float64)

class BoundingBox(NamedTuple):
    """
    Axis aligned box given by its lower left and upper right corners.

    The null box (see NULL_BOUNDING_BOX) has inverted infinite corners. It
    stands for "no bounding box" and is never a valid degenerate box.
    """
    ll: Coordinate
    ur: Coordinate

    @classmethod
    def null(cls) -> 'BoundingBox':
        return NULL_BOUNDING_BOX

    @classmethod
    def from_points(cls, pts: np.ndarray) -> 'BoundingBox':
        if pts is None or len(pts) == 0:
            return NULL_BOUNDING_BOX
        mins = pts[:, :2].min(axis=0)
        maxs = pts[:, :2].max(axis=0)
        return cls(Coordinate(float(mins[0]), float(mins[1])), Coordinate(float(maxs[0]), float(maxs[1])))

    @classmethod
    def union_all(cls, boxes: Iterable['BoundingBox']) -> 'BoundingBox':
        result = NULL_BOUNDING_BOX
        for box in boxes:
            result = result.union(box)
        return result

    @property
    def is_null(self) -> bool:
        return self.ll.x > self.ur.x or self.ll.y > self.ur.y

    @property
    def width(self) -> float:
        return 0.0 if self.is_null else self.ur.x - self.ll.x

    @property
    def height(self) -> float:
        return 0.0 if self.is_null else self.ur.y - self.ll.y

    @property
    def center(self) -> Optional[Coordinate]:
        if self.is_null:
            return None
        return Coordinate((self.ll.x + self.ur.x) / 2.0, (self.ll.y + self.ur.y) / 2.0)

    def union(self, other: 'BoundingBox') -> 'BoundingBox':
        if other.is_null:
            return self
        if self.is_null:
            return other
        return BoundingBox(
            Coordinate(min(self.ll.x, other.ll.x), min(self.ll.y, other.ll.y)),
            Coordinate(max(self.ur.x, other.ur.x), max(self.ur.y, other.ur.y))
        )

    def contains(self, coord: Coordinate) -> bool:
        if self.is_null:
            return False
        return self.ll.x <= coord.x <= self.ur.x and self.ll.y <= coord.y <= self.ur.y

    def intersects(self, other: 'BoundingBox') -> bool:
        if self.is_null or other.is_null:
            return False
        return not (other.ll.x > self.ur.x or other.ur.x < self.ll.x or
                    other.ll.y > self.ur.y or other.ur.y < self.ll.y)

    def to_degrees(self) -> 'BoundingBox':
        if self.is_null:
            return self
        return BoundingBox(self.ll.to_degrees(), self.ur.to_degrees())

NULL_BOUNDING_BOX = BoundingBox(
    Coordinate(math.inf, math.inf),
    Coordinate(-math.inf, -math.inf)
)
