# src/geovector/vector/layer.py

"""
This module defines the core data structure for vector data: an ordered,
possibly heterogeneous collection of point, linear and areal features.
"""

import logging
from enum import Enum
from typing import Iterable, Iterator, List, Optional

from geovector.coords import Coordinate
from geovector.exceptions import GeometryError
from geovector.vector.attributes import AttributeTable
from geovector.vector.features import (
    Geometry, GeometryFamily, Point, LineString, Polygon,
    CoordsLike, AttrsLike
)

log = logging.getLogger(__name__)

__all__ = [
    "VectorKind",
    "VectorCollection"
]

class VectorKind(Enum):
    """
    Aggregate type of a collection.

    NONE when empty, the shared family when every feature agrees, MULTI otherwise.
    """
    NONE = "none"
    POINT = "point"
    LINEAR = "linear"
    LINEAR_3D = "linear3d"
    AREAL = "areal"
    MULTI = "multi"

class VectorCollection:
    """
    Zero or more vector features, each with its own attribute table.

    The collection owns its features. Adding features from elsewhere (the
    constructor, append, merge) copies them, so nothing is aliased between
    collections. A single instance is not safe to mutate from two threads.
    """

    def __init__(self, features: Optional[Iterable[Geometry]] = None):
        self._features: List[Geometry] = []
        for feature in features or []:
            self.append(feature)

    @classmethod
    def _adopt(cls, features: List[Geometry]) -> 'VectorCollection':
        """Wraps freshly built features without copying them again."""
        vec = cls()
        vec._features = features
        return vec

    @classmethod
    def from_point(cls, coord: Coordinate, attributes: AttrsLike = None) -> 'VectorCollection':
        return cls._adopt([Point(coord, attributes)])

    @classmethod
    def from_line_string(cls, coords: CoordsLike, attributes: AttrsLike = None) -> 'VectorCollection':
        return cls._adopt([LineString(coords, attributes)])

    @classmethod
    def from_areal(cls, coords: CoordsLike, attributes: AttrsLike = None) -> 'VectorCollection':
        """Single areal feature with one exterior loop. Add holes with add_hole()."""
        return cls._adopt([Polygon(coords, attributes=attributes)])

    @property
    def features(self) -> List[Geometry]:
        return list(self._features)

    @property
    def kind(self) -> VectorKind:
        families = {f.family for f in self._features}
        if not families:
            return VectorKind.NONE
        if len(families) > 1:
            return VectorKind.MULTI
        return VectorKind(families.pop().value)

    @property
    def attributes(self) -> AttributeTable:
        """Attributes of the first feature, or an empty table."""
        if not self._features:
            return AttributeTable()
        return self._features[0].attributes

    @property
    def is_empty(self) -> bool:
        return not self._features

    def append(self, feature: Geometry) -> None:
        if not isinstance(feature, Geometry):
            raise TypeError(f"Expected Geometry, got {type(feature)}")
        self._features.append(feature.copy())

    def merge(self, other: 'VectorCollection') -> None:
        """Copies every feature of other onto the end of this collection."""
        for feature in other:
            self.append(feature)

    def add_hole(self, coords: CoordsLike) -> None:
        """
        Adds a hole to the single areal feature in the collection.

        The hole lands on the last polygon of that feature.
        """
        areals = [f for f in self._features if f.family == GeometryFamily.AREAL]
        if len(areals) != 1:
            raise GeometryError(f"add_hole needs exactly one areal feature, found {len(areals)}")
        polygons = areals[0].polygons()
        if not polygons:
            raise GeometryError("Areal feature has no polygon to add a hole to")
        polygons[-1].add_hole(coords)

    def deep_copy(self) -> 'VectorCollection':
        return VectorCollection(self._features)

    def split_vectors(self) -> List['VectorCollection']:
        return [VectorCollection([f]) for f in self._features]

    def as_coordinate_arrays(self) -> Optional[List[List[Coordinate]]]:
        """Every areal loop as a list of Coordinate. None when there are no areals."""
        loops = []
        for feature in self._features:
            for poly in feature.polygons():
                for loop in poly.loops:
                    loops.append([Coordinate(float(x), float(y)) for x, y in loop[:, :2]])
        return loops or None

    def as_numbers(self) -> Optional[List[float]]:
        """The first linear feature flattened to [x0, y0, x1, y1, ...]."""
        for feature in self._features:
            lines = feature.lines()
            if lines:
                return [float(v) for v in lines[0].coords[:, :2].ravel()]
        return None

    def describe(self) -> str:
        """Text dump of every feature, for debugging."""
        out = [repr(self)]
        for idx, feature in enumerate(self._features):
            out.append(f"feature {idx}: {type(feature).__name__} ({feature.family.value})")
            for key, value in feature.attributes.items():
                out.append(f"  {key} = {value!r}")
            for arr in feature.coordinate_arrays():
                pts = " ".join("(" + ", ".join(f"{v:.6f}" for v in row) + ")" for row in arr)
                out.append(f"  [{len(arr)}] {pts}")
        return "\n".join(out)

    def __len__(self) -> int:
        return len(self._features)

    def __iter__(self) -> Iterator[Geometry]:
        return iter(self._features)

    def __getitem__(self, idx: int) -> Geometry:
        return self._features[idx]

    def __eq__(self, other) -> bool:
        if not isinstance(other, VectorCollection):
            return NotImplemented
        return len(self) == len(other) and all(a == b for a, b in zip(self._features, other._features))

    __hash__ = None

    def __repr__(self) -> str:
        return f"<VectorCollection features={len(self._features)} kind={self.kind.value}>"
