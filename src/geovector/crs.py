# src/geovector/crs.py

"""
Coordinate systems and display systems.

A CoordinateSystem converts between geographic radians and its own local
coordinates. A DisplaySystem is what the rendering side hands in for
distance and bearing queries: a flat plane wrapping a CoordinateSystem, or
the unit sphere of a globe.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Union

import numpy as np
from pyproj import CRS, Transformer

log = logging.getLogger(__name__)

__all__ = [
    "CoordinateSystem",
    "PlateCarree",
    "SphericalMercator",
    "ProjectedSystem",
    "DisplaySystem",
    "FlatDisplay",
    "GlobeDisplay",
    "geographic_to_sphere",
    "sphere_to_geographic"
]

MAX_MERCATOR_LAT = math.radians(85.05112878)

def _as_xy(pts) -> np.ndarray:
    arr = np.asarray(pts, dtype=np.float64)
    if arr.ndim == 1:
        arr = arr.reshape(1, -1)
    return arr[:, :2]

class CoordinateSystem(ABC):
    """
    Contract for converting (n, 2) arrays to and from geographic radians.
    """

    @abstractmethod
    def to_geographic(self, pts: np.ndarray) -> np.ndarray:
        ...

    @abstractmethod
    def from_geographic(self, pts: np.ndarray) -> np.ndarray:
        ...

    def _key(self):
        return (type(self),)

    def __eq__(self, other) -> bool:
        return isinstance(other, CoordinateSystem) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"

class PlateCarree(CoordinateSystem):
    """Local coordinates are geographic radians."""

    def to_geographic(self, pts: np.ndarray) -> np.ndarray:
        return _as_xy(pts).copy()

    def from_geographic(self, pts: np.ndarray) -> np.ndarray:
        return _as_xy(pts).copy()

class SphericalMercator(CoordinateSystem):
    """Web mercator on the unit sphere. Latitude is clamped to the usual tile limit."""

    def to_geographic(self, pts: np.ndarray) -> np.ndarray:
        xy = _as_xy(pts)
        out = np.empty_like(xy)
        out[:, 0] = xy[:, 0]
        out[:, 1] = 2.0 * np.arctan(np.exp(xy[:, 1])) - math.pi / 2.0
        return out

    def from_geographic(self, pts: np.ndarray) -> np.ndarray:
        xy = _as_xy(pts)
        lat = np.clip(xy[:, 1], -MAX_MERCATOR_LAT, MAX_MERCATOR_LAT)
        out = np.empty_like(xy)
        out[:, 0] = xy[:, 0]
        out[:, 1] = np.log(np.tan(math.pi / 4.0 + lat / 2.0))
        return out

class ProjectedSystem(CoordinateSystem):
    """
    Any CRS pyproj understands. Local coordinates are in the units of that CRS.
    """

    def __init__(self, crs: Union[str, int, CRS]):
        self.crs = CRS.from_user_input(crs)
        self._forward = Transformer.from_crs("EPSG:4326", self.crs, always_xy=True)
        self._inverse = Transformer.from_crs(self.crs, "EPSG:4326", always_xy=True)

    def to_geographic(self, pts: np.ndarray) -> np.ndarray:
        xy = _as_xy(pts)
        lon, lat = self._inverse.transform(xy[:, 0], xy[:, 1])
        return np.radians(np.column_stack([lon, lat]))

    def from_geographic(self, pts: np.ndarray) -> np.ndarray:
        deg = np.degrees(_as_xy(pts))
        x, y = self._forward.transform(deg[:, 0], deg[:, 1])
        return np.column_stack([x, y]).astype(np.float64)

    def _key(self):
        return (type(self), self.crs.to_wkt())

    def __repr__(self) -> str:
        return f"<ProjectedSystem crs={self.crs.to_string()}>"

def geographic_to_sphere(pts: np.ndarray) -> np.ndarray:
    xy = _as_xy(pts)
    cos_lat = np.cos(xy[:, 1])
    return np.column_stack([
        cos_lat * np.cos(xy[:, 0]),
        cos_lat * np.sin(xy[:, 0]),
        np.sin(xy[:, 1])
    ])

def sphere_to_geographic(xyz: np.ndarray) -> np.ndarray:
    arr = np.asarray(xyz, dtype=np.float64)
    if arr.ndim == 1:
        arr = arr.reshape(1, -1)
    norm = np.linalg.norm(arr, axis=1)
    norm[norm == 0.0] = 1.0
    lon = np.arctan2(arr[:, 1], arr[:, 0])
    lat = np.arcsin(np.clip(arr[:, 2] / norm, -1.0, 1.0))
    return np.column_stack([lon, lat])

class DisplaySystem(ABC):
    """
    Maps geographic radians into the space distances and bearings are measured in.
    """
    dimensions = 2

    @abstractmethod
    def to_display(self, geo: np.ndarray) -> np.ndarray:
        ...

class FlatDisplay(DisplaySystem):
    def __init__(self, coord_system: CoordinateSystem = None):
        self.coord_system = coord_system or PlateCarree()

    def to_display(self, geo: np.ndarray) -> np.ndarray:
        return self.coord_system.from_geographic(geo)

    def __repr__(self) -> str:
        return f"<FlatDisplay {self.coord_system!r}>"

class GlobeDisplay(DisplaySystem):
    """Unit sphere, radius 1.0."""
    dimensions = 3

    def to_display(self, geo: np.ndarray) -> np.ndarray:
        return geographic_to_sphere(geo)

    def __repr__(self) -> str:
        return "<GlobeDisplay>"
