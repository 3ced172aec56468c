# src/geovector/codecs/shapefile.py

"""
This module reads shapefiles (geometry + dBase attributes) into vector
collections using GeoPandas.

Only the point, polyline and polygon families are supported. Z values are
dropped and attributes are flat key/value pairs in column order.
"""

import datetime
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple, Union

import geopandas as gpd
import numpy as np
import pandas as pd
from shapely.geometry.base import BaseGeometry

from geovector.exceptions import FormatError
from geovector.vector.features import (
    Geometry, Point, MultiPoint, LineString, MultiLineString, Polygon, MultiPolygon
)
from geovector.vector.layer import VectorCollection
from geovector.vector.loops import strip_closing_point

log = logging.getLogger(__name__)

__all__ = [
    "resolve_shapefile_path",
    "read_shapefile_frame",
    "feature_from_shape",
    "iter_shapefile_records",
    "read_shapefile"
]

def resolve_shapefile_path(path: Union[str, Path]) -> Path:
    """
    Accepts the shapefile basename with or without the .shp extension.
    """
    path = Path(path)
    if path.suffix.lower() != ".shp":
        path = path.with_name(path.name + ".shp")
    if not path.exists():
        raise FileNotFoundError(f"Shapefile not found: {path}")
    return path

def read_shapefile_frame(path: Union[str, Path], engine: str = "pyogrio") -> gpd.GeoDataFrame:
    """
    Reads the shapefile triple into a GeoDataFrame in WGS84 degrees.
    """
    path = resolve_shapefile_path(path)
    try:
        gdf = gpd.read_file(path, engine=engine)
    except Exception as e:
        raise FormatError(f"Failed to read shapefile {path}: {e}") from e

    if gdf.crs is not None and not gdf.crs.is_geographic:
        log.info(f"Reprojecting {path.name} from {gdf.crs.name} to WGS84")
        gdf = gdf.to_crs("EPSG:4326")
    return gdf

def _xy(coords) -> np.ndarray:
    arr = np.asarray(coords, dtype=np.float64)
    if arr.size == 0:
        return np.empty((0, 2), dtype=np.float64)
    return np.radians(arr[:, :2])

def _polygon(shape) -> Polygon:
    exterior = strip_closing_point(_xy(shape.exterior.coords))
    holes = [strip_closing_point(_xy(ring.coords)) for ring in shape.interiors]
    return Polygon(exterior, holes)

def feature_from_shape(shape: Optional[BaseGeometry], attributes: Optional[Dict[str, Any]] = None) -> Optional[Geometry]:
    """
    Converts a shapely geometry in degrees into a feature in radians.

    Returns:
        The feature, or None for missing, empty or unsupported geometries.
    """
    if shape is None or shape.is_empty:
        return None

    kind = shape.geom_type
    if kind == "Point":
        feature = Point(_xy(shape.coords)[0])
    elif kind == "MultiPoint":
        feature = MultiPoint(_xy([g.coords[0] for g in shape.geoms]))
    elif kind in ("LineString", "LinearRing"):
        feature = LineString(_xy(shape.coords))
    elif kind == "MultiLineString":
        feature = MultiLineString([_xy(g.coords) for g in shape.geoms])
    elif kind == "Polygon":
        feature = _polygon(shape)
    elif kind == "MultiPolygon":
        feature = MultiPolygon([_polygon(g) for g in shape.geoms])
    else:
        log.warning(f"Unsupported shapefile geometry type '{kind}' skipped")
        return None

    feature.replace_attributes(attributes)
    return feature

def _plain(value: Any) -> Any:
    # NaT passes the Timestamp check, so missing values go first
    if value is None or value is pd.NaT or value is pd.NA:
        return None
    if isinstance(value, np.datetime64):
        if np.isnat(value):
            return None
        value = pd.Timestamp(value)
    if isinstance(value, (pd.Timestamp, datetime.date)):
        return value.isoformat()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and np.isnan(value):
        return None
    return value

def iter_shapefile_records(gdf: gpd.GeoDataFrame) -> Iterator[Tuple[int, Optional[Geometry]]]:
    """
    Yields (row_id, feature) in file order. Rows without a usable geometry
    yield None so row ids stay aligned with the attribute table.
    """
    columns = [c for c in gdf.columns if c != gdf.geometry.name]
    for row_id, (shape, values) in enumerate(zip(gdf.geometry, gdf[columns].itertuples(index=False, name=None))):
        attributes = {col: _plain(v) for col, v in zip(columns, values)}
        yield row_id, feature_from_shape(shape, attributes)

def read_shapefile(path: Union[str, Path], engine: str = "pyogrio") -> VectorCollection:
    """
    Reads every shape of a shapefile into one collection.

    Args:
        path: Shapefile path; the .shp extension may be left off.
        engine: GeoPandas I/O engine.
    """
    gdf = read_shapefile_frame(path, engine=engine)
    features = [f for _, f in iter_shapefile_records(gdf) if f is not None]
    skipped = len(gdf) - len(features)
    if skipped:
        log.debug(f"Skipped {skipped} rows without usable geometry")
    log.info(f"Loaded {len(features)} features from {Path(path).name}")
    return VectorCollection._adopt(features)
