# tests/unit/test_shapefile.py

import math

import pytest
import pandas as pd
import numpy as np
from shapely.geometry import (
    Point as ShapelyPoint, Polygon as ShapelyPolygon, MultiPolygon as ShapelyMultiPolygon,
    GeometryCollection, LineString as ShapelyLine
)

from geovector.coords import Coordinate
from geovector.exceptions import FormatError
from geovector.codecs.shapefile import read_shapefile, feature_from_shape, resolve_shapefile_path, _plain
from geovector.vector import (
    VectorKind, Point, LineString, Polygon, MultiPolygon, point_in_polygon
)

# --- Reading Tests ---

def test_read_polygons(shapefile_path):
    vec = read_shapefile(shapefile_path)
    assert len(vec) == 3
    assert vec.kind == VectorKind.AREAL
    assert all(isinstance(f, Polygon) for f in vec)
    assert len(vec[0].holes) == 1

def test_attributes_in_column_order(shapefile_path):
    vec = read_shapefile(shapefile_path)
    assert list(vec[0].attributes) == ["NAME", "POP", "DENSITY"]
    assert vec[0].attributes["NAME"] == "alpha"
    assert vec[0].attributes["POP"] == 1200
    assert type(vec[0].attributes["POP"]) is int

def test_missing_values_become_none(shapefile_path):
    vec = read_shapefile(shapefile_path)
    assert vec[1].attributes["DENSITY"] is None
    assert vec[2].attributes["DENSITY"] == pytest.approx(3.25)

def test_coordinates_are_radians(shapefile_path):
    vec = read_shapefile(shapefile_path)
    assert point_in_polygon(vec, Coordinate.from_degrees(1, 1))
    assert not point_in_polygon(vec.split_vectors()[0], Coordinate.from_degrees(5, 5))
    # closing point stripped
    assert vec[1].exterior.shape == (4, 2)

def test_missing_dates_become_none(surveys_path):
    vec = read_shapefile(surveys_path)
    assert vec[0].attributes["SURVEYED"].startswith("2021-05-01")
    assert vec[1].attributes["SURVEYED"] is None

@pytest.mark.parametrize("value", [None, pd.NaT, pd.NA, np.nan, np.float64("nan"), np.datetime64("NaT")])
def test_plain_missing_values(value):
    assert _plain(value) is None

def test_plain_values():
    assert _plain(pd.Timestamp("2020-01-02")) == "2020-01-02T00:00:00"
    assert _plain(np.datetime64("2020-01-02T03:04:05")) == "2020-01-02T03:04:05"
    assert _plain(np.int64(7)) == 7 and type(_plain(np.int64(7))) is int
    assert _plain("text") == "text"

def test_extension_optional(shapefile_path):
    stem = shapefile_path.with_suffix("")
    assert resolve_shapefile_path(stem) == shapefile_path
    assert len(read_shapefile(str(stem))) == 3

def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_shapefile(tmp_path / "ghost.shp")

def test_corrupt_file(tmp_path):
    bad = tmp_path / "bad.shp"
    bad.write_bytes(b"this is not a shapefile")
    with pytest.raises(FormatError):
        read_shapefile(bad)

def test_lines(roads_path):
    vec = read_shapefile(roads_path)
    assert vec.kind == VectorKind.LINEAR
    assert vec[0].coords.shape == (3, 2)
    assert vec[1].attributes["ROAD"] == "side"

def test_points(wells_path):
    vec = read_shapefile(wells_path)
    assert vec.kind == VectorKind.POINT
    assert vec[1].coordinate.to_degrees().x == pytest.approx(3.0)

def test_projected_file_is_reprojected(mock_vector_factory):
    # one degree of longitude east of the origin, in web mercator metres
    path = mock_vector_factory(
        "metres.shp",
        geometries=[ShapelyPoint(111319.49079327357, 0.0)],
        attributes={"ID": [1]},
        crs="EPSG:3857"
    )
    vec = read_shapefile(path)
    assert vec[0].coordinate.x == pytest.approx(math.radians(1.0), abs=1e-9)
    assert vec[0].coordinate.y == pytest.approx(0.0, abs=1e-9)

def test_null_geometry_rows_skipped(mock_vector_factory):
    path = mock_vector_factory(
        "sparse.shp",
        geometries=[ShapelyPoint(1, 2), None, ShapelyPoint(3, 4)],
        attributes={"ID": [1, 2, 3]}
    )
    vec = read_shapefile(path)
    assert [f.attributes["ID"] for f in vec] == [1, 3]

# --- Shape Conversion Tests ---

def test_feature_from_polygon_with_hole():
    shape = ShapelyPolygon([(0, 0), (10, 0), (10, 10), (0, 10)], [[(4, 4), (6, 4), (6, 6), (4, 6)]])
    feature = feature_from_shape(shape, {"id": 1})
    assert isinstance(feature, Polygon)
    assert feature.exterior.shape == (4, 2)
    assert np.allclose(feature.holes[0][0], np.radians((4, 4)))
    assert feature.attributes["id"] == 1

def test_feature_from_multipolygon():
    shape = ShapelyMultiPolygon([
        ShapelyPolygon([(0, 0), (1, 0), (1, 1)]),
        ShapelyPolygon([(5, 5), (6, 5), (6, 6)])
    ])
    feature = feature_from_shape(shape)
    assert isinstance(feature, MultiPolygon)
    assert len(feature.parts) == 2

def test_feature_from_3d_line_drops_z():
    feature = feature_from_shape(ShapelyLine([(0, 0, 5), (1, 1, 6)]))
    assert isinstance(feature, LineString)
    assert not feature.is_3d

def test_feature_from_point():
    feature = feature_from_shape(ShapelyPoint(90, 45))
    assert isinstance(feature, Point)
    assert feature.coordinate.x == pytest.approx(math.pi / 2)
    assert feature.coordinate.y == pytest.approx(math.pi / 4)

def test_unusable_shapes():
    assert feature_from_shape(None) is None
    assert feature_from_shape(ShapelyPolygon()) is None
    assert feature_from_shape(GeometryCollection([ShapelyPoint(0, 0)])) is None
