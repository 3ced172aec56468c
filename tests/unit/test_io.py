# tests/unit/test_io.py

import json

import pytest

from geovector.config import DecodeConfig, ParserMode
from geovector.exceptions import FormatError
from geovector.coords import Coordinate
from geovector.vector import VectorCollection, VectorKind, load_vector, save_vector, resolve_vector
from geovector.vector import (
    point_in_polygon, area_of_outer_loops, bounding_box, center,
    areals_to_linears, filter_vector, select_attributes, subdivide
)

# --- Loading Tests ---

def test_load_geojson(tmp_path, feature_collection_doc):
    path = tmp_path / "doc.geojson"
    path.write_text(json.dumps(feature_collection_doc))
    vec = load_vector(path)
    assert len(vec) == 4

def test_load_json_compatible(tmp_path, feature_collection_doc):
    path = tmp_path / "doc.json"
    path.write_text(json.dumps(feature_collection_doc))
    vec = load_vector(str(path), config=DecodeConfig(mode=ParserMode.COMPATIBLE))
    assert vec == load_vector(path)

def test_load_shapefile(shapefile_path):
    assert load_vector(shapefile_path).kind == VectorKind.AREAL

def test_load_shapefile_without_extension(shapefile_path):
    assert len(load_vector(shapefile_path.with_suffix(""))) == 3

def test_load_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_vector(tmp_path / "ghost.gvec")

def test_load_garbage_binary(tmp_path):
    path = tmp_path / "junk.gvec"
    path.write_bytes(b"\x00\x01\x02")
    with pytest.raises(FormatError):
        load_vector(path)

# --- Saving Tests ---

def test_save_and_load(tmp_path, mixed_vector):
    path = tmp_path / "nested" / "dir" / "mixed.gvec"
    assert save_vector(mixed_vector, path) is True
    assert path.exists()
    assert load_vector(path) == mixed_vector

def test_save_failure_reports_false(tmp_path, mixed_vector):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")
    assert save_vector(mixed_vector, blocker / "out.gvec") is False

def test_save_unencodable_reports_false(tmp_path):
    vec = VectorCollection.from_line_string([(0, 0), (1, 1)], {"huge": 2 ** 80})
    path = tmp_path / "huge.gvec"
    assert save_vector(vec, path) is False
    assert not path.exists()

# --- Decorator Tests ---

@resolve_vector
def _count(vector):
    return None if vector is None else len(vector)

def test_resolve_vector(tmp_path, square_with_hole):
    path = tmp_path / "square.gvec"
    save_vector(square_with_hole, path)
    assert _count(square_with_hole) == 1
    assert _count(path) == 1
    assert _count(str(path)) == 1
    assert _count(None) is None

def test_resolve_vector_rejects_other_types():
    with pytest.raises(TypeError):
        _count(42)

@pytest.fixture
def square_path(tmp_path, square_with_hole):
    path = tmp_path / "square.gvec"
    save_vector(square_with_hole, path)
    return path

def test_queries_accept_paths(square_path):
    """Every query loads a path the same way it takes a collection."""
    assert point_in_polygon(square_path, Coordinate(1.0, 1.0))
    assert not point_in_polygon(str(square_path), Coordinate(5.0, 5.0))
    assert area_of_outer_loops(square_path) == pytest.approx(100.0)
    assert bounding_box(square_path).ur == (10.0, 10.0, None)
    assert center(square_path) == (5.0, 5.0, None)

def test_transforms_accept_paths(square_path):
    assert len(areals_to_linears(square_path)) == 2
    assert len(filter_vector(square_path, lambda attrs: attrs["id"] == 1)) == 1
    trimmed = select_attributes(square_path, ["name"])
    assert list(trimmed[0].attributes.keys()) == ["name"]

def test_queries_reject_other_types():
    with pytest.raises(TypeError):
        area_of_outer_loops(42)
    with pytest.raises(TypeError):
        subdivide([(0.0, 0.0)], 0.1)
