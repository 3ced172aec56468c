# tests/unit/test_geojson.py

import json
import math

import pytest
import numpy as np

from geovector.config import DecodeConfig, ParserMode
from geovector.coords import Coordinate
from geovector.exceptions import FormatError
from geovector.codecs.geojson import decode_geojson, decode_geojson_assembly
from geovector.vector import (
    VectorKind, Point, MultiPoint, LineString, Polygon, point_in_polygon
)

FAST = DecodeConfig(mode=ParserMode.FAST)
COMPATIBLE = DecodeConfig(mode=ParserMode.COMPATIBLE)

# --- Decoding Tests ---

def test_feature_collection(feature_collection_bytes):
    vec = decode_geojson(feature_collection_bytes)
    # the geometry collection is flattened into two features
    assert len(vec) == 4
    assert vec.kind == VectorKind.MULTI
    assert [type(f) for f in vec] == [Point, Polygon, LineString, MultiPoint]

def test_coordinates_are_radians(feature_collection_bytes):
    vec = decode_geojson(feature_collection_bytes)
    assert vec[0].coordinate.x == pytest.approx(math.radians(-73.5))
    assert vec[0].coordinate.to_degrees().y == pytest.approx(45.5)

def test_polygon_rings(feature_collection_bytes):
    poly = decode_geojson(feature_collection_bytes)[1]
    # the closing point is implicit
    assert poly.exterior.shape == (4, 2)
    assert len(poly.holes) == 1
    inside = Coordinate.from_degrees(1, 1)
    in_hole = Coordinate.from_degrees(5, 5)
    vec = decode_geojson(feature_collection_bytes)
    assert point_in_polygon(vec, inside)
    assert not point_in_polygon(vec, in_hole)

def test_properties(feature_collection_bytes):
    vec = decode_geojson(feature_collection_bytes)
    assert vec[0].attributes.to_dict() == {"name": "Montreal", "pop": 1762949, "capital": False}
    assert vec[1].attributes["tags"] == ("x", "y")
    # members of a geometry collection share the feature's properties
    assert vec[2].attributes == vec[3].attributes
    assert vec[2].attributes["nested"]["b"] == (1, 2)

def test_z_kept_for_lines(feature_collection_bytes):
    line = decode_geojson(feature_collection_bytes)[2]
    assert line.is_3d
    assert line.coords[:, 2].tolist() == [1.0, 2.0]

@pytest.mark.parametrize("config", [FAST, COMPATIBLE])
def test_parser_paths_agree(feature_collection_doc, feature_collection_bytes, config):
    """Fast, compatible and dict input all give the same collection."""
    reference = decode_geojson(feature_collection_doc)
    assert decode_geojson(feature_collection_bytes, config) == reference
    assert decode_geojson(feature_collection_bytes.decode("utf-8"), config) == reference

@pytest.mark.parametrize("config", [FAST, COMPATIBLE])
def test_bare_geometry(config):
    vec = decode_geojson(b'{"type": "LineString", "coordinates": [[0, 0], [1, 1]]}', config)
    assert vec.kind == VectorKind.LINEAR
    assert len(vec[0].attributes) == 0

@pytest.mark.parametrize("config", [FAST, COMPATIBLE])
def test_single_feature(config):
    data = b'{"type": "Feature", "geometry": {"type": "Point", "coordinates": [1, 2]}, "properties": null}'
    vec = decode_geojson(data, config)
    assert vec.kind == VectorKind.POINT

@pytest.mark.parametrize("config", [FAST, COMPATIBLE])
def test_empty_feature_collection(config):
    vec = decode_geojson(b'{"type": "FeatureCollection", "features": []}', config)
    assert vec.kind == VectorKind.NONE
    assert len(vec) == 0

@pytest.mark.parametrize("mode", [ParserMode.FAST, ParserMode.COMPATIBLE])
def test_null_geometry(mode):
    data = json.dumps({"type": "FeatureCollection", "features": [
        {"type": "Feature", "geometry": None, "properties": {"a": 1}},
        {"type": "Feature", "geometry": {"type": "Point", "coordinates": [0, 0]}, "properties": {"a": 2}}
    ]})
    vec = decode_geojson(data, DecodeConfig(mode=mode))
    assert len(vec) == 1
    assert vec.attributes["a"] == 2

    with pytest.raises(FormatError):
        decode_geojson(data, DecodeConfig(mode=mode, skip_null_geometry=False))

# --- Failure Tests ---

BAD_DOCUMENTS = [
    b'{"type": "Point", "coordinates": [1]}',
    b'{"type": "Point", "coordinates": [1, "a"]}',
    b'{"type": "Circle", "coordinates": [0, 0]}',
    b'{"coordinates": [0, 0]}',
    b'{"type": "Feature", "properties": {}}',
    b'{"type": "FeatureCollection"}',
    b'{"type": "Polygon", "coordinates": []}',
    b'{"type": "Feature", "geometry": {"type": "Point", "coordinates": [0, 0]}, "properties": [1]}',
    b'{"type": "Point", "coordinates": [0, 0]',
    b'[]',
    b'{"type": "Point", "coordinates": [NaN, 1.0]}',
    b'{"type": "Point", "coordinates": [Infinity, 1.0]}',
    b'{"type": "LineString", "coordinates": [[0, 0], [-Infinity, 1]]}',
]

@pytest.mark.parametrize("data", BAD_DOCUMENTS)
@pytest.mark.parametrize("config", [FAST, COMPATIBLE])
def test_malformed_input(data, config):
    with pytest.raises(FormatError):
        decode_geojson(data, config)

def test_malformed_dict_input():
    with pytest.raises(FormatError):
        decode_geojson({"type": "MultiPolygon", "coordinates": [[[[0, 0], [1, 0]]], 5]})

def test_rejects_other_input_types():
    with pytest.raises(TypeError):
        decode_geojson(42)

def test_format_error_is_value_error():
    with pytest.raises(ValueError):
        decode_geojson(b'{"type": "Nope"}')

# --- Assembly Tests ---

def test_assembly():
    data = json.dumps({
        "roads": {"type": "FeatureCollection", "features": [
            {"type": "Feature", "geometry": {"type": "LineString", "coordinates": [[0, 0], [1, 1]]}, "properties": {}}
        ]},
        "sites": [
            {"geometry": {"type": "Point", "coordinates": [3, 4]}, "properties": {"id": 1}},
            {"geometry": {"type": "Point", "coordinates": [5, 6]}, "properties": {"id": 2}}
        ],
        "zone": {"geometry": {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 0]]]}},
        "loose": {"features": [{"geometry": {"type": "Point", "coordinates": [0, 0]}}]},
        "broken": {"type": "Point", "coordinates": [1]}
    })
    result = decode_geojson_assembly(data)
    assert list(result) == ["roads", "sites", "zone", "loose"]
    assert result["roads"].kind == VectorKind.LINEAR
    assert [f.attributes["id"] for f in result["sites"]] == [1, 2]
    assert result["zone"].kind == VectorKind.AREAL
    assert len(result["loose"]) == 1

def test_assembly_must_be_object():
    with pytest.raises(FormatError):
        decode_geojson_assembly(b'[1, 2]')
    with pytest.raises(FormatError):
        decode_geojson_assembly(b'{not json')

def test_assembly_rejects_non_standard_numbers():
    with pytest.raises(FormatError):
        decode_geojson_assembly(b'{"site": {"type": "Point", "coordinates": [NaN, 0]}}')
