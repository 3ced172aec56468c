# src/geovector/codecs/geojson.py

"""
This module decodes GeoJSON into vector collections.

Two parser paths share one geometry builder:
    - fast: msgspec decodes straight into typed structs, no generic tree
    - compatible: json.loads into dicts, then a tree walker (also used for
      input that was already parsed)

Both produce identical collections for valid input. Coordinates are read as
decimal degrees WGS84 and stored as radians.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Union

import msgspec
import numpy as np

from geovector.config import DecodeConfig, ParserMode
from geovector.exceptions import FormatError
from geovector.vector.attributes import AttributeTable
from geovector.vector.features import (
    Geometry, Point, MultiPoint, LineString, MultiLineString, Polygon, MultiPolygon
)
from geovector.vector.layer import VectorCollection
from geovector.vector.loops import strip_closing_point

log = logging.getLogger(__name__)

__all__ = [
    "decode_geojson",
    "decode_geojson_assembly",
    "GEOMETRY_TYPES"
]

GEOMETRY_TYPES = (
    "Point", "MultiPoint", "LineString", "MultiLineString",
    "Polygon", "MultiPolygon", "GeometryCollection"
)

JSONInput = Union[bytes, bytearray, str, Dict[str, Any]]

# --- msgspec schema (fast path) ---

Position = List[float]

class _Point(msgspec.Struct, tag="Point"):
    coordinates: Position

class _MultiPoint(msgspec.Struct, tag="MultiPoint"):
    coordinates: List[Position]

class _LineString(msgspec.Struct, tag="LineString"):
    coordinates: List[Position]

class _MultiLineString(msgspec.Struct, tag="MultiLineString"):
    coordinates: List[List[Position]]

class _Polygon(msgspec.Struct, tag="Polygon"):
    coordinates: List[List[Position]]

class _MultiPolygon(msgspec.Struct, tag="MultiPolygon"):
    coordinates: List[List[List[Position]]]

class _GeometryCollection(msgspec.Struct, tag="GeometryCollection"):
    geometries: List[_Geometry]

_Geometry = Union[
    _Point, _MultiPoint, _LineString, _MultiLineString,
    _Polygon, _MultiPolygon, _GeometryCollection
]

class _Feature(msgspec.Struct, tag="Feature"):
    geometry: Optional[_Geometry]
    properties: Optional[Dict[str, Any]] = None

class _FeatureCollection(msgspec.Struct, tag="FeatureCollection"):
    features: List[_Feature]

_GeoJSON = Union[
    _Point, _MultiPoint, _LineString, _MultiLineString, _Polygon,
    _MultiPolygon, _GeometryCollection, _Feature, _FeatureCollection
]

_fast_decoder = msgspec.json.Decoder(_GeoJSON)

# --- shared builder ---

def _position(pos: Any) -> List[float]:
    if not isinstance(pos, (list, tuple)):
        raise FormatError(f"Expected a coordinate array, got {type(pos).__name__}")
    if len(pos) < 2:
        raise FormatError(f"Coordinate arrays need at least 2 elements, got {len(pos)}")
    out = []
    for v in pos:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise FormatError(f"Coordinate values must be numbers, got {v!r}")
        out.append(float(v))
    return out

def _positions(seq: Any, keep_z: bool = True) -> np.ndarray:
    if not isinstance(seq, (list, tuple)):
        raise FormatError(f"Expected an array of coordinates, got {type(seq).__name__}")
    rows = [_position(p) for p in seq]
    if not rows:
        return np.empty((0, 2), dtype=np.float64)
    dims = 3 if keep_z and all(len(r) >= 3 for r in rows) else 2
    arr = np.array([r[:dims] for r in rows], dtype=np.float64)
    arr[:, :2] = np.radians(arr[:, :2])
    return arr

def _rings(seq: Any) -> List[np.ndarray]:
    if not isinstance(seq, (list, tuple)):
        raise FormatError(f"Expected an array of rings, got {type(seq).__name__}")
    return [strip_closing_point(_positions(ring, keep_z=False)) for ring in seq]

def _polygon(rings: Any) -> Polygon:
    loops = _rings(rings)
    if not loops:
        raise FormatError("Polygon has no exterior ring")
    return Polygon(loops[0], loops[1:])

def _nested(seq: Any) -> list:
    if not isinstance(seq, (list, tuple)):
        raise FormatError(f"Expected an array, got {type(seq).__name__}")
    return list(seq)

def _build(kind: str, coordinates: Any, attributes: AttributeTable) -> Geometry:
    """Turns one simple GeoJSON geometry into a feature."""
    if kind == "Point":
        feature = Point(_positions([coordinates])[0])
    elif kind == "MultiPoint":
        feature = MultiPoint(_positions(coordinates))
    elif kind == "LineString":
        feature = LineString(_positions(coordinates))
    elif kind == "MultiLineString":
        feature = MultiLineString([_positions(part) for part in _nested(coordinates)])
    elif kind == "Polygon":
        feature = _polygon(coordinates)
    elif kind == "MultiPolygon":
        feature = MultiPolygon([_polygon(part) for part in _nested(coordinates)])
    else:
        raise FormatError(f"Unknown geometry type '{kind}'")
    feature.replace_attributes(attributes)
    return feature

def _attributes(properties: Any) -> AttributeTable:
    if properties is None:
        return AttributeTable()
    if not isinstance(properties, dict):
        raise FormatError(f"Feature properties must be an object, got {type(properties).__name__}")
    try:
        return AttributeTable(properties)
    except TypeError as e:
        raise FormatError(f"Unsupported property value: {e}") from e

# --- fast path ---

def _walk_struct(geom: Any, attributes: AttributeTable, out: List[Geometry]) -> None:
    if isinstance(geom, _GeometryCollection):
        for member in geom.geometries:
            _walk_struct(member, attributes, out)
        return
    kind = type(geom).__struct_config__.tag
    out.append(_build(kind, geom.coordinates, attributes))

def _decode_fast(data: Union[bytes, str], config: DecodeConfig) -> List[Geometry]:
    try:
        doc = _fast_decoder.decode(data)
    except (msgspec.DecodeError, msgspec.ValidationError) as e:
        raise FormatError(f"Invalid GeoJSON: {e}") from e

    out: List[Geometry] = []
    if isinstance(doc, _FeatureCollection):
        features = doc.features
    elif isinstance(doc, _Feature):
        features = [doc]
    else:
        _walk_struct(doc, AttributeTable(), out)
        return out

    for feature in features:
        attributes = _attributes(feature.properties)
        if feature.geometry is None:
            _null_geometry(config)
            continue
        _walk_struct(feature.geometry, attributes, out)
    return out

# --- tree path ---

def _type_of(obj: Any) -> str:
    if not isinstance(obj, dict):
        raise FormatError(f"Expected a GeoJSON object, got {type(obj).__name__}")
    kind = obj.get("type")
    if kind is None:
        raise FormatError("GeoJSON object is missing 'type'")
    if not isinstance(kind, str):
        raise FormatError(f"GeoJSON 'type' must be a string, got {kind!r}")
    return kind

def _require(obj: Dict[str, Any], key: str) -> Any:
    if key not in obj:
        raise FormatError(f"{obj.get('type', 'GeoJSON')} object is missing '{key}'")
    return obj[key]

def _walk_tree(geom: Dict[str, Any], attributes: AttributeTable, out: List[Geometry]) -> None:
    kind = _type_of(geom)
    if kind == "GeometryCollection":
        for member in _nested(_require(geom, "geometries")):
            _walk_tree(member, attributes, out)
        return
    if kind not in GEOMETRY_TYPES:
        raise FormatError(f"Unknown geometry type '{kind}'")
    out.append(_build(kind, _require(geom, "coordinates"), attributes))

def _tree_feature(obj: Dict[str, Any], config: DecodeConfig, out: List[Geometry]) -> None:
    if _type_of(obj) != "Feature":
        raise FormatError(f"Expected a Feature, got '{obj['type']}'")
    geometry = _require(obj, "geometry")
    attributes = _attributes(obj.get("properties"))
    if geometry is None:
        _null_geometry(config)
        return
    _walk_tree(geometry, attributes, out)

def _decode_tree(doc: Any, config: DecodeConfig) -> List[Geometry]:
    kind = _type_of(doc)
    out: List[Geometry] = []
    if kind == "FeatureCollection":
        for feature in _nested(_require(doc, "features")):
            _tree_feature(feature, config, out)
    elif kind == "Feature":
        _tree_feature(doc, config, out)
    else:
        _walk_tree(doc, AttributeTable(), out)
    return out

def _null_geometry(config: DecodeConfig) -> None:
    if not config.skip_null_geometry:
        raise FormatError("Feature has a null geometry")
    log.debug("Skipping feature with null geometry")

# --- entry points ---

def _reject_constant(token: str) -> None:
    raise FormatError(f"Invalid GeoJSON: non-standard number '{token}'")

def decode_geojson(data: JSONInput, config: Optional[DecodeConfig] = None) -> VectorCollection:
    """
    Decodes a GeoJSON document into one collection.

    A FeatureCollection gives one feature per member, a bare Feature or
    geometry gives a single feature and GeometryCollections are flattened,
    each member taking the enclosing feature's properties.

    Args:
        data: Raw bytes/str, or an already parsed dict (tree path).
        config: Parser selection; defaults to the fast path.

    Raises:
        FormatError: On malformed JSON, a missing 'type', short coordinate
            arrays or unknown geometry types.
    """
    config = config or DecodeConfig()

    if isinstance(data, dict):
        features = _decode_tree(data, config)
    elif isinstance(data, (bytes, bytearray, str)):
        if config.mode == ParserMode.FAST:
            features = _decode_fast(bytes(data) if isinstance(data, bytearray) else data, config)
        else:
            try:
                doc = json.loads(data, parse_constant=_reject_constant)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise FormatError(f"Invalid GeoJSON: {e}") from e
            features = _decode_tree(doc, config)
    else:
        raise TypeError(f"Expected bytes, str or dict, got {type(data)}")

    return VectorCollection._adopt(features)

def _relaxed_fragment(fragment: Any) -> Any:
    """Adds the envelope a non-compliant fragment left out."""
    if isinstance(fragment, list):
        return {"type": "FeatureCollection", "features": [_relaxed_feature(f) for f in fragment]}
    if isinstance(fragment, dict) and "type" not in fragment:
        if "features" in fragment:
            features = fragment["features"]
            if isinstance(features, list):
                features = [_relaxed_feature(f) for f in features]
            return {"type": "FeatureCollection", "features": features}
        if "geometry" in fragment:
            return _relaxed_feature(fragment)
    if isinstance(fragment, dict) and fragment.get("type") == "FeatureCollection":
        features = fragment.get("features")
        if isinstance(features, list):
            return dict(fragment, features=[_relaxed_feature(f) for f in features])
    return fragment

def _relaxed_feature(feature: Any) -> Any:
    if isinstance(feature, dict) and "type" not in feature and "geometry" in feature:
        return dict(feature, type="Feature")
    return feature

def decode_geojson_assembly(data: JSONInput) -> Dict[str, VectorCollection]:
    """
    Decodes a mapping of name -> GeoJSON-ish fragment, one collection each.

    Fragments may lack their envelope (a bare feature list, a features
    object without 'type', features without 'type'). Fragments that still
    fail are left out of the result instead of failing the whole assembly.

    Raises:
        FormatError: If the assembly itself is not a JSON object.
    """
    if isinstance(data, (bytes, bytearray, str)):
        try:
            data = json.loads(data, parse_constant=_reject_constant)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise FormatError(f"Invalid GeoJSON assembly: {e}") from e
    if not isinstance(data, dict):
        raise FormatError(f"GeoJSON assembly must be an object, got {type(data).__name__}")

    config = DecodeConfig(mode=ParserMode.COMPATIBLE)
    result = {}
    for name, fragment in data.items():
        try:
            result[name] = VectorCollection._adopt(_decode_tree(_relaxed_fragment(fragment), config))
        except FormatError as e:
            log.warning(f"Skipping assembly entry '{name}': {e}")
    return result
