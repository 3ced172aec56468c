# src/geovector/codecs/binary.py

"""
This module reads and writes the private binary cache format.

Layout (little endian):

    header   magic b"GVEC" | version u16 | flags u16 | feature count u32
    feature  geometry tag u8 | geometry payload | attribute table

    coordinate block   dims u8 (2 or 3) | count u32 | count * dims f64
    Point/MultiPoint/LineString   one block
    MultiLineString               part count u32 | blocks
    Polygon                       loop count u32 | blocks (exterior first)
    MultiPolygon                  polygon count u32 | polygons

    attribute table    key count u32 | (key str, value)*
    str                byte length u32 | utf-8 bytes
    value              tag u8 | payload (none, bool u8, int i64, float f64,
                       str, table, list: count u32 | values)

Unknown versions, bad magic, truncation and trailing bytes all fail with
FormatError.
"""

import logging
import struct
from typing import Any, List, Tuple

import numpy as np

from geovector.exceptions import FormatError
from geovector.vector.attributes import AttributeTable
from geovector.vector.features import (
    Geometry, Point, MultiPoint, LineString, MultiLineString, Polygon, MultiPolygon
)
from geovector.vector.layer import VectorCollection

log = logging.getLogger(__name__)

__all__ = [
    "FORMAT_VERSION",
    "encode_vector",
    "decode_vector",
    "encode_feature",
    "decode_feature"
]

MAGIC = b"GVEC"
FORMAT_VERSION = 1

_HEADER = struct.Struct("<4sHHI")
_U8 = struct.Struct("<B")
_U32 = struct.Struct("<I")
_I64 = struct.Struct("<q")
_F64 = struct.Struct("<d")

_GEOMETRY_TAGS = {
    Point: 1,
    MultiPoint: 2,
    LineString: 3,
    MultiLineString: 4,
    Polygon: 5,
    MultiPolygon: 6,
}
_TAG_GEOMETRIES = {v: k for k, v in _GEOMETRY_TAGS.items()}

_V_NONE, _V_FALSE, _V_TRUE, _V_INT, _V_FLOAT, _V_STR, _V_TABLE, _V_LIST = range(8)

_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1

# --- writing ---

def _write_str(out: List[bytes], value: str) -> None:
    raw = value.encode("utf-8")
    out.append(_U32.pack(len(raw)))
    out.append(raw)

def _write_block(out: List[bytes], arr: np.ndarray) -> None:
    dims = arr.shape[1] if arr.ndim == 2 and len(arr) else 2
    out.append(_U8.pack(dims))
    out.append(_U32.pack(len(arr)))
    out.append(np.ascontiguousarray(arr, dtype="<f8").tobytes())

def _write_value(out: List[bytes], value: Any) -> None:
    if value is None:
        out.append(_U8.pack(_V_NONE))
    elif isinstance(value, bool):
        out.append(_U8.pack(_V_TRUE if value else _V_FALSE))
    elif isinstance(value, int):
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise FormatError(f"Integer attribute {value} does not fit in 64 bits")
        out.append(_U8.pack(_V_INT))
        out.append(_I64.pack(value))
    elif isinstance(value, float):
        out.append(_U8.pack(_V_FLOAT))
        out.append(_F64.pack(value))
    elif isinstance(value, str):
        out.append(_U8.pack(_V_STR))
        _write_str(out, value)
    elif isinstance(value, AttributeTable):
        out.append(_U8.pack(_V_TABLE))
        _write_table(out, value)
    elif isinstance(value, tuple):
        out.append(_U8.pack(_V_LIST))
        out.append(_U32.pack(len(value)))
        for item in value:
            _write_value(out, item)
    else:
        raise FormatError(f"Cannot encode attribute value of type {type(value).__name__}")

def _write_table(out: List[bytes], table: AttributeTable) -> None:
    out.append(_U32.pack(len(table)))
    for key, value in table.items():
        _write_str(out, key)
        _write_value(out, value)

def _write_polygon(out: List[bytes], poly: Polygon) -> None:
    out.append(_U32.pack(len(poly.loops)))
    for loop in poly.loops:
        _write_block(out, loop)

def _write_geometry(out: List[bytes], feature: Geometry) -> None:
    tag = _GEOMETRY_TAGS.get(type(feature))
    if tag is None:
        raise FormatError(f"Cannot encode geometry of type {type(feature).__name__}")
    out.append(_U8.pack(tag))

    if isinstance(feature, (Point, MultiPoint, LineString)):
        _write_block(out, feature.coords)
    elif isinstance(feature, MultiLineString):
        out.append(_U32.pack(len(feature.parts)))
        for part in feature.parts:
            _write_block(out, part.coords)
    elif isinstance(feature, Polygon):
        _write_polygon(out, feature)
    else:
        out.append(_U32.pack(len(feature.parts)))
        for part in feature.parts:
            _write_polygon(out, part)

    _write_table(out, feature.attributes)

def encode_feature(feature: Geometry) -> bytes:
    """Encodes one feature without the file header. Used for database records."""
    out: List[bytes] = []
    _write_geometry(out, feature)
    return b"".join(out)

def encode_vector(vector: VectorCollection) -> bytes:
    out: List[bytes] = [_HEADER.pack(MAGIC, FORMAT_VERSION, 0, len(vector))]
    for feature in vector:
        _write_geometry(out, feature)
    return b"".join(out)

# --- reading ---

class _Reader:
    def __init__(self, data: bytes):
        self.view = memoryview(data)
        self.pos = 0

    def take(self, size: int) -> memoryview:
        end = self.pos + size
        if size < 0 or end > len(self.view):
            raise FormatError(f"Truncated binary vector data at offset {self.pos} (wanted {size} bytes)")
        chunk = self.view[self.pos:end]
        self.pos = end
        return chunk

    def unpack(self, fmt: struct.Struct) -> Tuple:
        return fmt.unpack(self.take(fmt.size))

    def u8(self) -> int:
        return self.unpack(_U8)[0]

    def u32(self) -> int:
        return self.unpack(_U32)[0]

    def string(self) -> str:
        raw = self.take(self.u32())
        try:
            return bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise FormatError(f"Invalid utf-8 string in binary vector data: {e}") from e

    def block(self) -> np.ndarray:
        dims = self.u8()
        if dims not in (2, 3):
            raise FormatError(f"Invalid coordinate dimension {dims}")
        count = self.u32()
        raw = self.take(count * dims * 8)
        return np.frombuffer(raw, dtype="<f8").astype(np.float64).reshape(count, dims)

    @property
    def remaining(self) -> int:
        return len(self.view) - self.pos

def _read_value(reader: _Reader) -> Any:
    tag = reader.u8()
    if tag == _V_NONE:
        return None
    if tag == _V_FALSE:
        return False
    if tag == _V_TRUE:
        return True
    if tag == _V_INT:
        return reader.unpack(_I64)[0]
    if tag == _V_FLOAT:
        return reader.unpack(_F64)[0]
    if tag == _V_STR:
        return reader.string()
    if tag == _V_TABLE:
        return _read_table(reader)
    if tag == _V_LIST:
        return [_read_value(reader) for _ in range(reader.u32())]
    raise FormatError(f"Unknown attribute value tag {tag}")

def _read_table(reader: _Reader) -> AttributeTable:
    items = {}
    for _ in range(reader.u32()):
        key = reader.string()
        items[key] = _read_value(reader)
    return AttributeTable(items)

def _read_polygon(reader: _Reader) -> Polygon:
    count = reader.u32()
    if count == 0:
        raise FormatError("Polygon without an exterior loop")
    loops = [reader.block() for _ in range(count)]
    return Polygon(loops[0], loops[1:])

def _read_geometry(reader: _Reader) -> Geometry:
    tag = reader.u8()
    cls = _TAG_GEOMETRIES.get(tag)
    if cls is None:
        raise FormatError(f"Unknown geometry tag {tag}")

    if cls is Point:
        coords = reader.block()
        if len(coords) != 1:
            raise FormatError(f"Point record holds {len(coords)} coordinates")
        feature = Point(coords[0])
    elif cls in (MultiPoint, LineString):
        feature = cls(reader.block())
    elif cls is MultiLineString:
        feature = MultiLineString([reader.block() for _ in range(reader.u32())])
    elif cls is Polygon:
        feature = _read_polygon(reader)
    else:
        feature = MultiPolygon([_read_polygon(reader) for _ in range(reader.u32())])

    feature.replace_attributes(_read_table(reader))
    return feature

def decode_feature(data: bytes) -> Geometry:
    reader = _Reader(data)
    feature = _read_geometry(reader)
    if reader.remaining:
        raise FormatError(f"{reader.remaining} trailing bytes after feature record")
    return feature

def decode_vector(data: bytes) -> VectorCollection:
    """
    Decodes a complete binary cache buffer.

    Raises:
        FormatError: On bad magic, an unknown version, truncation or
            trailing bytes. Nothing partial is returned.
    """
    reader = _Reader(data)
    magic, version, _flags, count = reader.unpack(_HEADER)
    if bytes(magic) != MAGIC:
        raise FormatError("Not a binary vector file (bad magic)")
    if version != FORMAT_VERSION:
        raise FormatError(f"Unsupported binary vector format version {version} (expected {FORMAT_VERSION})")

    features = [_read_geometry(reader) for _ in range(count)]
    if reader.remaining:
        raise FormatError(f"{reader.remaining} trailing bytes after {count} features")
    return VectorCollection._adopt(features)
