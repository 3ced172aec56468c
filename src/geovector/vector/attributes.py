# src/geovector/vector/attributes.py

"""
This module defines the attribute table carried by every vector feature.
"""

import logging
import math
from collections.abc import Mapping
from typing import Any, Dict, Iterator, Optional, Union

import numpy as np

log = logging.getLogger(__name__)

__all__ = [
    "AttributeTable",
    "AttributeValue"
]

AttributeValue = Union[None, bool, int, float, str, tuple, "AttributeTable"]

def _freeze(value: Any) -> AttributeValue:
    """Normalises a value into one of the supported attribute types."""
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, np.generic):
        value = value.item()
        if isinstance(value, (bool, str)):
            return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value
    if isinstance(value, AttributeTable):
        return value.copy()
    if isinstance(value, Mapping):
        return AttributeTable(value)
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    raise TypeError(f"Unsupported attribute value type: {type(value).__name__}")

def _thaw(value: AttributeValue) -> Any:
    if isinstance(value, AttributeTable):
        return value.to_dict()
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value

def _values_equal(a: AttributeValue, b: AttributeValue) -> bool:
    # bool is an int subclass, keep True != 1 for round trips
    if type(a) is not type(b):
        return False
    if isinstance(a, float) and math.isnan(a) and math.isnan(b):
        return True
    if isinstance(a, tuple):
        return len(a) == len(b) and all(_values_equal(x, y) for x, y in zip(a, b))
    return a == b

class AttributeTable(Mapping):
    """
    Ordered, read-only mapping from string keys to attribute values.

    Values are strings, numbers, booleans, None, tuples of values or nested
    tables. Construction copies everything it is handed so two tables never
    share state. Changes go through updated()/without(), which return a new
    table, and land on a feature through Geometry.replace_attributes().
    """

    __slots__ = ("_items",)

    def __init__(self, data: Optional[Union[Mapping, Dict[str, Any]]] = None):
        items = {}
        if data:
            for key, value in data.items():
                if not isinstance(key, str):
                    raise TypeError(f"Attribute keys must be strings, got {type(key).__name__}")
                items[key] = _freeze(value)
        self._items = items

    def __getitem__(self, key: str) -> AttributeValue:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other) -> bool:
        if not isinstance(other, AttributeTable):
            return NotImplemented
        if list(self._items) != list(other._items):
            return False
        return all(_values_equal(self._items[k], other._items[k]) for k in self._items)

    def __ne__(self, other) -> bool:
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    __hash__ = None

    def __repr__(self) -> str:
        return f"AttributeTable({self.to_dict()!r})"

    def copy(self) -> 'AttributeTable':
        return AttributeTable(self._items)

    def updated(self, changes: Optional[Mapping] = None, **kwargs) -> 'AttributeTable':
        merged = dict(self._items)
        if changes:
            merged.update(changes)
        merged.update(kwargs)
        return AttributeTable(merged)

    def without(self, *keys: str) -> 'AttributeTable':
        return AttributeTable({k: v for k, v in self._items.items() if k not in keys})

    def to_dict(self) -> Dict[str, Any]:
        return {k: _thaw(v) for k, v in self._items.items()}
