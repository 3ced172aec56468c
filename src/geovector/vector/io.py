# src/geovector/vector/io.py

"""
This module provides functions for reading and writing vector collections.

Files are dispatched on their extension: GeoJSON documents, shapefiles and
the binary cache format are read; only the binary cache format is written.
"""

from pathlib import Path
from typing import Union, Callable, Optional
from functools import wraps
import logging

from geovector.config import DecodeConfig
from geovector.codecs.binary import encode_vector, decode_vector
from geovector.codecs.geojson import decode_geojson
from geovector.codecs.shapefile import read_shapefile
from geovector.vector.layer import VectorCollection

log = logging.getLogger(__name__)

__all__ = [
    "load_vector",
    "save_vector",
    "resolve_vector"
]

GEOJSON_SUFFIXES = (".geojson", ".json")

def load_vector(path: Union[str, Path], config: Optional[DecodeConfig] = None) -> VectorCollection:
    """
    Loads a vector collection from disk.

    Args:
        path: A .geojson/.json document, a shapefile (the .shp extension may
            be left off when the sibling exists) or a binary cache file.
        config: GeoJSON parser options.

    Returns:
        VectorCollection: The decoded collection.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if not path.exists():
        shp = path.with_name(path.name + ".shp")
        if suffix == "" and shp.exists():
            return read_shapefile(shp)
        raise FileNotFoundError(f"Vector file not found: {path}")

    if suffix in GEOJSON_SUFFIXES:
        vector = decode_geojson(path.read_bytes(), config=config)
    elif suffix == ".shp":
        vector = read_shapefile(path)
    else:
        vector = decode_vector(path.read_bytes())

    log.debug(f"Loaded {len(vector)} features from {path}")
    return vector

def save_vector(vector: VectorCollection, path: Union[str, Path]) -> bool:
    """
    Writes a collection in the binary cache format.

    Returns:
        bool: True on success, False if the file could not be written.
    """
    path = Path(path)
    try:
        data = encode_vector(vector)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except (OSError, ValueError) as e:
        log.error(f"Failed to save vector to {path}: {e}")
        return False

    log.debug(f"Saved {len(vector)} features to {path}")
    return True

def resolve_vector(func: Callable):
    """
    Lets an operation take a file path wherever it takes a VectorCollection.
    Paths are read with load_vector(); None is passed through.
    """
    @wraps(func)
    def wrapper(input_obj: Union[str, Path, VectorCollection], *args, **kwargs):
        if input_obj is None:
            return func(None, *args, **kwargs)

        if isinstance(input_obj, (str, Path)):
            vector_obj = load_vector(input_obj)
        elif isinstance(input_obj, VectorCollection):
            vector_obj = input_obj
        else:
            raise TypeError(f"Expected file path or VectorCollection object, got {type(input_obj)}")

        return func(vector_obj, *args, **kwargs)
    return wrapper
