# src/geovector/cli.py

import argparse
import logging
import math
import sys
from pathlib import Path
from typing import Optional, Sequence

from geovector.config import load_settings, Settings
from geovector.coords import Coordinate
from geovector.db import VectorDatabase
from geovector.exceptions import GeoVectorError
from geovector.vector.io import load_vector, save_vector
from geovector.vector.layer import VectorCollection
from geovector.vector.query import bounding_box

log = logging.getLogger("geovector")

def setup_logging(level: int = logging.INFO) -> None:
    """
    Configures the standard logging format and level for the command-line interface.

    Args:
        level (int): The logging threshold level.
    """
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

def _print_matches(vector: Optional[VectorCollection]) -> None:
    if vector is None:
        print("No matching features.")
        return
    print(f"{len(vector)} matching feature(s)")
    for idx, feature in enumerate(vector):
        print(f"  [{idx}] {type(feature).__name__} {feature.attributes.to_dict()}")

def show_info(path: str, settings: Settings, features: bool = False) -> None:
    """
    Prints the kind, feature count and extent (degrees) of a vector file.
    """
    vector = load_vector(path, config=settings.decode_config())
    box = bounding_box(vector)
    print(f"File:     {path}")
    print(f"Kind:     {vector.kind.value}")
    print(f"Features: {len(vector)}")
    if box.is_null:
        print("Extent:   (empty)")
    else:
        deg = box.to_degrees()
        print(f"Extent:   ({deg.ll.x:.6f}, {deg.ll.y:.6f}) - ({deg.ur.x:.6f}, {deg.ur.y:.6f})")
    if features:
        print(vector.describe())

def convert(src: str, dest: str, settings: Settings) -> None:
    """
    Decodes a GeoJSON document or shapefile and writes it as a binary cache file.
    """
    vector = load_vector(src, config=settings.decode_config())
    if not save_vector(vector, dest):
        log.error(f"Could not write {dest}")
        sys.exit(1)
    log.info(f"Wrote {len(vector)} features to {dest}")

def build_database(shapefile: str, settings: Settings, reset: bool = False) -> None:
    """
    Builds the vector database for a shapefile, in GEOVECTOR_CACHE_DIR when set.
    """
    with VectorDatabase.from_shapefile(shapefile, cache_dir=settings.cache_dir, reset=reset) as db:
        log.info(f"Database ready at {db.path} ({len(db)} records)")

def query_database(db_path: str, where: Optional[str] = None, point: Optional[Sequence[float]] = None) -> None:
    """
    Runs an attribute or location query against a built database.

    Args:
        db_path (str): The SQLite database file.
        where (Optional[str]): SQL WHERE clause over shapefile field names.
        point (Optional[Sequence[float]]): Longitude and latitude in degrees.
    """
    with VectorDatabase(db_path) as db:
        if where is not None:
            result = db.fetch_matching(where)
        else:
            lon, lat = point
            result = db.fetch_surrounding(Coordinate(math.radians(lon), math.radians(lat)))
    _print_matches(result)

def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    Parses command-line arguments and routes execution to the matching subcommand.
    """
    parser = argparse.ArgumentParser(
        prog="geovector",
        description="Vector feature inspection and conversion"
    )
    parser.add_argument(
        "--env-file",
        type=str,
        default=None,
        help="Explicit .env file with GEOVECTOR_* settings."
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    info_parser = subparsers.add_parser("info", help="Summarizes a GeoJSON, shapefile or binary cache file.")
    info_parser.add_argument("path", type=str)
    info_parser.add_argument("--features", action="store_true", help="Dumps every feature.")

    convert_parser = subparsers.add_parser("convert", help="Writes a vector file as a binary cache file.")
    convert_parser.add_argument("src", type=str)
    convert_parser.add_argument("dest", type=str)

    build_parser = subparsers.add_parser("build-db", help="Builds the vector database for a shapefile.")
    build_parser.add_argument("shapefile", type=str)
    build_parser.add_argument(
        "--reset",
        action="store_true",
        help="Rebuilds the database even when an up to date one exists."
    )

    query_parser = subparsers.add_parser("query-db", help="Fetches records from a vector database.")
    query_parser.add_argument("db", type=str)
    target = query_parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--where", type=str, help="SQL WHERE clause over the shapefile fields.")
    target.add_argument("--point", type=float, nargs=2, metavar=("LON", "LAT"), help="Location in degrees.")

    args = parser.parse_args(argv)
    settings = load_settings(args.env_file)
    level = logging.DEBUG if args.verbose else getattr(logging, settings.log_level, logging.INFO)
    setup_logging(level)

    try:
        if args.command == "info":
            show_info(args.path, settings, features=args.features)
        elif args.command == "convert":
            convert(args.src, args.dest, settings)
        elif args.command == "build-db":
            build_database(args.shapefile, settings, reset=args.reset)
        elif args.command == "query-db":
            query_database(args.db, where=args.where, point=args.point)
    except (GeoVectorError, FileNotFoundError) as e:
        log.error(str(e))
        sys.exit(1)

if __name__ == "__main__":
    main()
