# tests/conftest.py

import json
import os

import pytest
import numpy as np
import pandas as pd
import geopandas as gpd
from shapely.geometry import Point as ShapelyPoint, Polygon as ShapelyPolygon, LineString as ShapelyLine

from geovector.vector import (
    VectorCollection, Point, LineString, Polygon, MultiPolygon
)

SQUARE = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)]
HOLE = [(4.0, 4.0), (6.0, 4.0), (6.0, 6.0), (4.0, 6.0)]

@pytest.fixture
def square_with_hole():
    """A 10x10 square with a centered 2x2 hole, in plain planar units."""
    vec = VectorCollection.from_areal(SQUARE, attributes={"name": "square", "id": 1})
    vec.add_hole(HOLE)
    return vec

@pytest.fixture
def mixed_vector():
    """
    One feature of each family, with assorted attribute types.
    """
    return VectorCollection([
        Point((0.1, 0.2), {"name": "pt", "rank": 1}),
        LineString([(0.0, 0.0), (0.1, 0.0), (0.1, 0.1)], {"name": "road", "lanes": 2, "paved": True}),
        LineString([(0.0, 0.0, 5.0), (0.2, 0.0, 7.0)], {"name": "pipe"}),
        Polygon(SQUARE, [HOLE], {"name": "lot", "area": 96.0, "tags": ["a", "b"], "owner": None}),
        MultiPolygon([
            Polygon([(20.0, 20.0), (30.0, 20.0), (30.0, 30.0)]),
            Polygon([(40.0, 40.0), (50.0, 40.0), (50.0, 50.0), (40.0, 50.0)])
        ], {"name": "parts", "meta": {"source": "survey", "year": 2020}})
    ])

@pytest.fixture
def feature_collection_doc():
    """A small RFC 7946 FeatureCollection (degrees) as a dict."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "id": 7,
                "geometry": {"type": "Point", "coordinates": [-73.5, 45.5]},
                "properties": {"name": "Montreal", "pop": 1762949, "capital": False}
            },
            {
                "type": "Feature",
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [
                        [[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]],
                        [[4, 4], [4, 6], [6, 6], [6, 4], [4, 4]]
                    ]
                },
                "properties": {"name": "block", "score": 2.5, "tags": ["x", "y"]}
            },
            {
                "type": "Feature",
                "geometry": {
                    "type": "GeometryCollection",
                    "geometries": [
                        {"type": "LineString", "coordinates": [[0, 0, 1], [1, 1, 2]]},
                        {"type": "MultiPoint", "coordinates": [[2, 2], [3, 3]]}
                    ]
                },
                "properties": {"name": "bundle", "nested": {"a": 1, "b": [1, 2]}}
            }
        ]
    }

@pytest.fixture
def feature_collection_bytes(feature_collection_doc):
    return json.dumps(feature_collection_doc).encode("utf-8")

@pytest.fixture
def parcels_gdf():
    """
    Three polygon parcels in WGS84 degrees, the first one with a hole.
    """
    outer = [(0, 0), (10, 0), (10, 10), (0, 10), (0, 0)]
    hole = [(4, 4), (6, 4), (6, 6), (4, 6), (4, 4)]
    return gpd.GeoDataFrame(
        {
            "NAME": ["alpha", "beta", "gamma"],
            "POP": [1200, 35, 800],
            "DENSITY": [1.5, np.nan, 3.25],
            "geometry": [
                ShapelyPolygon(outer, [hole]),
                ShapelyPolygon([(20, 20), (30, 20), (30, 30), (20, 30)]),
                ShapelyPolygon([(5, 5), (25, 5), (25, 25), (5, 25)])
            ]
        },
        crs="EPSG:4326"
    )

@pytest.fixture
def shapefile_path(tmp_path, parcels_gdf):
    """Saves the parcels to a shapefile and returns the .shp path."""
    path = tmp_path / "parcels.shp"
    parcels_gdf.to_file(path)
    return path

@pytest.fixture
def mock_vector_factory(tmp_path):
    """
    Factory fixture writing arbitrary geometries to a vector file.
    """
    def _create(filename, geometries, attributes=None, crs="EPSG:4326"):
        data = dict(attributes or {})
        data["geometry"] = geometries
        gdf = gpd.GeoDataFrame(data, crs=crs)
        path = tmp_path / filename
        gdf.to_file(path)
        return path
    return _create

@pytest.fixture
def roads_path(mock_vector_factory):
    """A point and line shapefile pair, for family checks."""
    return mock_vector_factory(
        "roads.shp",
        geometries=[ShapelyLine([(0, 0), (1, 1), (2, 0)]), ShapelyLine([(5, 5), (6, 6)])],
        attributes={"ROAD": ["main", "side"]}
    )

@pytest.fixture
def wells_path(mock_vector_factory):
    return mock_vector_factory(
        "wells.shp",
        geometries=[ShapelyPoint(1, 2), ShapelyPoint(3, 4)],
        attributes={"DEPTH": [12, 40]}
    )

@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """
    Isolates GEOVECTOR_* settings: a private copy of the environment and a
    working directory without any .env file.
    """
    env = {k: v for k, v in os.environ.items() if not k.startswith("GEOVECTOR_")}
    monkeypatch.setattr(os, "environ", env)
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return env

@pytest.fixture
def surveys_path(mock_vector_factory):
    """Points with a date field, one of them never surveyed."""
    return mock_vector_factory(
        "surveys.shp",
        geometries=[ShapelyPoint(1, 1), ShapelyPoint(2, 2)],
        attributes={
            "SITE": ["north", "south"],
            "SURVEYED": pd.to_datetime(["2021-05-01", None])
        }
    )
