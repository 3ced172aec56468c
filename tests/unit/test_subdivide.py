# tests/unit/test_subdivide.py

import math

import pytest
import numpy as np

from geovector.vector import VectorCollection, Polygon, MultiLineString, SubdivideMode, subdivide

def _long_line():
    # Montreal to Paris, radians
    return VectorCollection.from_line_string(np.radians([(-73.5, 45.5), (2.35, 48.85)]))

@pytest.mark.parametrize("mode", list(SubdivideMode))
def test_subdivide_adds_points(mode):
    vec = _long_line()
    subdivide(vec, 1e-3, mode=mode)
    assert len(vec[0].coords) > 2
    # endpoints are kept
    assert np.allclose(vec[0].coords[0], np.radians((-73.5, 45.5)))
    assert np.allclose(vec[0].coords[-1], np.radians((2.35, 48.85)))

@pytest.mark.parametrize("mode", list(SubdivideMode))
def test_subdivide_is_idempotent(mode):
    """A second pass with the same epsilon changes nothing."""
    vec = _long_line()
    subdivide(vec, 1e-3, mode=mode)
    first = vec.deep_copy()
    subdivide(vec, 1e-3, mode=mode)
    assert vec == first

def test_subdivide_idempotent_on_polygons():
    vec = VectorCollection([Polygon(
        np.radians([(0, 0), (30, 0), (30, 30), (0, 30)]),
        [np.radians([(10, 10), (20, 10), (20, 20)])]
    )])
    subdivide(vec, 1e-4)
    first = vec.deep_copy()
    subdivide(vec, 1e-4)
    assert vec == first
    # closing edges are subdivided too
    assert len(vec[0].exterior) > 4
    assert len(vec[0].holes[0]) > 3

def test_great_circle_points_on_sphere_path():
    """The great circle route Montreal to Paris bulges north of the straight lon/lat line."""
    vec = _long_line()
    subdivide(vec, 1e-3, mode=SubdivideMode.GREAT_CIRCLE)
    lats = vec[0].coords[:, 1]
    assert lats.max() > math.radians(48.85)

def test_short_edges_untouched():
    vec = VectorCollection.from_line_string([(0.0, 0.0), (1e-4, 0.0)])
    before = vec.deep_copy()
    subdivide(vec, 1e-3)
    assert vec == before

def test_antipodal_edge_is_left_alone():
    vec = VectorCollection.from_line_string([(0.0, 0.0), (math.pi, 0.0)])
    subdivide(vec, 1e-3, mode=SubdivideMode.GREAT_CIRCLE)
    assert len(vec[0].coords) == 2

def test_subdivide_keeps_z():
    vec = VectorCollection([MultiLineString([np.array([(0.0, 0.0, 0.0), (1.0, 0.5, 100.0)])])])
    subdivide(vec, 1e-2)
    z = vec[0].parts[0].coords[:, 2]
    assert z[0] == 0.0 and z[-1] == 100.0
    assert np.all(np.diff(z) > 0)

def test_subdivide_mode_from_string():
    vec = _long_line()
    subdivide(vec, 1e-3, mode="flat_great_circle")
    assert len(vec[0].coords) > 2

def test_subdivide_rejects_bad_epsilon():
    with pytest.raises(ValueError):
        subdivide(_long_line(), 0.0)
    with pytest.raises(ValueError):
        subdivide(_long_line(), 1e-3, mode="spiral")

def test_flat_great_circle_across_antimeridian():
    """A Pacific crossing is split the short way round and settles after one pass."""
    vec = VectorCollection.from_line_string(np.radians([(170.0, 10.0), (-170.0, 10.0)]))
    subdivide(vec, 1e-3, mode=SubdivideMode.FLAT_GREAT_CIRCLE)
    first = vec.deep_copy()

    coords = vec[0].coords
    assert 2 < len(coords) <= 10
    lons = np.unwrap(coords[:, 0])
    assert np.all(np.diff(lons) > 0)
    assert lons[-1] - lons[0] == pytest.approx(math.radians(20.0))
    assert coords[:, 1].max() > math.radians(10.0)

    subdivide(vec, 1e-3, mode=SubdivideMode.FLAT_GREAT_CIRCLE)
    assert vec == first
