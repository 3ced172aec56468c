# tests/helpers.py

import numpy as np

from geovector.vector import VectorCollection, area_of_outer_loops

def assert_coords_close(current: VectorCollection, reference: VectorCollection, atol: float = 1e-9):
    """Feature by feature, array by array coordinate comparison."""
    assert len(current) == len(reference), \
        f"Feature count mismatch: {len(current)} != {len(reference)}"

    for idx, (a, b) in enumerate(zip(current, reference)):
        arrays_a, arrays_b = a.coordinate_arrays(), b.coordinate_arrays()
        assert len(arrays_a) == len(arrays_b), f"Loop count mismatch in feature {idx}"
        for arr_a, arr_b in zip(arrays_a, arrays_b):
            assert arr_a.shape == arr_b.shape, f"Shape mismatch in feature {idx}: {arr_a.shape} != {arr_b.shape}"
            assert np.allclose(arr_a, arr_b, atol=atol), f"Coordinates drifted in feature {idx}"

def assert_area_preserved(fragments: VectorCollection, original: VectorCollection, rel: float = 1e-9):
    """Summed exterior area of the fragments matches the source."""
    expected = area_of_outer_loops(original)
    got = area_of_outer_loops(fragments)
    assert abs(got - expected) <= rel * max(1.0, abs(expected)), \
        f"Area drift: {got} != {expected}"
