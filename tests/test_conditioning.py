from __future__ import annotations

import numpy as np
import pytest

from planetforge.conditioning import normalize_heightmap, smooth_heightmap
from planetforge.rng import RngStream


def test_normalize_maps_to_unit_range() -> None:
    elevation = (RngStream(3).generator().random((16, 16)) * 3.0 - 1.0).astype(np.float32)

    normalize_heightmap(elevation)

    assert elevation.dtype == np.float32
    assert float(elevation.min()) == pytest.approx(0.0, abs=1e-6)
    assert float(elevation.max()) == pytest.approx(1.0, abs=1e-6)


def test_normalize_flat_field_goes_to_zero() -> None:
    elevation = np.full((8, 8), 0.42, dtype=np.float32)

    normalize_heightmap(elevation)

    assert np.all(elevation == 0.0)


def test_smoothing_keeps_constant_field() -> None:
    elevation = np.full((8, 8), 0.35, dtype=np.float32)

    smooth_heightmap(elevation, 5)

    assert np.allclose(elevation, 0.35, atol=1e-6)


def test_smoothing_wraps_columns() -> None:
    elevation = np.zeros((6, 6), dtype=np.float32)
    elevation[2, 0] = 6.0

    smooth_heightmap(elevation, 1)

    expected = np.zeros((6, 6), dtype=np.float32)
    expected[2, 0] = 2.0
    expected[2, 1] = 1.0
    expected[2, 5] = 1.0
    expected[1, 0] = 1.0
    expected[3, 0] = 1.0
    assert np.allclose(elevation, expected, atol=1e-6)


def test_smoothing_repeats_pole_row() -> None:
    elevation = np.zeros((6, 6), dtype=np.float32)
    elevation[0, 3] = 6.0

    smooth_heightmap(elevation, 1)

    assert elevation[0, 3] == pytest.approx(3.0)
    assert elevation[1, 3] == pytest.approx(1.0)
    assert elevation[0, 2] == pytest.approx(1.0)
    assert elevation[0, 4] == pytest.approx(1.0)


def test_zero_passes_is_a_no_op() -> None:
    elevation = RngStream(8).generator().random((8, 8)).astype(np.float32)
    before = elevation.copy()

    smooth_heightmap(elevation, 0)

    assert np.array_equal(elevation, before)
