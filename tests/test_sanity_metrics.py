from __future__ import annotations

import numpy as np
import pytest

from planetforge.metrics import water_body_metrics


def test_water_bodies_connect_across_the_seam() -> None:
    mask = np.zeros((6, 8), dtype=np.float32)
    mask[2, 0] = 1.0
    mask[2, 7] = 0.5
    mask[5, 4] = 0.8

    metrics = water_body_metrics(mask)

    assert metrics.num_bodies == 2
    assert metrics.largest_body_area == 2
    assert metrics.total_water_cells == 3
    assert metrics.water_fraction == pytest.approx(3 / 48)


def test_water_bodies_do_not_connect_across_poles() -> None:
    mask = np.zeros((6, 6), dtype=np.float32)
    mask[0, 2] = 1.0
    mask[5, 2] = 1.0

    metrics = water_body_metrics(mask)

    assert metrics.num_bodies == 2


def test_diagonal_cells_join_one_body() -> None:
    mask = np.zeros((5, 5), dtype=np.float32)
    mask[1, 1] = 1.0
    mask[2, 2] = 1.0
    mask[3, 3] = 1.0

    metrics = water_body_metrics(mask)

    assert metrics.num_bodies == 1
    assert metrics.largest_body_area == 3


def test_threshold_excludes_faint_water() -> None:
    mask = np.full((4, 4), 0.02, dtype=np.float32)

    metrics = water_body_metrics(mask, threshold=0.05)

    assert metrics.num_bodies == 0
    assert metrics.total_water_cells == 0
    assert metrics.water_fraction == 0.0


def test_metrics_reject_non_2d_masks() -> None:
    with pytest.raises(ValueError):
        water_body_metrics(np.zeros(16))
