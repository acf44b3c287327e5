from __future__ import annotations

import numpy as np
import pytest

from planetforge.config import HydrologyConfig, TectonicsConfig
from planetforge.field import ElevationField
from planetforge.hydrology import (
    MinHeap,
    apply_hydrology,
    flow_accumulation,
    flow_directions,
    priority_flood,
)
from planetforge.rng import RngStream
from planetforge.tectonics import generate_tectonics


def _random_field(seed: int, size: int = 24) -> ElevationField:
    gen = RngStream(seed).generator()
    return ElevationField.from_elevation(gen.random((size, size)))


def _plate_field(seed: int, size: int = 32) -> ElevationField:
    field = ElevationField(size)
    generate_tectonics(field, RngStream(seed), config=TectonicsConfig(plate_count=9, fault_type="mixed"))
    return field


def test_bowl_center_fills_into_lake_and_is_carved() -> None:
    field = ElevationField(3)
    field.elevation[...] = 0.5
    field.elevation[1, 1] = 0.1
    cfg = HydrologyConfig(sea_level=0.6, river_depth=0.015)

    result = apply_hydrology(field, config=cfg)

    assert result.filled[1, 1] == pytest.approx(0.5)
    assert field.water_mask[1, 1] == 1.0
    assert field.elevation[1, 1] == pytest.approx(0.1 - 0.015, abs=1e-6)

    rim = np.ones((3, 3), dtype=bool)
    rim[1, 1] = False
    assert np.all(field.water_mask[rim] == 0.0)
    assert np.all(field.elevation[rim] == np.float32(0.5))
    assert field.river_depth == 0.015
    assert result.metrics.lake_cell_count == 1
    assert result.metrics.river_cell_count == 0


def test_water_mask_is_unit_range_and_carving_is_exact() -> None:
    field = _plate_field(17)
    before = field.elevation.copy()
    cfg = HydrologyConfig(sea_level=0.05, river_depth=0.02)

    apply_hydrology(field, config=cfg)

    mask = field.water_mask
    assert np.isfinite(mask).all()
    assert float(mask.min()) >= 0.0
    assert float(mask.max()) <= 1.0

    wet = mask > 0.0
    assert np.any(wet)
    assert np.allclose(before[wet] - field.elevation[wet], mask[wet] * 0.02, atol=1e-6)
    assert np.array_equal(before[~wet], field.elevation[~wet])


def test_priority_flood_never_lowers_and_leaves_no_pits() -> None:
    height = _random_field(4).elevation.astype(np.float64)
    filled = priority_flood(height)
    rows, cols = filled.shape

    assert np.all(filled >= height)
    assert np.array_equal(filled[0], height[0])
    assert np.array_equal(filled[-1], height[-1])
    assert np.array_equal(filled[:, 0], height[:, 0])
    assert np.array_equal(filled[:, -1], height[:, -1])

    for row in range(1, rows - 1):
        for col in range(1, cols - 1):
            neighbors = [
                filled[row + dr, (col + dc) % cols]
                for dr in (-1, 0, 1)
                for dc in (-1, 0, 1)
                if dr or dc
            ]
            assert min(neighbors) <= filled[row, col]


def test_flow_directions_point_strictly_downhill() -> None:
    filled = priority_flood(_random_field(9).elevation.astype(np.float64))
    flow_to = flow_directions(filled)
    flat = filled.ravel()

    src = np.flatnonzero(flow_to.ravel() >= 0)
    dst = flow_to.ravel()[src]
    assert np.all(flat[dst] < flat[src])

    sinks = np.flatnonzero(flow_to.ravel() < 0)
    rows, cols = filled.shape
    for idx in sinks:
        row, col = divmod(int(idx), cols)
        for dr in (-1, 0, 1):
            for dc in (-1, 0, 1):
                nrow = row + dr
                if (dr or dc) and 0 <= nrow < rows:
                    assert filled[nrow, (col + dc) % cols] >= filled[row, col]


def test_flow_directions_prefer_first_lowest_neighbor() -> None:
    filled = np.array(
        [
            [0.2, 0.2, 0.2],
            [0.9, 0.9, 0.9],
            [0.2, 0.2, 0.2],
        ]
    )

    flow_to = flow_directions(filled)

    # Centre cell: the up-left neighbor comes first in scan order.
    assert flow_to[1, 1] == 0
    # Cells on the wrapped seam see the far column as their left neighbor.
    assert flow_to[1, 0] == 2


def test_flow_accumulation_counts_upstream_cells() -> None:
    filled = priority_flood(_random_field(12).elevation.astype(np.float64))
    flow_to = flow_directions(filled)

    accum = flow_accumulation(filled, flow_to)

    expected = np.ones(accum.size)
    donors = flow_to.ravel()
    has_dest = donors >= 0
    np.add.at(expected, donors[has_dest], accum.ravel()[has_dest])
    assert np.array_equal(accum.ravel(), expected)
    assert float(accum.min()) >= 1.0
    assert float(np.sum(accum[flow_to < 0])) == pytest.approx(accum.size)


def test_rivers_need_land_above_sea_level() -> None:
    field = _plate_field(31)
    cfg = HydrologyConfig(sea_level=2.0, lake_threshold=10.0)

    result = apply_hydrology(field, config=cfg)

    assert result.metrics.river_cell_count == 0
    assert result.metrics.lake_cell_count == 0
    assert np.all(field.water_mask == 0.0)


def test_sloped_land_grows_rivers() -> None:
    size = 16
    rows = np.linspace(0.2, 0.9, size)
    field = ElevationField.from_elevation(np.repeat(rows[:, None], size, axis=1))

    result = apply_hydrology(field, config=HydrologyConfig(sea_level=0.0))

    assert result.metrics.river_cell_count > 0
    assert result.metrics.max_flow_accum > 1.0
    assert float(result.flow_norm.max()) == pytest.approx(1.0)


def test_hydrology_is_deterministic() -> None:
    a = _plate_field(44)
    b = _plate_field(44)

    ra = apply_hydrology(a, config=HydrologyConfig(sea_level=0.25))
    rb = apply_hydrology(b, config=HydrologyConfig(sea_level=0.25))

    assert np.array_equal(ra.flow_to, rb.flow_to)
    assert np.array_equal(ra.flow_accum, rb.flow_accum)
    assert np.array_equal(a.water_mask, b.water_mask)
    assert np.array_equal(a.elevation, b.elevation)
    assert ra.metrics == rb.metrics


def test_min_heap_pops_in_key_order() -> None:
    gen = RngStream(2).generator()
    keys = gen.random(200).tolist()
    heap = MinHeap(16)
    for idx, key in enumerate(keys):
        heap.push(idx, key)

    assert len(heap) == 200
    popped = [heap.pop() for _ in range(200)]
    assert [key for _, key in popped] == sorted(keys)
    assert all(keys[idx] == key for idx, key in popped)
    with pytest.raises(IndexError):
        heap.pop()
