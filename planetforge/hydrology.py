"""Depression filling, D8 flow routing, and river/lake carving."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from planetforge.config import HydrologyConfig
from planetforge.field import ElevationField


# (drow, dcol) in scan order; the first lowest neighbor wins ties.
_DIRECTIONS_8 = [
    (-1, -1),
    (-1, 0),
    (-1, 1),
    (0, -1),
    (0, 1),
    (1, -1),
    (1, 0),
    (1, 1),
]


@dataclass(frozen=True)
class HydrologyMetrics:
    river_cell_count: int
    lake_cell_count: int
    water_cell_count: int
    sink_count: int
    raised_cell_count: int
    max_flow_accum: float
    mean_flow_accum: float
    max_lake_depth: float


@dataclass(frozen=True)
class HydrologyResult:
    filled: np.ndarray
    flow_to: np.ndarray
    flow_accum: np.ndarray
    flow_norm: np.ndarray
    lake_mask: np.ndarray
    river_mask: np.ndarray
    metrics: HydrologyMetrics


class MinHeap:
    """Binary min-heap over a preallocated index/key array pair."""

    def __init__(self, capacity: int) -> None:
        self._index = [0] * capacity
        self._key = [0.0] * capacity
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def push(self, idx: int, key: float) -> None:
        index = self._index
        keys = self._key
        i = self._size
        if i >= len(index):
            index.append(idx)
            keys.append(key)
        self._size += 1
        while i > 0:
            parent = (i - 1) >> 1
            if keys[parent] <= key:
                break
            index[i] = index[parent]
            keys[i] = keys[parent]
            i = parent
        index[i] = idx
        keys[i] = key

    def pop(self) -> tuple[int, float]:
        if self._size == 0:
            raise IndexError("pop from empty heap")
        index = self._index
        keys = self._key
        top_idx = index[0]
        top_key = keys[0]
        self._size -= 1
        n = self._size
        if n > 0:
            idx = index[n]
            key = keys[n]
            i = 0
            while True:
                child = 2 * i + 1
                if child >= n:
                    break
                right = child + 1
                if right < n and keys[right] < keys[child]:
                    child = right
                if key <= keys[child]:
                    break
                index[i] = index[child]
                keys[i] = keys[child]
                i = child
            index[i] = idx
            keys[i] = key
        return top_idx, top_key


def apply_hydrology(
    field: ElevationField,
    *,
    config: HydrologyConfig | None = None,
) -> HydrologyResult:
    """Route drainage over `field.elevation`, write `field.water_mask`, and carve channels.

    Expects finite elevation in a roughly [0, 1] domain. Cells with a positive
    mask are lowered by exactly ``mask * river_depth``; all other cells are
    left untouched.
    """

    cfg = config or HydrologyConfig()
    field.river_depth = float(cfg.river_depth)

    original = field.elevation.astype(np.float64)
    filled = priority_flood(original)
    flow_to = flow_directions(filled)
    accum = flow_accumulation(filled, flow_to)

    max_acc = float(np.max(accum)) if accum.size else 0.0
    inv_max = 1.0 / max_acc if max_acc > 0.0 else 0.0
    flow_norm = np.sqrt(accum * inv_max)

    lake_depth = np.maximum(filled - original, 0.0)
    lake_mask = np.where(
        lake_depth > cfg.lake_threshold,
        np.minimum(1.0, lake_depth * cfg.lake_depth_gain),
        0.0,
    )
    river = (flow_norm > cfg.river_flow_threshold) & (filled > cfg.sea_level)
    river_mask = np.where(river, flow_norm, 0.0)
    mask = np.clip(np.maximum(lake_mask, river_mask), 0.0, 1.0)

    field.water_mask[...] = mask.astype(np.float32)
    wet = field.water_mask > 0.0
    field.elevation[wet] = field.elevation[wet] - field.water_mask[wet] * np.float32(cfg.river_depth)

    metrics = HydrologyMetrics(
        river_cell_count=int(np.count_nonzero(river_mask > 0.0)),
        lake_cell_count=int(np.count_nonzero(lake_mask > 0.0)),
        water_cell_count=int(np.count_nonzero(wet)),
        sink_count=int(np.count_nonzero(flow_to < 0)),
        raised_cell_count=int(np.count_nonzero(lake_depth > 0.0)),
        max_flow_accum=max_acc,
        mean_flow_accum=float(np.mean(accum)) if accum.size else 0.0,
        max_lake_depth=float(np.max(lake_depth)) if lake_depth.size else 0.0,
    )
    return HydrologyResult(
        filled=filled.astype(np.float32),
        flow_to=flow_to,
        flow_accum=accum.astype(np.float32),
        flow_norm=flow_norm.astype(np.float32),
        lake_mask=lake_mask.astype(np.float32),
        river_mask=river_mask.astype(np.float32),
        metrics=metrics,
    )


def priority_flood(height: np.ndarray) -> np.ndarray:
    """Fill depressions so every cell drains to the grid edge.

    All four edges seed the flood. The left and right columns are seeded even
    though columns wrap horizontally, which lets basins drain out through the
    dateline; kept for output compatibility with existing worlds.
    """

    rows, cols = height.shape
    total = rows * cols
    filled = height.astype(np.float64).ravel().tolist()
    visited = bytearray(total)
    heap = MinHeap(total)

    def seed(row: int, col: int) -> None:
        idx = row * cols + col
        if visited[idx]:
            return
        visited[idx] = 1
        heap.push(idx, filled[idx])

    for col in range(cols):
        seed(0, col)
        seed(rows - 1, col)
    for row in range(1, rows - 1):
        seed(row, 0)
        seed(row, cols - 1)

    while len(heap):
        idx, level = heap.pop()
        row, col = divmod(idx, cols)
        for drow, dcol in _DIRECTIONS_8:
            nrow = row + drow
            if nrow < 0 or nrow >= rows:
                continue
            nidx = nrow * cols + (col + dcol) % cols
            if visited[nidx]:
                continue
            visited[nidx] = 1
            if filled[nidx] < level:
                filled[nidx] = level
            heap.push(nidx, filled[nidx])

    return np.asarray(filled, dtype=np.float64).reshape(rows, cols)


def flow_directions(filled: np.ndarray) -> np.ndarray:
    """Flat index of each cell's steepest strictly-lower neighbor, or -1 for sinks."""

    rows, cols = filled.shape
    best_h = filled.astype(np.float64, copy=True)
    flow_to = np.full((rows, cols), -1, dtype=np.int64)
    flat_index = np.arange(rows * cols, dtype=np.int64).reshape(rows, cols)

    for drow, dcol in _DIRECTIONS_8:
        neighbor_h = _shift_rows(np.roll(filled, -dcol, axis=1), drow, fill=np.inf)
        neighbor_idx = _shift_rows(np.roll(flat_index, -dcol, axis=1), drow, fill=-1)
        lower = neighbor_h < best_h
        best_h[lower] = neighbor_h[lower]
        flow_to[lower] = neighbor_idx[lower]

    return flow_to


def flow_accumulation(filled: np.ndarray, flow_to: np.ndarray) -> np.ndarray:
    """Count of cells (itself included) draining through each cell.

    Cells are visited from highest to lowest filled height, so every donor is
    final before it passes its count downstream.
    """

    rows, cols = filled.shape
    order = np.argsort(-filled.ravel(), kind="stable").tolist()
    dest = flow_to.ravel().tolist()
    accum = [1.0] * (rows * cols)
    for src in order:
        dst = dest[src]
        if dst >= 0:
            accum[dst] += accum[src]
    return np.asarray(accum, dtype=np.float64).reshape(rows, cols)


def _shift_rows(values: np.ndarray, drow: int, *, fill: float) -> np.ndarray:
    """out[r] = values[r + drow], with `fill` past the poles."""

    if drow == 0:
        return values.copy()
    out = np.full_like(values, fill)
    if drow > 0:
        out[:-drow] = values[drow:]
    else:
        out[-drow:] = values[:drow]
    return out
