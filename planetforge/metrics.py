"""Water-body connectivity metrics."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class WaterBodyMetrics:
    """Connected component and coverage summary for a water mask."""

    num_bodies: int
    largest_body_area: int
    total_water_cells: int
    water_fraction: float


def water_body_metrics(water_mask: np.ndarray, *, threshold: float = 0.0) -> WaterBodyMetrics:
    """Count 8-connected water bodies; columns wrap, rows do not."""

    if water_mask.ndim != 2:
        raise ValueError("water_mask must be 2D")

    wet = np.asarray(water_mask) > threshold
    height, width = wet.shape
    total_cells = height * width
    total_water = int(wet.sum())

    if total_water == 0:
        return WaterBodyMetrics(0, 0, 0, 0.0)

    flat = wet.ravel()
    visited = np.zeros(flat.shape[0], dtype=np.uint8)
    sizes: list[int] = []

    for start in np.flatnonzero(flat):
        if visited[start]:
            continue
        visited[start] = 1
        stack = [int(start)]
        body_size = 0

        while stack:
            current = stack.pop()
            body_size += 1
            y, x = divmod(current, width)

            for ny in range(max(0, y - 1), min(height, y + 2)):
                for dx in (-1, 0, 1):
                    if ny == y and dx == 0:
                        continue
                    idx = ny * width + (x + dx) % width
                    if flat[idx] and not visited[idx]:
                        visited[idx] = 1
                        stack.append(idx)

        sizes.append(body_size)

    return WaterBodyMetrics(
        num_bodies=len(sizes),
        largest_body_area=max(sizes),
        total_water_cells=total_water,
        water_fraction=float(total_water / total_cells),
    )
