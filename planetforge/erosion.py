"""Particle-based hydraulic erosion."""

from __future__ import annotations

from dataclasses import dataclass
import math

import numpy as np

from planetforge.config import ErosionConfig
from planetforge.field import ElevationField
from planetforge.rng import RngStream


_CAPACITY_FACTOR = 4.0
_MIN_CAPACITY_SLOPE = 0.01


@dataclass
class Droplet:
    """One unit of rainfall traced across the elevation buffer."""

    x: float
    y: float
    dir_x: float = 0.0
    dir_y: float = 0.0
    speed: float = 1.0
    water: float = 1.0
    sediment: float = 0.0


@dataclass(frozen=True)
class DropletTrace:
    steps: int
    eroded: float
    deposited: float
    left_grid: bool


@dataclass(frozen=True)
class ErosionMetrics:
    droplets: int
    total_steps: int
    total_eroded: float
    total_deposited: float
    droplets_left_grid: int
    sanitized_cells: int
    mean_elevation_delta: float


def apply_erosion(
    field: ElevationField,
    rng: RngStream,
    *,
    config: ErosionConfig | None = None,
) -> ErosionMetrics:
    """Run `config.iterations` droplets over `field.elevation`, one after another.

    Droplets never interact except through the shared buffer; each step reads
    the current heights and writes back immediately.
    """

    cfg = config or ErosionConfig()
    size = field.size
    gen = rng.generator()
    before = float(np.mean(field.elevation, dtype=np.float64))

    # Python floats in a flat list keep the per-step scalar work cheap.
    heights = field.elevation.ravel().astype(np.float64).tolist()

    total_steps = 0
    eroded = 0.0
    deposited = 0.0
    left_grid = 0
    iterations = max(0, int(cfg.iterations))
    spawn = gen.random((iterations, 2)) * (size - 1)
    for i in range(iterations):
        droplet = Droplet(x=float(spawn[i, 0]), y=float(spawn[i, 1]))
        trace = trace_droplet(field, heights, droplet, cfg)
        total_steps += trace.steps
        eroded += trace.eroded
        deposited += trace.deposited
        left_grid += int(trace.left_grid)

    field.elevation[...] = np.asarray(heights, dtype=np.float64).reshape(size, size).astype(np.float32)
    sanitized = field.sanitize(-cfg.sanitize_bound, cfg.sanitize_bound)

    return ErosionMetrics(
        droplets=iterations,
        total_steps=total_steps,
        total_eroded=eroded,
        total_deposited=deposited,
        droplets_left_grid=left_grid,
        sanitized_cells=sanitized,
        mean_elevation_delta=float(np.mean(field.elevation, dtype=np.float64)) - before,
    )


def trace_droplet(field: ElevationField, heights: list[float], droplet: Droplet, cfg: ErosionConfig) -> DropletTrace:
    """Advance one droplet until it evaporates, leaves past a pole or runs out of steps.

    `heights` is the row-major working copy of `field.elevation`, mutated in
    place; `field` supplies the grid topology.

    Every step either erodes or deposits at the droplet's previous cell, never both.
    """

    inertia = cfg.inertia
    eroded = 0.0
    deposited = 0.0
    steps = 0

    for _ in range(max(0, int(cfg.max_steps))):
        node_x = math.floor(droplet.x)
        node_y = math.floor(droplet.y)
        cell = field.flat_index(node_y, node_x)

        h = heights[cell]
        h_left = heights[field.flat_index(node_y, node_x - 1)]
        h_right = heights[field.flat_index(node_y, node_x + 1)]
        h_up = heights[field.flat_index(node_y - 1, node_x)]
        h_down = heights[field.flat_index(node_y + 1, node_x)]

        grad_x = h_right - h_left
        grad_y = h_down - h_up

        droplet.dir_x = droplet.dir_x * inertia - grad_x * (1.0 - inertia)
        droplet.dir_y = droplet.dir_y * inertia - grad_y * (1.0 - inertia)
        length = math.hypot(droplet.dir_x, droplet.dir_y)
        if length != 0.0 and math.isfinite(length):
            droplet.dir_x /= length
            droplet.dir_y /= length

        droplet.x += droplet.dir_x
        droplet.y += droplet.dir_y

        if not (math.isfinite(droplet.x) and math.isfinite(droplet.y)):
            return DropletTrace(steps, eroded, deposited, True)
        if droplet.y < 0.0 or droplet.y >= field.size - 1:
            return DropletTrace(steps, eroded, deposited, True)

        steps += 1
        diff = h - heights[field.flat_index(math.floor(droplet.y), math.floor(droplet.x))]

        capacity = max(-diff, _MIN_CAPACITY_SLOPE) * droplet.speed * droplet.water * _CAPACITY_FACTOR

        if droplet.sediment > capacity or diff < 0.0:
            amount = max(droplet.sediment - capacity, 0.0) * cfg.deposition_rate
            droplet.sediment -= amount
            heights[cell] += amount
            deposited += amount
        else:
            amount = min((capacity - droplet.sediment) * cfg.erosion_rate, diff)
            droplet.sediment += amount
            heights[cell] -= amount
            eroded += amount

        droplet.speed = math.sqrt(droplet.speed * droplet.speed + max(0.0, diff) * cfg.gravity)
        droplet.water *= 1.0 - cfg.evaporation

        if droplet.water < cfg.min_water:
            break

    return DropletTrace(steps, eroded, deposited, False)
