"""Triplanar height and water queries on the planet grid."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from planetforge.field import ElevationField


_WEIGHT_EPSILON = 1e-6
_HAS_WATER_THRESHOLD = 0.05
_SURFACE_FRACTION = 0.5


@dataclass(frozen=True)
class WaterSample:
    """Terrain height and reconstructed water surface at one direction."""

    height: float
    water_height: float
    water_mask: float
    has_water: bool


def bilinear_sample(buffer: np.ndarray, u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Sample `buffer` at texture coordinates in [0, 1]; `v` runs bottom to top."""

    rows, cols = buffer.shape
    fx = np.clip(u, 0.0, 1.0) * (cols - 1)
    fy = np.clip(1.0 - v, 0.0, 1.0) * (rows - 1)

    x0 = np.floor(fx).astype(np.int64)
    y0 = np.floor(fy).astype(np.int64)
    x1 = np.minimum(x0 + 1, cols - 1)
    y1 = np.minimum(y0 + 1, rows - 1)

    tx = fx - x0
    ty = fy - y0

    values = buffer.astype(np.float64, copy=False)
    top = values[y0, x0] * (1.0 - tx) + values[y0, x1] * tx
    bottom = values[y1, x0] * (1.0 - tx) + values[y1, x1] * tx
    return top * (1.0 - ty) + bottom * ty


def sample_triplanar(buffer: np.ndarray, directions: np.ndarray) -> np.ndarray:
    """Blend three axis-projected bilinear samples for each row of an (N, 3) direction array.

    Zero-length and non-finite directions, and non-finite results, yield 0.
    """

    dirs = np.atleast_2d(np.asarray(directions, dtype=np.float64))
    if dirs.shape[-1] != 3:
        raise ValueError("directions must have shape (N, 3)")

    finite = np.all(np.isfinite(dirs), axis=1)
    safe = np.where(finite[:, None], dirs, 0.0)
    valid = finite & np.any(safe != 0.0, axis=1)

    weights = np.abs(safe)
    weights = weights / (np.sum(weights, axis=1, keepdims=True) + _WEIGHT_EPSILON)

    x = safe[:, 0] * 0.5 + 0.5
    y = safe[:, 1] * 0.5 + 0.5
    z = safe[:, 2] * 0.5 + 0.5

    blended = (
        bilinear_sample(buffer, z, y) * weights[:, 0]
        + bilinear_sample(buffer, x, z) * weights[:, 1]
        + bilinear_sample(buffer, x, y) * weights[:, 2]
    )
    blended[~valid] = 0.0
    blended[~np.isfinite(blended)] = 0.0
    return blended


def height_at(field: ElevationField, direction) -> float:
    """Terrain height seen along a unit direction; 0 for degenerate input."""

    return float(sample_triplanar(field.elevation, direction)[0])


def water_at(field: ElevationField, direction) -> float:
    """Water-mask strength seen along a unit direction; 0 for degenerate input."""

    return float(sample_triplanar(field.water_mask, direction)[0])


def water_data_at(field: ElevationField, direction) -> WaterSample:
    """Terrain height plus the water surface, which sits halfway down the carved bank."""

    height = height_at(field, direction)
    mask = water_at(field, direction)
    water_height = height + mask * field.river_depth * _SURFACE_FRACTION
    if not np.isfinite(water_height):
        water_height = 0.0
    return WaterSample(
        height=height,
        water_height=float(water_height),
        water_mask=mask,
        has_water=bool(mask > _HAS_WATER_THRESHOLD),
    )
