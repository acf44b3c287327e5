"""Derived raster products from planet buffers."""

from __future__ import annotations

from matplotlib.colors import ListedColormap
import numpy as np


RELIEF_DEEP = 0
RELIEF_SHALLOW = 1
RELIEF_LOWLAND = 2
RELIEF_UPLAND = 3
RELIEF_ROCK = 4
RELIEF_SNOW = 5
RELIEF_FRESHWATER = 6

_RELIEF_PALETTE = [
    "#030a1f",  # deep water
    "#0a3366",  # shallow water
    "#1f702e",  # lowland
    "#5b7a3a",  # upland
    "#61523f",  # rock
    "#ffffff",  # snow
    "#154f8a",  # rivers and lakes
]


def hillshade(
    elevation: np.ndarray,
    *,
    azimuth_deg: float = 315.0,
    altitude_deg: float = 45.0,
    z_factor: float = 40.0,
) -> np.ndarray:
    """Compute an 8-bit grayscale hillshade; columns wrap around the planet."""

    if elevation.ndim != 2:
        raise ValueError("elevation must be a 2D array")

    values = elevation.astype(np.float32)
    dz_dx = (np.roll(values, -1, axis=1) - np.roll(values, 1, axis=1)) * 0.5
    dz_dy = np.gradient(values, axis=0)
    dz_dx = dz_dx * float(z_factor)
    dz_dy = dz_dy * float(z_factor)

    slope = np.pi / 2.0 - np.arctan(np.hypot(dz_dx, dz_dy))
    aspect = np.arctan2(-dz_dx, dz_dy)

    azimuth = np.deg2rad(azimuth_deg)
    altitude = np.deg2rad(altitude_deg)

    shaded = (
        np.sin(altitude) * np.sin(slope)
        + np.cos(altitude) * np.cos(slope) * np.cos(azimuth - aspect)
    )
    shaded = np.clip(shaded, 0.0, 1.0)
    return np.round(shaded * 255.0).astype(np.uint8)


def height_preview_u16(elevation: np.ndarray, *, robust_percentiles: tuple[float, float] = (1.0, 99.0)) -> np.ndarray:
    """Map float elevation values to 16-bit preview grayscale."""

    lo, hi = np.percentile(elevation, robust_percentiles)
    scale = max(hi - lo, 1e-6)
    norm = np.clip((elevation - lo) / scale, 0.0, 1.0)
    return np.round(norm * 65535.0).astype(np.uint16)


def float_preview_u8(values: np.ndarray, *, robust_percentiles: tuple[float, float] = (1.0, 99.0)) -> np.ndarray:
    """Map float values to 8-bit preview grayscale."""

    lo, hi = np.percentile(values, robust_percentiles)
    scale = max(hi - lo, 1e-6)
    norm = np.clip((values - lo) / scale, 0.0, 1.0)
    return np.round(norm * 255.0).astype(np.uint8)


def water_mask_u8(water_mask: np.ndarray) -> np.ndarray:
    """Encode a [0, 1] water mask to 8-bit grayscale."""

    return np.round(np.clip(water_mask.astype(np.float32), 0.0, 1.0) * 255.0).astype(np.uint8)


def classify_relief(elevation: np.ndarray, water_mask: np.ndarray, sea_level: float) -> np.ndarray:
    """Bucket cells into relief classes relative to sea level."""

    h = elevation.astype(np.float32)
    classes = np.full(h.shape, RELIEF_SNOW, dtype=np.uint8)
    classes[h < sea_level + 0.45] = RELIEF_ROCK
    classes[h < sea_level + 0.25] = RELIEF_UPLAND
    classes[h < sea_level + 0.08] = RELIEF_LOWLAND
    classes[h < sea_level] = RELIEF_SHALLOW
    classes[h < sea_level - 0.05] = RELIEF_DEEP
    freshwater = (water_mask > 0.05) & (h >= sea_level)
    classes[freshwater] = RELIEF_FRESHWATER
    return classes


def relief_colormap_rgb(elevation: np.ndarray, water_mask: np.ndarray, *, sea_level: float) -> np.ndarray:
    """Map relief classes to a discrete RGB palette via ListedColormap."""

    cmap = ListedColormap(_RELIEF_PALETTE, name="planet_relief")
    idx = classify_relief(elevation, water_mask, sea_level).astype(np.int32)
    rgba = cmap(idx)
    return np.round(rgba[..., :3] * 255.0).astype(np.uint8)
