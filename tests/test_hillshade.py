from __future__ import annotations

from PIL import Image
import numpy as np

from planetforge.derive import (
    RELIEF_DEEP,
    RELIEF_FRESHWATER,
    RELIEF_SNOW,
    classify_relief,
    height_preview_u16,
    hillshade,
    relief_colormap_rgb,
)
from planetforge.io import write_png_u16
from planetforge.rng import RngStream


def _terrain(size: int = 32) -> np.ndarray:
    return RngStream(6).generator().random((size, size)).astype(np.float32)


def test_hillshade_z_factor_changes_output() -> None:
    elevation = _terrain()

    shade_low = hillshade(elevation, z_factor=5.0)
    shade_high = hillshade(elevation, z_factor=80.0)

    assert shade_low.dtype == np.uint8
    assert not np.array_equal(shade_low, shade_high)


def test_hillshade_wraps_longitude() -> None:
    elevation = _terrain()

    rolled = hillshade(np.roll(elevation, 5, axis=1))

    assert np.array_equal(rolled, np.roll(hillshade(elevation), 5, axis=1))


def test_flat_terrain_shades_uniformly() -> None:
    shade = hillshade(np.full((8, 8), 0.5, dtype=np.float32))

    assert np.all(shade == shade[0, 0])


def test_height_preview_encoding_is_16bit(tmp_path) -> None:
    preview = height_preview_u16(_terrain(24))

    out_path = tmp_path / "height_16.png"
    write_png_u16(out_path, preview)

    with Image.open(out_path) as image:
        assert image.mode in {"I", "I;16"}
        assert image.size == (24, 24)


def test_relief_classes_and_colors() -> None:
    elevation = np.array([[0.1, 0.99], [0.6, 0.6]], dtype=np.float32)
    water = np.array([[0.0, 0.0], [0.5, 0.0]], dtype=np.float32)

    classes = classify_relief(elevation, water, 0.5)
    rgb = relief_colormap_rgb(elevation, water, sea_level=0.5)

    assert classes[0, 0] == RELIEF_DEEP
    assert classes[0, 1] == RELIEF_SNOW
    assert classes[1, 0] == RELIEF_FRESHWATER
    assert rgb.shape == (2, 2, 3)
    assert rgb.dtype == np.uint8
    assert tuple(rgb[0, 1]) == (255, 255, 255)
