"""Output serialization for generated planet artifacts."""

from __future__ import annotations

import json
from pathlib import Path
import shutil
from typing import Any

import numpy as np
from PIL import Image

from planetforge.derive import (
    float_preview_u8,
    height_preview_u16,
    hillshade,
    relief_colormap_rgb,
    water_mask_u8,
)
from planetforge.field import ElevationField


def resolve_output_dir(
    out_root: str | Path,
    seed_label: str,
    size: int,
    *,
    overwrite: bool,
) -> Path:
    """Create and return the output directory for one generation run."""

    root = Path(out_root)
    target = root / seed_label / f"{size}x{size}"
    # Raises ValueError when the seed label climbs out of the output root.
    target.resolve().relative_to(root.resolve())
    if target.exists() and any(target.iterdir()):
        if not overwrite:
            raise FileExistsError(
                f"Output directory already exists and is not empty: {target}. Use --overwrite to replace files."
            )
        for child in target.iterdir():
            if child.is_symlink() or child.is_file():
                child.unlink()
            elif child.is_dir():
                shutil.rmtree(child)
    target.mkdir(parents=True, exist_ok=True)
    return target


def write_array_npy(path: str | Path, values: np.ndarray) -> None:
    np.save(Path(path), values.astype(np.float32), allow_pickle=False)


def write_png_u16(path: str | Path, raster_u16: np.ndarray) -> None:
    image = Image.fromarray(raster_u16.astype(np.uint16))
    image.save(Path(path))


def write_png_u8(path: str | Path, raster_u8: np.ndarray) -> None:
    image = Image.fromarray(raster_u8.astype(np.uint8))
    image.save(Path(path))


def write_png_rgb(path: str | Path, raster_rgb: np.ndarray) -> None:
    image = Image.fromarray(raster_rgb.astype(np.uint8))
    image.save(Path(path))


def write_json(path: str | Path, payload: dict[str, Any]) -> None:
    text = json.dumps(payload, indent=2, sort_keys=True)
    Path(path).write_text(text + "\n", encoding="utf-8")


def write_planet_rasters(out_dir: Path, field: ElevationField, flow_accum: np.ndarray, *, sea_level: float) -> list[str]:
    """Write the raw buffers and preview images for one planet; returns the file names."""

    outputs = {
        "elevation.npy": lambda p: write_array_npy(p, field.elevation),
        "water_mask.npy": lambda p: write_array_npy(p, field.water_mask),
        "height_16.png": lambda p: write_png_u16(p, height_preview_u16(field.elevation)),
        "hillshade.png": lambda p: write_png_u8(p, hillshade(field.elevation)),
        "water_mask.png": lambda p: write_png_u8(p, water_mask_u8(field.water_mask)),
        "relief.png": lambda p: write_png_rgb(
            p, relief_colormap_rgb(field.elevation, field.water_mask, sea_level=sea_level)
        ),
        "flow_accum.png": lambda p: write_png_u8(p, float_preview_u8(np.log1p(flow_accum))),
    }
    for name, write in outputs.items():
        write(out_dir / name)
    return list(outputs)
