"""CLI entry point for planet generation."""

from __future__ import annotations

import argparse
from datetime import datetime, timezone
import platform
import time

import numpy as np

from planetforge.config import FAULT_TYPES, PRESETS, GeneratorConfig, preset, with_overrides
from planetforge.io import resolve_output_dir, write_json, write_planet_rasters
from planetforge.pipeline import PlanetResult, generate_planet
from planetforge.rng import RngStream, seed_from_text


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deterministic planet heightmap and hydrology generator")
    parser.add_argument("--seed", required=True, help="Integer seed or any text (e.g. 42 or MistyForge)")
    parser.add_argument("--out", default="out", help="Output root directory")
    parser.add_argument("--preset", choices=sorted(PRESETS), default=None, help="Start from a named preset")
    parser.add_argument("--size", type=int, default=None, help="Grid resolution (cells per side)")
    parser.add_argument("--plates", type=int, default=None, help="Number of tectonic plates")
    parser.add_argument("--fault-type", choices=FAULT_TYPES, default=None, help="Plate boundary fault mode")
    parser.add_argument("--iterations", type=int, default=None, help="Number of erosion droplets")
    parser.add_argument("--smooth-passes", type=int, default=None, help="Smoothing passes before hydrology")
    parser.add_argument("--sea-level", type=float, default=None, help="Sea level in normalized height")
    parser.add_argument("--overwrite", action="store_true", help="Overwrite files in existing output directory")
    parser.add_argument(
        "--json",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Write metadata JSON files",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        seed = seed_from_text(args.seed)
    except ValueError as exc:
        parser.error(str(exc))
    if args.size is not None and args.size <= 1:
        parser.error("--size must be at least 2")

    base = preset(args.preset) if args.preset else GeneratorConfig()
    config = with_overrides(
        base,
        resolution=args.size,
        plate_count=args.plates,
        fault_type=args.fault_type,
        iterations=args.iterations,
        smooth_passes=args.smooth_passes,
        sea_level=args.sea_level,
    )

    generation_start = time.perf_counter()
    result = generate_planet(RngStream(seed), config=config)
    generation_seconds = time.perf_counter() - generation_start

    field = result.field
    sea_level = config.hydrology.sea_level
    seed_label = args.seed.strip() if args.seed.strip().isalnum() else f"{seed:016x}"
    out_dir = resolve_output_dir(args.out, seed_label.lower(), field.size, overwrite=args.overwrite)

    written = write_planet_rasters(out_dir, field, result.hydrology.flow_accum, sea_level=sea_level)

    if args.json:
        deterministic_meta = _deterministic_meta(seed, config, result)
        meta = {
            **deterministic_meta,
            "generated_at_utc": datetime.now(timezone.utc).isoformat(),
            "original_seed": args.seed,
            "generation_seconds": generation_seconds,
            "stage_seconds": dict(result.stage_seconds),
            "python_version": platform.python_version(),
            "numpy_version": np.__version__,
        }
        write_json(out_dir / "deterministic_meta.json", deterministic_meta)
        write_json(out_dir / "meta.json", meta)

    tect = result.tectonics
    ero = result.erosion
    hydro = result.hydrology.metrics
    print(f"Generated planet: {out_dir} ({len(written)} rasters)")
    print(
        "Tectonics: "
        f"plates={tect.plate_count}, "
        f"continental cells={tect.continental_fraction * 100.0:.1f}%"
    )
    print(
        "Erosion: "
        f"droplets={ero.droplets}, "
        f"steps={ero.total_steps}, "
        f"eroded={ero.total_eroded:.3f}, "
        f"deposited={ero.total_deposited:.3f}, "
        f"lost at poles={ero.droplets_left_grid}"
    )
    print(
        "Hydrology: "
        f"river cells={hydro.river_cell_count}, "
        f"lake cells={hydro.lake_cell_count}, "
        f"sinks={hydro.sink_count}, "
        f"max flow={hydro.max_flow_accum:.0f}, "
        f"water bodies={result.water_bodies.num_bodies}"
    )
    print(f"Generation time: {generation_seconds:.3f} s ({field.size}x{field.size})")
    return 0


def _deterministic_meta(seed: int, config: GeneratorConfig, result: PlanetResult) -> dict:
    hydro = result.hydrology.metrics
    return {
        "seed": seed,
        "size": result.field.size,
        "river_depth": result.field.river_depth,
        "config": config.to_dict(),
        "tectonics": {
            "plate_count": result.tectonics.plate_count,
            "fault_modes": list(result.tectonics.fault_modes),
            "continental_fraction": result.tectonics.continental_fraction,
        },
        "erosion": {
            "droplets": result.erosion.droplets,
            "total_steps": result.erosion.total_steps,
            "total_eroded": result.erosion.total_eroded,
            "total_deposited": result.erosion.total_deposited,
            "droplets_left_grid": result.erosion.droplets_left_grid,
            "sanitized_cells": result.erosion.sanitized_cells,
            "mean_elevation_delta": result.erosion.mean_elevation_delta,
        },
        "hydrology": {
            "river_cell_count": hydro.river_cell_count,
            "lake_cell_count": hydro.lake_cell_count,
            "water_cell_count": hydro.water_cell_count,
            "sink_count": hydro.sink_count,
            "raised_cell_count": hydro.raised_cell_count,
            "max_flow_accum": hydro.max_flow_accum,
            "mean_flow_accum": hydro.mean_flow_accum,
            "max_lake_depth": hydro.max_lake_depth,
        },
        "water_bodies": {
            "num_bodies": result.water_bodies.num_bodies,
            "largest_body_area": result.water_bodies.largest_body_area,
            "total_water_cells": result.water_bodies.total_water_cells,
            "water_fraction": result.water_bodies.water_fraction,
        },
    }


if __name__ == "__main__":
    raise SystemExit(main())
