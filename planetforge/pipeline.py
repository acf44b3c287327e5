"""Planet generation pipeline."""

from __future__ import annotations

from dataclasses import dataclass
import time

from planetforge.conditioning import normalize_heightmap, smooth_heightmap
from planetforge.config import GeneratorConfig
from planetforge.erosion import ErosionMetrics, apply_erosion
from planetforge.field import ElevationField
from planetforge.hydrology import HydrologyResult, apply_hydrology
from planetforge.metrics import WaterBodyMetrics, water_body_metrics
from planetforge.rng import RngStream
from planetforge.tectonics import TectonicsResult, generate_tectonics


@dataclass(frozen=True)
class PlanetResult:
    """Final field plus per-stage diagnostics."""

    field: ElevationField
    tectonics: TectonicsResult
    erosion: ErosionMetrics
    hydrology: HydrologyResult
    water_bodies: WaterBodyMetrics
    stage_seconds: dict[str, float]


def generate_planet(
    rng: RngStream,
    *,
    config: GeneratorConfig | None = None,
    size: int | None = None,
) -> PlanetResult:
    """Generate a deterministic planet heightmap and water mask.

    Runs tectonics, erosion, renormalization and smoothing, then hydrology on
    a single field. `size` overrides `config.resolution`.
    """

    cfg = config or GeneratorConfig()
    resolution = cfg.resolution if size is None else size
    if resolution <= 0:
        raise ValueError("resolution must be positive")

    field = ElevationField(resolution)
    timings: dict[str, float] = {}

    start = time.perf_counter()
    tectonics = generate_tectonics(field, rng.fork("tectonics"), config=cfg.tectonics)
    timings["tectonics"] = time.perf_counter() - start

    start = time.perf_counter()
    erosion = apply_erosion(field, rng.fork("erosion"), config=cfg.erosion)
    timings["erosion"] = time.perf_counter() - start

    start = time.perf_counter()
    if cfg.conditioning.normalize:
        normalize_heightmap(field.elevation)
    smooth_heightmap(field.elevation, cfg.conditioning.smooth_passes)
    timings["conditioning"] = time.perf_counter() - start

    start = time.perf_counter()
    hydrology = apply_hydrology(field, config=cfg.hydrology)
    timings["hydrology"] = time.perf_counter() - start

    return PlanetResult(
        field=field,
        tectonics=tectonics,
        erosion=erosion,
        hydrology=hydrology,
        water_bodies=water_body_metrics(field.water_mask),
        stage_seconds=timings,
    )
