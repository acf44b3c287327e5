"""Configuration models for planet generation."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any


DEFAULT_RESOLUTION = 256
FAULT_TYPES = ("ridge", "trench", "shear", "mixed")


@dataclass(frozen=True)
class TectonicsConfig:
    """Controls Voronoi plate synthesis."""

    plate_count: int = 15
    jitter: float = 0.5
    ocean_floor: float = 0.2
    plate_delta: float = 1.0
    fault_type: str = "ridge"
    plate_size_variance: float = 0.0
    desymmetrize_tiling: bool = False

    def __post_init__(self) -> None:
        if self.fault_type not in FAULT_TYPES:
            options = ", ".join(FAULT_TYPES)
            raise ValueError(f"fault_type must be one of {options}, got {self.fault_type!r}")


@dataclass(frozen=True)
class ErosionConfig:
    """Controls the rain-droplet hydraulic erosion pass."""

    iterations: int = 50_000
    inertia: float = 0.05
    gravity: float = 4.0
    evaporation: float = 0.01
    erosion_rate: float = 0.3
    deposition_rate: float = 0.1
    max_steps: int = 30
    min_water: float = 0.01
    sanitize_bound: float = 5.0


@dataclass(frozen=True)
class ConditioningConfig:
    """Controls the renormalization and smoothing applied between erosion and hydrology."""

    normalize: bool = True
    smooth_passes: int = 20


@dataclass(frozen=True)
class HydrologyConfig:
    """Controls depression filling, river extraction and channel carving."""

    sea_level: float = 0.5
    river_depth: float = 0.015
    lake_threshold: float = 0.003
    river_flow_threshold: float = 0.1
    lake_depth_gain: float = 12.0


@dataclass(frozen=True)
class GeneratorConfig:
    """Primary generation configuration."""

    resolution: int = DEFAULT_RESOLUTION
    tectonics: TectonicsConfig = field(default_factory=TectonicsConfig)
    erosion: ErosionConfig = field(default_factory=ErosionConfig)
    conditioning: ConditioningConfig = field(default_factory=ConditioningConfig)
    hydrology: HydrologyConfig = field(default_factory=HydrologyConfig)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _preset(fault_type: str) -> GeneratorConfig:
    return GeneratorConfig(
        resolution=384,
        tectonics=TectonicsConfig(plate_count=16, jitter=0.6, plate_delta=1.25, fault_type=fault_type),
        erosion=ErosionConfig(iterations=80_000, erosion_rate=0.36, evaporation=0.5),
        conditioning=ConditioningConfig(smooth_passes=20),
        hydrology=HydrologyConfig(sea_level=0.53),
    )


PRESETS: dict[str, GeneratorConfig] = {
    "fast": _preset("ridge"),
    "balanced": _preset("mixed"),
    "high": _preset("ridge"),
}


def preset(name: str) -> GeneratorConfig:
    """Return a named preset configuration."""

    try:
        return PRESETS[name]
    except KeyError as exc:
        options = ", ".join(sorted(PRESETS))
        raise KeyError(f"Unknown preset {name!r}; expected one of {options}") from exc


def with_overrides(
    config: GeneratorConfig,
    *,
    resolution: int | None = None,
    plate_count: int | None = None,
    fault_type: str | None = None,
    iterations: int | None = None,
    smooth_passes: int | None = None,
    sea_level: float | None = None,
) -> GeneratorConfig:
    """Return `config` with the commonly tuned parameters replaced where given."""

    tectonics = config.tectonics
    if plate_count is not None:
        tectonics = replace(tectonics, plate_count=plate_count)
    if fault_type is not None:
        tectonics = replace(tectonics, fault_type=fault_type)
    erosion = config.erosion
    if iterations is not None:
        erosion = replace(erosion, iterations=iterations)
    conditioning = config.conditioning
    if smooth_passes is not None:
        conditioning = replace(conditioning, smooth_passes=smooth_passes)
    hydrology = config.hydrology
    if sea_level is not None:
        hydrology = replace(hydrology, sea_level=sea_level)
    return replace(
        config,
        resolution=config.resolution if resolution is None else resolution,
        tectonics=tectonics,
        erosion=erosion,
        conditioning=conditioning,
        hydrology=hydrology,
    )
