"""Procedural planet heightmap and hydrology generation."""

from .config import DEFAULT_RESOLUTION, GeneratorConfig
from .field import ElevationField

__all__ = ["DEFAULT_RESOLUTION", "GeneratorConfig", "ElevationField"]
