"""Shared elevation and water-mask buffers."""

from __future__ import annotations

import numpy as np


DEFAULT_RIVER_DEPTH = 0.015


class ElevationField:
    """Square planet grid holding elevation and water-mask buffers.

    Columns wrap modulo ``size`` (longitude); rows clamp at ``0`` and
    ``size - 1`` (poles). Buffers are float32 arrays of shape ``(size, size)``
    indexed ``[row, col]`` and are mutated in place by every stage.

    Stage contract:

    * after tectonics, ``elevation`` lies in ``[0, 1]``;
    * after erosion, ``elevation`` is finite and within the erosion sanitize
      bound;
    * the orchestrator may rewrite ``elevation`` arbitrarily between stages as
      long as it stays finite; hydrology expects a ``[0, 1]``-like domain;
    * after hydrology, ``water_mask`` lies in ``[0, 1]`` and ``river_depth``
      holds the depth used for channel carving.
    """

    def __init__(self, size: int) -> None:
        if int(size) <= 0:
            raise ValueError("size must be positive")
        self.size = int(size)
        self.elevation = np.zeros((self.size, self.size), dtype=np.float32)
        self.water_mask = np.zeros((self.size, self.size), dtype=np.float32)
        self.river_depth = DEFAULT_RIVER_DEPTH

    @classmethod
    def from_elevation(cls, elevation: np.ndarray) -> "ElevationField":
        """Build a field around a copy of an existing square elevation grid."""

        values = np.asarray(elevation, dtype=np.float32)
        if values.ndim != 2 or values.shape[0] != values.shape[1]:
            raise ValueError("elevation must be a square 2D array")
        field = cls(values.shape[0])
        field.elevation[...] = values
        return field

    def wrap_col(self, col: int) -> int:
        return col % self.size

    def clamp_row(self, row: int) -> int:
        return min(max(row, 0), self.size - 1)

    def cell(self, row: int, col: int) -> tuple[int, int]:
        """In-bounds ``(row, col)`` for any integer position on the cylinder."""

        return self.clamp_row(row), self.wrap_col(col)

    def flat_index(self, row: int, col: int) -> int:
        """Row-major offset of :meth:`cell` into the raveled buffers."""

        r, c = self.cell(row, col)
        return r * self.size + c

    def sanitize(self, lo: float = -5.0, hi: float = 5.0) -> int:
        """Zero non-finite elevation values and clamp the rest to ``[lo, hi]``.

        Returns the number of non-finite cells that were replaced.
        """

        bad = ~np.isfinite(self.elevation)
        replaced = int(np.count_nonzero(bad))
        if replaced:
            self.elevation[bad] = 0.0
        np.clip(self.elevation, lo, hi, out=self.elevation)

        water_bad = ~np.isfinite(self.water_mask)
        if np.any(water_bad):
            self.water_mask[water_bad] = 0.0
        np.clip(self.water_mask, 0.0, 1.0, out=self.water_mask)
        return replaced
