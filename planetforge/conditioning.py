"""Between-stage rewrites of the elevation buffer."""

from __future__ import annotations

import numpy as np
from scipy.ndimage import correlate1d


_NORMALIZE_MIN_RANGE = 1e-5
_CROSS = np.ones(3, dtype=np.float64)


def normalize_heightmap(elevation: np.ndarray) -> None:
    """Rescale `elevation` in place to [0, 1] using its own min and max."""

    lo = float(np.min(elevation))
    hi = float(np.max(elevation))
    scale = max(hi - lo, _NORMALIZE_MIN_RANGE)
    elevation[...] = ((elevation.astype(np.float64) - lo) / scale).astype(elevation.dtype)


def smooth_heightmap(elevation: np.ndarray, passes: int) -> None:
    """Apply `passes` cross-shaped blur passes in place.

    Each pass averages ``2*center + left + right + up + down`` over 6; columns
    wrap and rows repeat the pole row.
    """

    if passes <= 0:
        return
    values = elevation.astype(np.float64)
    for _ in range(int(passes)):
        across = correlate1d(values, _CROSS, axis=1, mode="wrap")
        along = correlate1d(values, _CROSS, axis=0, mode="nearest")
        values = (across + along) / 6.0
    elevation[...] = values.astype(elevation.dtype)
