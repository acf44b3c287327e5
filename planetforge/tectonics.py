"""Voronoi plate partition and fault-line uplift."""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
import struct

import numpy as np

from planetforge.config import TectonicsConfig
from planetforge.field import ElevationField
from planetforge.rng import RngStream


CONTINENTAL = "continental"
OCEANIC = "oceanic"

_EDGE_EPSILON = 0.001
_MIN_SIZE_BIAS = 0.25
_CONTINENTAL_THRESHOLD = 0.6
_TRENCH_SCALE = 0.7
_SHEAR_SCALE = 0.2
_RIDGE_POWER = 5

_MODE_RIDGE = 0
_MODE_TRENCH = 1
_MODE_SHEAR = 2
_MODE_NAMES = ("ridge", "trench", "shear")


@dataclass(frozen=True)
class Plate:
    """Voronoi generator point with uplift and shape-biasing attributes."""

    x: int
    y: int
    uplift: float
    kind: str
    size_bias: float = 1.0
    skew: float = 0.0

    @property
    def sign(self) -> float:
        return 1.0 if self.kind == CONTINENTAL else -1.0


@dataclass(frozen=True)
class TectonicsResult:
    """Plate partition diagnostics; the elevation itself lives on the field."""

    plate_count: int
    plates: tuple[Plate, ...]
    fault_modes: tuple[str, ...]
    plate_ids: np.ndarray
    edge_ratio: np.ndarray
    continental_fraction: float


def sample_plates(rng: RngStream, size: int, config: TectonicsConfig) -> list[Plate]:
    """Draw plate centers and attributes in a fixed, seed-stable order."""

    gen = rng.generator()
    variance = max(0.0, float(config.plate_size_variance))
    plates: list[Plate] = []
    for _ in range(max(0, int(config.plate_count))):
        x = int(np.floor(gen.random() * size))
        y = int(np.floor(gen.random() * size))
        uplift = float(gen.random() * 0.5 + 0.5)
        kind = CONTINENTAL if gen.random() > _CONTINENTAL_THRESHOLD else OCEANIC
        size_bias = max(_MIN_SIZE_BIAS, 1.0 + (gen.random() * 2.0 - 1.0) * variance)
        skew = 0.0
        if config.desymmetrize_tiling:
            skew = (gen.random() * 2.0 - 1.0) * variance * 0.5 * size
        plates.append(Plate(x, y, uplift, kind, float(size_bias), float(skew)))
    return plates


def plate_fault_mode(plate: Plate, fault_type: str) -> str:
    """Resolve the fault mode for one plate.

    ``mixed`` picks ridge, trench or shear from a blake2b hash of the plate's
    own center and uplift, so every cell of the plate agrees.
    """

    if fault_type != "mixed":
        return fault_type
    payload = struct.pack(">qqd", plate.x, plate.y, plate.uplift)
    digest = hashlib.blake2b(payload, digest_size=8, person=b"pffault").digest()
    unit = int.from_bytes(digest, byteorder="big", signed=False) / float(1 << 64)
    if unit < 1.0 / 3.0:
        return "ridge"
    if unit < 2.0 / 3.0:
        return "trench"
    return "shear"


def generate_tectonics(
    field: ElevationField,
    rng: RngStream,
    *,
    config: TectonicsConfig | None = None,
) -> TectonicsResult:
    """Sample plates and write every elevation cell of `field`."""

    cfg = config or TectonicsConfig()
    plates = sample_plates(rng, field.size, cfg)
    return apply_plates(field, plates, config=cfg)


def apply_plates(
    field: ElevationField,
    plates: list[Plate] | tuple[Plate, ...],
    *,
    config: TectonicsConfig | None = None,
) -> TectonicsResult:
    """Synthesize plate elevation for an explicit plate list."""

    cfg = config or TectonicsConfig()
    size = field.size
    plates = tuple(plates)

    if not plates:
        field.elevation.fill(0.0)
        return TectonicsResult(
            plate_count=0,
            plates=(),
            fault_modes=(),
            plate_ids=np.full((size, size), -1, dtype=np.int32),
            edge_ratio=np.zeros((size, size), dtype=np.float32),
            continental_fraction=0.0,
        )

    plate_ids, nearest, second = _partition(size, plates)
    edge = nearest / (second + _EDGE_EPSILON)

    modes = tuple(plate_fault_mode(p, cfg.fault_type) for p in plates)
    uplift = np.array([p.uplift for p in plates], dtype=np.float64)[plate_ids]
    sign = np.array([p.sign for p in plates], dtype=np.float64)[plate_ids]
    mode = np.array([_MODE_NAMES.index(m) for m in modes], dtype=np.int8)[plate_ids]
    continental = sign > 0.0

    base = np.where(
        continental,
        uplift * cfg.plate_delta - edge * cfg.jitter,
        cfg.ocean_floor - 0.08 + edge * 0.05,
    )

    # Boundary belts: edge -> 1 where two plates meet.
    ridge = np.power(edge, _RIDGE_POWER) * uplift
    fault = np.where(
        mode == _MODE_RIDGE,
        ridge,
        np.where(mode == _MODE_TRENCH, -_TRENCH_SCALE * ridge, _SHEAR_SCALE * ridge * sign),
    )

    field.elevation[...] = np.clip(base + fault, 0.0, 1.0).astype(np.float32)

    return TectonicsResult(
        plate_count=len(plates),
        plates=plates,
        fault_modes=modes,
        plate_ids=plate_ids,
        edge_ratio=edge.astype(np.float32),
        continental_fraction=float(np.mean(continental)),
    )


def _partition(size: int, plates: tuple[Plate, ...]) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Nearest plate, nearest and second-nearest scaled distances per cell.

    Distances wrap horizontally and are divided by each plate's size bias.
    Equal distances keep the earlier plate.
    """

    rows = np.arange(size, dtype=np.float64)[:, None]
    cols = np.arange(size, dtype=np.float64)[None, :]

    nearest = np.full((size, size), np.inf, dtype=np.float64)
    second = np.full((size, size), np.inf, dtype=np.float64)
    plate_ids = np.zeros((size, size), dtype=np.int32)

    for idx, plate in enumerate(plates):
        center_x = np.mod(plate.x + plate.skew * (rows / size), size)
        span = np.abs(cols - center_x)
        dx = np.minimum(span, size - span)
        dy = rows - plate.y
        dist = np.hypot(dx, dy) / plate.size_bias

        closer = dist < nearest
        runner_up = ~closer & (dist < second)
        second = np.where(closer, nearest, np.where(runner_up, dist, second))
        nearest = np.where(closer, dist, nearest)
        plate_ids[closer] = idx

    return plate_ids, nearest, second
