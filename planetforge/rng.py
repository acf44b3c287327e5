"""Seed parsing and per-stage random streams.

A stream is a 64-bit seed plus the stage path that produced it. Child seeds
come from numpy's ``SeedSequence`` with the hashed stage name as spawn key, so
``RngStream(s).fork("erosion")`` always yields the same draws for seed ``s``.
"""

from __future__ import annotations

from dataclasses import dataclass
import hashlib

import numpy as np


_SEED_MASK = (1 << 64) - 1


def _key_word(key: str) -> int:
    digest = hashlib.blake2b(key.encode("utf-8"), digest_size=4, person=b"pfstream").digest()
    return int.from_bytes(digest, byteorder="little")


def derive_seed(parent_seed: int, key: str) -> int:
    """Child seed for stage ``key`` under ``parent_seed``."""

    seq = np.random.SeedSequence(int(parent_seed) & _SEED_MASK, spawn_key=(_key_word(key),))
    return int(seq.generate_state(1, dtype=np.uint64)[0])


def seed_from_text(text: str) -> int:
    """Map a user-facing seed to an unsigned 64-bit integer.

    Decimal strings are used verbatim so that `--seed 42` means seed 42; any
    other text is hashed.
    """

    raw = text.strip()
    if not raw:
        raise ValueError("seed cannot be empty")
    if raw.isdigit():
        return int(raw) & _SEED_MASK
    digest = hashlib.blake2b(raw.encode("utf-8"), digest_size=8, person=b"pfseed").digest()
    return int.from_bytes(digest, byteorder="big")


@dataclass(frozen=True)
class RngStream:
    seed: int
    path: tuple[str, ...] = ()

    def fork(self, key: str) -> "RngStream":
        if not key:
            raise ValueError("fork key must be non-empty")
        return RngStream(derive_seed(self.seed, key), self.path + (key,))

    def generator(self) -> np.random.Generator:
        return np.random.default_rng(np.random.SeedSequence(int(self.seed) & _SEED_MASK))
