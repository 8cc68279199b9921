from __future__ import annotations

import time
from typing import Any, Hashable, Iterable, Sequence, TypeVar

from hms.contracts import RandomSource

K = TypeVar("K", bound=Hashable)

_MASK32 = 0xFFFFFFFF
_FNV_OFFSET = 2166136261
_FNV_PRIME = 16777619


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


def seed_from_string(value: object) -> int:
    """32-bit FNV-1a hash of ``str(value)``; ``None`` hashes as the empty string."""
    text = "" if value is None else str(value)
    h = _FNV_OFFSET
    for char in text:
        h ^= ord(char)
        h = _imul(h, _FNV_PRIME)
    return h


def derive_seed(seed: int, salt: int) -> int:
    return (seed ^ salt) & _MASK32


class Mulberry32RandomSource(RandomSource):
    """Mulberry32 stream over a uint32 seed; equal seeds yield equal sequences."""

    def __init__(self, seed: int) -> None:
        self._seed = seed & _MASK32
        self._state = self._seed

    @property
    def seed(self) -> int:
        return self._seed

    def rand(self) -> float:
        self._state = (self._state + 0x6D2B79F5) & _MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t = ((t + _imul(t ^ (t >> 7), t | 61)) & _MASK32) ^ t
        return ((t ^ (t >> 14)) & _MASK32) / 4294967296

    def choice(self, items: Sequence[Any]) -> Any:
        if not items:
            raise ValueError("choice items must not be empty")
        return items[int(self.rand() * len(items))]


def seeded_random(seed: int) -> Mulberry32RandomSource:
    return Mulberry32RandomSource(seed=seed)


def match_seed(team_a: str, team_b: str, seed: str | None = None) -> int:
    """Resolve the base seed for one match.

    An explicit ``seed`` string hashes to a reproducible value. Without one the
    seed is mixed from the team names and the wall clock, so the result is
    intentionally not reproducible between calls.
    """
    if seed is not None:
        return seed_from_string(seed)
    return seed_from_string(f"{team_a}|{team_b}|{int(time.time() * 1000)}")


def pick_weighted(random_source: RandomSource, items: Iterable[tuple[K, float]]) -> K | None:
    pairs = [(key, max(0.0, float(weight or 0.0))) for key, weight in items]
    if not pairs:
        return None
    total = sum(weight for _, weight in pairs)
    if total <= 0:
        return pairs[0][0]
    remaining = random_source.rand() * total
    for key, weight in pairs:
        remaining -= weight
        if remaining <= 0:
            return key
    return pairs[-1][0]
