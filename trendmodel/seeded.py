"""Deterministic sine-based pseudo-random draws.

Draws are reproducible bit for bit: the seed is a 31-multiplier
string hash folded into signed 32-bit range, and each draw is
``frac(sin(seed) * 10000)``.  This is not a statistical-quality generator;
it exists so that an item always yields the same synthetic trajectory.
"""

from __future__ import annotations

import math

from trendmodel.types import Item

_INT32_MOD = 1 << 32
_INT32_MAX = (1 << 31) - 1


def _to_int32(value: int) -> int:
    value %= _INT32_MOD
    return value - _INT32_MOD if value > _INT32_MAX else value


def seed_from_text(text: str) -> int:
    """Fold *text* into a signed 32-bit seed, one UTF-16 code unit at a time."""
    raw = text.encode("utf-16-le")
    acc = 0
    for i in range(0, len(raw), 2):
        code = raw[i] | (raw[i + 1] << 8)
        acc = _to_int32((acc << 5) - acc + code)
    return acc


def item_seed(item: Item) -> int:
    """Seed identifying *item* by title and artist."""
    return seed_from_text(item.title + item.artist)


def seeded_random(seed: float) -> float:
    """Map *seed* to a value in [0, 1)."""
    x = math.sin(seed) * 10000.0
    return x - math.floor(x)


class SeededRandom:
    """Stream of draws keyed by integer offsets from a base seed.

    Parameters
    ----------
    seed : int
        Base seed, typically from :func:`item_seed`.
    """

    def __init__(self, seed: int) -> None:
        self.seed = seed

    def draw(self, offset: int = 0) -> float:
        return seeded_random(self.seed + offset)

    def day_draw(self, day: int, stride: int = 7) -> float:
        """Draw for a day index; ``stride`` spaces days apart in seed space."""
        return seeded_random(self.seed + day * stride)

    def uniform(self, low: float, high: float, offset: int = 0) -> float:
        return low + self.draw(offset) * (high - low)

    def __repr__(self) -> str:
        return f"SeededRandom(seed={self.seed})"
