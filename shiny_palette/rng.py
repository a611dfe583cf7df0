# shiny_palette/rng.py
from __future__ import annotations

"""
Seeded xorshift32 stream.

Exports:
  hash_seed_text(text) -> int
  resolve_seed(value) -> int
  SeededRandom(seed)

Same seed gives a bit-identical sequence, which is what makes shared
"shiny seeds" reproducible.
"""

import random
import re
from typing import Sequence, TypeVar, Union

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF
_RANDOM_SEED_LIMIT = 2147483647
_INT_RE = re.compile(r"^\s*[+-]?\d+\s*$")

SeedLike = Union[None, int, str]


def _to_int32(value: int) -> int:
    value &= _MASK32
    return value - 0x100000000 if value & 0x80000000 else value


def hash_seed_text(text: str) -> int:
    """
    Order-dependent polynomial hash (h = h*31 + unit) over UTF-16 code units,
    wrapped to a signed 32-bit integer. Returns a positive, nonzero value.
    """
    if not text:
        return 1
    data = text.encode("utf-16-le", errors="surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = _to_int32((h << 5) - h + unit)
    return abs(h) or 1


def resolve_seed(value: SeedLike) -> int:
    """
    Turn user seed input into a positive seed.
      None / ""        -> fresh random 31-bit seed
      integer / "123"  -> that integer
      any other string -> hash_seed_text(value)
    Zero is replaced by 1.
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        seed = random.SystemRandom().randrange(_RANDOM_SEED_LIMIT)
    elif isinstance(value, bool):
        seed = int(value)
    elif isinstance(value, int):
        seed = value
    else:
        text = str(value)
        seed = int(text) if _INT_RE.match(text) else hash_seed_text(text)
    return abs(seed) or 1


class SeededRandom:
    """xorshift32 generator returning floats in [0, 1)."""

    def __init__(self, seed: SeedLike = None) -> None:
        self.seed = 1
        self.state = 1
        self.set_seed(seed)

    def set_seed(self, value: SeedLike) -> int:
        """Resolve and install a seed; returns the effective seed."""
        self.seed = resolve_seed(value)
        self.state = (self.seed & _MASK32) or 1
        return self.seed

    def next_uint32(self) -> int:
        s = self.state
        s ^= (s << 13) & _MASK32
        s ^= s >> 17
        s ^= (s << 5) & _MASK32
        self.state = s
        return s

    def next(self) -> float:
        """Next value in [0, 1)."""
        return self.next_uint32() / 4294967296.0

    def randbelow(self, n: int) -> int:
        """Integer in [0, n) as floor(next() * n)."""
        return int(self.next() * n)

    def choice(self, items: Sequence[T]) -> T:
        return items[self.randbelow(len(items))]

    def uniform(self, lo: float, hi: float) -> float:
        return lo + (hi - lo) * self.next()


__all__ = ["SeedLike", "hash_seed_text", "resolve_seed", "SeededRandom"]
