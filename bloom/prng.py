"""Seeded deterministic random source for reproducible petal jitter."""

import math
import numbers

_MASK = 0xFFFFFFFF


class SeedError(ValueError):
    """Raised when a seed is not a finite integer."""


def validate_seed(seed) -> int:
    """Check a seed at the API boundary and reduce it to 32 bits.

    Accepts Python/numpy integers and integral floats. Rejects bools,
    non-numbers, NaN/inf and fractional floats.
    """
    if isinstance(seed, bool) or not isinstance(seed, numbers.Real):
        raise SeedError(f"seed must be an integer, got {seed!r}")
    if isinstance(seed, numbers.Integral):
        return int(seed) & _MASK
    value = float(seed)
    if not math.isfinite(value) or not value.is_integer():
        raise SeedError(f"seed must be a finite integer, got {seed!r}")
    return int(value) & _MASK


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK


class PseudoRandomSource:
    """mulberry32 generator.

    One instance is created per generation call so that separate flowers
    never share a random stream.
    """

    def __init__(self, seed):
        self.seed = validate_seed(seed)
        self._state = self.seed

    def next(self) -> float:
        """Return the next value in [0, 1)."""
        self._state = (self._state + 0x6D2B79F5) & _MASK
        r = self._state
        r = _imul(r ^ (r >> 15), r | 1)
        r ^= (r + _imul(r ^ (r >> 7), r | 61)) & _MASK
        return ((r ^ (r >> 14)) & _MASK) / 4294967296.0

    def uniform(self, low: float, high: float) -> float:
        return low + (high - low) * self.next()

    def jitter(self, amplitude: float) -> float:
        """Centered noise in [-amplitude/2, amplitude/2)."""
        return (self.next() - 0.5) * amplitude

    def index(self, n: int) -> int:
        """Uniform integer in [0, n); n < 1 is treated as 1."""
        n = max(int(n), 1)
        return min(int(self.next() * n), n - 1)

    def spawn(self, salt: int) -> "PseudoRandomSource":
        """Independent stream derived from this generator's seed."""
        return PseudoRandomSource((self.seed + _imul(int(salt) & _MASK, 0x9E3779B1)) & _MASK)
