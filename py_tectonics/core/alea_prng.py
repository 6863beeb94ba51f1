"""
Alea pseudo-random generator.

Johannes Baagøe's Alea algorithm, seeded from strings so that a generation
session can be replayed exactly from its seed. Every random draw in the
tectonics pipeline goes through the session's AleaPRNG instance.
"""

import math
import secrets
from typing import Optional, Tuple

_TWO_POW_32 = 0x100000000
_TWO_POW_NEG_32 = 2.3283064365386963e-10


def _uint32(n) -> int:
    return int(n) & 0xFFFFFFFF


class _Mash:
    """Alea's string hash, stateful across calls."""

    def __init__(self):
        self.n = 0xEFC8249D

    def __call__(self, data) -> float:
        for char in str(data):
            self.n += ord(char)
            h = 0.02519603282416938 * self.n
            self.n = _uint32(h)
            h -= self.n
            h *= self.n
            self.n = _uint32(h)
            h -= self.n
            self.n += h * _TWO_POW_32
        return _uint32(self.n) * _TWO_POW_NEG_32


class AleaPRNG:
    """Seedable Alea generator returning floats in [0, 1)."""

    def __init__(self, seed: Optional[str] = None):
        if seed is None:
            seed = secrets.token_hex(8)
        self.seed = str(seed)
        self.call_count = 0

        mash = _Mash()
        self.s0 = mash(" ")
        self.s1 = mash(" ")
        self.s2 = mash(" ")
        self.c = 1

        self.s0 = self._fold(self.s0 - mash(self.seed))
        self.s1 = self._fold(self.s1 - mash(self.seed))
        self.s2 = self._fold(self.s2 - mash(self.seed))

    @staticmethod
    def _fold(value: float) -> float:
        return value + 1 if value < 0 else value

    def random(self) -> float:
        """Next float in [0, 1)."""
        self.call_count += 1
        t = 2091639 * self.s0 + self.c * _TWO_POW_NEG_32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def randint(self, upper: int) -> int:
        """Integer in [0, upper)."""
        if upper <= 0:
            raise ValueError("upper must be positive")
        return int(self.random() * upper)

    def unit_vector(self) -> Tuple[float, float]:
        """Direction drawn uniformly on the unit circle."""
        angle = self.random() * 2.0 * math.pi
        return (math.cos(angle), math.sin(angle))
