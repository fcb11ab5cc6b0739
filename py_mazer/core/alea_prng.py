"""
Alea pseudo-random stream used by the stochastic forces.

Based on Johannes Baagøe's Alea algorithm. The whole generator state is three
fractions plus an integer carry, so it can be copied into a batch request and
restored from the response without touching any shared object.
"""

import math
from typing import Tuple

AleaState = Tuple[float, float, float, int]

_TWO_POW_32 = 0x100000000
_TWO_POW_MINUS_32 = 2.3283064365386963e-10


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & 0xFFFFFFFF


def _seed_state(seed) -> AleaState:
    """Derive the initial generator state from a seed string or number."""
    mash_n = 0xEFC8249D

    def mash(data):
        nonlocal mash_n
        for char in str(data):
            mash_n = mash_n + ord(char)
            h = 0.02519603282416938 * mash_n
            mash_n = _uint32(h)
            h -= mash_n
            h *= mash_n
            mash_n = _uint32(h)
            h -= mash_n
            mash_n += h * _TWO_POW_32
        return _uint32(mash_n) * _TWO_POW_MINUS_32

    s0 = mash(" ")
    s1 = mash(" ")
    s2 = mash(" ")

    s0 -= mash(seed)
    if s0 < 0:
        s0 += 1
    s1 -= mash(seed)
    if s1 < 0:
        s1 += 1
    s2 -= mash(seed)
    if s2 < 0:
        s2 += 1

    return s0, s1, s2, 1


class AleaPRNG:
    """
    Seedable uniform and normal deviates.

    The same seed always yields the same sequence, which is what makes a
    simulation run reproducible.
    """

    def __init__(self, seed="default"):
        self.seed = str(seed)
        self.call_count = 0
        self.s0, self.s1, self.s2, self.c = _seed_state(self.seed)

    @classmethod
    def from_state(cls, state: AleaState, seed: str = "restored") -> "AleaPRNG":
        """Rebuild a generator positioned exactly where ``state`` was taken."""
        prng = cls.__new__(cls)
        prng.seed = seed
        prng.call_count = 0
        prng.s0, prng.s1, prng.s2, prng.c = state
        return prng

    def get_state(self) -> AleaState:
        return self.s0, self.s1, self.s2, self.c

    def random(self) -> float:
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        t = 2091639 * self.s0 + self.c * _TWO_POW_MINUS_32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def in_range(self, min_val: float, max_val: float) -> float:
        return self.random() * (max_val - min_val) + min_val

    def next_normal(self) -> float:
        """Standard normal deviate (Box-Muller)."""
        u = 0.0
        v = 0.0
        # Box-Muller needs (0, 1), not [0, 1)
        while u == 0.0:
            u = self.random()
        while v == 0.0:
            v = self.random()
        return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)
