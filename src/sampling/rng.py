"""Seedable xorshift* random number generator and discrete sampling.

The generator is deterministic across platforms, which keeps generated
samples reproducible in tests. It is not cryptographically secure.
"""

from __future__ import annotations

from typing import Sequence

from src.exceptions import InvalidConfigurationError


_MASK64 = (1 << 64) - 1
_XORSHIFT_STAR_MULTIPLIER = 0x2545F4914F6CDD1D


class XorShiftRNG:
    """64-bit xorshift* generator (Marsaglia shift triple 12, 25, 27)."""

    __slots__ = ("_state",)

    def __init__(self, seed: int) -> None:
        if isinstance(seed, bool) or not isinstance(seed, int):
            raise InvalidConfigurationError("seed must be an integer.")
        state = seed & _MASK64
        if state == 0:
            raise InvalidConfigurationError("seed must be non-zero modulo 2**64.")
        self._state = state

    @property
    def state(self) -> int:
        return self._state

    def next_u32(self) -> int:
        state = self._state
        state ^= state >> 12
        state ^= (state << 25) & _MASK64
        state ^= state >> 27
        self._state = state
        return ((state * _XORSHIFT_STAR_MULTIPLIER) & _MASK64) >> 32

    def next_f32(self) -> float:
        """Uniform float in [0, 1) with 24 bits of precision."""

        return (self.next_u32() >> 8) / 16777216.0


def sample_discrete(probs: Sequence[float], coin: float) -> int:
    """Draw an index from `probs` using a uniform `coin` in [0, 1)."""

    if len(probs) == 0:
        raise ValueError("Cannot sample from an empty distribution.")
    cdf = 0.0
    for i, prob in enumerate(probs):
        cdf += float(prob)
        if coin < cdf:
            return i
    # rounding can leave the cumulative sum just below coin
    return len(probs) - 1
