"""Seeded linear-congruential random stream.

Dungeon layouts must be reproducible from ``(seed, floor)`` alone, so the
generator draws from this LCG instead of the process-global ``random`` module.
The constants are fixed: changing them changes every dungeon ever issued for a
given seed.

Any object exposing ``random()`` and ``below(n)`` can stand in for
:class:`SeededRandom` (tests use scripted stubs).
"""

from __future__ import annotations

from typing import Tuple

MULTIPLIER = 1103515245
INCREMENT = 12345
MODULUS = 2**31
DIVISOR = 2**31 - 1


def lcg_next(state: int) -> Tuple[float, int]:
    """Advance ``state`` one step; return ``(value, new_state)``.

    ``value`` is ``new_state / (2**31 - 1)``; the single state ``2**31 - 1``
    maps to exactly 1.0, which :meth:`SeededRandom.below` clamps.
    """
    new_state = (state * MULTIPLIER + INCREMENT) % MODULUS
    return new_state / DIVISOR, new_state


class SeededRandom:
    def __init__(self, seed: int):
        self.seed = seed
        self.state = seed % MODULUS

    def random(self) -> float:
        value, self.state = lcg_next(self.state)
        return value

    def below(self, n: int) -> int:
        """Uniform integer in ``[0, n)``."""
        if n <= 0:
            raise ValueError("below() requires n > 0")
        return min(n - 1, int(self.random() * n))

    def chance(self, probability: float) -> bool:
        return self.random() < probability

    def __repr__(self):
        return f"<SeededRandom seed={self.seed} state={self.state}>"


__all__ = ["SeededRandom", "lcg_next"]
