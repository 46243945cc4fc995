"""Backoff duration policy with jitter."""

from __future__ import annotations

import random
from dataclasses import dataclass, field

DEFAULT_INITIAL_SECONDS = 0.5
DEFAULT_CEILING_SECONDS = 15.0
DEFAULT_JITTER_DIVISOR = 50.0


@dataclass(frozen=True)
class BackoffPolicy:
    """Computes the next wait from the previous one.

    Below the ceiling the wait doubles; above it the wait only creeps up by
    jitter. Jitter is symmetric noise of ``d / jitter_divisor`` scaled by a
    uniform draw in ``[-0.5, 0.5)``.
    """

    initial_seconds: float = DEFAULT_INITIAL_SECONDS
    ceiling_seconds: float = DEFAULT_CEILING_SECONDS
    jitter_divisor: float = DEFAULT_JITTER_DIVISOR
    rng: random.Random = field(default_factory=random.Random, compare=False, repr=False)

    def jitter(self, duration: float) -> float:
        spread = duration / self.jitter_divisor
        return spread * (self.rng.random() - 0.5)

    def next(self, previous: float) -> float:
        if previous > self.ceiling_seconds:
            return previous + self.jitter(previous)
        doubled = previous * 2
        return doubled + self.jitter(doubled)
