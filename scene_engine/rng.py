"""Seeded randomness for show resolution."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Sequence, TypeVar

T = TypeVar("T")

_GOLDEN = 0x9E3779B9


@dataclass
class SeedSequence:
    """Derives one child seed per resolved show from the session seed."""

    session_seed: int
    counter: int = 0

    def spawn(self, index: int | None = None) -> "DeterministicRNG":
        if index is None:
            index = self.counter
            self.counter += 1
        return DeterministicRNG(self.session_seed ^ (index * _GOLDEN))


class DeterministicRNG:
    """Explicit random source so every roll can be replayed from its seed."""

    def __init__(self, seed: int) -> None:
        self._seed = seed & 0xFFFFFFFF
        # nosec B311 - deterministic pseudo-RNG acceptable for game mechanics
        self._random = random.Random(self._seed)

    @property
    def seed(self) -> int:
        return self._seed

    def roll_percent(self) -> float:
        """Uniform draw in [0, 100)."""

        return self._random.random() * 100

    def choice(self, seq: Sequence[T]) -> T:
        return self._random.choice(seq)

    def randint(self, a: int, b: int) -> int:
        return self._random.randint(a, b)

    def shuffle(self, seq) -> None:
        self._random.shuffle(seq)


__all__ = ["DeterministicRNG", "SeedSequence"]
