from __future__ import annotations

import math
import random
from typing import Protocol

from pygame.math import Vector2

_STREAM_MIX = 0x9E3779B97F4A7C15


def derive_stream_seed(seed: int, salt: int, index: int = 0) -> int:
    return (int(seed) ^ int(salt) ^ ((int(index) * _STREAM_MIX) & 0xFFFFFFFFFFFFFFFF)) & 0xFFFFFFFFFFFFFFFF


class UniformSource(Protocol):
    def next_float(self) -> float:
        """Uniform real in [0, 1)."""
        ...

    def next_range(self, low: float, high: float) -> float:
        ...


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_float(self) -> float:
        return self._random.random()

    def next_range(self, low: float, high: float) -> float:
        return low + (high - low) * self._random.random()

    def next_bool(self, probability: float) -> bool:
        return self._random.random() < probability

    def next_unit_circle(self) -> Vector2:
        angle = self.next_range(0.0, 2 * math.pi)
        return Vector2(math.cos(angle), math.sin(angle))
