from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    avoiding: int
    aligning: int
    attracted: int
    wandering: int
    average_speed: float
    average_stress: float
    polarization: float
    tick_duration_ms: float = 0.0
