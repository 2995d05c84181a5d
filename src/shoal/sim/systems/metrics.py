from __future__ import annotations

import math
from typing import Sequence

from ..core.agent import Agent, Behavior
from ..types.metrics import TickMetrics


def create_metrics(tick: int, agents: Sequence[Agent], duration_ms: float) -> TickMetrics:
    population = len(agents)
    counts = {behavior: 0 for behavior in Behavior}
    speed_sum = 0.0
    stress_sum = 0.0
    heading_x = 0.0
    heading_y = 0.0
    for agent in agents:
        counts[agent.behavior] += 1
        speed_sum += agent.speed
        stress_sum += agent.stress
        heading_x += math.cos(agent.heading)
        heading_y += math.sin(agent.heading)

    if population > 0:
        average_speed = speed_sum / population
        average_stress = stress_sum / population
        polarization = math.hypot(heading_x, heading_y) / population
    else:
        average_speed = 0.0
        average_stress = 0.0
        polarization = 0.0

    return TickMetrics(
        tick=tick,
        population=population,
        avoiding=counts[Behavior.AVOIDANCE],
        aligning=counts[Behavior.ALIGNMENT],
        attracted=counts[Behavior.ATTRACTION],
        wandering=counts[Behavior.WANDER],
        average_speed=average_speed,
        average_stress=average_stress,
        polarization=polarization,
        tick_duration_ms=duration_ms,
    )
