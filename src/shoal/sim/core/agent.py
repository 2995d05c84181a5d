from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pygame.math import Vector2


class Behavior(str, Enum):
    IDLE = "Idle"
    AVOIDANCE = "Avoidance"
    ALIGNMENT = "Alignment"
    ATTRACTION = "Attraction"
    WANDER = "Wander"


@dataclass(slots=True)
class Agent:
    id: int
    position: Vector2
    velocity: Vector2
    speed: float = 0.0
    stress: float = 0.1
    heading: float = 0.0
    target_velocity: Vector2 = field(default_factory=Vector2)
    target_speed: float = 0.0
    behavior: Behavior = Behavior.IDLE
