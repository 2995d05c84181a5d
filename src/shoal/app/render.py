from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from pygame.math import Vector2

from ..sim.types.snapshot import Snapshot
from ..sim.utils.math2d import _clamp_value, _safe_normalize_xy

# Agents at or below this speed are drawn as dots.
MIN_TRIANGLE_SPEED = 0.1
FISH_LENGTH = 6.0
FISH_HALF_WIDTH = 3.0
DOT_RADIUS = 2.0
# Speed that maps to the hot end of the color ramp.
COLOR_MAX_SPEED = 30.0

Color = Tuple[int, int, int]
Point = Tuple[float, float]


@dataclass(frozen=True, slots=True)
class Shape:
    kind: str
    points: List[Point]
    radius: float
    color: Color

    def to_payload(self) -> dict:
        return {
            "kind": self.kind,
            "points": [list(point) for point in self.points],
            "radius": self.radius,
            "color": list(self.color),
        }


def speed_to_color(speed: float, max_speed: float = COLOR_MAX_SPEED) -> Color:
    """Blue for still agents, ramping through green to red at `max_speed` and above."""
    t = 0.0 if max_speed <= 0.0 else _clamp_value(speed / max_speed, 0.0, 1.0)
    if t < 0.5:
        blend = t * 2.0
        return (0, int(round(255 * blend)), int(round(255 * (1.0 - blend))))
    blend = (t - 0.5) * 2.0
    return (int(round(255 * blend)), int(round(255 * (1.0 - blend))), 0)


def agent_shape(position: Point, velocity: Point, speed: float, origin: Point = (0.0, 0.0)) -> Shape:
    screen = Vector2(origin[0] + position[0], origin[1] + position[1])
    color = speed_to_color(speed)
    direction = _safe_normalize_xy(velocity[0], velocity[1])
    if speed <= MIN_TRIANGLE_SPEED or direction.length_squared() == 0.0:
        return Shape(kind="dot", points=[(screen.x, screen.y)], radius=DOT_RADIUS, color=color)

    nose = screen + direction * FISH_LENGTH
    right = Vector2(direction.y, -direction.x) * FISH_HALF_WIDTH
    tail_base = screen - direction * (FISH_LENGTH * 0.5)
    corner_left = tail_base - right
    corner_right = tail_base + right
    return Shape(
        kind="triangle",
        points=[(nose.x, nose.y), (corner_right.x, corner_right.y), (corner_left.x, corner_left.y)],
        radius=0.0,
        color=color,
    )


def render_frame(snapshot: Snapshot) -> List[Shape]:
    return [
        agent_shape(position, velocity, speed, snapshot.origin)
        for position, velocity, speed in zip(snapshot.positions, snapshot.velocities, snapshot.speeds)
    ]
