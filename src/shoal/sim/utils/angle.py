from __future__ import annotations

import math
from dataclasses import dataclass

from pygame.math import Vector2

TAU = 2.0 * math.pi


def normalize_angle(radians: float) -> float:
    """Map an angle into (-pi, pi]."""
    if -math.pi < radians <= math.pi:
        return radians
    wrapped = (radians + math.pi) % TAU - math.pi
    if wrapped <= -math.pi:
        return math.pi
    return wrapped


def angle_difference(from_radians: float, to_radians: float) -> float:
    """Signed shortest rotation taking `from_radians` onto `to_radians`."""
    return normalize_angle(to_radians - from_radians)


def lerp_angle(from_radians: float, to_radians: float, t: float) -> float:
    """
    Interpolate along the shorter arc of the circle.

    The arc offset lies in [-pi, pi), so exactly opposite angles turn the negative way.
    The result is not renormalized; callers wrap it when they need the canonical range.
    """
    diff = (to_radians - from_radians + math.pi) % TAU - math.pi
    t_clamped = max(0.0, min(1.0, t))
    return from_radians + diff * t_clamped


def angle_from_vector(x: float, y: float) -> float:
    return math.atan2(y, x)


def unit_vector(radians: float) -> Vector2:
    return Vector2(math.cos(radians), math.sin(radians))


@dataclass(frozen=True, slots=True)
class Angle:
    radians: float = 0.0

    @staticmethod
    def from_vector(vector: Vector2) -> "Angle":
        return Angle(angle_from_vector(vector.x, vector.y))

    def to_vector(self) -> Vector2:
        return unit_vector(self.radians)

    def normalized(self) -> "Angle":
        return Angle(normalize_angle(self.radians))

    def add(self, other: "Angle") -> "Angle":
        return Angle(self.radians + other.radians)

    def sub(self, other: "Angle") -> "Angle":
        return Angle(self.radians - other.radians)

    def scale(self, factor: float) -> "Angle":
        return Angle(self.radians * factor)

    def lerp(self, to: "Angle", t: float) -> "Angle":
        return Angle(lerp_angle(self.radians, to.radians, t))

    def __add__(self, other: "Angle") -> "Angle":
        return self.add(other)

    def __sub__(self, other: "Angle") -> "Angle":
        return self.sub(other)

    def __mul__(self, factor: float) -> "Angle":
        return self.scale(factor)

    def __neg__(self) -> "Angle":
        return Angle(-self.radians)

    def __abs__(self) -> "Angle":
        return Angle(abs(self.radians))

    def __float__(self) -> float:
        return self.radians
