from __future__ import annotations

import math

from pygame.math import Vector2


def _safe_normalize_xy(x: float, y: float) -> Vector2:
    magnitude_sq = x * x + y * y
    if magnitude_sq < 1e-10:
        return Vector2()
    inv = 1.0 / math.sqrt(magnitude_sq)
    return Vector2(x * inv, y * inv)


def _heading_from_velocity(vector: Vector2) -> float:
    if vector.length_squared() < 1e-12:
        return 0.0
    return math.atan2(vector.y, vector.x)


def _clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))


def _lerp_value(start: float, end: float, t: float) -> float:
    return start + (end - start) * t


def _lerp_vector(start: Vector2, end: Vector2, t: float) -> Vector2:
    return Vector2(_lerp_value(start.x, end.x, t), _lerp_value(start.y, end.y, t))


def _wrap_coordinate(value: float, extent: float) -> float:
    if extent <= 0.0:
        return value
    wrapped = value % extent
    # Float modulo can round up to the extent itself for tiny negative inputs.
    if wrapped >= extent:
        return 0.0
    return wrapped
