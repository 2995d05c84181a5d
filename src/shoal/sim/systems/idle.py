from __future__ import annotations

from dataclasses import dataclass

from pygame.math import Vector2

from ..core.config import IdleConfig
from ..core.rng import DeterministicRng
from ..utils.math2d import _lerp_value, _lerp_vector


@dataclass(frozen=True, slots=True)
class IdleDriftResult:
    target_velocity: Vector2
    target_speed: float
    stress: float
    direction_changed: bool = False
    speed_changed: bool = False
    stress_changed: bool = False


def apply_idle_drift(
    rng: DeterministicRng,
    target_velocity: Vector2,
    target_speed: float,
    stress: float,
    config: IdleConfig,
) -> IdleDriftResult:
    """
    Nudge an agent's targets and stress independently of its neighbors.

    Three Bernoulli trials run in order (direction, speed, stress). A triggered
    trial samples a fresh target value, then a blend factor in [0, 1), and
    moves the current value that fraction of the way toward the target.
    """
    new_velocity = Vector2(target_velocity)
    new_speed = target_speed
    new_stress = stress

    direction_changed = rng.next_bool(config.chance_to_change_direction)
    if direction_changed:
        direction = rng.next_unit_circle()
        new_velocity = _lerp_vector(new_velocity, direction, rng.next_float())

    speed_changed = rng.next_bool(config.chance_to_change_speed)
    if speed_changed:
        low, high = config.speed_range
        goal = rng.next_range(low, high)
        new_speed = _lerp_value(new_speed, goal, rng.next_float())

    stress_changed = rng.next_bool(config.chance_to_change_stress)
    if stress_changed:
        low, high = config.stress_range
        goal = rng.next_range(low, high)
        new_stress = _lerp_value(new_stress, goal, rng.next_float())

    return IdleDriftResult(
        target_velocity=new_velocity,
        target_speed=new_speed,
        stress=new_stress,
        direction_changed=direction_changed,
        speed_changed=speed_changed,
        stress_changed=stress_changed,
    )
