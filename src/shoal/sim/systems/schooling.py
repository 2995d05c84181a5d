"""
Per-agent schooling update.

Each tick an agent resamples its speed, picks one visible neighbor and reacts to
it according to distance: steer perpendicular away (avoidance), match its
heading (alignment) or head toward it (attraction). With nobody in view the
agent picks a fresh heading uniformly at random.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from pygame.math import Vector2

from ..core.agent import Behavior
from ..core.config import SchoolingConfig
from ..core.rng import UniformSource
from ..types.snapshot import NeighborState
from ..utils.angle import TAU, angle_difference, unit_vector
from ..utils.math2d import _heading_from_velocity
from .neighbors import NeighborCandidate, select_neighbor
from .sampling import sample_gamma, sample_normal, sample_uniform

_QUARTER_TURN = math.pi / 2.0


@dataclass(frozen=True, slots=True)
class SchoolingResult:
    heading: float
    speed: float
    velocity: Vector2
    behavior: Behavior


def sample_speed(rng: UniformSource, params: SchoolingConfig) -> float:
    return sample_gamma(rng, params.gamma_k, 1.0 / params.gamma_a) * params.speed_scale


def avoidance_heading(current_heading: float, bearing: float) -> float:
    """The perpendicular to `bearing` closest to the current heading; ties go to bearing - pi/2."""
    left = bearing + _QUARTER_TURN
    right = bearing - _QUARTER_TURN
    left_diff = abs(angle_difference(current_heading, left))
    right_diff = abs(angle_difference(current_heading, right))
    return left if left_diff < right_diff else right


def respond_to_neighbor(
    rng: UniformSource,
    position: Vector2,
    current_heading: float,
    neighbor: NeighborCandidate,
    params: SchoolingConfig,
) -> tuple[float, Behavior]:
    bearing = math.atan2(neighbor.position.y - position.y, neighbor.position.x - position.x)
    if neighbor.distance < params.avoidance_radius:
        mean = avoidance_heading(current_heading, bearing)
        return sample_normal(rng, mean, params.avoidance_attraction_std), Behavior.AVOIDANCE
    if neighbor.distance < params.alignment_radius:
        neighbor_heading = math.atan2(neighbor.velocity.y, neighbor.velocity.x)
        return sample_normal(rng, neighbor_heading, params.alignment_std), Behavior.ALIGNMENT
    return sample_normal(rng, bearing, params.avoidance_attraction_std), Behavior.ATTRACTION


def schooling_step(
    rng: UniformSource,
    position: Vector2,
    velocity: Vector2,
    neighbors: Iterable[NeighborState],
    params: SchoolingConfig,
) -> SchoolingResult:
    """
    Compute an agent's next heading and speed.

    `neighbors` must not contain the agent itself and is only read. Speed is
    drawn first, then the neighbor, then the heading, so a seeded source
    replays the same update.
    """
    speed = sample_speed(rng, params)
    current_heading = _heading_from_velocity(velocity)

    chosen = select_neighbor(
        rng,
        position,
        current_heading,
        neighbors,
        params.attraction_radius,
        params.visual_field,
        params.reference_factor,
    )
    if chosen is None:
        heading = sample_uniform(rng, 0.0, TAU)
        behavior = Behavior.WANDER
    else:
        heading, behavior = respond_to_neighbor(rng, position, current_heading, chosen, params)

    return SchoolingResult(
        heading=heading,
        speed=speed,
        velocity=unit_vector(heading) * speed,
        behavior=behavior,
    )
