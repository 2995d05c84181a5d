from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence, TypeVar

from pygame.math import Vector2

from ..core.rng import UniformSource
from ..types.snapshot import NeighborState
from ..utils.angle import angle_difference

_T = TypeVar("_T")

# Neighbors this close are treated as coincident with the agent.
COINCIDENT_DISTANCE = 1e-4


@dataclass(frozen=True, slots=True)
class NeighborCandidate:
    distance: float
    angular_offset: float
    position: Vector2
    velocity: Vector2


def collect_visible(
    position: Vector2,
    heading: float,
    neighbors: Iterable[NeighborState],
    visual_field: float,
) -> List[NeighborCandidate]:
    """Every neighbor inside the visual field, in snapshot order."""
    half_field = visual_field * 0.5
    pos_x = position.x
    pos_y = position.y
    visible: List[NeighborCandidate] = []
    for neighbor in neighbors:
        offset_x = neighbor.position.x - pos_x
        offset_y = neighbor.position.y - pos_y
        distance = math.sqrt(offset_x * offset_x + offset_y * offset_y)
        if distance <= COINCIDENT_DISTANCE:
            continue
        offset = angle_difference(heading, math.atan2(offset_y, offset_x))
        if abs(offset) < half_field:
            visible.append(NeighborCandidate(distance, offset, neighbor.position, neighbor.velocity))
    return visible


def rank_candidates(visible: Sequence[NeighborCandidate], attraction_radius: float) -> List[NeighborCandidate]:
    """
    Order the candidates the selector draws from.

    Neighbors inside the attraction radius win and are ranked by how central they
    are in view. Without any, every visible neighbor is ranked nearest first.
    """
    near = [candidate for candidate in visible if candidate.distance < attraction_radius]
    if near:
        return sorted(near, key=lambda candidate: abs(candidate.angular_offset))
    return sorted(visible, key=lambda candidate: candidate.distance)


def select_weighted(rng: UniformSource, candidates: Sequence[_T], reference_factor: float) -> _T | None:
    """Pick the candidate at rank i with weight reference_factor ** i."""
    count = len(candidates)
    if count == 0:
        return None

    weights: List[float] = []
    total = 0.0
    weight = 1.0
    for _ in range(count):
        weights.append(weight)
        total += weight
        weight *= reference_factor

    draw = rng.next_range(0.0, total)
    accum = 0.0
    for candidate, candidate_weight in zip(candidates, weights):
        accum += candidate_weight
        if draw < accum:
            return candidate
    return candidates[-1]


def select_neighbor(
    rng: UniformSource,
    position: Vector2,
    heading: float,
    neighbors: Iterable[NeighborState],
    attraction_radius: float,
    visual_field: float,
    reference_factor: float,
) -> NeighborCandidate | None:
    visible = collect_visible(position, heading, neighbors, visual_field)
    if not visible:
        return None
    return select_weighted(rng, rank_candidates(visible, attraction_radius), reference_factor)
