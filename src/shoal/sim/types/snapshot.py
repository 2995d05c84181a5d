from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Tuple

from pygame.math import Vector2

from .metrics import TickMetrics

if TYPE_CHECKING:
    from ..core.agent import Agent


@dataclass(frozen=True, slots=True)
class NeighborState:
    position: Vector2
    velocity: Vector2
    speed: float


class NeighborSnapshot(Mapping[int, NeighborState]):
    """
    Read-only view of every agent's position, velocity and speed, keyed by agent id.

    Captured once at the start of a tick. Vectors are copied on capture so later
    writes to agents never show through.
    """

    __slots__ = ("_states",)

    def __init__(self, states: Dict[int, NeighborState]) -> None:
        self._states = MappingProxyType(dict(states))

    @classmethod
    def capture(cls, agents: Iterable["Agent"]) -> "NeighborSnapshot":
        return cls(
            {
                agent.id: NeighborState(
                    position=Vector2(agent.position),
                    velocity=Vector2(agent.velocity),
                    speed=float(agent.speed),
                )
                for agent in agents
            }
        )

    @classmethod
    def empty(cls) -> "NeighborSnapshot":
        return cls({})

    def __getitem__(self, agent_id: int) -> NeighborState:
        return self._states[agent_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self._states)

    def __len__(self) -> int:
        return len(self._states)

    def others(self, exclude_id: int | None) -> Iterator[Tuple[int, NeighborState]]:
        for agent_id, state in self._states.items():
            if agent_id == exclude_id:
                continue
            yield agent_id, state


@dataclass(slots=True)
class Snapshot:
    tick: int
    metrics: TickMetrics
    positions: List[Tuple[float, float]]
    velocities: List[Tuple[float, float]]
    speeds: List[float]
    origin: Tuple[float, float]
    world: "SnapshotWorld"
    metadata: "SnapshotMetadata"


@dataclass(slots=True)
class SnapshotWorld:
    width: float
    height: float


@dataclass(slots=True)
class SnapshotMetadata:
    sim_dt: float
    tick_rate: float
    seed: int
    workers: int
    config_version: str
