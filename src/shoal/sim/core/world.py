from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from time import perf_counter
from typing import List, Tuple

from pygame.math import Vector2

from .agent import Agent
from .config import SimulationConfig
from .rng import DeterministicRng, derive_stream_seed
from ..systems import idle, metrics as metrics_system, schooling
from ..types.metrics import TickMetrics
from ..types.snapshot import NeighborSnapshot, Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.angle import TAU, normalize_angle, unit_vector
from ..utils.math2d import _wrap_coordinate

logger = logging.getLogger(__name__)

_WORLD_RNG_SALT = 0x5EED0F15B0A7C0DE
_SCHOOLING_RNG_SALT = 0x5C400117A11C0FFE
_IDLE_RNG_SALT = 0x1D1ED81F7A5EED00


@dataclass(frozen=True, slots=True)
class AgentUpdate:
    schooling_result: schooling.SchoolingResult
    idle_result: idle.IdleDriftResult


class World:
    """
    Arena of agents updated in lock-step ticks.

    Every tick reads one shared `NeighborSnapshot`, computes all next states into
    a separate buffer (optionally across a thread pool) and commits them together.
    Each agent owns its own schooling and idle random streams, so results do not
    depend on the number of workers.
    """

    def __init__(self, config: SimulationConfig):
        self._config = config
        self._rng = DeterministicRng(derive_stream_seed(config.seed, _WORLD_RNG_SALT))
        self._agents: List[Agent] = []
        self._schooling_rngs: List[DeterministicRng] = []
        self._idle_rngs: List[DeterministicRng] = []
        self._metrics: TickMetrics | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._bootstrap_population()

    @property
    def agents(self) -> List[Agent]:
        return self._agents

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def reset(self) -> None:
        self._agents.clear()
        self._schooling_rngs.clear()
        self._idle_rngs.clear()
        self._rng.reset()
        self._metrics = None
        self._bootstrap_population()
        logger.info("World reset with %d agents (seed=%d)", len(self._agents), self._config.seed)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def add_agent(self, position: Vector2, velocity: Vector2, stress: float | None = None) -> Agent:
        agent_id = len(self._agents)
        speed = velocity.length()
        agent = Agent(
            id=agent_id,
            position=Vector2(position),
            velocity=Vector2(velocity),
            speed=speed,
            stress=self._config.initial_stress if stress is None else stress,
            heading=math.atan2(velocity.y, velocity.x),
            target_velocity=Vector2(velocity),
            target_speed=speed,
        )
        self._agents.append(agent)
        self._schooling_rngs.append(
            DeterministicRng(derive_stream_seed(self._config.seed, _SCHOOLING_RNG_SALT, agent_id))
        )
        self._idle_rngs.append(DeterministicRng(derive_stream_seed(self._config.seed, _IDLE_RNG_SALT, agent_id)))
        return agent

    def step(self, tick: int) -> TickMetrics:
        start = perf_counter()
        snapshot = NeighborSnapshot.capture(self._agents)
        updates = self._compute_updates(snapshot)
        self._commit(updates)
        duration_ms = (perf_counter() - start) * 1000.0
        self._metrics = metrics_system.create_metrics(tick, self._agents, duration_ms)
        logger.debug(
            "tick=%d avoid=%d align=%d attract=%d wander=%d polarization=%.3f",
            tick,
            self._metrics.avoiding,
            self._metrics.aligning,
            self._metrics.attracted,
            self._metrics.wandering,
            self._metrics.polarization,
        )
        return self._metrics

    def snapshot(self, tick: int, origin: Tuple[float, float] = (0.0, 0.0)) -> Snapshot:
        metrics = self._metrics if self._metrics is not None else metrics_system.create_metrics(tick, self._agents, 0.0)
        time_step = self._config.time_step
        return Snapshot(
            tick=tick,
            metrics=metrics,
            positions=[(agent.position.x, agent.position.y) for agent in self._agents],
            velocities=[(agent.velocity.x, agent.velocity.y) for agent in self._agents],
            speeds=[agent.speed for agent in self._agents],
            origin=(float(origin[0]), float(origin[1])),
            world=SnapshotWorld(width=self._config.width, height=self._config.height),
            metadata=SnapshotMetadata(
                sim_dt=time_step,
                tick_rate=0.0 if time_step <= 0 else 1.0 / time_step,
                seed=self._config.seed,
                workers=self._worker_count(),
                config_version=self._config.config_version,
            ),
        )

    def _compute_updates(self, snapshot: NeighborSnapshot) -> List[AgentUpdate]:
        count = len(self._agents)
        workers = self._worker_count()
        if workers <= 1 or count < 2:
            return self._update_range(snapshot, 0, count)

        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="shoal-step")
        chunk = int(math.ceil(count / workers))
        bounds = [(begin, min(count, begin + chunk)) for begin in range(0, count, chunk)]
        futures = [self._executor.submit(self._update_range, snapshot, begin, end) for begin, end in bounds]
        updates: List[AgentUpdate] = []
        for future in futures:
            updates.extend(future.result())
        return updates

    def _update_range(self, snapshot: NeighborSnapshot, begin: int, end: int) -> List[AgentUpdate]:
        params = self._config.schooling
        idle_config = self._config.idle
        updates: List[AgentUpdate] = []
        for index in range(begin, end):
            agent = self._agents[index]
            own = snapshot[agent.id]
            neighbors = (state for _, state in snapshot.others(agent.id))
            schooling_result = schooling.schooling_step(
                self._schooling_rngs[index],
                own.position,
                own.velocity,
                neighbors,
                params,
            )
            idle_result = idle.apply_idle_drift(
                self._idle_rngs[index],
                agent.target_velocity,
                agent.target_speed,
                agent.stress,
                idle_config,
            )
            updates.append(AgentUpdate(schooling_result=schooling_result, idle_result=idle_result))
        return updates

    def _commit(self, updates: List[AgentUpdate]) -> None:
        config = self._config
        dt = config.time_step
        for agent, update in zip(self._agents, updates):
            result = update.schooling_result
            drift = update.idle_result
            agent.velocity = Vector2(result.velocity)
            agent.speed = result.speed
            agent.heading = normalize_angle(result.heading)
            agent.behavior = result.behavior
            agent.target_velocity = Vector2(drift.target_velocity)
            agent.target_speed = drift.target_speed
            agent.stress = drift.stress
            agent.position.update(
                _wrap_coordinate(agent.position.x + agent.velocity.x * dt, config.width),
                _wrap_coordinate(agent.position.y + agent.velocity.y * dt, config.height),
            )

    def _worker_count(self) -> int:
        return max(1, int(self._config.workers))

    def _bootstrap_population(self) -> None:
        config = self._config
        for _ in range(config.initial_population):
            position = Vector2(
                self._rng.next_range(0.0, config.width),
                self._rng.next_range(0.0, config.height),
            )
            heading = self._rng.next_range(0.0, TAU)
            speed = schooling.sample_speed(self._rng, config.schooling)
            self.add_agent(position, unit_vector(heading) * speed)
        logger.debug("Bootstrapped %d agents in %.0fx%.0f area", len(self._agents), config.width, config.height)
