from __future__ import annotations

from pygame.math import Vector2
from pytest import approx

from shoal.sim.core.config import IdleConfig
from shoal.sim.core.rng import DeterministicRng
from shoal.sim.systems.idle import apply_idle_drift


def test_direction_trigger_rate_matches_probability():
    rng = DeterministicRng(2025)
    config = IdleConfig()
    velocity = Vector2(1.0, 0.0)
    trials = 1_000_000
    triggered = 0
    for _ in range(trials):
        if apply_idle_drift(rng, velocity, 50.0, 0.2, config).direction_changed:
            triggered += 1

    assert triggered / trials == approx(0.10, abs=0.0015)


def test_stress_lerp_stays_between_old_and_sampled_target():
    config = IdleConfig(chance_to_change_direction=0.0, chance_to_change_speed=0.0, chance_to_change_stress=1.0)
    low, high = config.stress_range
    for seed in range(1_000):
        old_stress = 0.05 + (seed % 50) * 0.01
        result = apply_idle_drift(DeterministicRng(seed), Vector2(), 20.0, old_stress, config)

        # Replay the same stream: three Bernoulli draws, then target, then blend.
        replay = DeterministicRng(seed)
        for _ in range(3):
            replay.next_float()
        target = replay.next_range(low, high)
        blend = replay.next_float()

        assert result.stress_changed
        assert result.stress == approx(old_stress + (target - old_stress) * blend)
        assert min(old_stress, target) - 1e-12 <= result.stress <= max(old_stress, target) + 1e-12


def test_nothing_changes_without_triggers():
    config = IdleConfig(chance_to_change_direction=0.0, chance_to_change_speed=0.0, chance_to_change_stress=0.0)
    velocity = Vector2(3.0, 4.0)
    result = apply_idle_drift(DeterministicRng(1), velocity, 42.0, 0.3, config)

    assert result.target_velocity == velocity
    assert result.target_velocity is not velocity
    assert result.target_speed == 42.0
    assert result.stress == 0.3
    assert not (result.direction_changed or result.speed_changed or result.stress_changed)


def test_direction_drift_blends_toward_unit_direction():
    config = IdleConfig(chance_to_change_direction=1.0, chance_to_change_speed=0.0, chance_to_change_stress=0.0)
    rng = DeterministicRng(9)
    for _ in range(200):
        result = apply_idle_drift(rng, Vector2(), 10.0, 0.1, config)
        assert result.direction_changed
        assert result.target_velocity.length() <= 1.0 + 1e-9


def test_speed_drift_stays_in_band():
    config = IdleConfig(chance_to_change_direction=0.0, chance_to_change_speed=1.0, chance_to_change_stress=0.0)
    rng = DeterministicRng(10)
    speed = 5.0
    for _ in range(500):
        previous = speed
        speed = apply_idle_drift(rng, Vector2(), speed, 0.1, config).target_speed
        assert min(previous, 10.0) - 1e-9 <= speed <= max(previous, 100.0) + 1e-9
