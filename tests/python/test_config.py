from __future__ import annotations

import math
from pathlib import Path

import pytest
from pytest import approx

from shoal.sim.core.config import AppConfig, IdleConfig, SchoolingConfig, SimulationConfig, load_config


def test_schooling_defaults_match_reference_configuration():
    params = SchoolingConfig()

    assert params.gamma_k == approx(4.0)
    assert params.gamma_a == approx(3.3)
    assert params.speed_scale == approx(10.0)
    assert (params.avoidance_radius, params.alignment_radius, params.attraction_radius) == (50.0, 30.0, 15.0)
    assert params.visual_field == approx(math.radians(150.0))
    assert params.avoidance_attraction_std == approx(math.radians(15.0))
    assert params.alignment_std == approx(math.radians(15.0))
    assert params.reference_factor == approx(0.5)


def test_idle_defaults():
    idle = IdleConfig()

    assert idle.chance_to_change_direction == approx(0.1)
    assert idle.chance_to_change_speed == approx(0.05)
    assert idle.chance_to_change_stress == approx(0.001)
    assert idle.speed_range == (10.0, 100.0)
    assert idle.stress_range == (0.1, 0.5)


def test_load_config_builds_nested_sections():
    config = load_config(
        {
            "seed": 9,
            "initial_population": 12,
            "workers": 3,
            "schooling": {"avoidance_radius": 20.0, "visual_field_degrees": 90.0},
            "idle": {"chance_to_change_speed": 0.5, "speed_range": [5, 15]},
        }
    )

    assert config.seed == 9
    assert config.initial_population == 12
    assert config.workers == 3
    assert config.schooling.avoidance_radius == approx(20.0)
    assert config.schooling.visual_field == approx(math.pi / 2)
    assert config.schooling.alignment_radius == approx(30.0)
    assert config.idle.chance_to_change_speed == approx(0.5)
    assert config.idle.speed_range == (5.0, 15.0)
    assert config.idle.stress_range == (0.1, 0.5)


def test_from_yaml(tmp_path):
    path = tmp_path / "shoal.yaml"
    path.write_text(
        "seed: 5\n"
        "width: 640\n"
        "height: 480\n"
        "schooling:\n"
        "  reference_factor: 0.25\n"
        "  alignment_std_degrees: 5\n"
        "idle:\n"
        "  stress_range: [0.2, 0.4]\n"
    )
    config = SimulationConfig.from_yaml(path)

    assert config.seed == 5
    assert config.width == 640
    assert config.height == 480
    assert config.schooling.reference_factor == approx(0.25)
    assert config.schooling.alignment_std == approx(math.radians(5.0))
    assert config.idle.stress_range == (0.2, 0.4)


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert SimulationConfig.from_yaml(path) == SimulationConfig()


@pytest.mark.parametrize(
    "raw, section",
    [
        ({"speed": 3}, "simulation"),
        ({"schooling": {"radius": 3}}, "schooling"),
        ({"idle": {"chance": 0.1}}, "idle"),
    ],
)
def test_unknown_keys_are_rejected(raw, section):
    with pytest.raises(ValueError, match=f"Unknown {section} config key"):
        load_config(raw)


def test_non_mapping_document_is_rejected():
    with pytest.raises(ValueError, match="mapping"):
        load_config(["seed", 1])


def test_bundled_config_matches_defaults():
    path = Path(__file__).resolve().parents[2] / "config" / "shoal.yaml"
    config = SimulationConfig.from_yaml(path)
    defaults = SimulationConfig()

    assert config.workers == 4
    assert config.time_step == approx(defaults.time_step, rel=1e-5)
    assert config.initial_population == defaults.initial_population
    assert config.schooling.visual_field == approx(defaults.schooling.visual_field)
    assert config.schooling.alignment_std == approx(defaults.schooling.alignment_std)
    assert config.idle == defaults.idle


def test_app_config_wraps_simulation_defaults():
    app_config = AppConfig()

    assert app_config.simulation == SimulationConfig()
    assert app_config.broadcast_interval >= 1


@pytest.mark.parametrize(
    "idle",
    [
        {"speed_range": [1.0, 2.0, 3.0]},
        {"speed_range": 5.0},
        {"stress_range": [0.2]},
    ],
)
def test_malformed_ranges_are_rejected(idle):
    with pytest.raises(ValueError, match="pair"):
        load_config({"idle": idle})
