from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

_DEFAULT_STD = math.radians(15.0)
_ANGULAR_FIELDS = ("visual_field", "avoidance_attraction_std", "alignment_std")


@dataclass
class SchoolingConfig:
    gamma_k: float = 4.0
    gamma_a: float = 3.3
    # Multiplier applied to every gamma speed draw.
    speed_scale: float = 10.0
    avoidance_radius: float = 50.0
    alignment_radius: float = 30.0
    attraction_radius: float = 15.0
    visual_field: float = math.radians(150.0)
    avoidance_attraction_std: float = _DEFAULT_STD
    alignment_std: float = _DEFAULT_STD
    reference_factor: float = 0.5


@dataclass
class IdleConfig:
    chance_to_change_direction: float = 0.1
    chance_to_change_speed: float = 0.05
    chance_to_change_stress: float = 0.001
    speed_range: tuple[float, float] = (10.0, 100.0)
    stress_range: tuple[float, float] = (0.1, 0.5)


@dataclass
class SimulationConfig:
    time_step: float = 1.0 / 30.0
    initial_population: int = 200
    width: float = 1024.0
    height: float = 576.0
    seed: int = 42
    workers: int = 1
    initial_stress: float = 0.1
    config_version: str = "v1"
    schooling: SchoolingConfig = field(default_factory=SchoolingConfig)
    idle: IdleConfig = field(default_factory=IdleConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        logger.info("Loaded simulation config from %s", path)
        return load_config(data)


@dataclass
class AppConfig:
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    broadcast_interval: int = 2


def _check_keys(section: str, raw: Dict[str, Any], allowed: set[str]) -> None:
    unknown = sorted(set(raw) - allowed)
    if unknown:
        raise ValueError(f"Unknown {section} config key(s): {', '.join(unknown)}")


def _field_names(cls: type) -> set[str]:
    return {f.name for f in fields(cls)}


def _pair(raw: Dict[str, Any], key: str, default: tuple[float, float]) -> tuple[float, float]:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, (tuple, list)) or len(value) != 2:
        raise ValueError(f"idle.{key} must be a [low, high] pair, got {value!r}")
    return (float(value[0]), float(value[1]))


def load_config(raw: dict) -> SimulationConfig:
    if not isinstance(raw, dict):
        raise ValueError(f"Config document must be a mapping, got {type(raw).__name__}")
    default_idle = IdleConfig()

    schooling_raw = dict(raw.get("schooling") or {})
    # Angular fields may be given in degrees with a `_degrees` suffix.
    for key in _ANGULAR_FIELDS:
        degrees_key = f"{key}_degrees"
        if degrees_key in schooling_raw:
            schooling_raw[key] = math.radians(float(schooling_raw.pop(degrees_key)))
    _check_keys("schooling", schooling_raw, _field_names(SchoolingConfig))
    schooling = SchoolingConfig(**schooling_raw)

    idle_raw = dict(raw.get("idle") or {})
    _check_keys("idle", idle_raw, _field_names(IdleConfig))
    idle_values = {k: v for k, v in idle_raw.items() if k not in {"speed_range", "stress_range"}}
    idle = IdleConfig(
        speed_range=_pair(idle_raw, "speed_range", default_idle.speed_range),
        stress_range=_pair(idle_raw, "stress_range", default_idle.stress_range),
        **idle_values,
    )

    sim_values = {k: v for k, v in raw.items() if k not in {"schooling", "idle"}}
    _check_keys("simulation", sim_values, _field_names(SimulationConfig) - {"schooling", "idle"})
    return SimulationConfig(schooling=schooling, idle=idle, **sim_values)
