from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..sim.core.config import SimulationConfig
from ..sim.core.world import World
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

_BASIC_HEADER = [
    "tick",
    "population",
    "avg_speed",
    "polarization",
    "tick_ms",
]

_DETAILED_HEADER = [
    "tick",
    "population",
    "avoiding",
    "aligning",
    "attracted",
    "wandering",
    "avg_speed",
    "avg_stress",
    "polarization",
    "tick_ms",
    "avoiding_ratio",
    "aligning_ratio",
    "attracted_ratio",
    "wandering_ratio",
    "tick_ms_per_agent",
    "avg_target_speed",
    "min_speed",
    "max_speed",
]


def _format_basic_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        f"{metrics.average_speed:.4f}",
        f"{metrics.polarization:.4f}",
        f"{tick_ms:.3f}",
    ]


def _format_detailed_row(world: World, metrics: TickMetrics, tick_ms: float) -> list[object]:
    population = metrics.population
    if population <= 0:
        ratios = [0.0, 0.0, 0.0, 0.0]
        tick_ms_per_agent = 0.0
        avg_target_speed = 0.0
        min_speed = 0.0
        max_speed = 0.0
    else:
        ratios = [
            metrics.avoiding / population,
            metrics.aligning / population,
            metrics.attracted / population,
            metrics.wandering / population,
        ]
        tick_ms_per_agent = tick_ms / population
        speeds = [agent.speed for agent in world.agents]
        avg_target_speed = sum(agent.target_speed for agent in world.agents) / population
        min_speed = min(speeds)
        max_speed = max(speeds)

    return [
        metrics.tick,
        population,
        metrics.avoiding,
        metrics.aligning,
        metrics.attracted,
        metrics.wandering,
        f"{metrics.average_speed:.4f}",
        f"{metrics.average_stress:.4f}",
        f"{metrics.polarization:.4f}",
        f"{tick_ms:.3f}",
        *(f"{ratio:.4f}" for ratio in ratios),
        f"{tick_ms_per_agent:.4f}",
        f"{avg_target_speed:.4f}",
        f"{min_speed:.4f}",
        f"{max_speed:.4f}",
    ]


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"count": 0, "mean": 0.0, "min": 0.0, "max": 0.0, "std": 0.0}
    mean = sum(values) / len(values)
    variance = sum((value - mean) ** 2 for value in values) / len(values)
    return {
        "count": len(values),
        "mean": float(mean),
        "min": float(min(values)),
        "max": float(max(values)),
        "std": float(math.sqrt(variance)),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    summary_window: int = 500,
    config_path: Optional[Path] = None,
    workers: Optional[int] = None,
    progress_interval: int = 0,
) -> list[TickMetrics]:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed
    if workers is not None:
        config.workers = workers

    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    world = World(config)
    logger.info(
        "Running %d ticks with %d agents (seed=%d, workers=%d)",
        steps,
        len(world.agents),
        config.seed,
        max(1, config.workers),
    )

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    history: list[TickMetrics] = []
    tick_ms_series: list[float] = []
    try:
        for tick in range(steps):
            metrics = world.step(tick)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            history.append(metrics)
            tick_ms_series.append(tick_ms)

            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(world, metrics, tick_ms))
                else:
                    writer.writerow(_format_basic_row(metrics, tick_ms))

            if progress_interval > 0 and (tick + 1) % progress_interval == 0:
                logger.info(
                    "tick %d/%d polarization=%.3f avg_speed=%.2f",
                    tick + 1,
                    steps,
                    metrics.polarization,
                    metrics.average_speed,
                )
    finally:
        if csv_file:
            csv_file.close()
        world.close()

    if summary_path:
        window = max(1, int(summary_window))
        tail = history[-window:]
        summary = {
            "steps": steps,
            "seed": config.seed,
            "population": config.initial_population,
            "workers": max(1, config.workers),
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "tick_ms": _summary_stats(tick_ms_series),
            "polarization": _summary_stats([m.polarization for m in history]),
            "average_speed": _summary_stats([m.average_speed for m in history]),
            "average_stress": _summary_stats([m.average_stress for m in history]),
            "behavior_totals": {
                "avoiding": sum(m.avoiding for m in history),
                "aligning": sum(m.aligning for m in history),
                "attracted": sum(m.attracted for m in history),
                "wandering": sum(m.wandering for m in history),
            },
            "tail_window": {
                "window": window,
                "polarization": _summary_stats([m.polarization for m in tail]),
                "average_speed": _summary_stats([m.average_speed for m in tail]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
        logger.info("Wrote summary to %s", summary_path)

    return history


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless fish shoal simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML simulation config")
    parser.add_argument("--workers", type=int, default=None, help="Worker threads for the per-agent update")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="detailed",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--summary-window",
        type=int,
        default=500,
        help="Tail window size (ticks) for summary stats.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--progress", type=int, default=500, help="Log progress every N ticks (0 disables).")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        summary_window=args.summary_window,
        config_path=args.config,
        workers=args.workers,
        progress_interval=args.progress,
    )


if __name__ == "__main__":
    main()
