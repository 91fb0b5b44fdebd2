# experiments/main_grid.py
from __future__ import annotations

import logging
import sys
import time
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from environments import Grid, GridSpec, build_grid, discover_maps, filter_maps
from learners import TTD, BoltzmannSelector, EpsilonGreedySelector, LookUpTable, QLearner
from simulation import RewardHistory, Runner

from experiments.config import ExperimentConfig, parse_config
from experiments.logging_config import configure_logging
from experiments.output_artifacts import (
    ReportInputs,
    build_csv_row,
    grid_q_values,
    make_unique_dir,
    now_timestamp,
    write_args_json,
    write_report_txt,
    write_results_csv,
)

logger = logging.getLogger(__name__)


def build_selector(cfg: ExperimentConfig, seed: int):
    if cfg.selector == "egreedy":
        return EpsilonGreedySelector(cfg.epsilon, seed=seed)
    return BoltzmannSelector(cfg.temperature, seed=seed)


def build_q_tables(grid: Grid, quants: int | None = None) -> list[LookUpTable]:
    """One table per action over the (x, y) cell; by default one entry per cell."""
    qx = grid.x_size if quants is None else int(quants)
    qy = grid.y_size if quants is None else int(quants)
    return [
        LookUpTable([qx, qy], [0.0, 0.0], [float(grid.x_size), float(grid.y_size)])
        for _ in range(grid.n_actions)
    ]


def build_learner(cfg: ExperimentConfig, algorithm: str, grid: Grid, seed: int) -> QLearner:
    return QLearner(
        TTD(cfg.lambda_, cfg.m, cfg.gamma),
        build_selector(cfg, seed),
        build_q_tables(grid, cfg.quants),
        step_size=cfg.beta,
        algorithm=algorithm,
    )


def run_grid_experiment(spec: GridSpec, algorithm: str, cfg: ExperimentConfig) -> dict:
    grid = build_grid(spec, scale=cfg.scale, seed=cfg.seed)
    learner = build_learner(cfg, algorithm, grid, seed=cfg.seed + 1)
    history = RewardHistory()

    step_sink = None
    if cfg.delay > 0:
        def step_sink(trial: int, step: int, reward: float) -> None:
            time.sleep(cfg.delay)

    runner = Runner(
        learner,
        grid,
        n_trials=cfg.trials,
        n_steps=cfg.steps,
        trial_sink=history.record,
        step_sink=step_sink,
    )
    stats = runner.run()

    arrays = history.as_arrays()
    terminals = np.asarray([s.terminal for s in stats], dtype=bool)

    csv_rows = [
        build_csv_row(
            trial=s.trial,
            algorithm=algorithm,
            map_name=spec.name,
            mean_reward=s.mean_reward,
            steps=s.steps,
            terminal=s.terminal,
        )
        for s in stats
    ]

    if arrays["steps"].size:
        tail = arrays["steps"][-10:]
        print(f"{learner.__class__.__name__} [{algorithm}] on {spec.name} finished.")
        print(f"Trials reaching the goal: {int(np.sum(terminals))}/{len(stats)}")
        print(f"Mean steps (last {tail.size} trials): {float(np.mean(tail)):.2f}")

    return {
        "algo": algorithm,
        "grid": grid,
        "learner": learner,
        "trials": arrays["trials"],
        "mean_rewards": arrays["mean_rewards"],
        "steps": arrays["steps"],
        "terminals": terminals,
        "csv_rows": csv_rows,
    }


def save_run(results_dir: Path, spec: GridSpec, cfg: ExperimentConfig, out: dict) -> Path:
    grid: Grid = out["grid"]
    learner: QLearner = out["learner"]

    timestamp = now_timestamp()
    run_dir = make_unique_dir(results_dir, f"{spec.name}_{out['algo']}_{timestamp}")

    q_values = grid_q_values(learner, grid.x_size, grid.y_size)
    np.savez_compressed(
        run_dir / "data.npz",
        trials=out["trials"],
        mean_rewards=out["mean_rewards"],
        steps=out["steps"],
        terminals=out["terminals"],
        q_values=q_values,
        grid_map=grid.grid_map,
    )

    args_dict = cfg.to_dict()
    args_dict["algo"] = out["algo"]
    args_dict["map"] = spec.name
    args_dict["learner"] = learner.params()
    args_dict["grid"] = grid.params()
    write_args_json(run_dir, args_dict)

    start = (grid.start_x, grid.start_y) if grid.start_x >= 0 and grid.start_y >= 0 else None
    write_report_txt(
        run_dir,
        ReportInputs(
            experiment_name="Grid world",
            map_name=spec.name,
            learner_description=str(learner),
            args={k: v for k, v in args_dict.items() if k not in ("learner", "grid")},
            grid_map=grid.grid_map,
            start=start,
            mean_rewards=out["mean_rewards"].astype(float).tolist(),
            steps=out["steps"].astype(int).tolist(),
            terminals=out["terminals"].astype(bool).tolist(),
            q_values=q_values,
        ),
    )
    write_results_csv(run_dir, out["csv_rows"])
    return run_dir


def main(argv: list[str] | None = None) -> list[Path]:
    cfg = parse_config(argv)
    configure_logging(cfg.log_level)

    maps = filter_maps(discover_maps(), list(cfg.maps))
    if not maps:
        logger.warning("No maps matched %s", list(cfg.maps))
        return []

    cfg.results_dir.mkdir(parents=True, exist_ok=True)
    run_dirs: list[Path] = []
    for spec in maps:
        print("\n" + "=" * 72)
        print(f"Map: {spec.name} (size={spec.shape[0]}x{spec.shape[1]}, scale={cfg.scale})")
        print("=" * 72)

        for algorithm in cfg.algorithms:
            logger.info("Running %s on %s for %d trial(s)", algorithm, spec.name, cfg.trials)
            out = run_grid_experiment(spec, algorithm, cfg)
            run_dir = save_run(cfg.results_dir, spec, cfg, out)
            print(f"Saved results to: {run_dir}")
            run_dirs.append(run_dir)

    return run_dirs


if __name__ == "__main__":
    main()
