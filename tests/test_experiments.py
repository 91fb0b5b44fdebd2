# tests/test_experiments.py
"""
Tests for the experiment entry points.

Focus:
- command-line parsing into ExperimentConfig.
- run directories with args.json / trials.csv / data.npz / report.txt.
- summary plots and summary.csv built from those run directories.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path

import numpy as np

from experiments import build_summary, main_grid
from experiments.config import ExperimentConfig, parse_config
from experiments.logging_config import configure_logging
from experiments.output_artifacts import make_unique_dir, render_greedy_policy, render_map


def test_parse_config_defaults_and_overrides(tmp_path: Path) -> None:
    cfg = parse_config([])
    assert cfg.algorithms == ["qlearning", "sarsa"]
    assert (cfg.lambda_, cfg.m, cfg.gamma, cfg.beta) == (0.5, 10, 0.95, 0.5)

    cfg = parse_config(
        ["--algo", "sarsa", "--map", "open", "--map", "rooms", "--lambda", "0.9", "--quants", "4",
         "--selector", "egreedy", "--results-dir", str(tmp_path)]
    )
    assert cfg.algorithms == ["sarsa"]
    assert cfg.maps == ("open", "rooms")
    assert cfg.lambda_ == 0.9
    assert cfg.quants == 4
    assert cfg.selector == "egreedy"

    d = cfg.to_dict()
    assert d["lambda"] == 0.9
    assert "lambda_" not in d
    assert d["results_dir"] == str(tmp_path)
    json.dumps(d)


def test_config_is_frozen() -> None:
    cfg = ExperimentConfig()
    try:
        cfg.trials = 5
    except AttributeError:
        pass
    else:
        raise AssertionError("ExperimentConfig should be immutable")


def test_main_grid_writes_run_artifacts(tmp_path: Path) -> None:
    run_dirs = main_grid.main(
        ["--map", "open", "--trials", "3", "--steps", "60", "--m", "3", "--seed", "7",
         "--results-dir", str(tmp_path), "--log-level", "WARNING"]
    )
    assert len(run_dirs) == 2

    for run_dir, algo in zip(run_dirs, ["qlearning", "sarsa"]):
        assert run_dir.parent == tmp_path
        assert {p.name for p in run_dir.iterdir()} == {"args.json", "trials.csv", "data.npz", "report.txt"}

        args = json.loads((run_dir / "args.json").read_text(encoding="utf-8"))
        assert args["algo"] == algo
        assert args["map"] == "open"
        assert args["learner"]["m"] == 3
        assert args["grid"]["x_size"] == 5

        with open(run_dir / "trials.csv", encoding="utf-8", newline="") as f:
            rows = list(csv.DictReader(f))
        assert [int(r["Trial"]) for r in rows] == [1, 2, 3]
        assert all(r["Algorithm"] == algo and r["Map"] == "open" for r in rows)
        assert all(1 <= int(r["Steps"]) <= 60 for r in rows)

        with np.load(run_dir / "data.npz") as data:
            assert data["steps"].shape == (3,)
            assert data["q_values"].shape == (5, 5, 4)
            assert data["grid_map"][4, 4] == 2

        report = (run_dir / "report.txt").read_text(encoding="utf-8")
        assert "GREEDY POLICY" in report
        assert "TTD(0.5, 3, 0.95)" in report
        assert report.count("Trial ") >= 3


def test_main_grid_with_unknown_map_does_nothing(tmp_path: Path) -> None:
    assert main_grid.main(["--map", "nowhere", "--results-dir", str(tmp_path / "runs")]) == []
    assert not (tmp_path / "runs").exists()


def test_build_q_tables_cover_every_cell() -> None:
    grid = main_grid.build_grid(main_grid.discover_maps()[1], seed=0)
    qs = main_grid.build_q_tables(grid)
    assert len(qs) == grid.n_actions
    assert qs[0].n_entries == grid.x_size * grid.y_size
    assert main_grid.build_q_tables(grid, quants=2)[0].n_entries == 4


def test_build_summary_plots_and_csv(tmp_path: Path) -> None:
    results = tmp_path / "results"
    main_grid.main(
        ["--map", "open", "--trials", "4", "--steps", "40", "--results-dir", str(results / "grid"),
         "--log-level", "WARNING"]
    )
    out_dir = results / "summary"
    rows = build_summary.build_summary(results, out_dir, window=2)

    assert len(rows) == 2
    assert {r["algorithm"] for r in rows} == {"qlearning", "sarsa"}
    assert (out_dir / "summary.csv").exists()
    assert (out_dir / "INDEX.md").exists()
    assert (out_dir / "compare_open.png").exists()
    for r in rows:
        run_out = out_dir / r["out_dir"]
        assert (run_out / "plot_steps_per_trial.png").exists()
        assert (run_out / "plot_mean_reward.png").exists()
        assert (run_out / "plot_state_values.png").exists()
        assert json.loads((run_out / "metrics.json").read_text(encoding="utf-8"))["n_trials"] == 4

    # a second pass must not pick up its own output
    assert len(build_summary.build_summary(results, out_dir, window=2)) == 2


def test_render_helpers() -> None:
    m = np.zeros((3, 2), dtype=np.int8)
    m[1, 0] = 1
    m[2, 1] = 2
    assert render_map(m, (0, 1)) == ".#.\nS.G"

    q = np.zeros((3, 2, 4))
    q[0, 0, 3] = 1.0
    q[0, 1, 1] = 1.0
    q[1, 1, 1] = 1.0
    assert render_greedy_policy(m, q) == "v#<\n>>G"


def test_make_unique_dir_adds_suffix(tmp_path: Path) -> None:
    a = make_unique_dir(tmp_path, "run")
    b = make_unique_dir(tmp_path, "run")
    assert a.name == "run"
    assert b.name == "run_1"


def test_configure_logging_is_idempotent() -> None:
    root = logging.getLogger()
    before = list(root.handlers)
    configure_logging("DEBUG")
    configure_logging("INFO")
    added = [h for h in root.handlers if h not in before]
    assert len(added) <= 1
    assert root.level == logging.INFO
    for h in added:
        root.removeHandler(h)
