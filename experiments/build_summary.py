from __future__ import annotations

import argparse
import csv
import json
import logging
import sys
from pathlib import Path
from typing import Any

import numpy as np

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from experiments.logging_config import configure_logging  # noqa: E402

logger = logging.getLogger(__name__)


def _read_trials_csv(path: Path) -> dict[str, Any]:
    trials: list[int] = []
    rewards: list[float] = []
    steps: list[int] = []
    terminals: list[bool] = []
    algorithm = ""
    map_name = ""

    with open(path, "r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            trials.append(int(float(row["Trial"])))
            rewards.append(float(row["MeanReward"]))
            steps.append(int(float(row["Steps"])))
            terminals.append(bool(int(float(row["Terminal"]))))
            algorithm = row.get("Algorithm") or algorithm
            map_name = row.get("Map") or map_name

    return {
        "t": np.asarray(trials, dtype=int),
        "rewards": np.asarray(rewards, dtype=float),
        "steps": np.asarray(steps, dtype=int),
        "terminals": np.asarray(terminals, dtype=bool),
        "algorithm": algorithm,
        "map": map_name,
    }


def _rolling_mean(x: np.ndarray, window: int) -> np.ndarray:
    x = np.asarray(x, dtype=float)
    if x.size == 0:
        return x
    w = max(1, min(int(window), int(x.size)))
    c = np.cumsum(np.insert(x, 0, 0.0))
    out = np.empty_like(x)
    for i in range(x.size):
        lo = max(0, i + 1 - w)
        out[i] = (c[i + 1] - c[lo]) / float(i + 1 - lo)
    return out


def _first_trial_below(steps: np.ndarray, threshold: float, window: int) -> int | None:
    rm = _rolling_mean(steps, window)
    hits = np.nonzero(rm <= threshold)[0]
    return int(hits[0]) + 1 if hits.size else None


def _write_csv(path: Path, rows: list[dict[str, Any]]) -> None:
    if not rows:
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        w.writeheader()
        w.writerows(rows)


def _plot_steps_per_trial(out_path: Path, t: np.ndarray, steps: np.ndarray, *, window: int, title: str) -> None:
    fig, ax = plt.subplots(figsize=(9.5, 5.2), dpi=100)
    ax.plot(t, steps, linewidth=1, alpha=0.4, label="Steps")
    ax.plot(t, _rolling_mean(steps, window), linewidth=2, label=f"Rolling mean (W={window})")
    ax.set_xlabel("Trial")
    ax.set_ylabel("Steps to goal")
    ax.set_yscale("log")
    ax.set_title(title)
    ax.legend(loc="upper right", frameon=False)
    fig.tight_layout()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path)
    plt.close(fig)


def _plot_mean_reward(out_path: Path, t: np.ndarray, rewards: np.ndarray, *, window: int, title: str) -> None:
    fig, ax = plt.subplots(figsize=(9.5, 5.2), dpi=100)
    ax.plot(t, rewards, linewidth=1, alpha=0.4, label="Mean reward")
    ax.plot(t, _rolling_mean(rewards, window), linewidth=2, label=f"Rolling mean (W={window})")
    ax.set_xlabel("Trial")
    ax.set_ylabel("Mean reward per step")
    ax.set_title(title)
    ax.legend(loc="lower right", frameon=False)
    fig.tight_layout()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path)
    plt.close(fig)


def _plot_state_values(out_path: Path, q_values: np.ndarray, grid_map: np.ndarray | None, *, title: str) -> None:
    V = np.max(np.asarray(q_values, dtype=float), axis=-1).T
    if grid_map is not None:
        V = np.ma.masked_where(np.asarray(grid_map).T == 1, V)
    fig, ax = plt.subplots(figsize=(7.2, 5.8), dpi=110)
    im = ax.imshow(V, origin="upper", aspect="equal", cmap="viridis")
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_title(title)
    c = fig.colorbar(im, ax=ax, fraction=0.046, pad=0.04)
    c.set_label("max Q")
    fig.tight_layout()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path)
    plt.close(fig)


def _plot_algorithm_comparison(out_path: Path, curves: dict[str, tuple[np.ndarray, np.ndarray]], *, window: int, title: str) -> None:
    fig, ax = plt.subplots(figsize=(9.5, 5.2), dpi=100)
    for label, (t, steps) in sorted(curves.items()):
        ax.plot(t, _rolling_mean(steps, window), linewidth=2, label=label)
    ax.set_xlabel("Trial")
    ax.set_ylabel(f"Steps to goal (rolling mean, W={window})")
    ax.set_yscale("log")
    ax.set_title(title)
    ax.legend(loc="upper right", frameon=False)
    fig.tight_layout()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path)
    plt.close(fig)


def _find_run_dirs(results_dir: Path, out_dir: Path) -> list[Path]:
    out_dir = out_dir.resolve()
    runs = []
    for csv_path in results_dir.rglob("trials.csv"):
        run_dir = csv_path.parent
        if out_dir == run_dir.resolve() or out_dir in run_dir.resolve().parents:
            continue
        runs.append(run_dir)
    return sorted(runs, key=lambda p: p.as_posix())


def build_summary(results_dir: Path, out_dir: Path, *, window: int) -> list[dict[str, Any]]:
    out_dir.mkdir(parents=True, exist_ok=True)

    rows: list[dict[str, Any]] = []
    by_map: dict[str, dict[str, tuple[np.ndarray, np.ndarray]]] = {}
    index_lines: list[str] = [
        "# Results Summary\n",
        "\n",
        "Auto-generated from grid-world run directories.\n",
        "\n",
    ]

    for run_dir in _find_run_dirs(results_dir, out_dir):
        dat = _read_trials_csv(run_dir / "trials.csv")
        t, steps, rewards, terminals = dat["t"], dat["steps"], dat["rewards"], dat["terminals"]
        if t.size == 0:
            logger.warning("Skipping empty run: %s", run_dir)
            continue

        map_name = dat["map"] or run_dir.name
        algorithm = dat["algorithm"] or "unknown"
        w = max(1, min(int(window), int(t.size)))

        out_run_dir = out_dir / run_dir.name
        _plot_steps_per_trial(
            out_run_dir / "plot_steps_per_trial.png", t, steps, window=w, title=f"{algorithm} on {map_name}: steps per trial"
        )
        _plot_mean_reward(
            out_run_dir / "plot_mean_reward.png", t, rewards, window=w, title=f"{algorithm} on {map_name}: mean reward"
        )

        npz_path = run_dir / "data.npz"
        has_values = False
        if npz_path.exists():
            with np.load(npz_path) as npz:
                if "q_values" in npz.files:
                    grid_map = npz["grid_map"] if "grid_map" in npz.files else None
                    _plot_state_values(
                        out_run_dir / "plot_state_values.png",
                        npz["q_values"],
                        grid_map,
                        title=f"{algorithm} on {map_name}: state values",
                    )
                    has_values = True

        tail = steps[-w:]
        metrics = {
            "run": run_dir.name,
            "map": map_name,
            "algorithm": algorithm,
            "n_trials": int(t.size),
            "n_terminal": int(np.sum(terminals)),
            "total_steps": int(np.sum(steps)),
            "min_steps": int(np.min(steps)),
            "final_mean_steps": float(np.mean(tail)),
            "final_mean_reward": float(np.mean(rewards[-w:])),
        }
        first = _first_trial_below(steps, 2.0 * float(np.min(steps)), w)
        metrics["trial_within_2x_best"] = first if first is not None else ""
        (out_run_dir / "metrics.json").write_text(json.dumps(metrics, indent=2), encoding="utf-8")

        rows.append(dict(metrics, out_dir=out_run_dir.relative_to(out_dir).as_posix()))
        by_map.setdefault(map_name, {})[f"{algorithm} ({run_dir.name})"] = (t, steps)

        rel = out_run_dir.relative_to(out_dir).as_posix()
        index_lines.extend(
            [
                f"## {map_name} / {run_dir.name}\n",
                "\n",
                f"- Algorithm: {algorithm}\n",
                f"- Metrics: `{rel}/metrics.json`\n",
                f"- Plots: `{rel}/plot_steps_per_trial.png`, `{rel}/plot_mean_reward.png`"
                + (f", `{rel}/plot_state_values.png`" if has_values else "")
                + "\n",
                "\n",
            ]
        )

    for map_name, curves in sorted(by_map.items()):
        if len(curves) > 1:
            _plot_algorithm_comparison(
                out_dir / f"compare_{map_name}.png", curves, window=window, title=f"{map_name}: learning curves"
            )

    _write_csv(out_dir / "summary.csv", rows)
    with open(out_dir / "INDEX.md", "w", encoding="utf-8") as f:
        f.writelines(index_lines)
    logger.info("Summarized %d run(s)", len(rows))
    return rows


def main(argv: list[str] | None = None) -> None:
    ap = argparse.ArgumentParser(description="Build `results/summary` with learning curves for all grid runs.")
    ap.add_argument("--results-dir", type=Path, default=Path("results"))
    ap.add_argument("--out-dir", type=Path, default=Path("results") / "summary")
    ap.add_argument("--window", type=int, default=10, help="Rolling window size (W), in trials.")
    ap.add_argument("--log-level", dest="log_level", default="INFO")
    args = ap.parse_args(argv)

    configure_logging(args.log_level)
    build_summary(args.results_dir, args.out_dir, window=int(args.window))
    print(f"Wrote summary to: {args.out_dir}")


if __name__ == "__main__":
    main()
