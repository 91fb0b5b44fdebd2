from __future__ import annotations

import csv
import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

import numpy as np


CSV_COLUMNS = [
    "Trial",
    "Algorithm",
    "Map",
    "MeanReward",
    "Steps",
    "Terminal",
]

_CELL_CHARS = {0: ".", 1: "#", 2: "G"}
_ACTION_ARROWS = ["<", ">", "^", "v"]


def make_unique_dir(parent: Path, name: str) -> Path:
    candidate = parent / name
    if not candidate.exists():
        candidate.mkdir(parents=True, exist_ok=False)
        return candidate

    for i in range(1, 10_000):
        candidate = parent / f"{name}_{i}"
        if not candidate.exists():
            candidate.mkdir(parents=True, exist_ok=False)
            return candidate

    raise RuntimeError(f"Could not create a unique directory under: {parent}")


def now_timestamp() -> str:
    return datetime.now().strftime("%Y-%m-%d_%H-%M-%S")


def _format_matrix(M: np.ndarray, *, max_cells: int = 400) -> str:
    M = np.asarray(M, dtype=float)
    if int(M.size) <= int(max_cells):
        with np.printoptions(precision=2, suppress=True, linewidth=160):
            return str(M)
    return (
        f"<matrix shape={M.shape}, min={float(np.min(M)):.3f}, "
        f"max={float(np.max(M)):.3f}, mean={float(np.mean(M)):.3f}>"
    )


def render_map(grid_map: np.ndarray, start: tuple[int, int] | None = None) -> str:
    """Text picture of a grid map, one line per y, x growing to the right."""
    grid_map = np.asarray(grid_map)
    lines = []
    for y in range(grid_map.shape[1]):
        row = []
        for x in range(grid_map.shape[0]):
            if start is not None and (x, y) == tuple(start):
                row.append("S")
            else:
                row.append(_CELL_CHARS.get(int(grid_map[x, y]), "?"))
        lines.append("".join(row))
    return "\n".join(lines)


def render_greedy_policy(grid_map: np.ndarray, q_values: np.ndarray) -> str:
    """
    Greedy action per free cell.

    `q_values` has shape (x_size, y_size, n_actions).
    """
    grid_map = np.asarray(grid_map)
    lines = []
    for y in range(grid_map.shape[1]):
        row = []
        for x in range(grid_map.shape[0]):
            cell = int(grid_map[x, y])
            if cell != 0:
                row.append(_CELL_CHARS.get(cell, "?"))
            else:
                a = int(np.argmax(q_values[x, y]))
                row.append(_ACTION_ARROWS[a] if a < len(_ACTION_ARROWS) else str(a))
        lines.append("".join(row))
    return "\n".join(lines)


def grid_q_values(learner, x_size: int, y_size: int) -> np.ndarray:
    """Q-values of every cell, shape (x_size, y_size, n_actions)."""
    cells = [np.array([x, y]) for x in range(int(x_size)) for y in range(int(y_size))]
    return learner.q_values(cells).reshape(int(x_size), int(y_size), -1)


def build_csv_row(
    *,
    trial: int,
    algorithm: str,
    map_name: str,
    mean_reward: float,
    steps: int,
    terminal: bool,
) -> dict[str, Any]:
    return {
        "Trial": int(trial) + 1,
        "Algorithm": algorithm,
        "Map": map_name,
        "MeanReward": float(mean_reward),
        "Steps": int(steps),
        "Terminal": int(bool(terminal)),
    }


def write_results_csv(run_dir: Path, rows: Iterable[dict[str, Any]]) -> Path:
    out = run_dir / "trials.csv"
    with open(out, "w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=CSV_COLUMNS, extrasaction="ignore")
        w.writeheader()
        for row in rows:
            w.writerow(row)
    return out


def write_args_json(run_dir: Path, args: dict[str, Any]) -> Path:
    out = run_dir / "args.json"
    out.write_text(json.dumps(args, indent=2, sort_keys=True, default=str), encoding="utf-8")
    return out


@dataclass(frozen=True)
class ReportInputs:
    experiment_name: str
    map_name: str
    learner_description: str
    args: dict[str, Any]
    grid_map: np.ndarray
    start: tuple[int, int] | None
    mean_rewards: list[float]
    steps: list[int]
    terminals: list[bool]
    q_values: np.ndarray | None = None


def write_report_txt(run_dir: Path, r: ReportInputs) -> Path:
    out = run_dir / "report.txt"
    timestamp_human = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    steps = np.asarray(r.steps, dtype=int)
    rewards = np.asarray(r.mean_rewards, dtype=float)
    terminals = np.asarray(r.terminals, dtype=bool)
    tail = steps[-10:] if steps.size else steps

    with open(out, "w", encoding="utf-8") as f:
        f.write("=" * 70 + "\n")
        f.write(f"{r.experiment_name.upper()} REPORT: {r.map_name}\n")
        f.write("=" * 70 + "\n")
        f.write(f"Timestamp: {timestamp_human}\n\n")

        f.write("CONFIGURATION\n")
        f.write("-" * 70 + "\n")
        f.write(r.learner_description.rstrip() + "\n")
        for k, v in sorted(r.args.items()):
            f.write(f"{k}: {v}\n")
        f.write("\n")

        f.write("MAP\n")
        f.write("-" * 70 + "\n")
        f.write(render_map(r.grid_map, r.start) + "\n\n")

        f.write("RESULTS SUMMARY\n")
        f.write("-" * 70 + "\n")
        f.write(f"Trials run: {int(steps.size)}\n")
        f.write(f"Trials reaching the goal: {int(np.sum(terminals))}\n")
        if steps.size:
            f.write(f"Total steps: {int(np.sum(steps))}\n")
            f.write(f"Fewest steps in a trial: {int(np.min(steps))}\n")
            f.write(f"Mean steps (last {int(tail.size)} trials): {float(np.mean(tail)):.2f}\n")
            f.write(f"Mean reward (all trials): {float(np.mean(rewards)):.4f}\n")
        f.write("\n")

        if r.q_values is not None:
            f.write("GREEDY POLICY\n")
            f.write("-" * 70 + "\n")
            f.write(render_greedy_policy(r.grid_map, r.q_values) + "\n\n")
            f.write("STATE VALUES (max Q, indexed [x, y])\n")
            f.write("-" * 70 + "\n")
            f.write(_format_matrix(np.max(r.q_values, axis=-1)) + "\n\n")

        f.write("TRIAL HISTORY\n")
        f.write("-" * 70 + "\n")
        for i, (rw, st, term) in enumerate(zip(rewards, steps, terminals), 1):
            f.write(f"Trial {i:5d}: steps={int(st):6d}, mean reward={float(rw): .4f}{'' if term else ' (cut off)'}\n")

    return out
