# simulation/reporting.py
"""Per-step and per-trial report sinks for the runner."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TextIO

import numpy as np


@dataclass(frozen=True)
class TrialStats:
    trial: int
    mean_reward: float
    steps: int
    terminal: bool


class TabularReport:
    """
    Tab-separated text reports.

    Step lines are `trial<TAB>step<TAB>reward` (0-based trial and step);
    trial lines are `trial<TAB>mean reward<TAB>steps` with trials numbered
    from 1.
    """

    def __init__(self, stream: TextIO):
        self.stream = stream

    def step(self, trial: int, step: int, reward: float) -> None:
        self.stream.write(f"{trial}\t{step}\t{reward}\n")

    def trial(self, trial: int, mean_reward: float, steps: int) -> None:
        self.stream.write(f"{trial + 1}\t{mean_reward}\t{steps}\n")
        self.stream.flush()


class RewardHistory:
    """Collects trial statistics in memory (use `record` as the runner's trial sink)."""

    def __init__(self):
        self.trials: list[int] = []
        self.mean_rewards: list[float] = []
        self.steps: list[int] = []

    def record(self, trial: int, mean_reward: float, steps: int) -> None:
        self.trials.append(int(trial))
        self.mean_rewards.append(float(mean_reward))
        self.steps.append(int(steps))

    def __len__(self) -> int:
        return len(self.trials)

    def as_arrays(self) -> dict[str, np.ndarray]:
        return {
            "trials": np.asarray(self.trials, dtype=int),
            "mean_rewards": np.asarray(self.mean_rewards, dtype=float),
            "steps": np.asarray(self.steps, dtype=int),
        }
