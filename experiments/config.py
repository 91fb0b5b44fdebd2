# experiments/config.py
from __future__ import annotations

import argparse
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

ALGORITHM_CHOICES = ("qlearning", "sarsa", "both")
SELECTOR_CHOICES = ("boltzmann", "egreedy")

DEFAULT_RESULTS_DIR = Path(__file__).resolve().parents[1] / "results" / "grid"


@dataclass(frozen=True)
class ExperimentConfig:
    """Everything a grid experiment run needs, as parsed from the command line."""

    algo: str = "both"
    maps: tuple[str, ...] = field(default_factory=tuple)
    trials: int = 100
    steps: int = 1000
    lambda_: float = 0.5
    m: int = 10
    gamma: float = 0.95
    beta: float = 0.5
    selector: str = "boltzmann"
    temperature: float = 0.1
    epsilon: float = 0.1
    quants: int | None = None
    scale: float = 1.0
    seed: int = 0
    delay: float = 0.0
    results_dir: Path = DEFAULT_RESULTS_DIR
    log_level: str = "INFO"

    @property
    def algorithms(self) -> list[str]:
        if self.algo == "both":
            return ["qlearning", "sarsa"]
        return [self.algo]

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "ExperimentConfig":
        return cls(
            algo=args.algo,
            maps=tuple(args.map or ()),
            trials=int(args.trials),
            steps=int(args.steps),
            lambda_=float(args.lambda_),
            m=int(args.m),
            gamma=float(args.gamma),
            beta=float(args.beta),
            selector=args.selector,
            temperature=float(args.temperature),
            epsilon=float(args.epsilon),
            quants=None if args.quants is None else int(args.quants),
            scale=float(args.scale),
            seed=int(args.seed),
            delay=float(args.delay),
            results_dir=Path(args.results_dir),
            log_level=str(args.log_level),
        )

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["lambda"] = out.pop("lambda_")
        out["maps"] = list(self.maps)
        out["results_dir"] = str(self.results_dir)
        return out


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Run Q-learning / Sarsa with TTD on grid-world maps.")
    ap.add_argument("--algo", choices=ALGORITHM_CHOICES, default="both")
    ap.add_argument("--map", action="append", default=None, help="Run only these map names (repeatable).")
    ap.add_argument("--trials", type=int, default=100)
    ap.add_argument("--steps", type=int, default=1000, help="Maximum steps per trial.")
    ap.add_argument("--lambda", dest="lambda_", type=float, default=0.5)
    ap.add_argument("--m", type=int, default=10, help="TTD truncation depth.")
    ap.add_argument("--gamma", type=float, default=0.95)
    ap.add_argument("--beta", type=float, default=0.5, help="Learning rate.")
    ap.add_argument("--selector", choices=SELECTOR_CHOICES, default="boltzmann")
    ap.add_argument("--temperature", type=float, default=0.1)
    ap.add_argument("--epsilon", type=float, default=0.1)
    ap.add_argument("--quants", type=int, default=None, help="Table cells per axis (default: one per grid cell).")
    ap.add_argument("--scale", type=float, default=1.0, help="Map rescaling factor.")
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument("--delay", type=float, default=0.0, help="Seconds to sleep after every step.")
    ap.add_argument("--results-dir", dest="results_dir", default=str(DEFAULT_RESULTS_DIR))
    ap.add_argument("--log-level", dest="log_level", default="INFO")
    return ap


def parse_config(argv: list[str] | None = None) -> ExperimentConfig:
    return ExperimentConfig.from_args(build_parser().parse_args(argv))
