# learners/selectors.py
"""
Stochastic action selection.

A selector turns a vector of per-action scores (for the Q-based learners:
the current Q-values of every action at the current state) into a single
action index.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

from .errors import InvalidParameter, check_positive, check_unit_interval


class ActionSelector(ABC):
    """
    Base class for selectors.

    Each instance owns its own random generator, so two selectors created
    with the same seed make the same sequence of choices.
    """

    def __init__(self, seed: int | None = None, rng: np.random.Generator | None = None):
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    @abstractmethod
    def select(self, scores) -> int:
        """Return an index in [0, len(scores))."""

    def params(self) -> dict[str, float]:
        return {}

    @staticmethod
    def _as_scores(scores) -> np.ndarray:
        p = np.asarray(scores, dtype=float).reshape(-1)
        if p.size < 1:
            raise InvalidParameter("cannot select from an empty score vector")
        return p


class EpsilonGreedySelector(ActionSelector):
    """
    Epsilon-greedy selection.

    The greedy choice is made with probability 1-epsilon and a uniformly
    random one with probability epsilon. When several scores tie for the
    maximum, the first of them always wins.
    """

    def __init__(self, epsilon: float = 0.1, seed: int | None = None, rng: np.random.Generator | None = None):
        super().__init__(seed=seed, rng=rng)
        self._epsilon = check_unit_interval("epsilon", epsilon)

    @property
    def epsilon(self) -> float:
        return self._epsilon

    @epsilon.setter
    def epsilon(self, value: float) -> None:
        self._epsilon = check_unit_interval("epsilon", value)

    def select(self, scores) -> int:
        p = self._as_scores(scores)
        if self.rng.random() >= self._epsilon:
            return int(np.argmax(p))
        return int(self.rng.integers(p.size))

    def params(self) -> dict[str, float]:
        return {"epsilon": self._epsilon}

    def __repr__(self) -> str:
        return f"EpsilonGreedySelector({self._epsilon})"


class BoltzmannSelector(ActionSelector):
    """
    Boltzmann (softmax) selection.

    Index i is chosen with probability proportional to
    exp((score_i - score_0) / temperature).
    """

    def __init__(self, temperature: float = 0.1, seed: int | None = None, rng: np.random.Generator | None = None):
        super().__init__(seed=seed, rng=rng)
        self._temperature = check_positive("temperature", temperature)
        self._distribution: np.ndarray | None = None

    @property
    def temperature(self) -> float:
        return self._temperature

    @temperature.setter
    def temperature(self, value: float) -> None:
        self._temperature = check_positive("temperature", value)

    def distribution(self, scores) -> np.ndarray:
        """Unnormalized Boltzmann weights for `scores` (a view of the scratch buffer)."""
        p = self._as_scores(scores)
        if self._distribution is None or self._distribution.size != p.size:
            self._distribution = np.empty(p.size, dtype=float)
        w = self._distribution
        np.subtract(p, p[0], out=w)
        np.divide(w, self._temperature, out=w)
        np.exp(w, out=w)
        return w

    def select(self, scores) -> int:
        w = self.distribution(scores)
        return random_choice(self.rng, w)

    def params(self) -> dict[str, float]:
        return {"temperature": self._temperature}

    def __repr__(self) -> str:
        return f"BoltzmannSelector({self._temperature})"


def random_choice(rng: np.random.Generator, weights: np.ndarray) -> int:
    """
    Inverse-CDF sampling over unnormalized non-negative weights.

    Draws a point uniformly in [0, sum(weights)) and returns the first index
    whose partial sum reaches it (the last index if rounding leaves the
    point beyond the final partial sum).
    """
    weights = np.asarray(weights, dtype=float)
    if weights.size < 1:
        raise InvalidParameter("cannot sample from an empty distribution")
    partial = np.cumsum(weights)
    point = rng.random() * partial[-1]
    choice = int(np.searchsorted(partial, point, side="left"))
    return min(choice, weights.size - 1)
