# learners/learner.py
"""
Reinforcement learners.

A `Learner` combines an action selector with a credit assigner and exposes
the react / reinforce / reset protocol. The value representation and the
utility hooks are supplied by concrete learners; `QLearner` keeps one
function approximator per action and covers both Q-learning and Sarsa.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

import numpy as np

from .approximators import FunctionApproximator
from .credit import CreditAssigner
from .errors import InvalidParameter, check_unit_interval
from .selectors import ActionSelector


@dataclass(frozen=True)
class UtilityCallbacks:
    """The narrow view of a learner handed to its credit assigner."""

    utility0: Callable[[np.ndarray, int], float]
    utility1: Callable[[np.ndarray, int], float]
    update: Callable[[np.ndarray, int, float], None]


class Learner(ABC):
    def __init__(self, credit_assigner: CreditAssigner, action_selector: ActionSelector):
        if credit_assigner is None or action_selector is None:
            raise InvalidParameter("a learner needs both a credit assigner and an action selector")
        self._credit_assigner = credit_assigner
        self._action_selector = action_selector
        self._callbacks = UtilityCallbacks(self.utility0, self.utility1, self.update)

    @property
    def credit_assigner(self) -> CreditAssigner:
        return self._credit_assigner

    @property
    def action_selector(self) -> ActionSelector:
        return self._action_selector

    # ----- reinforcement learning interface -----

    def react(self, x) -> int:
        """Select an action for state `x` and record the pair for credit assignment."""
        a = self._action_selector.select(self.policy(x))
        self._credit_assigner.state_and_action(x, a, self._callbacks)
        return a

    def reinforce(self, r: float) -> None:
        """Reward for the state-action pair of the previous `react` call."""
        self._credit_assigner.reward(float(r), self._callbacks)

    def reset(self) -> None:
        """End of trial."""
        self._credit_assigner.reset(self._callbacks)

    @abstractmethod
    def clear_knowledge(self) -> None:
        ...

    # ----- algorithm hooks -----

    @abstractmethod
    def policy(self, x) -> np.ndarray:
        """Per-action scores for state `x`, fed to the action selector."""

    @abstractmethod
    def utility0(self, x, a: int) -> float:
        """Utility of (x, a) as the current experience."""

    @abstractmethod
    def utility1(self, x, a: int) -> float:
        """Utility of (x, a) as the successor of the previous experience."""

    @abstractmethod
    def update(self, x, a: int, delta: float) -> None:
        ...

    def params(self) -> dict[str, float | str]:
        out: dict[str, float | str] = {"credit_assigner": repr(self._credit_assigner),
                                       "action_selector": repr(self._action_selector)}
        out.update(self._credit_assigner.params())
        out.update(self._action_selector.params())
        return out

    def __str__(self) -> str:
        return (
            f"{type(self).__name__}\n"
            f"\tusing {self._credit_assigner!r} for credit assignment\n"
            f"\tusing {self._action_selector!r} for action selection\n"
        )


class Algorithm(str, Enum):
    Q_LEARNING = "qlearning"
    SARSA = "sarsa"


def _max_successor(learner: "QLearner", x, a: int) -> float:
    # off-policy: the action actually taken is ignored
    return float(np.max(learner.policy(x)))


def _taken_successor(learner: "QLearner", x, a: int) -> float:
    return learner.utility0(x, a)


_SUCCESSOR_UTILITY = {
    Algorithm.Q_LEARNING: _max_successor,
    Algorithm.SARSA: _taken_successor,
}


class QLearner(Learner):
    """
    Q-function learner with one approximator per action.

    Q-learning and Sarsa share everything except the successor utility:
    Q-learning bootstraps from the best action at the successor state,
    Sarsa from the action it actually selected there.

    Args:
        credit_assigner: e.g. `TTD(0.5, 10, 0.95)`
        action_selector: e.g. `BoltzmannSelector(0.1)`
        q_functions: one approximator per action
        step_size: learning rate (beta) in [0, 1]
        algorithm: `Algorithm.Q_LEARNING` or `Algorithm.SARSA`
    """

    def __init__(
        self,
        credit_assigner: CreditAssigner,
        action_selector: ActionSelector,
        q_functions: Sequence[FunctionApproximator],
        step_size: float = 0.5,
        algorithm: Algorithm | str = Algorithm.Q_LEARNING,
    ):
        super().__init__(credit_assigner, action_selector)
        if q_functions is None or len(q_functions) == 0:
            raise InvalidParameter("at least one Q-function approximator is required")
        try:
            self._algorithm = Algorithm(algorithm)
        except ValueError:
            raise InvalidParameter(f"unknown algorithm: {algorithm!r}") from None
        self._q_functions = list(q_functions)
        self._step_size = check_unit_interval("step_size", step_size)
        self._successor = _SUCCESSOR_UTILITY[self._algorithm]

    @property
    def algorithm(self) -> Algorithm:
        return self._algorithm

    @property
    def n_actions(self) -> int:
        return len(self._q_functions)

    @property
    def q_functions(self) -> list[FunctionApproximator]:
        return list(self._q_functions)

    @property
    def step_size(self) -> float:
        return self._step_size

    @step_size.setter
    def step_size(self, value: float) -> None:
        self._step_size = check_unit_interval("step_size", value)

    def clear_knowledge(self) -> None:
        for qf in self._q_functions:
            qf.initialize(0.0)

    def policy(self, x) -> np.ndarray:
        return np.array([qf.restore(x) for qf in self._q_functions], dtype=float)

    def utility0(self, x, a: int) -> float:
        return float(self._q_functions[a].restore(x))

    def utility1(self, x, a: int) -> float:
        return self._successor(self, x, a)

    def update(self, x, a: int, delta: float) -> None:
        self._q_functions[a].update(x, 0, delta, self._step_size)

    def q_values(self, states) -> np.ndarray:
        """Q-values of every action for each of `states`, shape (len(states), n_actions)."""
        return np.array([self.policy(x) for x in states], dtype=float).reshape(-1, self.n_actions)

    def params(self) -> dict[str, float | str]:
        out: dict[str, float | str] = {"algorithm": self._algorithm.value, "step_size": self._step_size}
        out.update(super().params())
        return out

    def __str__(self) -> str:
        name = "Sarsa" if self._algorithm is Algorithm.SARSA else "QLearning"
        return (
            f"{name} (step_size={self._step_size}, actions={self.n_actions})\n"
            f"\tusing {self.credit_assigner!r} for credit assignment\n"
            f"\tusing {self.action_selector!r} for action selection\n"
        )


def q_learning(
    credit_assigner: CreditAssigner,
    action_selector: ActionSelector,
    q_functions: Sequence[FunctionApproximator],
    step_size: float = 0.5,
) -> QLearner:
    return QLearner(credit_assigner, action_selector, q_functions, step_size, Algorithm.Q_LEARNING)


def sarsa(
    credit_assigner: CreditAssigner,
    action_selector: ActionSelector,
    q_functions: Sequence[FunctionApproximator],
    step_size: float = 0.5,
) -> QLearner:
    return QLearner(credit_assigner, action_selector, q_functions, step_size, Algorithm.SARSA)
