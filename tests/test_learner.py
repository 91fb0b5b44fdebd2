# tests/test_learner.py
"""
Unit tests for the Q-function learners.

Focus:
- construction and step size validation.
- policy, utility hooks and step-size scaled updates.
- Q-learning vs Sarsa successor utility, call order through react / reinforce.
"""

from __future__ import annotations

import numpy as np
import pytest

from learners import (
    TTD,
    Algorithm,
    EpsilonGreedySelector,
    InvalidParameter,
    InvalidState,
    LookUpTable,
    QLearner,
    q_learning,
    sarsa,
)


def make_tables(n_actions: int = 4, size: int = 5) -> list[LookUpTable]:
    return [LookUpTable.uniform(2, size, 0, size) for _ in range(n_actions)]


def make_learner(algorithm=Algorithm.Q_LEARNING, *, step_size: float = 0.5, ttd: TTD | None = None) -> QLearner:
    return QLearner(
        ttd or TTD(0.0, 1, 1.0),
        EpsilonGreedySelector(0.0, seed=0),
        make_tables(),
        step_size=step_size,
        algorithm=algorithm,
    )


def test_construction_requires_all_parts() -> None:
    with pytest.raises(InvalidParameter):
        QLearner(None, EpsilonGreedySelector(), make_tables())
    with pytest.raises(InvalidParameter):
        QLearner(TTD(), None, make_tables())
    with pytest.raises(InvalidParameter):
        QLearner(TTD(), EpsilonGreedySelector(), [])
    with pytest.raises(InvalidParameter):
        QLearner(TTD(), EpsilonGreedySelector(), make_tables(), algorithm="expected_sarsa")


def test_step_size_is_validated() -> None:
    with pytest.raises(InvalidParameter):
        make_learner(step_size=1.5)
    learner = make_learner()
    with pytest.raises(InvalidParameter):
        learner.step_size = -0.5
    learner.step_size = 0.1
    assert learner.step_size == 0.1


def test_policy_reads_one_value_per_action() -> None:
    learner = make_learner()
    x = np.array([1, 2])
    learner.q_functions[2].update(x, 0, 3.0, 1.0)
    assert learner.n_actions == 4
    assert learner.policy(x).tolist() == [0.0, 0.0, 3.0, 0.0]
    assert learner.react(x) == 2


def test_update_is_scaled_by_step_size() -> None:
    learner = make_learner(step_size=0.25)
    x = np.array([3, 3])
    learner.update(x, 1, 2.0)
    assert learner.utility0(x, 1) == pytest.approx(0.5)
    assert learner.utility0(x, 0) == 0.0


def test_successor_utility_differs_between_algorithms() -> None:
    x = np.array([0, 0])
    ql = make_learner(Algorithm.Q_LEARNING)
    sa = make_learner(Algorithm.SARSA)
    for learner in (ql, sa):
        learner.q_functions[3].update(x, 0, 5.0, 1.0)
        learner.q_functions[1].update(x, 0, 1.0, 1.0)

    assert ql.utility1(x, 1) == pytest.approx(5.0)
    assert sa.utility1(x, 1) == pytest.approx(1.0)


def test_one_step_backup_through_react_and_reinforce() -> None:
    learner = make_learner(step_size=0.5)
    x0, x1 = np.array([0, 0]), np.array([1, 0])

    learner.reset()
    a0 = learner.react(x0)
    learner.reinforce(-1.0)
    learner.react(x1)

    assert a0 == 0
    assert learner.utility0(x0, a0) == pytest.approx(-0.5)


def test_reinforce_out_of_turn_raises() -> None:
    learner = make_learner()
    with pytest.raises(InvalidState):
        learner.reinforce(1.0)
    learner.react(np.array([0, 0]))
    with pytest.raises(InvalidState):
        learner.reset()


def test_clear_knowledge_zeros_every_table() -> None:
    learner = make_learner()
    for qf in learner.q_functions:
        qf.initialize(3.0)
    learner.clear_knowledge()
    assert all(np.all(qf.table == 0.0) for qf in learner.q_functions)


def test_q_values_shape() -> None:
    learner = make_learner()
    states = [np.array([x, y]) for x in range(5) for y in range(5)]
    assert learner.q_values(states).shape == (25, 4)


def test_factories_and_description() -> None:
    ql = q_learning(TTD(), EpsilonGreedySelector(0.1), make_tables(), 0.5)
    sa = sarsa(TTD(), EpsilonGreedySelector(0.1), make_tables(), 0.5)
    assert ql.algorithm is Algorithm.Q_LEARNING
    assert sa.algorithm is Algorithm.SARSA
    assert str(ql).startswith("QLearning")
    assert str(sa).startswith("Sarsa")
    assert "TTD(0.5, 10, 0.95)" in str(ql)
    assert "EpsilonGreedySelector(0.1)" in str(sa)


def test_params_cover_learner_credit_and_selector() -> None:
    p = make_learner(Algorithm.SARSA).params()
    assert p["algorithm"] == "sarsa"
    assert p["step_size"] == 0.5
    assert p["lambda"] == 0.0
    assert p["m"] == 1
    assert p["epsilon"] == 0.0
