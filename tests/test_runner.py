# tests/test_runner.py
"""
Unit tests for the Runner and its report sinks.

Focus:
- per-step call order between environment and learner.
- trial boundaries, step limits and sink arguments.
- stop requests and background execution.
"""

from __future__ import annotations

import io

import numpy as np
import pytest

from environments import Environment
from learners import InvalidParameter
from simulation import Event, RewardHistory, Runner, TabularReport, TrialStats


class Corridor(Environment):
    """Cells 0..length-1; action 1 moves right, anything else stays. The last cell is terminal."""

    def __init__(self, length: int, log: list):
        super().__init__()
        self.length = length
        self.log = log
        self._state = np.zeros(1, dtype=np.int64)

    @property
    def n_actions(self) -> int:
        return 2

    def terminal_state(self) -> bool:
        return int(self._state[0]) == self.length - 1

    def _state_transition(self, action: int) -> None:
        self.log.append(("execute", action))
        if action == 1:
            self._state[0] = min(int(self._state[0]) + 1, self.length - 1)

    def _state_init(self) -> None:
        self.log.append(("env.reset",))
        self._state[0] = 0

    def _reward(self) -> float:
        return 0.0 if self.terminal_state() else -1.0


class ScriptedLearner:
    def __init__(self, log: list, action: int = 1):
        self.log = log
        self.action = action

    def react(self, x) -> int:
        self.log.append(("react", int(x[0])))
        return self.action

    def reinforce(self, r: float) -> None:
        self.log.append(("reinforce", r))

    def reset(self) -> None:
        self.log.append(("learner.reset",))


def make_runner(length: int = 3, **kwargs):
    log: list = []
    env = Corridor(length, log)
    learner = ScriptedLearner(log, kwargs.pop("action", 1))
    return Runner(learner, env, **kwargs), log


def test_step_order_within_a_trial() -> None:
    runner, log = make_runner(3, n_trials=1)
    runner.run()
    assert log == [
        ("env.reset",),
        ("learner.reset",),
        ("react", 0),
        ("execute", 1),
        ("reinforce", -1.0),
        ("react", 1),
        ("execute", 1),
        ("reinforce", 0.0),
    ]


def test_trial_stats_and_sinks() -> None:
    steps_seen = []
    history = RewardHistory()
    runner, _ = make_runner(
        4,
        n_trials=2,
        trial_sink=history.record,
        step_sink=lambda t, s, r: steps_seen.append((t, s, r)),
    )
    stats = runner.run()

    assert stats == [
        TrialStats(trial=0, mean_reward=pytest.approx(-2 / 3), steps=3, terminal=True),
        TrialStats(trial=1, mean_reward=pytest.approx(-2 / 3), steps=3, terminal=True),
    ]
    assert history.trials == [0, 1]
    assert history.steps == [3, 3]
    assert steps_seen[:3] == [(0, 0, -1.0), (0, 1, -1.0), (0, 2, 0.0)]
    assert len(steps_seen) == 6
    assert runner.last_trial == stats[-1]


def test_step_limit_cuts_trial_short() -> None:
    runner, log = make_runner(3, n_trials=2, n_steps=5, action=0)
    stats = runner.run()
    assert [s.steps for s in stats] == [5, 5]
    assert not any(s.terminal for s in stats)
    assert stats[0].mean_reward == pytest.approx(-1.0)
    assert log.count(("env.reset",)) == 2


def test_events_in_order() -> None:
    runner, _ = make_runner(3, n_trials=1)
    events = []
    runner.subscribe(lambda src, ev: events.append(ev))
    runner.run()
    assert events == [Event.RESET, Event.STEP, Event.STEP, Event.TRIAL]


def test_stop_from_a_sink_ends_after_current_step() -> None:
    holder = {}

    def step_sink(trial: int, step: int, reward: float) -> None:
        if trial == 1 and step == 0:
            holder["runner"].stop()

    runner, _ = make_runner(5, n_trials=10, step_sink=step_sink)
    holder["runner"] = runner
    stats = runner.run()

    assert len(stats) == 2
    assert stats[0].terminal
    assert stats[1].steps == 1
    assert not stats[1].terminal
    assert runner.stopped


def test_background_run_and_pause_flags() -> None:
    history = RewardHistory()
    runner, _ = make_runner(3, n_trials=3, trial_sink=history.record)
    runner.pause()
    assert runner.paused
    runner.resume()
    assert not runner.paused

    runner.start()
    runner.join(timeout=10)
    assert len(history) == 3


def test_invalid_construction() -> None:
    log: list = []
    env = Corridor(3, log)
    with pytest.raises(InvalidParameter):
        Runner(None, env)
    with pytest.raises(InvalidParameter):
        Runner(ScriptedLearner(log), env, n_trials=-1)
    with pytest.raises(InvalidParameter):
        Runner(ScriptedLearner(log), env, n_steps=-5)


def test_zero_trials_runs_nothing() -> None:
    runner, log = make_runner(3, n_trials=0)
    assert runner.run() == []
    assert log == []


def test_tabular_report_lines() -> None:
    out = io.StringIO()
    report = TabularReport(out)
    report.step(0, 3, -1.0)
    report.trial(0, -0.5, 4)
    assert out.getvalue() == "0\t3\t-1.0\n1\t-0.5\t4\n"


def test_reward_history_arrays() -> None:
    h = RewardHistory()
    h.record(0, -1.0, 10)
    h.record(1, -0.5, 4)
    arrays = h.as_arrays()
    assert arrays["trials"].tolist() == [0, 1]
    assert arrays["mean_rewards"].tolist() == [-1.0, -0.5]
    assert arrays["steps"].dtype.kind == "i"
