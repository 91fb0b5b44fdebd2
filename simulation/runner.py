# simulation/runner.py
"""
The simulation loop tying a learner to an environment.

Per trial:
  1. step 0 resets the environment, then the learner (Event.RESET)
  2. every step: state -> react -> execute -> reinforce -> terminal check
     (Event.STEP)
  3. the trial ends on a terminal state or when the step budget is used up
     (Event.TRIAL)

Stop and pause requests are honoured between steps only.
"""

from __future__ import annotations

import logging
import sys
import threading
from typing import Callable, Optional

from learners.errors import InvalidParameter

from .events import Event, Notifier
from .reporting import TrialStats

logger = logging.getLogger(__name__)

StepSink = Callable[[int, int, float], None]
TrialSink = Callable[[int, float, int], None]


class Runner(Notifier):
    def __init__(
        self,
        learner,
        environment,
        n_trials: int | None = None,
        n_steps: int | None = None,
        trial_sink: Optional[TrialSink] = None,
        step_sink: Optional[StepSink] = None,
    ):
        """
        Args:
            learner: object with react / reinforce / reset
            environment: an `environments.Environment`
            n_trials: number of trials to run (None: no limit)
            n_steps: maximum steps per trial (None: no limit)
            trial_sink: called as trial_sink(trial, mean_reward, steps) after every trial
            step_sink: called as step_sink(trial, step, reward) after every step
        """
        super().__init__()
        if learner is None or environment is None:
            raise InvalidParameter("a runner needs a learner and an environment")
        n_trials = sys.maxsize if n_trials is None else int(n_trials)
        n_steps = sys.maxsize if n_steps is None else int(n_steps)
        if n_trials < 0 or n_steps < 0:
            raise InvalidParameter(f"trial and step limits must be >= 0, got ({n_trials}, {n_steps})")

        self.learner = learner
        self.environment = environment
        self.n_trials = n_trials
        self.n_steps = n_steps
        self.trial_sink = trial_sink
        self.step_sink = step_sink

        self.trial = 0
        self.step = 0
        self.last_trial: TrialStats | None = None

        self._lock = threading.RLock()
        self._sum_rewards = 0.0
        self._stop = threading.Event()
        self._resume = threading.Event()
        self._resume.set()
        self._thread: threading.Thread | None = None

    # ----- control -----

    def run(self) -> list[TrialStats]:
        """Run trials until the trial limit is reached or `stop()` is called."""
        self._stop.clear()
        return self._run_trials()

    def start(self) -> threading.Thread:
        """Run the simulation on a background thread."""
        self._stop.clear()
        self._resume.set()
        self._thread = threading.Thread(target=self._run_trials, name="runner", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        self._stop.set()
        self._resume.set()

    def pause(self) -> None:
        self._resume.clear()

    def resume(self) -> None:
        self._resume.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    @property
    def paused(self) -> bool:
        return not self._resume.is_set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    # ----- the loop -----

    def _run_trials(self) -> list[TrialStats]:
        logger.info("Simulation started: %s", type(self.learner).__name__)
        results: list[TrialStats] = []
        for trial in range(self.n_trials):
            if self._stop.is_set():
                break
            results.append(self.run_trial(trial))
        logger.info("Simulation finished after %d trial(s)", len(results))
        return results

    def run_trial(self, trial: int) -> TrialStats:
        steps = 0
        in_trial = True
        terminal = False
        self._sum_rewards = 0.0
        while in_trial and steps < self.n_steps:
            self._resume.wait()
            if self._stop.is_set():
                break
            in_trial = self.run_step(trial, steps)
            terminal = not in_trial
            steps += 1

        mean = self._sum_rewards / steps if steps else 0.0
        stats = TrialStats(trial=trial, mean_reward=mean, steps=steps, terminal=terminal)
        self.last_trial = stats
        logger.debug("Trial %d: %d step(s), mean reward %.4f, terminal=%s", trial + 1, steps, mean, terminal)
        if self.trial_sink is not None:
            self.trial_sink(trial, mean, steps)
        self.notify(Event.TRIAL)
        return stats

    def run_step(self, trial: int, step: int) -> bool:
        """One simulation step; returns False when the environment reached a terminal state."""
        with self._lock:
            self.trial, self.step = trial, step
            if step == 0:
                self.environment.reset()
                self.learner.reset()
                self.notify(Event.RESET)

            x = self.environment.state()
            a = self.learner.react(x)
            r = self.environment.execute(a)
            self.learner.reinforce(r)
            end_of_trial = self.environment.terminal_state()

            self._sum_rewards += r
            if self.step_sink is not None:
                self.step_sink(trial, step, r)
        self.notify(Event.STEP)
        return not end_of_trial
