# environments/base.py
"""The contract every environment offers to learners and the runner."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod

import numpy as np

from learners.errors import InvalidParameter
from simulation.events import Event, Notifier


class Environment(Notifier, ABC):
    """
    Minimal interface an environment offers to the runner and the learner.

    Conventions:
      - state() returns a read-only view of the current state vector
      - execute(a) performs the transition for action a in [0, n_actions)
        and returns the reward for the state it leads to
      - execute() and reset() notify Event.STATE after mutating,
        configure() notifies Event.PROPERTIES
    """

    def __init__(self):
        super().__init__()
        self._lock = threading.RLock()
        self._state: np.ndarray | None = None

    @property
    @abstractmethod
    def n_actions(self) -> int:
        ...

    def state(self) -> np.ndarray:
        with self._lock:
            view = self._state.view()
            view.flags.writeable = False
            return view

    def execute(self, action: int) -> float:
        with self._lock:
            self._state_transition(int(action))
            r = float(self._reward())
        self.notify(Event.STATE)
        return r

    def reset(self) -> None:
        with self._lock:
            self._state_init()
        self.notify(Event.STATE)

    @abstractmethod
    def terminal_state(self) -> bool:
        ...

    def configure(self, **params) -> None:
        """Set parameters through their (validating) property setters."""
        with self._lock:
            for name, value in params.items():
                attr = getattr(type(self), name, None)
                if not isinstance(attr, property) or attr.fset is None:
                    raise InvalidParameter(f"{type(self).__name__} has no settable parameter {name!r}")
                setattr(self, name, value)
        self.notify(Event.PROPERTIES)

    def params(self) -> dict[str, object]:
        return {}

    # ----- transition model -----

    @abstractmethod
    def _state_transition(self, action: int) -> None:
        ...

    @abstractmethod
    def _state_init(self) -> None:
        ...

    @abstractmethod
    def _reward(self) -> float:
        ...
