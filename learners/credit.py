# learners/credit.py
"""
Credit assignment for reinforcement learning.

`TTD` implements Truncated Temporal Differences: the m most recent
experiences are kept in a cyclic buffer and the oldest one is moved towards
a lambda-weighted blend of bootstrapped and realized returns computed over
that window.

The three operations of a `CreditAssigner` must be called in a fixed order
every time step:

    state_and_action -> reward -> state_and_action -> reward -> ... -> reset

A call out of turn raises `InvalidState`.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import numpy as np

from .errors import InvalidParameter, InvalidState, OutOfRange, check_unit_interval

logger = logging.getLogger(__name__)


class UtilityFunction(Protocol):
    """Callback access to a learner's utility and update operations."""

    def utility0(self, x, a: int) -> float:
        ...

    def utility1(self, x, a: int) -> float:
        ...

    def update(self, x, a: int, delta: float) -> None:
        ...


class CreditAssigner(ABC):
    @abstractmethod
    def state_and_action(self, x, a: int, utility: UtilityFunction) -> None:
        """Credit assignment for the most recent state-action pair."""

    @abstractmethod
    def reward(self, r: float, utility: UtilityFunction) -> None:
        """Credit assignment for the most recent reward."""

    @abstractmethod
    def reset(self, utility: UtilityFunction) -> None:
        """Credit assignment at the end of a trial."""

    def params(self) -> dict[str, float]:
        return {}


class Call(Enum):
    NONE = "none"
    STATE_AND_ACTION = "state_and_action"
    REWARD = "reward"
    RESET = "reset"


# call -> calls it may directly follow
_ALLOWED_AFTER = {
    Call.STATE_AND_ACTION: frozenset({Call.NONE, Call.REWARD, Call.RESET}),
    Call.REWARD: frozenset({Call.STATE_AND_ACTION}),
    Call.RESET: frozenset({Call.NONE, Call.REWARD, Call.RESET}),
}


@dataclass
class Experience:
    x: np.ndarray | None = None
    a: int | None = None
    r: float | None = None
    u1: float | None = None

    def store_state(self, x) -> None:
        v = np.asarray(x)
        if self.x is None or self.x.shape != v.shape or self.x.dtype != v.dtype:
            self.x = np.array(v, copy=True)
        else:
            np.copyto(self.x, v)

    def copy(self) -> "Experience":
        return Experience(
            x=None if self.x is None else self.x.copy(),
            a=self.a,
            r=self.r,
            u1=self.u1,
        )


class ExperienceBuffer:
    """
    Cyclic buffer of m+1 experience records.

    Index 0 is the current record, index m the oldest one retained.
    `tick()` moves the virtual origin back by one slot, so every record
    shifts one index towards the past without any copying.
    """

    def __init__(self, m: int):
        if int(m) < 1:
            raise InvalidParameter(f"m must be >= 1, got {m}")
        self._buff = [Experience() for _ in range(int(m) + 1)]
        self._curp = 0
        self._nsteps = 0

    @property
    def m(self) -> int:
        return len(self._buff) - 1

    @property
    def capacity(self) -> int:
        return len(self._buff)

    @property
    def nsteps(self) -> int:
        """Steps made since construction or the last reset."""
        return self._nsteps

    def resized(self, m: int) -> "ExperienceBuffer":
        """
        A new buffer of length m holding as many of the most recent records
        of this one as fit.

        The step count of the new buffer is set to the number of records
        copied minus one, which may undercount by one step.
        """
        new = ExperienceBuffer(m)
        copied = 0
        while copied < new.capacity and copied < self.capacity and copied < self._nsteps:
            new._buff[copied] = self._at(copied).copy()
            copied += 1
        new._nsteps = max(copied - 1, 0)
        return new

    def insert_state_action(self, x, a: int, u1: float) -> None:
        """Store (x, a) as the current record and u1 as the previous record's successor utility."""
        self._at(1).u1 = float(u1)
        current = self._at(0)
        current.store_state(x)
        current.a = int(a)

    def insert_reward(self, r: float) -> None:
        self._at(1).r = float(r)

    def insert_terminal(self) -> None:
        """Successor utility 0 for the previous record (the trial has ended)."""
        self._at(1).u1 = 0.0

    def tick(self) -> None:
        self._curp = (self._curp - 1) % len(self._buff)
        self._nsteps += 1

    def reset(self) -> None:
        self._nsteps = 0

    def experience(self, t: int) -> Experience:
        if not 0 <= int(t) < len(self._buff):
            raise OutOfRange(f"buffer index {t} not in [0, {self.m}]")
        return self._at(int(t))

    def x(self, t: int):
        return self.experience(t).x

    def a(self, t: int) -> int | None:
        return self.experience(t).a

    def r(self, t: int) -> float | None:
        return self.experience(t).r

    def u1(self, t: int) -> float | None:
        return self.experience(t).u1

    def _at(self, t: int) -> Experience:
        return self._buff[(t + self._curp) % len(self._buff)]


class TTD(CreditAssigner):
    """
    TTD(lambda, m) credit assignment.

    Args:
        lambda_: recency factor in [0, 1]
        m: experience buffer length (truncation horizon), >= 1
        gamma: discount factor in [0, 1]
    """

    def __init__(self, lambda_: float = 0.5, m: int = 10, gamma: float = 0.95):
        self._lambda = check_unit_interval("lambda", lambda_)
        self._m = _check_m(m)
        self._gamma = check_unit_interval("gamma", gamma)
        self._buffer = ExperienceBuffer(self._m)
        self._last_call = Call.NONE
        self._lock = threading.RLock()

    # ----- parameters -----

    @property
    def lambda_(self) -> float:
        return self._lambda

    @lambda_.setter
    def lambda_(self, value: float) -> None:
        with self._lock:
            self._lambda = check_unit_interval("lambda", value)

    @property
    def gamma(self) -> float:
        return self._gamma

    @gamma.setter
    def gamma(self, value: float) -> None:
        with self._lock:
            self._gamma = check_unit_interval("gamma", value)

    @property
    def m(self) -> int:
        return self._m

    @m.setter
    def m(self, value: int) -> None:
        with self._lock:
            m = _check_m(value)
            self._buffer = self._buffer.resized(m)
            self._m = m
            logger.debug("TTD buffer resized to m=%d (nsteps=%d)", m, self._buffer.nsteps)

    @property
    def buffer(self) -> ExperienceBuffer:
        return self._buffer

    @property
    def last_call(self) -> Call:
        return self._last_call

    def params(self) -> dict[str, float]:
        return {"lambda": self._lambda, "m": self._m, "gamma": self._gamma}

    # ----- credit assigner interface -----

    def state_and_action(self, x, a: int, utility: UtilityFunction) -> None:
        with self._lock:
            self._accept(Call.STATE_AND_ACTION)
            self._buffer.insert_state_action(x, a, utility.utility1(x, a))
            self.ttd(1, utility)
            self._buffer.tick()

    def reward(self, r: float, utility: UtilityFunction) -> None:
        with self._lock:
            self._accept(Call.REWARD)
            self._buffer.insert_reward(r)

    def reset(self, utility: UtilityFunction) -> None:
        with self._lock:
            self._accept(Call.RESET)
            self._buffer.insert_terminal()
            for t0 in range(1, self._m + 1):
                self.ttd(t0, utility)
                self._buffer.tick()
            self._buffer.reset()

    # ----- the algorithm -----

    def ttd(self, t0: int, utility: UtilityFunction) -> None:
        """Move the oldest buffered state-action value towards the TTD return over [t0, m]."""
        z = self.ttd_return(t0)
        if self._buffer.nsteps >= self._m:
            b = self._buffer
            x, a = b.x(self._m), b.a(self._m)
            utility.update(x, a, z - utility.utility0(x, a))

    def ttd_return(self, t0: int) -> float:
        """The TTD return for buffer indices [t0, m]; 0 until m steps have been made."""
        b = self._buffer
        if b.nsteps < self._m:
            return 0.0
        lam, gamma = self._lambda, self._gamma
        z = b.u1(t0)
        for t in range(t0, self._m + 1):
            z = b.r(t) + gamma * (lam * z + (1.0 - lam) * b.u1(t))
        return float(z)

    def _accept(self, call: Call) -> None:
        if self._last_call not in _ALLOWED_AFTER[call]:
            raise InvalidState(f"{call.value}() may not follow {self._last_call.value}()")
        self._last_call = call

    def __repr__(self) -> str:
        return f"TTD({self._lambda}, {self._m}, {self._gamma})"


def _check_m(value) -> int:
    try:
        m = int(value)
    except (TypeError, ValueError):
        raise InvalidParameter(f"m must be an integer >= 1, got {value!r}") from None
    if m != value or m < 1:
        raise InvalidParameter(f"m must be an integer >= 1, got {value}")
    return m
