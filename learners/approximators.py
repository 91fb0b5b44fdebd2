# learners/approximators.py
"""Function approximators: map an input vector (and output index) to a scalar value."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np

from .errors import InvalidParameter, OutOfRange


class FunctionApproximator(ABC):
    """
    Multi-output function approximator.

    Single-output use is the special case `output=0`.
    """

    @property
    @abstractmethod
    def n_outputs(self) -> int:
        ...

    @abstractmethod
    def restore(self, x, output: int = 0) -> float:
        """Return the current value for input `x` and the given output."""

    @abstractmethod
    def update(self, x, output: int, delta: float, step_size: float) -> None:
        """Apply value += step_size * delta for input `x` and the given output."""

    @abstractmethod
    def initialize(self, value: float) -> None:
        """Set the value of every input/output to `value`."""

    def restore_all(self, x) -> np.ndarray:
        return np.array([self.restore(x, o) for o in range(self.n_outputs)], dtype=float)

    def update_all(self, x, deltas, step_size: float) -> None:
        for o, d in enumerate(np.asarray(deltas, dtype=float).reshape(-1)):
            self.update(x, o, float(d), step_size)


class LookUpTable(FunctionApproximator):
    """
    Look-up table over quantized inputs ("boxes" for continuous inputs).

    Every input dimension d is split into n_quants[d] equal buckets over
    [low[d], high[d]); inputs outside that range fall into the nearest edge
    bucket. One flat array of prod(n_quants) entries is kept per output.
    """

    def __init__(self, n_quants: Sequence[int], low: Sequence[float], high: Sequence[float], n_outputs: int = 1):
        if n_quants is None or low is None or high is None:
            raise InvalidParameter("n_quants, low and high are required")
        nq = np.asarray(n_quants, dtype=np.int64).reshape(-1)
        lo = np.asarray(low, dtype=float).reshape(-1)
        hi = np.asarray(high, dtype=float).reshape(-1)
        if nq.size == 0:
            raise InvalidParameter("at least one input dimension is required")
        if lo.size != nq.size or hi.size != nq.size:
            raise InvalidParameter(
                f"dimension mismatch: n_quants={nq.size}, low={lo.size}, high={hi.size}"
            )
        if np.any(nq < 1):
            raise InvalidParameter(f"quantization counts must be >= 1, got {nq.tolist()}")
        if np.any(hi <= lo):
            raise InvalidParameter(f"high must exceed low in every dimension, got low={lo.tolist()} high={hi.tolist()}")
        if int(n_outputs) < 1:
            raise InvalidParameter(f"n_outputs must be >= 1, got {n_outputs}")

        self._n_quants = nq
        self._low = lo
        self._span = hi - lo
        self._high = hi
        self._lock = threading.RLock()
        self._table = np.zeros((int(n_outputs), int(np.prod(nq))), dtype=float)

    @classmethod
    def uniform(cls, n_inputs: int, n_quants: int, low: float, high: float, n_outputs: int = 1) -> "LookUpTable":
        """The same quantization and range for every input."""
        if int(n_inputs) < 1:
            raise InvalidParameter(f"n_inputs must be >= 1, got {n_inputs}")
        if low is None or high is None:
            raise InvalidParameter("low and high are required")
        n = int(n_inputs)
        return cls([int(n_quants)] * n, [float(low)] * n, [float(high)] * n, n_outputs)

    @classmethod
    def integer_grid(cls, low: Sequence[int], high: Sequence[int], n_outputs: int = 1) -> "LookUpTable":
        """One bucket per unit interval of every integer input range."""
        if low is None or high is None:
            raise InvalidParameter("low and high are required")
        lo = np.asarray(low, dtype=np.int64).reshape(-1)
        hi = np.asarray(high, dtype=np.int64).reshape(-1)
        if lo.size != hi.size:
            raise InvalidParameter(f"dimension mismatch: low={lo.size}, high={hi.size}")
        return cls(hi - lo, lo, hi, n_outputs)

    @classmethod
    def unit(cls, n_quants: Sequence[int], n_outputs: int = 1) -> "LookUpTable":
        """Quantization of [0, 1) ranges."""
        if n_quants is None:
            raise InvalidParameter("n_quants is required")
        n = len(n_quants)
        return cls(n_quants, [0.0] * n, [1.0] * n, n_outputs)

    @property
    def n_outputs(self) -> int:
        return int(self._table.shape[0])

    @property
    def n_inputs(self) -> int:
        return int(self._n_quants.size)

    @property
    def n_entries(self) -> int:
        return int(self._table.shape[1])

    @property
    def n_quants(self) -> np.ndarray:
        return self._n_quants.copy()

    @property
    def table(self) -> np.ndarray:
        with self._lock:
            return self._table.copy()

    def initialize(self, value: float) -> None:
        with self._lock:
            self._table.fill(float(value))

    def restore(self, x, output: int = 0) -> float:
        with self._lock:
            return float(self._table[self._output(output), self.entry_num(x)])

    def restore_all(self, x) -> np.ndarray:
        with self._lock:
            return self._table[:, self.entry_num(x)].copy()

    def update(self, x, output: int, delta: float, step_size: float) -> None:
        with self._lock:
            self._table[self._output(output), self.entry_num(x)] += float(step_size) * float(delta)

    def quant_nums(self, x) -> np.ndarray:
        """Bucket index of every input dimension, clamped to the valid range."""
        v = np.asarray(x, dtype=float).reshape(-1)
        if v.size != self._n_quants.size:
            raise OutOfRange(f"input has {v.size} dimensions, table expects {self._n_quants.size}")
        q = ((v - self._low) * self._n_quants / self._span).astype(np.int64)
        return np.clip(q, 0, self._n_quants - 1)

    def entry_num(self, x) -> int:
        e = 0
        for q, n in zip(self.quant_nums(x), self._n_quants):
            e = e * int(n) + int(q)
        return e

    def _output(self, output: int) -> int:
        o = int(output)
        if not 0 <= o < self._table.shape[0]:
            raise OutOfRange(f"output {o} not in [0, {self._table.shape[0]})")
        return o

    def __repr__(self) -> str:
        return (
            f"LookUpTable(n_quants={self._n_quants.tolist()}, low={self._low.tolist()}, "
            f"high={self._high.tolist()}, n_outputs={self.n_outputs})"
        )
