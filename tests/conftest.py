# tests/conftest.py

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure the repository root is on sys.path for `import learners`, `import environments`, ...
PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


class RecordingUtility:
    """Utility callbacks backed by a dict, recording every update."""

    def __init__(self, values: dict | None = None, successor: dict | None = None):
        self.values = dict(values or {})
        self.successor = dict(successor or {})
        self.updates: list[tuple[tuple, int, float]] = []

    @staticmethod
    def _key(x) -> tuple:
        return tuple(int(v) for v in x)

    def utility0(self, x, a: int) -> float:
        return self.values.get((self._key(x), a), 0.0)

    def utility1(self, x, a: int) -> float:
        return self.successor.get((self._key(x), a), 0.0)

    def update(self, x, a: int, delta: float) -> None:
        self.updates.append((self._key(x), int(a), float(delta)))


@pytest.fixture
def utility() -> RecordingUtility:
    return RecordingUtility()


@pytest.fixture
def utility_factory():
    return RecordingUtility
