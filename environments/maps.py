# environments/maps.py
"""Named grid maps used by the experiment entry points."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

import numpy as np

from .grid import Grid


@dataclass(frozen=True)
class GridSpec:
    """
    A named map plus its default starting cell (-1 for random starts).
    """

    name: str
    grid_map: np.ndarray
    start_x: int = -1
    start_y: int = -1

    @property
    def shape(self) -> tuple[int, int]:
        return tuple(self.grid_map.shape)


def _rooms_map() -> np.ndarray:
    m = np.full((10, 10), Grid.EMPTY, dtype=np.int8)
    walls = [
        (1, 2), (2, 2), (3, 2), (3, 3), (3, 4), (3, 5), (3, 6), (3, 7),
        (2, 7), (1, 7),
        (8, 2), (7, 2), (6, 2), (6, 3), (6, 4), (6, 5), (6, 6), (6, 7),
        (7, 7), (8, 7),
    ]
    for x, y in walls:
        m[x, y] = Grid.OBSTACLE
    m[7, 3] = Grid.GOAL
    return m


def _four_rooms_map() -> np.ndarray:
    m = np.full((20, 20), Grid.EMPTY, dtype=np.int8)
    walls = [
        (1, 1), (4, 1), (3, 1), (2, 1), (1, 4), (1, 3), (1, 2),
        (4, 3), (4, 4), (3, 4),
        (6, 0), (6, 1), (6, 2), (6, 3), (6, 4),
        (0, 6), (1, 6), (2, 6), (3, 6), (4, 6),
        (9, 1), (8, 1), (8, 2), (8, 3), (8, 4),
        (1, 9), (1, 8), (2, 8), (3, 8), (4, 8),
        (8, 6), (9, 6), (6, 8), (6, 9),
    ]
    for x, y in walls:
        m[x, y] = Grid.OBSTACLE

    # mirror the top-left quadrant into the other three
    n = m.shape[0]
    for i in range(n):
        for j in range(n):
            ii = n - i - 1 if i >= n // 2 else i
            jj = n - j - 1 if j >= n // 2 else j
            m[i, j] = m[ii, jj]

    for x, y in [(9, 8), (8, 8), (8, 10), (8, 11), (10, 11), (11, 11), (11, 9), (11, 8)]:
        m[x, y] = Grid.OBSTACLE
    for x, y in [(16, 2), (16, 3), (17, 3), (17, 2)]:
        m[x, y] = Grid.GOAL
    return m


def _open_map() -> np.ndarray:
    m = np.full((5, 5), Grid.EMPTY, dtype=np.int8)
    m[4, 4] = Grid.GOAL
    return m


_BUILDERS: dict[str, Callable[[], GridSpec]] = {
    "open": lambda: GridSpec("open", _open_map(), 0, 0),
    "rooms": lambda: GridSpec("rooms", _rooms_map(), 2, 6),
    "four_rooms": lambda: GridSpec("four_rooms", _four_rooms_map(), -1, -1),
}


def discover_maps() -> list[GridSpec]:
    """All known maps, sorted by name."""
    return sorted((build() for build in _BUILDERS.values()), key=lambda s: s.name.lower())


def filter_maps(specs: Iterable[GridSpec], only: list[str] | None) -> list[GridSpec]:
    if not only:
        return list(specs)
    only_set = {s.strip() for s in only if s.strip()}
    return [s for s in specs if s.name in only_set]


def build_grid(spec: GridSpec, *, scale: float = 1, seed: int | None = None) -> Grid:
    return Grid(spec.grid_map, spec.start_x, spec.start_y, scale=scale, seed=seed)
