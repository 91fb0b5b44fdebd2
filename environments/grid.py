# environments/grid.py
"""Two-dimensional grid world for simple path-finding tasks."""

from __future__ import annotations

import numpy as np

from learners.errors import InvalidParameter, InvalidState, OutOfRange

from .base import Environment


class Grid(Environment):
    """
    Grid path finding.

    The state is the agent's (x, y) cell. Moves off the map or into an
    obstacle leave the agent where it is. Every step costs -1 except one
    that ends on a goal cell, which yields 0 and ends the trial.

    Map cells:
    - 0: EMPTY
    - 1: OBSTACLE
    - 2: GOAL

    Actions:
    - 0: LEFT   (x - 1)
    - 1: RIGHT  (x + 1)
    - 2: TOP    (y - 1)
    - 3: BOTTOM (y + 1)
    """

    EMPTY = 0
    OBSTACLE = 1
    GOAL = 2

    LEFT = 0
    RIGHT = 1
    TOP = 2
    BOTTOM = 3

    ACTION_NAMES = ["LEFT", "RIGHT", "TOP", "BOTTOM"]
    NUM_ACTIONS = 4

    _MOVES = {
        LEFT: (-1, 0),
        RIGHT: (1, 0),
        TOP: (0, -1),
        BOTTOM: (0, 1),
    }

    def __init__(self, grid_map, start_x: int = -1, start_y: int = -1, scale: float = 1, seed: int | None = None):
        """
        Args:
            grid_map: 2D array indexed [x, y] of EMPTY / OBSTACLE / GOAL cells
            start_x, start_y: fixed starting cell; an illegal or blocked
                              start means a random start every trial
            scale: factor by which the map and start cell are scaled up
            seed: seed for the random starting locations
        """
        super().__init__()
        m = np.array(grid_map, dtype=np.int8)
        if m.ndim != 2 or m.shape[0] <= 1 or m.shape[1] <= 1:
            raise InvalidParameter(f"grid map must be at least 2x2, got shape {m.shape}")
        if not np.all(np.isin(m, (self.EMPTY, self.OBSTACLE, self.GOAL))):
            raise InvalidParameter("grid map may only contain EMPTY, OBSTACLE and GOAL cells")
        if np.all(m == self.OBSTACLE):
            raise InvalidParameter("grid map has no free cell")

        self.rng = np.random.default_rng(seed)
        self._map = m
        self._state = np.zeros(2, dtype=np.int64)
        self._start_x = int(start_x) if self._in_range_x(start_x) else -1
        self._start_y = int(start_y) if self._in_range_y(start_y) else -1
        if scale != 1:
            self.rescale(scale, scale)
        else:
            self._state_init()

    @property
    def n_actions(self) -> int:
        return self.NUM_ACTIONS

    def terminal_state(self) -> bool:
        with self._lock:
            return bool(self._map[self._state[0], self._state[1]] == self.GOAL)

    # ----- map geometry and parameters -----

    @property
    def x_size(self) -> int:
        return int(self._map.shape[0])

    @x_size.setter
    def x_size(self, xs: int) -> None:
        if int(xs) <= 1:
            raise InvalidParameter(f"x_size must be > 1, got {xs}")
        with self._lock:
            self.rescale(int(xs) / self.x_size, 1)

    @property
    def y_size(self) -> int:
        return int(self._map.shape[1])

    @y_size.setter
    def y_size(self, ys: int) -> None:
        if int(ys) <= 1:
            raise InvalidParameter(f"y_size must be > 1, got {ys}")
        with self._lock:
            self.rescale(1, int(ys) / self.y_size)

    @property
    def start_x(self) -> int:
        return self._start_x

    @start_x.setter
    def start_x(self, x: int) -> None:
        with self._lock:
            self._start_x = int(x) if self._in_range_x(x) else -1

    @property
    def start_y(self) -> int:
        return self._start_y

    @start_y.setter
    def start_y(self, y: int) -> None:
        with self._lock:
            self._start_y = int(y) if self._in_range_y(y) else -1

    @property
    def grid_map(self) -> np.ndarray:
        with self._lock:
            return self._map.copy()

    def params(self) -> dict[str, object]:
        return {
            "x_size": self.x_size,
            "y_size": self.y_size,
            "start_x": self._start_x,
            "start_y": self._start_y,
        }

    # ----- cell access -----

    def cell_at(self, x: int, y: int) -> int:
        with self._lock:
            self._check_cell(x, y)
            return int(self._map[x, y])

    def set_obstacle(self, x: int, y: int) -> None:
        self._set_cell(x, y, self.OBSTACLE)

    def set_empty(self, x: int, y: int) -> None:
        self._set_cell(x, y, self.EMPTY)

    def set_goal(self, x: int, y: int) -> None:
        self._set_cell(x, y, self.GOAL)

    def rescale(self, sx: float, sy: float) -> None:
        """
        Scale the map by (sx, sy), moving the start cell to the middle of
        its scaled block, and re-initialize the agent position.
        """
        if sx <= 0 or sy <= 0:
            raise InvalidParameter(f"scale factors must be > 0, got ({sx}, {sy})")
        with self._lock:
            old_x, old_y = self.x_size, self.y_size
            new_x = max(int(sx * old_x + 1e-9), 1)
            new_y = max(int(sy * old_y + 1e-9), 1)
            rows = np.minimum((np.arange(new_x) / sx).astype(np.int64), old_x - 1)
            cols = np.minimum((np.arange(new_y) / sy).astype(np.int64), old_y - 1)
            self._map = self._map[np.ix_(rows, cols)]
            self._start_x = _scaled_start(self._start_x, old_x, sx, new_x)
            self._start_y = _scaled_start(self._start_y, old_y, sy, new_y)
            self._state_init()

    # ----- transition model -----

    def _state_transition(self, action: int) -> None:
        if action not in self._MOVES:
            raise InvalidParameter(f"unknown grid action: {action}")
        dx, dy = self._MOVES[action]
        new_x, new_y = int(self._state[0]) + dx, int(self._state[1]) + dy
        if self._can_move_to(new_x, new_y):
            self._state[0], self._state[1] = new_x, new_y

    def _state_init(self) -> None:
        if np.all(self._map == self.OBSTACLE):
            raise InvalidState("grid map has no free cell")
        new_x, new_y = self._start_x, self._start_y
        while not self._can_move_to(new_x, new_y):
            new_x = int(self.rng.integers(self.x_size))
            new_y = int(self.rng.integers(self.y_size))
        self._state[0], self._state[1] = new_x, new_y

    def _reward(self) -> float:
        return 0.0 if self._map[self._state[0], self._state[1]] == self.GOAL else -1.0

    # ----- helpers -----

    def _in_range_x(self, x) -> bool:
        return 0 <= int(x) < self.x_size

    def _in_range_y(self, y) -> bool:
        return 0 <= int(y) < self.y_size

    def _can_move_to(self, x: int, y: int) -> bool:
        return self._in_range_x(x) and self._in_range_y(y) and self._map[x, y] != self.OBSTACLE

    def _check_cell(self, x: int, y: int) -> None:
        if not (self._in_range_x(x) and self._in_range_y(y)):
            raise OutOfRange(f"cell ({x}, {y}) outside {self.x_size}x{self.y_size} grid")

    def _set_cell(self, x: int, y: int, value: int) -> None:
        with self._lock:
            self._check_cell(x, y)
            self._map[x, y] = value


def _scaled_start(start: int, old_size: int, factor: float, new_size: int) -> int:
    if not 0 <= start < old_size:
        return -1
    s = int(factor * start + factor * (start + 1) - 1) // 2
    return min(max(s, 0), new_size - 1)
