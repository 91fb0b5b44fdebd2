"""Environments the learners interact with."""

from .base import Environment
from .grid import Grid
from .maps import GridSpec, build_grid, discover_maps, filter_maps

__all__ = [
    "Environment",
    "Grid",
    "GridSpec",
    "build_grid",
    "discover_maps",
    "filter_maps",
]
