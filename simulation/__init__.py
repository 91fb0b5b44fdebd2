"""Simulation loop, change notifications and report sinks."""

from .events import Event, Notifier
from .reporting import RewardHistory, TabularReport, TrialStats
from .runner import Runner

__all__ = [
    "Event",
    "Notifier",
    "RewardHistory",
    "Runner",
    "TabularReport",
    "TrialStats",
]
