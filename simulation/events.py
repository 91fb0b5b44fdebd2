# simulation/events.py
"""
Tagged change notifications.

Observers are called synchronously as `callback(source, event)` after the
source has finished mutating itself. The event carries no payload: observers
query the source for whatever they need.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any, Callable


class Event(str, Enum):
    STATE = "State"
    PROPERTIES = "Properties"
    RESET = "Reset"
    STEP = "Step"
    TRIAL = "Trial"


Observer = Callable[[Any, Event], None]


class Notifier:
    def __init__(self):
        self._observers: list[Observer] = []
        self._observers_lock = threading.Lock()

    def subscribe(self, callback: Observer) -> Callable[[], None]:
        """Register `callback`; returns a function that unregisters it."""
        with self._observers_lock:
            self._observers.append(callback)

        def unsubscribe() -> None:
            with self._observers_lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return unsubscribe

    def notify(self, event: Event) -> None:
        with self._observers_lock:
            observers = list(self._observers)
        for cb in observers:
            cb(self, event)
