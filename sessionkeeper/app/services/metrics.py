"""
Metrics collector handed to each component at construction.

There is no process-wide registry: whoever builds the application owns the
collector and passes it down.
"""

import threading
from abc import ABC, abstractmethod
from collections import Counter
from typing import Tuple


class MetricsCollector(ABC):
    @abstractmethod
    def increment(self, name: str, value: int = 1, **labels: str) -> None:
        pass


class NullMetrics(MetricsCollector):
    def increment(self, name: str, value: int = 1, **labels: str) -> None:
        return None


class InMemoryMetrics(MetricsCollector):
    """Counters keyed by metric name and sorted label pairs."""

    def __init__(self):
        self._counters: Counter = Counter()
        self._lock = threading.Lock()

    @staticmethod
    def _key(name: str, labels: dict) -> Tuple:
        return (name, tuple(sorted(labels.items())))

    def increment(self, name: str, value: int = 1, **labels: str) -> None:
        with self._lock:
            self._counters[self._key(name, labels)] += value

    def get(self, name: str, **labels: str) -> int:
        with self._lock:
            return self._counters[self._key(name, labels)]
