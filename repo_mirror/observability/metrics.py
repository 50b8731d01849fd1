"""
Metrics — Count what happened during a mirror run.

Counters are updated from scheduler worker threads, so every
mutation happens under a lock.

## Usage

    from repo_mirror.observability.metrics import metrics

    metrics.increment("api.attempts")
    metrics.get("mirror.failed")
"""

from __future__ import annotations

from collections import defaultdict
from threading import Lock
from typing import Dict, Optional


class Counter:
    """A monotonically increasing counter."""

    def __init__(self, name: str, help_text: str = ""):
        self.name = name
        self.help_text = help_text
        self._values: Dict[str, float] = defaultdict(float)
        self._lock = Lock()

    def inc(self, value: float = 1, labels: Optional[Dict[str, str]] = None) -> None:
        """Increment the counter."""
        key = self._labels_key(labels)
        with self._lock:
            self._values[key] += value

    def get(self, labels: Optional[Dict[str, str]] = None) -> float:
        """Get current value."""
        key = self._labels_key(labels)
        with self._lock:
            return self._values.get(key, 0)

    def total(self) -> float:
        """Sum across all label sets."""
        with self._lock:
            return sum(self._values.values())

    def _labels_key(self, labels: Optional[Dict[str, str]]) -> str:
        if not labels:
            return ""
        return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))


class MetricsRegistry:
    """Named counters for one process."""

    def __init__(self):
        self._counters: Dict[str, Counter] = {}
        self._lock = Lock()

    def counter(self, name: str, help_text: str = "") -> Counter:
        """Get or create a counter."""
        with self._lock:
            if name not in self._counters:
                self._counters[name] = Counter(name, help_text)
            return self._counters[name]

    def increment(self, name: str, value: float = 1, labels: Optional[Dict[str, str]] = None) -> None:
        self.counter(name).inc(value, labels)

    def get(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        return self.counter(name).get(labels)

    def snapshot(self) -> Dict[str, float]:
        """Totals for every counter, keyed by name."""
        with self._lock:
            counters = list(self._counters.values())
        return {c.name: c.total() for c in counters}

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()


# Global registry instance
metrics = MetricsRegistry()
