"""
Observability Module — In-process run counters.
"""

from .metrics import Counter, MetricsRegistry, metrics

__all__ = [
    "metrics",
    "MetricsRegistry",
    "Counter",
]
