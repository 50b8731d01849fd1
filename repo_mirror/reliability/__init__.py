"""
Reliability Module — Bounded concurrency for mirror work.
"""

from .scheduler import BoundedScheduler, SchedulerStats, TaskRecord

__all__ = [
    "BoundedScheduler",
    "SchedulerStats",
    "TaskRecord",
]
