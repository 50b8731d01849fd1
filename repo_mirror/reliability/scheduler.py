"""
Bounded Scheduler — Run submitted tasks with at most N in flight.

A fixed pool of N worker threads pulls tasks from a FIFO queue, so
queued tasks start in submission order as capacity frees up. Each
``submit()`` returns a ``concurrent.futures.Future`` that settles
exactly once with the task's return value or the exception it raised.
A failing task never stops the worker that ran it.

## Usage

    from repo_mirror.reliability.scheduler import BoundedScheduler

    with BoundedScheduler(limit=4) as scheduler:
        futures = [scheduler.submit(pipeline.run, spec) for spec in specs]
        wait(futures)
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class TaskRecord:
    """A deferred unit of work, owned by the scheduler until it settles."""

    fn: Callable[..., Any]
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)
    future: Future = field(default_factory=Future)
    seq: int = 0


@dataclass(frozen=True)
class SchedulerStats:
    """Point-in-time counters. ``active + queued == submitted - settled``."""

    limit: int
    active: int
    queued: int
    submitted: int
    settled: int


class BoundedScheduler:
    """
    Fixed-size worker pool with a FIFO admission queue.

    The limit is fixed for the scheduler's lifetime.
    """

    def __init__(self, limit: int, name: str = "mirror"):
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")

        self.limit = limit
        self.name = name
        self._queue: "queue.Queue[Optional[TaskRecord]]" = queue.Queue()
        self._lock = threading.Lock()
        self._active = 0
        self._queued = 0
        self._submitted = 0
        self._settled = 0
        self._closed = False

        self._workers: List[threading.Thread] = []
        for i in range(limit):
            worker = threading.Thread(
                target=self._worker, name=f"{name}-worker-{i + 1}", daemon=True
            )
            worker.start()
            self._workers.append(worker)

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Queue ``fn(*args, **kwargs)``; returns its future."""
        with self._lock:
            if self._closed:
                raise RuntimeError(f"scheduler {self.name} is shut down")
            self._submitted += 1
            self._queued += 1
            record = TaskRecord(fn=fn, args=args, kwargs=kwargs, seq=self._submitted)
            # Put under the lock so queue order matches sequence numbers.
            self._queue.put(record)

        logger.debug(f"[scheduler] {self.name}: queued task #{record.seq}")
        return record.future

    def stats(self) -> SchedulerStats:
        with self._lock:
            return SchedulerStats(
                limit=self.limit,
                active=self._active,
                queued=self._queued,
                submitted=self._submitted,
                settled=self._settled,
            )

    def shutdown(self, wait: bool = True) -> None:
        """
        Stop accepting tasks. Already-submitted tasks still run.

        With ``wait=True`` blocks until every worker has drained the queue.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            for _ in self._workers:
                self._queue.put(None)

        if wait:
            for worker in self._workers:
                worker.join()

    def __enter__(self) -> "BoundedScheduler":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown(wait=True)

    # ─── Worker ─────────────────────────────────────────────

    def _worker(self) -> None:
        while True:
            record = self._queue.get()
            if record is None:
                return
            self._run(record)

    def _run(self, record: TaskRecord) -> None:
        future = record.future
        with self._lock:
            self._queued -= 1
            self._active += 1

        if not future.set_running_or_notify_cancel():
            # Cancelled by the caller while still queued.
            logger.warning(f"[scheduler] {self.name}: task #{record.seq} was cancelled")
            self._settle()
            return

        result: Any = None
        error: Optional[BaseException] = None
        try:
            result = record.fn(*record.args, **record.kwargs)
        except BaseException as e:
            error = e

        self._settle()
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)

    def _settle(self) -> None:
        with self._lock:
            self._active -= 1
            self._settled += 1
