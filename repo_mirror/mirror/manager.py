"""
Mirror Manager — Run every configured mirror under a concurrency cap.

Bootstrap first, then submit one pipeline per spec through the
bounded scheduler and wait for all of them. One mirror failing never
cancels the others; the run fails if any single mirror failed.

## Usage

    from repo_mirror.mirror.manager import MirrorManager

    manager = MirrorManager(settings)
    result = manager.run()
    if result.any_failed:
        ...
"""

from __future__ import annotations

import logging
from concurrent.futures import wait
from typing import List, Optional

from ..models.result import MirrorResult, RunResult
from ..observability.metrics import metrics
from ..reliability.scheduler import BoundedScheduler
from .api_client import DestinationApi
from .bootstrap import bootstrap_environment
from .config import MirrorSettings
from .pipeline import MirrorPipeline
from .spec import MirrorSpec, parse_specs

logger = logging.getLogger(__name__)


class MirrorManager:
    """Coordinates bootstrap, scheduling and result aggregation for one run."""

    def __init__(
        self,
        settings: MirrorSettings,
        api: Optional[DestinationApi] = None,
        pipeline: Optional[MirrorPipeline] = None,
    ):
        self.settings = settings
        self.api = api or DestinationApi(
            settings.api_url,
            settings.token or "",
            timeout=settings.request_timeout,
        )
        self.pipeline = pipeline or MirrorPipeline(settings, self.api)

    def run(self, bootstrap: bool = True) -> RunResult:
        """
        Mirror every configured repository.

        Raises BootstrapError if setup fails; mirror failures are
        reported in the returned RunResult instead.
        """
        if bootstrap:
            bootstrap_environment(self.settings, self.api)

        specs = parse_specs(self.settings.repositories)
        return self.mirror_all(specs)

    def mirror_all(self, specs: List[MirrorSpec]) -> RunResult:
        logger.info(
            f"[mirror] Mirroring {len(specs)} repositories "
            f"(concurrency {self.settings.concurrency})"
        )

        with BoundedScheduler(self.settings.concurrency) as scheduler:
            futures = [scheduler.submit(self.pipeline.run, spec) for spec in specs]
            wait(futures)

        results = []
        for spec, future in zip(specs, futures):
            error = future.exception()
            if error is None:
                results.append(future.result())
            else:
                results.append(MirrorResult.failed(spec, error))

        run = RunResult(results=results)
        metrics.increment("mirror.succeeded", run.succeeded_count)
        metrics.increment("mirror.failed", run.failed_count)

        for failed in run.failures:
            logger.error(
                f"[mirror] {failed.spec.indicator(self.settings.org)}: {failed.reason}"
            )
        counts = metrics.snapshot()
        logger.info(
            f"[mirror] {run.summary()} "
            f"(api attempts: {counts.get('api.attempts', 0):.0f}, "
            f"transport failures: {counts.get('api.transport_failures', 0):.0f})"
        )
        return run

    def close(self) -> None:
        self.api.close()
