"""
Mirror Pipeline — Drive one spec from "maybe no destination" to "pushed".

Steps, each depending on the previous one:

1. ensure_destination — create the destination repo if it is missing
2. clone_source — clone into a private temporary directory
3. add_remote — register the destination's SSH URL
4. push_mirror — force-push, overwriting destination history

Nothing is retried here; only the API calls in step 1 retry their
own transport failures. A failure is logged with the spec's indicator
and re-raised so the scheduler's future carries it.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from ..models.result import MirrorResult
from . import git_sync
from .api_client import DestinationApi
from .config import MirrorSettings
from .errors import ApiUnavailableError, MirrorStep, PipelineError
from .spec import MirrorSpec

logger = logging.getLogger(__name__)


class MirrorPipeline:
    """Runs the mirror steps for one spec at a time. Safe to share across threads."""

    def __init__(self, settings: MirrorSettings, api: DestinationApi):
        self.settings = settings
        self.api = api

    def run(self, spec: MirrorSpec) -> MirrorResult:
        indicator = spec.indicator(self.settings.org)
        extra = {"repo": spec.source_repo}

        try:
            self.ensure_destination(spec)
            with tempfile.TemporaryDirectory(prefix="repo-") as tmp:
                self.sync(spec, Path(tmp) / spec.target_name)
        except PipelineError as e:
            logger.warning(
                f"[mirror] {indicator} failed at {e.step.value}: {e.reason}",
                extra={**extra, "step": e.step.value},
            )
            raise
        except Exception as e:
            logger.warning(f"[mirror] {indicator} failed: {e!r}", extra=extra)
            raise

        logger.info(f"[mirror] {indicator}", extra=extra)
        return MirrorResult.succeeded(spec)

    def ensure_destination(self, spec: MirrorSpec) -> None:
        org = self.settings.org
        step = MirrorStep.ENSURE_DESTINATION
        try:
            if self.api.repo_exists(org, spec.target_name):
                return
        except ApiUnavailableError as e:
            raise PipelineError(step, str(e)) from e

        logger.info(f"[mirror] Creating destination repository {org}/{spec.target_name}")
        try:
            created = self.api.create_repo(org, spec.target_name)
        except ApiUnavailableError as e:
            raise PipelineError(step, "cannot create destination repository") from e
        if not created:
            raise PipelineError(step, "cannot create destination repository")

    def sync(self, spec: MirrorSpec, workdir: Path) -> None:
        """Clone, add the mirror remote, force-push."""
        env = self.settings.git_env()
        remote = self.settings.remote_name

        git_sync.clone(self.settings.source_url(spec.source_repo), workdir, spec.branch, env=env)
        git_sync.add_remote(workdir, remote, self.settings.destination_url(spec.target_name), env=env)
        output = git_sync.force_push(workdir, remote, env=env)
        if output:
            logger.debug(f"[mirror-git] {spec.source_repo}: {output}")
