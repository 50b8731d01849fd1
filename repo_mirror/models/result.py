"""
Result Models — Per-mirror outcomes and the run aggregate.

Every submitted spec produces exactly one MirrorResult, whether it
succeeded or failed. Results live only for the duration of a run.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..mirror.errors import MirrorStep, PipelineError
from ..mirror.spec import MirrorSpec


class MirrorResult(BaseModel):
    """Outcome of one mirror pipeline run."""

    model_config = ConfigDict(frozen=True)

    spec: MirrorSpec
    status: Literal["succeeded", "failed"]
    step: Optional[MirrorStep] = None
    reason: Optional[str] = None
    ts_iso: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @property
    def ok(self) -> bool:
        return self.status == "succeeded"

    @classmethod
    def succeeded(cls, spec: MirrorSpec) -> "MirrorResult":
        return cls(spec=spec, status="succeeded")

    @classmethod
    def failed(cls, spec: MirrorSpec, error: BaseException) -> "MirrorResult":
        """Build a failed result from whatever the pipeline raised."""
        step = error.step if isinstance(error, PipelineError) else None
        return cls(spec=spec, status="failed", step=step, reason=str(error) or repr(error))


class RunResult(BaseModel):
    """All mirror results of one run, in submission order."""

    results: List[MirrorResult] = Field(default_factory=list)

    @property
    def any_failed(self) -> bool:
        return any(not r.ok for r in self.results)

    @property
    def succeeded_count(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed_count(self) -> int:
        return len(self.results) - self.succeeded_count

    @property
    def failures(self) -> List[MirrorResult]:
        return [r for r in self.results if not r.ok]

    def summary(self) -> str:
        if self.any_failed:
            return f"{self.failed_count} of {len(self.results)} repositories failed to mirror"
        return f"{len(self.results)} repositories mirrored"
