"""
Mirror Errors — Failure types raised by the API client, pipeline and bootstrap.
"""

from __future__ import annotations

from enum import Enum


class MirrorStep(str, Enum):
    """Pipeline steps, in execution order."""
    ENSURE_DESTINATION = "ensure_destination"
    CLONE_SOURCE = "clone_source"
    ADD_REMOTE = "add_remote"
    PUSH_MIRROR = "push_mirror"


class MirrorError(Exception):
    """Base class for all mirror failures."""


class ApiUnavailableError(MirrorError):
    """No response from the destination API after every attempt."""

    def __init__(self, method: str, path: str, attempts: int):
        self.method = method
        self.path = path
        self.attempts = attempts
        super().__init__(f"cannot access destination api: {method} {path} ({attempts} attempts)")


class PipelineError(MirrorError):
    """A pipeline step failed; the mirror is abandoned."""

    def __init__(self, step: MirrorStep, reason: str):
        self.step = step
        self.reason = reason
        super().__init__(reason)


class BootstrapError(MirrorError):
    """Environment setup failed; no mirror can run."""
