"""
Git Sync — Clone a source repo and force-push it to the mirror remote.

Thin wrappers over the git binary. Each returns the completed process
or raises PipelineError for the step it belongs to.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from .errors import MirrorStep, PipelineError

logger = logging.getLogger(__name__)


def _git(
    args: List[str],
    step: MirrorStep,
    cwd: Optional[Path] = None,
    env: Optional[Dict[str, str]] = None,
) -> subprocess.CompletedProcess:
    """Run ``git <args>``; a non-zero exit fails ``step``."""
    cmd = ["git", *args]
    logger.debug(f"[mirror-git] {' '.join(cmd)}")

    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            env=env,
            capture_output=True,
            text=True,
        )
    except OSError as e:
        raise PipelineError(step, f"cannot run git: {e}") from e

    if result.returncode != 0:
        error = result.stderr.strip() or result.stdout.strip() or f"git {args[0]} failed"
        raise PipelineError(step, error)

    return result


def clone(
    url: str,
    dest: Path,
    branch: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
) -> None:
    """Clone ``url`` into ``dest``; only ``branch`` if one is given."""
    args = ["clone"]
    if branch:
        args += ["--branch", branch, "--single-branch"]
    args += [url, str(dest)]
    _git(args, MirrorStep.CLONE_SOURCE, env=env)


def add_remote(
    repo_dir: Path,
    name: str,
    url: str,
    env: Optional[Dict[str, str]] = None,
) -> None:
    _git(["remote", "add", name, url], MirrorStep.ADD_REMOTE, cwd=repo_dir, env=env)


def force_push(
    repo_dir: Path,
    remote: str,
    env: Optional[Dict[str, str]] = None,
) -> str:
    """Force-push the checked-out branch; returns git's push output."""
    result = _git(
        ["push", "--force", remote, "HEAD"], MirrorStep.PUSH_MIRROR, cwd=repo_dir, env=env
    )
    return result.stderr.strip() or result.stdout.strip()
