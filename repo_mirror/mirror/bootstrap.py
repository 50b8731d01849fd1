"""
Environment Bootstrap — One-time setup before any mirror can push.

1. Make sure the destination organization exists
2. Start an ssh-agent on a fixed socket
3. Register the destination private key with the agent
4. Append the destination host's keys to known_hosts

This is a barrier: it must finish completely before the first mirror
starts, and any failure aborts the whole run.
"""

from __future__ import annotations

import logging
import subprocess
from typing import List, Optional

from .api_client import DestinationApi
from .config import MirrorSettings
from .errors import ApiUnavailableError, BootstrapError

logger = logging.getLogger(__name__)


def _run(
    cmd: List[str],
    what: str,
    env: Optional[dict] = None,
    input: Optional[str] = None,
) -> subprocess.CompletedProcess:
    try:
        result = subprocess.run(
            cmd,
            env=env,
            input=input,
            capture_output=True,
            text=True,
        )
    except OSError as e:
        raise BootstrapError(f"cannot {what}: {e}") from e

    if result.returncode != 0:
        error = result.stderr.strip() or result.stdout.strip() or f"exit code {result.returncode}"
        raise BootstrapError(f"cannot {what}: {error}")
    return result


def ensure_organization(settings: MirrorSettings, api: DestinationApi) -> None:
    org = settings.org
    logger.info(f"[bootstrap] Validating destination organization {org}")
    try:
        if api.org_exists(org):
            return
        logger.warning(f"[bootstrap] Creating destination organization {org}")
        created = api.create_org(org)
    except ApiUnavailableError as e:
        raise BootstrapError(str(e)) from e

    if not created:
        raise BootstrapError("cannot create destination organization")


def start_agent(settings: MirrorSettings) -> None:
    logger.info(f"[bootstrap] Starting ssh-agent on {settings.ssh_auth_sock}")
    _run(["ssh-agent", "-a", settings.ssh_auth_sock], "start ssh-agent")


def add_private_key(settings: MirrorSettings) -> None:
    logger.info("[bootstrap] Adding destination private key")
    key = settings.private_key or ""
    if not key.endswith("\n"):
        key += "\n"
    _run(["ssh-add", "-"], "add private key", env=settings.git_env(), input=key)


def add_known_host(settings: MirrorSettings) -> None:
    logger.info(f"[bootstrap] Adding {settings.ssh_host} to known_hosts")
    result = _run(["ssh-keyscan", settings.ssh_host], f"scan host keys of {settings.ssh_host}")

    ssh_dir = settings.ssh_dir
    try:
        ssh_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        known_hosts = ssh_dir / "known_hosts"
        with open(known_hosts, "a", encoding="utf-8") as f:
            f.write(result.stdout)
            if result.stdout and not result.stdout.endswith("\n"):
                f.write("\n")
        known_hosts.chmod(0o644)
    except OSError as e:
        raise BootstrapError(f"cannot update known_hosts: {e}") from e


def bootstrap_environment(settings: MirrorSettings, api: DestinationApi) -> None:
    """Run every setup step in order; raises BootstrapError on the first failure."""
    ensure_organization(settings, api)
    start_agent(settings)
    add_private_key(settings)
    add_known_host(settings)
    logger.info("[bootstrap] Environment ready")
