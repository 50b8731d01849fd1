"""
Destination API — Authenticated calls to the hosting platform's REST API.

Every call ends in one of three outcomes:

- SUCCESS: a 2xx response was received
- REJECTED: any other response was received (not retried)
- EXHAUSTED: no response at all after ``max_attempts`` tries

Only transport failures (connection refused, DNS, timeout, ...) are
retried. A received error status is a real answer from the server and
is returned as-is.

## Usage

    from repo_mirror.mirror.api_client import DestinationApi

    api = DestinationApi("https://gitee.com/api/v5/", token)
    if not api.get(f"/repos/{org}/{name}"):
        api.post(f"/orgs/{org}/repos", {"name": name})
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from ..observability.metrics import metrics
from .errors import ApiUnavailableError

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5


class ApiOutcome(str, Enum):
    """Result of one API call after retries."""
    SUCCESS = "success"
    REJECTED = "rejected"
    EXHAUSTED = "exhausted"


class DestinationApi:
    """
    Retrying client for the destination platform.

    The access token travels as the ``access_token`` query parameter on
    reads and as a body field on writes.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 5.0,
        max_attempts: int = MAX_ATTEMPTS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.token = token
        self.max_attempts = max_attempts
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json", "charset": "UTF-8"},
            transport=transport,
        )

    def request(
        self,
        method: str,
        path: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> ApiOutcome:
        """Issue one call, retrying transport failures only."""
        method = method.upper()
        params = None
        body = None
        if method == "GET":
            params = {"access_token": self.token}
        else:
            body = dict(data or {})
            body["access_token"] = self.token

        for attempt in range(1, self.max_attempts + 1):
            metrics.increment("api.attempts")
            try:
                resp = self._client.request(method, path.lstrip("/"), params=params, json=body)
            except httpx.TransportError as e:
                metrics.increment("api.transport_failures")
                logger.warning(
                    f"[mirror-api] {method} {path} failed "
                    f"(attempt {attempt}/{self.max_attempts}): {e!r}"
                )
                continue

            if resp.is_success:
                logger.debug(f"[mirror-api] {method} {path} -> {resp.status_code}")
                return ApiOutcome.SUCCESS

            logger.info(f"[mirror-api] {method} {path} rejected: HTTP {resp.status_code}")
            return ApiOutcome.REJECTED

        logger.error(f"[mirror-api] {method} {path}: no response after {self.max_attempts} attempts")
        return ApiOutcome.EXHAUSTED

    def call(self, method: str, path: str, data: Optional[Dict[str, Any]] = None) -> bool:
        """
        True if the server accepted the request, False if it refused.

        Raises ApiUnavailableError if no response could be obtained.
        """
        outcome = self.request(method, path, data)
        if outcome is ApiOutcome.EXHAUSTED:
            raise ApiUnavailableError(method.upper(), path, self.max_attempts)
        return outcome is ApiOutcome.SUCCESS

    def get(self, path: str) -> bool:
        return self.call("GET", path)

    def post(self, path: str, data: Dict[str, Any]) -> bool:
        return self.call("POST", path, data)

    # ─── Endpoints ──────────────────────────────────────────

    def org_exists(self, org: str) -> bool:
        return self.get(f"/orgs/{org}")

    def create_org(self, org: str) -> bool:
        return self.post("/users/organization", {"name": org, "org": org})

    def repo_exists(self, org: str, name: str) -> bool:
        return self.get(f"/repos/{org}/{name}")

    def create_repo(self, org: str, name: str) -> bool:
        return self.post(f"/orgs/{org}/repos", {"name": name})

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "DestinationApi":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
