"""Request retry policy for the prompt service client.

Only idempotent reads are replayed; writes go out exactly once so a version
is never created or deleted twice by a retried call.

Updates:
  v0.3.0 - 2026-10-19 - Own the request policy: idempotent methods, attempt logging, counters.
  v0.2.0 - 2026-10-08 - Keep the sync httpx path used by the remote record store.
  v0.1.0 - 2025-12-12 - Add async/sync exponential backoff retry helpers.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger("prompt_versions.repository")

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD"})
_TRANSIENT_STATUS_CODES = frozenset({408, 429, 502, 503, 504})


def is_transient_response(response: httpx.Response) -> bool:
    """Return ``True`` when the service asked us to come back later."""
    return response.status_code in _TRANSIENT_STATUS_CODES or response.status_code == 500


def is_transient_error(exc: httpx.HTTPError) -> bool:
    """Return ``True`` for timeouts and dropped connections."""
    return isinstance(exc, httpx.TransportError)


def backoff_delay(
    attempt: int,
    *,
    base_seconds: float,
    cap_seconds: float,
    jitter_fraction: float,
) -> float:
    """Delay before retry number *attempt* (1-based), doubling up to *cap_seconds*."""
    if base_seconds <= 0:
        return 0.0
    delay = min(cap_seconds, base_seconds * 2 ** (attempt - 1))
    return delay * (1 + jitter_fraction * random.random())


@dataclass(slots=True)
class RetryCounters:
    """Running totals for one client; read by tests and diagnostics."""

    requests: int = 0
    retries: int = 0
    transport_errors: int = 0


class RequestRetrier:
    """Send requests through an httpx client, replaying transient read failures."""

    def __init__(
        self,
        client: httpx.Client,
        *,
        max_attempts: int = 3,
        base_delay_seconds: float = 0.5,
        max_delay_seconds: float = 4.0,
        jitter_fraction: float = 0.1,
    ) -> None:
        """Wrap *client*; *max_attempts* applies to idempotent methods only."""
        self._client = client
        self._max_attempts = max(1, int(max_attempts))
        self._base_delay = base_delay_seconds
        self._max_delay = max_delay_seconds
        self._jitter = jitter_fraction
        self.counters = RetryCounters()

    def attempts_for(self, method: str) -> int:
        """Return how many times *method* may be sent."""
        return self._max_attempts if method.upper() in IDEMPOTENT_METHODS else 1

    def send(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> httpx.Response:
        """Send one logical request and return a non-error response.

        Raises:
          httpx.HTTPStatusError: The final response carried a 4xx/5xx status.
          httpx.TransportError: The final attempt could not reach the service.
        """
        allowed = self.attempts_for(method)
        attempt = 0
        while True:
            attempt += 1
            self.counters.requests += 1
            logger.debug(
                "Sending prompt service request",
                extra={"method": method, "path": path, "attempt": attempt},
            )
            try:
                response = self._client.request(method, path, json=json, params=params)
            except httpx.TransportError as exc:
                self.counters.transport_errors += 1
                if attempt >= allowed or not is_transient_error(exc):
                    raise
                self._pause(method, path, attempt, reason=type(exc).__name__)
                continue
            if response.is_error and attempt < allowed and is_transient_response(response):
                self._pause(method, path, attempt, reason=f"HTTP {response.status_code}")
                continue
            response.raise_for_status()
            return response

    def _pause(self, method: str, path: str, attempt: int, *, reason: str) -> None:
        self.counters.retries += 1
        delay = backoff_delay(
            attempt,
            base_seconds=self._base_delay,
            cap_seconds=self._max_delay,
            jitter_fraction=self._jitter,
        )
        logger.info(
            "Retrying prompt service request",
            extra={
                "method": method,
                "path": path,
                "attempt": attempt,
                "reason": reason,
                "delay_seconds": round(delay, 3),
            },
        )
        if delay > 0:
            time.sleep(delay)


__all__ = [
    "IDEMPOTENT_METHODS",
    "RequestRetrier",
    "RetryCounters",
    "backoff_delay",
    "is_transient_error",
    "is_transient_response",
]
