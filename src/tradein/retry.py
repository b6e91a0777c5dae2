from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 8.0
    backoff_multiplier: float = 2.0
    retryable_status_codes: frozenset[int] = frozenset({408, 429, 500, 502, 503, 504})

    def delay_for(self, attempt: int) -> float:
        """Backoff before the attempt following ``attempt`` (1-based)."""
        return min(self.initial_delay * self.backoff_multiplier ** (attempt - 1), self.max_delay)


async def get_with_retry(
    client: httpx.AsyncClient,
    url: str,
    *,
    policy: RetryPolicy,
    headers: Mapping[str, str] | None = None,
    params: Mapping[str, Any] | None = None,
) -> httpx.Response:
    """GET with bounded exponential backoff.

    Retries transport errors (connect failures, timeouts) and retryable status
    codes. Once attempts run out the last response is returned as-is, or the
    last transport error is re-raised. Other status codes return immediately.
    """
    attempts = max(1, policy.max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            resp = await client.get(url, headers=headers, params=params)
        except httpx.TransportError as exc:
            if attempt == attempts:
                logger.error("GET %s failed after %d attempts: %s", url, attempts, exc)
                raise
            reason = f"{type(exc).__name__}: {exc}"
        else:
            if resp.status_code not in policy.retryable_status_codes or attempt == attempts:
                return resp
            reason = f"HTTP {resp.status_code}"

        delay = policy.delay_for(attempt)
        logger.warning("Attempt %d/%d for %s failed (%s), retrying in %.2fs", attempt, attempts, url, reason, delay)
        await asyncio.sleep(delay)

    raise RuntimeError("unreachable")  # pragma: no cover
