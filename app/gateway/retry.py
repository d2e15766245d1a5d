"""Resilient upstream invoker: bounded retries with exponential backoff and jitter.

Each attempt is turned into an ``AttemptResult`` and the loop decides what
to do next from its outcome:
  - SUCCESS (2xx): return the response
  - FATAL (non-2xx other than 429/5xx): abort with ``UpstreamRejected``
  - RETRIABLE (429, 5xx, transport error): back off and try again,
    or raise ``UpstreamUnavailable`` once the attempt cap is reached

Backoff before attempt n (n >= 1):
  delay = base * 2^(n-1) + jitter,  jitter = uniform[0, max_jitter)
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from app.core.exceptions import UpstreamRejected, UpstreamUnavailable
from app.core.metrics import UPSTREAM_ATTEMPTS
from app.gateway.types import AttemptOutcome, AttemptResult, RetryPolicy

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


def classify_status(status_code: int) -> AttemptOutcome:
    """Map an HTTP status code to an attempt outcome."""
    if 200 <= status_code < 300:
        return AttemptOutcome.SUCCESS
    if status_code == 429 or status_code >= 500:
        return AttemptOutcome.RETRIABLE
    return AttemptOutcome.FATAL


def calculate_backoff(
    attempt: int,
    base_delay: float = 1.0,
    max_jitter: float = 1.0,
    rng: random.Random | None = None,
) -> float:
    """Delay in seconds to wait before *attempt* (0-based).

    Attempt 0 is never delayed. ``random()`` is half-open, so the result
    always lies in ``[base * 2^(n-1), base * 2^(n-1) + max_jitter)``.
    """
    if attempt <= 0:
        return 0.0
    jitter = (rng or random).random() * max_jitter
    return base_delay * (2 ** (attempt - 1)) + jitter


def _body_details(response: httpx.Response) -> Any:
    """Parsed JSON body if there is one, raw text otherwise."""
    try:
        return response.json()
    except ValueError:
        return response.text


class RetryingInvoker:
    """Executes one logical upstream POST with bounded, sequential retries.

    The HTTP client is shared (connection pool only); everything else is
    local to a single ``invoke`` call, so concurrent invocations never
    interfere. ``sleep``, ``rng`` and ``clock`` are injectable for tests.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._rng = rng
        self._clock = clock

    async def _attempt(self, attempt: int, url: str, **kwargs: Any) -> AttemptResult:
        try:
            response = await self.client.post(url, **kwargs)
        except httpx.TransportError as e:
            return AttemptResult(
                outcome=AttemptOutcome.RETRIABLE,
                attempt=attempt,
                error=f"{type(e).__name__}: {e}",
            )

        outcome = classify_status(response.status_code)
        error = ""
        if outcome == AttemptOutcome.RETRIABLE:
            error = f"Retriable HTTP error, status {response.status_code}"
        elif outcome == AttemptOutcome.FATAL:
            error = f"HTTP error, status {response.status_code}"

        return AttemptResult(
            outcome=outcome,
            attempt=attempt,
            response=response,
            status_code=response.status_code,
            error=error,
        )

    async def invoke(
        self,
        url: str,
        *,
        json: Any = None,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        max_attempts: int | None = None,
    ) -> httpx.Response:
        """POST to *url* until it succeeds, fails fatally, or attempts run out.

        Raises:
            UpstreamRejected: non-retriable status; carries status and body.
            UpstreamUnavailable: every allowed attempt failed transiently.
            ValueError: max_attempts below 1.
        """
        policy = self.policy
        attempts = policy.max_attempts if max_attempts is None else max_attempts
        if attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {attempts}")
        started = self._clock()
        last: AttemptResult | None = None

        for attempt in range(attempts):
            if attempt > 0:
                delay = calculate_backoff(attempt, policy.base_delay, policy.max_jitter, self._rng)
                if policy.max_elapsed is not None and self._clock() - started + delay > policy.max_elapsed:
                    logger.warning(
                        "Giving up before attempt %d/%d: %.1fs retry budget would be exceeded",
                        attempt + 1,
                        attempts,
                        policy.max_elapsed,
                    )
                    break
                logger.info("Retrying upstream call (attempt %d/%d) in %.2fs", attempt + 1, attempts, delay)
                await self._sleep(delay)

            result = await self._attempt(attempt, url, json=json, params=params, headers=headers)
            UPSTREAM_ATTEMPTS.labels(outcome=result.outcome.value).inc()

            if result.ok:
                return result.response

            if result.outcome == AttemptOutcome.FATAL:
                body = result.response.text
                logger.error("Attempt %d/%d failed: %s: %s", attempt + 1, attempts, result.error, body)
                raise UpstreamRejected(result.status_code, body, details=_body_details(result.response))

            logger.warning("Attempt %d/%d failed: %s", attempt + 1, attempts, result.error)
            last = result

        made = last.attempt + 1 if last else 0
        last_error = last.error if last else ""
        raise UpstreamUnavailable(
            f"Internal server error: upstream unavailable after {made} attempts ({last_error})",
            attempts=made,
            last_error=last_error,
        )
