"""Core types for the upstream image gateway."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import httpx

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class AttemptOutcome(str, Enum):
    """Classification of a single upstream attempt."""

    SUCCESS = "success"  # 2xx
    RETRIABLE = "retriable"  # 429, 5xx or transport error
    FATAL = "fatal"  # any other non-2xx, aborts the invocation


# ---------------------------------------------------------------------------
# Attempt result, one per upstream call
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AttemptResult:
    """Outcome of one attempt, consumed by the retry loop.

    ``response`` is set whenever an HTTP exchange completed; ``error`` holds
    a short description for logging and for the exhaustion error.
    """

    outcome: AttemptOutcome
    attempt: int
    response: httpx.Response | None = None
    status_code: int = 0
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome == AttemptOutcome.SUCCESS


# ---------------------------------------------------------------------------
# Retry policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry configuration for one logical upstream call."""

    max_attempts: int = 5
    base_delay: float = 1.0  # seconds; delay before attempt n is base * 2^(n-1) + jitter
    max_jitter: float = 1.0  # seconds; jitter is uniform in [0, max_jitter)
    max_elapsed: float | None = None  # optional wall-clock cap for the whole invocation

    @classmethod
    def from_settings(cls, settings) -> RetryPolicy:
        return cls(
            max_attempts=settings.upstream_max_attempts,
            base_delay=settings.upstream_base_retry_delay,
            max_jitter=settings.upstream_max_jitter,
            max_elapsed=settings.upstream_max_elapsed_seconds,
        )
