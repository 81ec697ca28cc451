# dom_scout/fetcher/retry.py
"""
Retry policy: attempt budget, error classification and jittered backoff.

The same jitter distribution drives per-request pacing in the workers and the
retry backoff in the fetcher, so concurrent workers never retry in lockstep.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field

from dom_scout.errors import RateLimitError, ScanError, TransportError


@dataclass(frozen=True)
class RetryPolicy:
    """Decides whether and how long to wait before the next attempt."""

    max_attempts: int = 5
    rate_limit_ms: int = 1000
    honor_retry_after: bool = False
    rng: random.Random = field(default_factory=random.Random, compare=False, repr=False)

    def jitter(self) -> float:
        """Seconds drawn uniformly from ``[rl/2, rl + rl/2)`` milliseconds."""
        if self.rate_limit_ms <= 0:
            return 0.0
        half = self.rate_limit_ms / 2
        # random() is in [0, 1), so the upper bound is never reached
        return (half + self.rng.random() * self.rate_limit_ms) / 1000

    @staticmethod
    def is_retryable(error: ScanError) -> bool:
        return isinstance(error, (TransportError, RateLimitError))

    def delay_for(self, error: ScanError) -> float:
        """Backoff before retrying after *error*."""
        if (
            self.honor_retry_after
            and isinstance(error, RateLimitError)
            and error.retry_after is not None
        ):
            return float(error.retry_after)
        return self.jitter()


def parse_retry_after(value: str | None) -> int | None:
    """Integer seconds from a ``Retry-After`` header; HTTP-dates are ignored."""
    if value is None:
        return None
    value = value.strip()
    # str.isdigit accepts superscripts and other non-ASCII digits int() rejects
    if not (value.isascii() and value.isdigit()):
        return None
    return int(value)
