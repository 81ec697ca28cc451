# dom_scout/errors.py
"""
Error taxonomy for DomScout.

Every per-URL failure is a :class:`ScanError`; workers contain them so a
single broken page never stops the pool.
"""
from __future__ import annotations

from typing import Optional

__all__ = (
    "ScanError",
    "FetchError",
    "RequestConstructionError",
    "TransportError",
    "RateLimitError",
    "UpstreamError",
    "ParseError",
)


class ScanError(Exception):
    """Base class for failures while scanning one URL."""


class FetchError(ScanError):
    """The page could not be fetched through the proxy."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url


class RequestConstructionError(FetchError):
    """The proxy request could not be built (not retried)."""


class TransportError(FetchError):
    """Connection failure or timeout while talking to the proxy."""


class RateLimitError(FetchError):
    """Proxy answered HTTP 429."""

    def __init__(self, url: str, retry_after: Optional[int] = None) -> None:
        super().__init__(url, "rate limited (HTTP 429)")
        self.retry_after = retry_after


class UpstreamError(FetchError):
    """Any other non-200 answer; terminal for the URL."""

    def __init__(self, url: str, status: int) -> None:
        super().__init__(url, f"non-200 response: {status}")
        self.status = status


class ParseError(ScanError):
    """Markup could not be turned into a document tree at all."""
