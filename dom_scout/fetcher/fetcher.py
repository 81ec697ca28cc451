# dom_scout/fetcher/fetcher.py
"""
Fetcher module: proxy-routed HTTP GET with User-Agent rotation, retry/backoff
and a per-attempt timeout.
"""
from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable, Optional, Sequence
from urllib.parse import urlencode

from aiohttp import ClientError, ClientSession, ClientTimeout, InvalidURL

from dom_scout.config import ScannerConfig
from dom_scout.errors import (
    FetchError,
    RateLimitError,
    RequestConstructionError,
    TransportError,
    UpstreamError,
)
from dom_scout.fetcher.retry import RetryPolicy, parse_retry_after
from dom_scout.logger import get_logger

SleepFn = Callable[[float], Awaitable[None]]


class ProxyFetcher:
    """Fetches target pages through a third-party relay, never directly."""

    def __init__(
        self,
        proxy_endpoint: str,
        user_agents: Sequence[str],
        policy: RetryPolicy,
        *,
        timeout: float = 30.0,
        session: Optional[ClientSession] = None,
        rng: Optional[random.Random] = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if not user_agents:
            raise ValueError("user_agents must not be empty")
        self.proxy_endpoint = proxy_endpoint.rstrip("?")
        self.user_agents: tuple[str, ...] = tuple(user_agents)
        self.policy = policy
        self.timeout = ClientTimeout(total=timeout)
        self.session = session
        self._owns_session = session is None
        self._rng = rng or random.Random()
        self._sleep = sleep
        self.logger = get_logger("fetcher")

    @classmethod
    def from_config(cls, config: ScannerConfig, policy: RetryPolicy, **kwargs) -> ProxyFetcher:
        return cls(
            str(config.proxy_endpoint),
            config.user_agents,
            policy,
            timeout=config.request_timeout,
            **kwargs,
        )

    async def __aenter__(self) -> ProxyFetcher:
        if self.session is None:
            self.session = ClientSession(timeout=self.timeout, raise_for_status=False)
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    def request_url(self, url: str) -> str:
        """Proxy URL carrying *url* as the ``url`` query parameter."""
        sep = "&" if "?" in self.proxy_endpoint else "?"
        return f"{self.proxy_endpoint}{sep}{urlencode({'url': url})}"

    def pick_user_agent(self) -> str:
        return self._rng.choice(self.user_agents)

    async def fetch(self, url: str) -> str:
        """
        Return the body of *url* as text.

        Retries transport errors and HTTP 429 up to ``policy.max_attempts``
        times; any other non-200 status fails at once.
        """
        last_error: Optional[FetchError] = None
        for attempt in range(1, self.policy.max_attempts + 1):
            try:
                return await self._attempt(url)
            except FetchError as exc:
                if not self.policy.is_retryable(exc):
                    raise
                last_error = exc
                if attempt == self.policy.max_attempts:
                    break
                delay = self.policy.delay_for(exc)
                self.logger.debug(
                    "Retry %d/%d for %s after %.2f s: %s",
                    attempt, self.policy.max_attempts, url, delay, exc,
                )
                await self._sleep(delay)
        assert last_error is not None
        raise last_error

    async def _attempt(self, url: str) -> str:
        if not self.session:
            raise RuntimeError("Session not initialized")
        headers = {"User-Agent": self.pick_user_agent()}
        body: Optional[str] = None
        try:
            async with self.session.get(
                self.request_url(url), headers=headers, timeout=self.timeout
            ) as resp:
                status = resp.status
                retry_after = resp.headers.get("Retry-After")
                if status == 200:
                    body = await resp.text(errors="replace")
        except InvalidURL as exc:
            raise RequestConstructionError(url, f"failed to create request: {exc}") from exc
        except (ClientError, asyncio.TimeoutError) as exc:
            raise TransportError(url, f"failed to fetch URL: {str(exc) or type(exc).__name__}") from exc

        # classification stays outside the transport handlers
        if status == 429:
            raise RateLimitError(url, parse_retry_after(retry_after))
        if status != 200:
            raise UpstreamError(url, status)
        assert body is not None
        return body
