# File: tests/conftest.py
from __future__ import annotations

import io
from collections.abc import AsyncIterator
from typing import Dict, List, Union

import pytest
from aiohttp import web

from dom_scout.config import ScannerConfig
from dom_scout.errors import TransportError


class SleepRecorder:
    """Stand-in for ``asyncio.sleep`` that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeFetcher:
    """Deterministic fetcher: URL -> markup or exception to raise."""

    def __init__(self, pages: Dict[str, Union[str, Exception]]) -> None:
        self.pages = pages
        self.calls: List[str] = []

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        result = self.pages[url]
        if isinstance(result, Exception):
            raise result
        return result


async def serve_app(app: web.Application) -> AsyncIterator[str]:
    """Start *app* on a free localhost port, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    host, port = runner.addresses[0][:2]
    try:
        yield f"http://{host}:{port}"
    finally:
        await runner.cleanup()


@pytest.fixture()
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture()
def quick_config() -> ScannerConfig:
    """Config with pacing disabled so pipeline tests never wait."""
    return ScannerConfig(concurrency=3, rate_limit_ms=0, user_agents=("TestAgent/1.0",))


@pytest.fixture()
def sink() -> io.StringIO:
    return io.StringIO()


@pytest.fixture()
def pages() -> Dict[str, Union[str, Exception]]:
    return {
        "https://example.com/safe.html": "<html><body><p>Nothing to see</p></body></html>",
        "https://example.com/mixed.html": (
            "<html><head><script>var data = eval(payload);</script></head>"
            "<body><script>console.log('hello');</script>"
            '<script src="/static/app.js"></script></body></html>'
        ),
        "https://example.com/cookie.html": "<script>document.cookie</script>",
        "https://example.com/down.html": TransportError(
            "https://example.com/down.html", "failed to fetch URL: connection refused"
        ),
    }
