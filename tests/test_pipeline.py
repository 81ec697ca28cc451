# File: tests/test_pipeline.py
from __future__ import annotations

import asyncio
import io
import time

import pytest
from aiohttp import web
from conftest import FakeFetcher, SleepRecorder, serve_app

from dom_scout.fetcher import RetryPolicy
from dom_scout.pipeline import ScanPipeline, start_scan
from dom_scout.scanner import PageScanner

SAFE = "https://example.com/safe.html"
MIXED = "https://example.com/mixed.html"
COOKIE = "https://example.com/cookie.html"
DOWN = "https://example.com/down.html"


def build_pipeline(fetcher, *, verbose=False, concurrency=3, sleep=None) -> ScanPipeline:
    return ScanPipeline(
        PageScanner(fetcher),
        RetryPolicy(rate_limit_ms=0),
        concurrency=concurrency,
        verbose=verbose,
        sleep=sleep or SleepRecorder(),
    )


def lines_in(*urls: str) -> io.StringIO:
    return io.StringIO("".join(f"{u}\n" for u in urls))


class BrokenInput:
    """Yields the given lines, then fails like a dropped pipe."""

    def __init__(self, *lines: str) -> None:
        self._lines = list(lines)

    def readline(self) -> str:
        if self._lines:
            return self._lines.pop(0)
        raise OSError("input stream closed unexpectedly")


@pytest.mark.asyncio()
@pytest.mark.parametrize("verbose", [True, False])
async def test_page_without_scripts(pages, sink, verbose):
    stats = await build_pipeline(FakeFetcher(pages), verbose=verbose).run(lines_in(SAFE), sink)

    if verbose:
        assert sink.getvalue() == f"No potential DOM XSS vulnerabilities detected in {SAFE}.\n"
    else:
        assert sink.getvalue() == ""
    assert stats.clean == 1


@pytest.mark.asyncio()
async def test_only_matching_script_is_reported(pages, sink):
    stats = await build_pipeline(FakeFetcher(pages)).run(lines_in(MIXED), sink)

    output = sink.getvalue()
    assert output.startswith(f"Possible DOM XSS vulnerabilities detected in {MIXED}:\n")
    assert output.count("Pattern '") == 1
    assert "Pattern 'eval call' found in script:\nvar data = eval(payload);" in output
    assert "console.log" not in output
    assert stats.findings == 1
    assert stats.emitted == 1


@pytest.mark.asyncio()
@pytest.mark.parametrize("verbose", [True, False])
async def test_fetch_errors_are_contained(pages, sink, verbose):
    fetcher = FakeFetcher(pages)
    stats = await build_pipeline(fetcher, verbose=verbose).run(lines_in(DOWN, COOKIE), sink)

    output = sink.getvalue()
    assert ("Error fetching URL https://example.com/down.html" in output) is verbose
    assert "Pattern 'document.cookie access'" in output
    assert stats.fetch_errors == 1
    assert stats.findings == 1


@pytest.mark.asyncio()
async def test_unexpected_exception_does_not_kill_worker(sink):
    fetcher = FakeFetcher({"https://a.test/": RuntimeError("boom"), "https://b.test/": "<script>eval(1)</script>"})
    stats = await build_pipeline(fetcher, verbose=True, concurrency=1).run(
        lines_in("https://a.test/", "https://b.test/"), sink
    )

    assert "Error fetching URL https://a.test/: unexpected error: boom" in sink.getvalue()
    assert "Possible DOM XSS vulnerabilities detected in https://b.test/" in sink.getvalue()
    assert stats.fetch_errors == 1


@pytest.mark.asyncio()
async def test_blank_lines_are_skipped(pages, sink):
    fetcher = FakeFetcher(pages)
    source = io.StringIO(f"\n{COOKIE}\r\n   \n")
    stats = await build_pipeline(fetcher, verbose=True).run(source, sink)

    assert fetcher.calls == [COOKIE]
    assert stats.submitted == 3
    assert stats.skipped == 2
    assert stats.emitted == 1


@pytest.mark.asyncio()
async def test_empty_input(pages, sink):
    stats = await build_pipeline(FakeFetcher(pages), verbose=True).run(io.StringIO(""), sink)

    assert sink.getvalue() == ""
    assert stats.submitted == 0
    assert stats.input_error is None


@pytest.mark.asyncio()
async def test_at_most_one_report_per_url(sink):
    urls = [f"https://site{i}.test/" for i in range(30)]
    fetcher = FakeFetcher({u: f"<script>localStorage.x = {i}; eval(y)</script>" for i, u in enumerate(urls)})
    stats = await build_pipeline(fetcher, concurrency=7).run(lines_in(*urls), sink)

    reports = [line for line in sink.getvalue().splitlines() if line.startswith("Possible DOM XSS")]
    assert sorted(reports) == sorted(f"Possible DOM XSS vulnerabilities detected in {u}:" for u in urls)
    assert stats.emitted == 30


@pytest.mark.asyncio()
async def test_repeated_runs_give_same_reports(pages):
    urls = [SAFE, MIXED, COOKIE, DOWN] * 3
    outputs = []
    for _ in range(2):
        sink = io.StringIO()
        await build_pipeline(FakeFetcher(pages), verbose=True).run(lines_in(*urls), sink)
        outputs.append(sorted(sink.getvalue().splitlines()))
    assert outputs[0] == outputs[1]


@pytest.mark.asyncio()
async def test_pacing_delay_precedes_every_fetch(pages, sink):
    recorder = SleepRecorder()
    pipeline = ScanPipeline(
        PageScanner(FakeFetcher(pages)),
        RetryPolicy(rate_limit_ms=200),
        concurrency=2,
        sleep=recorder,
    )
    await pipeline.run(lines_in(SAFE, MIXED, COOKIE, ""), sink)

    assert len(recorder.delays) == 3
    assert all(0.1 <= d <= 0.3 for d in recorder.delays)


@pytest.mark.asyncio()
async def test_input_error_is_reported_after_drain(pages, sink):
    stats = await build_pipeline(FakeFetcher(pages)).run(BrokenInput(f"{COOKIE}\n"), sink)

    assert isinstance(stats.input_error, OSError)
    assert "Pattern 'document.cookie access'" in sink.getvalue()


@pytest.mark.asyncio()
async def test_workers_run_concurrently(sink):
    class SlowFetcher:
        async def fetch(self, url: str) -> str:
            await asyncio.sleep(0.3)
            return "<script>eval(1)</script>"

    urls = [f"https://slow{i}.test/" for i in range(5)]
    start = time.perf_counter()
    await build_pipeline(SlowFetcher(), concurrency=5).run(lines_in(*urls), sink)
    elapsed = time.perf_counter() - start

    assert elapsed < 0.3 * 3
    assert sink.getvalue().count("Possible DOM XSS") == 5


def test_concurrency_must_be_positive(pages):
    with pytest.raises(ValueError):
        build_pipeline(FakeFetcher(pages), concurrency=0)


@pytest.mark.asyncio()
async def test_start_scan_end_to_end(quick_config, sink, sleep_recorder):
    bodies = {
        "https://target.test/a": "<script>el.innerHTML = location.hash;</script>",
        "https://target.test/b": "<p>static</p>",
    }

    async def handler(request):
        target = request.query["url"]
        if target not in bodies:
            return web.Response(status=404)
        return web.Response(text=bodies[target], content_type="text/html")

    app = web.Application()
    app.router.add_get("/raw", handler)

    async for base in serve_app(app):
        config = quick_config.with_overrides(proxy_endpoint=f"{base}/raw", verbose=True)
        source = lines_in("https://target.test/a", "https://target.test/b", "https://target.test/missing")
        stats = await start_scan(config, source, sink, sleep=sleep_recorder)

    output = sink.getvalue()
    assert "Pattern 'innerHTML assignment' found in script:" in output
    assert "Pattern 'location.hash access' found in script:" in output
    assert "No potential DOM XSS vulnerabilities detected in https://target.test/b." in output
    assert "Error fetching URL https://target.test/missing: non-200 response: 404" in output
    assert (stats.findings, stats.clean, stats.fetch_errors) == (1, 1, 1)
