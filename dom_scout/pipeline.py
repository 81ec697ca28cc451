"""dom_scout.pipeline: Пул воркеров, коллектор и драйвер конвейера сканирования.

Схема: входные строки → очередь задач → воркеры (fetch → extract → match)
→ очередь результатов → коллектор → вывод.

Завершение идёт по явному двухфазному протоколу: драйвер закрывает очередь задач
(по одному сигнальному объекту на воркер) и дожидается воркеров, затем
закрывает очередь результатов и дожидается коллектора.
"""
from __future__ import annotations

import asyncio
from typing import Final, Optional, TextIO

from dom_scout.config import ScannerConfig
from dom_scout.fetcher.fetcher import ProxyFetcher, SleepFn
from dom_scout.fetcher.retry import RetryPolicy
from dom_scout.logger import get_logger
from dom_scout.models import Outcome, PipelineStats, ReportLine
from dom_scout.parser.script_extractor import ScriptExtractor
from dom_scout.scanner import PageScanner

__all__ = ["ScanPipeline", "start_scan"]

_CLOSED: Final = object()


class ScanPipeline:
    """Асинхронный конвейер: N воркеров и один коллектор поверх двух очередей."""

    def __init__(
        self,
        scanner: PageScanner,
        policy: RetryPolicy,
        *,
        concurrency: int = 5,
        verbose: bool = False,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.scanner = scanner
        self.policy = policy
        self.concurrency = concurrency
        self.verbose = verbose
        self._sleep = sleep
        self.logger = get_logger("pipeline")

    async def run(self, source: TextIO, sink: TextIO) -> PipelineStats:
        """Сканирует все URL из *source* и пишет отчёты в *sink*."""
        work: asyncio.Queue[object] = asyncio.Queue()
        results: asyncio.Queue[object] = asyncio.Queue()
        stats = PipelineStats()

        workers = [
            asyncio.create_task(self._worker(work, results, stats))
            for _ in range(self.concurrency)
        ]
        collector = asyncio.create_task(self._collect(results, sink, stats))

        try:
            await self._feed(source, work, stats)
        finally:
            for _ in workers:
                work.put_nowait(_CLOSED)
            await asyncio.gather(*workers)
            results.put_nowait(_CLOSED)
            await collector

        self._log_summary(stats)
        return stats

    async def _feed(self, source: TextIO, work: asyncio.Queue[object], stats: PipelineStats) -> None:
        while True:
            try:
                line = await asyncio.to_thread(source.readline)
            except (OSError, UnicodeDecodeError, ValueError) as exc:
                stats.input_error = exc
                self.logger.error("Error reading input: %s", exc)
                return
            if not line:
                return
            stats.submitted += 1
            await work.put(line.strip())

    async def _worker(
        self,
        work: asyncio.Queue[object],
        results: asyncio.Queue[object],
        stats: PipelineStats,
    ) -> None:
        while True:
            url = await work.get()
            if url is _CLOSED:
                return
            assert isinstance(url, str)
            if not url:
                stats.record(ReportLine(url, Outcome.SKIPPED))
                continue

            await self._sleep(self.policy.jitter())
            try:
                report = await self.scanner.scan(url)
            except Exception as exc:
                self.logger.exception("Unexpected failure while scanning %s", url)
                report = ReportLine(url, Outcome.FETCH_ERROR, error=f"unexpected error: {exc}")

            stats.record(report)
            if report.visible(self.verbose):
                await results.put(report)

    async def _collect(self, results: asyncio.Queue[object], sink: TextIO, stats: PipelineStats) -> None:
        while True:
            report = await results.get()
            if report is _CLOSED:
                return
            assert isinstance(report, ReportLine)
            sink.write(report.render() + "\n")
            sink.flush()
            stats.emitted += 1

    def _log_summary(self, stats: PipelineStats) -> None:
        self.logger.info(
            "Processed %d URLs: %d with findings, %d clean, %d fetch errors, %d parse errors, %d skipped",
            stats.submitted, stats.findings, stats.clean,
            stats.fetch_errors, stats.parse_errors, stats.skipped,
        )
        if stats.failures and not self.verbose:
            self.logger.warning("%d failed URLs were not reported; rerun with -v to see them", stats.failures)


async def start_scan(
    config: ScannerConfig,
    source: TextIO,
    sink: TextIO,
    *,
    sleep: Optional[SleepFn] = None,
) -> PipelineStats:
    """
    Собирает фетчер, экстрактор и конвейер по конфигу и запускает сканирование.

    Parameters
    ----------
    config : ScannerConfig
        Конфигурация сканирования.
    source, sink : TextIO
        Поток с URL (по одному на строку) и поток для отчётов.

    Returns
    -------
    PipelineStats
        Счётчики результатов; ``input_error`` заполнен, если чтение входа оборвалось.
    """
    policy = RetryPolicy(
        max_attempts=config.max_attempts,
        rate_limit_ms=config.rate_limit_ms,
        honor_retry_after=config.honor_retry_after,
    )
    sleep = sleep or asyncio.sleep
    async with ProxyFetcher.from_config(config, policy, sleep=sleep) as fetcher:
        scanner = PageScanner(fetcher, ScriptExtractor(config.html_parser))
        pipeline = ScanPipeline(
            scanner,
            policy,
            concurrency=config.concurrency,
            verbose=config.verbose,
            sleep=sleep,
        )
        return await pipeline.run(source, sink)
