# === FILE: dom_scout/scanner.py ===
"""
Модуль сканирования одной страницы: fetch → extract → match.
"""
from __future__ import annotations

from typing import Protocol

from dom_scout.errors import FetchError, ParseError
from dom_scout.models import Outcome, ReportLine
from dom_scout.parser.script_extractor import ScriptExtractor
from dom_scout.patterns import PatternMatcher


class Fetcher(Protocol):
    async def fetch(self, url: str) -> str: ...


class PageScanner:
    """Один цикл воркера для одного URL; ошибки превращаются в ReportLine."""

    def __init__(
        self,
        fetcher: Fetcher,
        extractor: ScriptExtractor | None = None,
        matcher: PatternMatcher | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.extractor = extractor or ScriptExtractor()
        self.matcher = matcher or PatternMatcher()

    async def scan(self, url: str) -> ReportLine:
        """
        Загружает страницу, извлекает inline-скрипты и проверяет их сигнатурами.

        Parameters
        ----------
        url : str
            Целевой URL (уже без пробелов).

        Returns
        -------
        ReportLine
            Итог по URL: находки, «чисто» или описание ошибки.
        """
        try:
            markup = await self.fetcher.fetch(url)
        except FetchError as exc:
            return ReportLine(url, Outcome.FETCH_ERROR, error=str(exc))

        try:
            scripts = self.extractor.extract(markup)
        except ParseError as exc:
            return ReportLine(url, Outcome.PARSE_ERROR, error=str(exc))

        findings = self.matcher.scan(scripts)
        if findings:
            return ReportLine(url, Outcome.FINDINGS, findings=findings)
        return ReportLine(url, Outcome.CLEAN)


__all__ = ["Fetcher", "PageScanner"]
