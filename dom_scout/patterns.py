"""dom_scout.patterns: Статический набор эвристик DOM-синков и их сопоставление с текстом скрипта."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Sequence

from dom_scout.models import Finding

__all__: Sequence[str] = ("Signature", "DEFAULT_SIGNATURES", "PatternMatcher")


@dataclass(frozen=True, slots=True)
class Signature:
    """Неизменяемая пара: метка и скомпилированный регэксп."""

    label: str
    pattern: re.Pattern[str]

    @classmethod
    def compile(cls, label: str, regex: str) -> Signature:
        return cls(label, re.compile(regex, re.IGNORECASE))


DEFAULT_SIGNATURES: tuple[Signature, ...] = tuple(
    Signature.compile(label, regex)
    for label, regex in (
        ("innerHTML assignment", r"innerHTML\s*="),
        ("outerHTML assignment", r"outerHTML\s*="),
        ("document.write call", r"document\.write\("),
        ("eval call", r"eval\("),
        ("setTimeout call", r"setTimeout\("),
        ("setInterval call", r"setInterval\("),
        ("location.href access", r"location\.href"),
        ("location.hash access", r"location\.hash"),
        ("location.search access", r"location\.search"),
        ("document.cookie access", r"document\.cookie"),
        ("localStorage access", r"localStorage"),
        ("sessionStorage access", r"sessionStorage"),
        ("javascript: URI in src", r"src\s*=\s*['\"]javascript:"),
        ("string concatenation with location", r"\+.*location"),
        ("inline event listener registration", r"\.addEventListener\(['\"].*['\"],\s*function"),
    )
)


class PatternMatcher:
    """Проверяет текст против всех сигнатур без раннего выхода."""

    def __init__(self, signatures: Sequence[Signature] = DEFAULT_SIGNATURES) -> None:
        self.signatures: tuple[Signature, ...] = tuple(signatures)

    def match(self, text: str) -> list[Finding]:
        """Возвращает по одному Finding на каждую совпавшую сигнатуру (в порядке набора)."""
        return [Finding(sig.label, text) for sig in self.signatures if sig.pattern.search(text)]

    def scan(self, scripts: Iterable[str]) -> list[Finding]:
        """Прогоняет match по всем скриптам страницы, сохраняя порядок документа."""
        findings: list[Finding] = []
        for script in scripts:
            findings.extend(self.match(script))
        return findings
