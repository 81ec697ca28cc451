# dom_scout/models.py
"""
Data models for DomScout scan results.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True, slots=True)
class Finding:
    """A signature that matched, paired with the whole script it matched in."""

    label: str
    script: str

    def render(self) -> str:
        return f"Pattern '{self.label}' found in script:\n{self.script}"


class Outcome(enum.Enum):
    FINDINGS = "findings"
    CLEAN = "clean"
    FETCH_ERROR = "fetch_error"
    PARSE_ERROR = "parse_error"
    SKIPPED = "skipped"


@dataclass(slots=True)
class ReportLine:
    """Terminal report for one processed URL."""

    url: str
    outcome: Outcome
    findings: list[Finding] = field(default_factory=list)
    error: Optional[str] = None

    def visible(self, verbose: bool) -> bool:
        """Findings are always reported; everything else only in verbose mode."""
        if self.outcome is Outcome.FINDINGS:
            return True
        if self.outcome is Outcome.SKIPPED:
            return False
        return verbose

    def render(self) -> str:
        if self.outcome is Outcome.FINDINGS:
            body = "\n".join(f.render() for f in self.findings)
            return f"Possible DOM XSS vulnerabilities detected in {self.url}:\n{body}"
        if self.outcome is Outcome.FETCH_ERROR:
            return f"Error fetching URL {self.url}: {self.error}"
        if self.outcome is Outcome.PARSE_ERROR:
            return f"Error extracting scripts from URL {self.url}: {self.error}"
        return f"No potential DOM XSS vulnerabilities detected in {self.url}."


@dataclass(slots=True)
class PipelineStats:
    """Counters collected by one pipeline run."""

    submitted: int = 0
    skipped: int = 0
    findings: int = 0
    clean: int = 0
    fetch_errors: int = 0
    parse_errors: int = 0
    emitted: int = 0
    input_error: Optional[BaseException] = None

    @property
    def failures(self) -> int:
        return self.fetch_errors + self.parse_errors

    def record(self, report: ReportLine) -> None:
        if report.outcome is Outcome.FINDINGS:
            self.findings += 1
        elif report.outcome is Outcome.CLEAN:
            self.clean += 1
        elif report.outcome is Outcome.FETCH_ERROR:
            self.fetch_errors += 1
        elif report.outcome is Outcome.PARSE_ERROR:
            self.parse_errors += 1
        else:
            self.skipped += 1
