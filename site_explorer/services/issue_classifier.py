"""Classification of free-text recommendations into findings.

The default classifier is a keyword heuristic. It sits behind the
IssueClassifier protocol so callers can swap it out or stub it.
"""

import re
from typing import Protocol

from ..models.report import Finding, Severity

CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("accessibility", ("contrast", "accessib", "alt text", "aria", "screen reader")),
    ("layout", ("layout", "spacing", "overlap", "alignment")),
    ("responsive", ("responsive", "mobile", "viewport")),
    ("navigation", ("navigation", "menu", "link", "redirect")),
    ("forms", ("form", "validation", "input", "field", "submit")),
    ("typography", ("readability", "typography", "font")),
    ("performance", ("slow", "performance", "load time", "timeout")),
)

HIGH_SEVERITY_MARKERS = ("high severity", "critical", "severe", "broken")
LOW_SEVERITY_MARKERS = ("low severity", "minor", "cosmetic")

_BULLET = re.compile(r"^\s*(?:[-*•:]|\d+[.)])\s*")


class IssueClassifier(Protocol):
    def classify(self, text: str, page_url: str | None = None) -> list[Finding]: ...


class KeywordIssueClassifier:
    """Turns each issue-looking line of text into a Finding.

    A line counts as an issue when it is longer than min_line_length and
    contains ':' or '-'. Category and severity are picked per line from
    keyword lists; unmatched lines are "general" with medium severity.
    """

    def __init__(self, min_line_length: int = 20, source: str = "recommendation"):
        self.min_line_length = min_line_length
        self.source = source

    def classify(self, text: str, page_url: str | None = None) -> list[Finding]:
        findings = []
        for raw_line in (text or "").splitlines():
            line = raw_line.strip()
            if len(line) <= self.min_line_length or not (":" in line or "-" in line):
                continue
            findings.append(Finding(
                category=self.categorize(line),
                severity=self.severity(line),
                description=_BULLET.sub("", line).strip(),
                page_url=page_url,
                source=self.source,
            ))
        return findings

    @staticmethod
    def categorize(line: str) -> str:
        lowered = line.lower()
        for category, keywords in CATEGORY_KEYWORDS:
            if any(k in lowered for k in keywords):
                return category
        return "general"

    @staticmethod
    def severity(line: str) -> Severity:
        lowered = line.lower()
        if any(m in lowered for m in HIGH_SEVERITY_MARKERS):
            return Severity.HIGH
        if any(m in lowered for m in LOW_SEVERITY_MARKERS):
            return Severity.LOW
        return Severity.MEDIUM
