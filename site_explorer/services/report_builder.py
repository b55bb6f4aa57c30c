"""Aggregates session memory into a SessionReport and persists it.

The structured report is always produced. Recommendations come from one
best-effort oracle request that is skipped when nothing failed; a failure
there is logged and leaves recommendations empty.
"""

import json
import logging
import re
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from ..models.action_record import ActionRecord
from ..models.report import Finding, RunState, SessionReport
from ..prompts.template_renderer import render_template
from .issue_classifier import IssueClassifier, KeywordIssueClassifier
from .session_memory import SessionMemory

logger = logging.getLogger(__name__)

ALL_PASSED_RECOMMENDATION = "All tests passed successfully. The website appears to be functioning well."

REPORT_JSON = "analysis_report.json"
REPORT_HTML = "analysis_report.html"
SCREENSHOTS_DIR = "screenshots"


class Recommender(Protocol):
    async def recommend(self, start_url: str, failures: list[ActionRecord], total: int) -> str: ...


def compute_success_rate(successful: int, total: int) -> int | None:
    """Percentage of successful actions, None when there were no actions."""
    if total == 0:
        return None
    return round(successful / total * 100)


def screenshot_filename(url: str) -> str:
    """Deterministic per-page screenshot name derived from the URL.

    Example: https://example.com/about -> example_com_about.png
    """
    stem = re.sub(r"^https?://", "", url, flags=re.IGNORECASE)
    stem = re.sub(r"[^a-zA-Z0-9]", "_", stem).lower()[:100]
    return f"{stem or 'page'}.png"


def screenshot_relpath(url: str) -> str:
    return f"{SCREENSHOTS_DIR}/{screenshot_filename(url)}"


class ReportBuilder:
    """Builds and writes session reports.

    Args:
        recommender: Oracle used for free-text recommendations; None disables them
        classifier: Turns recommendation text into findings
    """

    def __init__(
        self,
        recommender: Recommender | None = None,
        classifier: IssueClassifier | None = None,
    ):
        self.recommender = recommender
        self.classifier = classifier or KeywordIssueClassifier()

    async def build(
        self,
        *,
        memory: SessionMemory,
        mode: str,
        start_url: str,
        goal: str | None,
        state: RunState,
        started_at: datetime,
        visited_pages: list[str],
        findings: Iterable[Finding] = (),
        error: str | None = None,
    ) -> SessionReport:
        records = list(memory.records)
        failures = memory.failures()
        successful = len(records) - len(failures)

        all_findings = list(findings)
        recommendations = await self._recommendations(start_url, failures, len(records))
        if recommendations and failures:
            all_findings.extend(self.classifier.classify(recommendations))

        return SessionReport(
            session_id=memory.session_id,
            mode=mode,
            start_url=start_url,
            goal=goal,
            state=state,
            started_at=started_at,
            finished_at=datetime.now(UTC),
            total_actions=len(records),
            successful_actions=successful,
            failed_actions=len(failures),
            success_rate=compute_success_rate(successful, len(records)),
            visited_pages=list(visited_pages),
            action_history=records,
            failures=failures,
            findings=all_findings,
            recommendations=recommendations,
            screenshots=memory.screenshots,
            metrics=memory.metrics,
            error=error,
        )

    async def _recommendations(
        self, start_url: str, failures: list[ActionRecord], total: int
    ) -> str | None:
        if not failures:
            return ALL_PASSED_RECOMMENDATION if total else None
        if self.recommender is None:
            return None
        try:
            return await self.recommender.recommend(start_url, failures, total) or None
        except Exception as e:
            logger.warning(f"Recommendations unavailable: {e}")
            return None

    def write(self, report: SessionReport, session_dir: Path) -> dict[str, Path]:
        """Write the JSON and HTML renderings into session_dir.

        Returns:
            Mapping of artifact kind ("json", "html", "screenshots") to path
        """
        session_dir.mkdir(parents=True, exist_ok=True)
        json_path = session_dir / REPORT_JSON
        html_path = session_dir / REPORT_HTML

        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)

        html_path.write_text(self.render_html(report), encoding="utf-8")
        logger.info(f"Report written to {json_path} and {html_path}")
        return {"json": json_path, "html": html_path, "screenshots": session_dir / SCREENSHOTS_DIR}

    def render_html(self, report: SessionReport) -> str:
        pages = [
            {
                "url": url,
                "screenshot": report.screenshots.get(url),
                "findings": [f for f in report.findings if f.page_url == url],
                "metrics": report.metrics.get(url, {}),
            }
            for url in report.visited_pages
        ]
        general_findings = [f for f in report.findings if f.page_url not in report.visited_pages]
        return render_template(
            "report.html.j2",
            report=report,
            pages=pages,
            general_findings=general_findings,
        )
