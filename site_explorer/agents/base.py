"""Shared session plumbing for the explorer and the crawler.

Both agents open one caller-scoped BrowserSession, visit pages under a
Frontier, keep a SessionMemory and finish with a SessionReport. Only the
per-page behaviour differs.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from ..core.browser import BrowserPage, BrowserSession
from ..core.config import ExplorationConfig, OutputConfig
from ..core.exceptions import ExplorerError, FatalInitError
from ..models.report import Finding, RunState, SessionReport
from ..observability.context import get_or_create_context
from ..observability.emitters import emit_info, emit_warning
from ..services.frontier import Frontier
from ..services.report_builder import ReportBuilder, screenshot_relpath
from ..services.session_memory import SessionMemory

logger = logging.getLogger(__name__)

DEFAULT_GOAL = "comprehensive testing"
DIAGNOSTIC_SCREENSHOT = "screenshots/diagnostic.png"

SessionFactory = Callable[[], BrowserSession]


@dataclass
class ExplorationRun:
    """What a finished session hands back to its caller.

    Attributes:
        report: The session report (always present)
        artifacts: Written report files, keyed "json", "html", "screenshots"
        session: Still-open browser session when keep_open was requested;
            the caller owns it and must close() it
    """
    report: SessionReport
    artifacts: dict[str, Path] = field(default_factory=dict)
    session: BrowserSession | None = None

    @property
    def state(self) -> RunState:
        return self.report.state

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "session_id": self.report.session_id,
            "artifacts": {k: str(v) for k, v in self.artifacts.items()},
            "kept_open": self.session is not None,
        }

    async def close(self) -> None:
        """Release a kept-open browser session, if any."""
        if self.session is not None:
            session, self.session = self.session, None
            await session.close()


class BaseSessionAgent:
    """Common lifecycle: open, seed, screenshot, report.

    Subclasses implement the page loop and call these helpers.
    """

    name: str = "base_session_agent"
    mode: str = "base"

    def __init__(
        self,
        config: ExplorationConfig,
        output: OutputConfig,
        session_factory: SessionFactory = BrowserSession,
        report_builder: ReportBuilder | None = None,
    ):
        self.config = config
        self.output = output
        self.session_factory = session_factory
        self.report_builder = report_builder or ReportBuilder()

    async def open_session(self, url: str) -> tuple[BrowserSession, str]:
        """Acquire a page target and load the seed URL.

        Returns:
            (session, final_url) after redirects

        Raises:
            FatalInitError: If the browser or the seed navigation fails.
                Resources are released before raising.
        """
        session = self.session_factory()
        try:
            await session.open()
            final_url = await session.navigate(url, timeout=self.config.navigation_timeout)
        except asyncio.CancelledError:
            await session.close()
            raise
        except Exception as e:
            message = e.message if isinstance(e, ExplorerError) else f"{type(e).__name__}: {e}"
            logger.error(f"Could not start session for {url}: {message}")
            await session.close()
            raise FatalInitError(message, url=url) from e
        return session, final_url or url

    def set_state(self, state: RunState, **data) -> RunState:
        logger.info(f"Run state -> {state.value}")
        emit_info("session.state", get_or_create_context(self.name), {"state": state.value, **data})
        return state

    def visit(self, frontier: Frontier, url: str) -> bool:
        """Mark url visited, logging when the page budget refuses it."""
        if frontier.is_visited(url):
            return False
        if frontier.mark_visited(url):
            return True
        emit_warning(
            "frontier.capacity", get_or_create_context(self.name),
            {"url": url, "max_pages": frontier.max_pages},
        )
        return False

    async def capture_screenshot(
        self, page: BrowserPage, url: str, memory: SessionMemory, session_dir: Path, diagnostic: bool = False
    ) -> str | None:
        """Save a full-page screenshot under screenshots/.

        Page screenshots are keyed by URL in the report; the diagnostic
        screenshot of a fatal error is keyed "diagnostic". Best effort: a
        failure is logged and yields None.
        """
        relpath = DIAGNOSTIC_SCREENSHOT if diagnostic else screenshot_relpath(url)
        try:
            await page.screenshot(session_dir / relpath, full_page=True)
        except (ExplorerError, OSError) as e:
            logger.warning(f"Screenshot of {url} failed: {e}")
            return None
        memory.record_screenshot("diagnostic" if diagnostic else url, relpath)
        return relpath

    async def finish(
        self,
        *,
        memory: SessionMemory,
        frontier: Frontier,
        start_url: str,
        goal: str | None,
        state: RunState,
        started_at: datetime,
        session_dir: Path,
        findings: Iterable[Finding] = (),
        error: str | None = None,
    ) -> tuple[SessionReport, dict[str, Path]]:
        """Build and write the report for a terminal state."""
        report = await self.report_builder.build(
            memory=memory,
            mode=self.mode,
            start_url=start_url,
            goal=goal,
            state=state,
            started_at=started_at,
            visited_pages=frontier.visited_urls(),
            findings=findings,
            error=error,
        )
        artifacts = self.report_builder.write(report, session_dir)

        ctx = get_or_create_context(self.name)
        emit_info("report.written", ctx, {"paths": {k: str(v) for k, v in artifacts.items()}})
        emit_info("session.end", ctx, {
            "state": state.value,
            "total_actions": report.total_actions,
            "success_rate": report.success_rate,
            "pages_visited": len(report.visited_pages),
        })
        logger.info(
            f"Session {memory.session_id} finished in state {state.value}: "
            f"{report.total_actions} actions, success rate {report.success_rate_display}"
        )
        return report, artifacts
