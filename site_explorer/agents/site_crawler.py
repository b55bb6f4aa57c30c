"""Breadth-first site crawler.

Visits same-domain pages in discovery order until the frontier runs dry or
max_pages pages have been visited. Each visit yields one ActionRecord, a
full-page screenshot, audit findings and timing metrics. No oracle is
consulted per page; recommendations are still requested when visits fail.
"""

import asyncio
import logging
from datetime import UTC, datetime
from pathlib import Path

from ..core.browser import BrowserSession
from ..core.config import ExplorationConfig, OutputConfig
from ..core.exceptions import ExplorerError
from ..core.html_cleaner import extract_same_domain_links
from ..models.action_record import ActionRecord
from ..models.decision import ActionKind, Confidence
from ..models.report import Finding, RunState
from ..observability.context import get_or_create_context, new_session_id, session_scope
from ..observability.decorators import traced_agent
from ..observability.emitters import emit_info
from ..services.frontier import Frontier
from ..services.report_builder import ReportBuilder
from ..services.session_memory import SessionMemory
from ..tools.page_audit import PageAuditor
from ..tools.snapshot import SnapshotExtractor
from .base import BaseSessionAgent, ExplorationRun, SessionFactory

logger = logging.getLogger(__name__)

CRAWL_REASONING = "breadth-first crawl of discovered same-domain links"


class SiteCrawler(BaseSessionAgent):
    """Crawls a site breadth-first and audits every page it visits."""

    name = "site_crawler"
    mode = "crawl"

    def __init__(
        self,
        config: ExplorationConfig,
        output: OutputConfig,
        session_factory: SessionFactory = BrowserSession,
        report_builder: ReportBuilder | None = None,
        auditor: PageAuditor | None = None,
        extractor: SnapshotExtractor | None = None,
    ):
        super().__init__(config, output, session_factory, report_builder)
        self.auditor = auditor or PageAuditor()
        self.extractor = extractor or SnapshotExtractor(config)

    async def crawl(self, start_url: str) -> ExplorationRun:
        """Crawl from start_url.

        Raises:
            FatalInitError: If the browser or the start page could not be opened
        """
        session_id = new_session_id()
        with session_scope(session_id) as ctx:
            emit_info("session.start", ctx, {"url": start_url, "mode": self.mode})
            return await self.run(start_url, session_id)

    @traced_agent()
    async def run(self, start_url: str, session_id: str) -> ExplorationRun:
        started_at = datetime.now(UTC)
        session_dir = self.output.get_session_dir(start_url, started_at)
        memory = SessionMemory(session_id)
        frontier = Frontier(self.config.max_pages)
        findings: list[Finding] = []
        error = None

        self.set_state(RunState.INIT, url=start_url)
        session, final_url = await self.open_session(start_url)
        frontier.seed(final_url)

        try:
            self.set_state(RunState.ITERATING)
            visits = 0
            while (url := frontier.next()) is not None:
                if not self.visit(frontier, url):
                    continue
                visits += 1
                record, page_findings = await self.crawl_page(
                    session, url, visits, frontier, memory, session_dir, navigate=visits > 1
                )
                memory.append(record)
                findings.extend(page_findings)
                emit_info("step.action", get_or_create_context(self.name), record.to_dict())
                await asyncio.sleep(self.config.step_delay)
            state = RunState.COMPLETE
        except asyncio.CancelledError:
            logger.warning(f"Crawl {session_id} cancelled, releasing browser")
            raise
        except Exception as e:
            logger.exception("Unexpected failure during crawl")
            error = e.message if isinstance(e, ExplorerError) else f"{type(e).__name__}: {e}"
            await self.capture_screenshot(session, start_url, memory, session_dir, diagnostic=True)
            state = RunState.FATAL_ERROR
        finally:
            await session.close()

        logger.info(f"Crawl finished: {len(frontier.visited)} pages visited")
        self.set_state(state, pages=len(frontier.visited))
        report, artifacts = await self.finish(
            memory=memory,
            frontier=frontier,
            start_url=start_url,
            goal=None,
            state=state,
            started_at=started_at,
            session_dir=session_dir,
            findings=findings,
            error=error,
        )
        return ExplorationRun(report=report, artifacts=artifacts)

    async def crawl_page(
        self,
        session: BrowserSession,
        url: str,
        step: int,
        frontier: Frontier,
        memory: SessionMemory,
        session_dir: Path,
        navigate: bool = True,
    ) -> tuple[ActionRecord, list[Finding]]:
        """Visit one page: load, settle, screenshot, audit, collect links."""
        logger.info(f"Analyzing page: {url}")
        try:
            if navigate:
                await session.navigate(url, timeout=self.config.navigation_timeout)
            settled = await self.extractor.settle(session)
            screenshot = await self.capture_screenshot(session, url, memory, session_dir)

            findings, metrics = await self.auditor.audit(session, url)
            memory.record_metrics(url, metrics)

            links = extract_same_domain_links(await session.content(), url)
            admitted = sum(1 for link in links if frontier.add(link))
        except ExplorerError as e:
            logger.warning(f"Error analyzing page {url}: {e.message}")
            return self.page_record(step, url, success=False, error=e.message, details=e.details), []

        details = {
            "settled": settled,
            "screenshot": screenshot,
            "links_found": len(links),
            "links_queued": admitted,
            "findings": len(findings),
        }
        return self.page_record(step, url, success=True, details=details), findings

    def page_record(self, step: int, url: str, **kwargs) -> ActionRecord:
        return ActionRecord(
            step=step,
            action=ActionKind.NAVIGATE.value,
            target=url,
            reasoning=CRAWL_REASONING,
            confidence=Confidence.HIGH.value,
            page_url=url,
            **kwargs,
        )
