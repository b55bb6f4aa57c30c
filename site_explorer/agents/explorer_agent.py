"""Explorer agent: the oracle-driven run loop.

States: INIT -> ITERATING -> COMPLETE | MAX_STEPS_REACHED | FATAL_ERROR.

INIT failures raise FatalInitError with nothing left open. Once iterating,
every failure is either a recorded action or, for a broken page handle, the
FATAL_ERROR state; the caller always gets a report back.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from urllib.parse import urljoin

from ..core.browser import BrowserSession
from ..core.config import ExplorationConfig, OutputConfig
from ..core.exceptions import ExplorerError, NavigationError
from ..models.action_record import ActionRecord
from ..models.decision import NavigateDecision
from ..models.report import RunState
from ..observability.context import get_or_create_context, new_session_id, session_scope
from ..observability.decorators import traced_agent
from ..observability.emitters import emit_info
from ..services.frontier import Frontier
from ..services.report_builder import ReportBuilder
from ..services.session_memory import SessionMemory
from ..tools.consent import dismiss_cookie_banner
from ..tools.executor import ActionExecutor
from ..tools.snapshot import SnapshotExtractor
from .base import DEFAULT_GOAL, BaseSessionAgent, ExplorationRun, SessionFactory
from .oracle import DecisionOracle

logger = logging.getLogger(__name__)


class ExplorerAgent(BaseSessionAgent):
    """Explores a site by asking the oracle what to do next.

    Example:
        agent = ExplorerAgent(oracle, ExplorationConfig(), OutputConfig())
        run = await agent.explore("https://example.com", goal="test signup")
        print(run.report.success_rate_display)
    """

    name = "explorer_agent"
    mode = "explore"

    def __init__(
        self,
        oracle: DecisionOracle,
        config: ExplorationConfig,
        output: OutputConfig,
        session_factory: SessionFactory = BrowserSession,
        report_builder: ReportBuilder | None = None,
        extractor: SnapshotExtractor | None = None,
        executor: ActionExecutor | None = None,
    ):
        super().__init__(config, output, session_factory, report_builder or ReportBuilder(recommender=oracle))
        self.oracle = oracle
        self.extractor = extractor or SnapshotExtractor(config)
        self.executor = executor or ActionExecutor(config, self.extractor)

    async def explore(self, url: str, goal: str = DEFAULT_GOAL, keep_open: bool = False) -> ExplorationRun:
        """Run one exploration session.

        Args:
            url: Seed URL
            goal: What the oracle should try to exercise
            keep_open: Hand the open browser session back to the caller

        Returns:
            ExplorationRun with the report; its session is set only when
            keep_open was requested and the run did not end in FATAL_ERROR

        Raises:
            FatalInitError: If the browser or the seed page could not be opened
        """
        session_id = new_session_id()
        with session_scope(session_id) as ctx:
            emit_info("session.start", ctx, {"url": url, "goal": goal, "mode": self.mode})
            return await self.run(url, goal, keep_open, session_id)

    @traced_agent()
    async def run(self, url: str, goal: str, keep_open: bool, session_id: str) -> ExplorationRun:
        started_at = datetime.now(UTC)
        session_dir = self.output.get_session_dir(url, started_at)
        memory = SessionMemory(session_id)
        frontier = Frontier(self.config.max_pages)

        self.set_state(RunState.INIT, url=url)
        session, final_url = await self.open_session(url)

        try:
            await dismiss_cookie_banner(session)
            frontier.seed(final_url)
            self.visit(frontier, final_url)
            await self.capture_screenshot(session, final_url, memory, session_dir)

            self.set_state(RunState.ITERATING)
            state, error = await self.iterate(session, goal, frontier, memory, session_dir)
        except asyncio.CancelledError:
            logger.warning(f"Session {session_id} cancelled, releasing browser")
            await session.close()
            raise
        except Exception as e:
            logger.exception("Unexpected failure in run loop")
            state, error = await self.fail(session, memory, session_dir, len(memory), e)

        keep = keep_open and state is not RunState.FATAL_ERROR
        if not keep:
            await session.close()

        self.set_state(state, steps=len(memory))
        try:
            report, artifacts = await self.finish(
                memory=memory,
                frontier=frontier,
                start_url=url,
                goal=goal,
                state=state,
                started_at=started_at,
                session_dir=session_dir,
                error=error,
            )
        except BaseException:
            if keep:
                await session.close()
            raise
        return ExplorationRun(report=report, artifacts=artifacts, session=session if keep else None)

    async def iterate(
        self,
        session: BrowserSession,
        goal: str,
        frontier: Frontier,
        memory: SessionMemory,
        session_dir: Path,
    ) -> tuple[RunState, str | None]:
        """Snapshot, decide, act until complete, the step cap or a fatal failure.

        Returns:
            (terminal state, error message for FATAL_ERROR)
        """
        for step in range(1, self.config.max_steps + 1):
            logger.info(f"--- Step {step}/{self.config.max_steps} ---")
            try:
                snapshot = await self.extractor.capture(session)
            except Exception as e:
                return await self.fail(session, memory, session_dir, step, e)

            decision = await self.oracle.decide(snapshot, goal, memory.records)
            logger.info(f"Decision: {decision.kind.value} {decision.target or ''} ({decision.confidence.value})")

            if isinstance(decision, NavigateDecision) and not self.within_budget(frontier, snapshot.url, decision.url):
                error = NavigationError("page budget exhausted", url=decision.url)
                record = ActionRecord.from_decision(
                    step, decision, success=False, page_url=snapshot.url, error=error.message
                )
                memory.append(record)
                self.emit_action(record)
                await asyncio.sleep(self.config.step_delay)
                continue

            outcome = await self.executor.execute(session, decision, snapshot, step)
            record = outcome.record
            newly_visited = bool(outcome.navigated_to) and self.visit(frontier, outcome.navigated_to)
            if outcome.navigated_to and not newly_visited and not frontier.is_visited(outcome.navigated_to):
                # Clicks and fallbacks can leave the page after the budget is spent
                record = replace(record, details={**record.details, "beyond_budget": True})
            memory.append(record)
            self.emit_action(record)

            if outcome.terminal:
                logger.info(f"Exploration complete at step {step}")
                return RunState.COMPLETE, None

            if newly_visited:
                await self.capture_screenshot(session, outcome.navigated_to, memory, session_dir)

            await asyncio.sleep(self.config.step_delay)

        logger.info(f"Reached maximum of {self.config.max_steps} steps")
        return RunState.MAX_STEPS_REACHED, None

    def within_budget(self, frontier: Frontier, base_url: str, target: str) -> bool:
        """Whether navigating to target keeps the visited set within max_pages."""
        url = urljoin(base_url, target)
        return frontier.is_visited(url) or not frontier.is_full

    async def fail(
        self, session: BrowserSession, memory: SessionMemory, session_dir: Path, step: int, error: Exception
    ) -> tuple[RunState, str]:
        message = error.message if isinstance(error, ExplorerError) else f"{type(error).__name__}: {error}"
        logger.error(f"Fatal failure at step {step}: {message}")
        try:
            url = await session.current_url()
        except (ExplorerError, OSError):
            url = ""
        await self.capture_screenshot(session, url, memory, session_dir, diagnostic=True)
        return RunState.FATAL_ERROR, message

    def emit_action(self, record: ActionRecord) -> None:
        emit_info("step.action", get_or_create_context(self.name), record.to_dict())
