"""Action executor: decision -> browser operations -> one ActionRecord.

Every execution path produces exactly one record, success or failure. Errors
raised while acting are converted into a failed record here and never
propagate to the run loop; cancellation is not an error and passes through.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from urllib.parse import urljoin

from ..core.browser import BrowserPage
from ..core.config import ExplorationConfig
from ..core.exceptions import ActionResolutionError, ExplorerError
from ..core.html_cleaner import canonicalize_url
from ..models.action_record import ActionRecord
from ..models.decision import (
    AnalyzeDecision,
    ClickDecision,
    CompleteDecision,
    Decision,
    FillFormDecision,
    NavigateDecision,
)
from ..models.snapshot import PageSnapshot
from ..observability.decorators import traced_tool
from .resolvers import CLICK_STRATEGIES, ResolutionAttempt, ResolverStrategy, fill_candidates
from .snapshot import SnapshotExtractor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionOutcome:
    """Result of executing one decision.

    Attributes:
        record: The single record to append to session memory
        snapshot: Fresh snapshot when the decision was analyze
        terminal: True for complete; the loop must stop after recording it
        navigated_to: Final URL when the action moved to a different page
    """
    record: ActionRecord
    snapshot: PageSnapshot | None = None
    terminal: bool = False
    navigated_to: str | None = None


@dataclass
class _Resolution:
    attempt: ResolutionAttempt | None = None
    tried: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


async def first_success(
    attempts: Iterable[ResolutionAttempt],
    perform: Callable[[ResolutionAttempt], Awaitable[None]],
) -> _Resolution:
    """Run attempts in order until one does not raise.

    Attempts are consumed lazily, so strategies after the winning one are
    never evaluated.
    """
    resolution = _Resolution()
    for attempt in attempts:
        resolution.tried.append(attempt.strategy)
        try:
            await perform(attempt)
        except ExplorerError as e:
            logger.debug(f"Strategy {attempt.describe()} failed: {e.message}")
            resolution.errors.append(f"{attempt.strategy}: {e.message}")
            continue
        resolution.attempt = attempt
        break
    return resolution


class ActionExecutor:
    """Executes decisions against a live page."""

    name = "action_executor"

    def __init__(
        self,
        config: ExplorationConfig,
        extractor: SnapshotExtractor,
        click_strategies: tuple[ResolverStrategy, ...] = CLICK_STRATEGIES,
    ):
        self.config = config
        self.extractor = extractor
        self.click_strategies = click_strategies

    @traced_tool()
    async def execute(
        self, page: BrowserPage, decision: Decision, snapshot: PageSnapshot, step: int
    ) -> ActionOutcome:
        """Execute one decision and describe what happened.

        Args:
            page: Live page handle
            decision: Validated decision from the oracle
            snapshot: Snapshot the decision was made on
            step: Loop iteration number
        """
        try:
            if isinstance(decision, CompleteDecision):
                logger.info("Exploration marked complete by oracle")
                return ActionOutcome(self._record(step, decision, snapshot, success=True), terminal=True)
            if isinstance(decision, NavigateDecision):
                return await self._navigate(page, decision, snapshot, step)
            if isinstance(decision, ClickDecision):
                return await self._click(page, decision, snapshot, step)
            if isinstance(decision, FillFormDecision):
                return await self._fill(page, decision, snapshot, step)
            if isinstance(decision, AnalyzeDecision):
                fresh = await self.extractor.capture(page, settle=False)
                details = {"element_count": len(fresh.interactive_elements)}
                return ActionOutcome(self._record(step, decision, snapshot, success=True, details=details), snapshot=fresh)
            raise ActionResolutionError(f"Unsupported decision type {type(decision).__name__}")
        except ExplorerError as e:
            logger.warning(f"Action {decision.kind.value} failed: {e.message}")
            return ActionOutcome(self._record(step, decision, snapshot, success=False, error=e.message, details=e.details))
        except Exception as e:
            logger.exception(f"Unexpected error executing {decision.kind.value}")
            return ActionOutcome(
                self._record(step, decision, snapshot, success=False, error=f"{type(e).__name__}: {e}")
            )

    def _record(self, step: int, decision: Decision, snapshot: PageSnapshot, **kwargs) -> ActionRecord:
        return ActionRecord.from_decision(step, decision, page_url=snapshot.url, **kwargs)

    async def _moved_to(self, page: BrowserPage, snapshot: PageSnapshot) -> str | None:
        current = await page.current_url()
        if current and canonicalize_url(current) != canonicalize_url(snapshot.url):
            return current
        return None

    async def _navigate(
        self, page: BrowserPage, decision: NavigateDecision, snapshot: PageSnapshot, step: int
    ) -> ActionOutcome:
        url = urljoin(snapshot.url, decision.url)
        final_url = await page.navigate(url, timeout=self.config.navigation_timeout)
        await asyncio.sleep(self.config.action_delay)
        logger.info(f"Navigated to {final_url}")
        record = self._record(step, decision, snapshot, success=True, details={"final_url": final_url})
        return ActionOutcome(record, navigated_to=final_url)

    async def _click(
        self, page: BrowserPage, decision: ClickDecision, snapshot: PageSnapshot, step: int
    ) -> ActionOutcome:
        async def perform(attempt: ResolutionAttempt) -> None:
            if attempt.navigate_to is not None:
                await page.navigate(attempt.navigate_to, timeout=self.config.navigation_timeout)
            else:
                await page.click(attempt.locator)

        attempts = (
            attempt
            for strategy in self.click_strategies
            for attempt in strategy(snapshot, decision)
        )
        resolution = await first_success(attempts, perform)

        if resolution.attempt is None:
            raise ActionResolutionError(
                f"Could not click element: {decision.target}",
                target=decision.target,
                attempts=resolution.tried,
            )

        logger.info(f"Clicked {decision.target!r} via {resolution.attempt.describe()}")
        await asyncio.sleep(self.config.action_delay)
        moved_to = await self._moved_to(page, snapshot)
        record = self._record(
            step, decision, snapshot,
            success=True,
            strategy=resolution.attempt.strategy,
            details={"attempts": resolution.tried, "failed_attempts": resolution.errors, "final_url": moved_to},
        )
        return ActionOutcome(record, navigated_to=moved_to)

    async def _fill(
        self, page: BrowserPage, decision: FillFormDecision, snapshot: PageSnapshot, step: int
    ) -> ActionOutcome:
        filled: dict[str, str] = {}
        unmatched: list[str] = []

        for field_name, value in decision.fill_data.items():
            async def perform(attempt: ResolutionAttempt, value: str = value) -> None:
                await page.fill(attempt.locator, value)

            resolution = await first_success(fill_candidates(field_name), perform)
            if resolution.attempt is None:
                logger.warning(f"Could not fill field: {field_name}")
                unmatched.append(field_name)
            else:
                logger.info(f"Filled {field_name} via {resolution.attempt.describe()}")
                filled[field_name] = resolution.attempt.strategy

        if not filled:
            raise ActionResolutionError(
                f"No form field could be filled: {', '.join(unmatched)}",
                target=decision.target,
                attempts=[c.strategy for c in fill_candidates("")],
            )

        await asyncio.sleep(self.config.action_delay)
        strategy = next(iter(filled.values())) if len(filled) == 1 else None
        record = self._record(
            step, decision, snapshot,
            success=True,
            strategy=strategy,
            details={"filled_fields": filled, "unmatched_fields": unmatched},
        )
        return ActionOutcome(record)
