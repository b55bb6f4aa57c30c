"""Snapshot extraction: live page -> bounded PageSnapshot.

Extraction reads the page (markup, title, URL) and never mutates it. The
settle wait has two independently bounded phases: a fixed delay, then a
network-idle wait. A page that never goes idle yields a best-effort
snapshot marked settled=False.
"""

import asyncio
import logging

from ..core.browser import BrowserPage
from ..core.config import ExplorationConfig
from ..core.exceptions import ExtractionTimeout
from ..core.html_cleaner import clean_html_for_llm, extract_interactive_elements
from ..models.snapshot import PageSnapshot
from ..observability.context import get_or_create_context
from ..observability.decorators import traced_tool
from ..observability.emitters import emit_info, emit_warning
from ..observability.schema import M

logger = logging.getLogger(__name__)


class SnapshotExtractor:
    """Captures PageSnapshots under the configured bounds."""

    name = "snapshot_extractor"

    def __init__(self, config: ExplorationConfig):
        self.config = config

    async def settle(self, page: BrowserPage) -> bool:
        """Wait for the page to settle.

        Returns:
            True if the network went idle within network_idle_timeout
        """
        await asyncio.sleep(self.config.settle_delay)

        timeout = self.config.network_idle_timeout
        try:
            idle = await asyncio.wait_for(
                page.wait_for_network_idle(self.config.network_idle_time, timeout),
                timeout=timeout + 1.0,
            )
        except asyncio.TimeoutError:
            idle = False

        if not idle:
            url = await page.current_url()
            error = ExtractionTimeout(url, self.config.settle_delay + timeout)
            logger.warning(f"{error.message}; continuing with best-effort snapshot")
            emit_warning("snapshot.timeout", get_or_create_context(self.name), {"url": url, "waited": error.waited})
        return idle

    @traced_tool()
    async def capture(self, page: BrowserPage, settle: bool = True) -> PageSnapshot:
        """Capture the current page.

        Args:
            page: Live page handle
            settle: Run the settle wait first; analyze decisions re-capture without it
        """
        settled = await self.settle(page) if settle else True

        html = await page.content()
        title = await page.title()
        url = await page.current_url()

        elements, dropped = extract_interactive_elements(html, self.config.max_element_text)
        if dropped:
            logger.info(f"Dropped {dropped} elements sharing (text, href, id) with an earlier element on {url}")

        snapshot = PageSnapshot(
            url=url,
            title=title,
            cleaned_markup=clean_html_for_llm(html, self.config.max_markup_chars),
            interactive_elements=tuple(elements),
            settled=settled,
            dropped_duplicates=dropped,
        )
        logger.info(f"Snapshot of {url}: {len(elements)} interactive elements")
        emit_info(
            "snapshot.captured", get_or_create_context(self.name),
            {"url": url, "title": title, "settled": settled, "dropped_duplicates": dropped},
            metrics={M.ELEMENT_COUNT: len(elements), M.MARKUP_CHARS: len(snapshot.cleaned_markup)},
        )
        return snapshot
