"""Best-effort dismissal of cookie consent banners."""

import logging

from ..core.browser import BrowserPage, Locator
from ..core.exceptions import ExplorerError

logger = logging.getLogger(__name__)

CONSENT_SELECTORS = (
    ".cc-dismiss",
    "[id*='cookie'] button",
    "[class*='cookie'] button",
    "[id*='accept']",
    "[class*='accept']",
)


async def dismiss_cookie_banner(page: BrowserPage, selectors: tuple[str, ...] = CONSENT_SELECTORS) -> bool:
    """Click the first consent control that exists.

    Returns:
        True if a banner control was clicked. Absence of a banner is normal
        and returns False.
    """
    for selector in selectors:
        try:
            await page.click(Locator.by_css(selector))
        except ExplorerError:
            continue
        logger.info(f"Dismissed cookie consent popup via {selector}")
        return True
    logger.debug("No cookie consent popup found")
    return False
