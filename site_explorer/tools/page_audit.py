"""DOM audit of a loaded page: quality findings plus navigation timing.

The checks are coarse heuristics evaluated in the page. Each failed check
produces one Finding for the page; they are hints for a human reviewer, not
a conformance test.
"""

import logging
from typing import Any

from ..core.browser import BrowserPage
from ..models.report import Finding, Severity
from ..observability.decorators import traced_tool

logger = logging.getLogger(__name__)

LARGE_IMAGE_PX = 2000
FIXED_WIDTH_PX = 1200

_CONTENT_CHECKS_JS = f"""
(() => {{
    const images = Array.from(document.querySelectorAll('img'));
    const textElements = Array.from(document.querySelectorAll('p, h1, h2, h3, h4, h5, h6, span, div'));
    return {{
        title: document.title,
        largeImages: images.filter(img => img.naturalWidth > {LARGE_IMAGE_PX} || img.naturalHeight > {LARGE_IMAGE_PX}).length,
        missingAlt: images.filter(img => !img.alt || img.alt.trim() === '').length,
        lowContrast: textElements.some(el => {{
            const color = window.getComputedStyle(el).color;
            return color === 'rgb(128, 128, 128)' || color.includes('gray');
        }}),
        fixedWidth: Array.from(document.querySelectorAll('*')).some(el => {{
            const width = window.getComputedStyle(el).width;
            return width && width.endsWith('px') && parseInt(width) > {FIXED_WIDTH_PX};
        }}),
        imageCount: images.length,
        linkCount: document.querySelectorAll('a').length,
        headings: Array.from(document.querySelectorAll('h1, h2, h3, h4, h5, h6')).map(h => ({{
            tag: h.tagName,
            text: h.textContent.trim().substring(0, 100)
        }}))
    }};
}})()
"""

_PERFORMANCE_JS = """
(() => {
    const navigation = performance.getEntriesByType('navigation')[0];
    return {
        load_time: navigation ? navigation.loadEventEnd - navigation.loadEventStart : 0,
        dom_content_loaded: navigation ? navigation.domContentLoadedEventEnd - navigation.domContentLoadedEventStart : 0,
        resource_count: performance.getEntriesByType('resource').length
    };
})()
"""


def findings_from_checks(checks: dict[str, Any], page_url: str) -> list[Finding]:
    """Translate raw check results into findings."""
    findings = []

    def add(category: str, severity: Severity, description: str) -> None:
        findings.append(Finding(category, severity, description, page_url=page_url, source="audit"))

    if checks.get("missingAlt"):
        add("accessibility", Severity.HIGH, f"{checks['missingAlt']} image(s) without alt text")
    if checks.get("largeImages"):
        add(
            "performance", Severity.MEDIUM,
            f"{checks['largeImages']} image(s) larger than {LARGE_IMAGE_PX}px in one dimension",
        )
    if checks.get("lowContrast"):
        add("accessibility", Severity.MEDIUM, "Grey text colour may not meet contrast requirements")
    if checks.get("fixedWidth"):
        add("responsive", Severity.MEDIUM, f"Elements with a fixed width above {FIXED_WIDTH_PX}px")

    headings = checks.get("headings") or []
    h1_count = sum(1 for h in headings if str(h.get("tag", "")).upper() == "H1")
    if h1_count == 0:
        add("structure", Severity.LOW, "Page has no h1 heading")
    elif h1_count > 1:
        add("structure", Severity.LOW, f"Page has {h1_count} h1 headings")
    return findings


class PageAuditor:
    """Runs the DOM checks and reads navigation timing for one page."""

    name = "page_auditor"

    @traced_tool()
    async def audit(self, page: BrowserPage, url: str) -> tuple[list[Finding], dict[str, Any]]:
        """Audit the currently loaded page.

        Returns:
            (findings, metrics) where metrics has load_time,
            dom_content_loaded (milliseconds) and resource_count
        """
        checks = await page.evaluate(_CONTENT_CHECKS_JS) or {}
        metrics = await page.evaluate(_PERFORMANCE_JS) or {}

        findings = findings_from_checks(checks, url)
        metrics = {
            "load_time": metrics.get("load_time", 0),
            "dom_content_loaded": metrics.get("dom_content_loaded", 0),
            "resource_count": metrics.get("resource_count", 0),
            "image_count": checks.get("imageCount", 0),
            "link_count": checks.get("linkCount", 0),
        }
        logger.info(f"Audit of {url}: {len(findings)} findings")
        return findings, metrics
