"""Resolver strategies: turn a decision's target into concrete attempts.

Each strategy is a pure function (snapshot, decision) -> attempts. The
executor walks CLICK_STRATEGIES in order and stops at the first attempt
that succeeds, so the fallback order is the tuple below and nothing else.
"""

from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import urljoin, urlparse

from ..core.browser import Locator, css_quote
from ..models.decision import ClickDecision
from ..models.snapshot import ElementDescriptor, PageSnapshot


@dataclass(frozen=True)
class ResolutionAttempt:
    """One concrete thing to try.

    Exactly one of locator (click/fill it) or navigate_to (load it) is set.
    """
    strategy: str
    locator: Locator | None = None
    navigate_to: str | None = None

    def describe(self) -> str:
        if self.locator is not None:
            return f"{self.strategy}: {self.locator.describe()}"
        return f"{self.strategy}: navigate {self.navigate_to}"


ResolverStrategy = Callable[[PageSnapshot, ClickDecision], list[ResolutionAttempt]]


def exact_text(snapshot: PageSnapshot, decision: ClickDecision) -> list[ResolutionAttempt]:
    if not decision.target_text:
        return []
    return [ResolutionAttempt("exact_text", Locator.by_text(decision.target_text, exact=True))]


def partial_text(snapshot: PageSnapshot, decision: ClickDecision) -> list[ResolutionAttempt]:
    if not decision.target_text:
        return []
    return [ResolutionAttempt("partial_text", Locator.by_text(decision.target_text, exact=False))]


def exact_href(snapshot: PageSnapshot, decision: ClickDecision) -> list[ResolutionAttempt]:
    if not decision.target_href:
        return []
    return [ResolutionAttempt("exact_href", Locator.by_css(f"a[href={css_quote(decision.target_href)}]"))]


def path_href(snapshot: PageSnapshot, decision: ClickDecision) -> list[ResolutionAttempt]:
    """Match anchors by path only, ignoring host and query."""
    if not decision.target_href:
        return []
    path = urlparse(urljoin(snapshot.url, decision.target_href)).path or "/"
    return [ResolutionAttempt("path_href", Locator.by_href_path(path))]


def matching_descriptor(snapshot: PageSnapshot, decision: ClickDecision) -> ElementDescriptor | None:
    """First descriptor matching the decision's text, href or element hint."""
    for element in snapshot.interactive_elements:
        if decision.target_text and element.text == decision.target_text:
            return element
        if decision.target_href and element.href == decision.target_href:
            return element
        if decision.target_element and decision.target_element in (element.id, element.name):
            return element
    return None


def descriptor_attributes(snapshot: PageSnapshot, decision: ClickDecision) -> list[ResolutionAttempt]:
    """Selectors built from the matching descriptor's id, name and type."""
    element = matching_descriptor(snapshot, decision)
    if element is None:
        return []
    attempts = []
    if element.id:
        attempts.append(ResolutionAttempt("descriptor_id", Locator.by_css(f"[id={css_quote(element.id)}]")))
    if element.name:
        attempts.append(ResolutionAttempt("descriptor_name", Locator.by_css(f"[name={css_quote(element.name)}]")))
    if element.type:
        attempts.append(
            ResolutionAttempt("descriptor_type", Locator.by_css(f"{element.tag}[type={css_quote(element.type)}]"))
        )
    return attempts


def direct_navigation(snapshot: PageSnapshot, decision: ClickDecision) -> list[ResolutionAttempt]:
    """Last resort for links: load the href instead of clicking."""
    if not decision.target_href:
        return []
    return [ResolutionAttempt("direct_navigation", navigate_to=urljoin(snapshot.url, decision.target_href))]


CLICK_STRATEGIES: tuple[ResolverStrategy, ...] = (
    exact_text,
    partial_text,
    exact_href,
    path_href,
    descriptor_attributes,
    direct_navigation,
)


def fill_candidates(field_name: str) -> list[ResolutionAttempt]:
    """Selector candidates for one form field, in priority order."""
    quoted = css_quote(field_name)
    return [
        ResolutionAttempt("name", Locator.by_css(f"[name={quoted}]")),
        ResolutionAttempt("id", Locator.by_css(f"[id={quoted}]")),
        ResolutionAttempt("placeholder", Locator.by_css(f"[placeholder*={quoted} i]")),
        ResolutionAttempt("aria_label", Locator.by_css(f"[aria-label*={quoted} i]")),
    ]
