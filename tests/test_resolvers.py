"""Tests for click resolver strategies and fill candidates."""

from site_explorer.core.browser import Locator
from site_explorer.models.decision import ClickDecision
from site_explorer.models.snapshot import ElementDescriptor, PageSnapshot
from site_explorer.tools.resolvers import (
    CLICK_STRATEGIES,
    descriptor_attributes,
    direct_navigation,
    exact_href,
    exact_text,
    fill_candidates,
    partial_text,
    path_href,
)


def _snapshot(*elements: ElementDescriptor) -> PageSnapshot:
    return PageSnapshot(
        url="https://example.com/shop/",
        title="Shop",
        cleaned_markup="",
        interactive_elements=elements,
    )


class TestStrategyOrder:
    def test_click_strategies_are_ordered_data(self):
        """Test the fallback order is the declared tuple."""
        assert CLICK_STRATEGIES == (
            exact_text, partial_text, exact_href, path_href, descriptor_attributes, direct_navigation,
        )


class TestTextStrategies:
    def test_exact_and_partial_text(self):
        decision = ClickDecision(target_text="Sign up")
        assert exact_text(_snapshot(), decision)[0].locator == Locator.by_text("Sign up", exact=True)
        assert partial_text(_snapshot(), decision)[0].locator == Locator.by_text("Sign up", exact=False)

    def test_no_text_no_attempt(self):
        decision = ClickDecision(target_href="/cart")
        assert exact_text(_snapshot(), decision) == []
        assert partial_text(_snapshot(), decision) == []


class TestHrefStrategies:
    def test_exact_href_selector(self):
        attempt = exact_href(_snapshot(), ClickDecision(target_href="/cart?x=1"))[0]
        assert attempt.locator == Locator.by_css('a[href="/cart?x=1"]')

    def test_path_href_ignores_host_and_query(self):
        attempt = path_href(_snapshot(), ClickDecision(target_href="https://cdn.example.com/cart?x=1"))[0]
        assert attempt.locator == Locator.by_href_path("/cart")

    def test_path_href_resolves_relative(self):
        attempt = path_href(_snapshot(), ClickDecision(target_href="item/3"))[0]
        assert attempt.locator == Locator.by_href_path("/shop/item/3")

    def test_direct_navigation_absolute(self):
        attempt = direct_navigation(_snapshot(), ClickDecision(target_href="/cart"))[0]
        assert attempt.locator is None
        assert attempt.navigate_to == "https://example.com/cart"

    def test_no_href_no_navigation(self):
        assert direct_navigation(_snapshot(), ClickDecision(target_text="Buy")) == []


class TestDescriptorAttributes:
    def test_selectors_from_matching_descriptor(self):
        snapshot = _snapshot(
            ElementDescriptor(index=0, tag="a", text="Home", href="/"),
            ElementDescriptor(index=1, tag="input", text="Go", id="go", name="submit", type="submit"),
        )
        attempts = descriptor_attributes(snapshot, ClickDecision(target_text="Go"))
        assert [a.strategy for a in attempts] == ["descriptor_id", "descriptor_name", "descriptor_type"]
        assert [a.locator.css for a in attempts] == ['[id="go"]', '[name="submit"]', 'input[type="submit"]']

    def test_match_by_element_hint(self):
        snapshot = _snapshot(ElementDescriptor(index=0, tag="button", text="", id="menu-toggle"))
        attempts = descriptor_attributes(snapshot, ClickDecision(target_element="menu-toggle"))
        assert attempts[0].locator.css == '[id="menu-toggle"]'

    def test_no_matching_descriptor(self):
        snapshot = _snapshot(ElementDescriptor(index=0, tag="button", text="Other"))
        assert descriptor_attributes(snapshot, ClickDecision(target_text="Go")) == []


class TestFillCandidates:
    def test_candidate_order(self):
        candidates = fill_candidates("email")
        assert [c.strategy for c in candidates] == ["name", "id", "placeholder", "aria_label"]
        assert [c.locator.css for c in candidates] == [
            '[name="email"]',
            '[id="email"]',
            '[placeholder*="email" i]',
            '[aria-label*="email" i]',
        ]

    def test_quotes_escaped(self):
        assert fill_candidates('say "hi"')[0].locator.css == '[name="say \\"hi\\""]'
