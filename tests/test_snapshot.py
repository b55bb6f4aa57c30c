"""Tests for snapshot extraction."""

import asyncio

import pytest
from conftest import HOME_HTML, FakePage

from site_explorer.core.config import ExplorationConfig
from site_explorer.tools.snapshot import SnapshotExtractor


def _page(html: str = HOME_HTML) -> FakePage:
    page = FakePage(pages={"https://example.com/": html})
    page.url = "https://example.com/"
    return page


class TestCapture:
    """Tests for SnapshotExtractor.capture."""

    @pytest.mark.asyncio
    async def test_snapshot_contents(self, fast_config):
        snapshot = await SnapshotExtractor(fast_config).capture(_page())

        assert snapshot.url == "https://example.com/"
        assert snapshot.settled
        assert [e.text for e in snapshot.interactive_elements] == ["Your email", "Login", "About", "Contact"]
        assert "<script" not in snapshot.cleaned_markup
        assert 'onclick="login()"' in snapshot.cleaned_markup

    @pytest.mark.asyncio
    async def test_never_mutates_page(self, fast_config):
        page = _page()
        await SnapshotExtractor(fast_config).capture(page)
        assert page.clicks == [] and page.fills == [] and page.navigations == []

    @pytest.mark.asyncio
    async def test_markup_and_text_bounded(self):
        config = ExplorationConfig(settle_delay=0, max_markup_chars=50, max_element_text=5)
        snapshot = await SnapshotExtractor(config).capture(_page(), settle=False)
        assert snapshot.cleaned_markup.endswith("[TRUNCATED]")
        assert all(len(e.text) <= 5 for e in snapshot.interactive_elements)

    @pytest.mark.asyncio
    async def test_duplicates_counted(self, fast_config):
        html = "<button>Edit</button><button>Edit</button><button>Edit</button>"
        snapshot = await SnapshotExtractor(fast_config).capture(_page(html))
        assert len(snapshot.interactive_elements) == 1
        assert snapshot.dropped_duplicates == 2


class TestSettle:
    """Tests for the bounded settle wait."""

    @pytest.mark.asyncio
    async def test_not_idle_yields_best_effort_snapshot(self, fast_config):
        page = _page()
        page.idle = False

        snapshot = await SnapshotExtractor(fast_config).capture(page)

        assert not snapshot.settled
        assert len(snapshot.interactive_elements) == 4

    @pytest.mark.asyncio
    async def test_hung_idle_wait_is_bounded(self):
        """Test a network-idle wait that never returns cannot block capture."""
        page = _page()

        async def hang(idle_time, timeout):
            await asyncio.sleep(60)
            return True

        page.wait_for_network_idle = hang
        config = ExplorationConfig(settle_delay=0, network_idle_timeout=0.01)

        snapshot = await asyncio.wait_for(SnapshotExtractor(config).capture(page), timeout=5)
        assert not snapshot.settled
