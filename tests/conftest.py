"""Shared test fixtures for all tests."""

import json
from pathlib import Path
from typing import Any

import pytest

from site_explorer.core.browser import Locator
from site_explorer.core.config import ExplorationConfig, OutputConfig
from site_explorer.core.exceptions import ActionResolutionError, BrowserError, NavigationError

DEFAULT_HTML = "<html><head><title>Blank</title></head><body></body></html>"

HOME_HTML = """
<html>
<head><title>Home</title><script>var x = 1;</script></head>
<body>
  <nav>
    <a href="/about">About</a>
    <a href="/contact">Contact</a>
  </nav>
  <button id="login" onclick="login()">Login</button>
  <form action="/subscribe" method="post">
    <input name="email" type="email" placeholder="Your email">
  </form>
</body>
</html>
"""


class FakePage:
    """In-memory stand-in for BrowserSession.

    Pages are served from a url -> html mapping. Clicks and fills succeed
    only for locators registered in clickable/fillable; every attempt is
    recorded, successful or not.

    Args:
        pages: url -> html
        clickable: locator -> url the click leads to (None stays on the page)
        fillable: locators that accept input
        failing_urls: navigations that raise NavigationError
    """

    def __init__(
        self,
        pages: dict[str, str] | None = None,
        clickable: dict[Locator, str | None] | None = None,
        fillable: set[Locator] | None = None,
        failing_urls: set[str] | None = None,
    ):
        self.pages = pages or {}
        self.clickable = clickable or {}
        self.fillable = fillable or set()
        self.failing_urls = failing_urls or set()
        self.url = "about:blank"
        self.idle = True
        self.open_error: Exception | None = None
        self.content_error: BaseException | None = None
        self.content_fail_after: int | None = None
        self.evaluations: dict[str, Any] = {}

        self.opened = False
        self.closed = False
        self.close_calls = 0
        self.navigations: list[str] = []
        self.clicks: list[Locator] = []
        self.fills: list[tuple[Locator, str]] = []
        self.screenshots: list[Path] = []
        self.content_calls = 0

    async def open(self) -> "FakePage":
        if self.open_error:
            raise self.open_error
        self.opened = True
        return self

    async def close(self) -> None:
        self.close_calls += 1
        self.closed = True

    async def navigate(self, url: str, timeout: float | None = None) -> str:
        self.navigations.append(url)
        if url in self.failing_urls:
            raise NavigationError("net::ERR_NAME_NOT_RESOLVED", url=url)
        self.url = url
        return url

    async def evaluate(self, expression: str) -> Any:
        for marker, value in self.evaluations.items():
            if marker in expression:
                return value
        return None

    async def click(self, locator: Locator) -> None:
        self.clicks.append(locator)
        if locator not in self.clickable:
            raise ActionResolutionError("Element not found", target=locator.describe())
        target = self.clickable[locator]
        if target:
            self.url = target

    async def fill(self, locator: Locator, value: str) -> None:
        self.fills.append((locator, value))
        if locator not in self.fillable:
            raise ActionResolutionError("Element not found", target=locator.describe())

    async def screenshot(self, path: Path, full_page: bool = True) -> bytes:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"\x89PNG")
        self.screenshots.append(path)
        return b"\x89PNG"

    async def content(self) -> str:
        self.content_calls += 1
        if self.content_error is not None:
            raise self.content_error
        if self.content_fail_after is not None and self.content_calls > self.content_fail_after:
            raise BrowserError("Target closed", operation="evaluate")
        return self.pages.get(self.url, DEFAULT_HTML)

    async def title(self) -> str:
        return self.url

    async def current_url(self) -> str:
        return self.url

    async def wait_for_network_idle(self, idle_time: float, timeout: float) -> bool:
        return self.idle


class ScriptedOracle:
    """ReasoningOracle that replays canned replies in order.

    A reply may be a string, a dict (sent as JSON) or an exception to raise.
    Once the script runs out every call answers "complete".
    """

    def __init__(self, replies: list[Any] | None = None):
        self.replies = list(replies or [])
        self.calls: list[tuple[str, str]] = []

    async def complete(self, prompt: str, snapshot_context: str) -> str:
        self.calls.append((prompt, snapshot_context))
        if not self.replies:
            return json.dumps({"action": "complete", "reasoning": "done", "confidence": "high"})
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


@pytest.fixture
def fast_config():
    """ExplorationConfig with every delay removed."""
    return ExplorationConfig(
        step_delay=0,
        action_delay=0,
        settle_delay=0,
        network_idle_timeout=0.1,
        network_idle_time=0,
        navigation_timeout=1,
        oracle_timeout=1,
    )


@pytest.fixture
def output_config(tmp_path):
    return OutputConfig(base_dir=tmp_path / "output")


@pytest.fixture
def home_page():
    """FakePage serving a small site rooted at https://example.com/."""
    return FakePage(pages={
        "https://example.com/": HOME_HTML,
        "https://example.com/about": "<html><title>About</title><body><h1>About</h1></body></html>",
        "https://example.com/contact": "<html><title>Contact</title><body><h1>Contact</h1></body></html>",
    })
