"""Chrome DevTools Protocol client for browser automation."""

import asyncio
import base64
import json
import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import aiohttp
import websockets

from .config import BrowserConfig
from .exceptions import ActionResolutionError, BrowserError, NavigationError

logger = logging.getLogger(__name__)


def css_quote(value: str) -> str:
    """Quote a value for use inside a CSS attribute selector."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\a ")
    return f'"{escaped}"'


@dataclass(frozen=True)
class Locator:
    """How to find one element on the live page.

    Exactly one of css, text or href_path is set. Text matching is
    whitespace-normalised; partial matching is case-insensitive.
    """
    css: str | None = None
    text: str | None = None
    exact: bool = True
    href_path: str | None = None

    @classmethod
    def by_css(cls, selector: str) -> "Locator":
        return cls(css=selector)

    @classmethod
    def by_text(cls, text: str, exact: bool = True) -> "Locator":
        return cls(text=text, exact=exact)

    @classmethod
    def by_href_path(cls, path: str) -> "Locator":
        return cls(href_path=path)

    def describe(self) -> str:
        if self.css is not None:
            return self.css
        if self.text is not None:
            return f'text{"=" if self.exact else "*="}{css_quote(self.text)}'
        return f"a[pathname={css_quote(self.href_path or '')}]"

    def to_query(self) -> dict[str, Any]:
        return {"css": self.css, "text": self.text, "exact": self.exact, "hrefPath": self.href_path}


_FIND_ELEMENT_JS = """
(query) => {
    const norm = s => (s || '').replace(/\\s+/g, ' ').trim();
    const visible = el => {
        const r = el.getBoundingClientRect();
        const s = window.getComputedStyle(el);
        return r.width > 0 && r.height > 0 && s.visibility !== 'hidden' && s.display !== 'none';
    };
    let found = [];
    if (query.css) {
        found = Array.from(document.querySelectorAll(query.css));
    } else if (query.hrefPath) {
        found = Array.from(document.querySelectorAll('a[href]')).filter(a => {
            try { return new URL(a.href, location.href).pathname === query.hrefPath; }
            catch (e) { return false; }
        });
    } else if (query.text) {
        const wanted = norm(query.text);
        const textOf = el => norm(el.innerText || el.value || el.getAttribute('aria-label') || el.getAttribute('title'));
        const pool = document.querySelectorAll(
            'a, button, input, select, textarea, label, summary, [role], [onclick], li, span, div, p, h1, h2, h3, h4, h5, h6'
        );
        found = Array.from(pool).filter(el => query.exact
            ? textOf(el) === wanted
            : textOf(el).toLowerCase().includes(wanted.toLowerCase()));
        found = found.filter(el => !found.some(other => other !== el && el.contains(other)));
    }
    return found.find(visible) || null;
}
"""

_CLICK_JS = """
(() => {
    const el = (%s)(%s);
    if (!el) return {success: false, error: 'Element not found'};
    el.scrollIntoView({block: 'center'});
    el.click();
    return {success: true, tag: el.tagName.toLowerCase()};
})()
"""

_FILL_JS = """
(() => {
    const el = (%s)(%s);
    if (!el) return {success: false, error: 'Element not found'};
    const protos = [HTMLInputElement, HTMLTextAreaElement, HTMLSelectElement];
    const owner = protos.find(p => el instanceof p);
    if (!owner) return {success: false, error: 'Element is not fillable'};
    if (el.disabled || el.readOnly) return {success: false, error: 'Element is disabled'};
    el.focus();
    Object.getOwnPropertyDescriptor(owner.prototype, 'value').set.call(el, %s);
    el.dispatchEvent(new Event('input', {bubbles: true}));
    el.dispatchEvent(new Event('change', {bubbles: true}));
    return {success: true, tag: el.tagName.toLowerCase()};
})()
"""


def build_click_expression(locator: Locator) -> str:
    return _CLICK_JS % (_FIND_ELEMENT_JS, json.dumps(locator.to_query()))


def build_fill_expression(locator: Locator, value: str) -> str:
    return _FILL_JS % (_FIND_ELEMENT_JS, json.dumps(locator.to_query()), json.dumps(value))


class BrowserPage(Protocol):
    """Browser capability the engine depends on."""

    async def navigate(self, url: str, timeout: float | None = None) -> str: ...

    async def evaluate(self, expression: str) -> Any: ...

    async def click(self, locator: Locator) -> None: ...

    async def fill(self, locator: Locator, value: str) -> None: ...

    async def screenshot(self, path: Path, full_page: bool = True) -> bytes: ...

    async def content(self) -> str: ...

    async def title(self) -> str: ...

    async def current_url(self) -> str: ...

    async def wait_for_network_idle(self, idle_time: float, timeout: float) -> bool: ...


class CDPClient:
    """Chrome DevTools Protocol client bound to a single page target."""

    def __init__(self, config: BrowserConfig):
        self.config = config
        self.ws: Any = None  # Type: websockets connection when connected
        self.target_id: str | None = None
        self._owns_target = False
        self._message_id = 0
        self._pending: dict[int, asyncio.Future] = {}
        self._event_waiters: dict[str, list[asyncio.Future]] = defaultdict(list)
        self._inflight: set[str] = set()
        self._last_network_activity = time.monotonic()
        self._reader: asyncio.Task | None = None

    async def connect(self) -> None:
        """Attach to a page target, creating a fresh one when configured."""
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                if self.config.new_target:
                    async with session.put(f"{self.config.http_url}/json/new?about:blank") as resp:
                        resp.raise_for_status()
                        target = await resp.json()
                    self._owns_target = True
                else:
                    async with session.get(f"{self.config.http_url}/json") as resp:
                        resp.raise_for_status()
                        targets = await resp.json()
                    target = next((t for t in targets if t.get("type") == "page"), None)
                    if not target:
                        raise BrowserError("No page target found in Chrome", operation="connect")

            self.target_id = target["id"]
            ws_url = target["webSocketDebuggerUrl"]
            logger.info(f"Connecting to Chrome target {self.target_id} at {ws_url}")
            self.ws = await websockets.connect(ws_url, max_size=None)
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError, KeyError) as e:
            raise BrowserError(str(e) or type(e).__name__, operation="connect") from e

        self._reader = asyncio.create_task(self._read_loop())
        for domain in ("Page.enable", "Runtime.enable", "Network.enable"):
            await self.send(domain)

    async def disconnect(self) -> None:
        """Close the websocket and, if this client created it, the target."""
        if self._reader:
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
            self._reader = None
        if self.ws:
            await self.ws.close()
            self.ws = None
        if self._owns_target and self.target_id:
            try:
                timeout = aiohttp.ClientTimeout(total=self.config.timeout)
                async with aiohttp.ClientSession(timeout=timeout) as session:
                    async with session.get(f"{self.config.http_url}/json/close/{self.target_id}"):
                        pass
            except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
                logger.warning(f"Failed to close target {self.target_id}: {e}")
            self._owns_target = False

    async def _read_loop(self) -> None:
        try:
            async for raw in self.ws:
                data = json.loads(raw)
                if "id" in data:
                    future = self._pending.pop(data["id"], None)
                    if future and not future.done():
                        future.set_result(data)
                else:
                    self._dispatch_event(data.get("method", ""), data.get("params", {}))
        except websockets.ConnectionClosed:
            logger.debug("DevTools connection closed")
        finally:
            error = BrowserError("DevTools connection closed", operation="connection")
            for future in self._pending.values():
                if not future.done():
                    future.set_exception(error)
            self._pending.clear()

    def _dispatch_event(self, method: str, params: dict[str, Any]) -> None:
        if method == "Network.requestWillBeSent":
            self._inflight.add(params.get("requestId", ""))
            self._last_network_activity = time.monotonic()
        elif method in ("Network.loadingFinished", "Network.loadingFailed"):
            self._inflight.discard(params.get("requestId", ""))
            self._last_network_activity = time.monotonic()

        for future in self._event_waiters.pop(method, []):
            if not future.done():
                future.set_result(params)

    def _expect_event(self, method: str) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        self._event_waiters[method].append(future)
        return future

    def _forget_event(self, method: str, future: asyncio.Future) -> None:
        waiters = self._event_waiters.get(method, [])
        if future in waiters:
            waiters.remove(future)

    async def send(
        self, method: str, params: dict | None = None, timeout: float | None = None
    ) -> dict[str, Any]:
        """Send CDP command and wait for its response."""
        if not self.ws or not self._reader or self._reader.done():
            raise BrowserError("Not connected to Chrome", operation=method)

        self._message_id += 1
        msg_id = self._message_id
        future = asyncio.get_running_loop().create_future()
        self._pending[msg_id] = future

        try:
            await self.ws.send(json.dumps({"id": msg_id, "method": method, "params": params or {}}))
            logger.debug(f"CDP send: {method}")
            data = await asyncio.wait_for(future, timeout or self.config.timeout)
        except asyncio.TimeoutError as e:
            raise BrowserError(f"No response within {timeout or self.config.timeout}s", operation=method) from e
        except websockets.ConnectionClosed as e:
            raise BrowserError("DevTools connection closed", operation=method) from e
        finally:
            self._pending.pop(msg_id, None)

        if "error" in data:
            raise BrowserError(f"CDP error: {data['error']}", operation=method)
        return data.get("result", {})

    async def navigate(self, url: str, timeout: float) -> str:
        """Navigate and wait for the load event; returns the final URL."""
        loaded = self._expect_event("Page.loadEventFired")
        try:
            result = await self.send("Page.navigate", {"url": url}, timeout=timeout)
            if result.get("errorText"):
                raise NavigationError(result["errorText"], url=url)
            # Same-document navigations carry no loaderId and fire no load event
            if result.get("loaderId"):
                await asyncio.wait_for(loaded, timeout)
        except asyncio.TimeoutError as e:
            raise NavigationError(f"Page did not load within {timeout}s", url=url) from e
        except NavigationError:
            raise
        except BrowserError as e:
            raise NavigationError(e.message, url=url) from e
        finally:
            self._forget_event("Page.loadEventFired", loaded)

        return await self.evaluate("location.href")

    async def evaluate(self, expression: str) -> Any:
        """Evaluate a JavaScript expression and return its JSON value."""
        result = await self.send(
            "Runtime.evaluate",
            {"expression": expression, "returnByValue": True, "awaitPromise": True},
        )
        if "exceptionDetails" in result:
            details = result["exceptionDetails"]
            message = details.get("exception", {}).get("description") or details.get("text", "")
            raise BrowserError(message, operation="evaluate")
        return result.get("result", {}).get("value")

    async def click(self, locator: Locator) -> dict[str, Any]:
        """Click the first visible element matching locator."""
        return await self.evaluate(build_click_expression(locator)) or {}

    async def fill(self, locator: Locator, value: str) -> dict[str, Any]:
        """Set the value of the first visible form control matching locator."""
        return await self.evaluate(build_fill_expression(locator, value)) or {}

    async def screenshot(self, full_page: bool = True) -> bytes:
        result = await self.send(
            "Page.captureScreenshot", {"format": "png", "captureBeyondViewport": full_page}
        )
        return base64.b64decode(result.get("data", ""))

    async def wait_for_network_idle(self, idle_time: float, timeout: float) -> bool:
        """Wait until no request has been in flight for idle_time seconds."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            quiet_for = time.monotonic() - self._last_network_activity
            if not self._inflight and quiet_for >= idle_time:
                return True
            await asyncio.sleep(0.1)
        return False


class BrowserSession:
    """Caller-owned handle on one browser page target.

    Opening acquires a dedicated DevTools target; closing releases it. The
    handle can outlive an exploration run when the caller asks to keep the
    browser open, in which case the caller is responsible for close().
    """

    def __init__(self, config: BrowserConfig | None = None):
        self.config = config or BrowserConfig()
        self._client: CDPClient | None = None

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def open(self) -> "BrowserSession":
        client = CDPClient(self.config)
        try:
            await client.connect()
        except BaseException:
            await client.disconnect()
            raise
        self._client = client
        return self

    async def close(self) -> None:
        """Release the page target. Safe to call more than once."""
        if self._client:
            client, self._client = self._client, None
            await client.disconnect()
            logger.info("Browser session closed")

    async def __aenter__(self) -> "BrowserSession":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _require_client(self) -> CDPClient:
        if not self._client:
            raise BrowserError("Session is not open", operation="session")
        return self._client

    async def navigate(self, url: str, timeout: float | None = None) -> str:
        return await self._require_client().navigate(url, timeout or self.config.timeout)

    async def evaluate(self, expression: str) -> Any:
        return await self._require_client().evaluate(expression)

    async def click(self, locator: Locator) -> None:
        result = await self._require_client().click(locator)
        if not result.get("success"):
            raise ActionResolutionError(result.get("error", "Click failed"), target=locator.describe())

    async def fill(self, locator: Locator, value: str) -> None:
        result = await self._require_client().fill(locator, value)
        if not result.get("success"):
            raise ActionResolutionError(result.get("error", "Fill failed"), target=locator.describe())

    async def screenshot(self, path: Path, full_page: bool = True) -> bytes:
        data = await self._require_client().screenshot(full_page)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return data

    async def content(self) -> str:
        return await self.evaluate("document.documentElement.outerHTML") or ""

    async def title(self) -> str:
        return await self.evaluate("document.title") or ""

    async def current_url(self) -> str:
        return await self.evaluate("location.href") or ""

    async def wait_for_network_idle(self, idle_time: float, timeout: float) -> bool:
        return await self._require_client().wait_for_network_idle(idle_time, timeout)
