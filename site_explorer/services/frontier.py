"""Bounded frontier of discovered and visited URLs.

Capacity is a soft exploration cap: adding to a full frontier is a silent
no-op, never an error. The bound is enforced eagerly in add(), so the total
of visited and pending URLs never exceeds max_pages.
"""

import logging

from ..core.html_cleaner import canonicalize_url

logger = logging.getLogger(__name__)


class Frontier:
    """FIFO frontier with visited-set bookkeeping.

    Invariants:
        len(visited) <= max_pages
        visited and pending are disjoint

    Example:
        frontier = Frontier(max_pages=10)
        frontier.seed("https://example.com")
        while (url := frontier.next()) is not None:
            frontier.mark_visited(url)
    """

    def __init__(self, max_pages: int):
        if max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        self.max_pages = max_pages
        # dicts keep insertion order; keys are canonical URLs, values the originals
        self._visited: dict[str, str] = {}
        self._pending: dict[str, str] = {}

    @property
    def visited(self) -> list[str]:
        """Visited URLs (canonical) in visit order."""
        return list(self._visited)

    @property
    def pending(self) -> list[str]:
        """Pending URLs (canonical) in FIFO order."""
        return list(self._pending)

    @property
    def is_full(self) -> bool:
        return len(self._visited) >= self.max_pages

    def is_visited(self, url: str) -> bool:
        return canonicalize_url(url) in self._visited

    def seed(self, url: str) -> bool:
        """Queue the starting URL unless it was already visited."""
        return self.add(url)

    def add(self, url: str) -> bool:
        """Queue a discovered URL.

        Returns:
            True if the URL was admitted; False if it was already known or
            the frontier is at capacity.
        """
        key = canonicalize_url(url)
        if key in self._visited or key in self._pending:
            return False
        if len(self._visited) + len(self._pending) >= self.max_pages:
            logger.debug(f"Frontier at capacity ({self.max_pages}), dropping {url}")
            return False
        self._pending[key] = url
        return True

    def next(self) -> str | None:
        """Remove and return the earliest queued URL, or None when exhausted."""
        if not self._pending:
            return None
        key = next(iter(self._pending))
        return self._pending.pop(key)

    def mark_visited(self, url: str) -> bool:
        """Record a visit.

        Returns:
            True if the URL is newly visited; False if it was visited before
            or the page budget is exhausted.
        """
        key = canonicalize_url(url)
        if key in self._visited:
            return False
        if self.is_full:
            logger.warning(f"Page budget of {self.max_pages} exhausted, not recording {url}")
            return False
        self._pending.pop(key, None)
        self._visited[key] = url
        return True

    def visited_urls(self) -> list[str]:
        """Visited URLs as they were first seen, in visit order."""
        return list(self._visited.values())

    def __len__(self) -> int:
        return len(self._visited) + len(self._pending)
