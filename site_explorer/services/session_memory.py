"""Append-only session history.

Owned by the run loop: only the loop that created it appends to it. Other
components read it through the query methods or receive records to append.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field

from ..models.action_record import ActionRecord


@dataclass
class SessionMemory:
    """History of actions, visited pages and screenshots for one session."""
    session_id: str
    _records: list[ActionRecord] = field(default_factory=list)
    _screenshots: dict[str, str] = field(default_factory=dict)
    _metrics: dict[str, dict] = field(default_factory=dict)

    def append(self, record: ActionRecord) -> None:
        self._records.append(record)

    @property
    def records(self) -> tuple[ActionRecord, ...]:
        return tuple(self._records)

    def recent(self, n: int) -> list[ActionRecord]:
        """The last n records, oldest first."""
        return self._records[-n:] if n > 0 else []

    def successes(self) -> list[ActionRecord]:
        return [r for r in self._records if r.success]

    def failures(self) -> list[ActionRecord]:
        return [r for r in self._records if not r.success]

    def record_screenshot(self, url: str, relative_path: str) -> None:
        self._screenshots.setdefault(url, relative_path)

    @property
    def screenshots(self) -> dict[str, str]:
        return dict(self._screenshots)

    def record_metrics(self, url: str, metrics: dict) -> None:
        self._metrics[url] = dict(metrics)

    @property
    def metrics(self) -> dict[str, dict]:
        return dict(self._metrics)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ActionRecord]:
        return iter(tuple(self._records))
