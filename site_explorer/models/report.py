"""Session report models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .action_record import ActionRecord


class RunState(str, Enum):
    INIT = "init"
    ITERATING = "iterating"
    COMPLETE = "complete"
    MAX_STEPS_REACHED = "max_steps_reached"
    FATAL_ERROR = "fatal_error"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Finding:
    """A quality issue discovered on a page or derived from recommendations."""
    category: str
    severity: Severity
    description: str
    page_url: str | None = None
    source: str = "audit"

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "severity": self.severity.value,
            "description": self.description,
            "page_url": self.page_url,
            "source": self.source,
        }


@dataclass
class SessionReport:
    """Aggregate of one session, built once at a terminal state.

    Attributes:
        success_rate: Percentage of successful actions, None when there were none
        screenshots: Page URL -> screenshot path relative to the session directory
        metrics: Page URL -> navigation timing metrics (crawl mode)
    """
    session_id: str
    mode: str
    start_url: str
    goal: str | None
    state: RunState
    started_at: datetime
    finished_at: datetime
    total_actions: int
    successful_actions: int
    failed_actions: int
    success_rate: int | None
    visited_pages: list[str]
    action_history: list[ActionRecord]
    failures: list[ActionRecord]
    findings: list[Finding] = field(default_factory=list)
    recommendations: str | None = None
    screenshots: dict[str, str] = field(default_factory=dict)
    metrics: dict[str, dict[str, Any]] = field(default_factory=dict)
    error: str | None = None

    @property
    def success_rate_display(self) -> str:
        return "N/A" if self.success_rate is None else f"{self.success_rate}%"

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "mode": self.mode,
            "start_url": self.start_url,
            "goal": self.goal,
            "state": self.state.value,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 2),
            "summary": {
                "total_actions": self.total_actions,
                "successful_actions": self.successful_actions,
                "failed_actions": self.failed_actions,
                "success_rate": self.success_rate,
                "pages_visited": len(self.visited_pages),
            },
            "visited_pages": list(self.visited_pages),
            "action_history": [r.to_dict() for r in self.action_history],
            "failures": [r.to_dict() for r in self.failures],
            "findings": [f.to_dict() for f in self.findings],
            "recommendations": self.recommendations,
            "screenshots": dict(self.screenshots),
            "metrics": dict(self.metrics),
            "error": self.error,
        }
