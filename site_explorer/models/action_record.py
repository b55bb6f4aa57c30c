"""Immutable log entry for one executed (or failed) action."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .decision import Decision


@dataclass(frozen=True)
class ActionRecord:
    """One entry of the session history.

    Attributes:
        step: Loop iteration that produced the record (0 for the seed visit)
        action: Action kind value, e.g. "click_element"
        target: What the action acted on, for display
        strategy: Name of the resolver strategy that succeeded, when relevant
        page_url: URL of the page the action started from
        details: Extra structured context (unmatched fields, final URL, ...)
    """
    step: int
    action: str
    target: str | None
    reasoning: str
    confidence: str
    success: bool
    error: str | None = None
    strategy: str | None = None
    page_url: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_decision(
        cls,
        step: int,
        decision: Decision,
        *,
        success: bool,
        page_url: str | None = None,
        error: str | None = None,
        strategy: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> "ActionRecord":
        return cls(
            step=step,
            action=decision.kind.value,
            target=decision.target,
            reasoning=decision.reasoning,
            confidence=decision.confidence.value,
            success=success,
            error=error,
            strategy=strategy,
            page_url=page_url,
            details=details or {},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "step": self.step,
            "action": self.action,
            "target": self.target,
            "reasoning": self.reasoning,
            "confidence": self.confidence,
            "success": self.success,
            "error": self.error,
            "strategy": self.strategy,
            "page_url": self.page_url,
            "details": self.details,
        }
