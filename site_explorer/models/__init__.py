"""Domain models for exploration sessions."""

from .action_record import ActionRecord
from .decision import (
    DECISION_SCHEMA,
    ActionKind,
    AnalyzeDecision,
    ClickDecision,
    CompleteDecision,
    Confidence,
    Decision,
    FillFormDecision,
    NavigateDecision,
    decision_from_payload,
    fallback_decision,
)
from .report import Finding, RunState, SessionReport, Severity
from .snapshot import ElementDescriptor, PageSnapshot

__all__ = [
    "DECISION_SCHEMA",
    "ActionKind",
    "ActionRecord",
    "AnalyzeDecision",
    "ClickDecision",
    "CompleteDecision",
    "Confidence",
    "Decision",
    "ElementDescriptor",
    "FillFormDecision",
    "Finding",
    "NavigateDecision",
    "PageSnapshot",
    "RunState",
    "SessionReport",
    "Severity",
    "decision_from_payload",
    "fallback_decision",
]
