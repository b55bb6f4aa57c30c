"""Session services: frontier, memory, reporting."""

from .frontier import Frontier
from .issue_classifier import IssueClassifier, KeywordIssueClassifier
from .report_builder import ReportBuilder, compute_success_rate, screenshot_filename
from .session_memory import SessionMemory

__all__ = [
    "Frontier",
    "IssueClassifier",
    "KeywordIssueClassifier",
    "ReportBuilder",
    "SessionMemory",
    "compute_success_rate",
    "screenshot_filename",
]
