"""Page-level tools: snapshot extraction, action execution, audits."""

from .consent import CONSENT_SELECTORS, dismiss_cookie_banner
from .executor import ActionExecutor, ActionOutcome
from .page_audit import PageAuditor, findings_from_checks
from .resolvers import CLICK_STRATEGIES, ResolutionAttempt, fill_candidates
from .snapshot import SnapshotExtractor

__all__ = [
    "CLICK_STRATEGIES",
    "CONSENT_SELECTORS",
    "ActionExecutor",
    "ActionOutcome",
    "PageAuditor",
    "ResolutionAttempt",
    "SnapshotExtractor",
    "dismiss_cookie_banner",
    "fill_candidates",
    "findings_from_checks",
]
