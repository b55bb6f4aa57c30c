"""Decision oracle gateway.

Wraps a ReasoningOracle (the LLM) behind two operations: decide() turns a
snapshot plus recent history into exactly one validated Decision, and
recommend() turns failed actions into free-text advice for the report.

decide() never raises for a bad reply. Malformed JSON, schema violations,
oracle errors and timeouts all degrade to a low-confidence analyze decision,
so the run loop always gets something it can execute.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from ..core.config import ExplorationConfig
from ..core.exceptions import OracleParseError
from ..core.json_parser import JSONParseError, parse_json_object, strip_code_fences
from ..core.llm import ReasoningOracle
from ..models.action_record import ActionRecord
from ..models.decision import Decision, decision_from_payload, fallback_decision
from ..models.snapshot import PageSnapshot
from ..observability.context import get_or_create_context
from ..observability.decorators import traced_tool
from ..observability.emitters import emit_info, emit_warning
from ..prompts.template_renderer import render_template

logger = logging.getLogger(__name__)

RECOMMENDER_SYSTEM_PROMPT = (
    "You are a senior QA engineer reviewing automated website test results. "
    "Be specific and concise."
)


def history_entry(record: ActionRecord) -> dict[str, Any]:
    """Compact view of a record for the step prompt."""
    outcome = "ok" if record.success else f"failed: {record.error}"
    summary = f"{record.action}"
    if record.target:
        summary += f" '{record.target}'"
    data = record.to_dict()
    data.pop("timestamp", None)
    return {"summary": f"{summary} ({outcome})", "data": data}


def parse_decision(raw: str) -> Decision:
    """Parse a raw oracle reply into a Decision.

    Raises:
        OracleParseError: If the reply is not a JSON object or fails validation
    """
    try:
        payload = parse_json_object(strip_code_fences(raw))
    except JSONParseError as e:
        raise OracleParseError(str(e), raw=raw) from e
    return decision_from_payload(payload)


class DecisionOracle:
    """Gateway between the run loop and the reasoning oracle.

    Args:
        llm: Anything implementing ReasoningOracle.complete
        config: Exploration bounds (oracle timeout, history window, prompt size)
    """

    name = "decision_oracle"

    def __init__(self, llm: ReasoningOracle, config: ExplorationConfig):
        self.llm = llm
        self.config = config

    def build_prompts(
        self, snapshot: PageSnapshot, goal: str, history: Sequence[ActionRecord]
    ) -> tuple[str, str]:
        """Render (system prompt, page context) for one decision."""
        elements = [e.to_dict() for e in snapshot.interactive_elements[: self.config.max_prompt_elements]]
        recent = list(history)[-self.config.history_window:] if self.config.history_window > 0 else []
        context = render_template(
            "oracle_step.md.j2",
            snapshot=snapshot,
            goal=goal,
            element_count=len(snapshot.interactive_elements),
            elements=elements,
            history=[history_entry(r) for r in recent],
        )
        return render_template("oracle_system.md.j2"), context

    @traced_tool()
    async def decide(
        self, snapshot: PageSnapshot, goal: str, history: Sequence[ActionRecord]
    ) -> Decision:
        """Ask the oracle for the next action.

        Args:
            snapshot: Current page snapshot
            goal: Exploration goal in plain language
            history: Session history; only the last history_window records are sent

        Returns:
            A validated Decision, or the low-confidence analyze fallback
        """
        prompt, context = self.build_prompts(snapshot, goal, history)
        ctx = get_or_create_context(self.name)

        try:
            raw = await asyncio.wait_for(
                self.llm.complete(prompt, context), timeout=self.config.oracle_timeout
            )
        except asyncio.TimeoutError:
            reason = f"oracle timed out after {self.config.oracle_timeout:.0f}s"
            logger.warning(reason)
            emit_warning("oracle.parse_failure", ctx, {"reason": reason, "url": snapshot.url})
            return fallback_decision(reason)
        except Exception as e:
            reason = f"oracle error: {e}"
            logger.warning(reason)
            emit_warning("oracle.parse_failure", ctx, {"reason": reason, "url": snapshot.url})
            return fallback_decision(reason)

        try:
            decision = parse_decision(raw or "")
        except OracleParseError as e:
            logger.warning(f"{e.message}; falling back to analyze")
            emit_warning(
                "oracle.parse_failure", ctx,
                {"reason": e.message, "raw": (raw or "")[:500], "url": snapshot.url},
            )
            return fallback_decision(e.message)

        emit_info("step.decision", ctx, {"url": snapshot.url, "decision": decision.to_dict()})
        return decision

    async def recommend(self, start_url: str, failures: list[ActionRecord], total: int) -> str:
        """Free-text recommendations derived from failed actions.

        A JSON reply with a "reasoning" field is unwrapped; any other reply is
        used verbatim. Errors propagate; the report builder treats them as
        best-effort.
        """
        context = render_template(
            "recommendations.md.j2",
            start_url=start_url,
            failures=[r.to_dict() for r in failures],
            total=total,
        )
        raw = await asyncio.wait_for(
            self.llm.complete(RECOMMENDER_SYSTEM_PROMPT, context), timeout=self.config.oracle_timeout
        )
        try:
            payload = parse_json_object(strip_code_fences(raw or ""))
        except JSONParseError:
            return (raw or "").strip()
        reasoning = payload.get("reasoning")
        if isinstance(reasoning, str) and reasoning.strip():
            return reasoning.strip()
        return (raw or "").strip()
