"""Decision variants proposed by the reasoning oracle.

The oracle's free-form reply is validated once, at the gateway boundary,
against DECISION_SCHEMA and turned into exactly one of the variants below.
Downstream code dispatches on the variant type and never probes for fields.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

import jsonschema

from ..core.exceptions import OracleParseError


class ActionKind(str, Enum):
    NAVIGATE = "navigate"
    CLICK_ELEMENT = "click_element"
    FILL_FORM = "fill_form"
    ANALYZE = "analyze"
    COMPLETE = "complete"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def coerce(cls, value: Any) -> "Confidence":
        """Map a wire value to a Confidence, treating anything unknown as LOW."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.LOW


_NULLABLE_STRING = {"type": ["string", "null"]}


def _non_empty(prop: str) -> dict[str, Any]:
    return {"required": [prop], "properties": {prop: {"type": "string", "minLength": 1}}}


def _when(action: ActionKind, then: dict[str, Any]) -> dict[str, Any]:
    return {"if": {"properties": {"action": {"const": action.value}}}, "then": then}


DECISION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["action"],
    "properties": {
        "reasoning": _NULLABLE_STRING,
        # Unknown kinds are normalised after validation, not rejected here
        "action": {"type": "string"},
        "target_text": _NULLABLE_STRING,
        "target_href": _NULLABLE_STRING,
        "target_element": _NULLABLE_STRING,
        "fill_data": {
            "type": ["object", "null"],
            "additionalProperties": {"type": ["string", "number", "boolean"]},
        },
        "next_steps": {"type": ["array", "null"], "items": {"type": "string"}},
        "confidence": _NULLABLE_STRING,
    },
    "allOf": [
        _when(
            ActionKind.CLICK_ELEMENT,
            {"anyOf": [_non_empty("target_text"), _non_empty("target_href"), _non_empty("target_element")]},
        ),
        _when(ActionKind.NAVIGATE, {"anyOf": [_non_empty("target_href"), _non_empty("target_text")]}),
        _when(
            ActionKind.FILL_FORM,
            {"required": ["fill_data"], "properties": {"fill_data": {"type": "object", "minProperties": 1}}},
        ),
    ],
}


@dataclass(frozen=True, kw_only=True)
class Decision:
    """Common fields of every decision variant."""
    kind: ClassVar[ActionKind]

    reasoning: str = ""
    confidence: Confidence = Confidence.LOW
    next_steps: tuple[str, ...] = ()

    @property
    def target(self) -> str | None:
        """Human-readable description of what the decision acts on."""
        return None

    def payload(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.kind.value,
            "reasoning": self.reasoning,
            "confidence": self.confidence.value,
            "next_steps": list(self.next_steps),
            **self.payload(),
        }


@dataclass(frozen=True, kw_only=True)
class NavigateDecision(Decision):
    kind: ClassVar[ActionKind] = ActionKind.NAVIGATE

    url: str

    @property
    def target(self) -> str | None:
        return self.url

    def payload(self) -> dict[str, Any]:
        return {"target_href": self.url}


@dataclass(frozen=True, kw_only=True)
class ClickDecision(Decision):
    kind: ClassVar[ActionKind] = ActionKind.CLICK_ELEMENT

    target_text: str | None = None
    target_href: str | None = None
    target_element: str | None = None

    @property
    def target(self) -> str | None:
        return self.target_text or self.target_href or self.target_element

    def payload(self) -> dict[str, Any]:
        return {
            "target_text": self.target_text,
            "target_href": self.target_href,
            "target_element": self.target_element,
        }


@dataclass(frozen=True, kw_only=True)
class FillFormDecision(Decision):
    kind: ClassVar[ActionKind] = ActionKind.FILL_FORM

    fill_data: Mapping[str, str] = field(default_factory=dict)

    @property
    def target(self) -> str | None:
        return ", ".join(self.fill_data) or None

    def payload(self) -> dict[str, Any]:
        return {"fill_data": dict(self.fill_data)}


@dataclass(frozen=True, kw_only=True)
class AnalyzeDecision(Decision):
    kind: ClassVar[ActionKind] = ActionKind.ANALYZE


@dataclass(frozen=True, kw_only=True)
class CompleteDecision(Decision):
    kind: ClassVar[ActionKind] = ActionKind.COMPLETE


def fallback_decision(reason: str) -> AnalyzeDecision:
    """Decision used whenever the oracle reply cannot be trusted."""
    return AnalyzeDecision(confidence=Confidence.LOW, reasoning=f"<parse failure: {reason}>")


def decision_from_payload(payload: Any) -> Decision:
    """Validate a parsed oracle reply and build its decision variant.

    Raises:
        OracleParseError: If the payload does not satisfy DECISION_SCHEMA.
    """
    try:
        jsonschema.validate(payload, DECISION_SCHEMA)
    except jsonschema.ValidationError as e:
        if e.path:
            path = ".".join(str(p) for p in e.path)
            raise OracleParseError(f"'{path}': {e.message}", raw=str(payload)) from e
        raise OracleParseError(e.message, raw=str(payload)) from e

    common = {
        "reasoning": payload.get("reasoning") or "",
        "confidence": Confidence.coerce(payload.get("confidence")),
        "next_steps": tuple(payload.get("next_steps") or ()),
    }

    try:
        kind = ActionKind(payload["action"])
    except ValueError:
        return AnalyzeDecision(**{**common, "confidence": Confidence.LOW})

    if kind is ActionKind.NAVIGATE:
        return NavigateDecision(url=payload.get("target_href") or payload["target_text"], **common)
    if kind is ActionKind.CLICK_ELEMENT:
        return ClickDecision(
            target_text=payload.get("target_text") or None,
            target_href=payload.get("target_href") or None,
            target_element=payload.get("target_element") or None,
            **common,
        )
    if kind is ActionKind.FILL_FORM:
        fill_data = {str(k): str(v) for k, v in payload["fill_data"].items()}
        return FillFormDecision(fill_data=fill_data, **common)
    if kind is ActionKind.COMPLETE:
        return CompleteDecision(**common)
    return AnalyzeDecision(**common)
