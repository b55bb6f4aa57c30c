"""Schema definitions for structured log records.

Level is metadata only; records are never filtered by it.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


class F:
    """Field name constants for LogRecord."""
    TIMESTAMP = "timestamp"
    TRACE_ID = "trace_id"
    SPAN_ID = "span_id"
    PARENT_SPAN_ID = "parent_span_id"
    SESSION_ID = "session_id"
    LEVEL = "level"
    EVENT = "event"
    COMPONENT_TYPE = "component_type"
    COMPONENT_NAME = "component_name"
    TRIGGERED_BY = "triggered_by"
    DATA = "data"
    METRICS = "metrics"
    TAGS = "tags"


class M:
    """Metric field name constants (nested under 'metrics')."""
    DURATION_MS = "duration_ms"
    TOKENS_INPUT = "tokens_input"
    TOKENS_OUTPUT = "tokens_output"
    TOKENS_TOTAL = "tokens_total"
    ESTIMATED_COST_USD = "estimated_cost_usd"
    ELEMENT_COUNT = "element_count"
    MARKUP_CHARS = "markup_chars"


class D:
    """Data field name constants (nested under 'data').

    tool.input / agent.input / llm.input:
        - <type>_name, triggered_by, input

    tool.output / agent.output / llm.output:
        - <type>_name, output, duration_ms

    tool.error / agent.error / llm.error:
        - <type>_name, error_type, error_message, stack_trace, input, duration_ms
    """
    INPUT = "input"
    OUTPUT = "output"
    DURATION_MS = "duration_ms"

    ERROR_TYPE = "error_type"
    ERROR_MESSAGE = "error_message"
    STACK_TRACE = "stack_trace"


# Events emitted by the exploration engine
LOG_EVENTS = {
    "agent.input": "Agent started with input data",
    "agent.output": "Agent completed with output data",
    "agent.error": "Agent failed with error details",
    "tool.input": "Tool called with input arguments",
    "tool.output": "Tool returned with output data",
    "tool.error": "Tool failed with error details",
    "llm.input": "Oracle request",
    "llm.output": "Oracle response with usage",
    "llm.error": "Oracle call failed",
    "session.start": "Exploration session started",
    "session.state": "Run loop changed state",
    "session.end": "Exploration session finished with a report",
    "step.decision": "Oracle proposed a decision",
    "step.action": "Action executed and recorded",
    "snapshot.captured": "Page snapshot extracted",
    "snapshot.timeout": "Page did not settle; best-effort snapshot",
    "oracle.parse_failure": "Oracle reply rejected; analyze fallback used",
    "frontier.capacity": "Page budget reached",
    "report.written": "Report artifacts written",
    "application.start": "CLI started",
    "application.complete": "CLI finished a session",
    "application.failed": "Session could not start",
    "application.interrupted": "CLI interrupted by the user",
    "application.error": "CLI failed with an unexpected error",
}


@dataclass
class LogRecord:
    """Structured log record.

    The 'data' field structure depends on event type; see class D.
    The 'metrics' field uses keys from class M.
    """
    timestamp: datetime
    trace_id: str
    span_id: str
    parent_span_id: str | None
    session_id: str | None
    level: str
    event: str
    component_type: str
    component_name: str
    triggered_by: str
    data: dict[str, Any] = field(default_factory=dict)
    metrics: dict[str, Any] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            F.TIMESTAMP: self.timestamp.isoformat(),
            F.TRACE_ID: self.trace_id,
            F.SPAN_ID: self.span_id,
            F.PARENT_SPAN_ID: self.parent_span_id,
            F.SESSION_ID: self.session_id,
            F.LEVEL: self.level,
            F.EVENT: self.event,
            F.COMPONENT_TYPE: self.component_type,
            F.COMPONENT_NAME: self.component_name,
            F.TRIGGERED_BY: self.triggered_by,
            F.DATA: self.data,
            F.METRICS: self.metrics,
            F.TAGS: self.tags,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LogRecord":
        timestamp = data.get(F.TIMESTAMP)
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        elif timestamp is None:
            timestamp = datetime.now(UTC)

        return cls(
            timestamp=timestamp,
            trace_id=data.get(F.TRACE_ID, ""),
            span_id=data.get(F.SPAN_ID, ""),
            parent_span_id=data.get(F.PARENT_SPAN_ID),
            session_id=data.get(F.SESSION_ID),
            level=data.get(F.LEVEL, "INFO"),
            event=data.get(F.EVENT, ""),
            component_type=data.get(F.COMPONENT_TYPE, "unknown"),
            component_name=data.get(F.COMPONENT_NAME, "unknown"),
            triggered_by=data.get(F.TRIGGERED_BY, "direct_call"),
            data=data.get(F.DATA, {}),
            metrics=data.get(F.METRICS, {}),
            tags=data.get(F.TAGS, []),
        )
