"""Observability context: OTel span ids plus session metadata.

trace_id/span_id come from the attached OTel span; session_id and the
component stack are ours and travel through contextvars, so every asyncio
task started inside a session inherits them.
"""

import contextvars
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from opentelemetry import trace

from .tracer import format_span_id, format_trace_id

_observability_context: contextvars.ContextVar["ObservabilityContext | None"] = \
    contextvars.ContextVar("observability_context", default=None)


def new_session_id() -> str:
    return f"sess_{uuid.uuid4().hex[:12]}"


@dataclass
class ObservabilityContext:
    """Session metadata bound to an OTel span.

    Attributes:
        session_id: Exploration session identifier
        component_stack: Names of the traced components currently running
        start_time: When this context was created
    """
    session_id: str | None = None
    component_stack: list[str] = field(default_factory=list)
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))

    _span: Any | None = field(default=None, repr=False, compare=False)

    def _span_context(self) -> Any:
        span = self._span or trace.get_current_span()
        return span.get_span_context()

    @property
    def trace_id(self) -> str:
        ctx = self._span_context()
        return format_trace_id(ctx.trace_id) if ctx.is_valid else ""

    @property
    def span_id(self) -> str:
        ctx = self._span_context()
        return format_span_id(ctx.span_id) if ctx.is_valid else ""

    @property
    def parent_span_id(self) -> str | None:
        span = self._span or trace.get_current_span()
        parent = getattr(span, "parent", None)
        if parent is not None and getattr(parent, "span_id", None):
            return format_span_id(parent.span_id)
        return None

    @property
    def triggered_by(self) -> str:
        """Name of the component that started the current one."""
        if len(self.component_stack) > 1:
            return self.component_stack[-2]
        return "direct_call"

    @property
    def current_component(self) -> str:
        return self.component_stack[-1] if self.component_stack else "unknown"

    @classmethod
    def get_current(cls) -> "ObservabilityContext | None":
        return _observability_context.get()

    @classmethod
    def create_root(cls, session_id: str | None = None) -> "ObservabilityContext":
        return cls(session_id=session_id or new_session_id(), component_stack=["root"])

    def create_child(self, component_name: str, span: Any = None) -> "ObservabilityContext":
        """Child context inheriting the session and extending the stack."""
        return ObservabilityContext(
            session_id=self.session_id,
            component_stack=[*self.component_stack, component_name],
            _span=span or trace.get_current_span(),
        )

    def to_dict(self) -> dict:
        return {
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "parent_span_id": self.parent_span_id,
            "session_id": self.session_id,
            "triggered_by": self.triggered_by,
            "component_stack": self.component_stack,
            "start_time": self.start_time.isoformat(),
        }


def get_or_create_context(component_name: str = "unknown") -> ObservabilityContext:
    """Current context, or a fresh root whose stack starts at component_name."""
    ctx = _observability_context.get()
    if ctx is None:
        ctx = ObservabilityContext(
            session_id=new_session_id(),
            component_stack=[component_name],
            _span=trace.get_current_span(),
        )
    return ctx


def set_context(ctx: ObservabilityContext) -> contextvars.Token:
    return _observability_context.set(ctx)


def reset_context(token: contextvars.Token) -> None:
    _observability_context.reset(token)


@contextmanager
def session_scope(session_id: str) -> Iterator[ObservabilityContext]:
    """Bind a root context for one exploration session.

    Usage:
        with session_scope(session_id) as ctx:
            emit_info("session.start", ctx, {...})
    """
    ctx = ObservabilityContext.create_root(session_id)
    token = set_context(ctx)
    try:
        yield ctx
    finally:
        reset_context(token)
