"""Structured log emitters.

Every emission is unconditional; level is metadata. Records go to the
configured LogHandler and, when enabled, the console output. Nothing is
emitted before initialize_observability() runs. Events missing from
LOG_EVENTS are still emitted, tagged UNREGISTERED_EVENT_TAG.
"""

import contextlib
import traceback
from datetime import UTC, datetime
from typing import Any

from .config import get_config, get_console_output, get_handler, is_initialized
from .context import ObservabilityContext
from .schema import LOG_EVENTS, D, LogRecord, M
from .serializers import redact_sensitive, safe_serialize

UNREGISTERED_EVENT_TAG = "unregistered_event"


def emit_log(
    level: str,
    event: str,
    ctx: ObservabilityContext,
    data: dict[str, Any],
    metrics: dict[str, Any] | None = None,
    tags: list[str] | None = None,
) -> None:
    """Emit a log record.

    Args:
        level: DEBUG, INFO, WARNING or ERROR (metadata only)
        event: Event type, e.g. "tool.input" or "step.action"
        ctx: Current observability context
        data: Event payload
        metrics: Optional numeric metrics
        tags: Optional tags
    """
    if not is_initialized():
        return

    component_type = event.split(".")[0] or "unknown"
    component_name = (
        data.get(f"{component_type}_name")
        or data.get("component_name")
        or ctx.current_component
    )

    tags = list(tags or [])
    if event not in LOG_EVENTS:
        tags.append(UNREGISTERED_EVENT_TAG)

    data = safe_serialize(data)
    config = get_config()
    if config is None or config.redact_secrets:
        data = redact_sensitive(data)

    record = LogRecord(
        timestamp=datetime.now(UTC),
        trace_id=ctx.trace_id,
        span_id=ctx.span_id,
        parent_span_id=ctx.parent_span_id,
        session_id=ctx.session_id,
        level=level,
        event=event,
        component_type=component_type,
        component_name=component_name,
        triggered_by=ctx.triggered_by,
        data=data,
        metrics=metrics or {},
        tags=tags,
    )

    handler = get_handler()
    if handler:
        with contextlib.suppress(Exception):
            handler.send_log(record)

    console = get_console_output()
    if console:
        with contextlib.suppress(Exception):
            console.write_log(record)


def emit_debug(event: str, ctx: ObservabilityContext, data: dict[str, Any], **kwargs: Any) -> None:
    emit_log("DEBUG", event, ctx, data, **kwargs)


def emit_info(event: str, ctx: ObservabilityContext, data: dict[str, Any], **kwargs: Any) -> None:
    emit_log("INFO", event, ctx, data, **kwargs)


def emit_warning(event: str, ctx: ObservabilityContext, data: dict[str, Any], **kwargs: Any) -> None:
    emit_log("WARNING", event, ctx, data, **kwargs)


def emit_error(event: str, ctx: ObservabilityContext, data: dict[str, Any], **kwargs: Any) -> None:
    emit_log("ERROR", event, ctx, data, **kwargs)


def emit_component_start(
    component_type: str, component_name: str, ctx: ObservabilityContext, input_data: dict[str, Any]
) -> None:
    emit_log(
        level="DEBUG",
        event=f"{component_type}.input",
        ctx=ctx,
        data={f"{component_type}_name": component_name, "triggered_by": ctx.triggered_by, D.INPUT: input_data},
    )


def emit_component_end(
    component_type: str,
    component_name: str,
    ctx: ObservabilityContext,
    output_data: Any,
    duration_ms: float,
    metrics: dict[str, Any] | None = None,
) -> None:
    all_metrics = {M.DURATION_MS: duration_ms, **(metrics or {})}
    emit_log(
        level="DEBUG",
        event=f"{component_type}.output",
        ctx=ctx,
        data={f"{component_type}_name": component_name, D.OUTPUT: output_data, D.DURATION_MS: duration_ms},
        metrics=all_metrics,
    )


def emit_component_error(
    component_type: str,
    component_name: str,
    ctx: ObservabilityContext,
    exception: BaseException,
    input_data: dict[str, Any],
    duration_ms: float,
) -> None:
    emit_log(
        level="ERROR",
        event=f"{component_type}.error",
        ctx=ctx,
        data={
            f"{component_type}_name": component_name,
            "triggered_by": ctx.triggered_by,
            D.ERROR_TYPE: type(exception).__name__,
            D.ERROR_MESSAGE: str(exception),
            D.STACK_TRACE: "".join(traceback.format_exception(exception)),
            D.INPUT: input_data,
            D.DURATION_MS: duration_ms,
        },
        metrics={M.DURATION_MS: duration_ms},
    )
