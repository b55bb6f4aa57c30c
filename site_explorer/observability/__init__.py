"""Observability for exploration sessions: structured logs and OTel tracing.

Architecture:
- Tracer: OTel spans created by the decorators, exported over OTLP gRPC
  when OTEL_ENDPOINT is set
- LogHandler: receives every structured record (JSON Lines per session)
- ConsoleOutput: optional human-readable mirror for development
- Emitters: build LogRecords carrying trace/span ids and the session id

Usage:
    from site_explorer.observability import (
        JSONLinesHandler, initialize_observability, traced_tool,
    )

    initialize_observability(handler=JSONLinesHandler(Path("./analysis_output/logs")))

    @traced_tool(name="SnapshotExtractor")
    async def capture(page): ...
"""

from .config import (
    ObservabilityConfig,
    get_config,
    get_console_output,
    get_handler,
    initialize_observability,
    is_initialized,
    shutdown,
)
from .context import (
    ObservabilityContext,
    get_or_create_context,
    new_session_id,
    reset_context,
    session_scope,
    set_context,
)
from .decorators import traced_agent, traced_llm_client, traced_tool
from .emitters import (
    emit_component_end,
    emit_component_error,
    emit_component_start,
    emit_debug,
    emit_error,
    emit_info,
    emit_log,
    emit_warning,
)
from .handlers import CompositeHandler, JSONLinesHandler, LogHandler, NullHandler
from .outputs import ConsoleOutput, LogOutput
from .schema import LogRecord
from .serializers import redact_sensitive, safe_serialize
from .tracer import get_tracer, init_tracer, shutdown_tracer

__all__ = [
    "CompositeHandler",
    "ConsoleOutput",
    "JSONLinesHandler",
    "LogHandler",
    "LogOutput",
    "LogRecord",
    "NullHandler",
    "ObservabilityConfig",
    "ObservabilityContext",
    "emit_component_end",
    "emit_component_error",
    "emit_component_start",
    "emit_debug",
    "emit_error",
    "emit_info",
    "emit_log",
    "emit_warning",
    "get_config",
    "get_console_output",
    "get_handler",
    "get_or_create_context",
    "get_tracer",
    "init_tracer",
    "initialize_observability",
    "is_initialized",
    "new_session_id",
    "redact_sensitive",
    "reset_context",
    "safe_serialize",
    "session_scope",
    "set_context",
    "shutdown",
    "shutdown_tracer",
    "traced_agent",
    "traced_llm_client",
    "traced_tool",
]
