"""Decorator-based instrumentation using OTel spans.

Each decorated call runs inside a child span of the current one and emits
<type>.input, <type>.output or <type>.error records. Exceptions are
re-raised after logging; cancellation passes straight through.

Usage:
    @traced_tool(name="SnapshotExtractor")
    async def capture(self, page): ...

    @traced_agent()
    async def run(self, url): ...   # uses self.name
"""

import asyncio
import inspect
import time
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from opentelemetry.trace import SpanKind, Status, StatusCode

from .context import ObservabilityContext, get_or_create_context, reset_context, set_context
from .emitters import emit_component_end, emit_component_error, emit_component_start
from .schema import M
from .serializers import safe_serialize
from .tracer import get_tracer

F = TypeVar("F", bound=Callable[..., Any])


def _effective_name(provided_name: str | None, args: tuple, func: Callable) -> str:
    """self.name wins for methods, then the provided name, then the function name."""
    if args and getattr(args[0], "name", None) and isinstance(args[0].name, str):
        return args[0].name
    return provided_name or func.__name__


def _llm_effective_name(provider: str, args: tuple) -> str:
    component_name = getattr(args[0], "component_name", None) if args else None
    return f"{provider}:{component_name}" if component_name else provider


def _make_decorator(component_type: str, namer: Callable[[tuple, Callable], str]) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        if asyncio.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                return await _execute_with_tracing_async(
                    func, namer(args, func), component_type, args, kwargs
                )

            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            return _execute_with_tracing_sync(func, namer(args, func), component_type, args, kwargs)

        return sync_wrapper  # type: ignore[return-value]

    return decorator


def traced_tool(name: str | None = None) -> Callable[[F], F]:
    """Trace a tool call (snapshot extraction, action execution, audits)."""
    return _make_decorator("tool", lambda args, func: _effective_name(name, args, func))


def traced_agent(name: str | None = None) -> Callable[[F], F]:
    """Trace an agent run; becomes the root span when none is active."""
    return _make_decorator("agent", lambda args, func: _effective_name(name, args, func))


def traced_llm_client(provider: str) -> Callable[[F], F]:
    """Trace an LLM call, recording token usage and cost when available.

    The span name includes the client's component_name, e.g. "openai:oracle".
    """
    return _make_decorator("llm", lambda args, func: _llm_effective_name(provider, args))


def _prepare_input_data(args: tuple, kwargs: dict, func: Callable) -> dict:
    """Name positional arguments after the signature, skipping self/cls."""
    params = list(inspect.signature(func).parameters)
    if params and params[0] in ("self", "cls") and args:
        args = args[1:]
        params = params[1:]

    named = {
        params[i] if i < len(params) else f"arg_{i}": arg
        for i, arg in enumerate(args)
    }
    return {"args": safe_serialize(named), "kwargs": safe_serialize(kwargs)}


def _extract_llm_metrics(result: Any) -> dict:
    if not isinstance(result, dict):
        return {}
    keys = {
        M.TOKENS_INPUT: "llm.tokens.input",
        M.TOKENS_OUTPUT: "llm.tokens.output",
        M.TOKENS_TOTAL: "llm.tokens.total",
        M.ESTIMATED_COST_USD: "llm.cost.total",
        "finish_reason": "llm.response.finish_reason",
        "model": "llm.model",
    }
    return {metric: result[key] for key, metric in keys.items() if result.get(key) is not None}


def _start(span, component_type: str, name: str, args: tuple, kwargs: dict, func: Callable):
    parent_ctx = get_or_create_context(name)
    span.set_attribute("component.type", component_type)
    span.set_attribute("component.name", name)
    span.set_attribute("session.id", parent_ctx.session_id or "")

    ctx = parent_ctx.create_child(name, span)
    token = set_context(ctx)
    input_data = _prepare_input_data(args, kwargs, func)
    emit_component_start(component_type, name, ctx, input_data)
    return ctx, token, input_data


def _succeed(span, component_type: str, name: str, ctx: ObservabilityContext, result: Any, start: float) -> None:
    duration_ms = (time.perf_counter() - start) * 1000
    span.set_status(Status(StatusCode.OK))
    span.set_attribute("duration_ms", duration_ms)

    metrics = _extract_llm_metrics(result) if component_type == "llm" else {}
    for key, value in metrics.items():
        if isinstance(value, (str, int, float, bool)):
            span.set_attribute(key, value)

    emit_component_end(component_type, name, ctx, safe_serialize(result), duration_ms, metrics)


def _fail(
    span, component_type: str, name: str, ctx: ObservabilityContext,
    exception: Exception, input_data: dict, start: float,
) -> None:
    duration_ms = (time.perf_counter() - start) * 1000
    span.set_status(Status(StatusCode.ERROR, str(exception)))
    span.record_exception(exception)
    span.set_attribute("duration_ms", duration_ms)
    emit_component_error(component_type, name, ctx, exception, input_data, duration_ms)


def _execute_with_tracing_sync(func: Callable, name: str, component_type: str, args: tuple, kwargs: dict) -> Any:
    with get_tracer().start_as_current_span(f"{component_type}.{name}", kind=SpanKind.INTERNAL) as span:
        ctx, token, input_data = _start(span, component_type, name, args, kwargs, func)
        start = time.perf_counter()
        try:
            result = func(*args, **kwargs)
            _succeed(span, component_type, name, ctx, result, start)
            return result
        except Exception as e:
            _fail(span, component_type, name, ctx, e, input_data, start)
            raise
        finally:
            reset_context(token)


async def _execute_with_tracing_async(
    func: Callable, name: str, component_type: str, args: tuple, kwargs: dict
) -> Any:
    with get_tracer().start_as_current_span(f"{component_type}.{name}", kind=SpanKind.INTERNAL) as span:
        ctx, token, input_data = _start(span, component_type, name, args, kwargs, func)
        start = time.perf_counter()
        try:
            result = await func(*args, **kwargs)
            _succeed(span, component_type, name, ctx, result, start)
            return result
        except Exception as e:
            _fail(span, component_type, name, ctx, e, input_data, start)
            raise
        finally:
            reset_context(token)
