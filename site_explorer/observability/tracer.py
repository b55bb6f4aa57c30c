"""OpenTelemetry tracer setup.

Spans are exported over OTLP gRPC when an endpoint is configured; otherwise
a tracer provider is still installed so span and trace ids exist for log
correlation.
"""

import logging

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)

TRACER_NAME = "site_explorer"

_provider: TracerProvider | None = None


def init_tracer(
    endpoint: str | None = None,
    service_name: str = "site-explorer",
    insecure: bool = True,
) -> TracerProvider:
    """Install the global tracer provider.

    Args:
        endpoint: OTel Collector gRPC endpoint (host:port); no export when None
        service_name: Service name resource attribute
        insecure: Use an insecure gRPC channel

    Returns:
        The installed provider
    """
    global _provider
    if _provider is not None:
        return _provider

    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
    if endpoint:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=insecure))
        )
        logger.info(f"Exporting spans to {endpoint}")

    trace.set_tracer_provider(provider)
    _provider = provider
    return provider


def get_tracer() -> trace.Tracer:
    """Tracer used by the decorators; a no-op tracer until init_tracer runs."""
    if _provider is not None:
        return _provider.get_tracer(TRACER_NAME)
    return trace.get_tracer(TRACER_NAME)


def shutdown_tracer() -> None:
    """Flush pending spans and forget the provider."""
    global _provider
    if _provider is not None:
        _provider.shutdown()
        _provider = None


def format_trace_id(trace_id: int) -> str:
    return format(trace_id, "032x")


def format_span_id(span_id: int) -> str:
    return format(span_id, "016x")
