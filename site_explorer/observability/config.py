"""Configuration and global state for the observability system.

There is no level filtering here; level is metadata only. Python logging
(configured in main.py) remains the human-facing log stream.
"""

import contextlib
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .handlers import LogHandler
    from .outputs import LogOutput


@dataclass
class ObservabilityConfig:
    """Configuration for observability.

    Attributes:
        service_name: Service name for logs/traces identification
        otel_endpoint: OTel Collector gRPC endpoint; span export is off when None
        otel_insecure: Whether to use an insecure connection to the collector
        console_enabled: Mirror structured events to the console
        console_color: Colourise console output
        redact_secrets: Redact values under sensitive keys before emission
    """
    service_name: str = "site-explorer"
    otel_endpoint: str | None = None
    otel_insecure: bool = True
    console_enabled: bool = False
    console_color: bool = True
    redact_secrets: bool = True

    def create_console_output(self) -> "LogOutput | None":
        if not self.console_enabled:
            return None

        from .outputs import ConsoleOutput
        return ConsoleOutput(color=self.console_color)

    @classmethod
    def from_env(cls) -> "ObservabilityConfig":
        """Load from environment variables.

        Environment Variables:
            SERVICE_NAME: Service name (default: site-explorer)
            OTEL_ENDPOINT: OTel Collector endpoint, enables span export
            OTEL_INSECURE: Use insecure connection (default: true)
            LOG_CONSOLE: Mirror structured events to stdout (default: false)
            LOG_COLOR: Colourise console output (default: true)
            LOG_REDACT_SECRETS: Redact sensitive values (default: true)
        """
        return cls(
            service_name=os.environ.get("SERVICE_NAME", "site-explorer"),
            otel_endpoint=os.environ.get("OTEL_ENDPOINT") or None,
            otel_insecure=os.environ.get("OTEL_INSECURE", "true").lower() == "true",
            console_enabled=os.environ.get("LOG_CONSOLE", "false").lower() == "true",
            console_color=os.environ.get("LOG_COLOR", "true").lower() == "true",
            redact_secrets=os.environ.get("LOG_REDACT_SECRETS", "true").lower() == "true",
        )


_handler: "LogHandler | None" = None
_console_output: "LogOutput | None" = None
_initialized: bool = False
_config: ObservabilityConfig | None = None


def initialize_observability(
    handler: "LogHandler",
    config: ObservabilityConfig | None = None,
) -> None:
    """Initialize tracer, log handler and optional console output.

    Args:
        handler: LogHandler instance (injected by caller)
        config: Configuration to use. Loads from env if None.
    """
    global _handler, _console_output, _initialized, _config

    if config is None:
        config = ObservabilityConfig.from_env()
    _config = config

    from .tracer import init_tracer
    init_tracer(
        endpoint=config.otel_endpoint,
        service_name=config.service_name,
        insecure=config.otel_insecure,
    )

    _handler = handler
    _console_output = config.create_console_output()
    _initialized = True


def get_handler() -> "LogHandler | None":
    return _handler


def get_console_output() -> "LogOutput | None":
    return _console_output


def get_config() -> ObservabilityConfig | None:
    return _config


def is_initialized() -> bool:
    return _initialized


def shutdown() -> None:
    """Flush and close the handler and shut the tracer down."""
    global _handler, _console_output, _initialized, _config

    from .tracer import shutdown_tracer
    shutdown_tracer()

    if _handler:
        with contextlib.suppress(Exception):
            _handler.flush()
            _handler.close()

    _handler = None
    _console_output = None
    _initialized = False
    _config = None
