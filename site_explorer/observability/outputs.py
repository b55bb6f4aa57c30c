"""Console output for structured events (development aid)."""

import contextlib
import sys
import threading
from abc import ABC, abstractmethod
from typing import ClassVar, TextIO

from .schema import LogRecord


class LogOutput(ABC):
    """Abstract base for local log outputs."""

    @abstractmethod
    def write_log(self, record: LogRecord) -> None:
        """Write a log record."""

    def flush(self) -> None:  # noqa: B027
        pass


class ConsoleOutput(LogOutput):
    """Human-readable, optionally colourised, one line per record."""

    LEVEL_COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
    }
    RESET: ClassVar[str] = "\033[0m"
    DIM: ClassVar[str] = "\033[2m"
    BOLD: ClassVar[str] = "\033[1m"

    def __init__(self, stream: TextIO | None = None, color: bool = True):
        self.stream = stream or sys.stdout
        self.color = color and hasattr(self.stream, "isatty") and self.stream.isatty()
        self._lock = threading.Lock()

    def format(self, record: LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.level, "") if self.color else ""
        reset = self.RESET if self.color else ""
        dim = self.DIM if self.color else ""
        bold = self.BOLD if self.color else ""

        timestamp = record.timestamp.strftime("%H:%M:%S.%f")[:-3]
        session = (record.session_id or "-")[-8:]

        line = (
            f"{dim}{timestamp}{reset} "
            f"{color}{record.level:8}{reset} "
            f"{dim}[{session}]{reset} "
            f"{bold}{record.event:24}{reset} "
            f"- {record.component_name}"
        )

        if record.metrics.get("duration_ms"):
            line += f" {dim}({record.metrics['duration_ms']:.0f}ms){reset}"

        if record.level == "ERROR" and record.data.get("error_message"):
            error_msg = str(record.data["error_message"])
            if len(error_msg) > 80:
                error_msg = error_msg[:77] + "..."
            line += f"\n  {color}└─ {error_msg}{reset}"
        return line

    def write_log(self, record: LogRecord) -> None:
        line = self.format(record)
        with self._lock, contextlib.suppress(Exception):
            self.stream.write(line + "\n")

    def flush(self) -> None:
        with self._lock, contextlib.suppress(Exception):
            self.stream.flush()
