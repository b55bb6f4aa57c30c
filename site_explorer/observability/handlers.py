"""Log handler interface and implementations.

Handlers receive every LogRecord produced by the emitters. Spans are not
handled here; the decorators create them through the OTel tracer.
"""

import contextlib
import json
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO

from .schema import LogRecord


class LogHandler(ABC):
    """Abstract interface for structured log backends."""

    @abstractmethod
    def send_log(self, record: LogRecord) -> None:
        """Send a log record to the backend."""

    @abstractmethod
    def flush(self) -> None:
        """Flush any buffered data."""

    @abstractmethod
    def close(self) -> None:
        """Close the handler and release resources."""


class JSONLinesHandler(LogHandler):
    """Writes records as JSON Lines, one file per session.

    Records land in ``{base_dir}/{session_id}.jsonl``; records without a
    session go to ``{base_dir}/events.jsonl``. Thread-safe.
    """

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self._files: dict[str, IO[str]] = {}
        self._lock = threading.Lock()

    def path_for(self, session_id: str | None) -> Path:
        return self.base_dir / f"{session_id or 'events'}.jsonl"

    def send_log(self, record: LogRecord) -> None:
        line = json.dumps(record.to_dict(), default=str)
        key = record.session_id or "events"
        with self._lock:
            stream = self._files.get(key)
            if stream is None:
                self.base_dir.mkdir(parents=True, exist_ok=True)
                stream = open(self.path_for(record.session_id), "a", encoding="utf-8")
                self._files[key] = stream
            stream.write(line + "\n")

    def flush(self) -> None:
        with self._lock:
            for stream in self._files.values():
                stream.flush()

    def close(self) -> None:
        with self._lock:
            for stream in self._files.values():
                with contextlib.suppress(OSError):
                    stream.close()
            self._files.clear()


class NullHandler(LogHandler):
    """Discards all records. Useful for tests or when logging is disabled."""

    def send_log(self, record: LogRecord) -> None:
        pass

    def flush(self) -> None:
        pass

    def close(self) -> None:
        pass


class CompositeHandler(LogHandler):
    """Fans records out to several handlers. Errors in one don't affect others."""

    def __init__(self, handlers: list[LogHandler]):
        self.handlers = handlers

    def send_log(self, record: LogRecord) -> None:
        for handler in self.handlers:
            with contextlib.suppress(Exception):
                handler.send_log(record)

    def flush(self) -> None:
        for handler in self.handlers:
            with contextlib.suppress(Exception):
                handler.flush()

    def close(self) -> None:
        for handler in self.handlers:
            with contextlib.suppress(Exception):
                handler.close()
