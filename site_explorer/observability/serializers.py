"""Safe serialization utilities for observability data."""

import uuid
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any

SENSITIVE_KEY_PATTERNS = ("password", "secret", "token", "api_key", "apikey", "auth", "credential")


def safe_serialize(obj: Any, max_depth: int = 10, current_depth: int = 0) -> Any:
    """Convert any object into a JSON-serializable structure.

    Handles primitives, dataclasses, enums, datetimes, paths, UUIDs, bytes
    and nested containers. Recursion is cut at max_depth; anything else
    falls back to str().
    """
    if current_depth > max_depth:
        return f"<max depth {max_depth} exceeded>"

    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj

    if isinstance(obj, (datetime, date)):
        return obj.isoformat()

    if isinstance(obj, (Path, uuid.UUID)):
        return str(obj)

    if isinstance(obj, Enum):
        return obj.value

    if hasattr(obj, "to_dict") and callable(obj.to_dict) and not isinstance(obj, type):
        return safe_serialize(obj.to_dict(), max_depth, current_depth + 1)

    if is_dataclass(obj) and not isinstance(obj, type):
        return safe_serialize(asdict(obj), max_depth, current_depth + 1)

    if isinstance(obj, dict):
        return {
            str(k): safe_serialize(v, max_depth, current_depth + 1)
            for k, v in obj.items()
        }

    if isinstance(obj, (list, tuple)):
        return [safe_serialize(item, max_depth, current_depth + 1) for item in obj]

    if isinstance(obj, (set, frozenset)):
        return [safe_serialize(item, max_depth, current_depth + 1) for item in sorted(obj, key=str)]

    if isinstance(obj, bytes):
        return f"<bytes: {len(obj)} bytes>"

    if isinstance(obj, type):
        return f"<class {obj.__name__}>"

    try:
        return str(obj)
    except Exception:
        return f"<unserializable: {type(obj).__name__}>"


def redact_sensitive(obj: Any, patterns: tuple[str, ...] = SENSITIVE_KEY_PATTERNS) -> Any:
    """Replace values stored under sensitive-looking keys with [REDACTED]."""
    if isinstance(obj, dict):
        return {
            k: "[REDACTED]" if isinstance(k, str) and any(p in k.lower() for p in patterns)
            else redact_sensitive(v, patterns)
            for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [redact_sensitive(item, patterns) for item in obj]
    return obj
