"""JSON object parser for oracle replies.

Replies may arrive as raw JSON, wrapped in a markdown code fence
(```json ... ``` or ``` ... ```), or embedded in surrounding prose.
"""

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```$", re.DOTALL)


class JSONParseError(Exception):
    """Raised when no JSON object could be recovered from the content."""

    def __init__(self, message: str, content: str, attempts: list[str]):
        super().__init__(message)
        self.content = content
        self.attempts = attempts


def strip_code_fences(content: str) -> str:
    """Remove a markdown code fence wrapping the whole content, if present."""
    content = content.strip()
    match = _FENCE.match(content)
    if match:
        return match.group(1).strip()
    return content


def parse_json_object(content: str) -> dict[str, Any]:
    """Parse a JSON object from an LLM reply.

    Attempts, in order: direct parse of the fence-stripped content, then the
    first balanced {...} region of it.

    Raises:
        JSONParseError: If no attempt yields a JSON object
    """
    if not content or not content.strip():
        raise JSONParseError("Empty content", content or "", ["empty_check"])

    stripped = strip_code_fences(content)
    attempts: list[str] = []

    attempts.append("direct_parse")
    result = _try_direct_parse(stripped)
    if isinstance(result, dict):
        return result

    attempts.append("brace_matching")
    result = _extract_object(stripped)
    if isinstance(result, dict):
        return result

    logger.debug(f"JSON parse failed after attempts: {attempts}")
    raise JSONParseError(f"No JSON object found after {len(attempts)} attempts", content, attempts)


def _try_direct_parse(content: str) -> Any:
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        return None


def _extract_object(content: str) -> dict | None:
    """Find the first balanced JSON object, ignoring braces inside strings."""
    start = content.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escape_next = False

    for i, char in enumerate(content[start:], start=start):
        if escape_next:
            escape_next = False
            continue
        if char == "\\":
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                result = _try_direct_parse(content[start : i + 1])
                return result if isinstance(result, dict) else None

    return None
