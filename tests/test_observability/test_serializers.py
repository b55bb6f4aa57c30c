"""Tests for serialization utilities."""

import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import Enum
from pathlib import Path

from site_explorer.models.action_record import ActionRecord
from site_explorer.observability.serializers import redact_sensitive, safe_serialize


class TestSafeSerialize:
    """Tests for safe_serialize function."""

    def test_primitives(self):
        """Test primitive types are passed through."""
        assert safe_serialize(None) is None
        assert safe_serialize(True) is True
        assert safe_serialize(42) == 42
        assert safe_serialize(3.14) == 3.14
        assert safe_serialize("hello") == "hello"

    def test_dates_paths_and_uuids(self):
        assert safe_serialize(datetime(2025, 1, 15, 10, 30, 45, tzinfo=UTC)) == "2025-01-15T10:30:45+00:00"
        assert safe_serialize(date(2025, 1, 15)) == "2025-01-15"
        assert safe_serialize(Path("/tmp/report.json")) == "/tmp/report.json"
        u = uuid.UUID("12345678-1234-5678-1234-567812345678")
        assert safe_serialize(u) == "12345678-1234-5678-1234-567812345678"

    def test_enum(self):
        """Test enum serialization."""

        class Color(Enum):
            RED = "red"

        assert safe_serialize(Color.RED) == "red"

    def test_dataclass(self):
        """Test dataclass serialization."""

        @dataclass
        class Person:
            name: str
            age: int

        assert safe_serialize(Person(name="Alice", age=30)) == {"name": "Alice", "age": 30}

    def test_to_dict_preferred(self):
        """Test objects exposing to_dict are serialized through it."""
        record = ActionRecord(
            step=1, action="analyze", target=None, reasoning="r", confidence="low", success=True,
        )

        result = safe_serialize(record)

        assert result["step"] == 1
        assert isinstance(result["timestamp"], str)

    def test_containers(self):
        assert safe_serialize({"a": (1, 2), 3: {"b"}}) == {"a": [1, 2], "3": ["b"]}

    def test_bytes(self):
        assert safe_serialize(b"\x89PNG") == "<bytes: 4 bytes>"

    def test_max_depth_protection(self):
        """Test that max_depth prevents infinite recursion."""
        deep = current = {}
        for _ in range(15):
            current["nested"] = {}
            current = current["nested"]

        result = safe_serialize(deep, max_depth=2)

        assert result == {"nested": {"nested": {"nested": "<max depth 2 exceeded>"}}}

    def test_arbitrary_object_falls_back_to_str(self):
        class Page:
            def __str__(self):
                return "<page https://example.com/>"

        assert safe_serialize(Page()) == "<page https://example.com/>"

    def test_unserializable_fallback(self):
        """Test that objects failing str() are described by type."""

        class NoStr:
            __slots__ = ()

            def __str__(self):
                raise Exception("Can't stringify")

        assert safe_serialize(NoStr()) == "<unserializable: NoStr>"


class TestRedactSensitive:
    """Tests for redact_sensitive function."""

    def test_sensitive_keys_redacted(self):
        data = {"api_key": "sk-123", "Password": "x", "url": "https://example.com/"}

        assert redact_sensitive(data) == {
            "api_key": "[REDACTED]",
            "Password": "[REDACTED]",
            "url": "https://example.com/",
        }

    def test_nested(self):
        data = {"fill_data": {"email": "a@b.c", "password": "x"}, "items": [{"auth_header": "Bearer y"}]}

        result = redact_sensitive(data)

        assert result["fill_data"] == {"email": "a@b.c", "password": "[REDACTED]"}
        assert result["items"] == [{"auth_header": "[REDACTED]"}]
