"""Tests for decorator-based instrumentation with OTel spans."""

import asyncio

import pytest
from conftest import ScriptedOracle

from site_explorer.agents import DecisionOracle, ExplorerAgent
from site_explorer.observability import (
    ObservabilityConfig,
    initialize_observability,
    is_initialized,
    shutdown,
)
from site_explorer.observability.context import get_or_create_context, session_scope
from site_explorer.observability.decorators import (
    traced_agent,
    traced_llm_client,
    traced_tool,
)
from site_explorer.observability.emitters import UNREGISTERED_EVENT_TAG, emit_info
from site_explorer.observability.handlers import LogHandler
from site_explorer.observability.schema import LOG_EVENTS


class RecordingHandler(LogHandler):
    """Keeps every record in memory."""

    def __init__(self):
        self.records = []

    def send_log(self, record):
        self.records.append(record)

    def flush(self):
        pass

    def close(self):
        pass

    def events(self) -> list[str]:
        return [r.event for r in self.records]


@pytest.fixture
def handler():
    """Initialize observability with console and span export disabled."""
    handler = RecordingHandler()
    initialize_observability(handler=handler, config=ObservabilityConfig(console_enabled=False))
    yield handler
    shutdown()


class TestTracedTool:
    """Tests for @traced_tool decorator."""

    def test_sync_function_returns_result(self, handler):
        """Test that decorated sync function returns correct result."""

        @traced_tool(name="add_tool")
        def add(a: int, b: int) -> dict:
            return {"sum": a + b}

        assert add(1, 2) == {"sum": 3}
        assert handler.events() == ["tool.input", "tool.output"]

    def test_input_named_after_signature(self, handler):
        """Test positional arguments are logged under their parameter names."""

        @traced_tool(name="capture_tool")
        def capture(url, settle=True):
            return url

        capture("https://example.com/", settle=False)

        logged = handler.records[0].data["input"]
        assert logged["args"] == {"url": "https://example.com/"}
        assert logged["kwargs"] == {"settle": False}

    def test_error_is_reraised(self, handler):
        """Test that exceptions are re-raised after logging."""

        @traced_tool(name="error_tool")
        def failing():
            raise ValueError("test error")

        with pytest.raises(ValueError, match="test error"):
            failing()

        error = handler.records[-1]
        assert error.event == "tool.error"
        assert error.level == "ERROR"
        assert error.data["error_type"] == "ValueError"
        assert "test error" in error.data["stack_trace"]

    def test_method_uses_component_name(self, handler):
        """Test self.name takes precedence over the decorator argument."""

        class SnapshotTool:
            name = "snapshot_extractor"

            @traced_tool(name="ignored")
            def capture(self, value: int) -> int:
                return value * 2

        assert SnapshotTool().capture(5) == 10
        assert handler.records[0].component_name == "snapshot_extractor"
        assert handler.records[0].data["input"]["args"] == {"value": 5}

    def test_secrets_redacted(self, handler):
        @traced_tool(name="login_tool")
        def login(username, password):
            return True

        login("alice", "hunter2")

        assert handler.records[0].data["input"]["args"]["password"] == "[REDACTED]"


class TestTracedAgent:
    """Tests for @traced_agent decorator."""

    @pytest.mark.asyncio
    async def test_async_agent(self, handler):
        """Test async agent function."""

        @traced_agent(name="async_agent")
        async def run_async_agent(task: str) -> dict:
            await asyncio.sleep(0.001)
            return {"success": True, "task": task}

        result = await run_async_agent("async task")

        assert result == {"success": True, "task": "async task"}
        assert handler.events() == ["agent.input", "agent.output"]
        assert handler.records[1].metrics["duration_ms"] >= 0

    @pytest.mark.asyncio
    async def test_nested_components_share_trace(self, handler):
        """Test a tool called from an agent runs in a child span of the agent."""

        @traced_tool(name="inner_tool")
        async def inner():
            return get_or_create_context().component_stack

        @traced_agent(name="outer_agent")
        async def outer():
            return await inner()

        with session_scope("sess_nested"):
            stack = await outer()

        assert stack == ["root", "outer_agent", "inner_tool"]
        agent_in, tool_in, tool_out, agent_out = handler.records
        assert tool_in.trace_id == agent_in.trace_id != ""
        assert tool_in.parent_span_id == agent_in.span_id
        assert tool_in.triggered_by == "outer_agent"
        assert {r.session_id for r in handler.records} == {"sess_nested"}

    @pytest.mark.asyncio
    async def test_cancellation_passes_through(self, handler):
        """Test cancellation is not logged as a component error."""

        @traced_agent(name="cancelled_agent")
        async def run():
            raise asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await run()

        assert "agent.error" not in handler.events()


class TestTracedLLMClient:
    """Tests for @traced_llm_client decorator."""

    @pytest.mark.asyncio
    async def test_span_named_after_component(self, handler):
        """Test the component name includes the client's component_name."""

        class Client:
            component_name = "oracle"

            @traced_llm_client(provider="openai")
            async def chat(self, messages):
                return {"content": "ok", "tokens_input": 10, "tokens_output": 2, "tokens_total": 12}

        await Client().chat([{"role": "user", "content": "hi"}])

        output = handler.records[-1]
        assert output.event == "llm.output"
        assert output.component_name == "openai:oracle"
        assert output.metrics["llm.tokens.total"] == 12


class TestEventRegistry:
    """Tests for events checked against LOG_EVENTS."""

    def test_registered_event_is_untagged(self, handler):
        emit_info("session.start", get_or_create_context("registry"), {"url": "https://example.com/"})

        assert handler.records[-1].tags == []

    def test_unknown_event_is_tagged(self, handler):
        emit_info("sesion.start", get_or_create_context("registry"), {}, tags=["typo"])

        record = handler.records[-1]
        assert record.event == "sesion.start"
        assert record.tags == ["typo", UNREGISTERED_EVENT_TAG]

    @pytest.mark.asyncio
    async def test_exploration_emits_only_registered_events(
        self, handler, home_page, fast_config, output_config
    ):
        replies = [{"action": "analyze", "reasoning": "look", "confidence": "low"}]
        oracle = DecisionOracle(ScriptedOracle(replies), fast_config)
        agent = ExplorerAgent(oracle, fast_config, output_config, session_factory=lambda: home_page)

        await agent.explore("https://example.com/")

        assert "step.action" in handler.events()
        assert set(handler.events()) <= set(LOG_EVENTS)
        assert not any(UNREGISTERED_EVENT_TAG in r.tags for r in handler.records)


class TestUninitialized:
    """Tests for decorators before initialize_observability."""

    def test_plain_call_without_initialization(self):
        assert not is_initialized()

        @traced_tool(name="quiet_tool")
        def quiet():
            return 1

        assert quiet() == 1
