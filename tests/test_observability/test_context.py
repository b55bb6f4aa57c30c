"""Tests for context propagation."""

import asyncio

import pytest

from site_explorer.observability.context import (
    ObservabilityContext,
    get_or_create_context,
    new_session_id,
    reset_context,
    session_scope,
    set_context,
)


class TestObservabilityContext:
    """Tests for ObservabilityContext dataclass."""

    def test_create_root(self):
        """Test creating a root context."""
        ctx = ObservabilityContext.create_root()

        assert ctx.session_id.startswith("sess_")
        assert ctx.component_stack == ["root"]
        assert ctx.parent_span_id is None

    def test_create_root_with_session_id(self):
        """Test creating root context with custom session ID."""
        ctx = ObservabilityContext.create_root(session_id="custom_session")

        assert ctx.session_id == "custom_session"

    def test_create_child(self):
        """Test a child inherits the session and extends the stack."""
        parent = ObservabilityContext.create_root("sess_parent")
        child = parent.create_child("snapshot_extractor")

        assert child.session_id == "sess_parent"
        assert child.component_stack == ["root", "snapshot_extractor"]
        assert parent.component_stack == ["root"]

    def test_triggered_by(self):
        """Test triggered_by property."""
        root = ObservabilityContext.create_root()
        assert root.triggered_by == "direct_call"

        child1 = root.create_child("explorer_agent")
        assert child1.triggered_by == "root"

        child2 = child1.create_child("decision_oracle")
        assert child2.triggered_by == "explorer_agent"

    def test_current_component(self):
        """Test current_component property."""
        assert ObservabilityContext().current_component == "unknown"
        assert ObservabilityContext.create_root().create_child("action_executor").current_component == "action_executor"

    def test_ids_empty_without_active_span(self):
        """Test no span means no trace or span id."""
        ctx = ObservabilityContext.create_root()

        assert ctx.trace_id == ""
        assert ctx.span_id == ""

    def test_to_dict(self):
        """Test serialization to dictionary."""
        data = ObservabilityContext.create_root("sess_x").to_dict()

        assert data["session_id"] == "sess_x"
        assert data["component_stack"] == ["root"]
        assert data["triggered_by"] == "direct_call"
        assert {"trace_id", "span_id", "parent_span_id", "start_time"} <= set(data)


class TestContextVar:
    """Tests for the contextvar helpers."""

    def test_get_or_create_without_context(self):
        """Test a fresh context is made when none is set."""
        ctx = get_or_create_context("page_auditor")

        assert ctx.component_stack == ["page_auditor"]
        assert ctx.session_id.startswith("sess_")

    def test_set_and_reset(self):
        """Test set_context is visible until reset."""
        ctx = ObservabilityContext.create_root("sess_set")
        token = set_context(ctx)
        try:
            assert get_or_create_context() is ctx
        finally:
            reset_context(token)
        assert get_or_create_context().session_id != "sess_set"

    def test_new_session_ids_are_unique(self):
        assert len({new_session_id() for _ in range(50)}) == 50


class TestSessionScope:
    """Tests for session_scope."""

    def test_binds_session_for_the_block(self):
        with session_scope("sess_scoped") as ctx:
            assert ctx.session_id == "sess_scoped"
            assert get_or_create_context() is ctx
        assert ObservabilityContext.get_current() is None

    def test_resets_on_error(self):
        with pytest.raises(RuntimeError), session_scope("sess_err"):
            raise RuntimeError("boom")
        assert ObservabilityContext.get_current() is None

    @pytest.mark.asyncio
    async def test_tasks_inherit_session(self):
        """Test tasks started inside a session see its id."""

        async def read_session() -> str:
            await asyncio.sleep(0)
            return get_or_create_context().session_id

        with session_scope("sess_async"):
            ids = await asyncio.gather(read_session(), read_session())

        assert ids == ["sess_async", "sess_async"]

    @pytest.mark.asyncio
    async def test_concurrent_sessions_do_not_mix(self):
        """Test two sessions running side by side keep their own ids."""

        async def session(session_id: str) -> list[str]:
            seen = []
            with session_scope(session_id):
                for _ in range(3):
                    await asyncio.sleep(0)
                    seen.append(get_or_create_context().session_id)
            return seen

        first, second = await asyncio.gather(session("sess_a"), session("sess_b"))

        assert first == ["sess_a"] * 3
        assert second == ["sess_b"] * 3
