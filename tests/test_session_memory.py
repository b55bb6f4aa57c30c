"""Tests for session memory."""

from site_explorer.models.action_record import ActionRecord
from site_explorer.services.session_memory import SessionMemory


def _record(step: int, success: bool = True) -> ActionRecord:
    return ActionRecord(
        step=step, action="analyze", target=None, reasoning="", confidence="low", success=success,
    )


class TestSessionMemory:
    """Tests for SessionMemory."""

    def test_append_and_query(self):
        memory = SessionMemory("sess_1")
        for i, ok in enumerate([True, False, True, False], start=1):
            memory.append(_record(i, ok))

        assert len(memory) == 4
        assert [r.step for r in memory.successes()] == [1, 3]
        assert [r.step for r in memory.failures()] == [2, 4]
        assert [r.step for r in memory.recent(2)] == [3, 4]
        assert memory.recent(0) == []

    def test_records_snapshot_is_immutable(self):
        memory = SessionMemory("sess_1")
        memory.append(_record(1))
        records = memory.records
        memory.append(_record(2))
        assert len(records) == 1
        assert isinstance(records, tuple)

    def test_first_screenshot_per_url_kept(self):
        memory = SessionMemory("sess_1")
        memory.record_screenshot("https://example.com/", "screenshots/a.png")
        memory.record_screenshot("https://example.com/", "screenshots/b.png")
        assert memory.screenshots == {"https://example.com/": "screenshots/a.png"}

    def test_metrics(self):
        memory = SessionMemory("sess_1")
        memory.record_metrics("https://example.com/", {"load_time": 12})
        assert memory.metrics["https://example.com/"] == {"load_time": 12}
