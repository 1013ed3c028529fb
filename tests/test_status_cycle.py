import pytest

from backend.constants import EVENT_STATUS_CYCLE, TASK_STATUS_CYCLE, next_status, normalize_choice


class TestNextStatus:
    @pytest.mark.parametrize(
        "current,expected",
        [("pending", "in-progress"), ("in-progress", "completed"), ("completed", "pending")],
    )
    def test_task_cycle(self, current, expected):
        assert next_status(current, TASK_STATUS_CYCLE) == expected

    @pytest.mark.parametrize(
        "current,expected",
        [("todo", "in-progress"), ("in-progress", "done"), ("done", "todo")],
    )
    def test_event_cycle(self, current, expected):
        assert next_status(current, EVENT_STATUS_CYCLE) == expected

    def test_three_steps_return_to_start(self):
        status = "pending"
        for _ in range(3):
            status = next_status(status, TASK_STATUS_CYCLE)
        assert status == "pending"

    def test_unknown_status_restarts_cycle(self):
        assert next_status("archived", TASK_STATUS_CYCLE) == "pending"
        assert next_status(None, EVENT_STATUS_CYCLE) == "todo"


class TestNormalizeChoice:
    def test_known_value_is_cleaned(self):
        assert normalize_choice(" High ", ["low", "medium", "high"], "medium") == "high"

    def test_unknown_value_falls_back(self):
        assert normalize_choice("urgent", ["low", "medium", "high"], "medium") == "medium"
