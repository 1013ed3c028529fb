"""Tests for the dashboard aggregation helpers in backend.services.analytics."""

from datetime import date

import pytest

from backend.services import analytics


class TestWindowBounds:
    @pytest.mark.parametrize("range_name,days", [("week", 7), ("month", 30), ("quarter", 90)])
    def test_window_length(self, range_name, days):
        start, end = analytics.window_bounds(range_name, date(2024, 6, 30))
        assert end == date(2024, 6, 30)
        assert (end - start).days == days

    def test_unknown_range(self):
        with pytest.raises(ValueError):
            analytics.window_bounds("decade", date(2024, 6, 30))


class TestGrouping:
    def test_focus_sessions_add_up_per_day(self):
        sessions = [
            {"date": "2024-06-01", "duration_minutes": 25},
            {"date": "2024-06-01", "duration_minutes": 50},
            {"date": "2024-06-02", "duration_minutes": 25},
        ]
        series = analytics.as_series(analytics.group_focus_by_day(sessions))
        assert series == [
            {"date": "2024-06-01", "total_minutes": 75, "sessions": 2},
            {"date": "2024-06-02", "total_minutes": 25, "sessions": 1},
        ]

    def test_mood_average_per_day(self):
        checkins = [
            {"date": "2024-06-01", "mood": "excellent"},
            {"date": "2024-06-01", "mood": "stressed"},
            {"date": "2024-06-01", "mood": "neutral"},
        ]
        bucket = analytics.group_mood_by_day(checkins)["2024-06-01"]
        assert bucket["count"] == 3
        assert bucket["mood"] == pytest.approx((10 + 2 + 6) / 3)

    def test_unknown_mood_scores_as_neutral(self):
        assert analytics.mood_score("confused") == 6
        assert analytics.mood_score(" Happy ") == 9

    def test_tasks_grouped_by_creation_day(self):
        tasks = [
            {"created_at": "2024-06-01T08:00:00+00:00", "status": "completed"},
            {"created_at": "2024-06-01T09:30:00+00:00", "status": "pending"},
            {"created_at": "2024-06-03T10:00:00+00:00", "status": "completed"},
        ]
        series = analytics.as_series(analytics.group_tasks_by_day(tasks))
        assert [item["date"] for item in series] == ["2024-06-01", "2024-06-03"]
        assert series[0]["created"] == 2
        assert series[0]["completed"] == 1

    def test_expense_categories_sorted_by_amount(self):
        expenses = [
            {"amount": 12.5, "category": "food"},
            {"amount": 40, "category": "transport"},
            {"amount": 7.5, "category": "food"},
        ]
        assert analytics.expenses_by_category(expenses) == [
            {"category": "transport", "amount": 40.0},
            {"category": "food", "amount": 20.0},
        ]


class TestSummary:
    def test_summary_totals(self):
        summary = analytics.summarize(
            focus=[{"duration_minutes": 25}, {"duration_minutes": 50}],
            moods=[{"mood": "good"}, {"mood": "low"}],
            tasks=[{"status": "completed"}, {"status": "pending"}, {"status": "completed"}, {"status": "pending"}],
            expenses=[{"amount": 10.25}, {"amount": 4.5}],
        )
        assert summary["total_focus_minutes"] == 75
        assert summary["total_tasks"] == 4
        assert summary["completed_tasks"] == 2
        assert summary["completion_rate"] == pytest.approx(50.0)
        assert summary["avg_mood"] == pytest.approx(6.0)
        assert summary["total_expenses"] == pytest.approx(14.75)

    def test_empty_data_gives_zero_rates(self):
        summary = analytics.empty_analytics()["summary"]
        assert summary["completion_rate"] == 0
        assert summary["avg_mood"] == 0
        assert summary["total_tasks"] == 0

    def test_completion_rate_is_bounded(self):
        tasks = [{"status": "completed"}] * 3
        assert analytics.summarize([], [], tasks, [])["completion_rate"] == pytest.approx(100.0)


class TestTodaySnapshot:
    def test_default_mood_without_checkins(self):
        snapshot = analytics.today_snapshot([], 0, [], [])
        assert snapshot["mood_score"] == 7.5
        assert snapshot["tasks_today"] == {"completed": 0, "total": 0}

    def test_values_are_rounded(self):
        snapshot = analytics.today_snapshot(
            tasks=[{"status": "completed"}, {"status": "pending"}],
            focus_minutes=100,
            moods=[{"mood": "good"}, {"mood": "happy"}, {"mood": "low"}],
            expenses=[{"amount": 12.4}, {"amount": 3.3}],
        )
        assert snapshot["tasks_today"] == {"completed": 1, "total": 2}
        assert snapshot["focus_hours"] == 1.7
        assert snapshot["mood_score"] == 7.0
        assert snapshot["todays_spend"] == 16
