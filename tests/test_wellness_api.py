"""Tests for mood check-ins, expenses, analytics and relationship care endpoints."""

from datetime import timedelta

import pytest

from backend.clock import local_today
from backend.services import message_generator


class TestMood:
    def test_checkins_newest_first(self, client, auth_headers):
        today = local_today()
        client.post("/v1/mood", json={"mood": "low", "date": (today - timedelta(days=2)).isoformat()}, headers=auth_headers)
        client.post("/v1/mood", json={"mood": "Happy", "note": "Sunny walk"}, headers=auth_headers)
        items = client.get("/v1/mood", headers=auth_headers).json()["items"]
        assert [item["mood"] for item in items] == ["happy", "low"]
        assert items[0]["note"] == "Sunny walk"

    def test_default_window_is_one_week(self, client, auth_headers):
        old = (local_today() - timedelta(days=20)).isoformat()
        client.post("/v1/mood", json={"mood": "good", "date": old}, headers=auth_headers)
        assert client.get("/v1/mood", headers=auth_headers).json()["items"] == []
        ranged = client.get("/v1/mood", params={"start": old}, headers=auth_headers).json()["items"]
        assert len(ranged) == 1

    def test_unknown_mood(self, client, auth_headers):
        assert client.post("/v1/mood", json={"mood": "hangry"}, headers=auth_headers).status_code == 400


class TestExpenses:
    def test_totals_and_categories(self, client, auth_headers):
        for amount, category in [(10, "food"), (5.5, "food"), (30, "transport"), (2, "mystery")]:
            response = client.post("/v1/expenses", json={"amount": amount, "category": category}, headers=auth_headers)
            assert response.status_code == 200
        body = client.get("/v1/expenses", headers=auth_headers).json()
        assert len(body["items"]) == 4
        assert body["total"] == 47.5
        assert body["by_category"][0] == {"category": "transport", "amount": 30.0}
        assert {"category": "other", "amount": 2.0} in body["by_category"]

    @pytest.mark.parametrize("amount", [0, -4])
    def test_amount_must_be_positive(self, client, auth_headers, amount):
        response = client.post("/v1/expenses", json={"amount": amount}, headers=auth_headers)
        assert response.status_code == 422


class TestAnalytics:
    def test_week_summary(self, client, auth_headers):
        client.post("/v1/tasks", json={"title": "Task one\nTask two"}, headers=auth_headers)
        task = client.get("/v1/tasks", headers=auth_headers).json()["items"][0]
        client.patch(f"/v1/tasks/{task['id']}", json={"status": "completed"}, headers=auth_headers)
        client.post("/v1/mood", json={"mood": "excellent"}, headers=auth_headers)
        client.post("/v1/expenses", json={"amount": 20, "category": "food"}, headers=auth_headers)

        body = client.get("/v1/analytics", params={"range": "week"}, headers=auth_headers).json()
        assert body["range"] == "week"
        summary = body["summary"]
        assert summary["total_tasks"] == 2
        assert summary["completed_tasks"] == 1
        assert summary["completion_rate"] == 50
        assert summary["avg_mood"] == 10
        assert summary["total_expenses"] == 20
        assert body["expense_categories"] == [{"category": "food", "amount": 20.0}]
        assert len(body["tasks"]) == 1

    def test_empty_range(self, client, auth_headers):
        body = client.get("/v1/analytics", params={"range": "quarter"}, headers=auth_headers).json()
        assert body["summary"]["completion_rate"] == 0
        assert body["focus"] == []

    def test_invalid_range(self, client, auth_headers):
        assert client.get("/v1/analytics", params={"range": "year"}, headers=auth_headers).status_code == 422


class TestRelationship:
    def test_reminders_and_messages(self, client, auth_headers):
        reminder = client.post(
            "/v1/relationship/reminders",
            json={"title": "Anniversary dinner", "date": "2024-09-14", "type": "special"},
            headers=auth_headers,
        )
        assert reminder.status_code == 200
        message = client.post(
            "/v1/relationship/messages",
            json={"content": "Thinking of you", "is_ai_generated": True},
            headers=auth_headers,
        )
        assert message.json()["is_ai_generated"] is True

        overview = client.get("/v1/relationship", headers=auth_headers).json()
        assert overview["reminders"][0]["type"] == "special"
        assert overview["messages"][0]["content"] == "Thinking of you"
        assert overview["messages"][0]["is_ai_generated"] is True

    def test_empty_message_rejected(self, client, auth_headers):
        response = client.post("/v1/relationship/messages", json={"content": "  "}, headers=auth_headers)
        assert response.status_code == 400


class TestMessageGeneration:
    def test_unknown_type(self, client, auth_headers):
        response = client.post("/v1/messages/generate", json={"type": "poem"}, headers=auth_headers)
        assert response.status_code == 400

    def test_missing_api_key(self, client, auth_headers):
        response = client.post("/v1/messages/generate", json={"type": "sweet_message"}, headers=auth_headers)
        assert response.status_code == 503

    def test_generated_message(self, client, auth_headers, monkeypatch):
        async def fake_generate(message_type, context=None, user_id=None):
            assert context == {"recent_mood": "stressed"}
            return "You are doing great."

        monkeypatch.setattr(message_generator, "generate_message", fake_generate)
        response = client.post(
            "/v1/messages/generate",
            json={"type": "sweet_message", "context": {"recent_mood": "stressed"}},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json() == {"message": "You are doing great.", "type": "sweet_message"}

    def test_upstream_failure(self, client, auth_headers, monkeypatch):
        async def failing(message_type, context=None, user_id=None):
            raise RuntimeError("OpenAI API error: rate limited")

        monkeypatch.setattr(message_generator, "generate_message", failing)
        response = client.post("/v1/messages/generate", json={"type": "mood_suggestion"}, headers=auth_headers)
        assert response.status_code == 502


class TestPrompts:
    def test_sweet_message_uses_recent_mood(self):
        _, prompt = message_generator.build_prompts("sweet_message", {"recentMood": "tired"})
        assert '"tired"' in prompt

    def test_mood_suggestion_defaults(self):
        system, prompt = message_generator.build_prompts("mood_suggestion")
        assert "wellness" in system
        assert '"mixed"' in prompt
