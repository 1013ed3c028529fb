"""Tests for notification preferences, due-task reminders and the reminder audit trail."""

from datetime import timedelta

import pytest

from backend.clock import local_today
from backend.services import mailer


@pytest.fixture
def sent_reminders(monkeypatch):
    calls = []

    async def fake_send(to_email, task_title, due_date, days_until_due, assigned_to_email=None):
        calls.append((to_email, task_title, due_date, days_until_due, assigned_to_email))
        return {"id": "email-1"}

    monkeypatch.setattr(mailer, "send_task_reminder", fake_send)
    return calls


def due_in(days):
    return (local_today() + timedelta(days=days)).isoformat()


def add_task(client, headers, title, days=None):
    payload = {"title": title}
    if days is not None:
        payload["due_date"] = due_in(days)
    return client.post("/v1/tasks", json=payload, headers=headers).json()["items"][0]


def due_titles(client, headers):
    return sorted(item["title"] for item in client.get("/v1/notifications/due", headers=headers).json()["items"])


class TestPreferences:
    def test_defaults_are_created(self, client, auth_headers):
        prefs = client.get("/v1/notifications/preferences", headers=auth_headers).json()
        assert prefs["task_reminders_enabled"] is True
        assert prefs["reminder_days_before"] == 1
        assert prefs["reminder_hours_before"] == 24

    def test_partial_update(self, client, auth_headers):
        response = client.patch(
            "/v1/notifications/preferences",
            json={"reminder_days_before": 3},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["reminder_days_before"] == 3
        assert response.json()["task_reminders_enabled"] is True

    def test_negative_window_rejected(self, client, auth_headers):
        response = client.patch(
            "/v1/notifications/preferences",
            json={"reminder_days_before": -1},
            headers=auth_headers,
        )
        assert response.status_code == 422


class TestDueTasks:
    def test_default_window_is_one_day(self, client, auth_headers):
        add_task(client, auth_headers, "Due today", 0)
        add_task(client, auth_headers, "Due tomorrow", 1)
        add_task(client, auth_headers, "Due next week", 7)
        add_task(client, auth_headers, "Overdue task", -1)
        add_task(client, auth_headers, "Someday task")
        assert due_titles(client, auth_headers) == ["Due today", "Due tomorrow"]

    def test_days_until_due(self, client, auth_headers):
        add_task(client, auth_headers, "Due tomorrow", 1)
        item = client.get("/v1/notifications/due", headers=auth_headers).json()["items"][0]
        assert item["days_until_due"] == 1
        assert item["due_date"] == due_in(1)

    def test_completed_tasks_are_skipped(self, client, auth_headers):
        task = add_task(client, auth_headers, "Due today", 0)
        client.patch(f"/v1/tasks/{task['id']}", json={"status": "completed"}, headers=auth_headers)
        assert due_titles(client, auth_headers) == []

    def test_wider_window(self, client, auth_headers):
        client.patch("/v1/notifications/preferences", json={"reminder_days_before": 7}, headers=auth_headers)
        add_task(client, auth_headers, "Due next week", 7)
        assert due_titles(client, auth_headers) == ["Due next week"]

    def test_disabled_reminders(self, client, auth_headers):
        client.patch("/v1/notifications/preferences", json={"task_reminders_enabled": False}, headers=auth_headers)
        add_task(client, auth_headers, "Due today", 0)
        assert due_titles(client, auth_headers) == []


class TestTaskReminder:
    def test_reminder_is_sent_and_audited(self, client, session, auth_headers, sent_reminders):
        task = add_task(client, auth_headers, "Due today", 0)
        response = client.post(
            "/v1/notifications/task-reminder",
            json={
                "task_id": task["id"],
                "user_id": session["user"]["id"],
                "task_title": task["title"],
                "due_date": task["due_date"],
                "days_until_due": 0,
            },
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert sent_reminders == [("alex@example.com", "Due today", task["due_date"], 0, None)]
        assert due_titles(client, auth_headers) == []

    def test_reminder_names_the_assignee(self, client, session, auth_headers, sent_reminders):
        task = add_task(client, auth_headers, "Due today", 0)
        response = client.post(
            "/v1/notifications/task-reminder",
            json={
                "task_id": task["id"],
                "user_id": session["user"]["id"],
                "task_title": task["title"],
                "due_date": task["due_date"],
                "assigned_to_email": "sam@example.com",
                "days_until_due": 0,
            },
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert sent_reminders[0][-1] == "sam@example.com"

    def test_cannot_remind_for_another_user(self, client, auth_headers, make_user, sent_reminders):
        task = add_task(client, auth_headers, "Due today", 0)
        other, other_headers = make_user("sam@example.com")
        response = client.post(
            "/v1/notifications/task-reminder",
            json={
                "task_id": task["id"],
                "user_id": "someone-else",
                "task_title": task["title"],
                "due_date": task["due_date"],
                "days_until_due": 0,
            },
            headers=other_headers,
        )
        assert response.status_code == 403
        assert sent_reminders == []

    def test_unknown_task(self, client, session, auth_headers, sent_reminders):
        response = client.post(
            "/v1/notifications/task-reminder",
            json={
                "task_id": "missing",
                "user_id": session["user"]["id"],
                "task_title": "Ghost",
                "due_date": due_in(0),
                "days_until_due": 0,
            },
            headers=auth_headers,
        )
        assert response.status_code == 404

    def test_mail_not_configured(self, client, session, auth_headers):
        task = add_task(client, auth_headers, "Due today", 0)
        response = client.post(
            "/v1/notifications/task-reminder",
            json={
                "task_id": task["id"],
                "user_id": session["user"]["id"],
                "task_title": task["title"],
                "due_date": task["due_date"],
                "days_until_due": 0,
            },
            headers=auth_headers,
        )
        assert response.status_code == 503
        assert due_titles(client, auth_headers) == ["Due today"]


class TestReminderRun:
    def test_run_sends_once_per_day(self, client, auth_headers, sent_reminders):
        add_task(client, auth_headers, "Due today", 0)
        add_task(client, auth_headers, "Due tomorrow", 1)
        first = client.post("/v1/notifications/reminders/run", headers=auth_headers).json()
        assert first["sent"] == 2
        second = client.post("/v1/notifications/reminders/run", headers=auth_headers).json()
        assert second["sent"] == 0
        assert len(sent_reminders) == 2

    def test_run_only_covers_the_caller(self, client, auth_headers, other_headers, sent_reminders):
        add_task(client, other_headers, "Sam's deadline", 0)
        assert client.post("/v1/notifications/reminders/run", headers=auth_headers).json()["sent"] == 0
        assert sent_reminders == []


class TestEmailTemplates:
    def test_due_phrase(self):
        assert mailer.due_phrase(0) == "today"
        assert mailer.due_phrase(1) == "in 1 day"
        assert mailer.due_phrase(3) == "in 3 days"

    def test_assignment_html_escapes_user_text(self):
        html = mailer.render_assignment_html(
            "<b>Launch</b>",
            "sam@example.com",
            "alex@example.com",
            priority="high",
            task_description="Ship & celebrate",
        )
        assert "&lt;b&gt;Launch&lt;/b&gt;" in html
        assert "Ship &amp; celebrate" in html
        assert "Hi sam!" in html

    def test_reminder_subject(self):
        assert mailer.reminder_subject("Pay rent", 0) == '📅 Task Reminder: "Pay rent" due today'

    def test_reminder_html_shows_escaped_assignee(self):
        html = mailer.render_reminder_html("Pay rent", "2024-06-01", 0, assigned_to_email="<sam>@example.com")
        assert "<strong>Assigned to:</strong> &lt;sam&gt;@example.com" in html

    def test_reminder_html_without_assignee(self):
        assert "Assigned to:" not in mailer.render_reminder_html("Pay rent", "2024-06-01", 1)


class TestReminderDelivery:
    @pytest.mark.asyncio
    async def test_assignee_reaches_the_email_body(self, monkeypatch):
        sent = []

        async def fake_send_email(to, subject, html, sender=None):
            sent.append((to, subject, html))
            return {"id": "email-1"}

        monkeypatch.setattr(mailer, "send_email", fake_send_email)
        await mailer.send_task_reminder(
            "alex@example.com", "Pay rent", "2024-06-01", 0, assigned_to_email="sam@example.com"
        )
        to, subject, html = sent[0]
        assert to == ["alex@example.com"]
        assert "Pay rent" in subject
        assert "<strong>Assigned to:</strong> sam@example.com" in html

    def test_run_passes_the_stored_assignee(self, client, auth_headers, sent_reminders, monkeypatch):
        async def quiet_assignment(**kwargs):
            return None

        monkeypatch.setattr(mailer, "notify_assignment_safely", quiet_assignment)
        client.post(
            "/v1/tasks",
            json={"title": "Shared deadline", "due_date": due_in(0), "assigned_to_email": "sam@example.com"},
            headers=auth_headers,
        )
        assert client.post("/v1/notifications/reminders/run", headers=auth_headers).json()["sent"] == 1
        assert sent_reminders[0][1] == "Shared deadline"
        assert sent_reminders[0][-1] == "sam@example.com"
