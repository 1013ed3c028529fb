"""Tests for Google Calendar configuration, connection state and event bodies."""

from urllib.parse import parse_qs, urlparse

import pytest

from backend.services import google_calendar_service
from backend.settings import reset_settings


@pytest.fixture
def calendar_env(settings_env):
    settings_env.setenv("GOOGLE_CLIENT_ID", "client-123.apps.googleusercontent.com")
    settings_env.setenv("GOOGLE_CLIENT_SECRET", "shh")
    settings_env.setenv("GOOGLE_API_KEY", "api-key-456")
    settings_env.setenv("CALENDAR_REDIRECT_URI", "http://localhost:8000/v1/oauth/google/callback")
    reset_settings()
    return settings_env


class TestCredentials:
    def test_missing_credentials(self, client, auth_headers):
        response = client.get("/v1/calendar/credentials", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["credentials_set"] is False

    def test_configured_credentials(self, client, auth_headers, calendar_env):
        response = client.get("/v1/calendar/credentials", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {
            "client_id": "client-123.apps.googleusercontent.com",
            "api_key": "api-key-456",
            "credentials_set": True,
        }


class TestConnection:
    def test_not_connected_by_default(self, client, auth_headers):
        status = client.get("/v1/calendar/status", headers=auth_headers).json()
        assert status == {"connected": False, "credentials_set": False}

    def test_upcoming_events_require_connection(self, client, auth_headers):
        response = client.get("/v1/calendar/events/upcoming", headers=auth_headers)
        assert response.status_code == 400

    def test_connect_without_oauth_config(self, client, auth_headers):
        assert client.get("/v1/oauth/google/connect", headers=auth_headers).status_code == 400

    def test_connect_url_carries_encrypted_state(self, client, session, auth_headers, calendar_env):
        url = client.get("/v1/oauth/google/connect", headers=auth_headers).json()["url"]
        query = parse_qs(urlparse(url).query)
        assert query["client_id"] == ["client-123.apps.googleusercontent.com"]
        assert query["access_type"] == ["offline"]
        state = query["state"][0]
        assert state != session["user"]["id"]
        assert google_calendar_service.user_id_from_state(state) == session["user"]["id"]

    def test_callback_rejects_bad_state(self, client):
        response = client.get("/v1/oauth/google/callback", params={"code": "abc", "state": "tampered"})
        assert response.status_code == 400

    def test_stored_tokens_mark_user_connected(self, client, session, auth_headers):
        from backend import repositories

        user_id = session["user"]["id"]
        client.portal.call(
            repositories.store_google_tokens,
            user_id,
            google_calendar_service.encrypt_token("refresh-token"),
        )
        assert client.get("/v1/calendar/status", headers=auth_headers).json()["connected"] is True
        assert client.delete("/v1/calendar/connection", headers=auth_headers).status_code == 200
        assert client.get("/v1/calendar/status", headers=auth_headers).json()["connected"] is False


class TestEventBodies:
    def test_token_encryption_round_trip(self, settings_env):
        encrypted = google_calendar_service.encrypt_token("refresh-token")
        assert encrypted != "refresh-token"
        assert google_calendar_service.decrypt_token(encrypted) == "refresh-token"

    def test_task_event_is_all_day(self):
        body = google_calendar_service.task_event_body(
            {"title": "Dentist", "due_date": "2024-06-30", "description": "Bring forms"}
        )
        assert body == {
            "summary": "Dentist",
            "start": {"date": "2024-06-30"},
            "end": {"date": "2024-07-01"},
            "description": "Bring forms",
        }

    def test_undated_task_has_no_event(self):
        assert google_calendar_service.task_event_body({"title": "Someday"}) is None

    def test_planner_event_uses_duration(self):
        body = google_calendar_service.planner_event_body(
            {"title": "Standup", "date": "2024-06-10", "start_time": "09:30", "duration_minutes": 45},
            "Europe/Berlin",
        )
        assert body["start"] == {"dateTime": "2024-06-10T09:30:00", "timeZone": "Europe/Berlin"}
        assert body["end"] == {"dateTime": "2024-06-10T10:15:00", "timeZone": "Europe/Berlin"}
        assert "location" not in body
