"""Shared fixtures: a fresh SQLite database per test and an authenticated API client."""

import os

# Keep the background ticker and third-party integrations off unless a test opts in.
os.environ.setdefault("POMODORO_TICKER_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from backend import db
from backend.services import pomodoro
from backend.settings import reset_settings

INTEGRATION_ENV = [
    "OPENAI_API_KEY",
    "RESEND_API_KEY",
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "GOOGLE_API_KEY",
    "CALENDAR_REDIRECT_URI",
    "ALLOWED_EMAILS",
    "POMODORO_REQUIRE_TASK",
]


@pytest.fixture
def settings_env(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'lifesync_test.db'}")
    monkeypatch.setenv("POMODORO_TICKER_ENABLED", "false")
    monkeypatch.setenv("APP_TIMEZONE", "UTC")
    monkeypatch.setenv("GOOGLE_TOKEN_ENCRYPTION_KEY", "test-encryption-key")
    for name in INTEGRATION_ENV:
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    db._engine = None
    db._session_factory = None
    pomodoro.reset_registry()
    yield monkeypatch
    reset_settings()
    pomodoro.reset_registry()


@pytest.fixture
def client(settings_env):
    from backend.main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client


def sign_up(client, email="alex@example.com", password="s3cret-pass", display_name="Alex"):
    response = client.post(
        "/v1/auth/sign-up",
        json={"email": email, "password": password, "display_name": display_name},
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def session(client):
    return sign_up(client)


@pytest.fixture
def auth_headers(session):
    return {"Authorization": f"Bearer {session['token']}"}


@pytest.fixture
def other_headers(client):
    other = sign_up(client, email="sam@example.com", display_name="Sam")
    return {"Authorization": f"Bearer {other['token']}"}


@pytest.fixture
def make_user(client):
    def _make(email, display_name=None):
        created = sign_up(client, email=email, display_name=display_name)
        return created, {"Authorization": f"Bearer {created['token']}"}

    return _make
