from __future__ import annotations

import os
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field("sqlite+aiosqlite:///./lifesync.db", alias="DATABASE_URL")
    app_timezone: str = Field("UTC", alias="APP_TIMEZONE")

    session_ttl_hours: int = Field(24 * 7, alias="SESSION_TTL_HOURS")
    allowed_emails_raw: str = Field("", alias="ALLOWED_EMAILS")

    google_client_id: str | None = Field(None, alias="GOOGLE_CLIENT_ID")
    google_client_secret: str | None = Field(None, alias="GOOGLE_CLIENT_SECRET")
    google_api_key: str | None = Field(None, alias="GOOGLE_API_KEY")
    calendar_redirect_uri: str | None = Field(None, alias="CALENDAR_REDIRECT_URI")
    google_token_encryption_key: str = Field("", alias="GOOGLE_TOKEN_ENCRYPTION_KEY")

    openai_api_key: str | None = Field(None, alias="OPENAI_API_KEY")
    openai_model: str = Field("gpt-4o-mini", alias="OPENAI_MODEL")

    resend_api_key: str | None = Field(None, alias="RESEND_API_KEY")
    mail_from: str = Field("LifeSync <noreply@lifesync.app>", alias="MAIL_FROM")
    assignment_mail_from: str = Field("LifeSync <onboarding@resend.dev>", alias="ASSIGNMENT_MAIL_FROM")

    pomodoro_focus_minutes: int = Field(25, alias="POMODORO_FOCUS_MINUTES")
    pomodoro_require_task: bool = Field(False, alias="POMODORO_REQUIRE_TASK")
    pomodoro_ticker_enabled: bool = Field(True, alias="POMODORO_TICKER_ENABLED")

    reminder_interval_seconds: int = Field(3600, alias="REMINDER_INTERVAL_SECONDS")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def allowed_emails(self) -> List[str]:
        return [email.strip().lower() for email in self.allowed_emails_raw.split(",") if email.strip()]

    @property
    def calendar_credentials_set(self) -> bool:
        return bool(self.google_client_id and self.google_api_key)


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None


# For local dev convenience only.
if os.getenv("BACKEND_DEBUG_SETTINGS"):
    print(get_settings())
