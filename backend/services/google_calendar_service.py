from __future__ import annotations

import base64
import hashlib
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable
from urllib.parse import urlencode, quote

import httpx
from cryptography.fernet import Fernet, InvalidToken

from backend.settings import get_settings
from backend import repositories
from backend.services.integration import IntegrationNotConfigured, api_error_message

logger = logging.getLogger(__name__)

AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
CALENDAR_API = "https://www.googleapis.com/calendar/v3"
CALENDAR_SCOPE = "https://www.googleapis.com/auth/calendar.events"
DEFAULT_CALENDAR = "primary"
UPCOMING_LIMIT = 10


class CalendarNotConnected(RuntimeError):
    pass


def _fernet() -> Fernet:
    settings = get_settings()
    secret = settings.google_token_encryption_key or settings.google_client_secret or ""
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def encrypt_token(value: str) -> str:
    return _fernet().encrypt(value.encode("utf-8")).decode("utf-8")


def decrypt_token(value: str) -> str:
    return _fernet().decrypt(value.encode("utf-8")).decode("utf-8")


def credentials() -> dict:
    settings = get_settings()
    return {
        "client_id": settings.google_client_id,
        "api_key": settings.google_api_key,
        "credentials_set": settings.calendar_credentials_set,
    }


def _require_oauth_config() -> None:
    settings = get_settings()
    if not (settings.google_client_id and settings.google_client_secret and settings.calendar_redirect_uri):
        raise IntegrationNotConfigured("Calendar OAuth not configured")


def build_connect_url(user_id: str) -> str:
    _require_oauth_config()
    settings = get_settings()
    params = {
        "client_id": settings.google_client_id,
        "redirect_uri": settings.calendar_redirect_uri,
        "response_type": "code",
        "scope": CALENDAR_SCOPE,
        "access_type": "offline",
        "include_granted_scopes": "true",
        "prompt": "consent",
        "state": encrypt_token(user_id),
    }
    return f"{AUTH_URL}?{urlencode(params)}"


def user_id_from_state(state: str) -> str:
    try:
        return decrypt_token(state)
    except (InvalidToken, ValueError) as exc:
        raise ValueError("Invalid OAuth state") from exc


def _expiry(token_data: dict) -> str:
    expires_in = int(token_data.get("expires_in", 3600) or 3600)
    return (datetime.now(timezone.utc) + timedelta(seconds=expires_in - 30)).isoformat()


async def exchange_code_for_tokens(user_id: str, code: str) -> None:
    _require_oauth_config()
    settings = get_settings()
    payload = {
        "code": code,
        "client_id": settings.google_client_id,
        "client_secret": settings.google_client_secret,
        "redirect_uri": settings.calendar_redirect_uri,
        "grant_type": "authorization_code",
    }
    async with httpx.AsyncClient(timeout=20) as client:
        response = await client.post(TOKEN_URL, data=payload)
    if response.status_code >= 400:
        raise RuntimeError(f"Google token exchange failed ({response.status_code}): {api_error_message(response)}")
    token_data = response.json()
    refresh_token = token_data.get("refresh_token")
    if not refresh_token:
        existing = await repositories.get_google_tokens(user_id)
        if existing and existing.get("refresh_token_enc"):
            refresh_token = decrypt_token(existing["refresh_token_enc"])
        else:
            raise RuntimeError("Google OAuth did not return refresh_token")
    await repositories.store_google_tokens(
        user_id,
        encrypt_token(refresh_token),
        access_token=token_data.get("access_token"),
        expires_at=_expiry(token_data),
        scope=token_data.get("scope"),
    )
    logger.info("Stored Google Calendar tokens for %s", user_id)


async def _refresh_access_token(user_id: str) -> str | None:
    token_row = await repositories.get_google_tokens(user_id)
    if not token_row or not token_row.get("refresh_token_enc"):
        return None
    settings = get_settings()
    payload = {
        "client_id": settings.google_client_id,
        "client_secret": settings.google_client_secret,
        "refresh_token": decrypt_token(token_row["refresh_token_enc"]),
        "grant_type": "refresh_token",
    }
    async with httpx.AsyncClient(timeout=20) as client:
        response = await client.post(TOKEN_URL, data=payload)
    if response.status_code >= 400:
        raise RuntimeError(f"Google token refresh failed ({response.status_code}): {api_error_message(response)}")
    token_data = response.json()
    access_token = token_data.get("access_token")
    if not access_token:
        return None
    await repositories.update_google_access_token(user_id, access_token, _expiry(token_data), token_data.get("scope"))
    return access_token


async def get_access_token(user_id: str) -> str | None:
    token_row = await repositories.get_google_tokens(user_id)
    if not token_row:
        return None
    access_token = token_row.get("access_token")
    expires_at = token_row.get("expires_at")
    if access_token and expires_at:
        try:
            expires_dt = datetime.fromisoformat(str(expires_at).replace("Z", "+00:00"))
        except ValueError:
            expires_dt = None
        if expires_dt and expires_dt > datetime.now(timezone.utc):
            return access_token
    return await _refresh_access_token(user_id)


async def is_connected(user_id: str) -> bool:
    token_row = await repositories.get_google_tokens(user_id)
    return bool(token_row and token_row.get("refresh_token_enc"))


async def disconnect(user_id: str) -> None:
    await repositories.delete_google_tokens(user_id)


async def _google_headers(user_id: str) -> dict:
    access_token = await get_access_token(user_id)
    if not access_token:
        raise CalendarNotConnected("Google Calendar is not connected")
    return {"Authorization": f"Bearer {access_token}"}


def _events_endpoint(calendar_id: str) -> str:
    return f"{CALENDAR_API}/calendars/{quote(calendar_id, safe='')}/events"


async def list_upcoming_events(
    user_id: str,
    max_results: int = UPCOMING_LIMIT,
    calendar_id: str = DEFAULT_CALENDAR,
) -> list[dict]:
    headers = await _google_headers(user_id)
    params = {
        "timeMin": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "singleEvents": "true",
        "orderBy": "startTime",
        "maxResults": max_results,
    }
    async with httpx.AsyncClient(timeout=25) as client:
        response = await client.get(_events_endpoint(calendar_id), headers=headers, params=params)
    if response.status_code >= 400:
        raise RuntimeError(f"Calendar API error ({response.status_code}): {api_error_message(response)}")
    return response.json().get("items") or []


def build_event_body(
    summary: str,
    start: str,
    end: str,
    time_zone: str,
    location: str | None = None,
    description: str | None = None,
) -> dict:
    body = {
        "summary": summary,
        "start": {"dateTime": start, "timeZone": time_zone},
        "end": {"dateTime": end, "timeZone": time_zone},
    }
    if location:
        body["location"] = location
    if description:
        body["description"] = description
    return body


def task_event_body(task: dict) -> dict | None:
    """All-day event on the task's due date; None for undated tasks."""
    due_date = task.get("due_date")
    if not due_date:
        return None
    start = date.fromisoformat(str(due_date)[:10])
    body = {
        "summary": task["title"],
        "start": {"date": start.isoformat()},
        "end": {"date": (start + timedelta(days=1)).isoformat()},
    }
    if task.get("description"):
        body["description"] = task["description"]
    return body


def planner_event_body(event: dict, time_zone: str) -> dict:
    start = datetime.fromisoformat(f"{event['date']}T{event['start_time']}")
    end = start + timedelta(minutes=int(event.get("duration_minutes") or 60))
    return build_event_body(
        event["title"],
        start.isoformat(),
        end.isoformat(),
        time_zone,
        location=event.get("location"),
        description=event.get("description"),
    )


async def create_event(user_id: str, payload: dict, calendar_id: str = DEFAULT_CALENDAR) -> dict:
    headers = await _google_headers(user_id)
    headers["Content-Type"] = "application/json"
    async with httpx.AsyncClient(timeout=20) as client:
        response = await client.post(_events_endpoint(calendar_id), headers=headers, json=payload)
    if response.status_code >= 400:
        raise RuntimeError(f"Google create_event failed ({response.status_code}): {api_error_message(response)}")
    return response.json()


async def sync_to_calendar(user_id: str, build_body: Callable[[], dict | None]) -> str | None:
    """Create the event when the user is connected; any failure leaves the item unsynced."""
    try:
        payload = build_body()
        if not payload or not await is_connected(user_id):
            return None
        created = await create_event(user_id, payload)
    except Exception as exc:
        logger.warning("Calendar sync for %s failed: %s", user_id, exc)
        return None
    return created.get("id")
