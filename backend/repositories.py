from __future__ import annotations

from datetime import date, datetime, timedelta
from uuid import uuid4

from sqlalchemy import text as sql_text, bindparam

from backend.clock import utc_now, utc_now_iso
from backend.constants import (
    DEFAULT_EVENT_TYPE,
    DEFAULT_PRIORITY,
    EVENT_STATUS_CYCLE,
    EVENT_TYPES,
    EXPENSE_CATEGORIES,
    PRIORITIES,
    REMINDER_TYPES,
    TASK_STATUS_CYCLE,
    normalize_choice,
)
from backend.db import get_sessionmaker
from backend.db_init import (
    EVENTS_TABLE,
    EXPENSES_TABLE,
    FOCUS_TABLE,
    GOOGLE_TOKENS_TABLE,
    MESSAGES_TABLE,
    MOOD_TABLE,
    PREFERENCES_TABLE,
    REMINDERS_TABLE,
    SESSIONS_TABLE,
    TASK_NOTIFICATIONS_TABLE,
    TASKS_TABLE,
    USERS_TABLE,
)

TASK_COLUMNS = [
    "id",
    "user_id",
    "title",
    "description",
    "priority",
    "status",
    "due_date",
    "google_event_id",
    "assigned_to_email",
    "assigned_to_name",
    "created_at",
    "updated_at",
]

EVENT_COLUMNS = [
    "id",
    "user_id",
    "title",
    "description",
    "start_time",
    "duration_minutes",
    "location",
    "event_type",
    "date",
    "google_event_id",
    "status",
    "created_at",
]

DEFAULT_PREFERENCES = {
    "task_reminders_enabled": True,
    "reminder_days_before": 1,
    "reminder_hours_before": 24,
}


def _new_id() -> str:
    return uuid4().hex


def _iso_date(value) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return date.fromisoformat(str(value).strip()[:10]).isoformat()


def normalize_start_time(value) -> str | None:
    """Return a wall-clock time as zero-padded ``HH:MM``; ``ValueError`` when it is not one."""
    if value is None:
        return None
    if hasattr(value, "strftime"):
        return value.strftime("%H:%M")
    value_str = str(value).strip()
    if not value_str:
        return None
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(value_str, fmt).strftime("%H:%M")
        except ValueError:
            continue
    raise ValueError(f"Invalid start time '{value_str}', expected HH:MM")


def _clean_text(value) -> str | None:
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None


def _normalize_row(row) -> dict:
    if not row:
        return {}
    payload = dict(row)
    for key, value in list(payload.items()):
        if isinstance(value, (date, datetime)):
            payload[key] = value.isoformat()
    return payload


# Users and sessions


async def get_user_by_email(email: str) -> dict | None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(
                f"SELECT id, email, password_hash, display_name, created_at FROM {USERS_TABLE} WHERE email = :email"
            ),
            {"email": email.strip().lower()},
        )).mappings().fetchone()
    return dict(row) if row else None


async def get_user(user_id: str) -> dict | None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT id, email, display_name, created_at FROM {USERS_TABLE} WHERE id = :id"),
            {"id": user_id},
        )).mappings().fetchone()
    return dict(row) if row else None


async def create_user(email: str, password_hash: str, display_name: str | None = None) -> dict:
    clean_email = email.strip().lower()
    if await get_user_by_email(clean_email):
        raise ValueError("Email already registered")
    now = utc_now_iso()
    record = {
        "id": _new_id(),
        "email": clean_email,
        "password_hash": password_hash,
        "display_name": _clean_text(display_name) or clean_email.split("@")[0].title(),
        "created_at": now,
        "updated_at": now,
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {USERS_TABLE} (id, email, password_hash, display_name, created_at, updated_at)
                VALUES (:id, :email, :password_hash, :display_name, :created_at, :updated_at)
                """
            ),
            record,
        )
        await session.commit()
    return {key: value for key, value in record.items() if key != "password_hash"}


async def create_session(user_id: str, ttl_hours: int) -> dict:
    record = {
        "token": uuid4().hex + uuid4().hex,
        "user_id": user_id,
        "expires_at": (utc_now() + timedelta(hours=ttl_hours)).isoformat(),
        "created_at": utc_now_iso(),
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {SESSIONS_TABLE} (token, user_id, expires_at, created_at)
                VALUES (:token, :user_id, :expires_at, :created_at)
                """
            ),
            record,
        )
        await session.commit()
    return record


async def get_session_user(token: str) -> dict | None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(
                f"""
                SELECT u.id, u.email, u.display_name, s.expires_at
                FROM {SESSIONS_TABLE} s
                JOIN {USERS_TABLE} u ON u.id = s.user_id
                WHERE s.token = :token
                """
            ),
            {"token": token},
        )).mappings().fetchone()
    if not row:
        return None
    payload = dict(row)
    if str(payload["expires_at"]) <= utc_now_iso():
        await delete_session(token)
        return None
    return payload


async def delete_session(token: str) -> None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(f"DELETE FROM {SESSIONS_TABLE} WHERE token = :token"),
            {"token": token},
        )
        await session.commit()


async def delete_user_sessions(user_id: str) -> int:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {SESSIONS_TABLE} WHERE user_id = :user_id"),
            {"user_id": user_id},
        )
        await session.commit()
    return int(result.rowcount or 0)


# Tasks


async def list_tasks(
    user_id: str,
    status: str | None = None,
    priority: str | None = None,
    search: str | None = None,
) -> list[dict]:
    clauses = ["user_id = :user_id"]
    params: dict = {"user_id": user_id}
    if status:
        clauses.append("status = :status")
        params["status"] = status
    if priority:
        clauses.append("priority = :priority")
        params["priority"] = priority
    if search and search.strip():
        clauses.append("(LOWER(title) LIKE :search OR LOWER(COALESCE(description, '')) LIKE :search)")
        params["search"] = f"%{search.strip().lower()}%"
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {', '.join(TASK_COLUMNS)}
                FROM {TASKS_TABLE}
                WHERE {' AND '.join(clauses)}
                ORDER BY created_at DESC
                """
            ),
            params,
        )).mappings().all()
    return [_normalize_row(row) for row in rows]


async def list_tasks_for_day(user_id: str, day_iso: str) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {', '.join(TASK_COLUMNS)}
                FROM {TASKS_TABLE}
                WHERE user_id = :user_id
                  AND (due_date = :day_iso OR due_date IS NULL)
                ORDER BY created_at DESC
                """
            ),
            {"user_id": user_id, "day_iso": day_iso},
        )).mappings().all()
    return [_normalize_row(row) for row in rows]


async def list_tasks_created_between(user_id: str, start_iso: str, end_iso: str) -> list[dict]:
    # created_at is a full timestamp; compare against the day boundaries.
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {', '.join(TASK_COLUMNS)}
                FROM {TASKS_TABLE}
                WHERE user_id = :user_id
                  AND created_at >= :start_iso
                  AND created_at < :end_exclusive
                ORDER BY created_at ASC
                """
            ),
            {
                "user_id": user_id,
                "start_iso": start_iso,
                "end_exclusive": (date.fromisoformat(end_iso) + timedelta(days=1)).isoformat(),
            },
        )).mappings().all()
    return [_normalize_row(row) for row in rows]


async def create_task(user_id: str, payload: dict) -> dict:
    title = _clean_text(payload.get("title"))
    if not title:
        raise ValueError("Task title cannot be empty")
    now = utc_now_iso()
    record = {
        "id": _new_id(),
        "user_id": user_id,
        "title": title,
        "description": _clean_text(payload.get("description")),
        "priority": normalize_choice(payload.get("priority"), PRIORITIES, DEFAULT_PRIORITY),
        "status": normalize_choice(payload.get("status"), TASK_STATUS_CYCLE, TASK_STATUS_CYCLE[0]),
        "due_date": _iso_date(payload.get("due_date")),
        "google_event_id": payload.get("google_event_id"),
        "assigned_to_email": _clean_text(payload.get("assigned_to_email")),
        "assigned_to_name": _clean_text(payload.get("assigned_to_name")),
        "created_at": now,
        "updated_at": now,
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {TASKS_TABLE} ({', '.join(TASK_COLUMNS)})
                VALUES ({', '.join(f':{col}' for col in TASK_COLUMNS)})
                """
            ),
            record,
        )
        await session.commit()
    return record


async def get_task(user_id: str, task_id: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(
                f"""
                SELECT {', '.join(TASK_COLUMNS)}
                FROM {TASKS_TABLE}
                WHERE id = :id AND user_id = :user_id
                """
            ),
            {"id": task_id, "user_id": user_id},
        )).mappings().fetchone()
    return _normalize_row(row)


async def update_task(user_id: str, task_id: str, patch: dict) -> dict:
    allowed = {
        "title",
        "description",
        "priority",
        "status",
        "due_date",
        "google_event_id",
        "assigned_to_email",
        "assigned_to_name",
    }
    updates = []
    params = {"id": task_id, "user_id": user_id}
    for key, value in patch.items():
        if key not in allowed:
            continue
        if key == "title":
            value = _clean_text(value)
            if not value:
                raise ValueError("Task title cannot be empty")
        elif key == "priority":
            value = normalize_choice(value, PRIORITIES, DEFAULT_PRIORITY)
        elif key == "status":
            if value not in TASK_STATUS_CYCLE:
                raise ValueError(f"Invalid task status: {value}")
        elif key == "due_date":
            value = _iso_date(value)
        elif key in {"description", "assigned_to_email", "assigned_to_name"}:
            value = _clean_text(value)
        updates.append(f"{key} = :{key}")
        params[key] = value
    if not updates:
        return await get_task(user_id, task_id)
    updates.append("updated_at = :updated_at")
    params["updated_at"] = utc_now_iso()
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"UPDATE {TASKS_TABLE} SET {', '.join(updates)} WHERE id = :id AND user_id = :user_id"
            ),
            params,
        )
        await session.commit()
    return await get_task(user_id, task_id)


async def delete_task(user_id: str, task_id: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {TASKS_TABLE} WHERE id = :id AND user_id = :user_id"),
            {"id": task_id, "user_id": user_id},
        )
        await session.commit()
    return bool(result.rowcount)


async def list_assignee_suggestions(user_id: str, query: str | None = None, limit: int = 5) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT assigned_to_email, assigned_to_name, updated_at
                FROM {TASKS_TABLE}
                WHERE user_id = :user_id
                  AND assigned_to_email IS NOT NULL
                ORDER BY updated_at DESC
                """
            ),
            {"user_id": user_id},
        )).mappings().all()
    needle = (query or "").strip().lower()
    suggestions: dict[str, dict] = {}
    for row in rows:
        email = row["assigned_to_email"]
        if email in suggestions:
            continue
        name = row.get("assigned_to_name") or ""
        if needle and needle not in email.lower() and needle not in name.lower():
            continue
        if len(suggestions) >= limit:
            break
        suggestions[email] = {
            "email": email,
            "name": row.get("assigned_to_name") or None,
            "last_used": row.get("updated_at"),
        }
    return list(suggestions.values())


# Daily planner events


async def list_events(user_id: str, day_iso: str) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {', '.join(EVENT_COLUMNS)}
                FROM {EVENTS_TABLE}
                WHERE user_id = :user_id AND date = :day_iso
                ORDER BY start_time ASC, created_at ASC
                """
            ),
            {"user_id": user_id, "day_iso": day_iso},
        )).mappings().all()
    return [_normalize_row(row) for row in rows]


async def create_event(user_id: str, payload: dict) -> dict:
    title = _clean_text(payload.get("title"))
    if not title:
        raise ValueError("Event title cannot be empty")
    start_time = normalize_start_time(payload.get("start_time"))
    if not start_time:
        raise ValueError("Event start time is required")
    duration = int(payload.get("duration_minutes") or 60)
    if duration <= 0:
        raise ValueError("Event duration must be positive")
    record = {
        "id": _new_id(),
        "user_id": user_id,
        "title": title,
        "description": _clean_text(payload.get("description")),
        "start_time": start_time,
        "duration_minutes": duration,
        "location": _clean_text(payload.get("location")),
        "event_type": normalize_choice(payload.get("event_type"), EVENT_TYPES, DEFAULT_EVENT_TYPE),
        "date": _iso_date(payload.get("date")),
        "google_event_id": payload.get("google_event_id"),
        "status": EVENT_STATUS_CYCLE[0],
        "created_at": utc_now_iso(),
    }
    if not record["date"]:
        raise ValueError("Event date is required")
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {EVENTS_TABLE} ({', '.join(EVENT_COLUMNS)})
                VALUES ({', '.join(f':{col}' for col in EVENT_COLUMNS)})
                """
            ),
            record,
        )
        await session.commit()
    return record


async def get_event(user_id: str, event_id: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(
                f"SELECT {', '.join(EVENT_COLUMNS)} FROM {EVENTS_TABLE} WHERE id = :id AND user_id = :user_id"
            ),
            {"id": event_id, "user_id": user_id},
        )).mappings().fetchone()
    return _normalize_row(row)


async def set_event_status(user_id: str, event_id: str, status: str) -> dict:
    if status not in EVENT_STATUS_CYCLE:
        raise ValueError(f"Invalid event status: {status}")
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(f"UPDATE {EVENTS_TABLE} SET status = :status WHERE id = :id AND user_id = :user_id"),
            {"id": event_id, "user_id": user_id, "status": status},
        )
        await session.commit()
    return await get_event(user_id, event_id)


async def set_event_google_id(user_id: str, event_id: str, google_event_id: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"UPDATE {EVENTS_TABLE} SET google_event_id = :google_event_id WHERE id = :id AND user_id = :user_id"
            ),
            {"id": event_id, "user_id": user_id, "google_event_id": google_event_id},
        )
        await session.commit()
    return await get_event(user_id, event_id)


async def delete_event(user_id: str, event_id: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {EVENTS_TABLE} WHERE id = :id AND user_id = :user_id"),
            {"id": event_id, "user_id": user_id},
        )
        await session.commit()
    return bool(result.rowcount)


# Focus sessions


async def add_focus_session(user_id: str, duration_minutes: int, day_iso: str, task_title: str | None = None) -> dict:
    record = {
        "id": _new_id(),
        "user_id": user_id,
        "duration_minutes": int(duration_minutes),
        "task_title": _clean_text(task_title),
        "date": day_iso,
        "created_at": utc_now_iso(),
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {FOCUS_TABLE} (id, user_id, duration_minutes, task_title, date, created_at)
                VALUES (:id, :user_id, :duration_minutes, :task_title, :date, :created_at)
                """
            ),
            record,
        )
        await session.commit()
    return record


async def list_focus_sessions(user_id: str, start_iso: str, end_iso: str) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT id, user_id, duration_minutes, task_title, date, created_at
                FROM {FOCUS_TABLE}
                WHERE user_id = :user_id
                  AND date BETWEEN :start_date AND :end_date
                ORDER BY date ASC, created_at ASC
                """
            ),
            {"user_id": user_id, "start_date": start_iso, "end_date": end_iso},
        )).mappings().all()
    return [_normalize_row(row) for row in rows]


async def list_recent_focus_sessions(user_id: str, since_iso: str, limit: int = 5) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT id, user_id, duration_minutes, task_title, date, created_at
                FROM {FOCUS_TABLE}
                WHERE user_id = :user_id AND date >= :since
                ORDER BY created_at DESC
                LIMIT :limit
                """
            ),
            {"user_id": user_id, "since": since_iso, "limit": limit},
        )).mappings().all()
    return [_normalize_row(row) for row in rows]


async def sum_focus_minutes(user_id: str, day_iso: str) -> int:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        total = (await session.execute(
            sql_text(
                f"SELECT COALESCE(SUM(duration_minutes), 0) FROM {FOCUS_TABLE} WHERE user_id = :user_id AND date = :day_iso"
            ),
            {"user_id": user_id, "day_iso": day_iso},
        )).scalar_one()
    return int(total or 0)


# Mood check-ins


async def add_mood_checkin(user_id: str, mood: str, note: str | None, day_iso: str) -> dict:
    record = {
        "id": _new_id(),
        "user_id": user_id,
        "mood": mood,
        "note": _clean_text(note),
        "date": day_iso,
        "created_at": utc_now_iso(),
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {MOOD_TABLE} (id, user_id, mood, note, date, created_at)
                VALUES (:id, :user_id, :mood, :note, :date, :created_at)
                """
            ),
            record,
        )
        await session.commit()
    return record


async def list_mood_checkins(
    user_id: str,
    start_iso: str | None = None,
    end_iso: str | None = None,
    newest_first: bool = False,
) -> list[dict]:
    clauses = ["user_id = :user_id"]
    params: dict = {"user_id": user_id}
    if start_iso:
        clauses.append("date >= :start_date")
        params["start_date"] = start_iso
    if end_iso:
        clauses.append("date <= :end_date")
        params["end_date"] = end_iso
    order = "DESC" if newest_first else "ASC"
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT id, user_id, mood, note, date, created_at
                FROM {MOOD_TABLE}
                WHERE {' AND '.join(clauses)}
                ORDER BY date {order}, created_at {order}
                """
            ),
            params,
        )).mappings().all()
    return [_normalize_row(row) for row in rows]


# Expenses


async def add_expense(user_id: str, payload: dict) -> dict:
    amount = round(float(payload.get("amount") or 0), 2)
    if amount <= 0:
        raise ValueError("Expense amount must be positive")
    record = {
        "id": _new_id(),
        "user_id": user_id,
        "amount": amount,
        "description": _clean_text(payload.get("description")),
        "category": normalize_choice(payload.get("category"), EXPENSE_CATEGORIES, "other"),
        "date": _iso_date(payload.get("date")),
        "created_at": utc_now_iso(),
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {EXPENSES_TABLE} (id, user_id, amount, description, category, date, created_at)
                VALUES (:id, :user_id, :amount, :description, :category, :date, :created_at)
                """
            ),
            record,
        )
        await session.commit()
    return record


async def list_expenses(user_id: str, start_iso: str, end_iso: str) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT id, user_id, amount, description, category, date, created_at
                FROM {EXPENSES_TABLE}
                WHERE user_id = :user_id
                  AND date BETWEEN :start_date AND :end_date
                ORDER BY date ASC, created_at ASC
                """
            ),
            {"user_id": user_id, "start_date": start_iso, "end_date": end_iso},
        )).mappings().all()
    return [_normalize_row(row) for row in rows]


# Relationship care


async def add_reminder(user_id: str, title: str, day_iso: str, reminder_type: str) -> dict:
    clean_title = _clean_text(title)
    if not clean_title:
        raise ValueError("Reminder title cannot be empty")
    record = {
        "id": _new_id(),
        "user_id": user_id,
        "title": clean_title,
        "date": _iso_date(day_iso),
        "type": normalize_choice(reminder_type, REMINDER_TYPES, REMINDER_TYPES[0]),
        "created_at": utc_now_iso(),
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {REMINDERS_TABLE} (id, user_id, title, date, type, created_at)
                VALUES (:id, :user_id, :title, :date, :type, :created_at)
                """
            ),
            record,
        )
        await session.commit()
    return record


async def list_reminders(user_id: str) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT id, user_id, title, date, type, created_at
                FROM {REMINDERS_TABLE}
                WHERE user_id = :user_id
                ORDER BY date ASC
                """
            ),
            {"user_id": user_id},
        )).mappings().all()
    return [_normalize_row(row) for row in rows]


async def add_sweet_message(user_id: str, content: str, is_ai_generated: bool = False) -> dict:
    clean_content = _clean_text(content)
    if not clean_content:
        raise ValueError("Message cannot be empty")
    record = {
        "id": _new_id(),
        "user_id": user_id,
        "content": clean_content,
        "is_ai_generated": int(bool(is_ai_generated)),
        "created_at": utc_now_iso(),
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {MESSAGES_TABLE} (id, user_id, content, is_ai_generated, created_at)
                VALUES (:id, :user_id, :content, :is_ai_generated, :created_at)
                """
            ),
            record,
        )
        await session.commit()
    return {**record, "is_ai_generated": bool(record["is_ai_generated"])}


async def list_sweet_messages(user_id: str) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT id, user_id, content, is_ai_generated, created_at
                FROM {MESSAGES_TABLE}
                WHERE user_id = :user_id
                ORDER BY created_at DESC
                """
            ),
            {"user_id": user_id},
        )).mappings().all()
    items = []
    for row in rows:
        payload = _normalize_row(row)
        payload["is_ai_generated"] = bool(payload.get("is_ai_generated"))
        items.append(payload)
    return items


# Notification preferences and reminder audit


def _normalize_preferences(row) -> dict:
    payload = _normalize_row(row)
    payload["task_reminders_enabled"] = bool(payload.get("task_reminders_enabled"))
    return payload


async def get_preferences(user_id: str) -> dict | None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(
                f"""
                SELECT id, user_id, task_reminders_enabled, reminder_days_before, reminder_hours_before,
                       created_at, updated_at
                FROM {PREFERENCES_TABLE}
                WHERE user_id = :user_id
                """
            ),
            {"user_id": user_id},
        )).mappings().fetchone()
    return _normalize_preferences(row) if row else None


async def get_or_create_preferences(user_id: str) -> dict:
    existing = await get_preferences(user_id)
    if existing:
        return existing
    now = utc_now_iso()
    record = {
        "id": _new_id(),
        "user_id": user_id,
        "task_reminders_enabled": int(DEFAULT_PREFERENCES["task_reminders_enabled"]),
        "reminder_days_before": DEFAULT_PREFERENCES["reminder_days_before"],
        "reminder_hours_before": DEFAULT_PREFERENCES["reminder_hours_before"],
        "created_at": now,
        "updated_at": now,
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {PREFERENCES_TABLE}
                (id, user_id, task_reminders_enabled, reminder_days_before, reminder_hours_before, created_at, updated_at)
                VALUES (:id, :user_id, :task_reminders_enabled, :reminder_days_before, :reminder_hours_before,
                        :created_at, :updated_at)
                ON CONFLICT(user_id) DO NOTHING
                """
            ),
            record,
        )
        await session.commit()
    return await get_preferences(user_id) or _normalize_preferences(record)


async def update_preferences(user_id: str, patch: dict) -> dict:
    await get_or_create_preferences(user_id)
    updates = []
    params: dict = {"user_id": user_id}
    for key in ("task_reminders_enabled", "reminder_days_before", "reminder_hours_before"):
        if key not in patch or patch[key] is None:
            continue
        value = patch[key]
        if key == "task_reminders_enabled":
            value = int(bool(value))
        else:
            value = int(value)
            if value < 0:
                raise ValueError(f"{key} cannot be negative")
        updates.append(f"{key} = :{key}")
        params[key] = value
    if updates:
        updates.append("updated_at = :updated_at")
        params["updated_at"] = utc_now_iso()
        session_factory = get_sessionmaker()
        async with session_factory() as session:
            await session.execute(
                sql_text(f"UPDATE {PREFERENCES_TABLE} SET {', '.join(updates)} WHERE user_id = :user_id"),
                params,
            )
            await session.commit()
    return await get_preferences(user_id)


async def record_task_notification(task_id: str, user_id: str, notification_type: str = "reminder") -> dict:
    record = {
        "id": _new_id(),
        "task_id": task_id,
        "user_id": user_id,
        "notification_type": notification_type,
        "sent_at": utc_now_iso(),
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {TASK_NOTIFICATIONS_TABLE} (id, task_id, user_id, notification_type, sent_at)
                VALUES (:id, :task_id, :user_id, :notification_type, :sent_at)
                """
            ),
            record,
        )
        await session.commit()
    return record


async def list_tasks_needing_reminders(today: date, user_id: str | None = None) -> list[dict]:
    """Open tasks due within each owner's reminder window and not yet reminded today."""
    clauses = ["t.status != 'completed'", "t.due_date IS NOT NULL", "t.due_date >= :today"]
    params: dict = {"today": today.isoformat()}
    if user_id:
        clauses.append("t.user_id = :user_id")
        params["user_id"] = user_id
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT t.id AS task_id, t.user_id, t.title, t.due_date, t.assigned_to_email,
                       p.task_reminders_enabled, p.reminder_days_before
                FROM {TASKS_TABLE} t
                LEFT JOIN {PREFERENCES_TABLE} p ON p.user_id = t.user_id
                WHERE {' AND '.join(clauses)}
                ORDER BY t.due_date ASC
                """
            ),
            params,
        )).mappings().all()

    candidates = []
    for row in rows:
        enabled = row.get("task_reminders_enabled")
        if enabled is not None and not bool(enabled):
            continue
        window = row.get("reminder_days_before")
        if window is None:
            window = DEFAULT_PREFERENCES["reminder_days_before"]
        days_until_due = (date.fromisoformat(str(row["due_date"])[:10]) - today).days
        if 0 <= days_until_due <= int(window):
            candidates.append(
                {
                    "task_id": row["task_id"],
                    "user_id": row["user_id"],
                    "title": row["title"],
                    "due_date": str(row["due_date"])[:10],
                    "assigned_to_email": row.get("assigned_to_email"),
                    "days_until_due": days_until_due,
                }
            )
    if not candidates:
        return []

    stmt = sql_text(
        f"""
        SELECT DISTINCT task_id
        FROM {TASK_NOTIFICATIONS_TABLE}
        WHERE notification_type = 'reminder'
          AND sent_at >= :today
          AND task_id IN :task_ids
        """
    ).bindparams(bindparam("task_ids", expanding=True))
    async with session_factory() as session:
        already_sent = {
            row[0]
            for row in (await session.execute(
                stmt,
                {"today": today.isoformat(), "task_ids": [item["task_id"] for item in candidates]},
            )).fetchall()
        }
    return [item for item in candidates if item["task_id"] not in already_sent]


# Google Calendar tokens


async def get_google_tokens(user_id: str) -> dict | None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(
                f"SELECT user_id, refresh_token_enc, access_token, expires_at, scope, updated_at FROM {GOOGLE_TOKENS_TABLE} WHERE user_id = :user_id"
            ),
            {"user_id": user_id},
        )).mappings().fetchone()
    return dict(row) if row else None


async def store_google_tokens(
    user_id: str,
    refresh_token_enc: str,
    access_token: str | None = None,
    expires_at: str | None = None,
    scope: str | None = None,
) -> None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {GOOGLE_TOKENS_TABLE}
                    (user_id, refresh_token_enc, access_token, expires_at, scope, updated_at)
                VALUES
                    (:user_id, :refresh_token_enc, :access_token, :expires_at, :scope, :updated_at)
                ON CONFLICT(user_id) DO UPDATE SET
                    refresh_token_enc = EXCLUDED.refresh_token_enc,
                    access_token = COALESCE(EXCLUDED.access_token, {GOOGLE_TOKENS_TABLE}.access_token),
                    expires_at = COALESCE(EXCLUDED.expires_at, {GOOGLE_TOKENS_TABLE}.expires_at),
                    scope = COALESCE(EXCLUDED.scope, {GOOGLE_TOKENS_TABLE}.scope),
                    updated_at = EXCLUDED.updated_at
                """
            ),
            {
                "user_id": user_id,
                "refresh_token_enc": refresh_token_enc,
                "access_token": access_token,
                "expires_at": expires_at,
                "scope": scope,
                "updated_at": utc_now_iso(),
            },
        )
        await session.commit()


async def update_google_access_token(user_id: str, access_token: str, expires_at: str, scope: str | None = None) -> None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                UPDATE {GOOGLE_TOKENS_TABLE}
                SET access_token = :access_token,
                    expires_at = :expires_at,
                    scope = COALESCE(:scope, scope),
                    updated_at = :updated_at
                WHERE user_id = :user_id
                """
            ),
            {
                "user_id": user_id,
                "access_token": access_token,
                "expires_at": expires_at,
                "scope": scope,
                "updated_at": utc_now_iso(),
            },
        )
        await session.commit()


async def delete_google_tokens(user_id: str) -> None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(f"DELETE FROM {GOOGLE_TOKENS_TABLE} WHERE user_id = :user_id"),
            {"user_id": user_id},
        )
        await session.commit()
