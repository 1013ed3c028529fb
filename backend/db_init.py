from __future__ import annotations

import logging

from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError

from backend.db import get_engine

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
SESSIONS_TABLE = "user_sessions"
TASKS_TABLE = "tasks"
EVENTS_TABLE = "daily_events"
FOCUS_TABLE = "focus_sessions"
MOOD_TABLE = "mood_checkins"
EXPENSES_TABLE = "expenses"
REMINDERS_TABLE = "relationship_reminders"
MESSAGES_TABLE = "sweet_messages"
PREFERENCES_TABLE = "notification_preferences"
TASK_NOTIFICATIONS_TABLE = "task_notifications"
GOOGLE_TOKENS_TABLE = "google_calendar_tokens"


TABLE_DDL = [
    f"""
    CREATE TABLE IF NOT EXISTS {USERS_TABLE} (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        display_name TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {SESSIONS_TABLE} (
        token TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        expires_at TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {TASKS_TABLE} (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT,
        priority TEXT NOT NULL DEFAULT 'medium',
        status TEXT NOT NULL DEFAULT 'pending',
        due_date TEXT,
        google_event_id TEXT,
        assigned_to_email TEXT,
        assigned_to_name TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {EVENTS_TABLE} (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT,
        start_time TEXT NOT NULL,
        duration_minutes INTEGER NOT NULL DEFAULT 60,
        location TEXT,
        event_type TEXT NOT NULL DEFAULT 'task',
        date TEXT NOT NULL,
        google_event_id TEXT,
        status TEXT NOT NULL DEFAULT 'todo',
        created_at TEXT NOT NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {FOCUS_TABLE} (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        duration_minutes INTEGER NOT NULL,
        task_title TEXT,
        date TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {MOOD_TABLE} (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        mood TEXT NOT NULL,
        note TEXT,
        date TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {EXPENSES_TABLE} (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        amount DOUBLE PRECISION NOT NULL,
        description TEXT,
        category TEXT,
        date TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {REMINDERS_TABLE} (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        date TEXT NOT NULL,
        type TEXT NOT NULL DEFAULT 'general',
        created_at TEXT NOT NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {MESSAGES_TABLE} (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        content TEXT NOT NULL,
        is_ai_generated INTEGER DEFAULT 0,
        created_at TEXT NOT NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {PREFERENCES_TABLE} (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL UNIQUE,
        task_reminders_enabled INTEGER NOT NULL DEFAULT 1,
        reminder_days_before INTEGER NOT NULL DEFAULT 1,
        reminder_hours_before INTEGER NOT NULL DEFAULT 24,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {TASK_NOTIFICATIONS_TABLE} (
        id TEXT PRIMARY KEY,
        task_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        notification_type TEXT NOT NULL,
        sent_at TEXT NOT NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {GOOGLE_TOKENS_TABLE} (
        user_id TEXT PRIMARY KEY,
        refresh_token_enc TEXT NOT NULL,
        access_token TEXT,
        expires_at TEXT,
        scope TEXT,
        updated_at TEXT NOT NULL
    )
    """,
]

INDEX_DDL = [
    f"CREATE INDEX IF NOT EXISTS idx_{SESSIONS_TABLE}_user ON {SESSIONS_TABLE} (user_id)",
    f"CREATE INDEX IF NOT EXISTS idx_{TASKS_TABLE}_user_due ON {TASKS_TABLE} (user_id, due_date)",
    f"CREATE INDEX IF NOT EXISTS idx_{TASKS_TABLE}_user_created ON {TASKS_TABLE} (user_id, created_at)",
    f"CREATE INDEX IF NOT EXISTS idx_{EVENTS_TABLE}_user_date ON {EVENTS_TABLE} (user_id, date, start_time)",
    f"CREATE INDEX IF NOT EXISTS idx_{FOCUS_TABLE}_user_date ON {FOCUS_TABLE} (user_id, date)",
    f"CREATE INDEX IF NOT EXISTS idx_{MOOD_TABLE}_user_date ON {MOOD_TABLE} (user_id, date)",
    f"CREATE INDEX IF NOT EXISTS idx_{EXPENSES_TABLE}_user_date ON {EXPENSES_TABLE} (user_id, date)",
    f"CREATE INDEX IF NOT EXISTS idx_{TASK_NOTIFICATIONS_TABLE}_task ON {TASK_NOTIFICATIONS_TABLE} (task_id, sent_at)",
]


async def init_db():
    engine = get_engine()
    async with engine.begin() as conn:
        for statement in TABLE_DDL:
            await conn.execute(sql_text(statement))

    async def ensure_index(index_sql: str) -> None:
        try:
            async with engine.begin() as conn:
                await conn.execute(sql_text(index_sql))
        except SQLAlchemyError as exc:
            logger.warning("Skipping index creation: %s", exc)

    for index_sql in INDEX_DDL:
        await ensure_index(index_sql)
