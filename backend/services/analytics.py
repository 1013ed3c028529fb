from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, timedelta

from backend import repositories
from backend.clock import local_today
from backend.constants import MOOD_SCORES, NO_MOOD_DATA_SCORE, UNKNOWN_MOOD_SCORE

logger = logging.getLogger(__name__)

RANGE_DAYS = {"week": 7, "month": 30, "quarter": 90}
SNAPSHOT_MOOD_DAYS = 7


def mood_score(mood: str | None) -> int:
    return MOOD_SCORES.get(str(mood or "").strip().lower(), UNKNOWN_MOOD_SCORE)


def window_bounds(range_name: str, today: date | None = None) -> tuple[date, date]:
    if range_name not in RANGE_DAYS:
        raise ValueError(f"Unknown range: {range_name}")
    end = today or local_today()
    return end - timedelta(days=RANGE_DAYS[range_name]), end


def _day_key(value) -> str:
    return str(value or "")[:10]


def group_focus_by_day(sessions: list[dict]) -> dict[str, dict]:
    buckets: dict[str, dict] = {}
    for session in sessions:
        day = _day_key(session.get("date"))
        bucket = buckets.setdefault(day, {"date": day, "total_minutes": 0, "sessions": 0})
        bucket["total_minutes"] += int(session.get("duration_minutes") or 0)
        bucket["sessions"] += 1
    return buckets


def group_mood_by_day(checkins: list[dict]) -> dict[str, dict]:
    buckets: dict[str, dict] = {}
    for checkin in checkins:
        day = _day_key(checkin.get("date"))
        score = mood_score(checkin.get("mood"))
        bucket = buckets.get(day)
        if bucket is None:
            buckets[day] = {"date": day, "mood": float(score), "count": 1}
            continue
        bucket["mood"] = (bucket["mood"] * bucket["count"] + score) / (bucket["count"] + 1)
        bucket["count"] += 1
    return buckets


def group_tasks_by_day(tasks: list[dict]) -> dict[str, dict]:
    buckets: dict[str, dict] = {}
    for task in tasks:
        day = _day_key(task.get("created_at"))
        bucket = buckets.setdefault(day, {"date": day, "created": 0, "completed": 0})
        bucket["created"] += 1
        if task.get("status") == "completed":
            bucket["completed"] += 1
    return buckets


def group_expenses_by_day(expenses: list[dict]) -> dict[str, dict]:
    buckets: dict[str, dict] = {}
    for expense in expenses:
        day = _day_key(expense.get("date"))
        bucket = buckets.setdefault(day, {"date": day, "amount": 0.0, "count": 0})
        bucket["amount"] += float(expense.get("amount") or 0)
        bucket["count"] += 1
    return buckets


def expenses_by_category(expenses: list[dict]) -> list[dict]:
    totals: dict[str, float] = defaultdict(float)
    for expense in expenses:
        totals[expense.get("category") or "other"] += float(expense.get("amount") or 0)
    return [
        {"category": category, "amount": round(amount, 2)}
        for category, amount in sorted(totals.items(), key=lambda item: item[1], reverse=True)
    ]


def as_series(buckets: dict[str, dict]) -> list[dict]:
    return [buckets[key] for key in sorted(buckets)]


def summarize(focus: list[dict], moods: list[dict], tasks: list[dict], expenses: list[dict]) -> dict:
    total_tasks = len(tasks)
    completed_tasks = sum(1 for task in tasks if task.get("status") == "completed")
    scores = [mood_score(item.get("mood")) for item in moods]
    return {
        "total_focus_minutes": sum(int(item.get("duration_minutes") or 0) for item in focus),
        "total_tasks": total_tasks,
        "completed_tasks": completed_tasks,
        "total_expenses": round(sum(float(item.get("amount") or 0) for item in expenses), 2),
        "avg_mood": sum(scores) / len(scores) if scores else 0,
        "completion_rate": (completed_tasks / total_tasks) * 100 if total_tasks else 0,
    }


def build_analytics(
    focus: list[dict],
    moods: list[dict],
    tasks: list[dict],
    expenses: list[dict],
) -> dict:
    return {
        "focus": as_series(group_focus_by_day(focus)),
        "mood": as_series(group_mood_by_day(moods)),
        "tasks": as_series(group_tasks_by_day(tasks)),
        "expenses": as_series(group_expenses_by_day(expenses)),
        "expense_categories": expenses_by_category(expenses),
        "summary": summarize(focus, moods, tasks, expenses),
    }


def empty_analytics() -> dict:
    return build_analytics([], [], [], [])


async def load_analytics(user_id: str, range_name: str, today: date | None = None) -> dict:
    start, end = window_bounds(range_name, today)
    start_iso, end_iso = start.isoformat(), end.isoformat()
    try:
        focus = await repositories.list_focus_sessions(user_id, start_iso, end_iso)
        moods = await repositories.list_mood_checkins(user_id, start_iso, end_iso)
        tasks = await repositories.list_tasks_created_between(user_id, start_iso, end_iso)
        expenses = await repositories.list_expenses(user_id, start_iso, end_iso)
    except Exception:
        logger.exception("Failed to load analytics for %s", user_id)
        payload = empty_analytics()
    else:
        payload = build_analytics(focus, moods, tasks, expenses)
    payload.update({"range": range_name, "start": start_iso, "end": end_iso})
    return payload


def today_snapshot(tasks: list[dict], focus_minutes: int, moods: list[dict], expenses: list[dict]) -> dict:
    completed = sum(1 for task in tasks if task.get("status") == "completed")
    if moods:
        avg_mood = sum(mood_score(item.get("mood")) for item in moods) / len(moods)
    else:
        avg_mood = NO_MOOD_DATA_SCORE
    spend = sum(float(item.get("amount") or 0) for item in expenses)
    return {
        "tasks_today": {"completed": completed, "total": len(tasks)},
        "focus_hours": round(focus_minutes / 60, 1),
        "mood_score": round(avg_mood, 1),
        "todays_spend": round(spend),
    }


def empty_snapshot() -> dict:
    return {
        "tasks_today": {"completed": 0, "total": 0},
        "focus_hours": 0,
        "mood_score": NO_MOOD_DATA_SCORE,
        "todays_spend": 0,
    }


async def load_today_snapshot(user_id: str, today: date | None = None) -> dict:
    day = today or local_today()
    day_iso = day.isoformat()
    try:
        tasks = await repositories.list_tasks_for_day(user_id, day_iso)
        focus_minutes = await repositories.sum_focus_minutes(user_id, day_iso)
        moods = await repositories.list_mood_checkins(
            user_id, (day - timedelta(days=SNAPSHOT_MOOD_DAYS)).isoformat(), None
        )
        expenses = await repositories.list_expenses(user_id, day_iso, day_iso)
    except Exception:
        logger.exception("Failed to load today snapshot for %s", user_id)
        return empty_snapshot()
    return today_snapshot(tasks, focus_minutes, moods, expenses)
