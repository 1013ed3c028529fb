from __future__ import annotations

PRIORITIES = ["low", "medium", "high"]
DEFAULT_PRIORITY = "medium"

TASK_STATUS_CYCLE = ["pending", "in-progress", "completed"]
EVENT_STATUS_CYCLE = ["todo", "in-progress", "done"]

EVENT_TYPES = ["meeting", "task", "personal", "break"]
DEFAULT_EVENT_TYPE = "task"

REMINDER_TYPES = ["general", "date", "special", "holiday"]

EXPENSE_CATEGORIES = ["food", "transport", "entertainment", "shopping", "utilities", "other"]

CHECKIN_MOODS = ["excellent", "good", "neutral", "low", "stressed"]
JOURNAL_MOODS = ["happy", "grateful", "excited", "peaceful", "reflective"]
MOODS = CHECKIN_MOODS + JOURNAL_MOODS

MOOD_SCORES = {
    "excellent": 10,
    "excited": 10,
    "happy": 9,
    "good": 8,
    "grateful": 8,
    "peaceful": 8,
    "neutral": 6,
    "reflective": 6,
    "low": 4,
    "stressed": 2,
}
UNKNOWN_MOOD_SCORE = 6
NO_MOOD_DATA_SCORE = 7.5

MESSAGE_TYPES = ["sweet_message", "mood_suggestion", "reminder_suggestion"]


def next_status(current: str | None, cycle: list[str]) -> str:
    """Return the status that follows ``current`` in ``cycle``, wrapping to the start."""
    if current not in cycle:
        return cycle[0]
    return cycle[(cycle.index(current) + 1) % len(cycle)]


def normalize_choice(value, choices: list[str], default: str) -> str:
    cleaned = str(value or "").strip().lower()
    return cleaned if cleaned in choices else default
