APP_NAME = "LifeSync"

AUTH_STATE_PREFIXES = ("auth.", "cache.")
AUTH_TOKEN_KEY = "auth.token"
AUTH_USER_KEY = "auth.user"

PRIORITIES = ["low", "medium", "high"]
PRIORITY_META = {
    "high": {"weight": 3, "color": "#D95252", "marker": "🔴"},
    "medium": {"weight": 2, "color": "#D9C979", "marker": "🟡"},
    "low": {"weight": 1, "color": "#8FB6D9", "marker": "🟢"},
}

TASK_STATUSES = ["pending", "in-progress", "completed"]
TASK_STATUS_LABELS = {
    "pending": "⏳ Pending",
    "in-progress": "🔄 In progress",
    "completed": "✅ Completed",
}

EVENT_TYPES = ["meeting", "task", "personal", "break"]
EVENT_STATUS_LABELS = {
    "todo": "⬜ To do",
    "in-progress": "🔄 In progress",
    "done": "✅ Done",
}

EXPENSE_CATEGORIES = ["food", "transport", "entertainment", "shopping", "utilities", "other"]

CHECKIN_MOODS = ["excellent", "good", "neutral", "low", "stressed"]
JOURNAL_MOODS = ["happy", "grateful", "excited", "peaceful", "reflective"]
MOOD_EMOJIS = {
    "excellent": "🤩",
    "good": "😊",
    "neutral": "😐",
    "low": "😔",
    "stressed": "😫",
    "happy": "😄",
    "grateful": "🙏",
    "excited": "🎉",
    "peaceful": "🕊️",
    "reflective": "🤔",
}

REMINDER_TYPES = ["general", "date", "special", "holiday"]
MESSAGE_TYPES = {
    "sweet_message": "Sweet message",
    "mood_suggestion": "Mood-based suggestion",
    "reminder_suggestion": "Gesture idea",
}

ANALYTICS_RANGES = {"week": "Last 7 days", "month": "Last 30 days", "quarter": "Last 90 days"}

OVERVIEW_REFRESH_SECONDS = 30
TIMER_REFRESH_SECONDS = 1
TONE_FREQUENCY_HZ = 800
TONE_SECONDS = 0.5
TONE_SAMPLE_RATE = 44100
