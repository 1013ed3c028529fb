from datetime import date

from dashboard.data import api_client


def _iso(value):
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


# Session


def sign_in(email, password):
    return api_client.post(
        "/v1/auth/sign-in",
        json={"email": email, "password": password},
        authenticated=False,
    )


def sign_up(email, password, display_name=None):
    return api_client.post(
        "/v1/auth/sign-up",
        json={"email": email, "password": password, "display_name": display_name},
        authenticated=False,
    )


def sign_out(scope="global"):
    return api_client.post("/v1/auth/sign-out", params={"scope": scope})


def today_overview():
    return api_client.get("/v1/dashboard/today")


# Tasks


def list_tasks(status=None, priority=None, search=None):
    params = {key: value for key, value in {"status": status, "priority": priority, "search": search}.items() if value}
    return api_client.get("/v1/tasks", params=params).get("items", [])


def add_tasks(title, priority="medium", due_date=None, description=None, assignee_email=None, assignee_name=None, sync=False):
    payload = {
        "title": title,
        "priority": priority,
        "due_date": _iso(due_date),
        "description": description or None,
        "assigned_to_email": assignee_email or None,
        "assigned_to_name": assignee_name or None,
        "sync_to_calendar": bool(sync),
    }
    return api_client.post("/v1/tasks", json=payload).get("items", [])


def cycle_task_status(task_id):
    return api_client.post(f"/v1/tasks/{task_id}/cycle-status")


def delete_task(task_id):
    return api_client.request("DELETE", f"/v1/tasks/{task_id}")


def assignee_suggestions(query=None):
    params = {"q": query} if query else None
    return api_client.get("/v1/tasks/assignee-suggestions", params=params).get("items", [])


# Planner


def list_events(day):
    return api_client.get("/v1/planner/events", params={"day": _iso(day)}).get("items", [])


def add_events(title, day, start_time, duration_minutes=60, event_type="task", location=None, description=None, sync=False):
    payload = {
        "title": title,
        "date": _iso(day),
        "start_time": start_time,
        "duration_minutes": int(duration_minutes),
        "event_type": event_type,
        "location": location or None,
        "description": description or None,
        "sync_to_calendar": bool(sync),
    }
    return api_client.post("/v1/planner/events", json=payload).get("items", [])


def cycle_event_status(event_id):
    return api_client.post(f"/v1/planner/events/{event_id}/cycle-status")


def delete_event(event_id):
    return api_client.request("DELETE", f"/v1/planner/events/{event_id}")


# Focus


def timer_state():
    return api_client.get("/v1/focus/timer", timeout=5)


def timer_action(action):
    return api_client.post(f"/v1/focus/timer/{action}")


def set_focus_duration(minutes):
    return api_client.request("PUT", "/v1/focus/timer/duration", json={"minutes": int(minutes)})


def select_focus_task(task_title):
    return api_client.request("PUT", "/v1/focus/timer/task", json={"task_title": task_title})


def recent_focus_sessions():
    return api_client.get("/v1/focus/sessions").get("items", [])


# Mood and expenses


def add_mood(mood, note=None, day=None):
    return api_client.post("/v1/mood", json={"mood": mood, "note": note or None, "date": _iso(day)})


def list_moods(start=None, end=None):
    params = {key: _iso(value) for key, value in {"start": start, "end": end}.items() if value}
    return api_client.get("/v1/mood", params=params).get("items", [])


def add_expense(amount, category, description=None, day=None):
    payload = {
        "amount": float(amount),
        "category": category,
        "description": description or None,
        "date": _iso(day),
    }
    return api_client.post("/v1/expenses", json=payload)


def list_expenses(start=None, end=None):
    params = {key: _iso(value) for key, value in {"start": start, "end": end}.items() if value}
    return api_client.get("/v1/expenses", params=params)


# Relationship care


def relationship_overview():
    return api_client.get("/v1/relationship")


def add_reminder(title, day, reminder_type):
    return api_client.post(
        "/v1/relationship/reminders",
        json={"title": title, "date": _iso(day), "type": reminder_type},
    )


def add_sweet_message(content, is_ai_generated=False):
    return api_client.post(
        "/v1/relationship/messages",
        json={"content": content, "is_ai_generated": bool(is_ai_generated)},
    )


def generate_message(message_type, context=None):
    return api_client.post(
        "/v1/messages/generate",
        json={"type": message_type, "context": context or {}},
        timeout=30,
    )


# Analytics


def analytics(range_name):
    return api_client.get("/v1/analytics", params={"range": range_name}, timeout=20)


# Notifications and calendar


def notification_preferences():
    return api_client.get("/v1/notifications/preferences")


def update_notification_preferences(patch):
    return api_client.request("PATCH", "/v1/notifications/preferences", json=patch)


def due_reminders():
    return api_client.get("/v1/notifications/due").get("items", [])


def run_reminders():
    return api_client.post("/v1/notifications/reminders/run", timeout=60)


def calendar_status():
    return api_client.get("/v1/calendar/status")


def calendar_connect_url():
    return api_client.get("/v1/oauth/google/connect").get("url")


def calendar_disconnect():
    return api_client.request("DELETE", "/v1/calendar/connection")


def upcoming_calendar_events(max_results=10):
    return api_client.get("/v1/calendar/events/upcoming", params={"max_results": max_results}).get("items", [])


def calendar_credentials():
    return api_client.get("/v1/calendar/credentials")
