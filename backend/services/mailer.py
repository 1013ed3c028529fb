from __future__ import annotations

import logging
from datetime import date
from html import escape

import httpx

from backend.services.integration import IntegrationNotConfigured, api_error_message
from backend.settings import get_settings

logger = logging.getLogger(__name__)

RESEND_EMAILS_URL = "https://api.resend.com/emails"
PRIORITY_MARKERS = {"high": "🔴", "medium": "🟡", "low": "🟢"}


def _api_key() -> str:
    api_key = get_settings().resend_api_key
    if not api_key:
        raise IntegrationNotConfigured("Resend API key not configured")
    return api_key


def _long_date(value: str | None) -> str:
    if not value:
        return ""
    try:
        parsed = date.fromisoformat(str(value)[:10])
    except ValueError:
        return str(value)
    return parsed.strftime("%A, %B %d, %Y").replace(" 0", " ")


def due_phrase(days_until_due: int) -> str:
    if days_until_due == 0:
        return "today"
    return f"in {days_until_due} day{'' if days_until_due == 1 else 's'}"


def assignment_subject(task_title: str) -> str:
    return f"📋 New Task Assigned: {task_title}"


def render_assignment_html(
    task_title: str,
    assigned_to_email: str,
    assigned_by_email: str,
    priority: str = "medium",
    task_description: str | None = None,
    assigned_to_name: str | None = None,
    due_date: str | None = None,
) -> str:
    display_name = assigned_to_name or assigned_to_email.split("@")[0]
    due_text = f"Due: {_long_date(due_date)}" if due_date else "No due date set"
    marker = PRIORITY_MARKERS.get(priority, PRIORITY_MARKERS["medium"])
    description_block = ""
    if task_description:
        description_block = (
            f"<p style=\"color:#6c757d;line-height:1.6;\"><strong>Description:</strong><br>{escape(task_description)}</p>"
        )
    return f"""
    <div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto;padding:20px;">
      <h1 style="color:#333;font-size:24px;">📋 New Task Assigned to You!</h1>
      <div style="background:#f8f9fa;padding:20px;border-radius:8px;">
        <h2 style="color:#495057;font-size:20px;">{escape(task_title)}</h2>
        {description_block}
        <p><strong>Priority:</strong> {marker} {escape(priority.capitalize())}</p>
        <p><strong>📅 {escape(due_text)}</strong></p>
      </div>
      <p style="color:#155724;">
        <strong>👋 Hi {escape(display_name)}!</strong><br>
        You have been assigned a new task by <strong>{escape(assigned_by_email)}</strong>.
        Please review the details above and take action as needed.
      </p>
      <hr style="border:none;border-top:1px solid #dee2e6;">
      <p style="color:#6c757d;font-size:14px;text-align:center;">
        This email was sent from <strong>LifeSync</strong>, your AI-powered life management assistant.
      </p>
    </div>
    """


def reminder_subject(task_title: str, days_until_due: int) -> str:
    return f"📅 Task Reminder: \"{task_title}\" due {due_phrase(days_until_due)}"


def render_reminder_html(
    task_title: str, due_date: str, days_until_due: int, assigned_to_email: str | None = None
) -> str:
    status = "🔴 Due Today!" if days_until_due == 0 else f"⏰ Due {due_phrase(days_until_due)}"
    nudge = (
        "Don't forget to complete this task today."
        if days_until_due == 0
        else "Plan ahead to meet your deadline."
    )
    assignee = (
        f"<p><strong>Assigned to:</strong> {escape(assigned_to_email)}</p>" if assigned_to_email else ""
    )
    return f"""
    <div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto;padding:20px;">
      <h1 style="color:#333;font-size:24px;">📅 Task Reminder</h1>
      <div style="background:#f8f9fa;padding:20px;border-radius:8px;">
        <h2 style="color:#495057;font-size:20px;">{escape(task_title)}</h2>
        <p><strong>Due Date:</strong> {escape(_long_date(due_date))}</p>
        {assignee}
        <p><strong>Status:</strong> {status}</p>
      </div>
      <p>Stay organized and on track with LifeSync! {nudge}</p>
      <p style="color:#6c757d;font-size:14px;text-align:center;">
        This reminder was automatically sent by LifeSync Task Manager.<br>
        You can adjust your notification preferences in the app settings.
      </p>
    </div>
    """


async def send_email(to: list[str], subject: str, html: str, sender: str | None = None) -> dict:
    api_key = _api_key()
    payload = {
        "from": sender or get_settings().mail_from,
        "to": to,
        "subject": subject,
        "html": html,
    }
    async with httpx.AsyncClient(timeout=20) as client:
        response = await client.post(
            RESEND_EMAILS_URL,
            headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
            json=payload,
        )
    if response.status_code >= 400:
        message = api_error_message(response)
        raise RuntimeError(f"Failed to send email ({response.status_code}): {message}")
    logger.info("Email sent to %s: %s", ", ".join(to), subject)
    return response.json() if response.content else {}


async def send_task_assignment(
    task_title: str,
    assigned_to_email: str,
    assigned_by_email: str,
    priority: str = "medium",
    task_description: str | None = None,
    assigned_to_name: str | None = None,
    due_date: str | None = None,
) -> dict:
    html = render_assignment_html(
        task_title,
        assigned_to_email,
        assigned_by_email,
        priority=priority,
        task_description=task_description,
        assigned_to_name=assigned_to_name,
        due_date=due_date,
    )
    return await send_email(
        [assigned_to_email],
        assignment_subject(task_title),
        html,
        sender=get_settings().assignment_mail_from,
    )


async def send_task_reminder(
    to_email: str,
    task_title: str,
    due_date: str,
    days_until_due: int,
    assigned_to_email: str | None = None,
) -> dict:
    return await send_email(
        [to_email],
        reminder_subject(task_title, days_until_due),
        render_reminder_html(task_title, due_date, days_until_due, assigned_to_email),
    )


async def notify_assignment_safely(**kwargs) -> None:
    """Fire-and-forget wrapper used after task creation."""
    try:
        await send_task_assignment(**kwargs)
    except Exception as exc:
        logger.warning("Assignment email to %s failed: %s", kwargs.get("assigned_to_email"), exc)
