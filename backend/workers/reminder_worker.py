from __future__ import annotations

import asyncio
import logging

from backend import repositories
from backend.clock import local_today
from backend.settings import get_settings
from backend.services import mailer

logger = logging.getLogger(__name__)


async def deliver_reminder(
    task_id: str,
    user_id: str,
    task_title: str,
    due_date: str,
    days_until_due: int,
    assigned_to_email: str | None = None,
) -> dict:
    user = await repositories.get_user(user_id)
    if not user or not user.get("email"):
        raise LookupError("User email not found")
    response = await mailer.send_task_reminder(
        user["email"], task_title, due_date, days_until_due, assigned_to_email=assigned_to_email
    )
    await repositories.record_task_notification(task_id, user_id, "reminder")
    return response


async def process_reminders_once(user_id: str | None = None) -> int:
    due = await repositories.list_tasks_needing_reminders(local_today(), user_id=user_id)
    sent = 0
    for item in due:
        try:
            await deliver_reminder(
                item["task_id"],
                item["user_id"],
                item["title"],
                item["due_date"],
                item["days_until_due"],
                assigned_to_email=item.get("assigned_to_email"),
            )
            sent += 1
        except Exception as exc:
            logger.warning("Reminder for task %s failed: %s", item["task_id"], exc)
    if due:
        logger.info("Sent %s of %s task reminders", sent, len(due))
    return sent


async def run_forever() -> None:
    interval = get_settings().reminder_interval_seconds
    while True:
        await process_reminders_once()
        await asyncio.sleep(interval)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    asyncio.run(run_forever())
