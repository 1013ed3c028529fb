from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from backend.auth import require_user
from backend.clock import local_today
from backend.schemas import PreferencesPatch, TaskAssignmentEmail, TaskReminderEmail
from backend.services import mailer
from backend.services.integration import IntegrationNotConfigured
from backend.workers import reminder_worker
from backend import repositories

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/v1/notifications/preferences")
async def get_preferences(user: dict = Depends(require_user)):
    return await repositories.get_or_create_preferences(user["id"])


@router.patch("/v1/notifications/preferences")
async def patch_preferences(payload: PreferencesPatch, user: dict = Depends(require_user)):
    try:
        return await repositories.update_preferences(user["id"], payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/v1/notifications/due")
async def due_reminders(user: dict = Depends(require_user)):
    items = await repositories.list_tasks_needing_reminders(local_today(), user_id=user["id"])
    return {"items": items}


@router.post("/v1/notifications/task-assignment")
async def send_task_assignment(payload: TaskAssignmentEmail, user: dict = Depends(require_user)):
    try:
        return await mailer.send_task_assignment(**payload.model_dump())
    except IntegrationNotConfigured as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except RuntimeError as exc:
        logger.warning("Assignment email failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc))


@router.post("/v1/notifications/task-reminder")
async def send_task_reminder(payload: TaskReminderEmail, user: dict = Depends(require_user)):
    if payload.user_id != user["id"]:
        raise HTTPException(status_code=403, detail="Cannot send reminders for another user")
    task = await repositories.get_task(user["id"], payload.task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    try:
        await reminder_worker.deliver_reminder(
            payload.task_id,
            payload.user_id,
            payload.task_title,
            payload.due_date,
            payload.days_until_due,
            assigned_to_email=payload.assigned_to_email,
        )
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except IntegrationNotConfigured as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except RuntimeError as exc:
        logger.warning("Reminder email failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc))
    return {"success": True, "message": "Task reminder sent successfully"}


@router.post("/v1/notifications/reminders/run")
async def run_reminders(user: dict = Depends(require_user)):
    sent = await reminder_worker.process_reminders_once(user_id=user["id"])
    return {"ok": True, "sent": sent}
