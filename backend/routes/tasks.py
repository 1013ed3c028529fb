from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder

from backend.auth import require_user
from backend.constants import TASK_STATUS_CYCLE, next_status
from backend.schemas import TaskCreate, TaskPatch
from backend.services import google_calendar_service, mailer
from backend.services.text_splitter import expand_titles
from backend import repositories

logger = logging.getLogger(__name__)

router = APIRouter()


def _normalize_task_patch(patch: dict) -> dict:
    clean = dict(patch or {})
    value = clean.get("due_date")
    if value is not None and hasattr(value, "isoformat"):
        clean["due_date"] = value.isoformat()
    return clean


@router.get("/v1/tasks")
async def list_tasks(
    status: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    user: dict = Depends(require_user),
):
    items = await repositories.list_tasks(user["id"], status=status, priority=priority, search=search)
    return {"items": jsonable_encoder(items)}


@router.get("/v1/tasks/assignee-suggestions")
async def assignee_suggestions(q: Optional[str] = Query(None), user: dict = Depends(require_user)):
    items = await repositories.list_assignee_suggestions(user["id"], query=q)
    return {"items": items}


@router.post("/v1/tasks")
async def create_tasks(payload: TaskCreate, background_tasks: BackgroundTasks, user: dict = Depends(require_user)):
    clean = _normalize_task_patch(payload.model_dump())
    try:
        titles = expand_titles(clean.get("title"))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    single = len(titles) == 1
    created = []
    try:
        for title in titles:
            record = {
                "title": title,
                "priority": clean.get("priority"),
                "due_date": clean.get("due_date"),
            }
            if single:
                record.update(
                    {
                        "description": clean.get("description"),
                        "assigned_to_email": clean.get("assigned_to_email"),
                        "assigned_to_name": clean.get("assigned_to_name"),
                    }
                )
            task = await repositories.create_task(user["id"], record)
            if payload.sync_to_calendar:
                event_id = await google_calendar_service.sync_to_calendar(
                    user["id"], lambda: google_calendar_service.task_event_body(task)
                )
                if event_id:
                    task = await repositories.update_task(user["id"], task["id"], {"google_event_id": event_id})
            created.append(task)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    if single and created[0].get("assigned_to_email"):
        task = created[0]
        background_tasks.add_task(
            mailer.notify_assignment_safely,
            task_title=task["title"],
            task_description=task.get("description"),
            assigned_to_email=task["assigned_to_email"],
            assigned_to_name=task.get("assigned_to_name"),
            assigned_by_email=user["email"],
            due_date=task.get("due_date"),
            priority=task["priority"],
        )
    return {"items": jsonable_encoder(created), "count": len(created)}


@router.patch("/v1/tasks/{task_id}")
async def patch_task(task_id: str, payload: TaskPatch, user: dict = Depends(require_user)):
    existing = await repositories.get_task(user["id"], task_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Task not found")
    try:
        record = await repositories.update_task(
            user["id"], task_id, _normalize_task_patch(payload.model_dump(exclude_unset=True))
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return jsonable_encoder(record)


@router.post("/v1/tasks/{task_id}/cycle-status")
async def cycle_task_status(task_id: str, user: dict = Depends(require_user)):
    existing = await repositories.get_task(user["id"], task_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Task not found")
    status = next_status(existing.get("status"), TASK_STATUS_CYCLE)
    record = await repositories.update_task(user["id"], task_id, {"status": status})
    return jsonable_encoder(record)


@router.delete("/v1/tasks/{task_id}")
async def delete_task(task_id: str, user: dict = Depends(require_user)):
    deleted = await repositories.delete_task(user["id"], task_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Task not found")
    return {"ok": True}
