from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder

from backend.auth import require_user
from backend.clock import local_today
from backend.constants import EVENT_STATUS_CYCLE, next_status
from backend.schemas import EventCreate
from backend.services import google_calendar_service
from backend.services.text_splitter import expand_titles
from backend.settings import get_settings
from backend import repositories

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/v1/planner/events")
async def list_events(day: Optional[date] = Query(None), user: dict = Depends(require_user)):
    day_iso = (day or local_today()).isoformat()
    items = await repositories.list_events(user["id"], day_iso)
    return {"date": day_iso, "items": jsonable_encoder(items)}


@router.post("/v1/planner/events")
async def create_events(payload: EventCreate, user: dict = Depends(require_user)):
    try:
        titles = expand_titles(payload.title)
        start_time = repositories.normalize_start_time(payload.start_time)
        if not start_time:
            raise ValueError("Event start time is required")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    single = len(titles) == 1
    time_zone = get_settings().app_timezone
    created = []
    try:
        for title in titles:
            record = {
                "title": title,
                "date": payload.date.isoformat(),
                "start_time": start_time,
                "duration_minutes": payload.duration_minutes,
                "event_type": payload.event_type,
                "location": payload.location,
            }
            if single:
                record["description"] = payload.description
            event = await repositories.create_event(user["id"], record)
            if payload.sync_to_calendar:
                event_id = await google_calendar_service.sync_to_calendar(
                    user["id"], lambda: google_calendar_service.planner_event_body(event, time_zone)
                )
                if event_id:
                    event = await repositories.set_event_google_id(user["id"], event["id"], event_id)
            created.append(event)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"items": jsonable_encoder(created), "count": len(created)}


@router.post("/v1/planner/events/{event_id}/cycle-status")
async def cycle_event_status(event_id: str, user: dict = Depends(require_user)):
    existing = await repositories.get_event(user["id"], event_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Event not found")
    status = next_status(existing.get("status"), EVENT_STATUS_CYCLE)
    return jsonable_encoder(await repositories.set_event_status(user["id"], event_id, status))


@router.delete("/v1/planner/events/{event_id}")
async def delete_event(event_id: str, user: dict = Depends(require_user)):
    if not await repositories.delete_event(user["id"], event_id):
        raise HTTPException(status_code=404, detail="Event not found")
    return {"ok": True}
