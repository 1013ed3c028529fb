from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from backend.auth import require_user
from backend.schemas import CalendarEventCreate
from backend.services import google_calendar_service
from backend.services.google_calendar_service import CalendarNotConnected

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/v1/calendar/credentials")
async def calendar_credentials(user: dict = Depends(require_user)):
    payload = google_calendar_service.credentials()
    if not payload["credentials_set"]:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Google Calendar credentials not configured",
                "credentials_set": False,
            },
        )
    return payload


@router.get("/v1/calendar/status")
async def calendar_status(user: dict = Depends(require_user)):
    return {
        "connected": await google_calendar_service.is_connected(user["id"]),
        "credentials_set": google_calendar_service.credentials()["credentials_set"],
    }


@router.delete("/v1/calendar/connection")
async def calendar_disconnect(user: dict = Depends(require_user)):
    await google_calendar_service.disconnect(user["id"])
    return {"ok": True}


@router.get("/v1/calendar/events/upcoming")
async def upcoming_events(
    max_results: int = Query(10, ge=1, le=50),
    user: dict = Depends(require_user),
):
    try:
        items = await google_calendar_service.list_upcoming_events(user["id"], max_results=max_results)
    except CalendarNotConnected as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except RuntimeError as exc:
        logger.warning("Calendar listing failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc))
    return {"items": items}


@router.post("/v1/calendar/events")
async def create_calendar_event(payload: CalendarEventCreate, user: dict = Depends(require_user)):
    body = google_calendar_service.build_event_body(
        payload.summary,
        payload.start,
        payload.end,
        payload.time_zone,
        location=payload.location,
        description=payload.description,
    )
    try:
        return await google_calendar_service.create_event(user["id"], body)
    except CalendarNotConnected as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except RuntimeError as exc:
        logger.warning("Calendar event creation failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc))
