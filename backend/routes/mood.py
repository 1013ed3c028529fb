from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder

from backend.auth import require_user
from backend.clock import local_today
from backend.constants import MOODS
from backend.schemas import MoodCreate
from backend import repositories

router = APIRouter()


@router.post("/v1/mood")
async def add_checkin(payload: MoodCreate, user: dict = Depends(require_user)):
    mood = payload.mood.strip().lower()
    if mood not in MOODS:
        raise HTTPException(status_code=400, detail=f"Unknown mood: {payload.mood}")
    day_iso = (payload.date or local_today()).isoformat()
    record = await repositories.add_mood_checkin(user["id"], mood, payload.note, day_iso)
    return jsonable_encoder(record)


@router.get("/v1/mood")
async def list_checkins(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    user: dict = Depends(require_user),
):
    end_day = end or local_today()
    start_day = start or end_day - timedelta(days=7)
    if start_day > end_day:
        raise HTTPException(status_code=400, detail="start must be on or before end")
    items = await repositories.list_mood_checkins(
        user["id"], start_day.isoformat(), end_day.isoformat(), newest_first=True
    )
    return {"items": jsonable_encoder(items)}
