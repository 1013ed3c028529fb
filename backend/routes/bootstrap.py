from __future__ import annotations

from fastapi import APIRouter, Depends

from backend.auth import require_user
from backend.clock import local_today
from backend.services import analytics
from backend.services.pomodoro import get_registry

router = APIRouter()


@router.get("/v1/dashboard/today")
async def today(user: dict = Depends(require_user)):
    snapshot = await analytics.load_today_snapshot(user["id"])
    timer = await get_registry().get(user["id"])
    return {
        "date": local_today().isoformat(),
        "user": user,
        "snapshot": snapshot,
        "timer": timer.snapshot(),
    }
