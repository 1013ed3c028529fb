from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder

from backend.auth import require_user
from backend.clock import local_today
from backend.schemas import FocusDurationPayload, FocusTaskPayload
from backend.services.pomodoro import TimerBusy, TimerStartRejected, get_registry
from backend import repositories

router = APIRouter()


async def _timer(user: dict):
    return await get_registry().get(user["id"])


@router.get("/v1/focus/timer")
async def timer_state(user: dict = Depends(require_user)):
    return (await _timer(user)).snapshot()


@router.post("/v1/focus/timer/start")
async def start_timer(user: dict = Depends(require_user)):
    timer = await _timer(user)
    try:
        timer.start()
    except TimerStartRejected as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return timer.snapshot()


@router.post("/v1/focus/timer/pause")
async def pause_timer(user: dict = Depends(require_user)):
    timer = await _timer(user)
    timer.toggle_pause()
    return timer.snapshot()


@router.post("/v1/focus/timer/stop")
async def stop_timer(user: dict = Depends(require_user)):
    timer = await _timer(user)
    timer.stop()
    return timer.snapshot()


@router.post("/v1/focus/timer/reset")
async def reset_timer(user: dict = Depends(require_user)):
    timer = await _timer(user)
    timer.reset()
    return timer.snapshot()


@router.put("/v1/focus/timer/duration")
async def set_duration(payload: FocusDurationPayload, user: dict = Depends(require_user)):
    timer = await _timer(user)
    try:
        timer.set_focus_duration(payload.minutes)
    except TimerBusy as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return timer.snapshot()


@router.put("/v1/focus/timer/task")
async def select_task(payload: FocusTaskPayload, user: dict = Depends(require_user)):
    timer = await _timer(user)
    timer.select_task(payload.task_title)
    return timer.snapshot()


@router.get("/v1/focus/sessions")
async def recent_sessions(user: dict = Depends(require_user)):
    since = (local_today() - timedelta(days=7)).isoformat()
    items = await repositories.list_recent_focus_sessions(user["id"], since)
    return {"items": jsonable_encoder(items)}
