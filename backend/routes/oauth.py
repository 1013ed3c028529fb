from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse

from backend.auth import require_user
from backend.services import google_calendar_service
from backend.services.integration import IntegrationNotConfigured

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/v1/oauth/google/connect")
async def google_connect(user: dict = Depends(require_user)):
    try:
        url = google_calendar_service.build_connect_url(user["id"])
    except IntegrationNotConfigured as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"url": url}


@router.get("/v1/oauth/google/callback")
async def google_callback(code: str, state: str):
    try:
        user_id = google_calendar_service.user_id_from_state(state)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    try:
        await google_calendar_service.exchange_code_for_tokens(user_id, code)
    except RuntimeError as exc:
        logger.warning("Google OAuth callback failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc))
    return HTMLResponse("<p>Google Calendar connected. You can close this tab and return to LifeSync.</p>")
