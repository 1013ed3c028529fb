from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder

from backend.auth import require_user
from backend.schemas import MessageRequest, ReminderCreate, SweetMessageCreate
from backend.services import message_generator
from backend.services.integration import IntegrationNotConfigured
from backend import repositories

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/v1/relationship")
async def relationship_overview(user: dict = Depends(require_user)):
    messages = await repositories.list_sweet_messages(user["id"])
    moods = await repositories.list_mood_checkins(user["id"], newest_first=True)
    reminders = await repositories.list_reminders(user["id"])
    return {
        "messages": jsonable_encoder(messages),
        "moods": jsonable_encoder(moods),
        "reminders": jsonable_encoder(reminders),
    }


@router.post("/v1/relationship/reminders")
async def add_reminder(payload: ReminderCreate, user: dict = Depends(require_user)):
    try:
        record = await repositories.add_reminder(user["id"], payload.title, payload.date.isoformat(), payload.type)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return jsonable_encoder(record)


@router.post("/v1/relationship/messages")
async def add_message(payload: SweetMessageCreate, user: dict = Depends(require_user)):
    try:
        record = await repositories.add_sweet_message(user["id"], payload.content, payload.is_ai_generated)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return jsonable_encoder(record)


@router.post("/v1/messages/generate")
async def generate_message(payload: MessageRequest, user: dict = Depends(require_user)):
    try:
        message = await message_generator.generate_message(payload.type, payload.context, user_id=user["id"])
    except IntegrationNotConfigured as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except RuntimeError as exc:
        logger.warning("Message generation failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc))
    return {"message": message, "type": payload.type}
