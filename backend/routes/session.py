from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from backend import auth, repositories
from backend.schemas import SignInPayload, SignUpPayload
from backend.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


async def _issue_session(user: dict) -> dict:
    session = await repositories.create_session(user["id"], get_settings().session_ttl_hours)
    return {
        "token": session["token"],
        "expires_at": session["expires_at"],
        "user": {"id": user["id"], "email": user["email"], "display_name": user.get("display_name")},
    }


@router.post("/v1/auth/sign-up")
async def sign_up(payload: SignUpPayload):
    email = payload.email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="A valid email is required")
    auth.check_allowed(email)
    try:
        user = await repositories.create_user(email, auth.hash_password(payload.password), payload.display_name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    logger.info("New account %s", email)
    return await _issue_session(user)


@router.post("/v1/auth/sign-in")
async def sign_in(payload: SignInPayload):
    user = await repositories.get_user_by_email(payload.email)
    if not user or not auth.verify_password(payload.password, user["password_hash"]):
        raise HTTPException(
            status_code=401,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return await _issue_session(user)


@router.post("/v1/auth/sign-out")
async def sign_out(
    scope: str = Query("global", pattern="^(global|local)$"),
    token: str = Depends(auth.require_token),
):
    user = await repositories.get_session_user(token)
    if not user:
        return {"ok": True, "revoked": 0}
    if scope == "local":
        await repositories.delete_session(token)
        return {"ok": True, "revoked": 1}
    revoked = await repositories.delete_user_sessions(user["id"])
    return {"ok": True, "revoked": revoked}


@router.get("/v1/auth/me")
async def me(user: dict = Depends(auth.require_user)):
    return user
