from __future__ import annotations

import base64
import os

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from fastapi import Header, HTTPException

from backend import repositories
from backend.settings import get_settings

SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_LENGTH = 32
HASH_PREFIX = "scrypt"


def _kdf(salt: bytes) -> Scrypt:
    return Scrypt(salt=salt, length=SCRYPT_LENGTH, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password cannot be empty")
    salt = os.urandom(16)
    digest = _kdf(salt).derive(password.encode("utf-8"))
    return "$".join(
        [
            HASH_PREFIX,
            base64.urlsafe_b64encode(salt).decode("ascii"),
            base64.urlsafe_b64encode(digest).decode("ascii"),
        ]
    )


def verify_password(password: str, stored_hash: str) -> bool:
    try:
        prefix, salt_b64, digest_b64 = stored_hash.split("$")
    except (AttributeError, ValueError):
        return False
    if prefix != HASH_PREFIX:
        return False
    salt = base64.urlsafe_b64decode(salt_b64.encode("ascii"))
    digest = base64.urlsafe_b64decode(digest_b64.encode("ascii"))
    try:
        _kdf(salt).verify((password or "").encode("utf-8"), digest)
    except InvalidKey:
        return False
    return True


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise _unauthorized("Missing bearer token")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("Invalid authorization header")
    return token.strip()


async def require_token(authorization: str | None = Header(default=None)) -> str:
    return bearer_token(authorization)


async def require_user(authorization: str | None = Header(default=None)) -> dict:
    token = bearer_token(authorization)
    user = await repositories.get_session_user(token)
    if not user:
        raise _unauthorized("Session expired or invalid")
    return {"id": user["id"], "email": user["email"], "display_name": user.get("display_name")}


def check_allowed(email: str) -> None:
    settings = get_settings()
    clean = email.strip().lower()
    if settings.allowed_emails and clean not in settings.allowed_emails:
        raise HTTPException(status_code=403, detail="User not allowed")
