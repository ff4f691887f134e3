# backend/app/services/auth_service.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt  # PyJWT

from ..config import settings


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(*, user_id: int, role: str, minutes: int | None = None) -> str:
    """
    Tokens are normally minted by the identity provider that shares
    jwt_secret with us; this helper exists for the seed CLI and tests.
    """
    now = _now()
    ttl = int(minutes if minutes is not None else settings.jwt_exp_minutes)
    payload: dict[str, Any] = {
        "sub": str(int(user_id)),
        "role": str(role),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def decode_access_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=["HS256"])
