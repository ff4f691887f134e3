# backend/app/auth.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import jwt
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .domain.workflow_gate import ROLES
from .models import UserProfile
from .services.auth_service import decode_access_token


@dataclass(frozen=True)
class Principal:
    user_id: int
    email: str
    role: str  # admin | appraiser | inspector | reviewer | client
    full_name: str = ""
    locale: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_staff(self) -> bool:
        return self.role != "client"


def _principal_from_profile(user: UserProfile) -> Principal:
    return Principal(
        user_id=int(user.id),
        email=str(user.email),
        role=str(user.role),
        full_name=str(user.full_name or ""),
        locale=user.locale,
    )


def _get_user_by_email(db: Session, email: str) -> UserProfile | None:
    return db.scalar(select(UserProfile).where(UserProfile.email == email))


def _principal_from_token(db: Session, token: str) -> Principal:
    try:
        claims = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    sub = str(claims.get("sub") or "")
    if not sub.isdigit():
        raise HTTPException(status_code=401, detail="Token missing sub")

    user = db.get(UserProfile, int(sub))
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user")
    return _principal_from_profile(user)


def _principal_from_dev_headers(db: Session, request: Request) -> Principal:
    email = (request.headers.get(settings.dev_header_user_email) or "").strip().lower()
    role_hint = (request.headers.get(settings.dev_header_user_role) or "client").strip().lower()
    if not email:
        raise HTTPException(status_code=401, detail=f"Missing {settings.dev_header_user_email} for dev auth")

    user = _get_user_by_email(db, email=email)
    if user is None:
        if not settings.dev_auto_provision:
            raise HTTPException(status_code=401, detail="Unknown user")
        user = UserProfile(
            email=email,
            full_name=email.split("@")[0],
            role=role_hint if role_hint in ROLES else "client",
            created_at=datetime.utcnow(),
        )
        db.add(user)
        db.commit()
        db.refresh(user)

    return _principal_from_profile(user)


def get_principal(
    request: Request,
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> Principal:
    """
    Auth modes supported (in priority order):
      1) JWT cookie OR Authorization: Bearer <token>
      2) dev header spoofing (ONLY if settings.auth_mode == "dev")

    The role always comes from the stored profile; the dev role header is
    only used when auto-provisioning a new profile.
    """
    token = request.cookies.get(settings.jwt_cookie_name) if settings.jwt_cookie_name else None
    if not token and authorization and str(authorization).lower().startswith("bearer "):
        token = str(authorization).split(" ", 1)[1].strip()

    if token:
        return _principal_from_token(db, token)

    if settings.auth_mode == "dev":
        return _principal_from_dev_headers(db, request)

    raise HTTPException(status_code=401, detail="Not authenticated")


def require_roles(*roles: str):
    allowed = frozenset(roles)

    def _dep(p: Principal = Depends(get_principal)) -> Principal:
        if p.role not in allowed:
            raise HTTPException(status_code=403, detail=f"Requires role in {sorted(allowed)}")
        return p

    return _dep


def require_admin(p: Principal = Depends(get_principal)) -> Principal:
    if not p.is_admin:
        raise HTTPException(status_code=403, detail="Requires role admin")
    return p
