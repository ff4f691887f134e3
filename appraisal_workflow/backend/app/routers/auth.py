# backend/app/routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..context import AppContext, get_context
from ..schemas import PrincipalOut

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=PrincipalOut)
def me(ctx: AppContext = Depends(get_context)):
    p = ctx.principal
    return PrincipalOut(user_id=p.user_id, email=p.email, role=p.role, full_name=p.full_name, locale=ctx.locale)
