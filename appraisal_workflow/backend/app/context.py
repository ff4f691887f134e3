# backend/app/context.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .auth import Principal, get_principal
from .config import settings
from .db import get_db
from .store import RecordStore


LOCALES = ("ar", "en")


@dataclass
class AppContext:
    """
    Everything one operation needs: who is calling, which locale, and the
    record store bound to this request's session. Created at request start,
    closed at request end; nothing here lives in module globals.
    """

    principal: Principal
    db: Session
    locale: str
    request_id: Optional[str] = None
    _store: Optional[RecordStore] = field(default=None, repr=False)
    closed: bool = False

    @classmethod
    def open(
        cls,
        db: Session,
        principal: Principal,
        *,
        locale: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> "AppContext":
        loc = (locale or principal.locale or settings.default_locale or "ar").strip().lower()
        if loc not in LOCALES:
            loc = settings.default_locale
        return cls(principal=principal, db=db, locale=loc, request_id=request_id, _store=RecordStore(db))

    @property
    def store(self) -> RecordStore:
        if self.closed or self._store is None:
            raise RuntimeError("AppContext is closed")
        return self._store

    @property
    def role(self) -> str:
        return self.principal.role

    def close(self) -> None:
        # the session itself belongs to get_db, which closes it
        self._store = None
        self.closed = True


def get_context(
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Iterator[AppContext]:
    ctx = AppContext.open(
        db,
        principal,
        locale=request.headers.get(settings.dev_header_locale),
        request_id=getattr(request.state, "request_id", None),
    )
    try:
        yield ctx
    finally:
        ctx.close()
