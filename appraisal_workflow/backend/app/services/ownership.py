# backend/app/services/ownership.py
from __future__ import annotations

from typing import Any

from fastapi import HTTPException

from ..auth import Principal
from ..store import RecordStore


def must_get_property(store: RecordStore, *, principal: Principal, property_id: int) -> dict[str, Any]:
    row = store.get("properties", property_id)
    if row is None:
        raise HTTPException(status_code=404, detail="property not found")
    if principal.role == "client" and row["user_id"] != principal.user_id:
        raise HTTPException(status_code=403, detail="not your property")
    return row


def must_get_appraisal(store: RecordStore, *, appraisal_id: int) -> dict[str, Any]:
    row = store.get("appraisals", appraisal_id)
    if row is None:
        raise HTTPException(status_code=404, detail="appraisal not found")
    return row
