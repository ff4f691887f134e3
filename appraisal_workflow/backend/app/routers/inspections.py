# backend/app/routers/inspections.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..context import AppContext, get_context
from ..domain.workflow_gate import can_edit
from ..domain.workflow_status import completion_timestamp
from ..schemas import InspectionOut, InspectionUpsert
from ..services.ownership import must_get_property
from ..services.property_state_machine import sync_stored_status
from ..store import eq

log = logging.getLogger(__name__)

router = APIRouter(prefix="/inspections", tags=["inspections"])


@router.get("/by-property/{property_id}", response_model=Optional[InspectionOut])
def get_inspection(property_id: int, ctx: AppContext = Depends(get_context)):
    must_get_property(ctx.store, principal=ctx.principal, property_id=property_id)
    return ctx.store.find("inspections", [eq("property_id", property_id)], single=True)


@router.put("", response_model=InspectionOut)
def upsert_inspection(payload: InspectionUpsert, ctx: AppContext = Depends(get_context)):
    """
    One inspection per property: the first submission creates it, later ones
    update it in place.
    """
    if not can_edit(ctx.role, "inspection"):
        raise HTTPException(status_code=403, detail="only inspectors and admins can record inspections")

    property_id = payload.property_id
    must_get_property(ctx.store, principal=ctx.principal, property_id=property_id)

    existing = ctx.store.find("inspections", [eq("property_id", property_id)], single=True)
    values = payload.model_dump(exclude={"property_id"})
    values["completed_at"] = completion_timestamp(
        previous_status=existing.get("status") if existing else None,
        previous_completed_at=existing.get("completed_at") if existing else None,
        new_status=payload.status,
        done=("completed",),
        now=datetime.utcnow(),
    )

    if existing is None:
        values.update({"property_id": property_id, "inspector_id": ctx.principal.user_id})
        row = ctx.store.insert("inspections", values)
    else:
        if existing.get("inspector_id") is None:
            values["inspector_id"] = ctx.principal.user_id
        ctx.store.update("inspections", [eq("id", existing["id"])], values)
        row = ctx.store.get("inspections", existing["id"])

    stage = sync_stored_status(ctx.store, property_id=property_id)
    log.info(
        "inspection saved",
        extra={"property_id": property_id, "user_id": ctx.principal.user_id, "status": payload.status, "stage": stage},
    )
    return row
