# backend/app/routers/appraisals.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..config import settings
from ..context import AppContext, get_context
from ..domain.workflow_gate import can_edit
from ..domain.workflow_status import completion_timestamp
from ..schemas import AppraisalOut, AppraisalUpsert
from ..services.ownership import must_get_property
from ..services.property_state_machine import sync_stored_status
from ..store import eq

log = logging.getLogger(__name__)

router = APIRouter(prefix="/appraisals", tags=["appraisals"])


@router.get("/by-property/{property_id}", response_model=Optional[AppraisalOut])
def get_appraisal(property_id: int, ctx: AppContext = Depends(get_context)):
    must_get_property(ctx.store, principal=ctx.principal, property_id=property_id)
    return ctx.store.find("appraisals", [eq("property_id", property_id)], single=True)


@router.put("", response_model=AppraisalOut)
def upsert_appraisal(payload: AppraisalUpsert, ctx: AppContext = Depends(get_context)):
    if not can_edit(ctx.role, "appraisal"):
        raise HTTPException(status_code=403, detail="only appraisers and admins can record appraisals")

    property_id = payload.property_id
    must_get_property(ctx.store, principal=ctx.principal, property_id=property_id)

    inspection = ctx.store.find("inspections", [eq("property_id", property_id)], single=True)
    existing = ctx.store.find("appraisals", [eq("property_id", property_id)], single=True)

    if existing is None and (inspection is None or inspection.get("status") != "completed"):
        log.info("appraisal refused: inspection not completed", extra={"property_id": property_id})
        raise HTTPException(status_code=409, detail="the inspection must be completed before an appraisal")

    if existing is not None and existing.get("status") == "completed" and payload.status != "completed":
        if ctx.store.find("deliveries", [eq("appraisal_id", existing["id"])], single=True) is not None:
            log.info("appraisal reopen refused: already delivered", extra={"appraisal_id": existing["id"]})
            raise HTTPException(status_code=409, detail="a delivered appraisal cannot be reopened")

    values = payload.model_dump(exclude={"property_id"})
    if not values.get("currency"):
        values["currency"] = settings.default_currency

    if inspection is not None:
        values["inspection_id"] = inspection["id"]
        if values.get("inspection_date_ro") is None:
            values["inspection_date_ro"] = inspection.get("inspection_date")
        if values.get("doc_building_license_no") is None:
            values["doc_building_license_no"] = inspection.get("building_license_no")

    values["completed_at"] = completion_timestamp(
        previous_status=existing.get("status") if existing else None,
        previous_completed_at=existing.get("completed_at") if existing else None,
        new_status=payload.status,
        done=("completed",),
        now=datetime.utcnow(),
    )

    if existing is None:
        values.update({"property_id": property_id, "appraiser_id": ctx.principal.user_id})
        row = ctx.store.insert("appraisals", values)
    else:
        if existing.get("appraiser_id") is None:
            values["appraiser_id"] = ctx.principal.user_id
        ctx.store.update("appraisals", [eq("id", existing["id"])], values)
        row = ctx.store.get("appraisals", existing["id"])

    stage = sync_stored_status(ctx.store, property_id=property_id)
    log.info(
        "appraisal saved",
        extra={"property_id": property_id, "appraisal_id": row["id"], "status": payload.status, "stage": stage},
    )
    return row
