# backend/app/routers/deliveries.py
from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from ..context import AppContext, get_context
from ..domain.workflow_gate import can_edit, delivery_blocked_reason
from ..schemas import DeliveryCreate, DeliveryOut
from ..services.ownership import must_get_appraisal
from ..services.property_state_machine import load_workflow_snapshot, sync_stored_status

log = logging.getLogger(__name__)

router = APIRouter(prefix="/deliveries", tags=["deliveries"])


@router.post("", response_model=DeliveryOut, status_code=201)
def create_delivery(payload: DeliveryCreate, ctx: AppContext = Depends(get_context)):
    if not can_edit(ctx.role, "delivery"):
        raise HTTPException(status_code=403, detail="only reviewers and admins can deliver reports")

    appraisal = must_get_appraisal(ctx.store, appraisal_id=payload.appraisal_id)
    property_id = appraisal["property_id"]
    snap = load_workflow_snapshot(ctx.store, property_id=property_id)

    reason = delivery_blocked_reason(snap)
    if reason:
        log.info("delivery refused", extra={"appraisal_id": appraisal["id"], "reason": reason})
        raise HTTPException(status_code=409, detail=reason)

    now = datetime.utcnow()
    row = ctx.store.insert(
        "deliveries",
        {
            "appraisal_id": appraisal["id"],
            "delivered_by": ctx.principal.user_id,
            "delivery_method": payload.delivery_method,
            "recipient_email": payload.recipient_email,
            "report_url": payload.report_url,
            "delivered_at": now,
            "created_at": now,
        },
    )

    sync_stored_status(ctx.store, property_id=property_id)
    log.info(
        "report delivered",
        extra={"property_id": property_id, "appraisal_id": appraisal["id"], "user_id": ctx.principal.user_id},
    )
    return row
