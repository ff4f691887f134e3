# backend/app/routers/reviews.py
from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from ..context import AppContext, get_context
from ..domain.workflow_gate import can_edit, review_blocked_reason
from ..domain.workflow_status import completion_timestamp
from ..schemas import ReviewOut, ReviewUpsert
from ..services.ownership import must_get_appraisal
from ..services.property_state_machine import load_workflow_snapshot, sync_stored_status
from ..store import eq

log = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["reviews"])

REVIEW_DONE = ("approved", "rejected", "needs_revision")


@router.put("", response_model=ReviewOut)
def upsert_review(payload: ReviewUpsert, ctx: AppContext = Depends(get_context)):
    if not can_edit(ctx.role, "review"):
        raise HTTPException(status_code=403, detail="only reviewers and admins can review appraisals")

    appraisal = must_get_appraisal(ctx.store, appraisal_id=payload.appraisal_id)
    property_id = appraisal["property_id"]
    snap = load_workflow_snapshot(ctx.store, property_id=property_id)

    # the gate applies to direct calls too, not just to what a UI offers
    reason = review_blocked_reason(snap)
    if reason:
        log.info("review refused", extra={"appraisal_id": appraisal["id"], "reason": reason})
        raise HTTPException(status_code=409, detail=reason)

    existing = snap.review
    values = payload.model_dump(exclude={"appraisal_id"})
    values["completed_at"] = completion_timestamp(
        previous_status=existing.get("review_status") if existing else None,
        previous_completed_at=existing.get("completed_at") if existing else None,
        new_status=payload.review_status,
        done=REVIEW_DONE,
        now=datetime.utcnow(),
    )

    if existing is None:
        values.update({"appraisal_id": appraisal["id"], "reviewer_id": ctx.principal.user_id})
        row = ctx.store.insert("reviews", values)
    else:
        values["reviewer_id"] = ctx.principal.user_id
        ctx.store.update("reviews", [eq("id", existing["id"])], values)
        row = ctx.store.get("reviews", existing["id"])

    sync_stored_status(ctx.store, property_id=property_id)
    log.info(
        "review saved",
        extra={"property_id": property_id, "appraisal_id": appraisal["id"], "status": payload.review_status},
    )
    return row
