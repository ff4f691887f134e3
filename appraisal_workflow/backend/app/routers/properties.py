# backend/app/routers/properties.py
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from ..auth import require_roles
from ..context import AppContext, get_context
from ..domain.areas import district_error
from ..domain.workflow_gate import compute_steps, compute_tabs, show_client_info
from ..domain.workflow_status import STAGE_ORDER, derive_status
from ..schemas import (
    IntakeRecordOut,
    IntakeRecordUpsert,
    PropertyCreate,
    PropertyDetailOut,
    PropertyGroupOut,
    PropertyListItem,
    PropertyOut,
    ReportPointerOut,
)
from ..services.ownership import must_get_property
from ..services.property_state_machine import attach_workflow_children, load_workflow_snapshot
from ..services.report_assembler import latest_report_appraisal_id
from ..store import SchemaUnavailableError, eq

log = logging.getLogger(__name__)

router = APIRouter(prefix="/properties", tags=["properties"])

_LOCATION_FIELDS = ("city", "district", "location_lat", "location_lng", "location_zoom")


def _list_with_stage(ctx: AppContext, stage: str | None) -> list[dict]:
    filters = [] if ctx.principal.is_staff else [eq("user_id", ctx.principal.user_id)]
    props = ctx.store.find("properties", filters, order_by="created_at", descending=True)

    out = []
    for bundle in attach_workflow_children(ctx.store, props):
        derived = derive_status(bundle)
        if stage and derived != stage:
            continue
        item = {k: v for k, v in bundle.items() if k not in ("inspections", "appraisals")}
        item["derived_status"] = derived
        out.append(item)
    return out


@router.get("", response_model=list[PropertyListItem])
def list_properties(
    stage: str | None = Query(default=None),
    ctx: AppContext = Depends(get_context),
):
    if stage and stage not in STAGE_ORDER:
        raise HTTPException(status_code=422, detail=f"unknown stage '{stage}'")
    return _list_with_stage(ctx, stage)


@router.get("/grouped", response_model=list[PropertyGroupOut])
def list_properties_grouped(ctx: AppContext = Depends(get_context)):
    groups: dict[str, list[dict]] = defaultdict(list)
    for item in _list_with_stage(ctx, None):
        groups[item["derived_status"]].append(item)
    return [{"stage": s, "properties": groups.get(s, [])} for s in STAGE_ORDER]


@router.post("", response_model=PropertyOut, status_code=201, dependencies=[Depends(require_roles("client", "admin"))])
def create_property(payload: PropertyCreate, ctx: AppContext = Depends(get_context)):
    p = ctx.principal

    err = district_error(payload.city, payload.district)
    if err:
        raise HTTPException(status_code=422, detail=err)

    owner_id = p.user_id
    if payload.user_id is not None and payload.user_id != p.user_id:
        if not p.is_admin:
            raise HTTPException(status_code=403, detail="only admins can submit on behalf of another user")
        if ctx.store.get("profiles", payload.user_id) is None:
            raise HTTPException(status_code=404, detail="owner not found")
        owner_id = payload.user_id

    now = datetime.utcnow()
    record = payload.model_dump(exclude={"user_id"})
    record.update({"user_id": owner_id, "status": "intake", "created_at": now, "updated_at": now})

    try:
        row = ctx.store.insert("properties", record)
    except SchemaUnavailableError:
        # older databases lack the location columns; keep the submission
        log.warning("location columns unavailable, retrying intake without them", extra={"user_id": p.user_id})
        base = {k: v for k, v in record.items() if k not in _LOCATION_FIELDS}
        row = ctx.store.insert("properties", base)

    log.info("property submitted", extra={"property_id": row["id"], "user_id": p.user_id})
    return row


@router.get("/{property_id}", response_model=PropertyDetailOut)
def get_property(property_id: int, ctx: AppContext = Depends(get_context)):
    prop = must_get_property(ctx.store, principal=ctx.principal, property_id=property_id)
    snap = load_workflow_snapshot(ctx.store, property_id=property_id)
    (bundle,) = attach_workflow_children(ctx.store, [prop])

    tabs = compute_tabs(ctx.role, snap)
    return {
        "property": prop,
        "derived_status": derive_status(bundle),
        "inspection": snap.inspection,
        "appraisal": snap.appraisal,
        "review": snap.review,
        "delivery": snap.delivery,
        "tabs": {name: t.as_dict() for name, t in tabs.items()},
        "steps": compute_steps(snap),
        "show_client_info": show_client_info(ctx.role),
    }


# -----------------------------
# Reception intake record
# -----------------------------
def _require_staff(ctx: AppContext) -> None:
    if not ctx.principal.is_staff:
        raise HTTPException(status_code=403, detail="reception records are staff only")


@router.get("/{property_id}/intake-record", response_model=IntakeRecordOut)
def get_intake_record(property_id: int, ctx: AppContext = Depends(get_context)):
    _require_staff(ctx)
    must_get_property(ctx.store, principal=ctx.principal, property_id=property_id)

    row = ctx.store.find("intake_records", [eq("property_id", property_id)], single=True)
    if row is None:
        return IntakeRecordOut(property_id=property_id, saved=False)
    return {**row, "onsite_services": row.get("onsite_services") or [], "documents": row.get("documents") or []}


@router.put("/{property_id}/intake-record", response_model=IntakeRecordOut)
def put_intake_record(property_id: int, payload: IntakeRecordUpsert, ctx: AppContext = Depends(get_context)):
    _require_staff(ctx)
    must_get_property(ctx.store, principal=ctx.principal, property_id=property_id)

    record = payload.model_dump()
    record["property_id"] = property_id
    record["received_by"] = ctx.principal.user_id
    if record.get("received_at") is None:
        record["received_at"] = datetime.utcnow()

    row = ctx.store.upsert("intake_records", record, conflict_key="property_id")
    log.info("intake record saved", extra={"property_id": property_id, "user_id": ctx.principal.user_id})
    return {**row, "onsite_services": row.get("onsite_services") or [], "documents": row.get("documents") or []}


# -----------------------------
# Latest delivered report
# -----------------------------
@router.get("/{property_id}/report", response_model=ReportPointerOut)
def latest_report(property_id: int, ctx: AppContext = Depends(get_context)):
    must_get_property(ctx.store, principal=ctx.principal, property_id=property_id)
    appraisal_id, reason = latest_report_appraisal_id(ctx.store, property_id=property_id)
    if appraisal_id is None:
        raise HTTPException(status_code=404, detail=reason)
    return {"property_id": property_id, "appraisal_id": appraisal_id}
