# backend/app/services/report_assembler.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..auth import Principal
from ..config import settings
from ..domain.report_schema import BACKFILL_FIELDS, FullReport, upgrade_report_row
from ..store import (
    RecordStore,
    SchemaUnavailableError,
    StoreError,
    eq,
    gte,
    ilike_any,
    lte,
)

log = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Full report assembly
# -----------------------------------------------------------------------------
# Primary path: the precomputed full_reports view, backfilled from the
# appraisal when the live view predates the terms/boundary columns.
#
# Fallback path: only when the view itself is not visible to the query layer
# (schema miss). "No row" from the view is an answer, not a reason to fall
# back. The fallback runs five lookups in dependency order because each one
# needs ids from the previous:
#     appraisal -> delivery -> property -> inspection -> latest review
# -----------------------------------------------------------------------------

AVAILABLE = "available"
NOT_AVAILABLE = "not_available"
FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class ReportResult:
    status: str
    report: Optional[FullReport] = None
    source: Optional[str] = None  # view|fallback
    reason: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.status == AVAILABLE


# appraisal fields that default to the linked inspection when left blank
INSPECTION_DEFAULTS = {
    "inspection_date_ro": "inspection_date",
    "doc_building_license_no": "building_license_no",
}


def _view() -> str:
    return settings.full_reports_view


def backfill_from_appraisal(store: RecordStore, appraisal_id: int, base: dict[str, Any]) -> dict[str, Any]:
    """
    Fill fields the view row does not carry at all. A key that is present
    with a None value is left alone.
    """
    missing = [k for k in BACKFILL_FIELDS if k not in base]
    if not missing:
        return base

    appraisal = store.get("appraisals", appraisal_id)
    if appraisal is None:
        return base

    patched = dict(base)
    for k in missing:
        value = appraisal.get(k)
        if value is None and k in INSPECTION_DEFAULTS:
            value = base.get(INSPECTION_DEFAULTS[k])
        patched[k] = value
    return patched


def assemble_from_base_tables(store: RecordStore, appraisal_id: int) -> Optional[dict[str, Any]]:
    appraisal = store.get("appraisals", appraisal_id)
    if appraisal is None or appraisal.get("status") != "completed":
        return None

    # a "full" report needs a delivery
    delivery = store.find("deliveries", [eq("appraisal_id", appraisal_id)], single=True)
    if delivery is None:
        return None

    prop = store.get("properties", appraisal["property_id"])
    if prop is None:
        return None

    inspection = None
    if appraisal.get("inspection_id") is not None:
        inspection = store.get("inspections", appraisal["inspection_id"])
    ins = inspection or {}

    review = store.find(
        "reviews",
        [eq("appraisal_id", appraisal_id)],
        order_by="created_at",
        descending=True,
        single=True,
    )
    rev = review or {}

    return {
        "appraisal_id": appraisal["id"],
        "property_id": prop["id"],
        "owner_id": prop["user_id"],
        "property_address": prop["property_address"],
        "property_type": prop["property_type"],
        "area_sqm": float(prop["area_sqm"]) if prop.get("area_sqm") is not None else None,
        "bedrooms": prop.get("bedrooms"),
        "bathrooms": prop.get("bathrooms"),
        "year_built": prop.get("year_built"),
        "owner_name": prop.get("owner_name"),
        "owner_contact": prop.get("owner_contact"),
        "property_status": prop.get("status"),
        "property_created_at": prop.get("created_at"),
        "property_updated_at": prop.get("updated_at"),

        "inspection_id": ins.get("id"),
        "inspection_date": ins.get("inspection_date"),
        "structural_condition": ins.get("structural_condition"),
        "interior_condition": ins.get("interior_condition"),
        "exterior_condition": ins.get("exterior_condition"),
        "amenities": ins.get("amenities"),
        "defects": ins.get("defects"),
        "photos": ins.get("photos"),
        "inspection_notes": ins.get("notes"),
        "inspection_status": ins.get("status"),
        "inspection_created_at": ins.get("created_at"),
        "inspection_completed_at": ins.get("completed_at"),
        "building_license_no": ins.get("building_license_no"),
        "plan_no": ins.get("plan_no"),
        "land_use": ins.get("land_use"),
        "onsite_services": ins.get("onsite_services"),
        "parcel_no": ins.get("parcel_no"),
        "neighbor_built": ins.get("neighbor_built"),
        "land_nature": ins.get("land_nature"),
        "is_occupied": ins.get("is_occupied"),

        "appraiser_id": appraisal.get("appraiser_id"),
        "market_value": appraisal.get("market_value"),
        "land_value": appraisal.get("land_value"),
        "building_value": appraisal.get("building_value"),
        "valuation_method": appraisal.get("valuation_method"),
        "comparable_properties": appraisal.get("comparable_properties"),
        "adjustments": appraisal.get("adjustments"),
        "final_value": appraisal.get("final_value"),
        "confidence_level": appraisal.get("confidence_level"),
        "appraisal_notes": appraisal.get("notes"),
        "appraisal_status": appraisal["status"],
        "appraisal_created_at": appraisal.get("created_at"),
        "appraisal_completed_at": appraisal.get("completed_at"),

        "review_id": rev.get("id"),
        "reviewer_id": rev.get("reviewer_id"),
        "review_status": rev.get("review_status"),
        "comments": rev.get("comments"),
        "requested_changes": rev.get("requested_changes"),
        "review_created_at": rev.get("created_at"),
        "review_completed_at": rev.get("completed_at"),

        "delivery_id": delivery["id"],
        "delivered_by": delivery.get("delivered_by"),
        "delivery_method": delivery["delivery_method"],
        "recipient_email": delivery.get("recipient_email"),
        "report_url": delivery.get("report_url"),
        "delivered_at": delivery.get("delivered_at"),
        "delivery_created_at": delivery.get("created_at"),

        # documents / boundaries / services live on the appraisal; the
        # appraisal's copy wins over the inspection's original
        "deed_number": appraisal.get("deed_number"),
        "deed_date": appraisal.get("deed_date"),
        "doc_building_license_no": _coalesce(appraisal.get("doc_building_license_no"), ins.get("building_license_no")),
        "doc_building_license_date": appraisal.get("doc_building_license_date"),
        "boundary_north": appraisal.get("boundary_north"),
        "boundary_south": appraisal.get("boundary_south"),
        "boundary_east": appraisal.get("boundary_east"),
        "boundary_west": appraisal.get("boundary_west"),
        "public_services": appraisal.get("public_services"),
        "health_services": appraisal.get("health_services"),
        "attachments": appraisal.get("attachments"),

        "purpose": appraisal.get("purpose"),
        "value_basis": appraisal.get("value_basis"),
        "method_used": appraisal.get("method_used"),
        "currency": appraisal.get("currency"),
        "ownership_type": appraisal.get("ownership_type"),
        "assignment_date": appraisal.get("assignment_date"),
        "inspection_date_ro": _coalesce(appraisal.get("inspection_date_ro"), ins.get("inspection_date")),
        "inspection_time_ro": appraisal.get("inspection_time_ro"),
        "assumptions": appraisal.get("assumptions"),
        "info_source_user_id": appraisal.get("info_source_user_id"),
    }


def _coalesce(*values: Any) -> Any:
    for v in values:
        if v is not None:
            return v
    return None


def fetch_report_row(store: RecordStore, appraisal_id: int) -> tuple[Optional[dict[str, Any]], str]:
    """Returns (raw row or None, source)."""
    try:
        row = store.find(_view(), [eq("appraisal_id", appraisal_id)], single=True)
    except SchemaUnavailableError:
        log.info("report view unavailable, assembling from base tables", extra={"appraisal_id": appraisal_id})
        return assemble_from_base_tables(store, appraisal_id), "fallback"

    if row is None:
        return None, "view"

    try:
        row = backfill_from_appraisal(store, appraisal_id, row)
    except StoreError:
        log.warning("report backfill failed, using view row as-is", extra={"appraisal_id": appraisal_id})
    return row, "view"


def can_view_report(principal: Principal, report: FullReport) -> bool:
    if principal.role == "admin":
        return True
    return principal.user_id == report.owner_id


def load_full_report(store: RecordStore, *, appraisal_id: int, principal: Principal) -> ReportResult:
    raw, source = fetch_report_row(store, appraisal_id)
    if raw is None:
        return ReportResult(status=NOT_AVAILABLE, source=source, reason="no report is available for this request yet")

    report = upgrade_report_row(raw)
    if not can_view_report(principal, report):
        log.info("report access refused", extra={"appraisal_id": appraisal_id, "user_id": principal.user_id})
        return ReportResult(status=FORBIDDEN, source=source, reason="not authorized to view this report")

    return ReportResult(status=AVAILABLE, report=report, source=source)


def latest_report_appraisal_id(store: RecordStore, *, property_id: int) -> tuple[Optional[int], Optional[str]]:
    """
    Newest delivered report for a property. Returns (appraisal_id, None) or
    (None, reason).
    """
    try:
        row = store.find(
            _view(),
            [eq("property_id", property_id)],
            order_by="delivered_at",
            descending=True,
            single=True,
        )
    except SchemaUnavailableError:
        appraisal = store.find(
            "appraisals",
            [eq("property_id", property_id)],
            order_by="created_at",
            descending=True,
            single=True,
        )
        if appraisal is None or appraisal.get("status") != "completed":
            return None, "no report is ready yet; the appraisal must be completed first"
        delivery = store.find("deliveries", [eq("appraisal_id", appraisal["id"])], single=True)
        if delivery is None:
            return None, "the report has not been delivered yet"
        return int(appraisal["id"]), None

    if row is None:
        return None, "no delivered report for this property"
    return int(row["appraisal_id"]), None


REPORT_LIST_COLUMNS = (
    "appraisal_id",
    "property_id",
    "owner_id",
    "property_address",
    "property_type",
    "area_sqm",
    "owner_name",
    "final_value",
    "review_status",
    "delivered_at",
)


def list_reports(
    store: RecordStore,
    *,
    q: Optional[str] = None,
    property_type: Optional[str] = None,
    review_status: Optional[str] = None,
    delivered_from: Optional[datetime] = None,
    delivered_to: Optional[datetime] = None,
    limit: int = 200,
) -> list[dict[str, Any]]:
    """Admin listing; a missing view propagates as SchemaUnavailableError."""
    filters = []
    if property_type:
        filters.append(eq("property_type", property_type))
    if review_status:
        filters.append(eq("review_status", review_status))
    if delivered_from is not None:
        filters.append(gte("delivered_at", delivered_from))
    if delivered_to is not None:
        filters.append(lte("delivered_at", delivered_to))
    if q and q.strip():
        filters.append(ilike_any(("property_address", "owner_name"), q.strip()))

    rows = store.find(_view(), filters, order_by="delivered_at", descending=True, limit=limit)
    return [{k: r.get(k) for k in REPORT_LIST_COLUMNS} for r in rows]
