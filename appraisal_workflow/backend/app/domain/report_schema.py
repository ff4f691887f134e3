# backend/app/domain/report_schema.py
from __future__ import annotations

import json
import re
from datetime import date, datetime
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

# -----------------------------------------------------------------------------
# Full report read boundary
# -----------------------------------------------------------------------------
# Rows reach us from two places: the full_reports view (whose column set
# depends on which migration the database is at) and the fallback assembly
# over base tables. Both go through upgrade_report_row() exactly once, so
# everything downstream sees one fully-typed FullReport where "missing" and
# "null" are the same thing.
#
# v1: base property/inspection/appraisal/review/delivery columns
# v2: + appraisal terms, documents, boundaries, services, attachments
# -----------------------------------------------------------------------------

REPORT_SCHEMA_VERSION = 2

# Columns added to the view in v2. When an older view is live these are
# absent from the row and get backfilled from the appraisal.
BACKFILL_FIELDS = (
    "purpose",
    "value_basis",
    "method_used",
    "currency",
    "ownership_type",
    "assignment_date",
    "inspection_date_ro",
    "inspection_time_ro",
    "assumptions",
    "info_source_user_id",
    "deed_number",
    "deed_date",
    "doc_building_license_no",
    "doc_building_license_date",
    "boundary_north",
    "boundary_south",
    "boundary_east",
    "boundary_west",
    "public_services",
    "health_services",
    "attachments",
)

SERVICE_FIELDS = ("onsite_services", "public_services", "health_services")

_JSON_LIST_FIELDS = (
    "amenities",
    "defects",
    "photos",
    "comparable_properties",
    "adjustments",
    "requested_changes",
    "attachments",
)

_TEMPORAL_FIELDS = (
    "property_created_at",
    "property_updated_at",
    "inspection_date",
    "inspection_created_at",
    "inspection_completed_at",
    "appraisal_created_at",
    "appraisal_completed_at",
    "review_created_at",
    "review_completed_at",
    "delivered_at",
    "delivery_created_at",
    "assignment_date",
    "inspection_date_ro",
    "deed_date",
    "doc_building_license_date",
)

_SPLIT_RE = re.compile(r"\r?\n|,")


def normalize_services(value: Any) -> list[str]:
    """
    Services arrive as a real list, a JSON-encoded list, or a newline/comma
    separated string. Always returns the ordered non-empty entries.
    Malformed JSON is not an error: the raw string is split instead.
    """
    if value is None:
        return []

    if isinstance(value, (list, tuple)):
        items = list(value)
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return []
        try:
            parsed = json.loads(s)
        except ValueError:
            parsed = None
        items = parsed if isinstance(parsed, list) else _SPLIT_RE.split(s)
    else:
        items = [value]

    out: list[str] = []
    for it in items:
        if it is None or it is False:
            continue
        text = str(it).strip()
        if text:
            out.append(text)
    return out


def _json_list(value: Any) -> Optional[list[Any]]:
    if value is None:
        return None
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return [value] if value.strip() else []
        return parsed if isinstance(parsed, list) else [parsed]
    return [value]


def _iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    s = str(value).strip()
    if not s:
        return None
    try:
        if len(s) == 10:
            return date.fromisoformat(s).isoformat()
        return datetime.fromisoformat(s).isoformat()
    except ValueError:
        return s


class FullReport(BaseModel):
    model_config = ConfigDict(extra="ignore")

    schema_version: int = REPORT_SCHEMA_VERSION

    appraisal_id: int
    property_id: int
    owner_id: int

    # property
    property_address: str
    property_type: str
    area_sqm: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    year_built: Optional[int] = None
    owner_name: Optional[str] = None
    owner_contact: Optional[str] = None
    property_status: Optional[str] = None
    property_created_at: Optional[str] = None
    property_updated_at: Optional[str] = None

    # inspection
    inspection_id: Optional[int] = None
    inspection_date: Optional[str] = None
    structural_condition: Optional[str] = None
    interior_condition: Optional[str] = None
    exterior_condition: Optional[str] = None
    amenities: Optional[List[Any]] = None
    defects: Optional[List[Any]] = None
    photos: Optional[List[Any]] = None
    inspection_notes: Optional[str] = None
    inspection_status: Optional[str] = None
    inspection_created_at: Optional[str] = None
    inspection_completed_at: Optional[str] = None
    building_license_no: Optional[str] = None
    plan_no: Optional[str] = None
    land_use: Optional[str] = None
    onsite_services: List[str] = Field(default_factory=list)
    parcel_no: Optional[str] = None
    neighbor_built: Optional[bool] = None
    land_nature: Optional[str] = None
    is_occupied: Optional[bool] = None

    # appraisal
    appraiser_id: Optional[int] = None
    market_value: Optional[float] = None
    land_value: Optional[float] = None
    building_value: Optional[float] = None
    valuation_method: Optional[str] = None
    comparable_properties: Optional[List[Any]] = None
    adjustments: Optional[List[Any]] = None
    final_value: Optional[float] = None
    confidence_level: Optional[str] = None
    appraisal_notes: Optional[str] = None
    appraisal_status: str
    appraisal_created_at: Optional[str] = None
    appraisal_completed_at: Optional[str] = None

    # appraisal terms
    purpose: Optional[str] = None
    value_basis: Optional[str] = None
    method_used: Optional[str] = None
    currency: Optional[str] = None
    ownership_type: Optional[str] = None
    assignment_date: Optional[str] = None
    inspection_date_ro: Optional[str] = None
    inspection_time_ro: Optional[str] = None
    assumptions: Optional[str] = None
    info_source_user_id: Optional[int] = None

    # documents, boundaries, services
    deed_number: Optional[str] = None
    deed_date: Optional[str] = None
    doc_building_license_no: Optional[str] = None
    doc_building_license_date: Optional[str] = None
    boundary_north: Optional[str] = None
    boundary_south: Optional[str] = None
    boundary_east: Optional[str] = None
    boundary_west: Optional[str] = None
    public_services: List[str] = Field(default_factory=list)
    health_services: List[str] = Field(default_factory=list)
    attachments: Optional[List[Any]] = None

    # review (latest)
    review_id: Optional[int] = None
    reviewer_id: Optional[int] = None
    review_status: Optional[str] = None
    comments: Optional[str] = None
    requested_changes: Optional[List[Any]] = None
    review_created_at: Optional[str] = None
    review_completed_at: Optional[str] = None

    # delivery
    delivery_id: int
    delivered_by: Optional[int] = None
    delivery_method: str
    recipient_email: Optional[str] = None
    report_url: Optional[str] = None
    delivered_at: Optional[str] = None
    delivery_created_at: Optional[str] = None


def upgrade_report_row(raw: Mapping[str, Any]) -> FullReport:
    """
    Defaulting/migration step, run once per row at the read boundary.
    Absent fields become None; encodings are normalized.
    """
    row = dict(raw)
    for k in SERVICE_FIELDS:
        row[k] = normalize_services(row.get(k))
    for k in _JSON_LIST_FIELDS:
        row[k] = _json_list(row.get(k))
    for k in _TEMPORAL_FIELDS:
        row[k] = _iso(row.get(k))
    return FullReport.model_validate(row)
