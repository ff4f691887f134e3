# backend/app/services/property_state_machine.py
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Optional

from ..domain.workflow_gate import WorkflowSnapshot
from ..domain.workflow_status import derive_status
from ..store import RecordStore, eq, in_

log = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Property workflow state
# -----------------------------------------------------------------------------
# Loads the child records a property's stage depends on and keeps the
# advisory Property.status column in step with the derived stage.
#
# The derived stage is the truth. Property.status is written after each
# workflow mutation for list views and exports, and is never read back
# by derive_status().
# -----------------------------------------------------------------------------


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def attach_workflow_children(store: RecordStore, properties: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Nest inspections / appraisals (with reviews and deliveries) under each
    property dict, in four queries regardless of how many properties.
    """
    if not properties:
        return []

    pids = [p["id"] for p in properties]
    inspections = store.find("inspections", [in_("property_id", pids)])
    appraisals = store.find("appraisals", [in_("property_id", pids)])

    aids = [a["id"] for a in appraisals]
    reviews = store.find("reviews", [in_("appraisal_id", aids)]) if aids else []
    deliveries = store.find("deliveries", [in_("appraisal_id", aids)]) if aids else []

    reviews_by_a: dict[int, list[dict]] = defaultdict(list)
    for r in reviews:
        reviews_by_a[r["appraisal_id"]].append(r)
    deliveries_by_a: dict[int, list[dict]] = defaultdict(list)
    for d in deliveries:
        deliveries_by_a[d["appraisal_id"]].append(d)

    inspections_by_p: dict[int, list[dict]] = defaultdict(list)
    for i in inspections:
        inspections_by_p[i["property_id"]].append(i)
    appraisals_by_p: dict[int, list[dict]] = defaultdict(list)
    for a in appraisals:
        appraisals_by_p[a["property_id"]].append(
            {**a, "reviews": reviews_by_a.get(a["id"], []), "deliveries": deliveries_by_a.get(a["id"], [])}
        )

    return [
        {**p, "inspections": inspections_by_p.get(p["id"], []), "appraisals": appraisals_by_p.get(p["id"], [])}
        for p in properties
    ]


def derived_stage(store: RecordStore, property_record: dict[str, Any]) -> str:
    (bundle,) = attach_workflow_children(store, [property_record])
    return derive_status(bundle)


def load_workflow_snapshot(store: RecordStore, *, property_id: int) -> WorkflowSnapshot:
    """
    The single inspection / appraisal of a property plus the appraisal's
    latest review and its delivery. Queries run in dependency order.
    """
    inspection = store.find("inspections", [eq("property_id", property_id)], single=True)
    appraisal = store.find("appraisals", [eq("property_id", property_id)], single=True)

    review: Optional[dict] = None
    delivery: Optional[dict] = None
    if appraisal is not None:
        review = store.find(
            "reviews",
            [eq("appraisal_id", appraisal["id"])],
            order_by="created_at",
            descending=True,
            single=True,
        )
        delivery = store.find("deliveries", [eq("appraisal_id", appraisal["id"])], single=True)

    return WorkflowSnapshot(inspection=inspection, appraisal=appraisal, review=review, delivery=delivery)


def sync_stored_status(store: RecordStore, *, property_id: int) -> Optional[str]:
    """
    Re-derive the stage and copy it to Property.status when it changed.
    Returns the derived stage, or None if the property does not exist.
    """
    prop = store.get("properties", property_id)
    if prop is None:
        return None

    stage = derived_stage(store, prop)
    if prop.get("status") != stage:
        store.update("properties", [eq("id", property_id)], {"status": stage, "updated_at": _utcnow()})
        log.info(
            "stored status synced",
            extra={"property_id": property_id, "from_status": prop.get("status"), "to_status": stage},
        )
    return stage
