# backend/app/domain/workflow_status.py
from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

# Ordered workflow stages. The stage is always derived from child records;
# Property.status is a denormalized copy that may lag.
STAGE_ORDER = ["intake", "inspection", "appraisal", "review", "completed"]


def _children(record: Mapping[str, Any] | None, key: str) -> list[Mapping[str, Any]]:
    if not record:
        return []
    items: Optional[Iterable[Mapping[str, Any]]] = record.get(key)
    return list(items or [])


def _any_status(items: list[Mapping[str, Any]], key: str, value: str) -> bool:
    return any((it or {}).get(key) == value for it in items)


def derive_status(property_record: Mapping[str, Any]) -> str:
    """
    Map a property and its nested workflow records to one stage label.

    Expects the shape:
        {
            "inspections": [{"status": ...}, ...],
            "appraisals": [
                {"status": ..., "reviews": [...], "deliveries": [...]},
                ...
            ],
        }

    Missing or None collections count as empty. Several inspections or
    appraisals are tolerated: every rule uses "any", never "the".
    """
    appraisals = _children(property_record, "appraisals")

    if any(_children(a, "deliveries") for a in appraisals):
        return "completed"

    if appraisals:
        return "review" if _any_status(appraisals, "status", "completed") else "appraisal"

    inspections = _children(property_record, "inspections")
    if inspections:
        return "appraisal" if _any_status(inspections, "status", "completed") else "inspection"

    return "intake"


def completion_timestamp(
    *,
    previous_status: Optional[str],
    previous_completed_at: Any,
    new_status: str,
    done: Iterable[str],
    now: Any,
) -> Any:
    """
    completed_at bookkeeping for inspections, appraisals and reviews:
    stamped on the transition into a done status, kept while it stays done,
    cleared when it leaves.
    """
    done_set = set(done)
    if new_status not in done_set:
        return None
    if previous_status in done_set and previous_completed_at is not None:
        return previous_completed_at
    return now
