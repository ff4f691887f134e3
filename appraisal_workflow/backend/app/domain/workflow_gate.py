# backend/app/domain/workflow_gate.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

ROLES = ("admin", "appraiser", "inspector", "reviewer", "client")
TABS = ("details", "inspection", "appraisal", "review", "delivery")

# Roles allowed to edit each form. "details" has no form.
EDITORS: dict[str, frozenset[str]] = {
    "details": frozenset(),
    "inspection": frozenset({"inspector", "admin"}),
    "appraisal": frozenset({"appraiser", "admin"}),
    "review": frozenset({"reviewer", "admin"}),
    "delivery": frozenset({"reviewer", "admin"}),
}

Record = Optional[Mapping[str, Any]]


@dataclass(frozen=True)
class TabAccess:
    visible: bool
    editable: bool
    ready: bool = True

    @property
    def actionable(self) -> bool:
        # a mutation is offered only when all three hold
        return self.visible and self.editable and self.ready

    def as_dict(self) -> dict:
        return {
            "visible": self.visible,
            "editable": self.editable,
            "ready": self.ready,
            "actionable": self.actionable,
        }


@dataclass(frozen=True)
class WorkflowSnapshot:
    inspection: Record = None
    appraisal: Record = None
    review: Record = None  # latest
    delivery: Record = None

    @property
    def appraisal_completed(self) -> bool:
        return bool(self.appraisal) and self.appraisal.get("status") == "completed"

    @property
    def review_approved(self) -> bool:
        # an approval only counts while the appraisal it approved is completed
        return self.appraisal_completed and bool(self.review) and self.review.get("review_status") == "approved"


def can_edit(role: str | None, tab: str) -> bool:
    return (role or "") in EDITORS.get(tab, frozenset())


def compute_tabs(role: str | None, snap: WorkflowSnapshot) -> dict[str, TabAccess]:
    """
    Visibility (may this role see the tab) and edit permission (may this
    role submit the form) are computed separately. Record existence opens a
    tab read-only for other roles; it never grants editing.
    """
    inspection_visible = can_edit(role, "inspection") or snap.inspection is not None
    appraisal_visible = can_edit(role, "appraisal") or snap.appraisal is not None
    review_visible = (can_edit(role, "review") or snap.review is not None) and snap.appraisal is not None
    delivery_visible = (can_edit(role, "delivery") or snap.delivery is not None) and snap.review_approved

    return {
        "details": TabAccess(visible=True, editable=False),
        "inspection": TabAccess(visible=inspection_visible, editable=can_edit(role, "inspection")),
        "appraisal": TabAccess(visible=appraisal_visible, editable=can_edit(role, "appraisal")),
        "review": TabAccess(
            visible=review_visible,
            editable=can_edit(role, "review"),
            ready=snap.appraisal_completed,
        ),
        "delivery": TabAccess(
            visible=delivery_visible,
            editable=can_edit(role, "delivery"),
            ready=snap.delivery is None,
        ),
    }


def compute_steps(snap: WorkflowSnapshot) -> list[dict]:
    """Progress strip: which workflow steps are done."""
    inspection_done = bool(snap.inspection) and snap.inspection.get("status") == "completed"
    return [
        {"id": "intake", "completed": True},
        {"id": "inspection", "completed": inspection_done},
        {"id": "appraisal", "completed": snap.appraisal_completed},
        {"id": "review", "completed": snap.review_approved},
        {"id": "delivery", "completed": snap.delivery is not None},
    ]


def show_client_info(role: str | None) -> bool:
    return bool(role) and role != "client"


def review_blocked_reason(snap: WorkflowSnapshot) -> str | None:
    if snap.appraisal is None:
        return "appraisal not found"
    if not snap.appraisal_completed:
        return "review is not possible before the appraisal is completed"
    return None


def delivery_blocked_reason(snap: WorkflowSnapshot) -> str | None:
    if not snap.review_approved:
        return "delivery requires an approved review"
    if snap.delivery is not None:
        return "report already delivered"
    return None
