# backend/tests/test_workflow_gate.py
from __future__ import annotations

from app.domain.workflow_gate import (
    WorkflowSnapshot,
    compute_steps,
    compute_tabs,
    delivery_blocked_reason,
    review_blocked_reason,
    show_client_info,
)

PENDING_APPRAISAL = {"id": 1, "status": "pending"}
DONE_APPRAISAL = {"id": 1, "status": "completed"}
APPROVED = {"id": 3, "review_status": "approved"}


def test_details_always_visible_never_editable():
    for role in ("admin", "appraiser", "inspector", "reviewer", "client"):
        t = compute_tabs(role, WorkflowSnapshot())["details"]
        assert t.visible and not t.editable


def test_client_with_no_records_sees_only_details():
    tabs = compute_tabs("client", WorkflowSnapshot())
    assert [k for k, t in tabs.items() if t.visible] == ["details"]


def test_existing_record_is_visible_but_not_editable_for_other_roles():
    snap = WorkflowSnapshot(inspection={"id": 1, "status": "completed"})
    t = compute_tabs("appraiser", snap)["inspection"]
    assert t.visible is True
    assert t.editable is False
    assert t.actionable is False


def test_review_tab_needs_an_appraisal_and_is_ready_only_when_completed():
    assert compute_tabs("reviewer", WorkflowSnapshot())["review"].visible is False

    pending = compute_tabs("reviewer", WorkflowSnapshot(appraisal=PENDING_APPRAISAL))["review"]
    assert pending.visible and pending.editable
    assert pending.ready is False
    assert pending.actionable is False

    done = compute_tabs("reviewer", WorkflowSnapshot(appraisal=DONE_APPRAISAL))["review"]
    assert done.actionable is True


def test_delivery_tab_requires_approved_review():
    snap = WorkflowSnapshot(appraisal=DONE_APPRAISAL, review={"id": 3, "review_status": "rejected"})
    assert compute_tabs("reviewer", snap)["delivery"].visible is False

    snap = WorkflowSnapshot(appraisal=DONE_APPRAISAL, review=APPROVED)
    t = compute_tabs("reviewer", snap)["delivery"]
    assert t.visible and t.editable and t.ready


def test_delivery_not_ready_once_delivered():
    snap = WorkflowSnapshot(appraisal=DONE_APPRAISAL, review=APPROVED, delivery={"id": 4})
    t = compute_tabs("admin", snap)["delivery"]
    assert t.visible is True
    assert t.ready is False

    # the owner can see the delivery record, read-only
    c = compute_tabs("client", snap)["delivery"]
    assert c.visible is True and c.editable is False


def test_steps_strip():
    snap = WorkflowSnapshot(
        inspection={"status": "completed"},
        appraisal=DONE_APPRAISAL,
        review={"review_status": "needs_revision"},
    )
    steps = {s["id"]: s["completed"] for s in compute_steps(snap)}
    assert steps == {"intake": True, "inspection": True, "appraisal": True, "review": False, "delivery": False}


def test_client_info_hidden_from_clients_only():
    assert show_client_info("client") is False
    assert show_client_info("inspector") is True


def test_blocked_reasons():
    assert review_blocked_reason(WorkflowSnapshot()) is not None
    assert review_blocked_reason(WorkflowSnapshot(appraisal=PENDING_APPRAISAL)) is not None
    assert review_blocked_reason(WorkflowSnapshot(appraisal=DONE_APPRAISAL)) is None

    assert delivery_blocked_reason(WorkflowSnapshot(appraisal=DONE_APPRAISAL)) is not None
    assert delivery_blocked_reason(WorkflowSnapshot(appraisal=DONE_APPRAISAL, review=APPROVED)) is None
    assert delivery_blocked_reason(
        WorkflowSnapshot(appraisal=DONE_APPRAISAL, review=APPROVED, delivery={"id": 1})
    ) == "report already delivered"


def test_approval_of_a_reopened_appraisal_does_not_open_delivery():
    snap = WorkflowSnapshot(appraisal=PENDING_APPRAISAL, review=APPROVED)
    assert snap.review_approved is False
    assert delivery_blocked_reason(snap) == "delivery requires an approved review"
    assert compute_tabs("reviewer", snap)["delivery"].visible is False
    assert [s["completed"] for s in compute_steps(snap)][3] is False
