# backend/tests/test_workflow_status.py
from __future__ import annotations

from datetime import datetime

from app.domain.workflow_status import completion_timestamp, derive_status


def test_no_children_is_intake():
    assert derive_status({}) == "intake"
    assert derive_status({"inspections": None, "appraisals": None}) == "intake"


def test_pending_inspection_is_inspection():
    assert derive_status({"inspections": [{"status": "pending"}]}) == "inspection"
    assert derive_status({"inspections": [{"status": "in_progress"}]}) == "inspection"


def test_completed_inspection_moves_to_appraisal():
    assert derive_status({"inspections": [{"status": "completed"}], "appraisals": []}) == "appraisal"


def test_pending_appraisal_is_appraisal_even_with_completed_inspection():
    rec = {
        "inspections": [{"status": "completed"}],
        "appraisals": [{"status": "pending", "reviews": [], "deliveries": []}],
    }
    assert derive_status(rec) == "appraisal"


def test_completed_appraisal_is_review():
    rec = {"appraisals": [{"status": "completed", "reviews": [{"review_status": "approved"}]}]}
    assert derive_status(rec) == "review"


def test_any_delivery_wins_over_everything():
    rec = {
        "inspections": [{"status": "pending"}],
        "appraisals": [
            {"status": "pending", "deliveries": []},
            {"status": "pending", "deliveries": [{"id": 9}]},
        ],
    }
    assert derive_status(rec) == "completed"


def test_any_semantics_across_several_appraisals():
    rec = {
        "appraisals": [
            {"status": "pending"},
            {"status": "completed"},
        ]
    }
    assert derive_status(rec) == "review"


def test_stored_status_is_ignored():
    assert derive_status({"status": "completed", "inspections": []}) == "intake"


def test_completion_timestamp_set_on_transition():
    now = datetime(2026, 10, 1, 9, 0)
    got = completion_timestamp(
        previous_status="in_progress", previous_completed_at=None, new_status="completed", done=("completed",), now=now
    )
    assert got == now


def test_completion_timestamp_kept_while_done():
    first = datetime(2026, 9, 1, 9, 0)
    got = completion_timestamp(
        previous_status="completed",
        previous_completed_at=first,
        new_status="completed",
        done=("completed",),
        now=datetime(2026, 10, 1),
    )
    assert got == first


def test_completion_timestamp_cleared_when_reopened():
    got = completion_timestamp(
        previous_status="completed",
        previous_completed_at=datetime(2026, 9, 1),
        new_status="in_progress",
        done=("completed",),
        now=datetime(2026, 10, 1),
    )
    assert got is None
