# backend/tests/test_workflow_api.py
from __future__ import annotations

from app import models
from app.db import engine


def _headers(email: str, role: str) -> dict[str, str]:
    return {"X-User-Email": email, "X-User-Role": role}


CLIENT = _headers("client@demo.local", "client")
OTHER_CLIENT = _headers("other@demo.local", "client")
INSPECTOR = _headers("inspector@demo.local", "inspector")
APPRAISER = _headers("appraiser@demo.local", "appraiser")
REVIEWER = _headers("reviewer@demo.local", "reviewer")
ADMIN = _headers("admin@demo.local", "admin")


def _submit_property(client, headers=CLIENT, **extra) -> dict:
    payload = {
        "property_address": "Olaya Street 1, Riyadh",
        "property_type": "residential",
        "area_sqm": 350,
        "bedrooms": 4,
        "owner_name": "Sara",
        "owner_contact": "0500000000",
    }
    payload.update(extra)
    r = client.post("/api/properties", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def _complete_inspection(client, property_id: int) -> dict:
    r = client.put(
        "/api/inspections",
        json={
            "property_id": property_id,
            "status": "completed",
            "inspection_date": "2026-09-01",
            "structural_condition": "good",
            "building_license_no": "BL-1",
            "amenities": ["garden", ""],
        },
        headers=INSPECTOR,
    )
    assert r.status_code == 200, r.text
    return r.json()


def _complete_appraisal(client, property_id: int) -> dict:
    r = client.put(
        "/api/appraisals",
        json={"property_id": property_id, "status": "completed", "final_value": 1200000, "boundary_north": "Street"},
        headers=APPRAISER,
    )
    assert r.status_code == 200, r.text
    return r.json()


def _approve(client, appraisal_id: int) -> dict:
    r = client.put("/api/reviews", json={"appraisal_id": appraisal_id, "review_status": "approved"}, headers=REVIEWER)
    assert r.status_code == 200, r.text
    return r.json()


def _deliver(client, appraisal_id: int):
    return client.post(
        "/api/deliveries",
        json={"appraisal_id": appraisal_id, "delivery_method": "email", "recipient_email": "client@demo.local"},
        headers=REVIEWER,
    )


def _stage(client, property_id: int, headers=ADMIN) -> str:
    r = client.get(f"/api/properties/{property_id}", headers=headers)
    assert r.status_code == 200, r.text
    return r.json()["derived_status"]


def test_full_workflow_end_to_end(client):
    prop = _submit_property(client)
    pid = prop["id"]
    assert prop["status"] == "intake"
    assert _stage(client, pid) == "intake"

    ins = _complete_inspection(client, pid)
    assert ins["completed_at"] is not None
    assert ins["amenities"] == ["garden"]
    assert _stage(client, pid) == "appraisal"

    appraisal = _complete_appraisal(client, pid)
    assert appraisal["inspection_id"] == ins["id"]
    assert appraisal["inspection_date_ro"] == "2026-09-01"
    assert appraisal["doc_building_license_no"] == "BL-1"
    assert appraisal["currency"] == "SAR"
    assert _stage(client, pid) == "review"

    review = _approve(client, appraisal["id"])
    assert review["completed_at"] is not None

    r = _deliver(client, appraisal["id"])
    assert r.status_code == 201, r.text
    assert _stage(client, pid) == "completed"

    detail = client.get(f"/api/properties/{pid}", headers=CLIENT).json()
    assert detail["property"]["status"] == "completed"
    assert detail["show_client_info"] is False
    assert detail["tabs"]["delivery"]["visible"] is True
    assert detail["tabs"]["delivery"]["editable"] is False
    assert all(s["completed"] for s in detail["steps"])

    r = client.get(f"/api/properties/{pid}/report", headers=CLIENT)
    assert r.status_code == 200
    assert r.json()["appraisal_id"] == appraisal["id"]

    r = client.get(f"/api/reports/{appraisal['id']}", headers=CLIENT)
    assert r.status_code == 200, r.text
    assert r.headers["X-Report-Source"] == "view"
    body = r.json()
    assert body["final_value"] == 1200000
    assert body["amenities"] == ["garden"]
    assert body["boundary_north"] == "Street"


def test_report_fallback_over_http_when_view_missing(client):
    pid = _submit_property(client)["id"]
    _complete_inspection(client, pid)
    appraisal = _complete_appraisal(client, pid)
    _approve(client, appraisal["id"])
    assert _deliver(client, appraisal["id"]).status_code == 201

    models.drop_full_reports_view(engine)
    r = client.get(f"/api/reports/{appraisal['id']}", headers=CLIENT)
    assert r.status_code == 200, r.text
    assert r.headers["X-Report-Source"] == "fallback"


def test_report_access_codes(client):
    pid = _submit_property(client)["id"]
    _complete_inspection(client, pid)
    appraisal = _complete_appraisal(client, pid)

    # completed but not delivered yet
    assert client.get(f"/api/reports/{appraisal['id']}", headers=CLIENT).status_code == 404
    assert client.get(f"/api/properties/{pid}/report", headers=CLIENT).status_code == 404

    _approve(client, appraisal["id"])
    assert _deliver(client, appraisal["id"]).status_code == 201

    assert client.get(f"/api/reports/{appraisal['id']}", headers=OTHER_CLIENT).status_code == 403
    assert client.get(f"/api/reports/{appraisal['id']}", headers=ADMIN).status_code == 200
    assert client.get("/api/reports/9999", headers=ADMIN).status_code == 404


def test_appraisal_requires_completed_inspection(client):
    pid = _submit_property(client)["id"]
    r = client.put("/api/appraisals", json={"property_id": pid}, headers=APPRAISER)
    assert r.status_code == 409

    client.put("/api/inspections", json={"property_id": pid, "status": "in_progress"}, headers=INSPECTOR)
    r = client.put("/api/appraisals", json={"property_id": pid}, headers=APPRAISER)
    assert r.status_code == 409
    assert _stage(client, pid) == "inspection"


def test_review_refused_until_appraisal_completed(client):
    pid = _submit_property(client)["id"]
    _complete_inspection(client, pid)
    r = client.put("/api/appraisals", json={"property_id": pid, "status": "pending"}, headers=APPRAISER)
    appraisal_id = r.json()["id"]

    r = client.put("/api/reviews", json={"appraisal_id": appraisal_id, "review_status": "approved"}, headers=REVIEWER)
    assert r.status_code == 409

    detail = client.get(f"/api/properties/{pid}", headers=REVIEWER).json()
    assert detail["tabs"]["review"]["visible"] is True
    assert detail["tabs"]["review"]["ready"] is False
    assert detail["tabs"]["review"]["actionable"] is False


def test_delivery_rules(client):
    pid = _submit_property(client)["id"]
    _complete_inspection(client, pid)
    appraisal = _complete_appraisal(client, pid)
    aid = appraisal["id"]

    # no approved review yet
    assert _deliver(client, aid).status_code == 409

    client.put("/api/reviews", json={"appraisal_id": aid, "review_status": "needs_revision"}, headers=REVIEWER)
    assert _deliver(client, aid).status_code == 409

    _approve(client, aid)
    r = client.post("/api/deliveries", json={"appraisal_id": aid, "delivery_method": "email"}, headers=REVIEWER)
    assert r.status_code == 422

    r = client.post("/api/deliveries", json={"appraisal_id": aid, "delivery_method": "courier"}, headers=REVIEWER)
    assert r.status_code == 201, r.text

    # only one delivery per appraisal
    assert _deliver(client, aid).status_code == 409


def test_roles_that_cannot_edit_get_403(client):
    pid = _submit_property(client)["id"]
    assert client.put("/api/inspections", json={"property_id": pid}, headers=CLIENT).status_code == 403
    assert client.put("/api/inspections", json={"property_id": pid}, headers=APPRAISER).status_code == 403
    _complete_inspection(client, pid)
    assert client.put("/api/appraisals", json={"property_id": pid}, headers=INSPECTOR).status_code == 403
    appraisal = _complete_appraisal(client, pid)
    r = client.put("/api/reviews", json={"appraisal_id": appraisal["id"]}, headers=APPRAISER)
    assert r.status_code == 403


def test_unknown_records_are_404(client):
    assert client.put("/api/inspections", json={"property_id": 4242}, headers=INSPECTOR).status_code == 404
    assert client.put("/api/reviews", json={"appraisal_id": 4242}, headers=REVIEWER).status_code == 404
    assert client.get("/api/properties/4242", headers=ADMIN).status_code == 404


def test_delivery_refused_after_appraisal_reopened(client):
    pid = _submit_property(client)["id"]
    _complete_inspection(client, pid)
    appraisal = _complete_appraisal(client, pid)
    _approve(client, appraisal["id"])

    r = client.put("/api/appraisals", json={"property_id": pid, "status": "pending"}, headers=APPRAISER)
    assert r.status_code == 200, r.text

    assert _deliver(client, appraisal["id"]).status_code == 409
    assert _stage(client, pid) == "appraisal"

    detail = client.get(f"/api/properties/{pid}", headers=REVIEWER).json()
    assert detail["tabs"]["delivery"]["visible"] is False

    # completing it again restores the approved review
    _complete_appraisal(client, pid)
    assert _deliver(client, appraisal["id"]).status_code == 201
    assert client.get(f"/api/reports/{appraisal['id']}", headers=CLIENT).status_code == 200


def test_delivered_appraisal_cannot_be_reopened(client):
    pid = _submit_property(client)["id"]
    _complete_inspection(client, pid)
    appraisal = _complete_appraisal(client, pid)
    _approve(client, appraisal["id"])
    assert _deliver(client, appraisal["id"]).status_code == 201

    r = client.put("/api/appraisals", json={"property_id": pid, "status": "pending"}, headers=APPRAISER)
    assert r.status_code == 409
    assert _stage(client, pid) == "completed"
    assert client.get(f"/api/reports/{appraisal['id']}", headers=CLIENT).status_code == 200
