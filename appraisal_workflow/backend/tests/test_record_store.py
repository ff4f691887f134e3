# backend/tests/test_record_store.py
from __future__ import annotations

from datetime import datetime

import pytest

from app.store import (
    ConstraintError,
    SchemaUnavailableError,
    eq,
    gte,
    ilike,
    ilike_any,
    in_,
    lte,
)


def _mk_user(store, email: str = "owner@demo.local", role: str = "client") -> dict:
    return store.insert("profiles", {"email": email, "role": role, "full_name": "Owner"})


def _mk_property(store, user_id: int, address: str, **extra) -> dict:
    rec = {
        "user_id": user_id,
        "property_address": address,
        "property_type": "residential",
        "area_sqm": 300.0,
        "owner_name": "Owner",
        "owner_contact": "0500000000",
    }
    rec.update(extra)
    return store.insert("properties", rec)


def test_find_without_match_is_empty_not_error(store):
    assert store.find("properties", [eq("id", 12345)]) == []
    assert store.find("properties", [eq("id", 12345)], single=True) is None
    assert store.get("properties", 12345) is None


def test_filters_order_and_limit(store):
    u = _mk_user(store)
    _mk_property(store, u["id"], "Olaya Street 1", area_sqm=100.0, owner_name="Sara")
    _mk_property(store, u["id"], "Malaz Road 2", area_sqm=250.0, owner_name="Omar")
    _mk_property(store, u["id"], "Olaya Street 3", area_sqm=400.0, owner_name="Huda")

    rows = store.find("properties", [ilike("property_address", "olaya")], order_by="area_sqm", descending=True)
    assert [r["area_sqm"] for r in rows] == [400.0, 100.0]

    rows = store.find("properties", [gte("area_sqm", 200), lte("area_sqm", 300)])
    assert [r["property_address"] for r in rows] == ["Malaz Road 2"]

    rows = store.find("properties", [ilike_any(("property_address", "owner_name"), "omar")])
    assert len(rows) == 1

    rows = store.find("properties", [in_("owner_name", ["Sara", "Huda"])], order_by="id", limit=1)
    assert [r["owner_name"] for r in rows] == ["Sara"]


def test_ilike_treats_wildcards_literally(store):
    u = _mk_user(store)
    _mk_property(store, u["id"], "100% Street")
    _mk_property(store, u["id"], "Other Street")
    assert len(store.find("properties", [ilike("property_address", "%")])) == 1


def test_unknown_collection_or_field_is_schema_unavailable(store):
    with pytest.raises(SchemaUnavailableError):
        store.find("no_such_collection")
    with pytest.raises(SchemaUnavailableError):
        store.find("properties", [eq("no_such_column", 1)])


def test_missing_view_is_schema_unavailable(store):
    from app import models
    from app.db import engine

    models.drop_full_reports_view(engine)
    with pytest.raises(SchemaUnavailableError):
        store.find("full_reports", [eq("appraisal_id", 1)])


def test_unique_constraint_is_constraint_error(store):
    u = _mk_user(store)
    p = _mk_property(store, u["id"], "Olaya Street 1")
    store.insert("inspections", {"property_id": p["id"], "status": "pending"})
    with pytest.raises(ConstraintError):
        store.insert("inspections", {"property_id": p["id"], "status": "pending"})

    # the session is usable again after the failure
    assert store.find("inspections", [eq("property_id", p["id"])], single=True)["status"] == "pending"


def test_views_are_read_only(store):
    with pytest.raises(ConstraintError):
        store.insert("full_reports", {"appraisal_id": 1})


def test_update_returns_row_count(store):
    u = _mk_user(store)
    p = _mk_property(store, u["id"], "Olaya Street 1")
    n = store.update("properties", [eq("id", p["id"])], {"status": "inspection", "updated_at": datetime.utcnow()})
    assert n == 1
    assert store.update("properties", [eq("id", 999)], {"status": "inspection"}) == 0
    assert store.get("properties", p["id"])["status"] == "inspection"


def test_upsert_on_conflict_key(store):
    u = _mk_user(store)
    p = _mk_property(store, u["id"], "Olaya Street 1")

    first = store.upsert("intake_records", {"property_id": p["id"], "reference_no": "R-1"}, conflict_key="property_id")
    second = store.upsert("intake_records", {"property_id": p["id"], "reference_no": "R-2"}, conflict_key="property_id")

    assert first["id"] == second["id"]
    assert second["reference_no"] == "R-2"
    assert len(store.find("intake_records", [eq("property_id", p["id"])])) == 1
