# backend/tests/test_report_schema.py
from __future__ import annotations

from datetime import date, datetime

from app.domain.report_schema import REPORT_SCHEMA_VERSION, normalize_services, upgrade_report_row


def test_services_from_list_drops_empty_entries():
    assert normalize_services(["water", "", None, "  power "]) == ["water", "power"]


def test_services_from_json_string():
    assert normalize_services('["water","sewage"]') == ["water", "sewage"]


def test_services_from_delimited_string():
    assert normalize_services("water\npower, sewage") == ["water", "power", "sewage"]


def test_services_malformed_json_falls_back_to_split():
    assert normalize_services('["water", "power"') == ['["water"', '"power"']


def test_services_json_scalar_splits_raw_string():
    assert normalize_services('"water,power"') == ['"water', 'power"']
    assert normalize_services("42") == ["42"]


def test_services_empty_values():
    assert normalize_services(None) == []
    assert normalize_services("") == []
    assert normalize_services("   ") == []
    assert normalize_services([]) == []


def _minimal_row(**extra):
    row = {
        "appraisal_id": 1,
        "property_id": 2,
        "owner_id": 3,
        "property_address": "Olaya St",
        "property_type": "residential",
        "appraisal_status": "completed",
        "delivery_id": 4,
        "delivery_method": "email",
    }
    row.update(extra)
    return row


def test_upgrade_fills_missing_fields_and_normalizes():
    rep = upgrade_report_row(
        _minimal_row(
            public_services="school\nmosque",
            amenities='["pool"]',
            delivered_at=datetime(2026, 10, 1, 12, 30),
            deed_date=date(2020, 5, 17),
        )
    )
    assert rep.schema_version == REPORT_SCHEMA_VERSION
    assert rep.public_services == ["school", "mosque"]
    assert rep.health_services == []
    assert rep.onsite_services == []
    assert rep.amenities == ["pool"]
    assert rep.delivered_at == "2026-10-01T12:30:00"
    assert rep.deed_date == "2020-05-17"
    assert rep.boundary_north is None


def test_upgrade_is_deterministic():
    row = _minimal_row(health_services=["clinic"], delivered_at="2026-10-01 12:30:00")
    assert upgrade_report_row(row).model_dump_json() == upgrade_report_row(dict(row)).model_dump_json()
