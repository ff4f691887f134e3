# backend/tests/test_request_logging.py
from __future__ import annotations

import json
import logging

from app.logging_config import JsonFormatter
from app.middleware.request_id import clean_request_id, request_id_ctx


def test_safe_incoming_request_id_is_echoed(client):
    r = client.get("/api/health", headers={"X-Request-ID": "web-42.a_b"})
    assert r.headers["X-Request-ID"] == "web-42.a_b"


def test_unsafe_request_id_is_replaced(client):
    r = client.get("/api/health", headers={"X-Request-ID": "bad id\twith spaces"})
    rid = r.headers["X-Request-ID"]
    assert rid != "bad id\twith spaces"
    assert len(rid) == 36

    assert clean_request_id("x" * 65) != "x" * 65
    assert clean_request_id(None)


def test_log_line_carries_request_id_and_workflow_extras():
    record = logging.LogRecord("app.routers.appraisals", logging.INFO, __file__, 1, "appraisal saved", None, None)
    record.property_id = 7
    record.stage = "review"
    record.unrelated = "dropped"

    token = request_id_ctx.set("req-1")
    try:
        line = json.loads(JsonFormatter().format(record))
    finally:
        request_id_ctx.reset(token)

    assert line["request_id"] == "req-1"
    assert line["env"] == "test"
    assert line["property_id"] == 7 and line["stage"] == "review"
    assert "unrelated" not in line
