# backend/app/logging_config.py
"""
JSON log lines for the appraisal workflow service.

Every line carries the request id and the app env. Workflow writes log the
ids of the records they touched and the stage transition, passed through
``extra=``, so one property's path from intake to delivery can be followed
across requests by filtering on property_id.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from .config import settings
from .middleware.request_id import get_request_id

# Keys copied from ``extra=`` onto the JSON line. Anything else is dropped.
LOG_EXTRAS = (
    # who
    "user_id",
    "role",
    # which records
    "property_id",
    "appraisal_id",
    "collection",
    # what happened to them
    "status",
    "stage",
    "from_status",
    "to_status",
    "source",
    "reason",
)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "env": settings.app_env,
            "message": record.getMessage(),
        }

        rid = get_request_id()
        if rid:
            payload["request_id"] = rid

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        for k in LOG_EXTRAS:
            if hasattr(record, k):
                payload[k] = getattr(record, k)

        # Arabic addresses and names stay readable in the log
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging() -> None:
    level = (os.getenv("LOG_LEVEL") or "INFO").upper()

    root = logging.getLogger()
    root.setLevel(level)

    # create_app() may run more than once per process (uvicorn reload, tests)
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())

    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel((os.getenv("SQL_LOG_LEVEL") or "WARNING").upper())
