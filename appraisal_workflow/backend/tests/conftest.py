# backend/tests/conftest.py
from __future__ import annotations

import os
import tempfile

# must be set before app.config is imported anywhere
_DB_PATH = os.path.join(tempfile.gettempdir(), f"appraisal_workflow_test_{os.getpid()}.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_PATH}"
os.environ["APP_ENV"] = "test"
os.environ["AUTH_MODE"] = "dev"
os.environ["DEV_AUTO_PROVISION"] = "true"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app import models  # noqa: E402
from app.db import Base, SessionLocal, engine  # noqa: E402
from app.main import create_app  # noqa: E402
from app.store import RecordStore  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_schema():
    models.drop_full_reports_view(engine)
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    models.create_full_reports_view(engine)
    yield


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


@pytest.fixture
def store():
    db = SessionLocal()
    try:
        yield RecordStore(db)
    finally:
        db.close()


def pytest_sessionfinish(session, exitstatus):
    engine.dispose()
    if os.path.exists(_DB_PATH):
        os.remove(_DB_PATH)
