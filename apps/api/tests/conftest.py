from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete

# Settings are read at import time; point everything at an in-memory store first
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["EVENT_STORE_BACKEND"] = "sql"
os.environ.setdefault("ENV", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("MAP_PROVIDER_API_KEY", "test-map-key")
os.environ["EVENT_TTL_HOURS"] = "0"

from freefood.db import SessionLocal, engine  # noqa: E402
from freefood.main import app  # noqa: E402
from freefood.models import Base, Event  # noqa: E402
from freefood.store import get_event_store  # noqa: E402

Base.metadata.create_all(engine)


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def store():
    return get_event_store()


@pytest.fixture(autouse=True)
def clean_db():
    # Ensure a clean slate for each test
    db = SessionLocal()
    try:
        db.execute(delete(Event))
        db.commit()
    finally:
        db.close()
    app.dependency_overrides.clear()
    yield
    app.dependency_overrides.clear()
