"""Pytest configuration and shared fixtures."""
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from watersafe.config import Settings
from watersafe.database import create_database, init_db
from watersafe.main import create_app
from watersafe.services.lifecycle import ReportLifecycle
from watersafe.services.validator import validate_submission


class FakeClock:
    """Deterministic clock: returns the current time, then steps forward."""

    def __init__(self, start=datetime(2026, 3, 1, 9, 0, 0), step=timedelta(minutes=1)):
        self.current = start
        self.step = step

    def set(self, when):
        self.current = when

    def __call__(self):
        now = self.current
        self.current = now + self.step
        return now


@pytest.fixture
def db_session():
    """Create a fresh in-memory database for each test."""
    engine, TestingSessionLocal = create_database("sqlite://")
    init_db(engine)

    session = TestingSessionLocal()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def lifecycle(db_session, clock):
    """Lifecycle service with the permissive transition table."""
    return ReportLifecycle(db_session, clock=clock)


@pytest.fixture
def submit(lifecycle):
    """Create a report through validation and the lifecycle, with overridable fields."""
    def _submit(**overrides):
        payload = {
            "location": "Lake X",
            "issueType": "pollution",
            "priority": "critical",
            "description": "oil sheen",
        }
        payload.update(overrides)
        return lifecycle.create(validate_submission(payload))
    return _submit


@pytest.fixture
def test_settings():
    return Settings(_env_file=None, database_url="sqlite://", log_level="WARNING")


@pytest.fixture
def app(test_settings):
    return create_app(test_settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def report_payload():
    return {
        "location": "Lake X",
        "issueType": "pollution",
        "priority": "critical",
        "description": "oil sheen",
        "anonymous": True,
    }
