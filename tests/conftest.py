"""Pytest configuration and fixtures for test suite."""

import os
import tempfile

# The engine is built at import time, so the database has to be chosen first.
_DB_DIR = tempfile.mkdtemp(prefix="jalrakshak-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["SEED_SENSORS"] = "0"

import pytest
from fastapi.testclient import TestClient

from jalrakshak.database import Base, SessionLocal, engine
from jalrakshak.main import app
from jalrakshak.schemas import Readings
from jalrakshak.store import Store


class RecordingHub:
    """Stands in for the broadcast hub and keeps every published event."""

    def __init__(self):
        self.events = []

    def publish(self, event_type, payload):
        self.events.append((event_type, payload))

    @property
    def types(self):
        return [t for t, _ in self.events]


@pytest.fixture(autouse=True)
def fresh_database():
    """Every test starts from empty tables."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return Store(db)


@pytest.fixture
def recording_hub():
    return RecordingHub()


@pytest.fixture
def client():
    """TestClient with the lifespan running, so the hub is bound to the app's loop."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_readings():
    def _make(ph=7.2, turbidity=5.0, temperature=24.0, dissolved_oxygen=7.0):
        return Readings(
            ph=ph,
            turbidity=turbidity,
            temperature=temperature,
            dissolved_oxygen=dissolved_oxygen,
        )
    return _make
