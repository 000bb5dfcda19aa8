from __future__ import annotations

import os

# Must be set before main/database are imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["SEED_DEMO_DATA"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, Settings
from core.broadcaster import build_envelope
from core.repository import InMemoryRepository, SqlRepository


class RecordingBroadcaster:
    """Stands in for the realtime broadcaster in manager tests."""

    def __init__(self):
        self.events = []

    def publish(self, event_type, data):
        self.events.append(build_envelope(event_type, data))

    @property
    def types(self):
        return [event["type"] for event in self.events]


@pytest.fixture
def app_client():
    from main import app

    with TestClient(app) as client:
        yield app, client
    app.dependency_overrides.clear()


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def sql_repo():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield SqlRepository(sessionmaker(autocommit=False, autoflush=False, bind=engine))
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def any_repo(request):
    """Runs a test against both repository backends."""
    return request.getfixturevalue("repo" if request.param == "memory" else "sql_repo")


@pytest.fixture
def events():
    return RecordingBroadcaster()


@pytest.fixture
def settings():
    return Settings(seed_demo_data=False, strict_round_transitions=False)


@pytest.fixture
def anyio_backend():
    return "asyncio"
