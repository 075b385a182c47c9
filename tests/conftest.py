"""
Test configuration and fixtures.
Every test gets its own SQLite file database so that the BEGIN IMMEDIATE
transaction path is exercised exactly as the service runs it.
"""

import os
import tempfile

# Configuration is read from the environment; keep tests off Zero and Redis.
os.environ.pop("ZERO_TOKEN", None)
os.environ.pop("REDIS_URL", None)
os.environ.pop("REDIS_HOST", None)
os.environ.pop("CORS_ORIGINS", None)
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite:///{os.path.join(tempfile.gettempdir(), 'ceart_api_lifespan.db')}",
)

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient

from ceart_api.main import app
from ceart_api.api.dependencies import (
    get_capacity_ledger,
    get_category_service,
    get_event_publisher,
    get_event_service,
)
from ceart_api.db.database import DatabaseManager, get_db
from ceart_api.schemas.booking import RequesterInfo
from ceart_api.schemas.event import EventCreate
from ceart_api.services.capacity_ledger import CapacityLedger
from ceart_api.services.category_service import CategoryService
from ceart_api.services.event_service import EventService


@pytest.fixture
def database(tmp_path):
    """A fresh file-backed database with all tables created."""
    manager = DatabaseManager()
    manager.configure(f"sqlite:///{tmp_path / 'ceart_test.db'}")
    manager.create_tables()
    yield manager
    manager.close()


@pytest.fixture
def ledger(database):
    return CapacityLedger(database)


@pytest.fixture
def event_service(database, ledger):
    return EventService(database, ledger)


@pytest.fixture
def category_service(database):
    return CategoryService(database)


@pytest.fixture
def event_start():
    return datetime(2030, 5, 17, 19, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_event(event_service, event_start):
    """Factory creating events through the event service."""

    def _make_event(capacity_total=5, **overrides):
        data = {
            "title": "Concierto de primavera",
            "category": "concierto",
            "start_at": event_start,
            "end_at": event_start + timedelta(hours=2),
            "capacity_total": capacity_total,
        }
        data.update(overrides)
        return event_service.create_event(EventCreate(**data))

    return _make_event


@pytest.fixture
def requester():
    """Factory for requester details with unique emails."""
    counter = {"n": 0}

    def _requester(name="Ana", email=None, **extra):
        counter["n"] += 1
        if email is None:
            email = f"guest{counter['n']}@example.com"
        return RequesterInfo(name=name, email=email, **extra)

    return _requester


@pytest.fixture
def mock_publisher():
    """Mock booking event publisher for testing."""
    publisher = MagicMock()
    publisher.publish_booking_created = AsyncMock(return_value=True)
    publisher.publish_booking_updated = AsyncMock(return_value=True)
    publisher.publish_booking_deleted = AsyncMock(return_value=True)
    return publisher


@pytest.fixture
def mock_redis_manager():
    """Mock Redis manager for testing."""
    mock_redis = AsyncMock()
    mock_redis.initialize = AsyncMock()
    mock_redis.publish = AsyncMock(return_value=1)
    mock_redis.health_check = AsyncMock(return_value=True)
    return mock_redis


@pytest.fixture
def client(database, ledger, event_service, category_service, mock_publisher):
    """Test client whose routes run against the per-test database."""

    def override_get_db():
        with database.get_session() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_capacity_ledger] = lambda: ledger
    app.dependency_overrides[get_event_service] = lambda: event_service
    app.dependency_overrides[get_category_service] = lambda: category_service
    app.dependency_overrides[get_event_publisher] = lambda: mock_publisher

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def sample_event_payload(event_start):
    return {
        "title": "Taller de grabado",
        "summary": "Introducción a la xilografía",
        "category": "taller",
        "tags": ["grabado", "principiantes"],
        "start_at": event_start.isoformat(),
        "end_at": (event_start + timedelta(hours=3)).isoformat(),
        "capacity_total": 5,
    }
