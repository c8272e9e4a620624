"""
Shared fixtures: an in-memory SQL document store and an authenticated API client
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_group_inference, get_store
from app.core.db import Base
from app.services.repositories import EventRepo, GuestRepo, TableRepo
from app.services.store import SqlStore
from app.utils.security import get_current_user_id, rate_limiter
from main import app

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture
def store():
    """Fresh SQLite-backed store per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield SqlStore(TestingSessionLocal)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(store):
    """API client signed in as USER_ID"""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_current_user_id] = lambda: USER_ID
    app.dependency_overrides[get_group_inference] = lambda: lambda guests, mapping: []
    rate_limiter.clear()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(store):
    """API client without any identity override"""
    app.dependency_overrides[get_store] = lambda: store
    rate_limiter.clear()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def event(store):
    return EventRepo.create(store, USER_ID, {"name": "Summer Gala", "description": "Garden party"})


@pytest.fixture
def seated_event(store, event):
    """Event with two tables and five guests, three of them seated"""
    table_1 = TableRepo.create(store, USER_ID, {"name": "1", "capacity": 2, "color": "#3B82F6", "eventId": event["id"]})
    table_2 = TableRepo.create(store, USER_ID, {"name": "2", "capacity": 8, "color": "#10B981", "eventId": event["id"]})

    def guest(name, table=None, **extra):
        parts = name.split()
        data = {"name": name, "firstName": parts[0], "lastName": parts[-1], "eventId": event["id"], **extra}
        if table:
            data["tableId"] = table["id"]
        return GuestRepo.create(store, USER_ID, data)

    guests = {
        "alice": guest("Alice Smith", table_1, phoneNumber="+1 555 123 4567"),
        "bob": guest("Bob Jones", table_1),
        "carol": guest("Carol White", table_2, email="carol@example.com"),
        "dave": guest("Dave Brown"),
        "erin": guest("Erin Green"),
    }
    return {"event": event, "tables": [table_1, table_2], "guests": guests}
