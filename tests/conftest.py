"""
Pytest fixtures for testing
"""
import os
from datetime import date

os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from sailsync.infrastructure.db.session import Base
import sailsync.infrastructure.db.models  # noqa: F401  registers the tables on Base
from sailsync.domain.catalog import Boat, Activity
from sailsync.domain.state import (
    COLLECTION_USERS,
    COLLECTION_BOATS,
    COLLECTION_ACTIVITIES,
)
from sailsync.domain.user import User, ROLE_INSTRUCTOR, ROLE_HELPER, ROLE_MANAGER
from sailsync.infrastructure.store import SqlStateStore


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared by every connection of one test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def crew():
    """Two instructors, two helpers and an admin manager."""
    return [
        User(id="u1", name="Anna", role=ROLE_INSTRUCTOR),
        User(id="u2", name="Bruno", role=ROLE_INSTRUCTOR),
        User(id="h1", name="Carla", role=ROLE_HELPER),
        User(id="h2", name="Dario", role=ROLE_HELPER),
        User(id="m1", name="Elena", role=ROLE_MANAGER, is_admin=True),
    ]


@pytest.fixture
def fleet():
    return [Boat(id="b1", name="Aurora"), Boat(id="b2", name="Borea")]


@pytest.fixture
def activities():
    return [
        Activity(id="a1", name="Corso base", default_duration_days=2),
        Activity(id="a2", name="Regata", default_duration_days=1),
        Activity(id="ev1", name="Cena sociale", is_general=True),
    ]


@pytest.fixture
def seeded_db(db_session, crew, fleet, activities) -> Session:
    """Session with users, boats and activities already committed."""
    store = SqlStateStore(db_session)
    store.save(COLLECTION_USERS, crew)
    store.save(COLLECTION_BOATS, fleet)
    store.save(COLLECTION_ACTIVITIES, activities)
    db_session.commit()
    return db_session


API_TODAY = date(2024, 6, 1)


@pytest.fixture
def client(seeded_db):
    """TestClient sharing the test session; today is pinned to API_TODAY"""
    from sailsync.api.deps import get_db, get_today
    from sailsync.main import app

    def _get_db():
        yield seeded_db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_today] = lambda: API_TODAY
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
