"""
Tests for engine/session helpers against an in-memory SQLite URL
"""
import pytest
from sqlalchemy import text

from sailsync.config import get_settings
from sailsync.infrastructure.db.session import (
    get_engine,
    get_session_factory,
    session_scope,
    check_db_connection,
)


def _clear_caches():
    get_settings.cache_clear()
    get_engine.cache_clear()
    get_session_factory.cache_clear()


@pytest.fixture
def sqlite_settings(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    _clear_caches()
    yield
    _clear_caches()


def test_engine_is_shared(sqlite_settings):
    assert get_engine() is get_engine()
    assert get_session_factory().kw["bind"] is get_engine()


def test_ready_check_on_sqlite(sqlite_settings):
    check_db_connection()


def test_session_scope_rolls_back_and_reraises(sqlite_settings):
    with session_scope() as db:
        assert db.execute(text("SELECT 1")).scalar() == 1

    with pytest.raises(RuntimeError):
        with session_scope() as db:
            raise RuntimeError("job failed")
