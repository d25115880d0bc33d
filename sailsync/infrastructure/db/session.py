"""
Engine and sessions for SailSync

The API gets a request-scoped session from get_db(); background jobs and the
CLI open theirs with session_scope(). PostgreSQL goes through the psycopg
driver (see Settings.get_sqlalchemy_url).
"""
from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session

from sailsync.config import get_settings


class Base(DeclarativeBase):
    pass


@lru_cache
def get_engine() -> Engine:
    url = get_settings().get_sqlalchemy_url()
    # scheduler jobs use the engine from their own threads
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


@lru_cache
def get_session_factory() -> sessionmaker:
    return sessionmaker(bind=get_engine(), autoflush=False)


def get_db() -> Iterator[Session]:
    """FastAPI dependency: one session per request, always closed."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Session for jobs outside a request. Rolls back on error and re-raises;
    committing stays with the use cases.
    """
    db = get_session_factory()()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_db_connection() -> None:
    """
    Readiness: one round-trip through the pool.

    Raises:
        sqlalchemy.exc.OperationalError: database unreachable
    """
    with get_engine().connect() as conn:
        conn.execute(text("SELECT 1"))
