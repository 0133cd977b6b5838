"""Engine, session factory and session helpers."""
from __future__ import annotations

from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.config import get_settings
from app.models.base import Base

engine: Engine | None = None
SessionLocal: sessionmaker[Session] | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str) -> Engine:
    """Create an engine for ``database_url``; SQLite gets foreign keys and cross-thread use."""

    is_sqlite = database_url.startswith("sqlite")
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    built = create_engine(database_url, echo=False, connect_args=connect_args)
    if is_sqlite:
        event.listen(built, "connect", _enable_sqlite_foreign_keys)
    return built


def init_engine() -> Engine:
    """Initialise the engine and session factory once per process."""

    global engine, SessionLocal
    if engine is None:
        engine = build_engine(get_settings().database_url)
        SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return engine


def get_engine() -> Engine:
    return engine if engine is not None else init_engine()


def get_sessionmaker() -> sessionmaker[Session]:
    if SessionLocal is None:
        init_engine()
    assert SessionLocal is not None  # for type-checkers
    return SessionLocal


@contextmanager
def session_scope(db_session: Session | None = None) -> Iterator[Session]:
    """Yield ``db_session`` unchanged, or a new session that is closed on exit.

    Background jobs call services either with a caller-owned session (tests,
    request handlers) or with none, in which case they own a short-lived one.
    """

    if db_session is not None:
        yield db_session
        return
    session = get_sessionmaker()()
    try:
        yield session
    finally:
        session.close()


def create_all() -> None:
    Base.metadata.create_all(bind=get_engine())


def close_engine() -> None:
    """Dispose of the engine and forget the session factory."""

    global engine, SessionLocal
    if engine is not None:
        engine.dispose()
    engine = None
    SessionLocal = None


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""

    with session_scope() as session:
        yield session


__all__ = [
    "Base",
    "SessionLocal",
    "engine",
    "build_engine",
    "create_all",
    "get_db",
    "get_engine",
    "get_sessionmaker",
    "init_engine",
    "close_engine",
    "session_scope",
]
