"""DB-backed lock so only one process runs the periodic sweep."""
from __future__ import annotations

import os
import socket
from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import db
from app.models.scheduler_lock import SchedulerLock
from app.utils.time import utcnow

LOCK_NAME = "unresolved-contradiction-sweep"
LOCK_TTL_SECONDS = 300


def _owner_id() -> str:
    return f"{socket.gethostname()}-{os.getpid()}"


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _get_lock(session: Session, name: str) -> SchedulerLock | None:
    return session.scalar(select(SchedulerLock).where(SchedulerLock.name == name).with_for_update())


def try_acquire_scheduler_lock(
    name: str = LOCK_NAME,
    *,
    ttl_seconds: int = LOCK_TTL_SECONDS,
    db_session: Session | None = None,
) -> bool:
    """Take the lock if it is free, expired, or already ours."""

    owner = _owner_id()
    now = utcnow()
    expires = now + timedelta(seconds=ttl_seconds)

    with db.session_scope(db_session) as session:
        try:
            lock = _get_lock(session, name)
            if lock is None:
                session.add(SchedulerLock(name=name, owner=owner, acquired_at=now, expires_at=expires))
            elif lock.owner == owner:
                lock.expires_at = expires
            else:
                expires_at = _aware(lock.expires_at)
                if expires_at is not None and expires_at > now:
                    session.rollback()
                    return False
                lock.owner = owner
                lock.acquired_at = now
                lock.expires_at = expires
            session.commit()
            return True
        except IntegrityError:
            session.rollback()
            return False


def refresh_scheduler_lock(
    name: str = LOCK_NAME, *, ttl_seconds: int = LOCK_TTL_SECONDS, db_session: Session | None = None
) -> None:
    """Extend the lock TTL when this process owns it."""

    with db.session_scope(db_session) as session:
        lock = _get_lock(session, name)
        if lock is not None and lock.owner == _owner_id():
            lock.expires_at = utcnow() + timedelta(seconds=ttl_seconds)
        session.commit()


def release_scheduler_lock(name: str = LOCK_NAME, *, db_session: Session | None = None) -> None:
    """Drop the lock when this process owns it."""

    with db.session_scope(db_session) as session:
        lock = _get_lock(session, name)
        if lock is not None and lock.owner == _owner_id():
            session.delete(lock)
        session.commit()


def describe_scheduler_lock(name: str = LOCK_NAME, *, db_session: Session | None = None) -> dict[str, object]:
    """Return a lightweight description of the lock for health reporting."""

    with db.session_scope(db_session) as session:
        lock = session.scalar(select(SchedulerLock).where(SchedulerLock.name == name))
        if lock is None:
            return {"present": False, "owner": None, "status": "none"}
        expires_at = _aware(lock.expires_at)
        expires_in = (expires_at - utcnow()).total_seconds() if expires_at else None
        return {
            "present": True,
            "owner": lock.owner,
            "status": "owned_by_self" if lock.owner == _owner_id() else "owned_by_other",
            "expires_in_seconds": expires_in,
        }
