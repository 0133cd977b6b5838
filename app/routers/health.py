"""Health check endpoint."""
from __future__ import annotations

import logging
from pathlib import Path

from alembic.config import Config
from alembic.script import ScriptDirectory
from fastapi import APIRouter
from sqlalchemy import text

from app.config import SCHEDULER_ENABLED
from app.core.scheduler import is_scheduler_running
from app.db import get_engine
from app.services.scheduler_lock import describe_scheduler_lock

router = APIRouter(prefix="/health", tags=["health"])
logger = logging.getLogger(__name__)

ALEMBIC_INI = Path(__file__).resolve().parents[2] / "alembic.ini"


def _db_status() -> str:
    """Return 'ok' if the DB is reachable, 'error' otherwise."""

    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return "ok"
    except Exception:  # noqa: BLE001
        logger.exception("DB health check failed")
        return "error"


def _expected_migration_head() -> str | None:
    try:
        return ScriptDirectory.from_config(Config(str(ALEMBIC_INI))).get_current_head()
    except Exception:  # noqa: BLE001
        logger.exception("Failed to load Alembic head revision")
        return None


def _migrations_status() -> str:
    expected_head = _expected_migration_head()
    if expected_head is None:
        return "unknown"
    try:
        with get_engine().connect() as conn:
            current = conn.execute(text("SELECT version_num FROM alembic_version")).scalar()
    except Exception:  # noqa: BLE001
        logger.exception("Migration check failed")
        return "unknown"
    return "up_to_date" if current == expected_head else "out_of_date"


def _scheduler_lock() -> dict[str, object]:
    try:
        return describe_scheduler_lock()
    except Exception:  # noqa: BLE001
        logger.exception("Scheduler lock lookup failed")
        return {"present": False, "owner": None, "status": "unknown"}


@router.get("", summary="Health check")
def healthcheck() -> dict[str, object]:
    """Return database, migration and scheduler state."""

    db_status = _db_status()
    migrations_status = _migrations_status() if db_status == "ok" else "unknown"
    degraded = not (db_status == "ok" and migrations_status == "up_to_date")
    return {
        "status": "degraded" if degraded else "ok",
        "db_status": db_status,
        "db_ok": db_status == "ok",
        "migrations_status": migrations_status,
        "migrations_ok": migrations_status == "up_to_date",
        "scheduler_config_enabled": SCHEDULER_ENABLED,
        "scheduler_running": is_scheduler_running(),
        "scheduler_lock": _scheduler_lock() if db_status == "ok" else None,
    }
