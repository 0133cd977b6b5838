"""APScheduler wiring for the unresolved-contradiction sweep."""
from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.config import Settings
from app.services.cron import sweep_unresolved_contradictions_once
from app.services.scheduler_lock import (
    refresh_scheduler_lock,
    release_scheduler_lock,
    try_acquire_scheduler_lock,
)

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None


def start_scheduler(settings: Settings) -> bool:
    """Start the sweep on this process if the DB lock can be taken."""

    global _scheduler
    if not try_acquire_scheduler_lock():
        logger.warning("Scheduler disabled because lock is already held by another instance.")
        return False

    _scheduler = AsyncIOScheduler()
    _scheduler.add_job(
        sweep_unresolved_contradictions_once,
        "interval",
        minutes=settings.SWEEP_INTERVAL_MINUTES,
        id="unresolved-contradiction-sweep",
        replace_existing=True,
    )
    _scheduler.add_job(
        refresh_scheduler_lock,
        "interval",
        seconds=60,
        id="scheduler-lock-heartbeat",
        replace_existing=True,
    )
    _scheduler.start()
    logger.info(
        "Scheduler started",
        extra={"env": settings.app_env, "interval_minutes": settings.SWEEP_INTERVAL_MINUTES},
    )
    return True


def shutdown_scheduler() -> None:
    global _scheduler
    if _scheduler is None:
        return
    _scheduler.shutdown(wait=False)
    _scheduler = None
    release_scheduler_lock()


def is_scheduler_running() -> bool:
    return _scheduler is not None and _scheduler.running
