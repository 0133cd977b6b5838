"""Periodic jobs."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app import db
from app.config import get_settings
from app.models.contradiction import Contradiction, ContradictionStatus
from app.services.alerts import ensure_unresolved_contradiction_alert
from app.utils.time import hours_before, utcnow

logger = logging.getLogger(__name__)


def stale_contradiction_subjects(db_session: Session) -> list[tuple[str, str]]:
    """Return (group_id, subject_person_id) pairs with an open contradiction past the staleness window."""

    cutoff = hours_before(utcnow(), get_settings().CONTRADICTION_STALE_HOURS)
    rows = db_session.execute(
        select(Contradiction.group_id, Contradiction.subject_person_id)
        .where(Contradiction.status == ContradictionStatus.open, Contradiction.created_at < cutoff)
        .distinct()
    ).all()
    return [(row.group_id, row.subject_person_id) for row in rows]


def sweep_unresolved_contradictions_once(db_session: Session | None = None) -> int:
    """Run the stale-contradiction check for every affected person; return how many were checked."""

    actor_user_id = get_settings().SWEEP_ACTOR_USER_ID
    if not actor_user_id:
        logger.warning("Skipping unresolved contradiction sweep: SWEEP_ACTOR_USER_ID is not configured")
        return 0

    with db.session_scope(db_session) as session:
        subjects = stale_contradiction_subjects(session)
        for group_id, subject_person_id in subjects:
            ensure_unresolved_contradiction_alert(
                session, group_id, subject_person_id, actor_user_id=actor_user_id
            )
    logger.info("Unresolved contradiction sweep finished", extra={"subjects": len(subjects)})
    return len(subjects)
