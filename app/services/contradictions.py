"""Contradiction services."""
import logging

from fastapi import status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.alert import AlertSeverity
from app.models.contradiction import Contradiction, ContradictionStatus
from app.schemas.alert import AlertCreate, AlertCreateResult
from app.schemas.contradiction import ContradictionCreate, ContradictionUpdate
from app.services.alerts import create_alert_if_needed
from app.utils.errors import http_error
from app.utils.time import utcnow

logger = logging.getLogger(__name__)

CONTRADICTION_OPENED_TYPE = "contradiction_opened"
SUMMARY_TITLE_LIMIT = 80

_CLOSED_STATUSES = {ContradictionStatus.resolved, ContradictionStatus.dismissed}


def get_contradiction_or_404(db: Session, contradiction_id: str) -> Contradiction:
    contradiction = db.get(Contradiction, contradiction_id)
    if contradiction is None:
        raise http_error(status.HTTP_404_NOT_FOUND, "CONTRADICTION_NOT_FOUND", "Contradiction not found.")
    return contradiction


def list_contradictions(
    db: Session,
    *,
    group_id: str,
    subject_person_id: str,
    contradiction_status: ContradictionStatus | None = None,
) -> list[Contradiction]:
    stmt = select(Contradiction).where(
        Contradiction.group_id == group_id,
        Contradiction.subject_person_id == subject_person_id,
    )
    if contradiction_status is not None:
        stmt = stmt.where(Contradiction.status == contradiction_status)
    return list(db.scalars(stmt.order_by(Contradiction.created_at.desc())).all())


def flag_contradiction(
    db: Session,
    payload: ContradictionCreate,
    *,
    actor_user_id: str,
) -> tuple[Contradiction, AlertCreateResult]:
    """Record a contradiction, then raise a ``contradiction_opened`` alert for it.

    The contradiction is committed before the alert policy runs; the alert
    outcome never undoes it.
    """

    contradiction = Contradiction(created_by_user_id=actor_user_id, **payload.model_dump())
    db.add(contradiction)
    db.commit()
    db.refresh(contradiction)
    logger.info(
        "Contradiction flagged",
        extra={"contradiction_id": contradiction.id, "group_id": contradiction.group_id},
    )

    alert_result = create_alert_if_needed(
        db,
        AlertCreate(
            group_id=contradiction.group_id,
            subject_person_id=contradiction.subject_person_id,
            type=CONTRADICTION_OPENED_TYPE,
            severity=AlertSeverity.tier2.value,
            title=f"Contradiction flagged: {contradiction.summary[:SUMMARY_TITLE_LIMIT]}",
            body=contradiction.details,
            source_table=Contradiction.__tablename__,
            source_id=contradiction.id,
        ),
        actor_user_id=actor_user_id,
    )
    return contradiction, alert_result


def update_contradiction(
    db: Session,
    contradiction: Contradiction,
    payload: ContradictionUpdate,
    *,
    actor_user_id: str,
) -> Contradiction:
    """Change a contradiction's status and resolution text."""

    contradiction.status = payload.status
    contradiction.resolution = payload.resolution or None
    if payload.status in _CLOSED_STATUSES:
        contradiction.resolved_at = utcnow()
        contradiction.resolved_by_user_id = actor_user_id
    else:
        contradiction.resolved_at = None
        contradiction.resolved_by_user_id = None
    db.commit()
    db.refresh(contradiction)
    logger.info(
        "Contradiction updated",
        extra={"contradiction_id": contradiction.id, "status": payload.status.value},
    )
    return contradiction
