"""Alert policy and alert lifecycle services.

Alerts are only ever written through :func:`create_alert_if_needed`, which
applies, in order: required-field validation, actor check, dedupe against
open/acknowledged alerts sharing the same key, a rolling throttle window over
alerts of any status sharing the same key, and finally the insert. The policy
never raises; every failure is reported as an :class:`AlertSkipped` result.

The dedupe query, the throttle query and the insert are three separate round
trips with no lock between them. Two concurrent calls for the same key can both
pass the checks and insert, leaving two active alerts for that key. This is an
accepted limitation of the policy, not something callers should compensate for.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import status
from sqlalchemy import ColumnElement, select
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.alert import ACTIVE_ALERT_STATUSES, TERMINAL_ALERT_STATUSES, Alert, AlertSeverity, AlertStatus
from app.models.contradiction import Contradiction, ContradictionStatus
from app.schemas.alert import (
    AlertCreate,
    AlertCreateResult,
    AlertInserted,
    AlertSkipped,
    AlertSkipReason,
)
from app.utils.errors import http_error
from app.utils.time import hours_before, utcnow

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("group_id", "subject_person_id", "type", "severity", "title")

PATTERN_SIGNAL_TYPE = "pattern_signal"
PATTERN_SIGNAL_SEVERITY = AlertSeverity.tier2
PATTERN_SIGNAL_BODY = (
    "At least one contradiction has been open for more than {hours} hours. "
    "Review and resolve or dismiss."
)

_SKIP_LOG_LEVELS = {
    AlertSkipReason.invalid_params: logging.WARNING,
    AlertSkipReason.unauthenticated: logging.WARNING,
    AlertSkipReason.duplicate_open: logging.INFO,
    AlertSkipReason.throttled_24h: logging.INFO,
    AlertSkipReason.error: logging.ERROR,
}

_ALLOWED_TRANSITIONS: dict[AlertStatus, frozenset[AlertStatus]] = {
    AlertStatus.open: frozenset({AlertStatus.acknowledged, AlertStatus.resolved, AlertStatus.dismissed}),
    AlertStatus.acknowledged: frozenset({AlertStatus.resolved, AlertStatus.dismissed}),
}


def _log_context(params: AlertCreate | None) -> dict[str, Any]:
    return {
        "group_id": getattr(params, "group_id", None),
        "subject_person_id": getattr(params, "subject_person_id", None),
        "alert_type": getattr(params, "type", None),
        "source_table": getattr(params, "source_table", None),
        "source_id": getattr(params, "source_id", None),
    }


def _skip(reason: AlertSkipReason, context: dict[str, Any], details: str | None = None) -> AlertSkipped:
    logger.log(_SKIP_LOG_LEVELS[reason], "Alert skipped", extra={"reason": reason.value, "details": details, **context})
    return AlertSkipped(reason=reason, details=details)


def _safe_rollback(db: Session) -> None:
    try:
        db.rollback()
    except Exception:  # noqa: BLE001
        logger.exception("Rollback after alert failure also failed")


def _missing_fields(params: AlertCreate) -> list[str]:
    missing = [name for name in REQUIRED_FIELDS if not getattr(params, name)]
    # Only table => id is enforced; an id without a table is accepted.
    if params.source_table and not params.source_id:
        missing.append("source_id")
    return missing


def _matches(column: Any, value: str | None) -> ColumnElement[bool]:
    """Null-aware equality: equality filters never match NULL."""

    if not value:
        return column.is_(None)
    return column == value


def dedupe_key_filters(params: AlertCreate) -> list[ColumnElement[bool]]:
    """Return the criteria identifying "the same alert" for dedupe and throttle."""

    return [
        Alert.group_id == params.group_id,
        Alert.subject_person_id == params.subject_person_id,
        Alert.type == params.type,
        _matches(Alert.source_table, params.source_table),
        _matches(Alert.source_id, params.source_id),
    ]


def _first_match(db: Session, criteria: list[ColumnElement[bool]]) -> str | None:
    return db.scalar(select(Alert.id).where(*criteria).limit(1))


def _create_alert_if_needed(db: Session, params: AlertCreate, actor_user_id: str | None) -> AlertCreateResult:
    context = _log_context(params)

    missing = _missing_fields(params)
    if missing:
        return _skip(AlertSkipReason.invalid_params, context, f"missing required fields: {', '.join(missing)}")

    if not actor_user_id:
        return _skip(AlertSkipReason.unauthenticated, context)

    key = dedupe_key_filters(params)

    if _first_match(db, [*key, Alert.status.in_(ACTIVE_ALERT_STATUSES)]) is not None:
        return _skip(AlertSkipReason.duplicate_open, context)

    window_start = hours_before(utcnow(), get_settings().ALERT_THROTTLE_HOURS)
    if _first_match(db, [*key, Alert.created_at >= window_start]) is not None:
        return _skip(AlertSkipReason.throttled_24h, context)

    alert = Alert(
        group_id=params.group_id,
        subject_person_id=params.subject_person_id,
        type=params.type,
        severity=params.severity,
        title=params.title,
        body=params.body or None,
        source_table=params.source_table or None,
        source_id=params.source_id or None,
        created_by_user_id=actor_user_id,
    )
    db.add(alert)
    db.commit()
    logger.info("Alert created", extra={"alert_id": alert.id, "severity": alert.severity, **context})
    return AlertInserted(alert_id=alert.id)


def create_alert_if_needed(
    db: Session,
    params: AlertCreate,
    *,
    actor_user_id: str | None,
) -> AlertCreateResult:
    """Insert an alert unless it is invalid, unauthenticated, duplicated or throttled.

    ``actor_user_id`` is the identity resolved by the caller's edge (API key,
    scheduler configuration); it becomes ``created_by_user_id`` and is never read
    from ``params``. Any exception, including store errors during the dedupe or
    throttle checks, yields ``skipped(error)`` and nothing is inserted.
    """

    try:
        return _create_alert_if_needed(db, params, actor_user_id)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Alert creation failed", extra=_log_context(params))
        _safe_rollback(db)
        return AlertSkipped(reason=AlertSkipReason.error, details=str(exc) or exc.__class__.__name__)


def ensure_unresolved_contradiction_alert(
    db: Session,
    group_id: str,
    subject_person_id: str,
    *,
    actor_user_id: str | None,
) -> None:
    """Raise a ``pattern_signal`` alert for the oldest stale open contradiction.

    Re-enters :func:`create_alert_if_needed`, so repeated calls are absorbed by
    the dedupe and throttle rules. Query failures are logged and swallowed.
    """

    stale_hours = get_settings().CONTRADICTION_STALE_HOURS
    cutoff = hours_before(utcnow(), stale_hours)
    try:
        contradiction_id = db.scalar(
            select(Contradiction.id)
            .where(
                Contradiction.group_id == group_id,
                Contradiction.subject_person_id == subject_person_id,
                Contradiction.status == ContradictionStatus.open,
                Contradiction.created_at < cutoff,
            )
            .order_by(Contradiction.created_at.asc())
            .limit(1)
        )
    except Exception:  # noqa: BLE001
        logger.exception(
            "Stale contradiction lookup failed",
            extra={"group_id": group_id, "subject_person_id": subject_person_id},
        )
        _safe_rollback(db)
        return

    if contradiction_id is None:
        return

    create_alert_if_needed(
        db,
        AlertCreate(
            group_id=group_id,
            subject_person_id=subject_person_id,
            type=PATTERN_SIGNAL_TYPE,
            severity=PATTERN_SIGNAL_SEVERITY.value,
            title=f"Open contradiction unresolved > {stale_hours}h",
            body=PATTERN_SIGNAL_BODY.format(hours=stale_hours),
            source_table=Contradiction.__tablename__,
            source_id=contradiction_id,
        ),
        actor_user_id=actor_user_id,
    )


# --- Lifecycle -----------------------------------------------------------


def get_alert_or_404(db: Session, alert_id: str) -> Alert:
    alert = db.get(Alert, alert_id)
    if alert is None:
        raise http_error(status.HTTP_404_NOT_FOUND, "ALERT_NOT_FOUND", "Alert not found.")
    return alert


def list_alerts(
    db: Session,
    *,
    group_id: str,
    subject_person_id: str,
    alert_status: AlertStatus | None = None,
    severity: str | None = None,
    alert_type: str | None = None,
) -> list[Alert]:
    """Return alerts about one person, newest first."""

    stmt = select(Alert).where(Alert.group_id == group_id, Alert.subject_person_id == subject_person_id)
    if alert_status is not None:
        stmt = stmt.where(Alert.status == alert_status)
    if severity:
        stmt = stmt.where(Alert.severity == severity)
    if alert_type:
        stmt = stmt.where(Alert.type == alert_type)
    return list(db.scalars(stmt.order_by(Alert.created_at.desc())).all())


def _ensure_transition(alert: Alert, target: AlertStatus) -> None:
    if target not in _ALLOWED_TRANSITIONS.get(alert.status, frozenset()):
        raise http_error(
            status.HTTP_409_CONFLICT,
            "ALERT_TRANSITION_INVALID",
            f"Cannot move alert from {alert.status.value} to {target.value}.",
        )


def acknowledge_alert(db: Session, alert: Alert, *, actor_user_id: str) -> Alert:
    """Move an open alert to acknowledged."""

    _ensure_transition(alert, AlertStatus.acknowledged)
    alert.status = AlertStatus.acknowledged
    alert.acknowledged_at = utcnow()
    alert.acknowledged_by_user_id = actor_user_id
    db.commit()
    db.refresh(alert)
    logger.info("Alert acknowledged", extra={"alert_id": alert.id, "actor_user_id": actor_user_id})
    return alert


def close_alert(
    db: Session,
    alert: Alert,
    *,
    actor_user_id: str,
    target: AlertStatus,
    resolution_note: str | None = None,
) -> Alert:
    """Resolve or dismiss an open or acknowledged alert."""

    if target not in TERMINAL_ALERT_STATUSES:
        raise ValueError(f"close_alert cannot target {target.value}")
    _ensure_transition(alert, target)
    alert.status = target
    alert.resolved_at = utcnow()
    alert.resolved_by_user_id = actor_user_id
    alert.resolution_note = resolution_note or None
    db.commit()
    db.refresh(alert)
    logger.info(
        "Alert closed",
        extra={"alert_id": alert.id, "status": target.value, "actor_user_id": actor_user_id},
    )
    return alert


__all__ = [
    "PATTERN_SIGNAL_TYPE",
    "acknowledge_alert",
    "close_alert",
    "create_alert_if_needed",
    "dedupe_key_filters",
    "ensure_unresolved_contradiction_alert",
    "get_alert_or_404",
    "list_alerts",
]
