"""Alerts endpoints."""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.alert import Alert, AlertStatus
from app.models.api_key import ApiKey, ApiScope
from app.schemas.alert import AlertClose, AlertCreate, AlertCreateResult, AlertRead
from app.security import get_actor_user_id, require_actor_user_id, require_api_key, require_scope
from app.services import alerts as alerts_service

router = APIRouter(prefix="/alerts", tags=["alerts"], dependencies=[Depends(require_api_key)])

_READERS = {ApiScope.supporter, ApiScope.coordinator}
_COORDINATORS = {ApiScope.coordinator}


@router.get("", response_model=list[AlertRead], status_code=status.HTTP_200_OK)
def list_alerts(
    group_id: str = Query(min_length=1),
    subject_person_id: str = Query(min_length=1),
    alert_status: AlertStatus | None = Query(default=None, alias="status"),
    severity: str | None = Query(default=None),
    alert_type: str | None = Query(default=None, alias="type"),
    db: Session = Depends(get_db),
    api_key: ApiKey = Depends(require_scope(_READERS)),
    actor_user_id: str | None = Depends(get_actor_user_id),
) -> list[Alert]:
    """List alerts about a person; coordinators also trigger the stale-contradiction check."""

    if actor_user_id and api_key.scope in {ApiScope.coordinator, ApiScope.admin}:
        alerts_service.ensure_unresolved_contradiction_alert(
            db, group_id, subject_person_id, actor_user_id=actor_user_id
        )
    return alerts_service.list_alerts(
        db,
        group_id=group_id,
        subject_person_id=subject_person_id,
        alert_status=alert_status,
        severity=severity,
        alert_type=alert_type,
    )


@router.post(
    "",
    response_model=AlertCreateResult,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_scope(_READERS))],
)
def create_alert(
    payload: AlertCreate,
    db: Session = Depends(get_db),
    actor_user_id: str | None = Depends(get_actor_user_id),
) -> AlertCreateResult:
    """Run the alert policy; suppression is reported in the body, not as an HTTP error."""

    return alerts_service.create_alert_if_needed(db, payload, actor_user_id=actor_user_id)


@router.get("/{alert_id}", response_model=AlertRead, dependencies=[Depends(require_scope(_READERS))])
def get_alert(alert_id: str, db: Session = Depends(get_db)) -> Alert:
    return alerts_service.get_alert_or_404(db, alert_id)


@router.post(
    "/{alert_id}/acknowledge",
    response_model=AlertRead,
    dependencies=[Depends(require_scope(_COORDINATORS))],
)
def acknowledge_alert(
    alert_id: str,
    db: Session = Depends(get_db),
    actor_user_id: str = Depends(require_actor_user_id),
) -> Alert:
    alert = alerts_service.get_alert_or_404(db, alert_id)
    return alerts_service.acknowledge_alert(db, alert, actor_user_id=actor_user_id)


@router.post(
    "/{alert_id}/resolve",
    response_model=AlertRead,
    dependencies=[Depends(require_scope(_COORDINATORS))],
)
def resolve_alert(
    alert_id: str,
    payload: AlertClose | None = None,
    db: Session = Depends(get_db),
    actor_user_id: str = Depends(require_actor_user_id),
) -> Alert:
    alert = alerts_service.get_alert_or_404(db, alert_id)
    return alerts_service.close_alert(
        db,
        alert,
        actor_user_id=actor_user_id,
        target=AlertStatus.resolved,
        resolution_note=payload.resolution_note if payload else None,
    )


@router.post(
    "/{alert_id}/dismiss",
    response_model=AlertRead,
    dependencies=[Depends(require_scope(_COORDINATORS))],
)
def dismiss_alert(
    alert_id: str,
    payload: AlertClose | None = None,
    db: Session = Depends(get_db),
    actor_user_id: str = Depends(require_actor_user_id),
) -> Alert:
    alert = alerts_service.get_alert_or_404(db, alert_id)
    return alerts_service.close_alert(
        db,
        alert,
        actor_user_id=actor_user_id,
        target=AlertStatus.dismissed,
        resolution_note=payload.resolution_note if payload else None,
    )
