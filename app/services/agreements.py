"""Agreement services and the alerts they produce.

Every action commits its own rows first and only then asks the alert policy for
a notification, so a skipped or failed alert leaves the agreement change intact.
"""
import logging
from typing import Any

from fastapi import status
from sqlalchemy.orm import Session

from app.models.agreement import (
    AcceptanceStatus,
    Agreement,
    AgreementAcceptance,
    AgreementStatus,
    AgreementVersion,
)
from app.models.alert import AlertSeverity
from app.schemas.agreement import AgreementCreate
from app.schemas.alert import AlertCreate, AlertCreateResult
from app.services.alerts import create_alert_if_needed
from app.utils.errors import http_error

logger = logging.getLogger(__name__)

AGREEMENT_DECLINED_TYPE = "agreement_declined"
AGREEMENT_MODIFIED_TYPE = "agreement_modified"
AGREEMENT_UPDATED_TYPE = "agreement_updated"

_REOPENABLE = {AgreementStatus.declined, AgreementStatus.accepted}
_NOT_WITHDRAWABLE = {AgreementStatus.accepted, AgreementStatus.withdrawn}
# Responses (accept, decline, modify) are only taken on an open proposal.
_RESPONDABLE = {AgreementStatus.proposed}


def _title_of(fields: dict[str, Any] | None) -> str:
    return (fields or {}).get("title") or "Untitled"


def _alert(
    db: Session,
    agreement: Agreement,
    *,
    alert_type: str,
    severity: AlertSeverity,
    title: str,
    source_table: str,
    source_id: str,
    actor_user_id: str,
) -> AlertCreateResult:
    return create_alert_if_needed(
        db,
        AlertCreate(
            group_id=agreement.group_id,
            subject_person_id=agreement.subject_person_id,
            type=alert_type,
            severity=severity.value,
            title=title,
            source_table=source_table,
            source_id=source_id,
        ),
        actor_user_id=actor_user_id,
    )


def _add_version(db: Session, agreement: Agreement, fields: dict[str, Any], *, actor_user_id: str) -> AgreementVersion:
    latest = agreement.latest_version
    version = AgreementVersion(
        group_id=agreement.group_id,
        proposed_by_user_id=actor_user_id,
        version_num=(latest.version_num + 1) if latest is not None else 1,
        fields=fields,
    )
    agreement.versions.append(version)
    db.flush()
    return version


def _require_open_proposal(agreement: Agreement) -> AgreementVersion:
    if agreement.status not in _RESPONDABLE:
        raise http_error(
            status.HTTP_409_CONFLICT,
            "AGREEMENT_NOT_OPEN",
            f"Agreement in status {agreement.status.value} is not open for responses.",
        )
    return _require_latest_version(agreement)


def _require_latest_version(agreement: Agreement) -> AgreementVersion:
    latest = agreement.latest_version
    if latest is None:
        raise http_error(status.HTTP_409_CONFLICT, "AGREEMENT_HAS_NO_VERSION", "Agreement has no version yet.")
    return latest


def get_agreement_or_404(db: Session, agreement_id: str) -> Agreement:
    agreement = db.get(Agreement, agreement_id)
    if agreement is None:
        raise http_error(status.HTTP_404_NOT_FOUND, "AGREEMENT_NOT_FOUND", "Agreement not found.")
    return agreement


def create_agreement(db: Session, payload: AgreementCreate, *, actor_user_id: str) -> Agreement:
    """Create a proposed agreement with its first version."""

    agreement = Agreement(
        group_id=payload.group_id,
        subject_person_id=payload.subject_person_id,
        created_by_user_id=actor_user_id,
        status=AgreementStatus.proposed,
    )
    db.add(agreement)
    db.flush()
    _add_version(db, agreement, payload.fields, actor_user_id=actor_user_id)
    db.commit()
    db.refresh(agreement)
    logger.info("Agreement created", extra={"agreement_id": agreement.id, "group_id": agreement.group_id})
    return agreement


def accept_agreement(
    db: Session, agreement: Agreement, *, actor_user_id: str, is_coordinator: bool
) -> AgreementAcceptance:
    """Record acceptance of the latest version.

    Only a coordinator's acceptance closes the agreement; anyone else just adds
    their response. Acceptance raises no alert.
    """

    latest = _require_open_proposal(agreement)
    acceptance = AgreementAcceptance(
        agreement_id=agreement.id,
        agreement_version_id=latest.id,
        group_id=agreement.group_id,
        person_user_id=actor_user_id,
        status=AcceptanceStatus.accepted,
    )
    db.add(acceptance)
    if is_coordinator:
        agreement.status = AgreementStatus.accepted
    db.commit()
    logger.info(
        "Agreement accepted",
        extra={"agreement_id": agreement.id, "acceptance_id": acceptance.id, "closed": is_coordinator},
    )
    return acceptance


def decline_agreement(
    db: Session, agreement: Agreement, *, actor_user_id: str
) -> tuple[AgreementAcceptance, AlertCreateResult]:
    """Decline the latest version and notify the group."""

    latest = _require_open_proposal(agreement)
    acceptance = AgreementAcceptance(
        agreement_id=agreement.id,
        agreement_version_id=latest.id,
        group_id=agreement.group_id,
        person_user_id=actor_user_id,
        status=AcceptanceStatus.declined,
    )
    db.add(acceptance)
    agreement.status = AgreementStatus.declined
    db.commit()
    logger.info("Agreement declined", extra={"agreement_id": agreement.id, "acceptance_id": acceptance.id})

    alert_result = _alert(
        db,
        agreement,
        alert_type=AGREEMENT_DECLINED_TYPE,
        severity=AlertSeverity.tier2,
        title=f"Agreement declined: {_title_of(latest.fields)}",
        source_table=AgreementAcceptance.__tablename__,
        source_id=acceptance.id,
        actor_user_id=actor_user_id,
    )
    return acceptance, alert_result


def modify_agreement(
    db: Session,
    agreement: Agreement,
    fields: dict[str, Any],
    *,
    message: str | None,
    actor_user_id: str,
) -> tuple[AgreementAcceptance, AlertCreateResult]:
    """Counter-propose new terms as a modification of the latest version."""

    _require_open_proposal(agreement)
    version = _add_version(db, agreement, fields, actor_user_id=actor_user_id)
    acceptance = AgreementAcceptance(
        agreement_id=agreement.id,
        agreement_version_id=version.id,
        group_id=agreement.group_id,
        person_user_id=actor_user_id,
        status=AcceptanceStatus.modified,
        message=message or None,
    )
    db.add(acceptance)
    db.commit()
    logger.info(
        "Agreement modified",
        extra={"agreement_id": agreement.id, "version_num": version.version_num},
    )

    alert_result = _alert(
        db,
        agreement,
        alert_type=AGREEMENT_MODIFIED_TYPE,
        severity=AlertSeverity.tier2,
        title=f"Agreement modified: {_title_of(fields)}",
        source_table=AgreementAcceptance.__tablename__,
        source_id=acceptance.id,
        actor_user_id=actor_user_id,
    )
    return acceptance, alert_result


def withdraw_agreement(db: Session, agreement: Agreement, *, actor_user_id: str) -> AlertCreateResult:
    """Withdraw an agreement that has not been accepted."""

    if agreement.status in _NOT_WITHDRAWABLE:
        raise http_error(
            status.HTTP_409_CONFLICT,
            "AGREEMENT_NOT_WITHDRAWABLE",
            f"Agreement in status {agreement.status.value} cannot be withdrawn.",
        )
    title = agreement.title
    agreement.status = AgreementStatus.withdrawn
    db.commit()
    logger.info("Agreement withdrawn", extra={"agreement_id": agreement.id})

    return _alert(
        db,
        agreement,
        alert_type=AGREEMENT_DECLINED_TYPE,
        severity=AlertSeverity.tier3,
        title=f"Agreement withdrawn: {title}",
        source_table=Agreement.__tablename__,
        source_id=agreement.id,
        actor_user_id=actor_user_id,
    )


def propose_update(
    db: Session, agreement: Agreement, fields: dict[str, Any], *, actor_user_id: str
) -> AlertCreateResult:
    """Add a new version; declined or accepted agreements go back to proposed."""

    if agreement.status == AgreementStatus.withdrawn:
        raise http_error(status.HTTP_409_CONFLICT, "AGREEMENT_WITHDRAWN", "Agreement has been withdrawn.")
    previous_title = agreement.title
    _add_version(db, agreement, fields, actor_user_id=actor_user_id)
    if agreement.status in _REOPENABLE:
        agreement.status = AgreementStatus.proposed
    db.commit()
    logger.info("Agreement update proposed", extra={"agreement_id": agreement.id})

    title = fields.get("title") or previous_title
    return _alert(
        db,
        agreement,
        alert_type=AGREEMENT_UPDATED_TYPE,
        severity=AlertSeverity.tier3,
        title=f"New proposal on: {title}",
        source_table=Agreement.__tablename__,
        source_id=agreement.id,
        actor_user_id=actor_user_id,
    )
