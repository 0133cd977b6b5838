"""Agreement endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.agreement import Agreement
from app.models.api_key import ApiKey, ApiScope
from app.schemas.agreement import (
    AcceptanceRead,
    AgreementActionResult,
    AgreementCreate,
    AgreementModify,
    AgreementPropose,
    AgreementRead,
)
from app.security import require_actor_user_id, require_api_key, require_scope
from app.services import agreements as agreements_service

router = APIRouter(
    prefix="/agreements",
    tags=["agreements"],
    dependencies=[Depends(require_scope({ApiScope.supporter, ApiScope.coordinator}))],
)

_COORDINATORS = {ApiScope.coordinator}


@router.post("", response_model=AgreementRead, status_code=status.HTTP_201_CREATED)
def create_agreement(
    payload: AgreementCreate,
    db: Session = Depends(get_db),
    actor_user_id: str = Depends(require_actor_user_id),
) -> Agreement:
    return agreements_service.create_agreement(db, payload, actor_user_id=actor_user_id)


@router.get("/{agreement_id}", response_model=AgreementRead)
def get_agreement(agreement_id: str, db: Session = Depends(get_db)) -> Agreement:
    return agreements_service.get_agreement_or_404(db, agreement_id)


@router.post("/{agreement_id}/accept", response_model=AgreementActionResult)
def accept_agreement(
    agreement_id: str,
    db: Session = Depends(get_db),
    api_key: ApiKey = Depends(require_api_key),
    actor_user_id: str = Depends(require_actor_user_id),
) -> AgreementActionResult:
    agreement = agreements_service.get_agreement_or_404(db, agreement_id)
    acceptance = agreements_service.accept_agreement(
        db,
        agreement,
        actor_user_id=actor_user_id,
        is_coordinator=api_key.scope in _COORDINATORS or api_key.scope == ApiScope.admin,
    )
    return AgreementActionResult(
        agreement=AgreementRead.model_validate(agreement),
        acceptance=AcceptanceRead.model_validate(acceptance),
    )


@router.post("/{agreement_id}/decline", response_model=AgreementActionResult)
def decline_agreement(
    agreement_id: str,
    db: Session = Depends(get_db),
    actor_user_id: str = Depends(require_actor_user_id),
) -> AgreementActionResult:
    agreement = agreements_service.get_agreement_or_404(db, agreement_id)
    acceptance, alert_result = agreements_service.decline_agreement(db, agreement, actor_user_id=actor_user_id)
    return AgreementActionResult(
        agreement=AgreementRead.model_validate(agreement),
        acceptance=AcceptanceRead.model_validate(acceptance),
        alert=alert_result,
    )


@router.post("/{agreement_id}/modify", response_model=AgreementActionResult)
def modify_agreement(
    agreement_id: str,
    payload: AgreementModify,
    db: Session = Depends(get_db),
    actor_user_id: str = Depends(require_actor_user_id),
) -> AgreementActionResult:
    agreement = agreements_service.get_agreement_or_404(db, agreement_id)
    acceptance, alert_result = agreements_service.modify_agreement(
        db, agreement, payload.fields, message=payload.message, actor_user_id=actor_user_id
    )
    return AgreementActionResult(
        agreement=AgreementRead.model_validate(agreement),
        acceptance=AcceptanceRead.model_validate(acceptance),
        alert=alert_result,
    )


@router.post(
    "/{agreement_id}/withdraw",
    response_model=AgreementActionResult,
    dependencies=[Depends(require_scope(_COORDINATORS))],
)
def withdraw_agreement(
    agreement_id: str,
    db: Session = Depends(get_db),
    actor_user_id: str = Depends(require_actor_user_id),
) -> AgreementActionResult:
    agreement = agreements_service.get_agreement_or_404(db, agreement_id)
    alert_result = agreements_service.withdraw_agreement(db, agreement, actor_user_id=actor_user_id)
    return AgreementActionResult(agreement=AgreementRead.model_validate(agreement), alert=alert_result)


@router.post(
    "/{agreement_id}/propose",
    response_model=AgreementActionResult,
    dependencies=[Depends(require_scope(_COORDINATORS))],
)
def propose_update(
    agreement_id: str,
    payload: AgreementPropose,
    db: Session = Depends(get_db),
    actor_user_id: str = Depends(require_actor_user_id),
) -> AgreementActionResult:
    agreement = agreements_service.get_agreement_or_404(db, agreement_id)
    alert_result = agreements_service.propose_update(db, agreement, payload.fields, actor_user_id=actor_user_id)
    return AgreementActionResult(agreement=AgreementRead.model_validate(agreement), alert=alert_result)
