"""Contradiction endpoints."""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.api_key import ApiScope
from app.models.contradiction import Contradiction, ContradictionStatus
from app.schemas.contradiction import (
    ContradictionCreate,
    ContradictionCreated,
    ContradictionRead,
    ContradictionUpdate,
)
from app.security import require_actor_user_id, require_scope
from app.services import contradictions as contradictions_service

router = APIRouter(
    prefix="/contradictions",
    tags=["contradictions"],
    dependencies=[Depends(require_scope({ApiScope.supporter, ApiScope.coordinator}))],
)


@router.post("", response_model=ContradictionCreated, status_code=status.HTTP_201_CREATED)
def flag_contradiction(
    payload: ContradictionCreate,
    db: Session = Depends(get_db),
    actor_user_id: str = Depends(require_actor_user_id),
) -> ContradictionCreated:
    contradiction, alert_result = contradictions_service.flag_contradiction(
        db, payload, actor_user_id=actor_user_id
    )
    return ContradictionCreated(
        contradiction=ContradictionRead.model_validate(contradiction),
        alert=alert_result,
    )


@router.get("", response_model=list[ContradictionRead])
def list_contradictions(
    group_id: str = Query(min_length=1),
    subject_person_id: str = Query(min_length=1),
    contradiction_status: ContradictionStatus | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
) -> list[Contradiction]:
    return contradictions_service.list_contradictions(
        db,
        group_id=group_id,
        subject_person_id=subject_person_id,
        contradiction_status=contradiction_status,
    )


@router.get("/{contradiction_id}", response_model=ContradictionRead)
def get_contradiction(contradiction_id: str, db: Session = Depends(get_db)) -> Contradiction:
    return contradictions_service.get_contradiction_or_404(db, contradiction_id)


@router.patch("/{contradiction_id}", response_model=ContradictionRead)
def update_contradiction(
    contradiction_id: str,
    payload: ContradictionUpdate,
    db: Session = Depends(get_db),
    actor_user_id: str = Depends(require_actor_user_id),
) -> Contradiction:
    contradiction = contradictions_service.get_contradiction_or_404(db, contradiction_id)
    return contradictions_service.update_contradiction(db, contradiction, payload, actor_user_id=actor_user_id)
