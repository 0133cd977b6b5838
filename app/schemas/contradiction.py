"""Contradiction schemas."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.contradiction import ContradictionSeverity, ContradictionStatus, ContradictionType
from app.schemas.alert import AlertCreateResult


class ContradictionCreate(BaseModel):
    group_id: str = Field(min_length=1)
    subject_person_id: str = Field(min_length=1)
    type: ContradictionType = ContradictionType.triangulation
    severity: ContradictionSeverity = ContradictionSeverity.medium
    summary: str = Field(min_length=1, max_length=500)
    details: str | None = None
    related_note_ids: list[str] = Field(default_factory=list)
    related_agreement_ids: list[str] = Field(default_factory=list)


class ContradictionUpdate(BaseModel):
    status: ContradictionStatus
    resolution: str | None = None


class ContradictionRead(BaseModel):
    id: str
    group_id: str
    subject_person_id: str
    created_by_user_id: str
    type: ContradictionType
    severity: ContradictionSeverity
    summary: str
    details: str | None
    status: ContradictionStatus
    resolution: str | None
    resolved_at: datetime | None
    resolved_by_user_id: str | None
    related_note_ids: list[str]
    related_agreement_ids: list[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ContradictionCreated(BaseModel):
    contradiction: ContradictionRead
    alert: AlertCreateResult
