"""Agreement schemas."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.models.agreement import AcceptanceStatus, AgreementStatus
from app.schemas.alert import AlertCreateResult


class AgreementCreate(BaseModel):
    group_id: str = Field(min_length=1)
    subject_person_id: str = Field(min_length=1)
    fields: dict[str, Any] = Field(default_factory=dict)


class AgreementModify(BaseModel):
    fields: dict[str, Any]
    message: str | None = None


class AgreementPropose(BaseModel):
    fields: dict[str, Any]


class AgreementVersionRead(BaseModel):
    id: str
    version_num: int
    fields: dict[str, Any]
    proposed_by_user_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AgreementRead(BaseModel):
    id: str
    group_id: str
    subject_person_id: str
    created_by_user_id: str
    status: AgreementStatus
    title: str
    versions: list[AgreementVersionRead]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AcceptanceRead(BaseModel):
    id: str
    agreement_id: str
    agreement_version_id: str
    person_user_id: str
    status: AcceptanceStatus
    message: str | None

    model_config = ConfigDict(from_attributes=True)


class AgreementActionResult(BaseModel):
    """Outcome of an agreement action plus the alert it produced (if any)."""

    agreement: AgreementRead
    acceptance: AcceptanceRead | None = None
    alert: AlertCreateResult | None = None
