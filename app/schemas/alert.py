"""Alert schemas."""
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict

from app.models.alert import AlertStatus


class AlertSkipReason(str, Enum):
    """Why the alert policy declined to insert a row."""

    invalid_params = "invalid_params"
    unauthenticated = "unauthenticated"
    duplicate_open = "duplicate_open"
    throttled_24h = "throttled_24h"
    error = "error"


class AlertCreate(BaseModel):
    """Producer-supplied alert parameters.

    Every field is optional at the schema level: required-field checks belong to
    the alert policy, which reports them as ``invalid_params`` instead of raising.
    The author is never part of this payload.
    """

    group_id: str | None = None
    subject_person_id: str | None = None
    type: str | None = None
    severity: str | None = None
    title: str | None = None
    body: str | None = None
    source_table: str | None = None
    source_id: str | None = None


class AlertInserted(BaseModel):
    inserted: Literal[True] = True
    alert_id: str


class AlertSkipped(BaseModel):
    skipped: Literal[True] = True
    reason: AlertSkipReason
    details: str | None = None


AlertCreateResult = AlertInserted | AlertSkipped


class AlertClose(BaseModel):
    resolution_note: str | None = None


class AlertRead(BaseModel):
    id: str
    group_id: str
    subject_person_id: str
    type: str
    severity: str
    title: str
    body: str | None
    source_table: str | None
    source_id: str | None
    status: AlertStatus
    created_by_user_id: str
    acknowledged_at: datetime | None
    acknowledged_by_user_id: str | None
    resolved_at: datetime | None
    resolved_by_user_id: str | None
    resolution_note: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
