"""Contradiction model."""
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum as SqlEnum, ForeignKey, Index, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class ContradictionStatus(str, PyEnum):
    open = "open"
    in_review = "in_review"
    resolved = "resolved"
    dismissed = "dismissed"


class ContradictionType(str, PyEnum):
    triangulation = "triangulation"
    agreement_dispute = "agreement_dispute"
    timeline_conflict = "timeline_conflict"
    other = "other"


class ContradictionSeverity(str, PyEnum):
    low = "low"
    medium = "medium"
    high = "high"


class Contradiction(Base):
    """An incident where accounts about the supported person disagree."""

    __tablename__ = "contradictions"
    __table_args__ = (
        Index("ix_contradictions_subject_status", "group_id", "subject_person_id", "status"),
    )

    group_id: Mapped[str] = mapped_column(String(36), nullable=False)
    subject_person_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_by_user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    type: Mapped[ContradictionType] = mapped_column(
        SqlEnum(ContradictionType, name="contradictiontype"), nullable=False
    )
    severity: Mapped[ContradictionSeverity] = mapped_column(
        SqlEnum(ContradictionSeverity, name="contradictionseverity"), nullable=False
    )
    summary: Mapped[str] = mapped_column(String(500), nullable=False)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ContradictionStatus] = mapped_column(
        SqlEnum(ContradictionStatus, name="contradictionstatus"),
        nullable=False,
        default=ContradictionStatus.open,
    )
    resolution: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_by_user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    related_note_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    related_agreement_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
