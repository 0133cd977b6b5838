"""Alert model."""
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import CheckConstraint, DateTime, Enum as SqlEnum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class AlertStatus(str, PyEnum):
    """Lifecycle states of an alert; resolved and dismissed are terminal."""

    open = "open"
    acknowledged = "acknowledged"
    resolved = "resolved"
    dismissed = "dismissed"


class AlertSeverity(str, PyEnum):
    """Ordinal urgency tiers, tier1 being the most urgent."""

    tier1 = "tier1"
    tier2 = "tier2"
    tier3 = "tier3"
    tier4 = "tier4"


ACTIVE_ALERT_STATUSES = (AlertStatus.open, AlertStatus.acknowledged)
TERMINAL_ALERT_STATUSES = (AlertStatus.resolved, AlertStatus.dismissed)


class Alert(Base):
    """A notification about a supported person, created through the alert policy."""

    __tablename__ = "alerts"
    __table_args__ = (
        Index("ix_alerts_created_at", "created_at"),
        Index(
            "ix_alerts_dedupe_key",
            "group_id",
            "subject_person_id",
            "type",
            "source_table",
            "source_id",
        ),
        CheckConstraint(
            "source_table IS NULL OR source_id IS NOT NULL",
            name="ck_alerts_source_table_requires_id",
        ),
    )

    group_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    subject_person_id: Mapped[str] = mapped_column(String(36), nullable=False)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    source_table: Mapped[str | None] = mapped_column(String(64), nullable=True)
    source_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    status: Mapped[AlertStatus] = mapped_column(
        SqlEnum(AlertStatus, name="alertstatus"), nullable=False, default=AlertStatus.open
    )
    created_by_user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    acknowledged_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    acknowledged_by_user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_by_user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    resolution_note: Mapped[str | None] = mapped_column(Text, nullable=True)
