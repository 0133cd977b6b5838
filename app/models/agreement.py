"""Agreement model definitions."""
from enum import Enum as PyEnum

from sqlalchemy import Enum as SqlEnum, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class AgreementStatus(str, PyEnum):
    """Possible statuses for an agreement."""

    proposed = "proposed"
    accepted = "accepted"
    declined = "declined"
    withdrawn = "withdrawn"


class AcceptanceStatus(str, PyEnum):
    accepted = "accepted"
    declined = "declined"
    modified = "modified"


class Agreement(Base):
    """A commitment negotiated between supporters and the supported person."""

    __tablename__ = "agreements"

    group_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    subject_person_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_by_user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    status: Mapped[AgreementStatus] = mapped_column(
        SqlEnum(AgreementStatus, name="agreementstatus"), nullable=False, default=AgreementStatus.proposed
    )

    versions = relationship(
        "AgreementVersion",
        back_populates="agreement",
        cascade="all, delete-orphan",
        order_by="AgreementVersion.version_num",
    )

    @property
    def latest_version(self) -> "AgreementVersion | None":
        return self.versions[-1] if self.versions else None

    @property
    def title(self) -> str:
        latest = self.latest_version
        fields = (latest.fields if latest is not None else None) or {}
        return fields.get("title") or "Untitled"


class AgreementVersion(Base):
    """Versioned terms of an agreement."""

    __tablename__ = "agreement_versions"
    __table_args__ = (UniqueConstraint("agreement_id", "version_num", name="uq_agreement_version_num"),)

    agreement_id: Mapped[str] = mapped_column(ForeignKey("agreements.id"), nullable=False, index=True)
    group_id: Mapped[str] = mapped_column(String(36), nullable=False)
    proposed_by_user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    version_num: Mapped[int] = mapped_column(Integer, nullable=False)
    fields: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    agreement = relationship("Agreement", back_populates="versions")


class AgreementAcceptance(Base):
    """A person's response to one version of an agreement."""

    __tablename__ = "agreement_acceptances"

    agreement_id: Mapped[str] = mapped_column(ForeignKey("agreements.id"), nullable=False, index=True)
    agreement_version_id: Mapped[str] = mapped_column(ForeignKey("agreement_versions.id"), nullable=False)
    group_id: Mapped[str] = mapped_column(String(36), nullable=False)
    person_user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    status: Mapped[AcceptanceStatus] = mapped_column(
        SqlEnum(AcceptanceStatus, name="acceptancestatus"), nullable=False
    )
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
