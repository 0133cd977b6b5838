"""initial schema: users, api keys, alerts, contradictions, agreements

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("username", sa.String(length=100), nullable=False, unique=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )

    op.create_table(
        "api_keys",
        *_base_columns(),
        sa.Column("name", sa.String(length=120), nullable=False, unique=True),
        sa.Column("prefix", sa.String(length=32), nullable=False),
        sa.Column("key_hash", sa.String(length=128), nullable=False, unique=True),
        sa.Column(
            "scope",
            sa.Enum("supporter", "coordinator", "admin", name="apiscope"),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=True),
    )
    op.create_index("ix_api_keys_prefix", "api_keys", ["prefix"])
    op.create_index("ix_api_keys_user_id", "api_keys", ["user_id"])

    op.create_table(
        "scheduler_locks",
        *_base_columns(),
        sa.Column("name", sa.String(length=64), nullable=False, unique=True),
        sa.Column("owner", sa.String(length=128), nullable=False),
        sa.Column("acquired_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "alerts",
        *_base_columns(),
        sa.Column("group_id", sa.String(length=36), nullable=False),
        sa.Column("subject_person_id", sa.String(length=36), nullable=False),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("severity", sa.String(length=20), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("source_table", sa.String(length=64), nullable=True),
        sa.Column("source_id", sa.String(length=36), nullable=True),
        sa.Column(
            "status",
            sa.Enum("open", "acknowledged", "resolved", "dismissed", name="alertstatus"),
            nullable=False,
        ),
        sa.Column("created_by_user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("acknowledged_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("acknowledged_by_user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_by_user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("resolution_note", sa.Text(), nullable=True),
        sa.CheckConstraint(
            "source_table IS NULL OR source_id IS NOT NULL",
            name="ck_alerts_source_table_requires_id",
        ),
    )
    op.create_index("ix_alerts_group_id", "alerts", ["group_id"])
    op.create_index("ix_alerts_created_at", "alerts", ["created_at"])
    op.create_index(
        "ix_alerts_dedupe_key",
        "alerts",
        ["group_id", "subject_person_id", "type", "source_table", "source_id"],
    )

    op.create_table(
        "contradictions",
        *_base_columns(),
        sa.Column("group_id", sa.String(length=36), nullable=False),
        sa.Column("subject_person_id", sa.String(length=36), nullable=False),
        sa.Column("created_by_user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "type",
            sa.Enum(
                "triangulation",
                "agreement_dispute",
                "timeline_conflict",
                "other",
                name="contradictiontype",
            ),
            nullable=False,
        ),
        sa.Column(
            "severity",
            sa.Enum("low", "medium", "high", name="contradictionseverity"),
            nullable=False,
        ),
        sa.Column("summary", sa.String(length=500), nullable=False),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("open", "in_review", "resolved", "dismissed", name="contradictionstatus"),
            nullable=False,
        ),
        sa.Column("resolution", sa.Text(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_by_user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("related_note_ids", sa.JSON(), nullable=False),
        sa.Column("related_agreement_ids", sa.JSON(), nullable=False),
    )
    op.create_index(
        "ix_contradictions_subject_status",
        "contradictions",
        ["group_id", "subject_person_id", "status"],
    )

    op.create_table(
        "agreements",
        *_base_columns(),
        sa.Column("group_id", sa.String(length=36), nullable=False),
        sa.Column("subject_person_id", sa.String(length=36), nullable=False),
        sa.Column("created_by_user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "status",
            sa.Enum("proposed", "accepted", "declined", "withdrawn", name="agreementstatus"),
            nullable=False,
        ),
    )
    op.create_index("ix_agreements_group_id", "agreements", ["group_id"])

    op.create_table(
        "agreement_versions",
        *_base_columns(),
        sa.Column("agreement_id", sa.String(length=36), sa.ForeignKey("agreements.id"), nullable=False),
        sa.Column("group_id", sa.String(length=36), nullable=False),
        sa.Column("proposed_by_user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("version_num", sa.Integer(), nullable=False),
        sa.Column("fields", sa.JSON(), nullable=False),
        sa.UniqueConstraint("agreement_id", "version_num", name="uq_agreement_version_num"),
    )
    op.create_index("ix_agreement_versions_agreement_id", "agreement_versions", ["agreement_id"])

    op.create_table(
        "agreement_acceptances",
        *_base_columns(),
        sa.Column("agreement_id", sa.String(length=36), sa.ForeignKey("agreements.id"), nullable=False),
        sa.Column(
            "agreement_version_id",
            sa.String(length=36),
            sa.ForeignKey("agreement_versions.id"),
            nullable=False,
        ),
        sa.Column("group_id", sa.String(length=36), nullable=False),
        sa.Column("person_user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "status",
            sa.Enum("accepted", "declined", "modified", name="acceptancestatus"),
            nullable=False,
        ),
        sa.Column("message", sa.Text(), nullable=True),
    )
    op.create_index("ix_agreement_acceptances_agreement_id", "agreement_acceptances", ["agreement_id"])


def downgrade() -> None:
    op.drop_table("agreement_acceptances")
    op.drop_table("agreement_versions")
    op.drop_table("agreements")
    op.drop_table("contradictions")
    op.drop_table("alerts")
    op.drop_table("scheduler_locks")
    op.drop_table("api_keys")
    op.drop_table("users")
