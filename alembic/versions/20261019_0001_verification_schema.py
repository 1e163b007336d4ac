"""Verification workflow schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _item_columns() -> list:
    return [
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("student_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Users (identity collaborator)
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(50), nullable=False, server_default="student"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "mentor_student_assignments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("mentor_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("student_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("assigned_by", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("mentor_id", "student_id", name="uq_mentor_student_pair"),
    )

    # Verifiable items
    op.create_table(
        "qualifications",
        *_item_columns(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("issuing_organization", sa.String(255), nullable=True),
        sa.Column("date_obtained", sa.Date(), nullable=True),
        sa.Column("certificate_url", sa.Text(), nullable=True),
    )
    op.create_table(
        "sessions",
        *_item_columns(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("reflection", sa.Text(), nullable=True),
    )
    op.create_table(
        "activities",
        *_item_columns(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("activity_type", sa.String(50), nullable=False, server_default="other"),
        sa.Column("date_completed", sa.Date(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("evidence_url", sa.Text(), nullable=True),
    )
    op.create_table(
        "student_competencies",
        *_item_columns(),
        sa.Column("competency_name", sa.String(255), nullable=False),
        sa.Column("level", sa.String(20), nullable=False, server_default="beginner"),
        sa.Column("evidence_url", sa.Text(), nullable=True),
    )
    op.create_table(
        "profile_documents",
        *_item_columns(),
        sa.Column("document_url", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
    )

    # Verification ledger
    op.create_table(
        "verification_records",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("item_type", sa.String(32), nullable=False),
        sa.Column("item_id", sa.String(64), nullable=False),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("verifier_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("opened_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("item_type", "item_id", name="uq_verification_item"),
    )
    op.create_index(
        "ix_verification_records_status_opened",
        "verification_records",
        ["status", "opened_at"],
    )

    op.create_table(
        "verification_history",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("record_id", sa.Uuid(), sa.ForeignKey("verification_records.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=True),
        sa.Column("from_status", sa.String(20), nullable=True),
        sa.Column("to_status", sa.String(20), nullable=False),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("admin_override", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("record_id", "version", name="uq_verification_history_step"),
    )

    # Audit log (append-only)
    op.create_table(
        "event_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("event_type", sa.String(100), nullable=False, index=True),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False, index=True),
        sa.Column("user_id", sa.Uuid(), nullable=True, index=True),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("request_id", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, index=True),
    )
    op.create_index("ix_event_logs_entity", "event_logs", ["entity_type", "entity_id"])
    op.create_index("ix_event_logs_user_time", "event_logs", ["user_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_event_logs_user_time", table_name="event_logs")
    op.drop_index("ix_event_logs_entity", table_name="event_logs")
    op.drop_table("event_logs")
    op.drop_table("verification_history")
    op.drop_index("ix_verification_records_status_opened", table_name="verification_records")
    op.drop_table("verification_records")
    op.drop_table("profile_documents")
    op.drop_table("student_competencies")
    op.drop_table("activities")
    op.drop_table("sessions")
    op.drop_table("qualifications")
    op.drop_table("mentor_student_assignments")
    op.drop_table("users")
