"""
Verification ledger models - one review record per verifiable item plus its
append-only transition history.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from reviewflow.kernel.models.base import Base, generate_uuid, utcnow


class ItemType(str, Enum):
    """Kinds of student-submitted artifacts that go through review."""
    QUALIFICATION = "qualification"
    SESSION = "session"
    ACTIVITY = "activity"
    COMPETENCY = "competency"
    PROFILE = "profile"


class VerificationStatus(str, Enum):
    """Review state of a record."""
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class Decision(str, Enum):
    """A reviewer's verdict on a pending record."""
    APPROVE = "approve"
    REJECT = "reject"


class VerificationRecord(Base):
    """
    Review state for a single (item_type, item_id).

    Invariants:
    - at most one row per item (uq_verification_item)
    - verifier_id is NULL iff status == pending
    - version only ever moves forward, one step per transition
    """

    __tablename__ = "verification_records"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    item_type: Mapped[ItemType] = mapped_column(
        String(32),
        nullable=False,
    )
    item_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[VerificationStatus] = mapped_column(
        String(20),
        default=VerificationStatus.PENDING,
        nullable=False,
    )
    verifier_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    feedback: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    version: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    opened_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("item_type", "item_id", name="uq_verification_item"),
        Index("ix_verification_records_status_opened", "status", "opened_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<VerificationRecord {self.item_type}:{self.item_id} "
            f"status={self.status} v{self.version}>"
        )


class VerificationHistoryEntry(Base):
    """
    One transition of a VerificationRecord.

    Append-only. `version` is the record version after the transition, so
    (record_id, version) is unique and gives submission order.
    """

    __tablename__ = "verification_history"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    record_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("verification_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    actor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        nullable=True,
    )
    from_status: Mapped[Optional[VerificationStatus]] = mapped_column(
        String(20),
        nullable=True,  # NULL for the creation entry
    )
    to_status: Mapped[VerificationStatus] = mapped_column(
        String(20),
        nullable=False,
    )
    feedback: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    admin_override: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("record_id", "version", name="uq_verification_history_step"),
    )

    def __repr__(self) -> str:
        return f"<VerificationHistoryEntry {self.from_status}->{self.to_status} v{self.version}>"
