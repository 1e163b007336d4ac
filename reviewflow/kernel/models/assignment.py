"""
Mentor-student assignment model.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from reviewflow.kernel.models.base import Base, generate_uuid


class MentorAssignment(Base):
    """
    A mentor-student pairing. Gates who may review a student's items.

    Rows are hard-deleted on unassignment; records already decided by the
    mentor keep their verifier_id.
    """

    __tablename__ = "mentor_student_assignments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    mentor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assigned_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("mentor_id", "student_id", name="uq_mentor_student_pair"),
    )

    def __repr__(self) -> str:
        return f"<MentorAssignment mentor={self.mentor_id} student={self.student_id}>"
