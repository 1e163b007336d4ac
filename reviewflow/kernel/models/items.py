"""
Verifiable item models - the student-submitted artifacts that go through review.

Each artifact type keeps its own table and payload. The workflow only ever
reads `id` and `student_id` from these rows (see kernel.items.item_store).
"""

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import Date, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from reviewflow.kernel.models.base import Base, TimestampMixin, generate_item_id


class StudentOwnedMixin:
    """Common shape of every verifiable item: string id + owning student."""

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=generate_item_id,
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class Qualification(StudentOwnedMixin, TimestampMixin, Base):
    """A certificate, degree or course the student claims to hold."""

    __tablename__ = "qualifications"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    issuing_organization: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    date_obtained: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    certificate_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class TeachingSession(StudentOwnedMixin, TimestampMixin, Base):
    """A teaching session delivered during placement."""

    __tablename__ = "sessions"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    held_on: Mapped[Optional[date]] = mapped_column("date", Date, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reflection: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Activity(StudentOwnedMixin, TimestampMixin, Base):
    """A workshop, research task or other professional-development activity."""

    __tablename__ = "activities"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    activity_type: Mapped[str] = mapped_column(String(50), nullable=False, default="other")
    date_completed: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    duration_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    evidence_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class CompetencyClaim(StudentOwnedMixin, TimestampMixin, Base):
    """A student's self-assessed level in a competency."""

    __tablename__ = "student_competencies"

    competency_name: Mapped[str] = mapped_column(String(255), nullable=False)
    level: Mapped[str] = mapped_column(String(20), nullable=False, default="beginner")
    evidence_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class ProfileDocument(StudentOwnedMixin, TimestampMixin, Base):
    """An identity or background document attached to the student profile."""

    __tablename__ = "profile_documents"

    document_url: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
