"""
Kernel Data Models

SQLAlchemy models for users, mentor assignments, verifiable items,
the verification ledger and the audit log.
"""

from reviewflow.kernel.models.base import Base, TimestampMixin, generate_uuid, generate_item_id
from reviewflow.kernel.models.user import User, UserRole
from reviewflow.kernel.models.assignment import MentorAssignment
from reviewflow.kernel.models.items import (
    Qualification,
    TeachingSession,
    Activity,
    CompetencyClaim,
    ProfileDocument,
)
from reviewflow.kernel.models.verification import (
    ItemType,
    VerificationStatus,
    Decision,
    VerificationRecord,
    VerificationHistoryEntry,
)
from reviewflow.kernel.models.event_log import EventLog, EventType

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "generate_item_id",
    # User
    "User",
    "UserRole",
    # Assignments
    "MentorAssignment",
    # Items
    "Qualification",
    "TeachingSession",
    "Activity",
    "CompetencyClaim",
    "ProfileDocument",
    # Verification
    "ItemType",
    "VerificationStatus",
    "Decision",
    "VerificationRecord",
    "VerificationHistoryEntry",
    # Event Log
    "EventLog",
    "EventType",
]
