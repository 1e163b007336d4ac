"""
Stable Kernel Layer

Foundational components the workflow is built on:
- Identity Core (users, roles, token verification)
- Permission Core (mentor assignments, review authorization)
- Verifiable item lookup
- Immutable Event Log (all workflow mutations logged)
"""

from reviewflow.kernel.models import (
    User,
    UserRole,
    MentorAssignment,
    ItemType,
    VerificationStatus,
    Decision,
    VerificationRecord,
    VerificationHistoryEntry,
    EventLog,
    EventType,
)

__all__ = [
    "User",
    "UserRole",
    "MentorAssignment",
    "ItemType",
    "VerificationStatus",
    "Decision",
    "VerificationRecord",
    "VerificationHistoryEntry",
    "EventLog",
    "EventType",
]
