"""
Pydantic schemas for API request/response validation.
"""

from reviewflow.schemas.assignment import (
    AssignmentCreate,
    AssignmentResponse,
    MentorAssignmentsResponse,
    ReassignRequest,
    UserIdsResponse,
)
from reviewflow.schemas.common import (
    ErrorResponse,
    HealthResponse,
    PaginatedResponse,
)
from reviewflow.schemas.verification import (
    DecisionRequest,
    HistoryEntryResponse,
    PendingCountsResponse,
    ResubmitRequest,
    VerificationDetailResponse,
    VerificationRecordResponse,
)

__all__ = [
    # Assignments
    "AssignmentCreate",
    "AssignmentResponse",
    "MentorAssignmentsResponse",
    "ReassignRequest",
    "UserIdsResponse",
    # Common
    "ErrorResponse",
    "HealthResponse",
    "PaginatedResponse",
    # Verification
    "DecisionRequest",
    "HistoryEntryResponse",
    "PendingCountsResponse",
    "ResubmitRequest",
    "VerificationDetailResponse",
    "VerificationRecordResponse",
]
