"""
Mentor assignment schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AssignmentCreate(BaseModel):
    """Assign a mentor to a student."""

    mentor_id: uuid.UUID
    student_id: uuid.UUID
    notes: Optional[str] = Field(None, max_length=2000)


class ReassignRequest(BaseModel):
    """Move a student from one mentor to another."""

    student_id: uuid.UUID
    from_mentor_id: uuid.UUID
    to_mentor_id: uuid.UUID


class AssignmentResponse(BaseModel):
    """A mentor-student pairing."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    mentor_id: uuid.UUID
    student_id: uuid.UUID
    assigned_by: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    created_at: datetime


class MentorAssignmentsResponse(BaseModel):
    """Assignments grouped under one mentor, as on the admin overview."""

    mentor_id: uuid.UUID
    student_ids: List[uuid.UUID]


class UserIdsResponse(BaseModel):
    user_ids: List[uuid.UUID]
