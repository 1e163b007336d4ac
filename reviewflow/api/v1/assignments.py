"""
Mentor assignment endpoints.
"""

import uuid
from typing import Dict, List

from fastapi import APIRouter, HTTPException, status

from reviewflow.api.deps import AdminUser, CurrentUser, Registry, require_self_or_admin
from reviewflow.schemas.assignment import (
    AssignmentCreate,
    AssignmentResponse,
    MentorAssignmentsResponse,
    ReassignRequest,
    UserIdsResponse,
)

router = APIRouter()


@router.get("/admin/assignments", response_model=List[MentorAssignmentsResponse])
async def list_assignments(admin: AdminUser, registry: Registry):
    """All mentor-student pairings, grouped by mentor."""
    grouped: Dict[uuid.UUID, List[uuid.UUID]] = {}
    for assignment in await registry.list_assignments():
        grouped.setdefault(assignment.mentor_id, []).append(assignment.student_id)
    return [
        MentorAssignmentsResponse(mentor_id=mentor_id, student_ids=student_ids)
        for mentor_id, student_ids in grouped.items()
    ]


@router.post(
    "/admin/assignments",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_assignment(data: AssignmentCreate, admin: AdminUser, registry: Registry):
    """Assign a mentor to a student. Repeating an existing pairing is a no-op."""
    assignment = await registry.assign(
        data.mentor_id,
        data.student_id,
        assigned_by=admin.id,
        notes=data.notes,
    )
    return AssignmentResponse.model_validate(assignment)


@router.post("/admin/assignments/reassign", response_model=AssignmentResponse)
async def reassign_student(data: ReassignRequest, admin: AdminUser, registry: Registry):
    """Move a student to a different mentor."""
    assignment = await registry.reassign(
        data.student_id,
        data.from_mentor_id,
        data.to_mentor_id,
        assigned_by=admin.id,
    )
    return AssignmentResponse.model_validate(assignment)


@router.delete(
    "/admin/assignments/{mentor_id}/{student_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_assignment(
    mentor_id: uuid.UUID,
    student_id: uuid.UUID,
    admin: AdminUser,
    registry: Registry,
):
    """Remove a pairing. Past decisions by the mentor remain valid."""
    removed = await registry.unassign(mentor_id, student_id, removed_by=admin.id)
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")


@router.get("/mentors/{mentor_id}/students", response_model=UserIdsResponse)
async def list_mentor_students(mentor_id: uuid.UUID, user: CurrentUser, registry: Registry):
    require_self_or_admin(user, mentor_id)
    return UserIdsResponse(user_ids=sorted(await registry.students_of(mentor_id)))


@router.get("/students/{student_id}/mentors", response_model=UserIdsResponse)
async def list_student_mentors(student_id: uuid.UUID, user: CurrentUser, registry: Registry):
    require_self_or_admin(user, student_id)
    return UserIdsResponse(user_ids=sorted(await registry.mentors_of(student_id)))
