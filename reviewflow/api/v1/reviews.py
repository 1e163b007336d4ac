"""
Review queue endpoints - paginated listings and pending counts.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from reviewflow.api.deps import AppSettings, CurrentUser, Queries, Registry, require_self_or_admin
from reviewflow.engines.queries.query_service import Page, PendingScope, RecordFilter
from reviewflow.kernel.models.user import UserRole
from reviewflow.kernel.models.verification import ItemType, VerificationStatus
from reviewflow.schemas.common import PaginatedResponse
from reviewflow.schemas.verification import PendingCountsResponse, VerificationRecordResponse

router = APIRouter()

RecordPage = PaginatedResponse[VerificationRecordResponse]


def _to_response(page: Page) -> RecordPage:
    return RecordPage.create(
        items=[VerificationRecordResponse.model_validate(r) for r in page.items],
        total=page.total,
        page=page.page,
        page_size=page.page_size,
    )


@router.get("/mentors/{mentor_id}/reviews", response_model=RecordPage)
async def list_mentor_reviews(
    mentor_id: uuid.UUID,
    user: CurrentUser,
    queries: Queries,
    settings: AppSettings,
    status_filter: Optional[VerificationStatus] = Query(None, alias="status"),
    item_type: Optional[ItemType] = Query(None, alias="type"),
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
):
    """Verification records of the mentor's assigned students, newest first."""
    require_self_or_admin(user, mentor_id)
    result = await queries.list_for_mentor(
        mentor_id,
        RecordFilter(status=status_filter, item_type=item_type),
        page=page,
        page_size=page_size or settings.default_page_size,
    )
    return _to_response(result)


@router.get("/students/{student_id}/reviews", response_model=RecordPage)
async def list_student_reviews(
    student_id: uuid.UUID,
    user: CurrentUser,
    queries: Queries,
    registry: Registry,
    settings: AppSettings,
    status_filter: Optional[VerificationStatus] = Query(None, alias="status"),
    item_type: Optional[ItemType] = Query(None, alias="type"),
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
):
    """A student's verification records (the student, an assigned mentor, or an admin)."""
    if not (
        user.id == student_id
        or user.role == UserRole.ADMIN
        or (user.role == UserRole.MENTOR and await registry.is_assigned(user.id, student_id))
    ):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    result = await queries.list_for_student(
        student_id,
        RecordFilter(status=status_filter, item_type=item_type),
        page=page,
        page_size=page_size or settings.default_page_size,
    )
    return _to_response(result)


@router.get("/reviews", response_model=RecordPage)
async def list_all_reviews(
    user: CurrentUser,
    queries: Queries,
    settings: AppSettings,
    status_filter: Optional[VerificationStatus] = Query(None, alias="status"),
    item_type: Optional[ItemType] = Query(None, alias="type"),
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
):
    """Admin review queue across all students."""
    if user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    result = await queries.list_all(
        RecordFilter(status=status_filter, item_type=item_type),
        page=page,
        page_size=page_size or settings.default_page_size,
    )
    return _to_response(result)


@router.get("/reviews/pending-counts", response_model=PendingCountsResponse)
async def pending_counts(user: CurrentUser, queries: Queries):
    """Pending items per type: all of them for admins, assigned students' for mentors."""
    if user.role == UserRole.ADMIN:
        scope, label = PendingScope.global_(), "global"
    elif user.role == UserRole.MENTOR:
        scope, label = PendingScope.for_mentor(user.id), "mentor"
    else:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Reviewers only")

    counts = await queries.pending_counts_by_type(scope)
    return PendingCountsResponse(scope=label, counts=counts, total=sum(counts.values()))
