"""
Verification workflow endpoints for a single item: submit, decide, resubmit.
"""

from typing import Optional

from fastapi import APIRouter, status

from reviewflow.api.deps import CurrentUser, Workflow
from reviewflow.kernel.models.verification import ItemType
from reviewflow.schemas.common import ErrorResponse
from reviewflow.schemas.verification import (
    DecisionRequest,
    HistoryEntryResponse,
    ResubmitRequest,
    VerificationDetailResponse,
    VerificationRecordResponse,
)

router = APIRouter()

_CONFLICT = {409: {"model": ErrorResponse}}
_ERRORS = {403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, **_CONFLICT}


@router.post(
    "/{item_type}/{item_id}/submit",
    response_model=VerificationRecordResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
)
async def submit_item(
    item_type: ItemType,
    item_id: str,
    user: CurrentUser,
    engine: Workflow,
):
    """Submit one of your items for mentor verification."""
    record = await engine.submit(user.id, item_type, item_id)
    return VerificationRecordResponse.model_validate(record)


@router.patch(
    "/{item_type}/{item_id}/decision",
    response_model=VerificationRecordResponse,
    responses=_ERRORS,
)
async def decide_item(
    item_type: ItemType,
    item_id: str,
    body: DecisionRequest,
    user: CurrentUser,
    engine: Workflow,
):
    """Approve or reject a pending item (assigned mentor or admin)."""
    record = await engine.decide(
        user.id,
        item_type,
        item_id,
        approve=body.approve,
        feedback=body.feedback,
        expected_version=body.expected_version,
    )
    return VerificationRecordResponse.model_validate(record)


@router.post(
    "/{item_type}/{item_id}/resubmit",
    response_model=VerificationRecordResponse,
    responses=_ERRORS,
)
async def resubmit_item(
    item_type: ItemType,
    item_id: str,
    user: CurrentUser,
    engine: Workflow,
    body: Optional[ResubmitRequest] = None,
):
    """Send a rejected item back for review (owner only)."""
    record = await engine.resubmit(
        user.id,
        item_type,
        item_id,
        expected_version=body.expected_version if body else None,
    )
    return VerificationRecordResponse.model_validate(record)


@router.get(
    "/{item_type}/{item_id}/verification",
    response_model=VerificationDetailResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_item_verification(
    item_type: ItemType,
    item_id: str,
    user: CurrentUser,
    engine: Workflow,
):
    """Current verification state of an item with its full history."""
    record, history = await engine.get_record(user.id, item_type, item_id)
    detail = VerificationDetailResponse.model_validate(record)
    detail.history = [HistoryEntryResponse.model_validate(h) for h in history]
    return detail
