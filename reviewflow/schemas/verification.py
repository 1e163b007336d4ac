"""
Pydantic schemas for the verification workflow API.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from reviewflow.kernel.models.verification import ItemType, VerificationStatus


class DecisionRequest(BaseModel):
    """Body for approving or rejecting a submitted item."""

    approve: bool
    feedback: Optional[str] = Field(None, max_length=5000)
    expected_version: Optional[int] = Field(
        None,
        ge=0,
        description="Record version the reviewer looked at; stale values get 409",
    )


class ResubmitRequest(BaseModel):
    """Optional body for resubmitting a rejected item."""

    expected_version: Optional[int] = Field(None, ge=0)


class HistoryEntryResponse(BaseModel):
    """One transition in a record's history."""

    model_config = ConfigDict(from_attributes=True)

    version: int
    created_at: datetime
    actor_id: Optional[uuid.UUID] = None
    from_status: Optional[VerificationStatus] = None
    to_status: VerificationStatus
    feedback: Optional[str] = None
    admin_override: bool = False


class VerificationRecordResponse(BaseModel):
    """A verification record."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    item_type: ItemType
    item_id: str
    owner_id: uuid.UUID
    status: VerificationStatus
    verifier_id: Optional[uuid.UUID] = None
    feedback: Optional[str] = None
    version: int
    opened_at: datetime
    updated_at: datetime


class VerificationDetailResponse(VerificationRecordResponse):
    """A verification record with its full transition history."""

    history: List[HistoryEntryResponse] = []


class PendingCountsResponse(BaseModel):
    """Pending records per item type plus total."""

    scope: str
    counts: Dict[ItemType, int]
    total: int
