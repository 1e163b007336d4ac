"""
Read-only review queue queries: pending counts and paginated listings.

Never mutates. Results may lag a concurrent write; callers re-read the
record before deciding.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Collection, Dict, Generic, List, Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.kernel.errors import ValidationError
from reviewflow.kernel.models.verification import ItemType, VerificationRecord, VerificationStatus
from reviewflow.kernel.permissions.assignment_registry import AssignmentRegistry

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PendingScope:
    """Whose pending items to count: everyone's, or one mentor's students'."""

    mentor_id: Optional[uuid.UUID] = None

    @classmethod
    def global_(cls) -> "PendingScope":
        return cls()

    @classmethod
    def for_mentor(cls, mentor_id: uuid.UUID) -> "PendingScope":
        return cls(mentor_id=mentor_id)

    @property
    def is_global(self) -> bool:
        return self.mentor_id is None


@dataclass(frozen=True)
class RecordFilter:
    status: Optional[VerificationStatus] = None
    item_type: Optional[ItemType] = None


@dataclass
class Page(Generic[T]):
    """One offset-based page of results. `page` is 1-based."""

    items: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def has_more(self) -> bool:
        return self.page * self.page_size < self.total


class QueryService:
    """
    Aggregations over the verification ledger for dashboards.

    Ordering is newest submission first (opened_at), ties broken by record id.
    """

    def __init__(
        self,
        session: AsyncSession,
        registry: Optional[AssignmentRegistry] = None,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self.session = session
        self.registry = registry or AssignmentRegistry(session)
        self.max_page_size = max_page_size

    async def pending_count(self, scope: Optional[PendingScope] = None) -> int:
        counts = await self.pending_counts_by_type(scope)
        return sum(counts.values())

    async def pending_counts_by_type(self, scope: Optional[PendingScope] = None) -> Dict[ItemType, int]:
        """Pending records per item type; every type is present, zero if none."""
        scope = scope or PendingScope.global_()
        query = (
            select(VerificationRecord.item_type, func.count(VerificationRecord.id))
            .where(VerificationRecord.status == VerificationStatus.PENDING.value)
            .group_by(VerificationRecord.item_type)
        )
        if not scope.is_global:
            owners = await self.registry.students_of(scope.mentor_id)
            if not owners:
                return {t: 0 for t in ItemType}
            query = query.where(VerificationRecord.owner_id.in_(owners))

        result = await self.session.execute(query)
        counts = {t: 0 for t in ItemType}
        for item_type, count in result.all():
            counts[ItemType(item_type)] = count
        return counts

    async def list_for_student(
        self,
        student_id: uuid.UUID,
        filter: Optional[RecordFilter] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page[VerificationRecord]:
        return await self._page([student_id], filter, page, page_size)

    async def list_for_mentor(
        self,
        mentor_id: uuid.UUID,
        filter: Optional[RecordFilter] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page[VerificationRecord]:
        """Records owned by the mentor's currently assigned students."""
        owners = await self.registry.students_of(mentor_id)
        return await self._page(owners, filter, page, page_size)

    async def list_all(
        self,
        filter: Optional[RecordFilter] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page[VerificationRecord]:
        """Admin review queue across all students."""
        return await self._page(None, filter, page, page_size)

    async def _page(
        self,
        owner_ids: Optional[Collection[uuid.UUID]],
        filter: Optional[RecordFilter],
        page: int,
        page_size: int,
    ) -> Page[VerificationRecord]:
        self._validate_paging(page, page_size)
        if owner_ids is not None and not owner_ids:
            return Page(items=[], total=0, page=page, page_size=page_size)

        conditions: List[Any] = []
        if owner_ids is not None:
            conditions.append(VerificationRecord.owner_id.in_(list(owner_ids)))
        if filter and filter.status is not None:
            conditions.append(VerificationRecord.status == VerificationStatus(filter.status).value)
        if filter and filter.item_type is not None:
            conditions.append(VerificationRecord.item_type == ItemType(filter.item_type).value)

        total_result = await self.session.execute(
            select(func.count(VerificationRecord.id)).where(*conditions)
        )
        total = total_result.scalar() or 0

        if (page - 1) * page_size >= total:
            return Page(items=[], total=total, page=page, page_size=page_size)

        result = await self.session.execute(
            select(VerificationRecord)
            .where(*conditions)
            .order_by(VerificationRecord.opened_at.desc(), VerificationRecord.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return Page(
            items=list(result.scalars().all()),
            total=total,
            page=page,
            page_size=page_size,
        )

    def _validate_paging(self, page: int, page_size: int) -> None:
        if page < 1:
            raise ValidationError("page must be >= 1", page=page)
        if page_size < 1 or page_size > self.max_page_size:
            raise ValidationError(
                f"page_size must be between 1 and {self.max_page_size}",
                page_size=page_size,
            )
