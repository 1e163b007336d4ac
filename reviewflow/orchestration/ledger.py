"""
Verification ledger - the single source of truth for review state.

One record per (item_type, item_id). Valid transitions are defined here;
every transition is a compare-and-swap on the record's version.

    (none)   --submit-->   pending
    pending  --approve-->  verified   [terminal]
    pending  --reject-->   rejected
    rejected --resubmit--> pending
"""

import uuid
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.kernel.errors import (
    AlreadyOpenError,
    ConcurrencyConflict,
    InvalidTransitionError,
    NotFoundError,
)
from reviewflow.kernel.models.base import utcnow
from reviewflow.kernel.models.verification import (
    Decision,
    ItemType,
    VerificationHistoryEntry,
    VerificationRecord,
    VerificationStatus,
)
from reviewflow.logging_config import get_logger

logger = get_logger(__name__)

SUBMIT = "submit"
RESUBMIT = "resubmit"

# (from_status, action) -> to_status. Nothing leaves VERIFIED.
_TRANSITIONS: Dict[Tuple[Optional[VerificationStatus], str], VerificationStatus] = {
    (None, SUBMIT): VerificationStatus.PENDING,
    (VerificationStatus.PENDING, Decision.APPROVE.value): VerificationStatus.VERIFIED,
    (VerificationStatus.PENDING, Decision.REJECT.value): VerificationStatus.REJECTED,
    (VerificationStatus.REJECTED, RESUBMIT): VerificationStatus.PENDING,
}


def next_status(
    from_status: Optional[VerificationStatus],
    action: str,
) -> Optional[VerificationStatus]:
    """Target status for `action` from `from_status`, or None if not allowed."""
    return _TRANSITIONS.get((from_status, action))


def valid_actions(from_status: Optional[VerificationStatus]) -> List[str]:
    """Actions allowed from the given status."""
    return sorted(action for (f, action) in _TRANSITIONS if f == from_status)


class VerificationLedger:
    """
    Owns VerificationRecords and enforces the state machine.

    The ledger never commits; the caller's unit of work does. A failed
    call leaves the session without pending changes to the record.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def open(
        self,
        item_type: ItemType,
        item_id: str,
        owner_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> VerificationRecord:
        """
        Create a pending record for an item.

        Raises:
            AlreadyOpenError: A record (pending or decided) already exists
        """
        item_type = ItemType(item_type)
        existing = await self.get(item_type, item_id)
        if existing is not None:
            raise AlreadyOpenError(item_type.value, item_id, existing.id)

        now = utcnow()
        record = VerificationRecord(
            item_type=item_type.value,
            item_id=item_id,
            owner_id=owner_id,
            status=VerificationStatus.PENDING.value,
            version=0,
            opened_at=now,
            updated_at=now,
        )
        try:
            # Savepoint: a duplicate only discards this insert
            async with self.session.begin_nested():
                self.session.add(record)
        except IntegrityError:
            logger.info(
                "Concurrent open lost on unique constraint",
                extra={"item_type": item_type.value, "item_id": item_id},
            )
            raise AlreadyOpenError(item_type.value, item_id) from None

        self.session.add(
            VerificationHistoryEntry(
                record_id=record.id,
                version=0,
                actor_id=actor_id or owner_id,
                from_status=None,
                to_status=VerificationStatus.PENDING.value,
                created_at=now,
            )
        )
        await self.session.flush()

        logger.debug(
            "Verification record opened",
            extra={"record_id": str(record.id), "item_type": item_type.value, "item_id": item_id},
        )
        return record

    async def decide(
        self,
        record_id: uuid.UUID,
        actor_id: uuid.UUID,
        decision: Decision,
        feedback: Optional[str] = None,
        expected_version: Optional[int] = None,
        admin_override: bool = False,
    ) -> VerificationRecord:
        """
        Approve or reject a pending record.

        Args:
            record_id: The record to decide
            actor_id: Reviewer; becomes verifier_id
            decision: approve -> verified, reject -> rejected
            feedback: Optional reviewer feedback
            expected_version: Version the reviewer saw; defaults to the version read now
            admin_override: Recorded in history when an admin decided

        Raises:
            NotFoundError: Unknown record
            ConcurrencyConflict: Another transition happened first
            InvalidTransitionError: Record is not pending
        """
        decision = Decision(decision)
        record = await self._load(record_id)
        base_version = self._check_version(record, expected_version)

        from_status = VerificationStatus(record.status)
        to_status = next_status(from_status, decision.value)
        if to_status is None:
            raise InvalidTransitionError(from_status.value, decision.value, record.id)

        return await self._swap(
            record,
            base_version=base_version,
            from_status=from_status,
            to_status=to_status,
            actor_id=actor_id,
            verifier_id=actor_id,
            feedback=feedback,
            admin_override=admin_override,
        )

    async def resubmit(
        self,
        record_id: uuid.UUID,
        actor_id: uuid.UUID,
        expected_version: Optional[int] = None,
    ) -> VerificationRecord:
        """
        Move a rejected record back to pending, clearing verifier and feedback.

        Raises:
            NotFoundError: Unknown record
            ConcurrencyConflict: Another transition happened first
            InvalidTransitionError: Record is pending or verified
        """
        record = await self._load(record_id)
        base_version = self._check_version(record, expected_version)

        from_status = VerificationStatus(record.status)
        to_status = next_status(from_status, RESUBMIT)
        if to_status is None:
            raise InvalidTransitionError(from_status.value, RESUBMIT, record.id)

        return await self._swap(
            record,
            base_version=base_version,
            from_status=from_status,
            to_status=to_status,
            actor_id=actor_id,
            verifier_id=None,
            feedback=None,
        )

    async def get(self, item_type: ItemType, item_id: str) -> Optional[VerificationRecord]:
        result = await self.session.execute(
            select(VerificationRecord).where(
                VerificationRecord.item_type == ItemType(item_type).value,
                VerificationRecord.item_id == item_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, record_id: uuid.UUID) -> Optional[VerificationRecord]:
        result = await self.session.execute(
            select(VerificationRecord).where(VerificationRecord.id == record_id)
        )
        return result.scalar_one_or_none()

    async def history(self, record_id: uuid.UUID) -> List[VerificationHistoryEntry]:
        """Transition log of a record in submission order."""
        result = await self.session.execute(
            select(VerificationHistoryEntry)
            .where(VerificationHistoryEntry.record_id == record_id)
            .order_by(VerificationHistoryEntry.version)
        )
        return list(result.scalars().all())

    async def _load(self, record_id: uuid.UUID) -> VerificationRecord:
        # populate_existing: never trust a copy cached earlier in this session
        result = await self.session.execute(
            select(VerificationRecord)
            .where(VerificationRecord.id == record_id)
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError("Verification record not found", record_id=record_id)
        return record

    @staticmethod
    def _check_version(record: VerificationRecord, expected_version: Optional[int]) -> int:
        if expected_version is None:
            return record.version
        if record.version != expected_version:
            raise ConcurrencyConflict(record.id, expected_version, record.version)
        return expected_version

    async def _swap(
        self,
        record: VerificationRecord,
        *,
        base_version: int,
        from_status: VerificationStatus,
        to_status: VerificationStatus,
        actor_id: uuid.UUID,
        verifier_id: Optional[uuid.UUID],
        feedback: Optional[str],
        admin_override: bool = False,
    ) -> VerificationRecord:
        """Apply one transition iff the stored version is still `base_version`."""
        now = utcnow()
        new_version = base_version + 1
        result = await self.session.execute(
            update(VerificationRecord)
            .where(
                VerificationRecord.id == record.id,
                VerificationRecord.version == base_version,
                VerificationRecord.status == from_status.value,
            )
            .values(
                status=to_status.value,
                verifier_id=verifier_id,
                feedback=feedback,
                version=new_version,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.info(
                "Version conflict on verification record",
                extra={"record_id": str(record.id), "expected_version": base_version},
            )
            raise ConcurrencyConflict(record.id, base_version)

        self.session.add(
            VerificationHistoryEntry(
                record_id=record.id,
                version=new_version,
                actor_id=actor_id,
                from_status=from_status.value,
                to_status=to_status.value,
                feedback=feedback,
                admin_override=admin_override,
                created_at=now,
            )
        )
        await self.session.flush()
        await self.session.refresh(record)
        return record
