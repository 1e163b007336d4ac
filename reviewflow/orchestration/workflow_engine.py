"""
Workflow engine - the entry point for submit / decide / resubmit.

Orchestrates the item store, the assignment registry and the ledger:
authorization is always checked before the ledger is touched, every
successful transition is written to the audit log, and storage failures
surface as InternalError.
"""

import uuid
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.kernel.errors import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
    storage_guard,
)
from reviewflow.kernel.events.event_store import EventStore
from reviewflow.kernel.items.item_store import ItemRef, SqlItemStore, VerifiableItemStore
from reviewflow.kernel.models.event_log import EventType
from reviewflow.kernel.models.user import UserRole
from reviewflow.kernel.models.verification import (
    Decision,
    ItemType,
    VerificationHistoryEntry,
    VerificationRecord,
)
from reviewflow.kernel.permissions.assignment_registry import AssignmentRegistry
from reviewflow.logging_config import get_logger
from reviewflow.orchestration.ledger import VerificationLedger
from reviewflow.orchestration.notifications import DecisionNotice, LoggingNotifier, Notifier

logger = get_logger(__name__)

ENTITY_TYPE = "verification_record"


@dataclass(frozen=True)
class WorkflowPolicy:
    """Product rules that vary per deployment."""

    require_feedback_on_reject: bool = False


class WorkflowEngine:
    """
    Service for moving verifiable items through review.

    Usage:
        engine = WorkflowEngine(session)
        record = await engine.submit(student.id, ItemType.QUALIFICATION, "Q123")
        record = await engine.decide(mentor.id, ItemType.QUALIFICATION, "Q123", approve=True)
    """

    def __init__(
        self,
        session: AsyncSession,
        item_store: Optional[VerifiableItemStore] = None,
        registry: Optional[AssignmentRegistry] = None,
        ledger: Optional[VerificationLedger] = None,
        notifier: Optional[Notifier] = None,
        policy: Optional[WorkflowPolicy] = None,
    ):
        self.session = session
        self.item_store = item_store or SqlItemStore(session)
        self.registry = registry or AssignmentRegistry(session)
        self.ledger = ledger or VerificationLedger(session)
        self.notifier = notifier or LoggingNotifier()
        self.policy = policy or WorkflowPolicy()
        self.event_store = EventStore(session)

    async def submit(
        self,
        owner_id: uuid.UUID,
        item_type: ItemType,
        item_id: str,
    ) -> VerificationRecord:
        """
        Open a pending verification record for an item.

        Raises:
            NotFoundError: The item does not exist
            AuthorizationError: The item belongs to someone else
            AlreadyOpenError: The item already has a record
        """
        async with storage_guard("submit"):
            item = await self._lookup(item_type, item_id)
            if item.owner_id != owner_id:
                logger.warning(
                    "Submit denied: not the owner",
                    extra={"actor_id": str(owner_id), "item_id": item_id},
                )
                raise AuthorizationError(
                    "Only the owner of an item can submit it",
                    item_type=item.item_type.value,
                    item_id=item_id,
                )

            record = await self.ledger.open(item.item_type, item.item_id, item.owner_id, actor_id=owner_id)
            await self._audit(EventType.VERIFICATION_SUBMITTED, record, owner_id)

        logger.info(
            "Item submitted for verification",
            extra={"record_id": str(record.id), "item_type": item.item_type.value, "item_id": item_id},
        )
        return record

    async def decide(
        self,
        actor_id: uuid.UUID,
        item_type: ItemType,
        item_id: str,
        approve: bool,
        feedback: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> VerificationRecord:
        """
        Approve or reject a submitted item.

        The actor must be an admin, or a mentor assigned to the item's owner.
        ConcurrencyConflict from the ledger is re-raised unchanged; the
        caller decides whether to refresh and retry.

        Raises:
            NotFoundError: Unknown item, or item never submitted
            AuthorizationError: Actor may not review this owner's items
            ValidationError: Missing feedback when the policy requires it
            InvalidTransitionError: Record is not pending
            ConcurrencyConflict: Another reviewer decided first
        """
        decision = Decision.APPROVE if approve else Decision.REJECT
        feedback = _clean(feedback)

        async with storage_guard("decide"):
            item = await self._lookup(item_type, item_id)
            role = await self.registry.authorize_review(actor_id, item.owner_id)
            if decision is Decision.REJECT and self.policy.require_feedback_on_reject and not feedback:
                raise ValidationError("Feedback is required when rejecting an item")
            record = await self._require_record(item)

            record = await self.ledger.decide(
                record.id,
                actor_id,
                decision,
                feedback=feedback,
                expected_version=expected_version,
                admin_override=role == UserRole.ADMIN,
            )
            event_type = (
                EventType.VERIFICATION_APPROVED
                if decision is Decision.APPROVE
                else EventType.VERIFICATION_REJECTED
            )
            await self._audit(event_type, record, actor_id, feedback=feedback, role=role)

        logger.info(
            "Verification decided",
            extra={
                "record_id": str(record.id),
                "decision": decision.value,
                "version": record.version,
            },
        )
        await self._notify(record)
        return record

    async def resubmit(
        self,
        actor_id: uuid.UUID,
        item_type: ItemType,
        item_id: str,
        expected_version: Optional[int] = None,
    ) -> VerificationRecord:
        """
        Put a rejected item back into the review queue.

        Raises:
            NotFoundError: Unknown item, or item never submitted
            AuthorizationError: Actor is not the item's owner
            InvalidTransitionError: Record is pending or verified
            ConcurrencyConflict: The record changed since `expected_version`
        """
        async with storage_guard("resubmit"):
            item = await self._lookup(item_type, item_id)
            if actor_id != item.owner_id:
                logger.warning(
                    "Resubmit denied: not the owner",
                    extra={"actor_id": str(actor_id), "item_id": item_id},
                )
                raise AuthorizationError(
                    "Only the student who owns this item can resubmit it",
                    item_type=item.item_type.value,
                    item_id=item_id,
                )
            record = await self._require_record(item)
            record = await self.ledger.resubmit(record.id, actor_id, expected_version=expected_version)
            await self._audit(EventType.VERIFICATION_RESUBMITTED, record, actor_id)

        logger.info(
            "Item resubmitted for verification",
            extra={"record_id": str(record.id), "version": record.version},
        )
        return record

    async def get_record(
        self,
        actor_id: uuid.UUID,
        item_type: ItemType,
        item_id: str,
    ) -> Tuple[VerificationRecord, List[VerificationHistoryEntry]]:
        """
        Record and full history, for the owner, an assigned mentor or an admin.
        """
        async with storage_guard("get_record"):
            item = await self._lookup(item_type, item_id)
            if actor_id != item.owner_id:
                await self.registry.authorize_review(actor_id, item.owner_id)
            record = await self._require_record(item)
            history = await self.ledger.history(record.id)
        return record, history

    async def _lookup(self, item_type: ItemType, item_id: str) -> ItemRef:
        return await self.item_store.lookup(ItemType(item_type), item_id)

    async def _require_record(self, item: ItemRef) -> VerificationRecord:
        record = await self.ledger.get(item.item_type, item.item_id)
        if record is None:
            raise NotFoundError(
                "Item has not been submitted for verification",
                item_type=item.item_type.value,
                item_id=item.item_id,
            )
        return record

    async def _audit(
        self,
        event_type: EventType,
        record: VerificationRecord,
        actor_id: uuid.UUID,
        **extra,
    ) -> None:
        await self.event_store.log(
            event_type=event_type,
            entity_type=ENTITY_TYPE,
            entity_id=record.id,
            user_id=actor_id,
            payload={
                "item_type": record.item_type,
                "item_id": record.item_id,
                "owner_id": record.owner_id,
                "status": record.status,
                "version": record.version,
                **{k: v for k, v in extra.items() if v is not None},
            },
        )

    async def _notify(self, record: VerificationRecord) -> None:
        notice = DecisionNotice.from_record(record)
        try:
            await self.notifier.on_decision(notice)
        except Exception:
            # The decision already stands; a broken hook must not undo it
            logger.exception("Decision hook failed", extra={"record_id": str(record.id)})


def _clean(feedback: Optional[str]) -> Optional[str]:
    if feedback is None:
        return None
    feedback = feedback.strip()
    return feedback or None
