"""
Decision notification hook.

Delivery (email, in-app messages) belongs to the messaging collaborator;
this module only defines the hook and two adapters.
"""

import uuid
from dataclasses import dataclass
from typing import Optional, Protocol

from fastapi import BackgroundTasks

from reviewflow.kernel.models.verification import VerificationRecord
from reviewflow.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DecisionNotice:
    """Detached snapshot of a decided record, safe to use after the session closes."""

    record_id: uuid.UUID
    item_type: str
    item_id: str
    owner_id: uuid.UUID
    status: str
    verifier_id: Optional[uuid.UUID]
    feedback: Optional[str]
    version: int

    @classmethod
    def from_record(cls, record: VerificationRecord) -> "DecisionNotice":
        return cls(
            record_id=record.id,
            item_type=str(getattr(record.item_type, "value", record.item_type)),
            item_id=record.item_id,
            owner_id=record.owner_id,
            status=str(getattr(record.status, "value", record.status)),
            verifier_id=record.verifier_id,
            feedback=record.feedback,
            version=record.version,
        )


class Notifier(Protocol):
    """Receives a notice after every successful decision. Fire-and-forget."""

    async def on_decision(self, notice: DecisionNotice) -> None:
        ...


class LoggingNotifier:
    """Default notifier: records the decision in the application log."""

    async def on_decision(self, notice: DecisionNotice) -> None:
        logger.info(
            "Decision notification",
            extra={
                "record_id": str(notice.record_id),
                "owner_id": str(notice.owner_id),
                "status": notice.status,
            },
        )


class BackgroundNotifier:
    """
    Defers another notifier until the HTTP response has been sent.

    The request's transaction has committed by then, so a rolled-back
    decision never produces a notification.
    """

    def __init__(self, background_tasks: BackgroundTasks, delegate: Optional[Notifier] = None):
        self.background_tasks = background_tasks
        self.delegate = delegate or LoggingNotifier()

    async def on_decision(self, notice: DecisionNotice) -> None:
        self.background_tasks.add_task(_deliver, self.delegate, notice)


async def _deliver(notifier: Notifier, notice: DecisionNotice) -> None:
    try:
        await notifier.on_decision(notice)
    except Exception:
        logger.exception(
            "Decision notification failed",
            extra={"record_id": str(notice.record_id)},
        )
