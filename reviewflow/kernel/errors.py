"""
Error taxonomy for the verification workflow.

Business-rule violations are expected outcomes: each carries the HTTP status
and stable machine code it translates to. InternalError is the only
retryable kind.
"""

import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from reviewflow.logging_config import get_logger

logger = get_logger(__name__)


class WorkflowError(Exception):
    """Base exception for all workflow errors."""

    status_code: int = 400
    code: str = "workflow_error"
    retryable: bool = False

    def __init__(self, message: str, **context: Any):
        """Initialize the exception.

        Args:
            message: Human-readable description, safe to show to the caller.
            **context: Structured fields for logs and the error body.
        """
        self.message = message
        self.context: Dict[str, Any] = context
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.context:
            body["context"] = {k: str(v) for k, v in self.context.items()}
        return body


class ValidationError(WorkflowError):
    """Raised for malformed input or self-assignment."""

    status_code = 422
    code = "validation_error"


class NotFoundError(WorkflowError):
    """Raised when an item, record or user does not exist."""

    status_code = 404
    code = "not_found"


class AuthorizationError(WorkflowError):
    """Raised when the actor lacks the role or assignment for an action."""

    status_code = 403
    code = "forbidden"


class AlreadyOpenError(WorkflowError):
    """Raised when an item is submitted a second time."""

    status_code = 409
    code = "already_open"

    def __init__(self, item_type: str, item_id: str, record_id: Optional[uuid.UUID] = None):
        """Initialize the exception.

        Args:
            item_type: Type tag of the item.
            item_id: ID of the item that already has a record.
            record_id: The existing record, when known.
        """
        super().__init__(
            f"{item_type} '{item_id}' has already been submitted for verification",
            item_type=item_type,
            item_id=item_id,
            **({"record_id": record_id} if record_id else {}),
        )


class InvalidTransitionError(WorkflowError):
    """Raised for a transition the state machine does not allow."""

    status_code = 409
    code = "invalid_transition"

    def __init__(self, from_status: str, action: str, record_id: Optional[uuid.UUID] = None):
        """Initialize the exception.

        Args:
            from_status: Current status of the record.
            action: The attempted action (approve, reject, resubmit).
            record_id: The record involved.
        """
        self.from_status = from_status
        self.action = action
        super().__init__(
            f"Cannot {action} a record that is {from_status}",
            from_status=from_status,
            action=action,
            **({"record_id": record_id} if record_id else {}),
        )


class ConcurrencyConflict(WorkflowError):
    """Raised when another actor changed the record first (version mismatch)."""

    status_code = 409
    code = "concurrency_conflict"

    def __init__(self, record_id: uuid.UUID, expected_version: int, actual_version: Optional[int] = None):
        """Initialize the exception.

        Args:
            record_id: The record that moved on.
            expected_version: Version the caller based its action on.
            actual_version: Stored version, when it could be read.
        """
        self.record_id = record_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        context: Dict[str, Any] = {"record_id": record_id, "expected_version": expected_version}
        if actual_version is not None:
            context["actual_version"] = actual_version
        super().__init__(
            "Someone else already reviewed this item. Refresh and retry.",
            **context,
        )


class InternalError(WorkflowError):
    """Raised when the backing store fails. Safe for the caller to retry."""

    status_code = 503
    code = "internal_error"
    retryable = True


@asynccontextmanager
async def storage_guard(operation: str) -> AsyncIterator[None]:
    """Surface any SQLAlchemy failure inside the block as InternalError (chained)."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(
            "Storage failure during %s",
            operation,
            exc_info=True,
            extra={"operation": operation},
        )
        raise InternalError(f"Storage failure during {operation}", operation=operation) from exc
