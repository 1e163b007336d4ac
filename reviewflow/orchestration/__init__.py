"""Orchestration layer - verification ledger and the review workflow."""

from reviewflow.orchestration.ledger import VerificationLedger, next_status, valid_actions
from reviewflow.orchestration.notifications import (
    BackgroundNotifier,
    DecisionNotice,
    LoggingNotifier,
    Notifier,
)
from reviewflow.orchestration.workflow_engine import WorkflowEngine, WorkflowPolicy

__all__ = [
    "VerificationLedger",
    "next_status",
    "valid_actions",
    "BackgroundNotifier",
    "DecisionNotice",
    "LoggingNotifier",
    "Notifier",
    "WorkflowEngine",
    "WorkflowPolicy",
]
