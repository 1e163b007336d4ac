"""
Audit event log - append-only record of workflow mutations.
"""

from reviewflow.kernel.events.event_store import EventStore

__all__ = [
    "EventStore",
]
