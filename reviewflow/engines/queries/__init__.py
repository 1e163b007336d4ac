"""
Query Engine - read-only review queues and pending counts.
"""

from reviewflow.engines.queries.query_service import (
    Page,
    PendingScope,
    QueryService,
    RecordFilter,
)

__all__ = [
    "Page",
    "PendingScope",
    "QueryService",
    "RecordFilter",
]
