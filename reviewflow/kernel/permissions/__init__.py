"""
Permission Core - mentor assignments and the review authorization rule.
"""

from reviewflow.kernel.permissions.assignment_registry import AssignmentRegistry

__all__ = [
    "AssignmentRegistry",
]
