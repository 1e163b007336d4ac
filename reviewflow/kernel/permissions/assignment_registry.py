"""
Assignment registry - mentor/student pairings and the review authorization rule.
"""

import uuid
from typing import List, Optional, Set

from sqlalchemy import and_, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.kernel.errors import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
    storage_guard,
)
from reviewflow.kernel.events.event_store import EventStore
from reviewflow.kernel.identity.user_directory import UserDirectory
from reviewflow.kernel.models.assignment import MentorAssignment
from reviewflow.kernel.models.event_log import EventType
from reviewflow.kernel.models.user import UserRole
from reviewflow.logging_config import get_logger

logger = get_logger(__name__)


class AssignmentRegistry:
    """
    Holds the mentor<->student relationship.

    A student may have any number of mentors and a mentor any number of
    students; a user is never assigned to themselves. Storage failures
    surface as InternalError.
    """

    def __init__(self, session: AsyncSession, directory: Optional[UserDirectory] = None):
        self.session = session
        self.directory = directory or UserDirectory(session)
        self.event_store = EventStore(session)

    async def assign(
        self,
        mentor_id: uuid.UUID,
        student_id: uuid.UUID,
        assigned_by: Optional[uuid.UUID] = None,
        notes: Optional[str] = None,
    ) -> MentorAssignment:
        """
        Create the pair if absent. Idempotent, also under concurrent calls.

        An existing pair is returned as-is, except that non-empty `notes`
        replace the stored notes.

        Raises:
            ValidationError: Self-assignment, or either user has the wrong role
            NotFoundError: Either user does not exist
        """
        if mentor_id == student_id:
            raise ValidationError("A user cannot be assigned to themselves", user_id=mentor_id)

        async with storage_guard("assign"):
            await self._check_roles(mentor_id, student_id)

            existing = await self._get(mentor_id, student_id)
            if existing:
                return self._touch(existing, notes)

            assignment = MentorAssignment(
                mentor_id=mentor_id,
                student_id=student_id,
                assigned_by=assigned_by,
                notes=notes,
            )
            try:
                async with self.session.begin_nested():
                    self.session.add(assignment)
            except IntegrityError:
                # Another admin created the same pair first
                existing = await self._get(mentor_id, student_id)
                if existing is None:
                    raise
                logger.info(
                    "Concurrent assign resolved to existing pair",
                    extra={"mentor_id": str(mentor_id), "student_id": str(student_id)},
                )
                return self._touch(existing, notes)

            await self.event_store.log(
                event_type=EventType.ASSIGNMENT_CREATED,
                entity_type="assignment",
                entity_id=assignment.id,
                user_id=assigned_by,
                payload={"mentor_id": mentor_id, "student_id": student_id},
            )
        logger.info(
            "Mentor assigned",
            extra={"mentor_id": str(mentor_id), "student_id": str(student_id)},
        )
        return assignment

    async def unassign(
        self,
        mentor_id: uuid.UUID,
        student_id: uuid.UUID,
        removed_by: Optional[uuid.UUID] = None,
    ) -> bool:
        """
        Remove the pair. Records already decided by the mentor are untouched.

        Returns:
            True if a pair was removed
        """
        async with storage_guard("unassign"):
            existing = await self._get(mentor_id, student_id)
            if not existing:
                return False

            await self.session.execute(
                delete(MentorAssignment).where(MentorAssignment.id == existing.id)
            )
            await self.event_store.log(
                event_type=EventType.ASSIGNMENT_REMOVED,
                entity_type="assignment",
                entity_id=existing.id,
                user_id=removed_by,
                payload={"mentor_id": mentor_id, "student_id": student_id},
            )
        logger.info(
            "Mentor unassigned",
            extra={"mentor_id": str(mentor_id), "student_id": str(student_id)},
        )
        return True

    async def reassign(
        self,
        student_id: uuid.UUID,
        from_mentor_id: uuid.UUID,
        to_mentor_id: uuid.UUID,
        assigned_by: Optional[uuid.UUID] = None,
    ) -> MentorAssignment:
        """Move a student from one mentor to another in the caller's transaction."""
        if from_mentor_id == to_mentor_id:
            raise ValidationError("Student is already assigned to this mentor", mentor_id=to_mentor_id)
        if not await self.is_assigned(from_mentor_id, student_id):
            raise NotFoundError(
                "Assignment not found",
                mentor_id=from_mentor_id,
                student_id=student_id,
            )
        assignment = await self.assign(to_mentor_id, student_id, assigned_by=assigned_by)
        await self.unassign(from_mentor_id, student_id, removed_by=assigned_by)
        return assignment

    async def is_assigned(self, mentor_id: uuid.UUID, student_id: uuid.UUID) -> bool:
        async with storage_guard("is_assigned"):
            return await self._get(mentor_id, student_id) is not None

    async def students_of(self, mentor_id: uuid.UUID) -> Set[uuid.UUID]:
        async with storage_guard("students_of"):
            result = await self.session.execute(
                select(MentorAssignment.student_id).where(MentorAssignment.mentor_id == mentor_id)
            )
            return set(result.scalars().all())

    async def mentors_of(self, student_id: uuid.UUID) -> Set[uuid.UUID]:
        async with storage_guard("mentors_of"):
            result = await self.session.execute(
                select(MentorAssignment.mentor_id).where(MentorAssignment.student_id == student_id)
            )
            return set(result.scalars().all())

    async def list_assignments(self) -> List[MentorAssignment]:
        async with storage_guard("list_assignments"):
            result = await self.session.execute(
                select(MentorAssignment).order_by(
                    MentorAssignment.mentor_id,
                    MentorAssignment.student_id,
                )
            )
            return list(result.scalars().all())

    async def authorize_review(self, actor_id: uuid.UUID, owner_id: uuid.UUID) -> UserRole:
        """
        Check that `actor_id` may decide on items owned by `owner_id`.

        Admins may review anyone; mentors only their assigned students.

        Returns:
            The actor's role

        Raises:
            AuthorizationError: Otherwise, including unknown actors
        """
        async with storage_guard("authorize_review"):
            try:
                role = await self.directory.role_of(actor_id)
            except NotFoundError:
                raise AuthorizationError("Unknown reviewer", actor_id=actor_id) from None

            if role == UserRole.ADMIN:
                return role
            if role == UserRole.MENTOR and await self.is_assigned(actor_id, owner_id):
                return role

        logger.warning(
            "Review denied",
            extra={"actor_id": str(actor_id), "owner_id": str(owner_id), "role": role.value},
        )
        if role == UserRole.MENTOR:
            raise AuthorizationError(
                "You are not assigned to this student",
                actor_id=actor_id,
                owner_id=owner_id,
            )
        raise AuthorizationError("Only mentors and admins can review items", actor_id=actor_id)

    async def _check_roles(self, mentor_id: uuid.UUID, student_id: uuid.UUID) -> None:
        roles = await self.directory.roles_of([mentor_id, student_id])
        for user_id in (mentor_id, student_id):
            if user_id not in roles:
                raise NotFoundError("User not found", user_id=user_id)
        if roles[mentor_id] != UserRole.MENTOR:
            raise ValidationError(
                "Assigned reviewer must have the mentor role",
                user_id=mentor_id,
                role=roles[mentor_id].value,
            )
        if roles[student_id] != UserRole.STUDENT:
            raise ValidationError(
                "Assigned user must have the student role",
                user_id=student_id,
                role=roles[student_id].value,
            )

    @staticmethod
    def _touch(existing: MentorAssignment, notes: Optional[str]) -> MentorAssignment:
        if notes:
            existing.notes = notes
        return existing

    async def _get(self, mentor_id: uuid.UUID, student_id: uuid.UUID) -> Optional[MentorAssignment]:
        result = await self.session.execute(
            select(MentorAssignment).where(
                and_(
                    MentorAssignment.mentor_id == mentor_id,
                    MentorAssignment.student_id == student_id,
                )
            )
        )
        return result.scalar_one_or_none()
