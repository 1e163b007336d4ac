"""
User directory - read side of the identity collaborator.
"""

import uuid
from typing import Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.kernel.errors import NotFoundError
from reviewflow.kernel.models.user import User, UserRole


class UserDirectory:
    """Looks up users and their roles. Never mutates."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user(self, user_id: uuid.UUID) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def role_of(self, user_id: uuid.UUID) -> UserRole:
        """
        Return the role of an active user.

        Raises:
            NotFoundError: If the user does not exist or is deactivated
        """
        result = await self.session.execute(
            select(User.role).where(User.id == user_id, User.is_active.is_(True))
        )
        role = result.scalar_one_or_none()
        if role is None:
            raise NotFoundError("User not found", user_id=user_id)
        # Stored as plain string; normalise to the enum
        return UserRole(role)

    async def roles_of(self, user_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, UserRole]:
        ids = list(user_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(User.id, User.role).where(User.id.in_(ids), User.is_active.is_(True))
        )
        return {row.id: UserRole(row.role) for row in result.all()}
