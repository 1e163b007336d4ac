"""
Verifiable item store - the workflow's view of student artifacts.

The workflow treats items as opaque apart from (item_type, item_id, owner).
"""

import uuid
from dataclasses import dataclass
from typing import Dict, Protocol, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.kernel.errors import NotFoundError
from reviewflow.kernel.models.items import (
    Activity,
    CompetencyClaim,
    ProfileDocument,
    Qualification,
    StudentOwnedMixin,
    TeachingSession,
)
from reviewflow.kernel.models.verification import ItemType


ITEM_MODELS: Dict[ItemType, Type[StudentOwnedMixin]] = {
    ItemType.QUALIFICATION: Qualification,
    ItemType.SESSION: TeachingSession,
    ItemType.ACTIVITY: Activity,
    ItemType.COMPETENCY: CompetencyClaim,
    ItemType.PROFILE: ProfileDocument,
}


@dataclass(frozen=True)
class ItemRef:
    """The three fields of an item the workflow is allowed to see."""

    item_type: ItemType
    item_id: str
    owner_id: uuid.UUID


class VerifiableItemStore(Protocol):
    """Anything that can resolve an item to its owner."""

    async def lookup(self, item_type: ItemType, item_id: str) -> ItemRef:
        """Return the item reference, or raise NotFoundError."""
        ...


class SqlItemStore:
    """Item store backed by one table per artifact type."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def lookup(self, item_type: ItemType, item_id: str) -> ItemRef:
        model = ITEM_MODELS[ItemType(item_type)]
        result = await self.session.execute(
            select(model.student_id).where(model.id == item_id)
        )
        owner_id = result.scalar_one_or_none()
        if owner_id is None:
            raise NotFoundError(
                f"{ItemType(item_type).value} '{item_id}' not found",
                item_type=item_type,
                item_id=item_id,
            )
        return ItemRef(item_type=ItemType(item_type), item_id=item_id, owner_id=owner_id)
