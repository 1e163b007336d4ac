"""
Verifiable items - lookup of student artifacts by type tag.
"""

from reviewflow.kernel.items.item_store import (
    ITEM_MODELS,
    ItemRef,
    SqlItemStore,
    VerifiableItemStore,
)

__all__ = [
    "ITEM_MODELS",
    "ItemRef",
    "SqlItemStore",
    "VerifiableItemStore",
]
