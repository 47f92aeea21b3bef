import uuid
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.db.database import dialect_insert
from inventory_api.db.inventory.item import ITEM_DESCRIPTION_MAX_LENGTH, ITEM_NAME_MAX_LENGTH, Item

logger = structlog.get_logger(__name__)


class InvalidItemError(ValueError):
    def __init__(self, name: str, message: str):
        super().__init__(message)
        self.name = name


def normalize_item(name: Optional[str], description: Optional[str]) -> tuple[str, Optional[str]]:
    name = (name or "").strip()
    if not name:
        raise InvalidItemError(name, "item name is required")
    if len(name) > ITEM_NAME_MAX_LENGTH:
        raise InvalidItemError(name, f"item name must be at most {ITEM_NAME_MAX_LENGTH} characters")
    description = (description or "").strip() or None
    if description and len(description) > ITEM_DESCRIPTION_MAX_LENGTH:
        raise InvalidItemError(name, f"description must be at most {ITEM_DESCRIPTION_MAX_LENGTH} characters")
    return name, description


class ItemCatalog:
    """Owns the items table. Items are deduplicated by exact name."""

    async def find_by_name(self, db: AsyncSession, name: str) -> Optional[Item]:
        res = await db.execute(select(Item).where(Item.name == name))
        return res.scalar_one_or_none()

    async def get_or_create(self, db: AsyncSession, name: str, description: Optional[str] = None) -> Item:
        """Return the item called `name`, creating it on first reference.

        Runs inside the caller's transaction. The insert yields to the unique
        index on name, so two callers racing on a new name both end up with the
        row that won.
        """
        name, description = normalize_item(name, description)

        item = await self.find_by_name(db, name)
        if item is not None:
            return item

        insert = dialect_insert(db)
        stmt = (
            insert(Item.__table__)
            .values(id=uuid.uuid4(), name=name, description=description)
            .on_conflict_do_nothing(index_elements=[Item.__table__.c.name])
        )
        res = await db.execute(stmt)
        if res.rowcount:
            logger.info("item_created", item_name=name)

        item = await self.find_by_name(db, name)
        if item is None:
            # Only reachable if the winning row vanished between the two statements
            raise LookupError(f"item {name!r} could not be created")
        return item
