import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import List, Optional, TypeVar
from uuid import UUID

import structlog
from sqlalchemy import case, select, update
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from inventory_api.core.results import Failure, FailureKind, Ok, Result
from inventory_api.db.database import dialect_insert, is_transient
from inventory_api.db.inventory.item import Item
from inventory_api.db.inventory.record import QUANTITY_MAX, InventoryRecord
from inventory_api.services.catalog import InvalidItemError, ItemCatalog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ItemEntry:
    name: Optional[str]
    description: Optional[str] = None


@dataclass(frozen=True)
class InventoryEntry:
    item_id: UUID
    name: str
    quantity: int


class InventoryLedger:
    """Owns the inventory table: per-(user, item) quantities, never below zero.

    Every public operation is one transaction. Increments and subtractions are
    single SQL statements so concurrent requests cannot lose an update.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        catalog: ItemCatalog,
        timeout_seconds: float,
        max_attempts: int = 3,
    ):
        self._sessions = session_maker
        self._catalog = catalog
        self._timeout = timeout_seconds
        self._max_attempts = max_attempts

    async def _transact(self, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run `work` in one transaction, retrying only on transient contention."""
        attempt = 1
        while True:
            try:
                async with asyncio.timeout(self._timeout):
                    async with self._sessions() as db:
                        async with db.begin():
                            return await work(db)
            except DBAPIError as exc:
                if not is_transient(exc) or attempt >= self._max_attempts:
                    raise
                logger.warning("transaction_retry", attempt=attempt, error=str(exc.orig))
                attempt += 1

    async def _increment(self, db: AsyncSession, user_id: int, item_id: UUID) -> None:
        tbl = InventoryRecord.__table__
        insert = dialect_insert(db)
        stmt = (
            insert(tbl)
            .values(user_id=user_id, item_id=item_id, quantity=1)
            .on_conflict_do_update(
                index_elements=[tbl.c.user_id, tbl.c.item_id],
                set_={"quantity": tbl.c.quantity + 1},
            )
        )
        await db.execute(stmt)

    async def _add(self, db: AsyncSession, user_id: int, entry: ItemEntry) -> Item:
        item = await self._catalog.get_or_create(db, entry.name, entry.description)
        await self._increment(db, user_id, item.id)
        return item

    async def _inventory(self, db: AsyncSession, user_id: int) -> List[InventoryEntry]:
        res = await db.execute(
            select(InventoryRecord.item_id, Item.name, InventoryRecord.quantity)
            .join(Item, Item.id == InventoryRecord.item_id)
            .where(InventoryRecord.user_id == user_id)
            .order_by(Item.name.asc())
        )
        return [
            InventoryEntry(item_id=row.item_id, name=row.name, quantity=int(row.quantity))
            for row in res.all()
        ]

    async def add_single_item(
        self, user_id: int, name: Optional[str], description: Optional[str] = None
    ) -> Result[Item]:
        entry = ItemEntry(name=name, description=description)
        try:
            item = await self._transact(lambda db: self._add(db, user_id, entry))
        except InvalidItemError as exc:
            logger.info("item_rejected", user_id=user_id, item_name=exc.name, reason=str(exc))
            return Failure(FailureKind.BAD_REQUEST, str(exc))
        except (SQLAlchemyError, LookupError, TimeoutError):
            logger.exception("item_add_failed", user_id=user_id, item_name=entry.name)
            return Failure(FailureKind.INTERNAL, "item could not be added")
        return Ok(item)

    async def add_batch(self, user_id: int, entries: Sequence[ItemEntry]) -> Result[List[Item]]:
        """Add every entry or none of them.

        Entries are processed in order inside one transaction. The first entry
        that fails stops the loop and the whole transaction is rolled back.
        """
        current: Optional[str] = None

        async def work(db: AsyncSession) -> List[Item]:
            nonlocal current
            added = []
            for entry in entries:
                current = entry.name
                added.append(await self._add(db, user_id, entry))
            return added

        try:
            items = await self._transact(work)
        except InvalidItemError as exc:
            logger.info("batch_rejected", user_id=user_id, item_name=exc.name, reason=str(exc))
            return Failure(FailureKind.BAD_REQUEST, str(exc))
        except (SQLAlchemyError, LookupError, TimeoutError):
            logger.exception("batch_add_failed", user_id=user_id, item_name=current)
            return Failure(FailureKind.INTERNAL, "batch could not be added")

        logger.info("batch_added", user_id=user_id, count=len(items))
        return Ok(items)

    async def subtract_item(self, user_id: int, item_id: UUID, amount: int) -> Result[List[InventoryEntry]]:
        """Lower a held quantity, clamping at zero, and return the user's inventory.

        Subtracting an item the user has never held changes nothing.
        """
        if amount < 0:
            return Failure(FailureKind.BAD_REQUEST, "quantity must not be negative")
        # anything at or above the held quantity floors to zero
        amount = min(amount, QUANTITY_MAX)

        async def work(db: AsyncSession) -> List[InventoryEntry]:
            remaining = InventoryRecord.quantity - amount
            await db.execute(
                update(InventoryRecord)
                .where(InventoryRecord.user_id == user_id)
                .where(InventoryRecord.item_id == item_id)
                .values(quantity=case((remaining < 0, 0), else_=remaining))
                .execution_options(synchronize_session=False)
            )
            return await self._inventory(db, user_id)

        try:
            inventory = await self._transact(work)
        except (SQLAlchemyError, TimeoutError):
            logger.exception("item_subtract_failed", user_id=user_id, item_id=str(item_id))
            return Failure(FailureKind.INTERNAL, "item could not be subtracted")
        return Ok(inventory)

    async def get_user_inventory(self, user_id: int) -> Result[List[InventoryEntry]]:
        try:
            inventory = await self._transact(lambda db: self._inventory(db, user_id))
        except (SQLAlchemyError, TimeoutError):
            logger.exception("inventory_read_failed", user_id=user_id)
            return Failure(FailureKind.INTERNAL, "inventory could not be read")
        return Ok(inventory)
