"""
Inventory Ledger

SQLAlchemy adapter exposing the three stores to the engine: read-only
snapshots of inventory, recipes and sales orders, and ``apply_atomic`` for
conditional multi-record writes.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.orm import selectinload

from core.exceptions import ConcurrentModification, PersistenceError, RecipeNotFound, SalesOrderNotFound
from db.database import async_session_maker
from db.inventory import NAME_INDEX, InventoryItem
from db.recipe import Recipe
from db.sales_order import SalesOrder
from .types import (
    AppliedMutation,
    InventoryRecord,
    InventorySnapshot,
    RecipeCatalog,
    RecipeRecord,
    SalesOrderRecord,
)

logger = logging.getLogger(__name__)


def _is_name_collision(error: IntegrityError) -> bool:
    # postgres reports the constraint name, sqlite the constrained columns
    message = str(error.orig)
    return NAME_INDEX in message or "inventory_items.kind, inventory_items.normalized_name" in message


@dataclass(frozen=True)
class Mutation:
    """Conditional write of ``new_fields``; ``record_id=None`` inserts a new row."""
    model: type
    record_id: Optional[UUID]
    expected_version: Optional[int]
    new_fields: Dict[str, Any]

    @property
    def is_insert(self) -> bool:
        return self.record_id is None


class Ledger:
    def __init__(self, session_maker: async_sessionmaker):
        self._session_maker = session_maker

    async def inventory_snapshot(self) -> InventorySnapshot:
        try:
            async with self._session_maker() as session:
                res = await session.execute(
                    select(InventoryItem).order_by(InventoryItem.created_at.asc(), InventoryItem.id.asc())
                )
                return InventorySnapshot(InventoryRecord.from_model(it) for it in res.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"LEDGER: inventory snapshot failed: {e}")
            raise PersistenceError(f"Failed to read inventory: {e}") from e

    async def recipe_catalog(self) -> RecipeCatalog:
        try:
            async with self._session_maker() as session:
                res = await session.execute(
                    select(Recipe).options(selectinload(Recipe.ingredients)).order_by(Recipe.created_at.asc())
                )
                return RecipeCatalog(RecipeRecord.from_model(r) for r in res.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"LEDGER: recipe catalog read failed: {e}")
            raise PersistenceError(f"Failed to read recipes: {e}") from e

    async def get_recipe(self, recipe_id: UUID) -> RecipeRecord:
        try:
            async with self._session_maker() as session:
                res = await session.execute(
                    select(Recipe).options(selectinload(Recipe.ingredients)).where(Recipe.id == recipe_id)
                )
                recipe = res.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"LEDGER: recipe {recipe_id} read failed: {e}")
            raise PersistenceError(f"Failed to read recipe: {e}") from e
        if recipe is None:
            raise RecipeNotFound(recipe_id)
        return RecipeRecord.from_model(recipe)

    async def get_order(self, order_id: UUID) -> SalesOrderRecord:
        try:
            async with self._session_maker() as session:
                res = await session.execute(select(SalesOrder).where(SalesOrder.id == order_id))
                order = res.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"LEDGER: sales order {order_id} read failed: {e}")
            raise PersistenceError(f"Failed to read sales order: {e}") from e
        if order is None:
            raise SalesOrderNotFound(order_id)
        return SalesOrderRecord.from_model(order)

    async def apply_atomic(self, mutations: Sequence[Mutation]) -> List[AppliedMutation]:
        """
        Apply every mutation in one transaction or none of them.

        Raises:
            ConcurrentModification: a record's version moved (or the record is
                gone), or an insert collided with the normalized-name index
            PersistenceError: any other store failure
        """
        applied: List[AppliedMutation] = []
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    for mutation in mutations:
                        if mutation.is_insert:
                            applied.append(await self._insert(session, mutation))
                        else:
                            applied.append(await self._conditional_update(session, mutation))
        except ConcurrentModification as e:
            logger.warning(f"LEDGER: commit rejected, nothing applied: {e}")
            raise
        except SQLAlchemyError as e:
            logger.error(f"LEDGER: commit failed: {e}", exc_info=True)
            raise PersistenceError(f"Failed to commit inventory changes: {e}") from e

        logger.info(f"LEDGER: applied {len(applied)} mutation(s) atomically")
        return applied

    @staticmethod
    async def _insert(session, mutation: Mutation) -> AppliedMutation:
        record = mutation.model(**mutation.new_fields)
        session.add(record)
        try:
            await session.flush()
        except IntegrityError as e:
            if not _is_name_collision(e):
                logger.error(f"LEDGER: insert of {mutation.model.__name__} violated a constraint: {e.orig}")
                raise PersistenceError(f"Failed to create {mutation.model.__name__}: {e.orig}") from e
            raise ConcurrentModification(
                message=f"{mutation.model.__name__} '{mutation.new_fields.get('name')}' was created concurrently"
            ) from e
        return AppliedMutation(record_id=record.id, version=record.version, fields=dict(mutation.new_fields), created=True)

    @staticmethod
    async def _conditional_update(session, mutation: Mutation) -> AppliedMutation:
        model = mutation.model
        stmt = (
            update(model)
            .where(model.id == mutation.record_id)
            .where(model.version == mutation.expected_version)
            .values(**mutation.new_fields, version=model.version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        if result.rowcount != 1:
            raise ConcurrentModification(mutation.record_id)
        return AppliedMutation(
            record_id=mutation.record_id,
            version=mutation.expected_version + 1,
            fields=dict(mutation.new_fields),
        )


def get_ledger() -> Ledger:
    return Ledger(async_session_maker)
