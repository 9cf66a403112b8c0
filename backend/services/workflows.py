"""
Inventory Workflows

Request/response entry points used by the HTTP layer. Each call takes a fresh
snapshot from the ledger; nothing here holds state between calls.

Conflicts are retried a bounded number of times by re-snapshotting and
re-planning. Validation errors and shortages are never retried.
"""

import logging
from typing import Awaitable, Callable, Optional, TypeVar, Union
from uuid import UUID

from core.config import settings
from core.exceptions import ConcurrentModification, ShortageError
from . import order_fulfillment
from .ledger import Ledger
from .production_planner import plan_production
from .reservation_committer import commit_production
from .types import CommitResult, DeductionPlan, OrderCompletionPlan, ShortageReport

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InventoryWorkflows:
    def __init__(self, ledger: Ledger, max_attempts: int = None):
        self._ledger = ledger
        self._max_attempts = max(1, max_attempts if max_attempts is not None else settings.commit_max_attempts)

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    async def _retry_on_conflict(self, attempt_fn: Callable[[int], Awaitable[T]], description: str) -> T:
        for attempt in range(1, self._max_attempts + 1):
            try:
                return await attempt_fn(attempt)
            except ConcurrentModification:
                if attempt == self._max_attempts:
                    logger.warning(f"COMMIT_RETRY: {description} gave up after {attempt} attempt(s)")
                    raise
                logger.warning(f"COMMIT_RETRY: {description} conflicted on attempt {attempt}, re-planning")

    # Production

    async def preview_production(self, recipe_id: UUID, quantity: float) -> Union[DeductionPlan, ShortageReport]:
        recipe = await self._ledger.get_recipe(recipe_id)
        snapshot = await self._ledger.inventory_snapshot()
        return plan_production(recipe, quantity, snapshot)

    async def _server_plan(self, recipe_id: UUID, quantity: float) -> DeductionPlan:
        planned = await self.preview_production(recipe_id, quantity)
        if isinstance(planned, ShortageReport):
            raise ShortageError(planned)
        return planned

    async def confirm_production(self, plan: DeductionPlan) -> CommitResult:
        """
        Single attempt. Only the recipe and quantity of ``plan`` are trusted:
        the plan is rebuilt from a fresh snapshot and committed, and a stale
        ``plan`` (any version token moved) raises ConcurrentModification.
        """
        fresh = await self._server_plan(plan.recipe_id, plan.quantity)
        if fresh.versions != plan.versions:
            raise ConcurrentModification(
                message=f"Inventory changed since '{plan.recipe_name}' was previewed; preview again"
            )
        return await commit_production(self._ledger, fresh)

    async def confirm_production_with_retry(self, plan: DeductionPlan) -> CommitResult:
        """Re-plans from the ledger on every attempt; a stale preview is re-planned, not rejected."""
        return await self._produce_with_retry(plan.recipe_id, plan.quantity, previewed=plan)

    async def produce(self, recipe_id: UUID, quantity: float) -> CommitResult:
        return await self._produce_with_retry(recipe_id, quantity)

    async def _produce_with_retry(
        self,
        recipe_id: UUID,
        quantity: float,
        previewed: Optional[DeductionPlan] = None,
    ) -> CommitResult:
        async def attempt(n: int) -> CommitResult:
            fresh = await self._server_plan(recipe_id, quantity)
            if n == 1 and previewed is not None and fresh.versions != previewed.versions:
                logger.info(f"COMMIT_RETRY: preview of '{fresh.recipe_name}' is stale, committing a fresh plan")
            return await commit_production(self._ledger, fresh)

        return await self._retry_on_conflict(attempt, f"production of {quantity} x recipe {recipe_id}")

    # Sales orders

    async def preview_order_completion(self, order_id: UUID) -> Union[OrderCompletionPlan, ShortageReport]:
        order = await self._ledger.get_order(order_id)
        catalog = await self._ledger.recipe_catalog()
        snapshot = await self._ledger.inventory_snapshot()
        return order_fulfillment.plan_order_completion(order, catalog, snapshot)

    async def confirm_order_completion(self, order_id: UUID) -> CommitResult:
        async def attempt(n: int) -> CommitResult:
            order = await self._ledger.get_order(order_id)
            catalog = await self._ledger.recipe_catalog()
            snapshot = await self._ledger.inventory_snapshot()
            result = await order_fulfillment.complete(self._ledger, order, catalog, snapshot)
            if isinstance(result, ShortageReport):
                raise ShortageError(result)
            return result

        return await self._retry_on_conflict(attempt, f"completion of order {order_id}")

    async def reopen_order(self, order_id: UUID) -> CommitResult:
        async def attempt(n: int) -> CommitResult:
            order = await self._ledger.get_order(order_id)
            return await order_fulfillment.reopen(self._ledger, order)

        return await self._retry_on_conflict(attempt, f"reopen of order {order_id}")
