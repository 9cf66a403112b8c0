"""
Order Fulfillment

Sales-order counterpart of production planning: completing a pending order
deducts its quantity from the matching finished good; reopening a completed
order only flips its status back.
"""

import logging
from typing import Union

from core.exceptions import ValidationError
from db.inventory import FINISHED_GOOD
from db.sales_order import COMPLETED, PENDING, SalesOrder
from .ledger import Ledger, Mutation
from .reservation_committer import commit_mutations, commit_order_completion
from .types import (
    CommitResult,
    InventorySnapshot,
    OrderCompletionPlan,
    RecipeCatalog,
    SalesOrderRecord,
    Shortage,
    ShortageKind,
    ShortageReport,
)

logger = logging.getLogger(__name__)


def resolve_product_name(order: SalesOrderRecord, catalog: RecipeCatalog) -> str:
    """Linked recipe name when the recipe still exists, else the free-text description."""
    recipe = catalog.get(order.recipe_id)
    if recipe is not None:
        return recipe.name
    return order.product_description or ""


def plan_order_completion(
    order: SalesOrderRecord,
    catalog: RecipeCatalog,
    snapshot: InventorySnapshot,
) -> Union[OrderCompletionPlan, ShortageReport]:
    if order.status != PENDING:
        raise ValidationError(f"Sales order {order.id} is {order.status}; only PENDING orders can be completed")
    if order.quantity <= 0:
        raise ValidationError(f"Sales order {order.id} has a non-positive quantity ({order.quantity})")

    product_name = resolve_product_name(order, catalog)
    if not product_name.strip():
        raise ValidationError(f"Sales order {order.id} names no product to deduct")

    item = snapshot.require(product_name, FINISHED_GOOD)

    if item.stock_count < order.quantity:
        logger.info(
            f"ORDER_PLAN: order {order.id} needs {order.quantity} x '{item.name}', only {item.stock_count} in stock"
        )
        return ShortageReport(
            subject=product_name,
            quantity=order.quantity,
            shortages=[Shortage(
                kind=ShortageKind.INSUFFICIENT_FINISHED_GOOD,
                name=item.name,
                required=float(order.quantity),
                available=item.stock_count,
                unit=item.unit_type,
                message=f"Only {item.stock_count} {item.unit_type} of '{item.name}' in stock, order needs {order.quantity}",
            )],
        )

    return OrderCompletionPlan(
        order_id=order.id,
        order_version=order.version,
        product_name=product_name,
        quantity=order.quantity,
        item_id=item.id,
        item_version=item.version,
        previous_stock_count=item.stock_count,
        new_stock_count=item.stock_count - order.quantity,
    )


async def complete(
    ledger: Ledger,
    order: SalesOrderRecord,
    catalog: RecipeCatalog,
    snapshot: InventorySnapshot,
) -> Union[CommitResult, ShortageReport]:
    plan = plan_order_completion(order, catalog, snapshot)
    if isinstance(plan, ShortageReport):
        return plan
    return await commit_order_completion(ledger, plan)


def reopen_mutation(order: SalesOrderRecord) -> Mutation:
    if order.status != COMPLETED:
        raise ValidationError(f"Sales order {order.id} is {order.status}; only COMPLETED orders can be reopened")
    return Mutation(SalesOrder, order.id, order.version, {"status": PENDING})


async def reopen(ledger: Ledger, order: SalesOrderRecord) -> CommitResult:
    """Set the order back to PENDING. Deducted stock is not restored."""
    result = await commit_mutations(ledger, [reopen_mutation(order)])
    logger.info(f"ORDER_COMMIT: order {order.id} reopened; finished-good stock left unchanged")
    return result
