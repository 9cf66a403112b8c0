"""
Reservation Committer

Applies a production plan or an order completion as one conditional,
all-or-nothing write through the ledger.
"""

import logging
import math
from typing import List

from core.exceptions import ValidationError
from db.inventory import FINISHED_GOOD, InventoryItem
from db.sales_order import COMPLETED, SalesOrder
from .ledger import Ledger, Mutation
from .types import AppliedMutation, CommitResult, DeductionPlan, OrderCompletionPlan

logger = logging.getLogger(__name__)

FINISHED_GOOD_UNIT_VALUE = 1.0
FINISHED_GOOD_UNIT_TYPE = "unit"


def production_mutations(plan: DeductionPlan) -> List[Mutation]:
    for entry in plan.deductions:
        if not math.isfinite(entry.new_stock_count) or entry.new_stock_count < 0:
            raise ValidationError(f"Plan would leave '{entry.item_name}' with negative or non-numeric stock")
    if not math.isfinite(plan.finished_good.new_stock_count) or plan.finished_good.new_stock_count < 0:
        raise ValidationError(f"Plan would leave '{plan.recipe_name}' with negative or non-numeric stock")

    mutations = [
        Mutation(InventoryItem, entry.item_id, entry.expected_version, {"stock_count": entry.new_stock_count})
        for entry in plan.deductions
    ]

    finished = plan.finished_good
    if finished.item_id is not None:
        mutations.append(
            Mutation(InventoryItem, finished.item_id, finished.expected_version, {"stock_count": finished.new_stock_count})
        )
    else:
        mutations.append(
            Mutation(
                InventoryItem,
                None,
                None,
                {
                    "name": finished.recipe_name,
                    "kind": FINISHED_GOOD,
                    "unit_value": FINISHED_GOOD_UNIT_VALUE,
                    "unit_type": FINISHED_GOOD_UNIT_TYPE,
                    "stock_count": finished.new_stock_count,
                },
            )
        )
    return mutations


def order_completion_mutations(plan: OrderCompletionPlan) -> List[Mutation]:
    if not math.isfinite(plan.new_stock_count) or plan.new_stock_count < 0:
        raise ValidationError(f"Completing the order would leave '{plan.product_name}' with negative or non-numeric stock")
    return [
        Mutation(InventoryItem, plan.item_id, plan.item_version, {"stock_count": plan.new_stock_count}),
        Mutation(SalesOrder, plan.order_id, plan.order_version, {"status": COMPLETED}),
    ]


def _result_from(applied: List[AppliedMutation]) -> CommitResult:
    result = CommitResult()
    for change in applied:
        result.versions[change.record_id] = change.version
        if "stock_count" in change.fields:
            result.stock_counts[change.record_id] = change.fields["stock_count"]
        if "status" in change.fields:
            result.order_id = change.record_id
            result.order_status = change.fields["status"]
        if change.created:
            result.created_item_ids.append(change.record_id)
    return result


async def commit_production(ledger: Ledger, plan: DeductionPlan) -> CommitResult:
    """Deduct raw materials and add the finished good, conditioned on the plan's versions."""
    applied = await ledger.apply_atomic(production_mutations(plan))
    logger.info(f"PRODUCTION_COMMIT: produced {plan.quantity} x '{plan.recipe_name}'")
    return _result_from(applied)


async def commit_order_completion(ledger: Ledger, plan: OrderCompletionPlan) -> CommitResult:
    applied = await ledger.apply_atomic(order_completion_mutations(plan))
    logger.info(
        f"ORDER_COMMIT: order {plan.order_id} completed, {plan.quantity} x '{plan.product_name}' deducted"
    )
    return _result_from(applied)


async def commit_mutations(ledger: Ledger, mutations: List[Mutation]) -> CommitResult:
    return _result_from(await ledger.apply_atomic(mutations))
