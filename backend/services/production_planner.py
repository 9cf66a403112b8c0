"""
Production Planner

Turns (recipe, quantity, inventory snapshot) into either a deduction plan or a
complete shortage report. Pure: reads only the snapshot it is given and never
touches the store.
"""

import logging
import math
from typing import Dict, List, Union
from uuid import UUID

from core.exceptions import ConversionError, IngredientNotFound, ValidationError
from core.units import convert
from db.inventory import FINISHED_GOOD, RAW_MATERIAL
from .types import (
    DeductionEntry,
    DeductionPlan,
    FinishedGoodIncrement,
    InventoryRecord,
    InventorySnapshot,
    RecipeRecord,
    Shortage,
    ShortageKind,
    ShortageReport,
)

logger = logging.getLogger(__name__)


def validate_production_request(recipe: RecipeRecord, quantity: float) -> None:
    if quantity is None or not math.isfinite(quantity) or quantity <= 0:
        raise ValidationError(f"Quantity to produce must be greater than zero (got {quantity})")
    if not recipe.ingredients:
        raise ValidationError(f"Recipe '{recipe.name}' has no ingredients")


def plan_production(
    recipe: RecipeRecord,
    quantity: float,
    snapshot: InventorySnapshot,
) -> Union[DeductionPlan, ShortageReport]:
    """
    Evaluate every ingredient of ``recipe`` scaled by ``quantity``.

    Each ingredient is matched case-insensitively to a raw material, converted
    into that item's unit and checked against its stock. Lines that share a raw
    material draw on the same stock in recipe order. Evaluation never stops at
    the first problem, so a shortage report lists everything that blocks
    production.
    """
    validate_production_request(recipe, quantity)

    shortages: List[Shortage] = []
    used: Dict[UUID, float] = {}
    matched: List[InventoryRecord] = []

    for line in recipe.ingredients:
        requested = line.quantity * quantity
        try:
            item = snapshot.require(line.name, RAW_MATERIAL)
        except IngredientNotFound:
            shortages.append(Shortage(
                kind=ShortageKind.MISSING_INGREDIENT,
                name=line.name,
                required=requested,
                available=0.0,
                unit=line.unit,
                message=f"'{line.name}' is not stocked as a raw material",
            ))
            continue

        try:
            required = convert(requested, line.unit, item.unit_type)
        except ConversionError as e:
            shortages.append(Shortage(
                kind=ShortageKind.UNIT_MISMATCH,
                name=line.name,
                required=requested,
                available=item.total_base_quantity,
                unit=line.unit,
                message=str(e),
            ))
            continue

        already_used = used.get(item.id, 0.0)
        available = item.total_base_quantity - already_used
        if required > available:
            shortages.append(Shortage(
                kind=ShortageKind.INSUFFICIENT_STOCK,
                name=line.name,
                required=required,
                available=available,
                unit=item.unit_type,
                message=f"Need {required} {item.unit_type} of '{line.name}', only {available} {item.unit_type} on hand",
            ))
            continue

        if item.id not in used:
            matched.append(item)
        used[item.id] = already_used + required

    if shortages:
        logger.info(
            f"PRODUCTION_PLAN: {quantity} x '{recipe.name}' blocked by {len(shortages)} shortage(s)"
        )
        return ShortageReport(subject=recipe.name, quantity=quantity, shortages=shortages)

    deductions = [
        DeductionEntry(
            item_id=item.id,
            item_name=item.name,
            expected_version=item.version,
            previous_stock_count=item.stock_count,
            # float subtraction can land a hair below zero after several lines
            new_stock_count=max((item.total_base_quantity - used[item.id]) / item.unit_value, 0.0),
            deducted_base_quantity=used[item.id],
            unit=item.unit_type,
        )
        for item in matched
    ]

    finished = snapshot.find(recipe.name, FINISHED_GOOD)
    increment = FinishedGoodIncrement(
        recipe_name=recipe.name,
        quantity=quantity,
        new_stock_count=(finished.stock_count if finished else 0.0) + quantity,
        item_id=finished.id if finished else None,
        expected_version=finished.version if finished else None,
    )

    logger.info(
        f"PRODUCTION_PLAN: {quantity} x '{recipe.name}' feasible, {len(deductions)} raw material(s) to deduct"
    )
    return DeductionPlan(
        recipe_id=recipe.id,
        recipe_name=recipe.name,
        quantity=quantity,
        deductions=deductions,
        finished_good=increment,
    )
