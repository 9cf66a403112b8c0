import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

"""
Seed demo data (raw materials, recipes, one pending sales order).

Safe to re-run: items and recipes are matched by normalized name and only
missing ones are created.

This script can be run from either:
- backend/: `python scripts/seed_demo_data.py`
- repo root: `python backend/scripts/seed_demo_data.py`
"""

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import func, select

from core.config import settings
from core.logging_config import configure_logging
from db.database import async_session_maker, create_db_and_tables
from db.inventory import RAW_MATERIAL, InventoryItem, normalize_name
from db.recipe import Recipe, RecipeIngredient
from db.sales_order import PENDING, SalesOrder

logger = logging.getLogger(__name__)


# name, unit_value, unit_type, stock_count
RAW_MATERIALS = [
    ("Flour", 1, "kg", 5),
    ("Sugar", 1000, "g", 3),
    ("Butter", 250, "g", 8),
    ("Eggs", 1, "unit", 24),
    ("Milk", 1, "lt", 4),
    ("Vanilla extract", 100, "ml", 2),
]

# name, product_type, [(ingredient, quantity, unit)]
RECIPES = [
    ("Butter Cookies", "cookie", [
        ("Flour", 250, "g"),
        ("Sugar", 100, "g"),
        ("Butter", 125, "g"),
        ("Eggs", 1, "unit"),
        ("Vanilla extract", 5, "ml"),
    ]),
    ("Vanilla Cake", "cake", [
        ("Flour", 300, "g"),
        ("Sugar", 200, "g"),
        ("Butter", 200, "g"),
        ("Eggs", 4, "unit"),
        ("Milk", 240, "ml"),
        ("Vanilla extract", 10, "cc"),
    ]),
]

DEMO_CUSTOMER = "Demo customer"


async def get_or_create_raw_material(session, name: str, unit_value: float, unit_type: str, stock_count: float):
    result = await session.execute(
        select(InventoryItem).where(
            InventoryItem.kind == RAW_MATERIAL,
            InventoryItem.normalized_name == normalize_name(name),
        )
    )
    item = result.scalar_one_or_none()
    if item:
        return item, False

    item = InventoryItem(
        kind=RAW_MATERIAL,
        name=name,
        unit_value=unit_value,
        unit_type=unit_type,
        stock_count=stock_count,
    )
    session.add(item)
    await session.flush()
    return item, True


async def get_or_create_recipe(session, name: str, product_type: str, ingredients):
    result = await session.execute(select(Recipe).where(func.lower(Recipe.name) == name.lower()))
    recipe = result.scalars().first()
    if recipe:
        return recipe, False

    recipe = Recipe(
        name=name,
        product_type=product_type,
        ingredients=[
            RecipeIngredient(position=idx, ingredient_name=ing, quantity=qty, unit=unit)
            for idx, (ing, qty, unit) in enumerate(ingredients)
        ],
    )
    session.add(recipe)
    await session.flush()
    return recipe, True


async def seed(session) -> dict:
    """Create whatever demo records are missing; returns how many of each were added."""
    created = {"raw_materials": 0, "recipes": 0, "sales_orders": 0}

    for name, unit_value, unit_type, stock_count in RAW_MATERIALS:
        _, is_new = await get_or_create_raw_material(session, name, unit_value, unit_type, stock_count)
        created["raw_materials"] += int(is_new)

    recipes = {}
    for name, product_type, ingredients in RECIPES:
        recipe, is_new = await get_or_create_recipe(session, name, product_type, ingredients)
        recipes[name] = recipe
        created["recipes"] += int(is_new)

    cookies = recipes["Butter Cookies"]
    existing = await session.execute(
        select(SalesOrder).where(SalesOrder.customer_name == DEMO_CUSTOMER, SalesOrder.recipe_id == cookies.id)
    )
    if existing.scalars().first() is None:
        session.add(SalesOrder(
            customer_name=DEMO_CUSTOMER,
            recipe_id=cookies.id,
            product_type=cookies.product_type,
            product_description="",
            quantity=2,
            order_date=date.today(),
            status=PENDING,
        ))
        created["sales_orders"] += 1

    await session.commit()
    return created


async def main():
    configure_logging(settings.log_level)
    await create_db_and_tables()
    async with async_session_maker() as session:
        created = await seed(session)
    logger.info(
        f"SEED: added {created['raw_materials']} raw material(s), "
        f"{created['recipes']} recipe(s), {created['sales_orders']} sales order(s)"
    )


if __name__ == "__main__":
    asyncio.run(main())
