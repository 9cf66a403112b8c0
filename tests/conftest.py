import os
from datetime import date

# must be set before db.database builds the module-level engine
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from db.database import create_db_and_tables, get_async_session
from db.inventory import FINISHED_GOOD, RAW_MATERIAL, InventoryItem
from db.recipe import Recipe, RecipeIngredient
from db.sales_order import PENDING, SalesOrder
from main import app
from services.ledger import Ledger, get_ledger


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'mrp.db'}")
    await create_db_and_tables(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest.fixture
def ledger(session_maker):
    return Ledger(session_maker)


@pytest.fixture
async def client(session_maker, ledger):
    async def override_get_async_session():
        async with session_maker() as s:
            yield s

    app.dependency_overrides[get_async_session] = override_get_async_session
    app.dependency_overrides[get_ledger] = lambda: ledger
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_item(session_maker):
    async def _make(name, kind=RAW_MATERIAL, unit_value=1.0, unit_type="unit", stock_count=0.0):
        async with session_maker() as s:
            item = InventoryItem(
                kind=kind,
                name=name,
                unit_value=unit_value,
                unit_type=unit_type,
                stock_count=stock_count,
            )
            s.add(item)
            await s.commit()
            return item

    return _make


@pytest.fixture
def make_finished_good(make_item):
    async def _make(name, stock_count=0.0):
        return await make_item(name, kind=FINISHED_GOOD, stock_count=stock_count)

    return _make


@pytest.fixture
def make_recipe(session_maker):
    async def _make(name, ingredients, product_type=None):
        async with session_maker() as s:
            recipe = Recipe(
                name=name,
                product_type=product_type,
                ingredients=[
                    RecipeIngredient(position=idx, ingredient_name=ing, quantity=qty, unit=unit)
                    for idx, (ing, qty, unit) in enumerate(ingredients)
                ],
            )
            s.add(recipe)
            await s.commit()
            return recipe

    return _make


@pytest.fixture
def make_order(session_maker):
    async def _make(quantity, recipe_id=None, product_description="", status=PENDING, customer_name="Ana"):
        async with session_maker() as s:
            order = SalesOrder(
                customer_name=customer_name,
                recipe_id=recipe_id,
                product_description=product_description,
                quantity=quantity,
                order_date=date(2024, 5, 1),
                status=status,
            )
            s.add(order)
            await s.commit()
            return order

    return _make


@pytest.fixture
def stock_of(session_maker):
    async def _stock(item_id):
        async with session_maker() as s:
            item = await s.get(InventoryItem, item_id)
            return item.stock_count

    return _stock


@pytest.fixture
def order_status(session_maker):
    async def _status(order_id):
        async with session_maker() as s:
            order = await s.get(SalesOrder, order_id)
            return order.status

    return _status
