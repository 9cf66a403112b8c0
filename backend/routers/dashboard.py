from typing import Dict

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.database import get_async_session
from db.inventory import FINISHED_GOOD, RAW_MATERIAL, InventoryItem as InventoryItemModel
from db.recipe import Recipe as RecipeModel
from db.sales_order import COMPLETED, PENDING, SalesOrder as SalesOrderModel

router = APIRouter()


@router.get("/summary", response_model=Dict)
async def get_summary(db: AsyncSession = Depends(get_async_session)):
    """Record counts for the landing page"""
    items = await db.execute(
        select(InventoryItemModel.kind, func.count(InventoryItemModel.id)).group_by(InventoryItemModel.kind)
    )
    by_kind = {kind: int(n) for kind, n in items.all()}

    orders = await db.execute(
        select(SalesOrderModel.status, func.count(SalesOrderModel.id)).group_by(SalesOrderModel.status)
    )
    by_status = {s: int(n) for s, n in orders.all()}

    recipes = await db.execute(select(func.count(RecipeModel.id)))

    out_of_stock = await db.execute(
        select(func.count(InventoryItemModel.id)).where(InventoryItemModel.stock_count <= 0)
    )

    return {
        "recipes": int(recipes.scalar_one()),
        "raw_materials": by_kind.get(RAW_MATERIAL, 0),
        "finished_goods": by_kind.get(FINISHED_GOOD, 0),
        "out_of_stock_items": int(out_of_stock.scalar_one()),
        "pending_orders": by_status.get(PENDING, 0),
        "completed_orders": by_status.get(COMPLETED, 0),
    }
