import logging
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from core.exceptions import InventoryError
from db.database import get_async_session
from db.recipe import Recipe as RecipeModel
from db.sales_order import COMPLETED, PENDING, SalesOrder as SalesOrderModel
from routers.common import get_workflows, http_error
from schemas.orders import SalesOrderCreate, SalesOrderUpdate
from services.workflows import InventoryWorkflows

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_order_or_404(db: AsyncSession, order_id: UUID) -> SalesOrderModel:
    order = await db.get(SalesOrderModel, order_id)
    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Sales order with id {order_id} not found"
        )
    return order


async def _linked_recipe(db: AsyncSession, recipe_id: Optional[UUID]) -> Optional[RecipeModel]:
    if recipe_id is None:
        return None
    recipe = await db.get(RecipeModel, recipe_id)
    if not recipe:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Recipe with id {recipe_id} not found"
        )
    return recipe


@router.get("/", response_model=List[Dict])
async def list_sales_orders(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_async_session),
):
    """List sales orders, newest order date first"""
    stmt = select(SalesOrderModel).order_by(SalesOrderModel.order_date.desc(), SalesOrderModel.created_at.desc())
    if status_filter:
        s = status_filter.strip().upper()
        if s not in (PENDING, COMPLETED):
            raise HTTPException(status_code=400, detail="status must be PENDING or COMPLETED")
        stmt = stmt.where(SalesOrderModel.status == s)
    res = await db.execute(stmt)
    return [o.to_schema for o in res.scalars().all()]


@router.get("/{order_id}", response_model=Dict)
async def get_sales_order(order_id: UUID, db: AsyncSession = Depends(get_async_session)):
    order = await _get_order_or_404(db, order_id)
    return order.to_schema


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_sales_order(payload: SalesOrderCreate, db: AsyncSession = Depends(get_async_session)):
    """Create a PENDING sales order. Stock is only touched on completion."""
    recipe = await _linked_recipe(db, payload.recipe_id)
    try:
        order = SalesOrderModel(
            customer_name=payload.customer_name,
            recipe_id=payload.recipe_id,
            product_type=payload.product_type or (recipe.product_type if recipe else None),
            product_description=payload.product_description,
            quantity=payload.quantity,
            order_date=payload.order_date,
            status=PENDING,
        )
        db.add(order)
        await db.commit()
        await db.refresh(order)
        logger.info(f"[sales_orders] created order {order.id} for {order.customer_name}")
        return order.to_schema
    except Exception as e:
        await db.rollback()
        logger.exception("[sales_orders] create failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error creating sales order: {str(e)}"
        )


@router.put("/{order_id}", response_model=Dict)
async def update_sales_order(
    order_id: UUID,
    payload: SalesOrderUpdate,
    db: AsyncSession = Depends(get_async_session),
):
    """Edit order details. Status is left alone; use /complete and /reopen for that."""
    order = await _get_order_or_404(db, order_id)
    recipe = await _linked_recipe(db, payload.recipe_id)
    try:
        order.customer_name = payload.customer_name
        order.recipe_id = payload.recipe_id
        order.product_type = payload.product_type or (recipe.product_type if recipe else None)
        order.product_description = payload.product_description
        order.quantity = payload.quantity
        order.order_date = payload.order_date
        await db.commit()
        await db.refresh(order)
        return order.to_schema
    except StaleDataError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Sales order was modified concurrently")
    except Exception as e:
        await db.rollback()
        logger.exception("[sales_orders] update failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error updating sales order: {str(e)}"
        )


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sales_order(order_id: UUID, db: AsyncSession = Depends(get_async_session)):
    order = await _get_order_or_404(db, order_id)
    try:
        await db.delete(order)
        await db.commit()
    except StaleDataError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Sales order was modified concurrently")
    return None


@router.get("/{order_id}/completion-preview", response_model=Dict)
async def preview_order_completion(
    order_id: UUID,
    workflows: InventoryWorkflows = Depends(get_workflows),
):
    """What completing the order would deduct, or why it can't be completed yet"""
    try:
        result = await workflows.preview_order_completion(order_id)
    except InventoryError as e:
        raise http_error(e)
    return result.to_dict()


@router.post("/{order_id}/complete", response_model=Dict)
async def complete_sales_order(
    order_id: UUID,
    workflows: InventoryWorkflows = Depends(get_workflows),
):
    try:
        result = await workflows.confirm_order_completion(order_id)
    except InventoryError as e:
        raise http_error(e)
    except Exception as e:
        logger.exception(f"[sales_orders] completing order {order_id} failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to complete sales order: {e}"
        )
    return result.to_dict()


@router.post("/{order_id}/reopen", response_model=Dict)
async def reopen_sales_order(
    order_id: UUID,
    workflows: InventoryWorkflows = Depends(get_workflows),
):
    """Back to PENDING. Finished-good stock deducted on completion stays deducted."""
    try:
        result = await workflows.reopen_order(order_id)
    except InventoryError as e:
        raise http_error(e)
    except Exception as e:
        logger.exception(f"[sales_orders] reopening order {order_id} failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to reopen sales order: {e}"
        )
    return result.to_dict()
