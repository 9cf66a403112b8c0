import logging
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from core.exceptions import InventoryError, InventoryItemNotFound
from db.database import get_async_session
from db.inventory import FINISHED_GOOD, RAW_MATERIAL, InventoryItem as InventoryItemModel, normalize_name
from routers.common import http_error
from schemas.inventory import InventoryItemCreate, InventoryItemUpdate, StockCountUpdate
from services.ledger import Ledger, Mutation, get_ledger

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_item_or_404(db: AsyncSession, item_id: UUID) -> InventoryItemModel:
    res = await db.execute(select(InventoryItemModel).where(InventoryItemModel.id == item_id))
    model = res.scalar_one_or_none()
    if not model:
        raise http_error(InventoryItemNotFound(item_id))
    return model


def _duplicate_name(kind: str, name: str) -> HTTPException:
    label = "raw material" if kind == RAW_MATERIAL else "finished good"
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=f"A {label} named '{name}' already exists",
    )


@router.get("/items", response_model=List[Dict])
async def list_inventory_items(
    kind: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_async_session),
):
    stmt = select(InventoryItemModel).order_by(InventoryItemModel.kind.asc(), InventoryItemModel.normalized_name.asc())
    if kind:
        k = kind.strip().upper()
        if k not in (RAW_MATERIAL, FINISHED_GOOD):
            raise HTTPException(status_code=400, detail="kind must be RAW_MATERIAL or FINISHED_GOOD")
        stmt = stmt.where(InventoryItemModel.kind == k)
    if q and q.strip():
        stmt = stmt.where(InventoryItemModel.normalized_name.contains(normalize_name(q)))
    res = await db.execute(stmt)
    return [it.to_schema for it in res.scalars().all()]


@router.get("/items/{item_id}", response_model=Dict)
async def get_inventory_item(item_id: UUID, db: AsyncSession = Depends(get_async_session)):
    model = await _get_item_or_404(db, item_id)
    return model.to_schema


@router.post("/items", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_inventory_item(
    payload: InventoryItemCreate,
    db: AsyncSession = Depends(get_async_session),
):
    model = InventoryItemModel(
        kind=payload.kind,
        name=payload.name,
        unit_value=payload.unit_value,
        unit_type=payload.unit_type,
        stock_count=payload.stock_count,
    )
    db.add(model)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise _duplicate_name(payload.kind, payload.name)
    await db.refresh(model)
    logger.info(f"[inventory] created {model.kind} '{model.name}' ({model.stock_count} x {model.unit_value} {model.unit_type})")
    return model.to_schema


@router.patch("/items/{item_id}", response_model=Dict)
async def update_inventory_item(
    item_id: UUID,
    payload: InventoryItemUpdate,
    db: AsyncSession = Depends(get_async_session),
):
    model = await _get_item_or_404(db, item_id)

    if payload.name is not None:
        model.name = payload.name
    if payload.unit_value is not None:
        model.unit_value = payload.unit_value
    if payload.unit_type is not None:
        model.unit_type = payload.unit_type

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise _duplicate_name(model.kind, payload.name)
    except StaleDataError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Item was modified concurrently")
    await db.refresh(model)
    return model.to_schema


@router.patch("/items/{item_id}/stock", response_model=Dict)
async def set_stock_count(
    item_id: UUID,
    payload: StockCountUpdate,
    db: AsyncSession = Depends(get_async_session),
    ledger: Ledger = Depends(get_ledger),
):
    """
    Manual stock correction.

    With ``expected_version`` the write only lands if nobody touched the item
    since the client read it; otherwise the current version is used.
    """
    model = await _get_item_or_404(db, item_id)
    expected = payload.expected_version if payload.expected_version is not None else model.version
    # release the read so the ledger's write doesn't wait on it (sqlite)
    await db.close()

    try:
        await ledger.apply_atomic([Mutation(InventoryItemModel, item_id, expected, {"stock_count": payload.stock_count})])
    except InventoryError as e:
        raise http_error(e)

    res = await db.execute(select(InventoryItemModel).where(InventoryItemModel.id == item_id))
    model = res.scalar_one()
    logger.info(f"[inventory] stock of '{model.name}' set to {model.stock_count}")
    return model.to_schema


@router.delete("/items/{item_id}", response_model=Dict)
async def delete_inventory_item(
    item_id: UUID,
    db: AsyncSession = Depends(get_async_session),
):
    model = await _get_item_or_404(db, item_id)
    try:
        await db.delete(model)
        await db.commit()
    except StaleDataError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Item was modified concurrently")
    return {"ok": True}
