import logging
from typing import Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db.database import get_async_session
from db.recipe import Recipe as RecipeModel, RecipeIngredient as RecipeIngredientModel
from db.sales_order import SalesOrder as SalesOrderModel
from schemas.recipes import RecipeCreate, RecipeIngredientInput, RecipeUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _ingredient_rows(ingredients: List[RecipeIngredientInput]) -> List[RecipeIngredientModel]:
    return [
        RecipeIngredientModel(
            position=idx,
            ingredient_name=ing.name,
            quantity=ing.quantity,
            unit=ing.unit,
        )
        for idx, ing in enumerate(ingredients)
    ]


async def _load_recipe(db: AsyncSession, recipe_id: UUID) -> RecipeModel:
    result = await db.execute(
        select(RecipeModel)
        .options(selectinload(RecipeModel.ingredients))
        .where(RecipeModel.id == recipe_id)
    )
    recipe = result.scalar_one_or_none()
    if not recipe:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Recipe with id {recipe_id} not found"
        )
    return recipe


@router.get("/", response_model=List[Dict])
async def get_recipes(db: AsyncSession = Depends(get_async_session)):
    """Get all recipes"""
    result = await db.execute(
        select(RecipeModel)
        .options(selectinload(RecipeModel.ingredients))
        .order_by(RecipeModel.name.asc())
    )
    return [recipe.to_schema for recipe in result.scalars().all()]


@router.get("/{recipe_id}", response_model=Dict)
async def get_recipe(recipe_id: UUID, db: AsyncSession = Depends(get_async_session)):
    recipe = await _load_recipe(db, recipe_id)
    return recipe.to_schema


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_recipe(recipe: RecipeCreate, db: AsyncSession = Depends(get_async_session)):
    """Create a recipe. Ingredient names are matched against raw materials at planning time."""
    try:
        recipe_model = RecipeModel(
            name=recipe.name,
            product_type=recipe.product_type,
            ingredients=_ingredient_rows(recipe.ingredients),
        )
        db.add(recipe_model)
        await db.commit()

        # Reload with ingredients for the response
        recipe_model = await _load_recipe(db, recipe_model.id)
        logger.info(f"[recipes] created '{recipe_model.name}' with {len(recipe_model.ingredients)} ingredient(s)")
        return recipe_model.to_schema
    except Exception as e:
        await db.rollback()
        logger.exception("[recipes] create failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error creating recipe: {str(e)}"
        )


@router.put("/{recipe_id}", response_model=Dict)
async def update_recipe(
    recipe_id: UUID,
    recipe_update: RecipeUpdate,
    db: AsyncSession = Depends(get_async_session),
):
    """Replace a recipe's name, type and full ingredient list"""
    recipe_model = await _load_recipe(db, recipe_id)
    try:
        recipe_model.name = recipe_update.name
        recipe_model.product_type = recipe_update.product_type
        # delete-orphan cascade drops the old rows
        recipe_model.ingredients = _ingredient_rows(recipe_update.ingredients)
        await db.commit()

        db.expire_all()
        recipe_model = await _load_recipe(db, recipe_id)
        return recipe_model.to_schema
    except Exception as e:
        await db.rollback()
        logger.exception("[recipes] update failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error updating recipe: {str(e)}"
        )


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recipe(recipe_id: UUID, db: AsyncSession = Depends(get_async_session)):
    """
    Delete a recipe.

    Orders linked to it are unlinked; an order without a description keeps the
    recipe's name as its description so it can still be completed.
    """
    recipe_model = await _load_recipe(db, recipe_id)
    try:
        res = await db.execute(select(SalesOrderModel).where(SalesOrderModel.recipe_id == recipe_id))
        for order in res.scalars().all():
            order.recipe_id = None
            if not (order.product_description or "").strip():
                order.product_description = recipe_model.name
        await db.delete(recipe_model)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.exception("[recipes] delete failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error deleting recipe: {str(e)}"
        )
    return None
