import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status

from core.exceptions import InventoryError
from routers.common import get_workflows, http_error
from schemas.production import DeductionPlanIn, ProductionRequest
from services.workflows import InventoryWorkflows

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/preview", response_model=Dict)
async def preview_production(
    payload: ProductionRequest,
    workflows: InventoryWorkflows = Depends(get_workflows),
):
    """
    Plan production of a recipe without touching stock.

    Returns the deduction plan (``feasible: true``) to send back to /confirm,
    or the full shortage report (``feasible: false``).
    """
    try:
        result = await workflows.preview_production(payload.recipe_id, payload.quantity)
    except InventoryError as e:
        raise http_error(e)
    return result.to_dict()


@router.post("/confirm", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def confirm_production(
    payload: DeductionPlanIn,
    workflows: InventoryWorkflows = Depends(get_workflows),
):
    """Commit a previewed plan. Stale plans are re-planned a bounded number of times."""
    try:
        result = await workflows.confirm_production_with_retry(payload.to_plan())
    except InventoryError as e:
        raise http_error(e)
    except Exception as e:
        logger.exception("[production] confirm_production failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to confirm production: {e}",
        )
    return {
        "recipe_id": payload.recipe_id,
        "recipe_name": payload.recipe_name,
        "quantity": payload.quantity,
        **result.to_dict(),
    }


@router.post("/produce", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def produce(
    payload: ProductionRequest,
    workflows: InventoryWorkflows = Depends(get_workflows),
):
    """Plan and commit in one call."""
    try:
        result = await workflows.produce(payload.recipe_id, payload.quantity)
    except InventoryError as e:
        raise http_error(e)
    except Exception as e:
        logger.exception("[production] produce failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to produce: {e}",
        )
    return {"recipe_id": payload.recipe_id, "quantity": payload.quantity, **result.to_dict()}
