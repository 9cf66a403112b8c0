import math
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from services.types import DeductionEntry, DeductionPlan, FinishedGoodIncrement


class ProductionRequest(BaseModel):
    recipe_id: UUID
    quantity: float

    @field_validator("quantity")
    @classmethod
    def _quantity_positive(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError("quantity must be > 0")
        return v


class DeductionEntryIn(BaseModel):
    item_id: UUID
    item_name: str
    expected_version: int
    previous_stock_count: float
    new_stock_count: float
    deducted_base_quantity: float
    unit: str


class FinishedGoodIncrementIn(BaseModel):
    recipe_name: str
    quantity: float
    new_stock_count: float
    item_id: Optional[UUID] = None
    expected_version: Optional[int] = None


class DeductionPlanIn(BaseModel):
    """A plan as returned by /production/preview, sent back to confirm it."""
    recipe_id: UUID
    recipe_name: str
    quantity: float
    deductions: List[DeductionEntryIn]
    finished_good: FinishedGoodIncrementIn

    @field_validator("quantity")
    @classmethod
    def _quantity_positive(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError("quantity must be > 0")
        return v

    def to_plan(self) -> DeductionPlan:
        return DeductionPlan(
            recipe_id=self.recipe_id,
            recipe_name=self.recipe_name,
            quantity=self.quantity,
            deductions=[DeductionEntry(**d.model_dump()) for d in self.deductions],
            finished_good=FinishedGoodIncrement(**self.finished_good.model_dump()),
        )
