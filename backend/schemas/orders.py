from pydantic import BaseModel, field_validator, model_validator
from typing import Optional
from uuid import UUID
from datetime import date


class SalesOrderCreate(BaseModel):
    customer_name: str
    recipe_id: Optional[UUID] = None
    product_type: Optional[str] = None
    product_description: str = ""
    quantity: int
    order_date: date

    @field_validator("customer_name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("customer_name is required")
        return v

    @field_validator("product_description")
    @classmethod
    def _strip_description(cls, v: Optional[str]) -> str:
        return (v or "").strip()

    @field_validator("quantity")
    @classmethod
    def _quantity_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("quantity must be > 0")
        return v

    @model_validator(mode="after")
    def _recipe_or_description(self):
        # the product to deduct comes from the linked recipe or the description
        if self.recipe_id is None and not self.product_description:
            raise ValueError("select a recipe or enter a product description")
        return self


class SalesOrderUpdate(SalesOrderCreate):
    pass
