import math

from pydantic import BaseModel, field_validator
from typing import List, Optional

from core.units import is_known_unit, normalize_unit


class RecipeIngredientInput(BaseModel):
    name: str
    quantity: float
    unit: str

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("ingredient name is required")
        return v

    @field_validator("quantity")
    @classmethod
    def _quantity_positive(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError("quantity must be > 0")
        return v

    @field_validator("unit")
    @classmethod
    def _unit_known(cls, v: str) -> str:
        v = normalize_unit(v)
        if not is_known_unit(v):
            raise ValueError(f"unknown unit '{v}'")
        return v


class RecipeCreate(BaseModel):
    name: str
    product_type: Optional[str] = None
    ingredients: List[RecipeIngredientInput]

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("recipe name is required")
        return v

    @field_validator("ingredients")
    @classmethod
    def _ingredients_required(cls, v: List[RecipeIngredientInput]) -> List[RecipeIngredientInput]:
        if not v:
            raise ValueError("a recipe needs at least one ingredient")
        return v


class RecipeUpdate(RecipeCreate):
    pass
