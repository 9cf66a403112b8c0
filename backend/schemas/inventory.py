import math
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from core.units import is_known_unit, normalize_unit


InventoryItemKind = Literal["RAW_MATERIAL", "FINISHED_GOOD"]


def _known_unit(v: str) -> str:
    v = normalize_unit(v)
    if not is_known_unit(v):
        raise ValueError(f"unknown unit '{v}'")
    return v


class InventoryItemCreate(BaseModel):
    kind: InventoryItemKind
    name: str
    unit_value: float = 1.0
    unit_type: str = "unit"
    stock_count: float = 0.0

    @field_validator("name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v

    @field_validator("unit_type")
    @classmethod
    def _unit_type(cls, v: str) -> str:
        return _known_unit(v)

    @field_validator("unit_value")
    @classmethod
    def _unit_value_positive(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError("unit_value must be > 0")
        return v

    @field_validator("stock_count")
    @classmethod
    def _stock_non_negative(cls, v: float) -> float:
        if not math.isfinite(v) or v < 0:
            raise ValueError("stock_count must be >= 0")
        return v


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = None
    unit_value: Optional[float] = None
    unit_type: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty")
        return v

    @field_validator("unit_type")
    @classmethod
    def _unit_type_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return _known_unit(v)

    @field_validator("unit_value")
    @classmethod
    def _unit_value_optional(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and (not math.isfinite(v) or v <= 0):
            raise ValueError("unit_value must be > 0")
        return v


class StockCountUpdate(BaseModel):
    stock_count: float
    # when set, the edit is rejected if the item changed since it was read
    expected_version: Optional[int] = None

    @field_validator("stock_count")
    @classmethod
    def _stock_non_negative(cls, v: float) -> float:
        if not math.isfinite(v) or v < 0:
            raise ValueError("stock_count must be >= 0")
        return v
