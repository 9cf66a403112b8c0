from typing import Dict, List

from fastapi import APIRouter, Query

from core.exceptions import ConversionError
from core.units import UnitCategory, convert
from routers.common import http_error

router = APIRouter()


@router.get("/", response_model=List[Dict])
async def list_units():
    """Supported unit symbols grouped by category, with factors to the base unit"""
    return [
        {"category": category.name.lower(), "units": dict(category.factors)}
        for category in UnitCategory
    ]


@router.get("/convert", response_model=Dict)
async def convert_quantity(
    value: float = Query(...),
    from_unit: str = Query(..., alias="from"),
    to_unit: str = Query(..., alias="to"),
):
    try:
        result = convert(value, from_unit, to_unit)
    except ConversionError as e:
        raise http_error(e)
    return {"value": value, "from": from_unit, "to": to_unit, "result": result}
