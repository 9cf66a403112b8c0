"""
Unit conversion between stocked and recipe units.

Every symbol belongs to exactly one category and carries a factor relative to
the category's base unit (g, ml/cc, unit). Conversion is only defined inside
a category.
"""

from enum import Enum
from typing import Dict, List

from core.exceptions import IncompatibleUnits, UnknownUnit


class UnitCategory(Enum):
    MASS = {"g": 1, "kg": 1000}
    VOLUME = {"ml": 1, "lt": 1000, "cc": 1}
    COUNT = {"unit": 1}

    @property
    def factors(self) -> Dict[str, int]:
        return self.value


_CATEGORY_BY_SYMBOL: Dict[str, UnitCategory] = {
    symbol: category
    for category in UnitCategory
    for symbol in category.factors
}


def normalize_unit(symbol: str) -> str:
    return (symbol or "").strip().lower()


def known_units() -> List[str]:
    return list(_CATEGORY_BY_SYMBOL)


def is_known_unit(symbol: str) -> bool:
    return normalize_unit(symbol) in _CATEGORY_BY_SYMBOL


def category_of(symbol: str) -> UnitCategory:
    category = _CATEGORY_BY_SYMBOL.get(normalize_unit(symbol))
    if category is None:
        raise UnknownUnit(symbol)
    return category


def convert(value: float, from_unit: str, to_unit: str) -> float:
    """
    Convert ``value`` from ``from_unit`` to ``to_unit``.

    Identical symbols short-circuit and return ``value`` unchanged, even when
    the symbol is not in any category.

    Raises:
        UnknownUnit: either symbol is not in any category
        IncompatibleUnits: the symbols belong to different categories
    """
    source = normalize_unit(from_unit)
    target = normalize_unit(to_unit)
    if source == target:
        return value

    for symbol in (source, target):
        if symbol not in _CATEGORY_BY_SYMBOL:
            raise UnknownUnit(symbol, from_unit=from_unit, to_unit=to_unit)

    source_category = _CATEGORY_BY_SYMBOL[source]
    target_category = _CATEGORY_BY_SYMBOL[target]
    if source_category is not target_category:
        raise IncompatibleUnits(from_unit, to_unit)

    return value * source_category.factors[source] / target_category.factors[target]
