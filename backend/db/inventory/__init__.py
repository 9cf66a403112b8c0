"""
Inventory ledger tables.

Models:
- InventoryItem (raw material or finished good; stock counted in packages of unit_value)
"""

from .item import FINISHED_GOOD, NAME_INDEX, RAW_MATERIAL, InventoryItem, normalize_name

__all__ = ["InventoryItem", "RAW_MATERIAL", "FINISHED_GOOD", "NAME_INDEX", "normalize_name"]
