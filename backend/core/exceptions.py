"""
Domain exceptions for inventory reservation and deduction.

Validation, conversion, not-found and shortage errors are returned to the
caller for correction and are never retried. ConcurrentModification is the
only retryable error. PersistenceError means the store itself failed.
"""


class InventoryError(Exception):
    """Base exception for inventory engine errors."""

    code: str = "INVENTORY_ERROR"


class ValidationError(InventoryError):
    """Raised for non-positive quantities, empty recipes and invalid transitions."""

    code = "VALIDATION_ERROR"


class ConversionError(InventoryError):
    """Raised when a quantity cannot be converted between two unit symbols."""

    code = "CONVERSION_ERROR"

    def __init__(self, from_unit, to_unit, message=None):
        self.from_unit = from_unit
        self.to_unit = to_unit
        if message is None:
            message = f"Cannot convert from '{from_unit}' to '{to_unit}'"
        super().__init__(message)


class IncompatibleUnits(ConversionError):
    """The two symbols do not belong to the same unit category."""

    code = "INCOMPATIBLE_UNITS"


class UnknownUnit(IncompatibleUnits):
    """A symbol is not present in any unit category."""

    code = "UNKNOWN_UNIT"

    def __init__(self, unit, from_unit=None, to_unit=None):
        self.unit = unit
        super().__init__(
            from_unit if from_unit is not None else unit,
            to_unit if to_unit is not None else unit,
            message=f"Unknown unit '{unit}'",
        )


class NotFoundError(InventoryError):
    """Raised when a referenced record does not exist."""

    code = "NOT_FOUND"
    entity = "Record"

    def __init__(self, key, message=None):
        self.key = key
        if message is None:
            message = f"{self.entity} '{key}' not found"
        super().__init__(message)


class IngredientNotFound(NotFoundError):
    code = "INGREDIENT_NOT_FOUND"
    entity = "Raw material"


class FinishedGoodNotFound(NotFoundError):
    code = "FINISHED_GOOD_NOT_FOUND"
    entity = "Finished good"


class RecipeNotFound(NotFoundError):
    code = "RECIPE_NOT_FOUND"
    entity = "Recipe"


class SalesOrderNotFound(NotFoundError):
    code = "SALES_ORDER_NOT_FOUND"
    entity = "Sales order"


class InventoryItemNotFound(NotFoundError):
    code = "INVENTORY_ITEM_NOT_FOUND"
    entity = "Inventory item"


class ShortageError(InventoryError):
    """Stock is insufficient; carries the complete shortage report."""

    code = "SHORTAGE"

    def __init__(self, report, message=None):
        self.report = report
        if message is None:
            names = ", ".join(s.name for s in report.shortages)
            message = f"Insufficient stock for: {names}"
        super().__init__(message)


class ConcurrentModification(InventoryError):
    """A record changed between snapshot and commit; nothing was applied."""

    code = "CONCURRENT_MODIFICATION"

    def __init__(self, record_id=None, message=None):
        self.record_id = record_id
        if message is None:
            if record_id is not None:
                message = f"Record {record_id} was modified concurrently; re-plan against a fresh snapshot"
            else:
                message = "Inventory was modified concurrently; re-plan against a fresh snapshot"
        super().__init__(message)


class PersistenceError(InventoryError):
    """The store failed for reasons unrelated to business rules."""

    code = "PERSISTENCE_ERROR"
