"""
Inventory Engine Types

Snapshot records handed to the planners and the plans/reports they return.
Snapshots are immutable; plans carry the version tokens of every record they
read so the committer can apply them conditionally.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple
from uuid import UUID

from core.exceptions import FinishedGoodNotFound, IngredientNotFound
from db.inventory import FINISHED_GOOD, normalize_name


class ShortageKind(Enum):
    """Reason an ingredient or item blocks a plan"""
    MISSING_INGREDIENT = "missing_ingredient"
    UNIT_MISMATCH = "unit_mismatch"
    INSUFFICIENT_STOCK = "insufficient_stock"
    INSUFFICIENT_FINISHED_GOOD = "insufficient_finished_good"


@dataclass(frozen=True)
class InventoryRecord:
    id: UUID
    name: str
    kind: str
    unit_value: float
    unit_type: str
    stock_count: float
    version: int

    @property
    def total_base_quantity(self) -> float:
        return self.stock_count * self.unit_value

    @classmethod
    def from_model(cls, item) -> "InventoryRecord":
        return cls(
            id=item.id,
            name=item.name,
            kind=item.kind,
            unit_value=float(item.unit_value),
            unit_type=item.unit_type,
            stock_count=float(item.stock_count),
            version=int(item.version),
        )


class InventorySnapshot:
    """Read-only view of the ledger with an O(1) normalized-name index."""

    def __init__(self, records: Iterable[InventoryRecord]):
        self._records: Tuple[InventoryRecord, ...] = tuple(records)
        self._by_id: Dict[UUID, InventoryRecord] = {r.id: r for r in self._records}
        self._by_name: Dict[Tuple[str, str], InventoryRecord] = {
            (r.kind, normalize_name(r.name)): r for r in self._records
        }

    def find(self, name: str, kind: str) -> Optional[InventoryRecord]:
        return self._by_name.get((kind, normalize_name(name)))

    def require(self, name: str, kind: str) -> InventoryRecord:
        record = self.find(name, kind)
        if record is None:
            raise (FinishedGoodNotFound if kind == FINISHED_GOOD else IngredientNotFound)(name)
        return record

    def get(self, item_id: UUID) -> Optional[InventoryRecord]:
        return self._by_id.get(item_id)

    @property
    def versions(self) -> Dict[UUID, int]:
        return {r.id: r.version for r in self._records}

    def __iter__(self) -> Iterator[InventoryRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)


@dataclass(frozen=True)
class IngredientLine:
    name: str
    quantity: float
    unit: str


@dataclass(frozen=True)
class RecipeRecord:
    id: UUID
    name: str
    ingredients: Tuple[IngredientLine, ...]
    product_type: Optional[str] = None

    @classmethod
    def from_model(cls, recipe) -> "RecipeRecord":
        return cls(
            id=recipe.id,
            name=recipe.name,
            product_type=recipe.product_type,
            ingredients=tuple(
                IngredientLine(name=ing.ingredient_name, quantity=float(ing.quantity), unit=ing.unit)
                for ing in recipe.ingredients
            ),
        )


class RecipeCatalog:
    """Read-only snapshot of recipe definitions."""

    def __init__(self, recipes: Iterable[RecipeRecord]):
        self._recipes: Tuple[RecipeRecord, ...] = tuple(recipes)
        self._by_id = {r.id: r for r in self._recipes}

    def get(self, recipe_id: Optional[UUID]) -> Optional[RecipeRecord]:
        if recipe_id is None:
            return None
        return self._by_id.get(recipe_id)

    def __iter__(self) -> Iterator[RecipeRecord]:
        return iter(self._recipes)

    def __len__(self) -> int:
        return len(self._recipes)


@dataclass(frozen=True)
class SalesOrderRecord:
    id: UUID
    customer_name: str
    quantity: int
    status: str
    version: int
    recipe_id: Optional[UUID] = None
    product_description: str = ""
    order_date: Optional[date] = None

    @classmethod
    def from_model(cls, order) -> "SalesOrderRecord":
        return cls(
            id=order.id,
            customer_name=order.customer_name,
            quantity=int(order.quantity),
            status=order.status,
            version=int(order.version),
            recipe_id=order.recipe_id,
            product_description=order.product_description or "",
            order_date=order.order_date,
        )


@dataclass
class Shortage:
    """A single deficit; quantities are in ``unit``"""
    kind: ShortageKind
    name: str
    required: float
    available: float
    unit: str
    message: str = ""

    @property
    def deficit(self) -> float:
        return max(self.required - self.available, 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "required": self.required,
            "available": self.available,
            "deficit": self.deficit,
            "unit": self.unit,
            "message": self.message,
        }


@dataclass
class ShortageReport:
    subject: str
    quantity: float
    shortages: List[Shortage] = field(default_factory=list)

    feasible = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feasible": False,
            "subject": self.subject,
            "quantity": self.quantity,
            "shortages": [s.to_dict() for s in self.shortages],
        }


@dataclass
class DeductionEntry:
    item_id: UUID
    item_name: str
    expected_version: int
    previous_stock_count: float
    new_stock_count: float
    deducted_base_quantity: float
    unit: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "item_name": self.item_name,
            "expected_version": self.expected_version,
            "previous_stock_count": self.previous_stock_count,
            "new_stock_count": self.new_stock_count,
            "deducted_base_quantity": self.deducted_base_quantity,
            "unit": self.unit,
        }


@dataclass
class FinishedGoodIncrement:
    """Upsert of the produced finished good; item_id is None when it must be created"""
    recipe_name: str
    quantity: float
    new_stock_count: float
    item_id: Optional[UUID] = None
    expected_version: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recipe_name": self.recipe_name,
            "quantity": self.quantity,
            "new_stock_count": self.new_stock_count,
            "item_id": self.item_id,
            "expected_version": self.expected_version,
        }


@dataclass
class DeductionPlan:
    recipe_id: UUID
    recipe_name: str
    quantity: float
    deductions: List[DeductionEntry]
    finished_good: FinishedGoodIncrement

    feasible = True

    @property
    def versions(self) -> Dict[UUID, int]:
        tokens = {d.item_id: d.expected_version for d in self.deductions}
        if self.finished_good.item_id is not None:
            tokens[self.finished_good.item_id] = self.finished_good.expected_version
        return tokens

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feasible": True,
            "recipe_id": self.recipe_id,
            "recipe_name": self.recipe_name,
            "quantity": self.quantity,
            "deductions": [d.to_dict() for d in self.deductions],
            "finished_good": self.finished_good.to_dict(),
        }


@dataclass
class OrderCompletionPlan:
    order_id: UUID
    order_version: int
    product_name: str
    quantity: int
    item_id: UUID
    item_version: int
    previous_stock_count: float
    new_stock_count: float

    feasible = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feasible": True,
            "order_id": self.order_id,
            "order_version": self.order_version,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "item_id": self.item_id,
            "item_version": self.item_version,
            "previous_stock_count": self.previous_stock_count,
            "new_stock_count": self.new_stock_count,
        }


@dataclass
class AppliedMutation:
    record_id: UUID
    version: int
    fields: Dict[str, Any]
    created: bool = False


@dataclass
class CommitResult:
    """Outcome of a successful atomic commit"""
    stock_counts: Dict[UUID, float] = field(default_factory=dict)
    versions: Dict[UUID, int] = field(default_factory=dict)
    created_item_ids: List[UUID] = field(default_factory=list)
    order_id: Optional[UUID] = None
    order_status: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stock_counts": {str(k): v for k, v in self.stock_counts.items()},
            "versions": {str(k): v for k, v in self.versions.items()},
            "created_item_ids": list(self.created_item_ids),
            "order_id": self.order_id,
            "order_status": self.order_status,
        }
