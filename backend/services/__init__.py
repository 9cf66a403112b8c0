"""
Inventory reservation and deduction engine.

Flow: recipe catalog + inventory snapshot -> production planner ->
(shortage report) or (deduction plan -> reservation committer -> ledger).
Order fulfillment goes straight from the snapshot to the committer.
"""

from .ledger import Ledger, Mutation, get_ledger
from .order_fulfillment import plan_order_completion, resolve_product_name
from .production_planner import plan_production
from .reservation_committer import commit_order_completion, commit_production
from .types import (
    CommitResult,
    DeductionPlan,
    InventorySnapshot,
    OrderCompletionPlan,
    RecipeCatalog,
    ShortageKind,
    ShortageReport,
)
from .workflows import InventoryWorkflows

__all__ = [
    'Ledger',
    'Mutation',
    'get_ledger',
    'plan_production',
    'plan_order_completion',
    'resolve_product_name',
    'commit_production',
    'commit_order_completion',
    'InventoryWorkflows',
    'CommitResult',
    'DeductionPlan',
    'InventorySnapshot',
    'OrderCompletionPlan',
    'RecipeCatalog',
    'ShortageKind',
    'ShortageReport',
]
