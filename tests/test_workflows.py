import uuid

import pytest

from core.exceptions import ConcurrentModification, RecipeNotFound, SalesOrderNotFound, ShortageError
from db.inventory import FINISHED_GOOD, InventoryItem
from db.sales_order import COMPLETED, PENDING
from services import order_fulfillment
from services.ledger import Ledger, Mutation
from services.types import DeductionPlan, ShortageKind, ShortageReport
from services.workflows import InventoryWorkflows


class ConflictingLedger(Ledger):
    """Rejects every commit as if another writer always got there first."""

    def __init__(self, session_maker):
        super().__init__(session_maker)
        self.commit_attempts = 0

    async def apply_atomic(self, mutations):
        self.commit_attempts += 1
        raise ConcurrentModification()


async def test_preview_production_reads_a_fresh_snapshot(ledger, make_item, make_recipe):
    await make_item("Flour", unit_value=1, unit_type="kg", stock_count=1)
    r = await make_recipe("Bread", [("Flour", 600, "g")])
    workflows = InventoryWorkflows(ledger)

    assert isinstance(await workflows.preview_production(r.id, 1), DeductionPlan)
    assert isinstance(await workflows.preview_production(r.id, 2), ShortageReport)


async def test_preview_unknown_recipe(ledger):
    with pytest.raises(RecipeNotFound):
        await InventoryWorkflows(ledger).preview_production(uuid.uuid4(), 1)


async def test_confirm_without_retry_surfaces_conflict(ledger, make_item, make_recipe):
    flour = await make_item("Flour", unit_value=1, unit_type="kg", stock_count=5)
    r = await make_recipe("Bread", [("Flour", 1, "kg")])
    workflows = InventoryWorkflows(ledger)
    plan = await workflows.preview_production(r.id, 1)

    await ledger.apply_atomic([Mutation(InventoryItem, flour.id, flour.version, {"stock_count": 4})])

    with pytest.raises(ConcurrentModification):
        await workflows.confirm_production(plan)


async def test_stale_plan_is_replanned_against_current_stock(ledger, make_item, make_recipe, stock_of):
    flour = await make_item("Flour", unit_value=1, unit_type="kg", stock_count=5)
    r = await make_recipe("Bread", [("Flour", 1, "kg")])
    workflows = InventoryWorkflows(ledger, max_attempts=3)
    plan = await workflows.preview_production(r.id, 2)

    await ledger.apply_atomic([Mutation(InventoryItem, flour.id, flour.version, {"stock_count": 4})])

    result = await workflows.confirm_production_with_retry(plan)

    assert await stock_of(flour.id) == 2
    assert result.stock_counts[flour.id] == 2


async def test_replan_that_comes_up_short_raises_shortage(ledger, make_item, make_recipe, stock_of):
    flour = await make_item("Flour", unit_value=1, unit_type="kg", stock_count=2)
    r = await make_recipe("Bread", [("Flour", 1, "kg")])
    workflows = InventoryWorkflows(ledger)
    plan = await workflows.preview_production(r.id, 2)

    await ledger.apply_atomic([Mutation(InventoryItem, flour.id, flour.version, {"stock_count": 1})])

    with pytest.raises(ShortageError) as exc:
        await workflows.confirm_production_with_retry(plan)

    assert exc.value.report.shortages[0].name == "Flour"
    assert await stock_of(flour.id) == 1


async def test_retries_are_bounded(session_maker, make_item, make_recipe):
    await make_item("Flour", unit_value=1, unit_type="kg", stock_count=5)
    r = await make_recipe("Bread", [("Flour", 1, "kg")])
    ledger = ConflictingLedger(session_maker)
    workflows = InventoryWorkflows(ledger, max_attempts=3)

    with pytest.raises(ConcurrentModification):
        await workflows.produce(r.id, 1)

    assert ledger.commit_attempts == 3


async def test_produce_with_shortage_never_commits(session_maker, make_item, make_recipe):
    await make_item("Flour", unit_value=1, unit_type="kg", stock_count=0)
    r = await make_recipe("Bread", [("Flour", 1, "kg")])
    ledger = ConflictingLedger(session_maker)

    with pytest.raises(ShortageError):
        await InventoryWorkflows(ledger).produce(r.id, 1)

    assert ledger.commit_attempts == 0


async def test_produce_updates_finished_good(ledger, make_item, make_recipe):
    await make_item("Flour", unit_value=1, unit_type="kg", stock_count=5)
    r = await make_recipe("Bread", [("Flour", 1, "kg")])
    workflows = InventoryWorkflows(ledger)

    await workflows.produce(r.id, 2)
    await workflows.produce(r.id, 1)

    snapshot = await ledger.inventory_snapshot()
    assert snapshot.find("bread", FINISHED_GOOD).stock_count == 3


async def test_complete_and_reopen_order(ledger, make_finished_good, make_order, stock_of, order_status):
    fg = await make_finished_good("Muffins", stock_count=10)
    o = await make_order(4, product_description="Muffins")
    workflows = InventoryWorkflows(ledger)

    result = await workflows.confirm_order_completion(o.id)

    assert result.order_status == COMPLETED
    assert await stock_of(fg.id) == 6

    await workflows.reopen_order(o.id)
    assert await order_status(o.id) == PENDING
    assert await stock_of(fg.id) == 6


async def test_order_completion_shortage(ledger, make_finished_good, make_order, order_status):
    await make_finished_good("Muffins", stock_count=1)
    o = await make_order(4, product_description="Muffins")

    with pytest.raises(ShortageError):
        await InventoryWorkflows(ledger).confirm_order_completion(o.id)

    assert await order_status(o.id) == PENDING


async def test_unknown_order(ledger):
    with pytest.raises(SalesOrderNotFound):
        await InventoryWorkflows(ledger).preview_order_completion(uuid.uuid4())


def test_max_attempts_has_a_floor():
    assert InventoryWorkflows(None, max_attempts=0).max_attempts == 1


async def test_confirm_commits_server_numbers_for_a_tampered_plan(ledger, make_item, make_recipe, stock_of):
    flour = await make_item("Flour", unit_value=1, unit_type="kg", stock_count=1)
    r = await make_recipe("Bread", [("Flour", 1, "kg")])
    workflows = InventoryWorkflows(ledger)
    plan = await workflows.preview_production(r.id, 1)
    plan.deductions[0].new_stock_count = 50
    plan.finished_good.new_stock_count = 1000

    await workflows.confirm_production(plan)

    assert await stock_of(flour.id) == 0
    snapshot = await ledger.inventory_snapshot()
    assert snapshot.find("Bread", FINISHED_GOOD).stock_count == 1


async def test_confirm_rejects_a_plan_with_dropped_deductions(ledger, make_item, make_recipe, stock_of):
    flour = await make_item("Flour", unit_value=1, unit_type="kg", stock_count=1)
    r = await make_recipe("Bread", [("Flour", 1, "kg")])
    workflows = InventoryWorkflows(ledger)
    plan = await workflows.preview_production(r.id, 1)
    plan.deductions = []

    with pytest.raises(ConcurrentModification):
        await workflows.confirm_production(plan)

    assert await stock_of(flour.id) == 1
    snapshot = await ledger.inventory_snapshot()
    assert snapshot.find("Bread", FINISHED_GOOD) is None


async def test_order_completion_goes_through_fulfillment(ledger, make_finished_good, make_order, monkeypatch):
    await make_finished_good("Muffins", stock_count=1)
    o = await make_order(4, product_description="Muffins")
    calls = []
    complete = order_fulfillment.complete

    async def recording_complete(*args):
        calls.append(args[1].id)
        return await complete(*args)

    monkeypatch.setattr(order_fulfillment, "complete", recording_complete)

    with pytest.raises(ShortageError) as exc:
        await InventoryWorkflows(ledger).confirm_order_completion(o.id)

    assert calls == [o.id]
    assert exc.value.report.shortages[0].kind is ShortageKind.INSUFFICIENT_FINISHED_GOOD
