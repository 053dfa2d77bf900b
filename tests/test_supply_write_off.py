from decimal import Decimal
from uuid import uuid4

import pytest

from app.core.errors import NotFoundError, StateConflictError, ValidationError
from app.models.inventory import Ingredient, InventoryTransaction, TransactionType
from app.models.shift import ActivityType, Shift
from app.models.supply import SupplyStatus
from app.models.write_off import WriteOffItem
from app.schemas.supply import SupplyRequest
from app.schemas.write_off import WriteOffRequest
from app.services import shift_service, supply_service, write_off_service
from tests.factories import make_ingredient


def _supply_request(**overrides):
    body = {
        "supplier_name": "Dairy Farm",
        "created_by": "Olena",
        "items": [
            {"ingredient_slug": "milk", "quantity": 5000, "unit_cost": "0.04"},
            {"ingredient_slug": "sugar", "quantity": 1000, "unit_cost": "0.01"},
        ],
    }
    body.update(overrides)
    return SupplyRequest(**body)


@pytest.mark.asyncio
async def test_create_supply_is_a_draft(db):
    await make_ingredient("milk", quantity="100")

    supply = await supply_service.create_supply(_supply_request())

    assert supply.status == "draft"
    assert supply.total_cost == 210.0
    assert [i.total_cost for i in supply.items] == [200.0, 10.0]
    milk = await Ingredient.get(slug="milk")
    assert milk.quantity == Decimal("100")


@pytest.mark.asyncio
async def test_create_supply_validation(db):
    with pytest.raises(ValidationError) as excinfo:
        await supply_service.create_supply(SupplyRequest(
            supplier_name="",
            items=[{"quantity": -1, "unit_cost": 1}],
        ))
    details = excinfo.value.details
    assert "supplier_name" in details
    assert "items.0.ingredient" in details
    assert "items.0.quantity" in details


@pytest.mark.asyncio
async def test_receive_adds_stock_exactly_once(db):
    await make_ingredient("milk", quantity="100")
    await make_ingredient("sugar", quantity="0")
    shift = await shift_service.open_shift("Olena", 0)
    draft = await supply_service.create_supply(_supply_request())

    received = await supply_service.receive_supply(draft.id, "Taras")

    assert received.status == "received"
    assert received.received_by == "Taras"
    assert received.received_at is not None
    milk = await Ingredient.get(slug="milk")
    sugar = await Ingredient.get(slug="sugar")
    assert milk.quantity == Decimal("5100")
    assert sugar.quantity == Decimal("1000")

    txs = await InventoryTransaction.filter(type=TransactionType.SUPPLY)
    assert len(txs) == 2
    assert {tx.reference for tx in txs} == {f"SUP-{draft.id}"}

    shift = await Shift.get(id=shift.id)
    assert shift.supplies_total == Decimal("210")
    latest = (await shift_service.list_activities([shift.id]))[0]
    assert latest.type == ActivityType.SUPPLY_RECEIVE

    with pytest.raises(StateConflictError):
        await supply_service.receive_supply(draft.id)
    milk = await Ingredient.get(slug="milk")
    assert milk.quantity == Decimal("5100")
    assert await InventoryTransaction.filter(type=TransactionType.SUPPLY).count() == 2


@pytest.mark.asyncio
async def test_receive_defaults_receiver_and_warns_on_unknown_ingredient(db):
    await make_ingredient("milk", quantity="0")
    draft = await supply_service.create_supply(_supply_request())

    received = await supply_service.receive_supply(draft.id)

    assert received.received_by == "Unknown"
    assert [w.code for w in received.warnings] == ["ingredient_not_found"]
    milk = await Ingredient.get(slug="milk")
    assert milk.quantity == Decimal("5000")


@pytest.mark.asyncio
async def test_cancel_rules(db):
    await make_ingredient("milk", quantity="100")
    draft = await supply_service.create_supply(_supply_request())

    cancelled = await supply_service.cancel_supply(draft.id)
    assert cancelled.status == SupplyStatus.CANCELLED.value

    with pytest.raises(StateConflictError):
        await supply_service.receive_supply(draft.id)
    with pytest.raises(StateConflictError):
        await supply_service.cancel_supply(draft.id)
    milk = await Ingredient.get(slug="milk")
    assert milk.quantity == Decimal("100")

    other = await supply_service.create_supply(_supply_request())
    await supply_service.receive_supply(other.id)
    with pytest.raises(StateConflictError):
        await supply_service.cancel_supply(other.id)


@pytest.mark.asyncio
async def test_unknown_supply(db):
    with pytest.raises(NotFoundError):
        await supply_service.receive_supply(uuid4())
    with pytest.raises(NotFoundError):
        await supply_service.get_supply(uuid4())


@pytest.mark.asyncio
async def test_write_off_costs_and_floors_stock(db):
    await make_ingredient("milk", quantity="300", cost_per_unit="0.05")
    shift = await shift_service.open_shift("Olena", 0)

    result = await write_off_service.create_write_off(WriteOffRequest(
        type="expired",
        performed_by="Olena",
        items=[{"ingredient_slug": "milk", "quantity": 500}],
    ))

    assert result.type == "expired"
    assert result.total_cost == 25.0
    assert result.shift_id == str(shift.id)
    assert result.items[0].unit_cost == 0.05
    assert result.items[0].ingredient_name == "Milk"

    milk = await Ingredient.get(slug="milk")
    assert milk.quantity == Decimal("0")
    tx = await InventoryTransaction.get(type=TransactionType.WRITEOFF)
    assert tx.quantity == Decimal("-500")
    assert tx.new_qty == Decimal("0")
    assert tx.notes == "Write-off: expired"
    assert tx.reference == f"WO-{result.id}"

    assert await WriteOffItem.all().count() == 1
    shift = await Shift.get(id=shift.id)
    assert shift.write_offs_total == Decimal("25")
    latest = (await shift_service.list_activities([shift.id]))[0]
    assert latest.type == ActivityType.WRITEOFF_CREATE


@pytest.mark.asyncio
async def test_write_off_uses_reason_as_notes(db):
    await make_ingredient("cups", quantity="50", cost_per_unit="1")

    result = await write_off_service.create_write_off(WriteOffRequest(
        type="damaged",
        performed_by="Taras",
        reason="Dropped a sleeve",
        items=[{"ingredient_slug": "cups", "quantity": 10}],
    ))

    assert result.shift_id is None
    assert result.reason == "Dropped a sleeve"
    tx = await InventoryTransaction.get(type=TransactionType.WRITEOFF)
    assert tx.notes == "Dropped a sleeve"


@pytest.mark.asyncio
async def test_write_off_validation(db):
    with pytest.raises(ValidationError) as excinfo:
        await write_off_service.create_write_off(WriteOffRequest(type="stolen", items=[]))
    details = excinfo.value.details
    assert "performed_by" in details
    assert "type" in details
    assert "items" in details
