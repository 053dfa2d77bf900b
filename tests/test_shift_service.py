from decimal import Decimal
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from app.core.errors import NotFoundError, StateConflictError, ValidationError
from app.models.shift import ActivityType, Shift, ShiftActivity, ShiftStatus
from app.services import shift_service


@pytest.mark.asyncio
async def test_open_shift_initialises_totals_and_logs(db):
    shift = await shift_service.open_shift("Olena", 500)

    assert shift.status == ShiftStatus.OPEN
    assert shift.opening_cash == Decimal("500")
    assert shift.total_sales == Decimal("0")
    assert shift.orders_count == 0

    activities = await shift_service.list_activities([shift.id])
    assert [a.type for a in activities] == [ActivityType.SHIFT_OPEN]
    assert activities[0].details["opening_cash"] == 500.0


@pytest.mark.asyncio
async def test_only_one_open_shift(db):
    first = await shift_service.open_shift("Olena", 100)

    with pytest.raises(StateConflictError) as excinfo:
        await shift_service.open_shift("Taras", 100)
    assert excinfo.value.status_code == 400
    assert excinfo.value.details["shift_id"] == str(first.id)
    assert await Shift.filter(status=ShiftStatus.OPEN).count() == 1

    await shift_service.close_shift(first.id, "Olena", 100)
    second = await shift_service.open_shift("Taras", 50)
    assert second.status == ShiftStatus.OPEN


@pytest.mark.asyncio
async def test_unique_open_marker_blocks_a_racing_open(db):
    await shift_service.open_shift("Olena", 100)

    # Both opens passed the pre-check; only the UNIQUE column is left to stop the second
    with patch.object(shift_service, "get_current_shift", AsyncMock(return_value=None)):
        with pytest.raises(StateConflictError) as excinfo:
            await shift_service.open_shift("Taras", 100)

    assert excinfo.value.message == shift_service.ALREADY_OPEN
    assert await Shift.filter(status=ShiftStatus.OPEN).count() == 1
    assert await Shift.all().count() == 1


@pytest.mark.asyncio
async def test_open_shift_validation(db):
    with pytest.raises(ValidationError) as excinfo:
        await shift_service.open_shift("", -10)
    assert set(excinfo.value.details) == {"opened_by", "opening_cash"}


@pytest.mark.asyncio
async def test_close_shift(db):
    shift = await shift_service.open_shift("Olena", 500)
    await shift_service.add_sale(shift.id, 100, "cash")

    closed = await shift_service.close_shift(shift.id, "Olena", 580, notes="short by 20")

    assert closed.status == ShiftStatus.CLOSED
    assert closed.closed_by == "Olena"
    assert closed.closing_cash == Decimal("580")
    assert closed.closed_at is not None
    assert closed.open_marker is None
    assert closed.notes == "short by 20"

    latest = (await shift_service.list_activities([shift.id]))[0]
    assert latest.type == ActivityType.SHIFT_CLOSE
    assert latest.details["cash_sales"] == 100.0
    assert latest.details["closing_cash"] == 580.0

    with pytest.raises(StateConflictError):
        await shift_service.close_shift(shift.id, "Olena", 580)


@pytest.mark.asyncio
async def test_close_unknown_shift(db):
    with pytest.raises(NotFoundError):
        await shift_service.close_shift(uuid4(), "Olena", 0)


@pytest.mark.asyncio
async def test_add_sale_buckets(db):
    shift = await shift_service.open_shift("Olena", 0)
    await shift_service.add_sale(shift.id, 100, "cash")
    await shift_service.add_sale(shift.id, 40, "card")
    await shift_service.add_sale(shift.id, 25, "qr")
    await shift_service.add_sale(shift.id, 10, "online")

    shift = await Shift.get(id=shift.id)
    assert shift.cash_sales == Decimal("100")
    # Every non-cash method is folded into card_sales
    assert shift.card_sales == Decimal("75")
    assert shift.total_sales == Decimal("175")
    assert shift.orders_count == 4


@pytest.mark.asyncio
async def test_write_off_and_supply_totals(db):
    shift = await shift_service.open_shift("Olena", 0)
    await shift_service.add_write_off(shift.id, Decimal("12.50"))
    await shift_service.add_supply(shift.id, 300)
    await shift_service.add_supply(shift.id, 200)

    shift = await Shift.get(id=shift.id)
    assert shift.write_offs_total == Decimal("12.5")
    assert shift.supplies_total == Decimal("500")
    assert shift.total_sales == Decimal("0")


@pytest.mark.asyncio
async def test_counters_ignore_unknown_shift(db):
    assert await shift_service.add_sale(uuid4(), 10, "cash") is None
    assert await shift_service.log_activity(uuid4(), ActivityType.ORDER_CREATE, {}) is None
    assert await shift_service.log_activity(None, ActivityType.ORDER_CREATE, {}) is None
    assert await ShiftActivity.all().count() == 0


@pytest.mark.asyncio
async def test_activities_are_newest_first(db):
    shift = await shift_service.open_shift("Olena", 0)
    await shift_service.log_activity(shift.id, ActivityType.ORDER_CREATE, {"n": 1})
    await shift_service.log_activity(shift.id, ActivityType.ORDER_STATUS, {"n": 2})

    activities = await shift_service.list_activities([shift.id])
    assert [a.type for a in activities] == [
        ActivityType.ORDER_STATUS, ActivityType.ORDER_CREATE, ActivityType.SHIFT_OPEN,
    ]


@pytest.mark.asyncio
async def test_current_shift(db):
    assert await shift_service.get_current_shift() is None
    shift = await shift_service.open_shift("Olena", 0)
    assert (await shift_service.get_current_shift()).id == shift.id
