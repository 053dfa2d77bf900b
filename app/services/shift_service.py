"""
Shift ledger: open/close lifecycle, running totals and the activity log.

At most one shift is open at a time. The check below gives a friendly
error; the UNIQUE open_marker column is what actually holds the line when
two opens race.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction

from app.core.errors import NotFoundError, StateConflictError
from app.core.money import as_float, quantize_money, to_decimal
from app.core.validation import FieldErrors, sanitize_optional, sanitize_string, validate_number, validate_required
from app.models.order import PaymentMethod
from app.models.shift import OPEN_MARKER, ActivityType, Shift, ShiftActivity, ShiftStatus

log = logging.getLogger("shift_service")

ALREADY_OPEN = "A shift is already open. Close it before opening a new one."


def _now() -> datetime:
    return datetime.now(timezone.utc)


def totals_snapshot(shift: Shift) -> Dict[str, Any]:
    return {
        "cash_sales": as_float(shift.cash_sales),
        "card_sales": as_float(shift.card_sales),
        "total_sales": as_float(shift.total_sales),
        "orders_count": shift.orders_count,
        "write_offs_total": as_float(shift.write_offs_total),
        "supplies_total": as_float(shift.supplies_total),
    }


async def get_current_shift(conn: Any = None) -> Optional[Shift]:
    return await Shift.filter(status=ShiftStatus.OPEN).using_db(conn).first()


async def get_shift(shift_id: UUID) -> Shift:
    shift = await Shift.get_or_none(id=shift_id)
    if not shift:
        raise NotFoundError("Shift", str(shift_id))
    return shift


async def list_activities(shift_ids: List[UUID]) -> List[ShiftActivity]:
    """Activities of the given shifts, newest first."""
    if not shift_ids:
        return []
    return await ShiftActivity.filter(shift_id__in=shift_ids).order_by("-timestamp")


async def log_activity(
    shift_id: Optional[UUID], activity_type: ActivityType, details: Dict[str, Any], conn: Any = None
) -> Optional[ShiftActivity]:
    """Appends an activity to the shift's log. No-op when the shift is absent."""
    if not shift_id:
        return None
    if not await Shift.filter(id=shift_id).using_db(conn).exists():
        return None
    return await ShiftActivity.create(
        shift_id=shift_id,
        type=activity_type,
        timestamp=_now(),
        details=details,
        using_db=conn,
    )


async def open_shift(opened_by: Optional[str], opening_cash: Any = 0) -> Shift:
    errors = FieldErrors()
    errors.check("opened_by", validate_required, {"opened_by": opened_by}, ["opened_by"])
    cash = errors.check("opening_cash", validate_number, 0 if opening_cash is None else opening_cash,
                        "opening_cash", min_value=0)
    errors.raise_if_any()
    opened_by = sanitize_string(opened_by)

    try:
        async with in_transaction() as conn:
            existing = await get_current_shift(conn)
            if existing:
                raise StateConflictError(ALREADY_OPEN, {"shift_id": str(existing.id)})

            shift = await Shift.create(
                opened_at=_now(),
                opened_by=opened_by,
                opening_cash=quantize_money(cash),
                status=ShiftStatus.OPEN,
                open_marker=OPEN_MARKER,
                using_db=conn,
            )
            await log_activity(shift.id, ActivityType.SHIFT_OPEN, {
                "opened_by": opened_by,
                "opening_cash": as_float(shift.opening_cash),
            }, conn)
    except IntegrityError:
        # Lost the race against a concurrent open
        raise StateConflictError(ALREADY_OPEN)

    log.info(f"Shift {shift.id} opened by {opened_by} with {shift.opening_cash} cash.")
    return shift


async def close_shift(
    shift_id: UUID, closed_by: Optional[str], closing_cash: Any = 0, notes: Optional[str] = None
) -> Shift:
    errors = FieldErrors()
    errors.check("closed_by", validate_required, {"closed_by": closed_by}, ["closed_by"])
    cash = errors.check("closing_cash", validate_number, 0 if closing_cash is None else closing_cash,
                        "closing_cash", min_value=0)
    errors.raise_if_any()
    closed_by = sanitize_string(closed_by)

    async with in_transaction() as conn:
        shift = await Shift.filter(id=shift_id).using_db(conn).select_for_update().first()
        if not shift:
            raise NotFoundError("Shift", str(shift_id))
        if shift.status == ShiftStatus.CLOSED:
            raise StateConflictError("Shift is already closed", {"shift_id": str(shift_id)})

        shift.status = ShiftStatus.CLOSED
        shift.open_marker = None
        shift.closed_at = _now()
        shift.closed_by = closed_by
        shift.closing_cash = quantize_money(cash)
        shift.notes = sanitize_optional(notes) or shift.notes
        await shift.save(using_db=conn)

        await log_activity(shift.id, ActivityType.SHIFT_CLOSE, {
            "closed_by": closed_by,
            "closing_cash": as_float(shift.closing_cash),
            **totals_snapshot(shift),
        }, conn)

    log.info(f"Shift {shift.id} closed by {closed_by}.")
    return shift


async def _locked(shift_id: UUID, conn: Any) -> Optional[Shift]:
    return await Shift.filter(id=shift_id).using_db(conn).select_for_update().first()


async def add_sale(shift_id: UUID, amount: Any, payment_method: str, conn: Any = None) -> Optional[Shift]:
    """
    Books a sale against the shift's running totals.

    Only "cash" lands in cash_sales; card, qr, online and other all land in card_sales.
    """
    if conn is None:
        async with in_transaction() as tx_conn:
            return await add_sale(shift_id, amount, payment_method, tx_conn)

    shift = await _locked(shift_id, conn)
    if not shift:
        return None
    amount = to_decimal(amount)
    shift.total_sales = to_decimal(shift.total_sales) + amount
    shift.orders_count = (shift.orders_count or 0) + 1
    if payment_method == PaymentMethod.CASH.value:
        shift.cash_sales = to_decimal(shift.cash_sales) + amount
    else:
        shift.card_sales = to_decimal(shift.card_sales) + amount
    await shift.save(update_fields=["total_sales", "orders_count", "cash_sales", "card_sales"], using_db=conn)
    return shift


async def add_write_off(shift_id: UUID, amount: Any, conn: Any = None) -> Optional[Shift]:
    if conn is None:
        async with in_transaction() as tx_conn:
            return await add_write_off(shift_id, amount, tx_conn)

    shift = await _locked(shift_id, conn)
    if not shift:
        return None
    shift.write_offs_total = to_decimal(shift.write_offs_total) + to_decimal(amount)
    await shift.save(update_fields=["write_offs_total"], using_db=conn)
    return shift


async def add_supply(shift_id: UUID, amount: Any, conn: Any = None) -> Optional[Shift]:
    if conn is None:
        async with in_transaction() as tx_conn:
            return await add_supply(shift_id, amount, tx_conn)

    shift = await _locked(shift_id, conn)
    if not shift:
        return None
    shift.supplies_total = to_decimal(shift.supplies_total) + to_decimal(amount)
    await shift.save(update_fields=["supplies_total"], using_db=conn)
    return shift
