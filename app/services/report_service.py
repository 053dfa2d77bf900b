"""
Read-only reconciliation (X/Z) and calendar (daily/monthly/products) reports.

Nothing here writes. Shift reports recompute sales from the orders linked
to the shift instead of trusting the shift's running counters, so they
double as a check on them. Calendar days are cut in REPORT_TIMEZONE.
"""
import calendar
from collections import OrderedDict
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID
from zoneinfo import ZoneInfo

from tortoise.expressions import Q

from app.core.config import REPORT_TIMEZONE, TOP_PRODUCTS_LIMIT
from app.core.errors import NotFoundError, ValidationError
from app.core.money import ZERO, as_float, quantize_money, to_decimal
from app.models.order import Order, OrderItem, OrderStatus, OrderType, Payment, PaymentMethod
from app.models.shift import Shift, ShiftStatus
from app.models.supply import Supply, SupplyStatus
from app.models.write_off import WriteOff
from app.services import shift_service

END_OF_DAY = time(23, 59, 59, 999000)


# ----------- Calendar helpers -----------

def report_tz() -> ZoneInfo:
    return ZoneInfo(REPORT_TIMEZONE)


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """UTC instants of 00:00:00.000 and 23:59:59.999 local time on `day`."""
    tz = report_tz()
    start = datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)
    end = datetime.combine(day, END_OF_DAY, tzinfo=tz).astimezone(timezone.utc)
    return start, end


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    last_day = calendar.monthrange(year, month)[1]
    return day_bounds(date(year, month, 1))[0], day_bounds(date(year, month, last_day))[1]


def local_date(moment: datetime) -> date:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(report_tz()).date()


def previous_month(year: int, month: int) -> Tuple[int, int]:
    return (year - 1, 12) if month == 1 else (year, month - 1)


def parse_report_date(value: Optional[str]) -> date:
    if not value:
        raise ValidationError("date query parameter is required (YYYY-MM-DD)", {"date": "date is required"})
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError("date must be formatted as YYYY-MM-DD", {"date": "Invalid date"})


def parse_year_month(year: Optional[Any], month: Optional[Any]) -> Tuple[int, int]:
    details = {}
    if year in (None, ""):
        details["year"] = "year is required"
    if month in (None, ""):
        details["month"] = "month is required"
    if details:
        raise ValidationError("year and month query parameters are required", details)
    try:
        y, m = int(year), int(month)
    except (TypeError, ValueError):
        raise ValidationError("year and month must be integers", {"year": "Must be a number", "month": "Must be a number"})
    if not 1 <= m <= 12:
        raise ValidationError("month must be between 1 and 12", {"month": "Must be between 1 and 12"})
    if not 1 <= y <= 9999:
        raise ValidationError("year is out of range", {"year": "Invalid year"})
    return y, m


def _money(value: Any) -> float:
    return as_float(quantize_money(value))


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# ----------- Data access -----------

async def _payments_by_order(orders: Iterable[Order]) -> Dict[UUID, Payment]:
    ids = [o.id for o in orders]
    if not ids:
        return {}
    return {p.order_id: p for p in await Payment.filter(order_id__in=ids)}


async def _items_by_order(orders: Iterable[Order]) -> Dict[UUID, List[OrderItem]]:
    ids = [o.id for o in orders]
    grouped: Dict[UUID, List[OrderItem]] = {i: [] for i in ids}
    if ids:
        for item in await OrderItem.filter(order_id__in=ids):
            grouped[item.order_id].append(item)
    return grouped


def _method(payment: Optional[Payment]) -> Optional[str]:
    return payment.method.value if payment else None


def _is_live(order: Order) -> bool:
    return order.status != OrderStatus.CANCELLED


def _sum(values: Iterable[Any]) -> Decimal:
    return sum((to_decimal(v) for v in values), ZERO)


# ----------- Shift reports -----------

async def _shift_report(shift_id: Any, with_closing: bool) -> Dict[str, Any]:
    if not shift_id:
        raise ValidationError("shift_id query parameter is required", {"shift_id": "shift_id is required"})
    try:
        shift_uuid = shift_id if isinstance(shift_id, UUID) else UUID(str(shift_id))
    except ValueError:
        raise NotFoundError("Shift", str(shift_id))
    shift = await Shift.get_or_none(id=shift_uuid)
    if not shift:
        raise NotFoundError("Shift", str(shift_id))

    orders = await Order.filter(shift_id=shift.id).exclude(status=OrderStatus.CANCELLED)
    payments = await _payments_by_order(orders)
    cash_sales = _sum(o.total for o in orders if _method(payments.get(o.id)) == PaymentMethod.CASH.value)
    card_sales = _sum(o.total for o in orders if _method(payments.get(o.id)) == PaymentMethod.CARD.value)
    total_sales = _sum(o.total for o in orders)

    window_end = shift.closed_at or datetime.now(timezone.utc)
    write_offs = await WriteOff.filter(created_at__gte=shift.opened_at, created_at__lte=window_end)
    supplies = await Supply.filter(created_at__gte=shift.opened_at, created_at__lte=window_end)

    opening_cash = to_decimal(shift.opening_cash)
    expected_cash = opening_cash + cash_sales
    duration = (window_end - shift.opened_at).total_seconds() / 3600

    report = {
        "shift_id": str(shift.id),
        "status": shift.status.value,
        "opened_at": _iso(shift.opened_at),
        "opened_by": shift.opened_by or "",
        "opening_cash": _money(opening_cash),
        "cash_sales": _money(cash_sales),
        "card_sales": _money(card_sales),
        "total_sales": _money(total_sales),
        "orders_count": len(orders),
        "write_offs_total": _money(_sum(w.total_cost for w in write_offs)),
        "supplies_total": _money(_sum(s.total_cost for s in supplies)),
        "expected_cash": _money(expected_cash),
        "duration": round(duration, 2),
    }
    if with_closing:
        closing_cash = to_decimal(shift.closing_cash)
        report.update({
            "closed_at": _iso(shift.closed_at),
            "closed_by": shift.closed_by or "",
            "closing_cash": _money(closing_cash),
            "cash_difference": _money(closing_cash - expected_cash),
        })
    return report


async def get_x_report(shift_id: Any) -> Dict[str, Any]:
    """Mid-shift snapshot: recomputed sales, expected cash in the drawer, duration."""
    return await _shift_report(shift_id, with_closing=False)


async def get_z_report(shift_id: Any) -> Dict[str, Any]:
    """End-of-shift snapshot: the X figures plus counted cash and its variance from expected."""
    return await _shift_report(shift_id, with_closing=True)


# ----------- Calendar reports -----------

def _shift_summary(shift: Shift) -> Dict[str, Any]:
    return {
        "id": str(shift.id),
        "status": shift.status.value,
        "opened_at": _iso(shift.opened_at),
        "opened_by": shift.opened_by,
        "closed_at": _iso(shift.closed_at),
        "closed_by": shift.closed_by,
        "opening_cash": _money(shift.opening_cash),
        "closing_cash": _money(shift.closing_cash) if shift.closing_cash is not None else None,
        **shift_service.totals_snapshot(shift),
    }


def _order_summary(order: Order, payment: Optional[Payment], items: List[OrderItem]) -> Dict[str, Any]:
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "status": order.status.value,
        "type": order.type.value,
        "total": _money(order.total),
        "payment_method": _method(payment),
        "items_count": sum(i.quantity for i in items),
        "shift_id": str(order.shift_id) if order.shift_id else None,
        "created_at": _iso(order.created_at),
    }


def _top_products(orders: Iterable[Order], items: Dict[UUID, List[OrderItem]], limit: int) -> List[Dict[str, Any]]:
    products: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
    for order in orders:
        for item in items.get(order.id, []):
            key = item.product_name or item.product_slug or f"product-{item.legacy_product_id}"
            entry = products.setdefault(key, {"name": key, "quantity": 0, "revenue": ZERO})
            entry["quantity"] += item.quantity or 1
            entry["revenue"] += to_decimal(item.unit_price) * (item.quantity or 1)
    ranked = sorted(products.values(), key=lambda p: p["quantity"], reverse=True)[:limit]
    return [{**p, "revenue": _money(p["revenue"])} for p in ranked]


async def get_daily_report(day: Any) -> Dict[str, Any]:
    """
    Everything that happened on one calendar day, including shifts that
    opened earlier and were still running when the day started.

    payment_breakdown has one key per PaymentMethod, so "online" is reported
    on its own instead of being folded into "other".
    """
    if not isinstance(day, date):
        day = parse_report_date(day)
    start, end = day_bounds(day)

    orders = await Order.filter(created_at__gte=start, created_at__lte=end).order_by("-created_at")
    payments = await _payments_by_order(orders)
    items = await _items_by_order(orders)

    opened_today = await Shift.filter(opened_at__gte=start, opened_at__lte=end).order_by("opened_at")
    carry_over = await Shift.filter(
        Q(closed_at__gte=start) | Q(status=ShiftStatus.OPEN),
        opened_at__lt=start,
    ).order_by("opened_at")
    shifts = list(carry_over) + list(opened_today)

    write_offs = await WriteOff.filter(created_at__gte=start, created_at__lte=end).order_by("-created_at")
    supplies = await Supply.filter(created_at__gte=start, created_at__lte=end).order_by("-created_at")
    activities = await shift_service.list_activities([s.id for s in shifts])

    live = [o for o in orders if _is_live(o)]
    cancelled_count = len(orders) - len(live)
    total_revenue = _sum(o.total for o in live)
    cash_sales = _sum(o.total for o in live if _method(payments.get(o.id)) == PaymentMethod.CASH.value)

    payment_breakdown = {m.value: ZERO for m in PaymentMethod}
    order_type_breakdown = {t.value: 0 for t in OrderType}
    for order in live:
        method = _method(payments.get(order.id)) or PaymentMethod.OTHER.value
        payment_breakdown[method] += to_decimal(order.total)
        order_type_breakdown[order.type.value] += 1

    return {
        "date": day.isoformat(),
        "orders": [_order_summary(o, payments.get(o.id), items.get(o.id, [])) for o in orders],
        "shifts": [_shift_summary(s) for s in shifts],
        "write_offs": [
            {"id": str(w.id), "type": w.type.value, "total_cost": _money(w.total_cost),
             "performed_by": w.performed_by, "created_at": _iso(w.created_at)}
            for w in write_offs
        ],
        "supplies": [
            {"id": str(s.id), "supplier_name": s.supplier_name, "status": s.status.value,
             "total_cost": _money(s.total_cost), "created_at": _iso(s.created_at)}
            for s in supplies
        ],
        "activities": [
            {"id": str(a.id), "shift_id": str(a.shift_id), "type": a.type.value,
             "timestamp": _iso(a.timestamp), "details": a.details}
            for a in activities
        ],
        "summary": {
            "total_revenue": _money(total_revenue),
            "orders_count": len(live),
            "cash_sales": _money(cash_sales),
            "card_sales": _money(total_revenue - cash_sales),
            "write_offs_total": _money(_sum(w.total_cost for w in write_offs)),
            "supplies_total": _money(_sum(s.total_cost for s in supplies)),
            "avg_order": _money(total_revenue / len(live)) if live else 0.0,
        },
        "top_products": _top_products(live, items, TOP_PRODUCTS_LIMIT),
        "payment_breakdown": {k: _money(v) for k, v in payment_breakdown.items()},
        "order_type_breakdown": order_type_breakdown,
        "cancelled_count": cancelled_count,
    }


def revenue_change(current: Decimal, previous: Decimal) -> float:
    """Percent change against the previous month, 100 when growing from zero, 0 when both are zero."""
    if previous > ZERO:
        return round(float((current - previous) / previous * 100), 2)
    return 100.0 if current > ZERO else 0.0


async def _revenue_between(start: datetime, end: datetime) -> Decimal:
    orders = await Order.filter(created_at__gte=start, created_at__lte=end).exclude(status=OrderStatus.CANCELLED)
    return _sum(o.total for o in orders)


async def get_monthly_report(year: Any, month: Any) -> Dict[str, Any]:
    """
    Per-day buckets for every day of the month plus a month summary.
    Cancelled orders are left out of both this month and the previous one.
    """
    year, month = parse_year_month(year, month)
    start, end = month_bounds(year, month)

    orders = await Order.filter(created_at__gte=start, created_at__lte=end).exclude(
        status=OrderStatus.CANCELLED
    ).order_by("created_at")
    payments = await _payments_by_order(orders)
    shifts = await Shift.filter(opened_at__gte=start, opened_at__lte=end)
    write_offs = await WriteOff.filter(created_at__gte=start, created_at__lte=end)
    supplies = await Supply.filter(created_at__gte=start, created_at__lte=end, status=SupplyStatus.RECEIVED)

    days: "OrderedDict[date, Dict[str, Any]]" = OrderedDict()
    for d in range(1, calendar.monthrange(year, month)[1] + 1):
        days[date(year, month, d)] = {
            "revenue": ZERO, "orders_count": 0, "cash_sales": ZERO, "card_sales": ZERO,
            "write_offs_total": ZERO, "supplies_total": ZERO, "shifts_count": 0,
        }

    for order in orders:
        bucket = days.get(local_date(order.created_at))
        if bucket is None:
            continue
        total = to_decimal(order.total)
        bucket["revenue"] += total
        bucket["orders_count"] += 1
        if _method(payments.get(order.id)) == PaymentMethod.CASH.value:
            bucket["cash_sales"] += total
        else:
            bucket["card_sales"] += total
    for shift in shifts:
        bucket = days.get(local_date(shift.opened_at))
        if bucket is not None:
            bucket["shifts_count"] += 1
    for write_off in write_offs:
        bucket = days.get(local_date(write_off.created_at))
        if bucket is not None:
            bucket["write_offs_total"] += to_decimal(write_off.total_cost)
    for supply in supplies:
        bucket = days.get(local_date(supply.created_at))
        if bucket is not None:
            bucket["supplies_total"] += to_decimal(supply.total_cost)

    total_revenue = _sum(o.total for o in orders)
    prev_start, prev_end = month_bounds(*previous_month(year, month))
    previous_revenue = await _revenue_between(prev_start, prev_end)

    money_keys = ("revenue", "cash_sales", "card_sales", "write_offs_total", "supplies_total")
    return {
        "year": year,
        "month": month,
        "days": [
            {"date": d.isoformat(), **{k: (_money(v) if k in money_keys else v) for k, v in bucket.items()}}
            for d, bucket in days.items()
        ],
        "summary": {
            "total_revenue": _money(total_revenue),
            "total_orders": len(orders),
            "avg_order": _money(total_revenue / len(orders)) if orders else 0.0,
            "total_shifts": len(shifts),
            "total_write_offs": _money(_sum(w.total_cost for w in write_offs)),
            "total_supplies": _money(_sum(s.total_cost for s in supplies)),
            "previous_month_revenue": _money(previous_revenue),
            "revenue_change": revenue_change(total_revenue, previous_revenue),
        },
    }


async def get_products_report(date_from: Any, date_to: Any) -> Dict[str, Any]:
    """Quantity and revenue per product over an inclusive date range, highest revenue first."""
    if not date_from or not date_to:
        raise ValidationError(
            "date_from and date_to query parameters are required (YYYY-MM-DD)",
            {k: f"{k} is required" for k, v in (("date_from", date_from), ("date_to", date_to)) if not v},
        )
    first = date_from if isinstance(date_from, date) else parse_report_date(date_from)
    last = date_to if isinstance(date_to, date) else parse_report_date(date_to)
    if last < first:
        raise ValidationError("date_to must not be before date_from", {"date_to": "Must not be before date_from"})

    start, end = day_bounds(first)[0], day_bounds(last)[1]
    orders = await Order.filter(created_at__gte=start, created_at__lte=end).exclude(status=OrderStatus.CANCELLED)
    items = await _items_by_order(orders)

    products: Dict[str, Dict[str, Any]] = {}
    for order in orders:
        for item in items.get(order.id, []):
            key = item.product_slug or item.product_name
            entry = products.setdefault(key, {
                "product_slug": item.product_slug,
                "product_name": item.product_name,
                "quantity_sold": 0,
                "revenue": ZERO,
            })
            entry["quantity_sold"] += item.quantity
            entry["revenue"] += to_decimal(item.unit_price) * item.quantity

    rows = sorted(products.values(), key=lambda p: p["revenue"], reverse=True)
    return {
        "date_from": first.isoformat(),
        "date_to": last.isoformat(),
        "products": [
            {
                **p,
                "revenue": _money(p["revenue"]),
                "avg_price": _money(p["revenue"] / p["quantity_sold"]) if p["quantity_sold"] else 0.0,
            }
            for p in rows
        ],
    }
