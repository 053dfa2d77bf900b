from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Tuple
from uuid import UUID
import logging

from tortoise.transactions import in_transaction

from app.core.errors import NotFoundError, StateConflictError
from app.core.money import ZERO, quantize_money, to_decimal
from app.core.validation import (
    FieldErrors,
    sanitize_optional,
    sanitize_string,
    validate_array,
    validate_enum,
    validate_number,
    validate_required,
)
from app.models.order import (
    DiscountType,
    Order,
    OrderItem,
    OrderStatus,
    OrderType,
    Payment,
    PaymentMethod,
    PaymentStatus,
)
from app.models.shift import ActivityType, Shift
from app.schemas.order import OrderDetailResponse, OrderItemDraft, OrderRequest
from app.services import inventory_service, shift_service
from app.services.order_state_machine import allowed_transitions, can_transition, timestamp_field

log = logging.getLogger("order_service")

HUNDRED = Decimal("100")
# Largest amount the unit_price column (12,2) holds; totals and discounts share the bound
MAX_AMOUNT = Decimal("9999999999.99")


def _values(enum_cls) -> List[str]:
    return [e.value for e in enum_cls]


def validate_order_request(request: OrderRequest) -> None:
    """Checks the whole request and raises one ValidationError listing every bad field."""
    errors = FieldErrors()
    order = request.order
    errors.check(
        "order", validate_required,
        {"order_number": order.order_number, "status": order.status, "type": order.type},
        ["order_number", "status", "type"],
    )
    if order.status:
        errors.check("status", validate_enum, order.status, "status", _values(OrderStatus))
    if order.type:
        errors.check("type", validate_enum, order.type, "type", _values(OrderType))
    errors.check("discount_type", validate_enum, order.discount_type or "none", "discount_type", _values(DiscountType))
    # Out-of-range discounts are clamped later, but the raw value is stored and must fit its column
    errors.check("discount_value", validate_number, order.discount_value, "discount_value",
                 min_value=-MAX_AMOUNT, max_value=MAX_AMOUNT)

    items = errors.check("items", validate_array, request.items, "items", min_length=1) or []
    for i, item in enumerate(items):
        prefix = f"items.{i}"
        if not sanitize_string(item.product_name):
            errors.add(f"{prefix}.product_name", "product_name is required")
        if item.quantity is None or item.quantity < 1:
            errors.add(f"{prefix}.quantity", "Must be at least 1")
        if item.unit_price is None:
            errors.add(f"{prefix}.unit_price", "unit_price is required")
        else:
            errors.check(f"{prefix}.unit_price", validate_number, item.unit_price, f"{prefix}.unit_price",
                         min_value=0, max_value=MAX_AMOUNT)

    if request.payment is not None:
        errors.check("payment.method", validate_enum, request.payment.method, "payment.method", _values(PaymentMethod))
        if request.payment.amount is None:
            errors.add("payment.amount", "payment.amount is required")
        else:
            errors.check("payment.amount", validate_number, request.payment.amount, "payment.amount",
                         min_value=0, max_value=MAX_AMOUNT)

    errors.raise_if_any()


def compute_subtotal(items: Iterable[OrderItemDraft]) -> Decimal:
    return quantize_money(sum((to_decimal(i.unit_price) * i.quantity for i in items), ZERO))


def compute_discount(subtotal: Decimal, discount_type: Optional[str], discount_value: Any) -> Decimal:
    """
    Discount in money. Percentages clamp to [0, 100] and fixed amounts to
    [0, subtotal], so the result always stays within [0, subtotal].
    """
    value = to_decimal(discount_value)
    if discount_type == DiscountType.PERCENTAGE.value:
        percent = min(max(value, ZERO), HUNDRED)
        return quantize_money(subtotal * percent / HUNDRED)
    if discount_type == DiscountType.FIXED.value:
        return quantize_money(min(max(value, ZERO), subtotal))
    return ZERO


def compute_totals(items: Iterable[OrderItemDraft], discount_type: Optional[str], discount_value: Any) -> Tuple[Decimal, Decimal, Decimal]:
    """Returns (subtotal, discount_amount, total)."""
    subtotal = compute_subtotal(items)
    discount_amount = compute_discount(subtotal, discount_type, discount_value)
    total = max(ZERO, subtotal - discount_amount)
    return subtotal, discount_amount, quantize_money(total)


async def create_order(request: OrderRequest) -> OrderDetailResponse:
    """
    Validates and persists an order with its items and payment, deducts
    recipe ingredients and books the sale on the open shift, all in one
    transaction. Skipped recipe/ingredient links come back as warnings.
    """
    validate_order_request(request)

    draft = request.order
    items = request.items
    discount_type = draft.discount_type or DiscountType.NONE.value
    subtotal, discount_amount, total = compute_totals(items, discount_type, draft.discount_value)

    async with in_transaction() as conn:
        shift = await shift_service.get_current_shift(conn)

        # 1. Create the Order header
        order = await Order.create(
            order_number=sanitize_string(draft.order_number),
            status=OrderStatus(draft.status),
            type=OrderType(draft.type),
            subtotal=subtotal,
            discount_type=DiscountType(discount_type),
            discount_value=quantize_money(draft.discount_value),
            discount_amount=discount_amount,
            total=total,
            table_number=sanitize_optional(draft.table_number),
            customer_name=sanitize_optional(draft.customer_name),
            customer_phone=sanitize_optional(draft.customer_phone),
            notes=sanitize_optional(draft.notes),
            created_by=sanitize_optional(draft.created_by),
            shift=shift,
            using_db=conn,
        )

        # 2. Create Order Item lines
        order_items = []
        for it in items:
            unit_price = quantize_money(it.unit_price)
            order_items.append(await OrderItem.create(
                order=order,
                product_name=sanitize_string(it.product_name),
                product_slug=it.product_slug,
                legacy_product_id=it.product_id,
                size_id=it.size_id,
                size_name=sanitize_optional(it.size_name),
                quantity=it.quantity,
                unit_price=unit_price,
                line_total=quantize_money(unit_price * it.quantity),
                using_db=conn,
            ))

        # 3. Payment, recorded as already processed
        payment = None
        if request.payment is not None:
            payment = await Payment.create(
                order=order,
                method=PaymentMethod(request.payment.method),
                amount=quantize_money(request.payment.amount),
                status=PaymentStatus.COMPLETED,
                processed_at=datetime.now(timezone.utc),
                using_db=conn,
            )

        # 4. Recipe-driven stock deduction
        warnings = await inventory_service.deduct_for_order(
            order.id, order_items, shift.id if shift else None, conn
        )

        # 5. Shift totals and activity log
        if shift and payment:
            shift = await shift_service.add_sale(shift.id, total, payment.method.value, conn)
            await shift_service.log_activity(shift.id, ActivityType.ORDER_CREATE, {
                "order_id": str(order.id),
                "order_number": order.order_number,
                "total": float(total),
                "payment_method": payment.method.value,
                "items_count": len(order_items),
            }, conn)

    log.info(f"Order {order.id} ({order.order_number}) created, total {total}, {len(warnings)} stock warning(s).")
    return OrderDetailResponse.from_models(order, order_items, payment, shift, warnings)


async def _load_details(order: Order) -> OrderDetailResponse:
    items = await OrderItem.filter(order_id=order.id).order_by("product_name")
    payment = await Payment.get_or_none(order_id=order.id)
    shift = await Shift.get_or_none(id=order.shift_id) if order.shift_id else None
    return OrderDetailResponse.from_models(order, items, payment, shift)


async def get_order(order_id: UUID) -> OrderDetailResponse:
    order = await Order.get_or_none(id=order_id)
    if not order:
        raise NotFoundError("Order", str(order_id))
    return await _load_details(order)


async def list_orders(
    status: Optional[OrderStatus] = None, shift_id: Optional[UUID] = None, limit: int = 50
) -> List[OrderDetailResponse]:
    query = Order.all()
    if status:
        query = query.filter(status=status)
    if shift_id:
        query = query.filter(shift_id=shift_id)
    orders = await query.order_by("-created_at").limit(limit).prefetch_related("items")
    if not orders:
        return []

    # One query per relation for the whole page
    order_ids = [o.id for o in orders]
    payments = {str(p.order_id): p for p in await Payment.filter(order_id__in=order_ids)}
    shift_ids = list({str(o.shift_id) for o in orders if o.shift_id})
    shifts = {str(s.id): s for s in await Shift.filter(id__in=shift_ids)} if shift_ids else {}
    return [
        OrderDetailResponse.from_models(
            o,
            sorted(o.items, key=lambda i: i.product_name),
            payments.get(str(o.id)),
            shifts.get(str(o.shift_id)),
        )
        for o in orders
    ]


async def update_order_status(order_id: UUID, new_status: str) -> OrderDetailResponse:
    """
    Moves an order along the status state machine and stamps prepared_at /
    completed_at where the transition calls for it.
    """
    validate_enum(new_status, "status", _values(OrderStatus))
    target = OrderStatus(new_status)

    async with in_transaction() as conn:
        order = await Order.filter(id=order_id).using_db(conn).select_for_update().first()
        if not order:
            raise NotFoundError("Order", str(order_id))

        old_status = order.status
        if not can_transition(old_status, target):
            allowed = [s.value for s in allowed_transitions(old_status)]
            raise StateConflictError(
                f"Cannot change order status from {old_status.value} to {target.value}",
                {
                    "current_status": old_status.value,
                    "requested_status": target.value,
                    "allowed_transitions": allowed,
                },
            )

        order.status = target
        stamp = timestamp_field(target)
        if stamp:
            setattr(order, stamp, datetime.now(timezone.utc))
        await order.save(using_db=conn)

        shift = await shift_service.get_current_shift(conn)
        if shift:
            await shift_service.log_activity(shift.id, ActivityType.ORDER_STATUS, {
                "order_id": str(order.id),
                "order_number": order.order_number,
                "from": old_status.value,
                "to": target.value,
            }, conn)

    log.info(f"Order {order.id} moved {old_status.value} -> {target.value}.")
    return await _load_details(order)
