from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional

from app.core.money import as_float
from app.schemas.inventory import StockWarning


def _iso(value):
    return value.isoformat() if value else None


class OrderDraft(BaseModel):
    """Order header fields. Presence and enum values are checked by the service so errors come back per field."""
    order_number: Optional[str] = None
    status: Optional[str] = None
    type: Optional[str] = None
    discount_type: Optional[str] = "none"
    discount_value: Decimal = Decimal("0")
    table_number: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None


class OrderItemDraft(BaseModel):
    """Schema for a single item in the order request."""
    product_name: Optional[str] = None
    product_slug: Optional[str] = Field(None, description="Stable product key used for recipe lookup.")
    product_id: Optional[int] = Field(None, description="Legacy numeric product id, used when no slug is given.")
    size_id: Optional[str] = None
    size_name: Optional[str] = None
    quantity: Optional[int] = None
    unit_price: Optional[Decimal] = None


class PaymentDraft(BaseModel):
    method: Optional[str] = None
    amount: Optional[Decimal] = None


class OrderRequest(BaseModel):
    """Schema for the full order placement request body."""
    order: OrderDraft
    items: Optional[List[OrderItemDraft]] = None
    payment: Optional[PaymentDraft] = None


class OrderStatusUpdate(BaseModel):
    """Schema for updating an order status."""
    status: str


class OrderItemResponse(BaseModel):
    """Schema for an item inside the detailed order response."""
    id: str
    product_name: str
    product_slug: Optional[str] = None
    product_id: Optional[int] = None
    size_id: Optional[str] = None
    size_name: Optional[str] = None
    quantity: int
    unit_price: float
    line_total: float

    @classmethod
    def from_model(cls, item) -> "OrderItemResponse":
        return cls(
            id=str(item.id),
            product_name=item.product_name,
            product_slug=item.product_slug,
            product_id=item.legacy_product_id,
            size_id=item.size_id,
            size_name=item.size_name,
            quantity=item.quantity,
            unit_price=as_float(item.unit_price),
            line_total=as_float(item.line_total),
        )


class PaymentResponse(BaseModel):
    id: str
    method: str
    amount: float
    status: str
    processed_at: Optional[str] = None

    @classmethod
    def from_model(cls, payment) -> "PaymentResponse":
        return cls(
            id=str(payment.id),
            method=payment.method.value,
            amount=as_float(payment.amount),
            status=payment.status.value,
            processed_at=_iso(payment.processed_at),
        )


class OrderShiftSummary(BaseModel):
    id: str
    status: str
    opened_at: Optional[str] = None
    opened_by: str

    @classmethod
    def from_model(cls, shift) -> "OrderShiftSummary":
        return cls(id=str(shift.id), status=shift.status.value, opened_at=_iso(shift.opened_at), opened_by=shift.opened_by)


class OrderDetailResponse(BaseModel):
    """Order joined with its items, payment and shift."""
    id: str
    order_number: str
    status: str
    type: str
    subtotal: float
    discount_type: str
    discount_value: float
    discount_amount: float
    total: float
    table_number: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    prepared_at: Optional[str] = None
    completed_at: Optional[str] = None
    items: List[OrderItemResponse] = Field(default_factory=list)
    payment: Optional[PaymentResponse] = None
    shift: Optional[OrderShiftSummary] = None
    warnings: List[StockWarning] = Field(default_factory=list)

    @classmethod
    def from_models(cls, order, items=(), payment=None, shift=None, warnings=()) -> "OrderDetailResponse":
        return cls(
            id=str(order.id),
            order_number=order.order_number,
            status=order.status.value,
            type=order.type.value,
            subtotal=as_float(order.subtotal),
            discount_type=order.discount_type.value,
            discount_value=as_float(order.discount_value),
            discount_amount=as_float(order.discount_amount),
            total=as_float(order.total),
            table_number=order.table_number,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            notes=order.notes,
            created_by=order.created_by,
            created_at=_iso(order.created_at),
            prepared_at=_iso(order.prepared_at),
            completed_at=_iso(order.completed_at),
            items=[OrderItemResponse.from_model(i) for i in items],
            payment=PaymentResponse.from_model(payment) if payment else None,
            shift=OrderShiftSummary.from_model(shift) if shift else None,
            warnings=list(warnings),
        )
