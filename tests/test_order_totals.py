from decimal import Decimal

import pytest

from app.core.errors import ValidationError
from app.schemas.order import OrderItemDraft
from app.services.order_service import compute_discount, compute_totals, validate_order_request
from tests.factories import order_request


def _items(*pairs):
    return [OrderItemDraft(product_name="x", quantity=q, unit_price=p) for p, q in pairs]


def test_percentage_discount_scenario():
    subtotal, discount, total = compute_totals(_items((70, 2)), "percentage", 10)
    assert subtotal == Decimal("140.00")
    assert discount == Decimal("14.00")
    assert total == Decimal("126.00")


@pytest.mark.parametrize("discount_type,value,expected", [
    ("percentage", 500, Decimal("100.00")),
    ("percentage", -20, Decimal("0")),
    ("fixed", 30, Decimal("30.00")),
    ("fixed", 1000, Decimal("100.00")),
    ("fixed", -5, Decimal("0")),
    ("none", 50, Decimal("0")),
    (None, 50, Decimal("0")),
])
def test_discount_stays_within_subtotal(discount_type, value, expected):
    subtotal = Decimal("100.00")
    discount = compute_discount(subtotal, discount_type, value)
    assert discount == expected
    assert Decimal("0") <= discount <= subtotal


def test_oversized_discount_zeroes_total():
    subtotal, discount, total = compute_totals(_items((100, 1)), "percentage", 500)
    assert (subtotal, discount, total) == (Decimal("100.00"), Decimal("100.00"), Decimal("0.00"))


def test_validation_reports_each_bad_field():
    request = order_request(
        items=[
            {"product_name": "", "quantity": 0, "unit_price": -1},
            {"product_name": "Tea", "quantity": 1, "unit_price": 30},
        ],
        payment={"method": "bitcoin", "amount": -5},
        order_number=None,
        type="drive_through",
    )
    with pytest.raises(ValidationError) as excinfo:
        validate_order_request(request)
    details = excinfo.value.details
    assert excinfo.value.status_code == 400
    assert {
        "order_number", "type",
        "items.0.product_name", "items.0.quantity", "items.0.unit_price",
        "payment.method", "payment.amount",
    } <= set(details)
    assert not any(key.startswith("items.1") for key in details)


def test_validation_requires_items():
    request = order_request()
    request.items = []
    with pytest.raises(ValidationError) as excinfo:
        validate_order_request(request)
    assert "items" in excinfo.value.details


def test_valid_request_passes():
    validate_order_request(order_request(payment={"method": "qr", "amount": 140}))


def test_discount_value_must_fit_its_column():
    request = order_request(discount_type="percentage", discount_value=Decimal("1e12"))

    with pytest.raises(ValidationError) as excinfo:
        validate_order_request(request)

    assert set(excinfo.value.details) == {"discount_value"}


def test_huge_prices_and_payments_are_rejected():
    request = order_request(
        items=[{"product_name": "Latte", "quantity": 1, "unit_price": Decimal("1e11")}],
        payment={"method": "cash", "amount": Decimal("1e11")},
    )

    with pytest.raises(ValidationError) as excinfo:
        validate_order_request(request)

    assert set(excinfo.value.details) == {"items.0.unit_price", "payment.amount"}


def test_out_of_range_discount_within_bounds_is_still_clamped():
    validate_order_request(order_request(discount_type="percentage", discount_value=500))
