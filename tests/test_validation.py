from decimal import Decimal

import pytest

from app.core.errors import ValidationError
from app.core.validation import (
    FieldErrors,
    sanitize_string,
    validate_array,
    validate_enum,
    validate_number,
    validate_required,
)


def test_validate_required_lists_every_missing_field():
    with pytest.raises(ValidationError) as excinfo:
        validate_required({"a": "x", "b": "", "c": None}, ["a", "b", "c", "d"])
    assert excinfo.value.status_code == 400
    assert set(excinfo.value.details) == {"b", "c", "d"}


def test_validate_number_bounds():
    assert validate_number("12.5", "price", min_value=0) == Decimal("12.5")
    with pytest.raises(ValidationError) as excinfo:
        validate_number(-1, "price", min_value=0)
    assert excinfo.value.details == {"price": "Must be at least 0"}
    with pytest.raises(ValidationError):
        validate_number(101, "discount", max_value=100)
    with pytest.raises(ValidationError):
        validate_number("abc", "price")
    with pytest.raises(ValidationError):
        validate_number(True, "price")


def test_validate_enum_and_array():
    assert validate_enum("cash", "method", ["cash", "card"]) == "cash"
    with pytest.raises(ValidationError):
        validate_enum("bitcoin", "method", ["cash", "card"])
    assert validate_array([1], "items", min_length=1) == [1]
    with pytest.raises(ValidationError):
        validate_array([], "items", min_length=1)
    with pytest.raises(ValidationError):
        validate_array("nope", "items")


def test_sanitize_string():
    assert sanitize_string("  <b>Latte</b> ") == "bLatte/b"
    assert sanitize_string(None) == ""
    assert len(sanitize_string("x" * 5000)) == 2000


def test_field_errors_collects_all():
    errors = FieldErrors()
    errors.check("a", validate_number, "x", "a")
    errors.check("b", validate_enum, "z", "b", ["y"])
    errors.add("c", "broken")
    with pytest.raises(ValidationError) as excinfo:
        errors.raise_if_any()
    assert set(excinfo.value.details) == {"a", "b", "c"}
