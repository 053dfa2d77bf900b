"""
Generic field checks shared by every mutating operation.

The single-value helpers raise ValidationError straight away. FieldErrors
collects problems across a whole request body so the client receives one
message per offending field.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from app.core.errors import ValidationError

MAX_STRING_LENGTH = 2000
_HTML_BRACKETS = re.compile(r"[<>]")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def validate_required(data: Dict[str, Any], fields: Iterable[str]) -> None:
    errors = {field: f"{field} is required" for field in fields if _is_blank(data.get(field))}
    if errors:
        raise ValidationError("Validation failed", errors)


def validate_number(
    value: Any,
    field: str,
    min_value: Optional[Decimal] = None,
    max_value: Optional[Decimal] = None,
) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", {field: "Must be a number"})
    try:
        number = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", {field: "Must be a number"})
    if not number.is_finite():
        raise ValidationError(f"{field} must be a number", {field: "Must be a number"})
    if min_value is not None and number < Decimal(str(min_value)):
        raise ValidationError(f"{field} must be at least {min_value}", {field: f"Must be at least {min_value}"})
    if max_value is not None and number > Decimal(str(max_value)):
        raise ValidationError(f"{field} must be at most {max_value}", {field: f"Must be at most {max_value}"})
    return number


def validate_enum(value: Any, field: str, allowed: Iterable[str]) -> str:
    allowed = [str(a) for a in allowed]
    if value not in allowed:
        raise ValidationError(f"{field} must be one of: {', '.join(allowed)}", {field: "Invalid value"})
    return value


def validate_array(value: Any, field: str, min_length: int = 0) -> List[Any]:
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{field} must be an array", {field: "Must be an array"})
    if len(value) < min_length:
        raise ValidationError(
            f"{field} must have at least {min_length} items",
            {field: f"Must have at least {min_length} items"},
        )
    return list(value)


def sanitize_string(value: Any) -> str:
    """Strips HTML brackets, trims and caps length. Non-strings become ''."""
    if not isinstance(value, str):
        return ""
    return _HTML_BRACKETS.sub("", value).strip()[:MAX_STRING_LENGTH]


def sanitize_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return sanitize_string(value) or None


class FieldErrors:
    """Collects field-level messages and raises them together."""

    def __init__(self):
        self.errors: Dict[str, str] = {}

    def check(self, field: str, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except ValidationError as e:
            self.errors.update(e.details or {field: e.message})
            return None

    def add(self, field: str, message: str) -> None:
        self.errors.setdefault(field, message)

    def raise_if_any(self, message: str = "Validation failed") -> None:
        if self.errors:
            raise ValidationError(message, dict(self.errors))
