from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from app.core.money import as_float


def _iso(value):
    return value.isoformat() if value else None


class ShiftOpenRequest(BaseModel):
    opened_by: Optional[str] = None
    opening_cash: Optional[Decimal] = Decimal("0")


class ShiftCloseRequest(BaseModel):
    closed_by: Optional[str] = None
    closing_cash: Optional[Decimal] = Decimal("0")
    notes: Optional[str] = None


class ShiftActivityResponse(BaseModel):
    id: str
    type: str
    timestamp: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_model(cls, activity) -> "ShiftActivityResponse":
        return cls(id=str(activity.id), type=activity.type.value, timestamp=_iso(activity.timestamp), details=activity.details or {})


class ShiftResponse(BaseModel):
    id: str
    status: str
    opened_at: Optional[str] = None
    opened_by: str
    closed_at: Optional[str] = None
    closed_by: Optional[str] = None
    opening_cash: float
    closing_cash: Optional[float] = None
    cash_sales: float
    card_sales: float
    total_sales: float
    orders_count: int
    write_offs_total: float
    supplies_total: float
    notes: Optional[str] = None
    activities: List[ShiftActivityResponse] = Field(default_factory=list)

    @classmethod
    def from_model(cls, shift, activities=()) -> "ShiftResponse":
        return cls(
            id=str(shift.id),
            status=shift.status.value,
            opened_at=_iso(shift.opened_at),
            opened_by=shift.opened_by,
            closed_at=_iso(shift.closed_at),
            closed_by=shift.closed_by,
            opening_cash=as_float(shift.opening_cash),
            closing_cash=as_float(shift.closing_cash) if shift.closing_cash is not None else None,
            cash_sales=as_float(shift.cash_sales),
            card_sales=as_float(shift.card_sales),
            total_sales=as_float(shift.total_sales),
            orders_count=shift.orders_count,
            write_offs_total=as_float(shift.write_offs_total),
            supplies_total=as_float(shift.supplies_total),
            notes=shift.notes,
            activities=[ShiftActivityResponse.from_model(a) for a in activities],
        )
