from pydantic import BaseModel, Field
from typing import List, Optional

from app.core.money import as_float
from app.schemas.inventory import StockLineRequest, StockWarning


def _iso(value):
    return value.isoformat() if value else None


class SupplyRequest(BaseModel):
    supplier_name: Optional[str] = None
    items: Optional[List[StockLineRequest]] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None


class SupplyReceiveRequest(BaseModel):
    received_by: Optional[str] = None


class StockLineResponse(BaseModel):
    ingredient_slug: Optional[str] = None
    ingredient_id: Optional[int] = None
    ingredient_name: str
    quantity: float
    unit_cost: float
    total_cost: float

    @classmethod
    def from_model(cls, line) -> "StockLineResponse":
        return cls(
            ingredient_slug=line.ingredient_slug,
            ingredient_id=line.legacy_ingredient_id,
            ingredient_name=line.ingredient_name,
            quantity=as_float(line.quantity),
            unit_cost=as_float(line.unit_cost),
            total_cost=as_float(line.total_cost),
        )


class SupplyResponse(BaseModel):
    id: str
    supplier_name: str
    status: str
    total_cost: float
    notes: Optional[str] = None
    created_by: Optional[str] = None
    received_by: Optional[str] = None
    received_at: Optional[str] = None
    created_at: Optional[str] = None
    items: List[StockLineResponse] = Field(default_factory=list)
    warnings: List[StockWarning] = Field(default_factory=list)

    @classmethod
    def from_models(cls, supply, items=(), warnings=()) -> "SupplyResponse":
        return cls(
            id=str(supply.id),
            supplier_name=supply.supplier_name,
            status=supply.status.value,
            total_cost=as_float(supply.total_cost),
            notes=supply.notes,
            created_by=supply.created_by,
            received_by=supply.received_by,
            received_at=_iso(supply.received_at),
            created_at=_iso(supply.created_at),
            items=[StockLineResponse.from_model(i) for i in items],
            warnings=list(warnings),
        )
