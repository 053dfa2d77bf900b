from pydantic import BaseModel, Field
from typing import List, Optional

from app.core.money import as_float
from app.schemas.inventory import StockLineRequest, StockWarning
from app.schemas.supply import StockLineResponse


class WriteOffRequest(BaseModel):
    type: Optional[str] = None
    items: Optional[List[StockLineRequest]] = None
    reason: Optional[str] = None
    performed_by: Optional[str] = None


class WriteOffResponse(BaseModel):
    id: str
    type: str
    total_cost: float
    reason: str
    performed_by: str
    shift_id: Optional[str] = None
    created_at: Optional[str] = None
    items: List[StockLineResponse] = Field(default_factory=list)
    warnings: List[StockWarning] = Field(default_factory=list)

    @classmethod
    def from_models(cls, write_off, items=(), warnings=()) -> "WriteOffResponse":
        return cls(
            id=str(write_off.id),
            type=write_off.type.value,
            total_cost=as_float(write_off.total_cost),
            reason=write_off.reason,
            performed_by=write_off.performed_by,
            shift_id=str(write_off.shift_id) if write_off.shift_id else None,
            created_at=write_off.created_at.isoformat() if write_off.created_at else None,
            items=[StockLineResponse.from_model(i) for i in items],
            warnings=list(warnings),
        )
