from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class StockWarning(BaseModel):
    """A non-fatal problem met while applying recipe or stock changes (e.g. a missing ingredient link)."""
    code: str
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)


class StockLineRequest(BaseModel):
    """One ingredient line of a supply or write-off. The slug is preferred over the legacy numeric id."""
    ingredient_slug: Optional[str] = Field(None, description="Stable ingredient key.")
    ingredient_id: Optional[int] = Field(None, description="Legacy numeric ingredient id.")
    ingredient_name: Optional[str] = None
    quantity: Decimal
    unit_cost: Optional[Decimal] = Field(None, description="Cost per unit; supplies only.")


class IngredientResponse(BaseModel):
    id: int
    slug: str
    name: str
    unit: str
    quantity: float
    min_quantity: float
    cost_per_unit: float
    is_active: bool
    updated_at: Optional[str] = None


class InventoryTransactionResponse(BaseModel):
    id: str
    type: str
    ingredient_id: int
    product_slug: Optional[str] = None
    quantity: float
    previous_qty: float
    new_qty: float
    reference: str
    performed_by: Optional[str] = None
    notes: Optional[str] = None
    shift_id: Optional[str] = None
    created_at: Optional[str] = None


class LowStockResponse(BaseModel):
    items: List[IngredientResponse]
    total: int
