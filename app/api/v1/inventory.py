import logging
from fastapi import APIRouter, Query
from app.core.money import as_float
from app.models.inventory import TransactionType
from app.schemas.inventory import IngredientResponse, InventoryTransactionResponse
from app.schemas.response import SuccessResponse
from app.services import inventory_service
from typing import Optional

log = logging.getLogger("api.inventory")

router = APIRouter()


def _ingredient(ingredient) -> dict:
    return IngredientResponse(
        id=ingredient.id,
        slug=ingredient.slug,
        name=ingredient.name,
        unit=ingredient.unit,
        quantity=as_float(ingredient.quantity),
        min_quantity=as_float(ingredient.min_quantity),
        cost_per_unit=as_float(ingredient.cost_per_unit),
        is_active=ingredient.is_active,
        updated_at=str(ingredient.updated_at) if ingredient.updated_at else None,
    ).model_dump()


@router.get("/low-stock", response_model=SuccessResponse)
async def low_stock_endpoint():
    """Active ingredients at or below their minimum quantity."""
    ingredients = await inventory_service.list_low_stock()
    return SuccessResponse(data=[_ingredient(i) for i in ingredients], meta={"total": len(ingredients)})


@router.get("/ingredients/{slug}", response_model=SuccessResponse)
async def get_ingredient_endpoint(slug: str):
    """Fetches the current stock of one ingredient."""
    ingredient = await inventory_service.get_ingredient(slug)
    return SuccessResponse(data=_ingredient(ingredient))


@router.get("/transactions", response_model=SuccessResponse)
async def list_transactions_endpoint(
    ingredient: Optional[str] = None,
    type: Optional[TransactionType] = None,
    limit: int = Query(100, ge=1, le=1000),
):
    """Stock audit trail, newest first."""
    rows = await inventory_service.list_transactions(ingredient, type, limit)
    data = [
        InventoryTransactionResponse(
            id=str(tx.id),
            type=tx.type.value,
            ingredient_id=tx.ingredient_id,
            product_slug=tx.product_slug,
            quantity=as_float(tx.quantity),
            previous_qty=as_float(tx.previous_qty),
            new_qty=as_float(tx.new_qty),
            reference=tx.reference,
            performed_by=tx.performed_by,
            notes=tx.notes,
            shift_id=str(tx.shift_id) if tx.shift_id else None,
            created_at=str(tx.created_at) if tx.created_at else None,
        ).model_dump()
        for tx in rows
    ]
    return SuccessResponse(data=data, meta={"total": len(data)})
