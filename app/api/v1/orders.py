import logging
from fastapi import APIRouter, HTTPException, Query, status
from app.core.errors import AppError
from app.schemas.response import SuccessResponse
from app.services.order_service import create_order, get_order, list_orders, update_order_status
from app.models.order import OrderStatus
from app.schemas.order import OrderRequest, OrderStatusUpdate
from typing import Optional
from uuid import UUID

router = APIRouter()
log = logging.getLogger("api.orders")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_order_endpoint(request_data: OrderRequest):
    """
    Places an order: items, payment, recipe stock deduction and shift totals in one go.
    Stock problems that did not block the order are listed under data.warnings.
    """
    try:
        order = await create_order(request_data)
        return SuccessResponse(data=order.model_dump())
    except AppError as e:
        log.warning(f"Order rejected: {e.message} {e.details}")
        raise
    except Exception as e:
        log.error(f"Error placing order: {e}")
        raise HTTPException(status_code=500, detail="Server failed to place order.")


@router.get("", response_model=SuccessResponse)
async def list_orders_endpoint(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    shift_id: Optional[UUID] = None,
    limit: int = Query(50, ge=1, le=500),
):
    """Lists orders newest first, optionally by status or shift."""
    orders = await list_orders(status=status_filter, shift_id=shift_id, limit=limit)
    return SuccessResponse(data=[o.model_dump() for o in orders], meta={"total": len(orders)})


@router.get("/{order_id}", response_model=SuccessResponse)
async def get_order_endpoint(order_id: UUID):
    """Fetches an order with its items, payment and shift."""
    order = await get_order(order_id)
    return SuccessResponse(data=order.model_dump())


@router.patch("/{order_id}/status", response_model=SuccessResponse)
async def update_status_endpoint(order_id: UUID, payload: OrderStatusUpdate):
    """
    Moves the order along pending -> confirmed -> preparing -> ready -> completed
    (or cancelled). Disallowed moves answer 400 with the allowed next states.
    """
    try:
        order = await update_order_status(order_id, payload.status)
        return SuccessResponse(data=order.model_dump())
    except AppError as e:
        log.warning(f"Status update rejected for order {order_id}: {e.message}")
        raise
    except Exception as e:
        log.error(f"Error updating order status: {e}")
        raise HTTPException(status_code=500, detail="Server failed to update order status.")
