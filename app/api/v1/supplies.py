import logging
from fastapi import APIRouter, status
from app.schemas.response import SuccessResponse
from app.schemas.supply import SupplyReceiveRequest, SupplyRequest
from app.services import supply_service
from typing import Optional
from uuid import UUID

router = APIRouter()
log = logging.getLogger("api.supplies")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_supply_endpoint(payload: SupplyRequest):
    """Drafts a delivery. Stock is untouched until the supply is received."""
    supply = await supply_service.create_supply(payload)
    return SuccessResponse(data=supply.model_dump())


@router.get("/{supply_id}", response_model=SuccessResponse)
async def get_supply_endpoint(supply_id: UUID):
    supply = await supply_service.get_supply(supply_id)
    return SuccessResponse(data=supply.model_dump())


@router.post("/{supply_id}/receive", response_model=SuccessResponse)
async def receive_supply_endpoint(supply_id: UUID, payload: Optional[SupplyReceiveRequest] = None):
    """Adds the delivered quantities to stock. Receiving twice is rejected with 400."""
    received_by = payload.received_by if payload else None
    supply = await supply_service.receive_supply(supply_id, received_by)
    return SuccessResponse(data=supply.model_dump())


@router.post("/{supply_id}/cancel", response_model=SuccessResponse)
async def cancel_supply_endpoint(supply_id: UUID):
    supply = await supply_service.cancel_supply(supply_id)
    return SuccessResponse(data=supply.model_dump())
