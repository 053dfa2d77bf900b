import logging
from fastapi import APIRouter, status
from app.schemas.response import SuccessResponse
from app.schemas.shift import ShiftCloseRequest, ShiftOpenRequest, ShiftResponse
from app.services import shift_service
from uuid import UUID

router = APIRouter()
log = logging.getLogger("api.shifts")


@router.post("/open", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def open_shift_endpoint(payload: ShiftOpenRequest):
    """Opens a shift. Fails with 400 while another shift is open."""
    shift = await shift_service.open_shift(payload.opened_by, payload.opening_cash)
    activities = await shift_service.list_activities([shift.id])
    return SuccessResponse(data=ShiftResponse.from_model(shift, activities).model_dump())


@router.post("/{shift_id}/close", response_model=SuccessResponse)
async def close_shift_endpoint(shift_id: UUID, payload: ShiftCloseRequest):
    shift = await shift_service.close_shift(shift_id, payload.closed_by, payload.closing_cash, payload.notes)
    activities = await shift_service.list_activities([shift.id])
    return SuccessResponse(data=ShiftResponse.from_model(shift, activities).model_dump())


@router.get("/current", response_model=SuccessResponse)
async def current_shift_endpoint():
    """The open shift, or null when the register is closed."""
    shift = await shift_service.get_current_shift()
    if not shift:
        return SuccessResponse(data=None)
    activities = await shift_service.list_activities([shift.id])
    return SuccessResponse(data=ShiftResponse.from_model(shift, activities).model_dump())


@router.get("/{shift_id}", response_model=SuccessResponse)
async def get_shift_endpoint(shift_id: UUID):
    shift = await shift_service.get_shift(shift_id)
    activities = await shift_service.list_activities([shift.id])
    return SuccessResponse(data=ShiftResponse.from_model(shift, activities).model_dump())
