import logging
from fastapi import APIRouter, status
from app.schemas.response import SuccessResponse
from app.schemas.write_off import WriteOffRequest
from app.services.write_off_service import create_write_off

router = APIRouter()
log = logging.getLogger("api.write_offs")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_write_off_endpoint(payload: WriteOffRequest):
    """Records spoiled or damaged stock and deducts it from inventory."""
    write_off = await create_write_off(payload)
    return SuccessResponse(data=write_off.model_dump())
