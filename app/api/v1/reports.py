import logging
from fastapi import APIRouter
from app.schemas.response import SuccessResponse
from app.services import report_service
from typing import Optional

router = APIRouter()
log = logging.getLogger("api.reports")

# Query parameters are plain optional strings so that a missing one is a
# 400 VALIDATION_ERROR from the service rather than FastAPI's 422.


@router.get("/daily", response_model=SuccessResponse)
async def daily_report_endpoint(date: Optional[str] = None):
    return SuccessResponse(data=await report_service.get_daily_report(date))


@router.get("/monthly", response_model=SuccessResponse)
async def monthly_report_endpoint(year: Optional[str] = None, month: Optional[str] = None):
    return SuccessResponse(data=await report_service.get_monthly_report(year, month))


@router.get("/x-report", response_model=SuccessResponse)
async def x_report_endpoint(shift_id: Optional[str] = None):
    """Mid-shift cash snapshot."""
    return SuccessResponse(data=await report_service.get_x_report(shift_id))


@router.get("/z-report", response_model=SuccessResponse)
async def z_report_endpoint(shift_id: Optional[str] = None):
    """End-of-shift snapshot with counted cash and its difference from expected."""
    return SuccessResponse(data=await report_service.get_z_report(shift_id))


@router.get("/products", response_model=SuccessResponse)
async def products_report_endpoint(date_from: Optional[str] = None, date_to: Optional[str] = None):
    return SuccessResponse(data=await report_service.get_products_report(date_from, date_to))
