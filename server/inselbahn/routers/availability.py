"""Availability router for online checkout and point-of-sale views."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import Clock
from ..core.dependencies import ClockDependency, DatabaseSession, PolicyDependency
from ..schemas.availability import (
    AvailabilityResponse,
    GetAvailabilityRequest,
    GetStaffedAvailabilityRequest,
    StaffedAvailabilityResponse,
)
from ..services.availability_service import AvailabilityService
from ..services.capacity_policy import CapacityPolicy

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/availability", tags=["availability"])


@router.post("/get", response_model=AvailabilityResponse)
async def get_availability(
    request: GetAvailabilityRequest,
    db: AsyncSession = DatabaseSession,
    clock: Clock = ClockDependency,
    policy: CapacityPolicy = PolicyDependency,
) -> JSONResponse:
    """
    Remaining online seats per departure of a tour type on a day.

    Expired holds are reaped before the read. Pass the checkout session to
    see the seats it already holds as available.
    """
    availability_service = AvailabilityService(db, clock=clock, policy=policy)
    response_data = await availability_service.get_availability(
        request.tour_date,
        request.tour_type,
        session_id=request.session_id,
    )
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/staffed", response_model=StaffedAvailabilityResponse)
async def get_staffed_availability(
    request: GetStaffedAvailabilityRequest,
    db: AsyncSession = DatabaseSession,
    clock: Clock = ClockDependency,
    policy: CapacityPolicy = PolicyDependency,
) -> JSONResponse:
    """Both channels' remaining seats for every configured tour type on a day."""
    availability_service = AvailabilityService(db, clock=clock, policy=policy)
    response_data = await availability_service.get_staffed_availability(request.tour_date)
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))
