"""Reservation router for checkout seat holds."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import Clock
from ..core.dependencies import ClockDependency, DatabaseSession, PolicyDependency
from ..schemas.reservation import Hold, PlaceHoldRequest
from ..services.capacity_policy import CapacityPolicy
from ..services.reservation_service import ReservationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/reservation", tags=["reservation"])


@router.post("/hold", response_model=Hold)
async def place_hold(
    request: PlaceHoldRequest,
    db: AsyncSession = DatabaseSession,
    clock: Clock = ClockDependency,
    policy: CapacityPolicy = PolicyDependency,
) -> JSONResponse:
    """
    Place or refresh the seat hold of a checkout session.

    Placing a hold again for the same session and departure replaces the seat
    count and restarts the expiry; holds never stack.
    """
    reservation_service = ReservationService(db, clock=clock, policy=policy)
    hold = await reservation_service.place_hold(request)
    response_data = Hold.model_validate(hold)
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))
