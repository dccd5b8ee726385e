"""Booking router for checkout commits and self-service cancellation."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import Clock
from ..core.dependencies import ClockDependency, DatabaseSession, NotifierDependency, PolicyDependency
from ..schemas.booking import (
    Booking,
    CancelBookingRequest,
    CancellationResponse,
    CommitBookingRequest,
    CommitBookingResponse,
)
from ..services.booking_service import BookingService
from ..services.cancellation_service import CancellationService
from ..services.capacity_policy import CapacityPolicy
from ..services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/booking", tags=["booking"])


def _cancellation_response(booking) -> CancellationResponse:
    return CancellationResponse(
        booking_code=booking.booking_code,
        status=booking.status,
        cancelled_at=booking.updated_at,
    )


@router.post("/commit", response_model=CommitBookingResponse)
async def commit_booking(
    request: CommitBookingRequest,
    db: AsyncSession = DatabaseSession,
    clock: Clock = ClockDependency,
    policy: CapacityPolicy = PolicyDependency,
    notifier: NotificationService = NotifierDependency,
) -> JSONResponse:
    """
    Commit a booking.

    Online checkouts consume the hold of their session; staffed sales are
    booked directly against the point-of-sale ceiling.
    """
    booking_service = BookingService(db, clock=clock, policy=policy, notifier=notifier)
    booking = await booking_service.commit_booking(request)

    response_data = CommitBookingResponse(
        booking=Booking.model_validate(booking),
        total_amount=booking.total_amount,
    )
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/cancel", response_model=CancellationResponse)
async def cancel_booking(
    request: CancelBookingRequest,
    db: AsyncSession = DatabaseSession,
    clock: Clock = ClockDependency,
    policy: CapacityPolicy = PolicyDependency,
    notifier: NotificationService = NotifierDependency,
) -> JSONResponse:
    """
    Cancel a booking by code and email.

    Groups of eight or more need 72 hours notice, smaller parties 24 hours.
    """
    cancellation_service = CancellationService(db, clock=clock, policy=policy, notifier=notifier)
    booking = await cancellation_service.cancel_by_self_service(request.booking_code, request.email)
    response_data = _cancellation_response(booking)
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))
