"""Admin router for the office: cancellations, booking lists, manifests, email and statistics."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import Clock
from ..core.dependencies import ClockDependency, DatabaseSession, NotifierDependency, PolicyDependency
from ..schemas.booking import (
    AdminCancelBookingRequest,
    Booking,
    CancellationResponse,
    GetManifestRequest,
    ListBookingsRequest,
    ListBookingsResponse,
    Manifest,
    SendBookingEmailRequest,
)
from ..schemas.statistics import GetStatisticsRequest, StatisticsReport
from ..services.cancellation_service import CancellationService
from ..services.capacity_policy import CapacityPolicy
from ..services.manifest_service import ManifestService
from ..services.notification_service import NotificationService
from ..services.statistics_service import StatisticsService, resolve_period

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/admin", tags=["admin"])


@router.post("/booking/cancel", response_model=CancellationResponse)
async def cancel_booking(
    request: AdminCancelBookingRequest,
    db: AsyncSession = DatabaseSession,
    clock: Clock = ClockDependency,
    policy: CapacityPolicy = PolicyDependency,
    notifier: NotificationService = NotifierDependency,
) -> JSONResponse:
    """Cancel a confirmed booking regardless of notice, optionally emailing the customer."""
    cancellation_service = CancellationService(db, clock=clock, policy=policy, notifier=notifier)
    booking = await cancellation_service.cancel_by_admin(
        request.booking_id,
        notify_customer=request.notify_customer,
        message=request.message,
    )
    response_data = CancellationResponse(
        booking_code=booking.booking_code,
        status=booking.status,
        cancelled_at=booking.updated_at,
    )
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/booking/list", response_model=ListBookingsResponse)
async def list_bookings(
    request: ListBookingsRequest,
    db: AsyncSession = DatabaseSession,
) -> JSONResponse:
    """Bookings matching the filters, latest departure first."""
    manifest_service = ManifestService(db)
    bookings = await manifest_service.list_bookings(request)
    response_data = ListBookingsResponse(items=[Booking.model_validate(b) for b in bookings])
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/manifest", response_model=Manifest)
async def get_manifest(
    request: GetManifestRequest,
    db: AsyncSession = DatabaseSession,
) -> JSONResponse:
    """Driver manifest: confirmed passengers per departure."""
    manifest_service = ManifestService(db)
    response_data = await manifest_service.get_driver_manifest(request.tour_date, request.tour_type)
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/booking/email")
async def send_booking_email(
    request: SendBookingEmailRequest,
    notifier: NotificationService = NotifierDependency,
) -> JSONResponse:
    """Send a free-form message to the customer of a booking."""
    sent = await notifier.send_custom_email(request.booking_id, request.subject, request.message)
    logger.info("Custom email requested", extra={"booking_id": request.booking_id, "sent": sent})
    return JSONResponse(status_code=200, content={"booking_id": request.booking_id, "sent": sent})


@router.post("/statistics", response_model=StatisticsReport)
async def get_statistics(
    request: GetStatisticsRequest,
    db: AsyncSession = DatabaseSession,
    clock: Clock = ClockDependency,
    policy: CapacityPolicy = PolicyDependency,
) -> JSONResponse:
    """
    Statistics over confirmed bookings.

    An explicit date range wins; otherwise the month of a year, the whole
    year, or the current year.
    """
    if request.start_date and request.end_date:
        start_date, end_date = request.start_date, request.end_date
    else:
        start_date, end_date = resolve_period(request.year, request.month, today=clock.now().date())

    statistics_service = StatisticsService(db, policy=policy)
    response_data = await statistics_service.get_statistics(start_date, end_date)
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))
