"""Cancellation service: notice policy and the confirmed to cancelled transition."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from ..core.clock import Clock, system_clock
from ..core.config import settings
from ..core.database import store_call
from ..core.exceptions import CancellationWindowError, NotFoundError
from ..core.observability import metrics_collector
from ..models.booking import Booking, BookingStatus
from ..schemas.common import Slot
from .capacity_policy import CapacityPolicy
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

# One message for every miss, so a wrong email reveals nothing about the code
BOOKING_NOT_FOUND = "Booking not found or already cancelled"


class CancellationService:
    """Service for self-service and administrative cancellations."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Clock | None = None,
        policy: CapacityPolicy | None = None,
        notifier: NotificationService | None = None,
    ):
        self.db = db
        self.clock = clock or system_clock
        self.policy = policy or CapacityPolicy.from_settings(settings)
        self.notifier = notifier or NotificationService(db)

    @store_call("cancellation.cancel_by_self_service")
    async def cancel_by_self_service(self, booking_code: str, email: str) -> Booking:
        """
        Cancel a booking on behalf of its customer.

        Args:
            booking_code: Booking confirmation code
            email: Email address given at checkout

        Returns:
            The cancelled booking

        Raises:
            NotFoundError: If no confirmed booking matches code and email
            CancellationWindowError: If the notice period has passed
        """
        stmt = select(Booking).where(
            Booking.booking_code == booking_code.strip().upper(),
            func.lower(Booking.customer_email) == email.strip().lower(),
            Booking.status == BookingStatus.CONFIRMED.value,
        )
        result = await self.db.execute(stmt)
        booking = result.scalar_one_or_none()
        if booking is None:
            logger.info("Self-service cancellation - booking not found", extra={"booking_code": booking_code})
            raise NotFoundError(resource_type="booking", detail=BOOKING_NOT_FOUND)

        now = self.clock.now()
        slot = Slot(tour_date=booking.tour_date, tour_time=booking.tour_time, tour_type=booking.tour_type)
        if not self.policy.is_cancellation_allowed(slot, booking.passengers, now):
            required = self.policy.required_notice_hours(booking.passengers)
            remaining = self.policy.hours_until_departure(slot, now)
            logger.info(
                "Self-service cancellation rejected - notice period passed",
                extra={
                    "booking_code": booking.booking_code,
                    "passengers": booking.passengers,
                    "required_notice_hours": required,
                    "hours_remaining": round(remaining, 2),
                }
            )
            raise CancellationWindowError(required, remaining)

        await self._mark_cancelled(booking, now)
        metrics_collector.record_booking_cancelled("self_service")
        logger.info(
            "Booking cancelled by customer",
            extra={"booking_id": str(booking.id), "booking_code": booking.booking_code}
        )
        return booking

    @store_call("cancellation.cancel_by_admin")
    async def cancel_by_admin(
        self,
        booking_id: str,
        notify_customer: bool = False,
        message: str | None = None,
    ) -> Booking:
        """
        Cancel a booking from the office; no notice period applies.

        Raises:
            NotFoundError: If no confirmed booking has this id
        """
        try:
            key = UUID(booking_id)
        except (TypeError, ValueError):
            raise NotFoundError(resource_type="booking", detail=BOOKING_NOT_FOUND) from None

        result = await self.db.execute(
            select(Booking).where(Booking.id == key, Booking.status == BookingStatus.CONFIRMED.value)
        )
        booking = result.scalar_one_or_none()
        if booking is None:
            raise NotFoundError(resource_type="booking", detail=BOOKING_NOT_FOUND)

        await self._mark_cancelled(booking, self.clock.now())
        metrics_collector.record_booking_cancelled("admin")
        logger.info(
            "Booking cancelled by admin",
            extra={
                "booking_id": str(booking.id),
                "booking_code": booking.booking_code,
                "notify_customer": notify_customer,
            }
        )

        if notify_customer:
            await self.notifier.send_cancellation_notice(booking, message)
        return booking

    async def _mark_cancelled(self, booking: Booking, now: datetime) -> None:
        """Flip a confirmed booking to cancelled; a concurrent cancel wins once."""
        result = await self.db.execute(
            update(Booking)
            .where(Booking.id == booking.id, Booking.status == BookingStatus.CONFIRMED.value)
            .values(status=BookingStatus.CANCELLED.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self.db.rollback()
            raise NotFoundError(resource_type="booking", detail=BOOKING_NOT_FOUND)
        await self.db.commit()
        set_committed_value(booking, "status", BookingStatus.CANCELLED.value)
        set_committed_value(booking, "updated_at", now)
