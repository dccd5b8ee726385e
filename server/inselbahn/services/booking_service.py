"""Booking service: turns a hold or a point-of-sale request into a confirmed booking."""

import logging
import secrets
import string
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import Clock, system_clock
from ..core.config import Settings, settings
from ..core.database import store_call
from ..core.exceptions import (
    BookingWindowError,
    CapacityExceededError,
    DependencyError,
    HoldExpiredError,
    ValidationError,
)
from ..core.locks import slot_lock
from ..core.observability import metrics_collector
from ..models.booking import Booking, BookingStatus, Channel, PaymentMethod, PaymentStatus
from ..models.reservation import ReservationHold
from ..schemas.booking import CommitBookingRequest
from ..schemas.common import Slot
from .booking_notes import compose_notes
from .capacity_policy import CapacityPolicy, PassengerComposition
from .catalog_service import CatalogService
from .notification_service import NotificationService
from .occupancy_service import OccupancyService

logger = logging.getLogger(__name__)

BOOKING_CODE_ALPHABET = string.ascii_uppercase + string.digits
BOOKING_CODE_LENGTH = 8
MAX_CODE_ATTEMPTS = 5


def price_party(party: PassengerComposition, adult_price: int, child_price: int, children_free: bool = False) -> int:
    """
    Total price in cents.

    Wheelchair passengers pay the normal fare of their age class; infants
    ride free; children ride free on designated departures.
    """
    total = party.adults * adult_price
    if not children_free:
        total += party.children * child_price
    return total


def resolve_payment_status(
    channel: Channel,
    payment_method: PaymentMethod | None = None,
    override: str | None = None,
) -> str:
    """Explicit override wins; staffed sales are paid on the spot unless invoiced."""
    if override:
        return override
    if channel == Channel.STAFFED:
        if payment_method == PaymentMethod.RECHNUNG:
            return PaymentStatus.PENDING.value
        return PaymentStatus.PAID.value
    return PaymentStatus.PENDING.value


class BookingService:
    """Service for committing bookings."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Clock | None = None,
        policy: CapacityPolicy | None = None,
        notifier: NotificationService | None = None,
        config: Settings | None = None,
    ):
        self.db = db
        self.clock = clock or system_clock
        self.config = config or settings
        self.policy = policy or CapacityPolicy.from_settings(self.config)
        self.notifier = notifier or NotificationService(db, config=self.config)
        self.occupancy = OccupancyService(db)
        self.catalog = CatalogService(db)

    def _generate_booking_code(self) -> str:
        """Generate a random booking confirmation code."""
        suffix = ''.join(secrets.choice(BOOKING_CODE_ALPHABET) for _ in range(BOOKING_CODE_LENGTH))
        return f"{self.config.booking_code_prefix}{suffix}"

    @store_call("booking.commit_booking")
    async def commit_booking(self, request: CommitBookingRequest) -> Booking:
        """
        Commit a booking.

        Online bookings need a live hold of their checkout session; staffed
        sales are checked against the staffed ceiling only.

        Args:
            request: Commit request

        Returns:
            The confirmed booking

        Raises:
            BookingWindowError: If the departure cannot be booked now
            CatalogNotFoundError: If no tour configuration is current
            CapacityExceededError: If the channel ceiling would be exceeded
            HoldExpiredError: If an online checkout has no live hold
            ValidationError: If the time is not scheduled or the party outgrows its hold
            DependencyError: If no unique booking code could be stored
        """
        slot = request.slot
        now = self.clock.now()

        if not self.policy.is_booking_allowed(slot, now):
            logger.info(
                "Booking rejected - outside booking window",
                extra={"channel": request.channel.value, "lock_key": slot.lock_key}
            )
            raise BookingWindowError(
                slot.tour_date,
                slot.tour_time,
                int(self.policy.min_lead.total_seconds() // 60),
                self.policy.max_advance.days,
            )

        party = PassengerComposition.from_ambulatory(
            adults=request.adults,
            children=request.children,
            wheelchair_adults=request.wheelchair_adults,
            wheelchair_children=request.wheelchair_children,
            infants=request.infants,
        )
        tour_config = await self.catalog.get_departure_config(slot)
        total_amount = price_party(
            party,
            tour_config.adult_price,
            tour_config.child_price,
            children_free=tour_config.children_ride_free(slot.tour_time),
        )

        for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
            booking = self._build_booking(request, slot, party, total_amount)
            try:
                await self._commit_once(request, slot, party, booking, now)
                break
            except IntegrityError as e:
                if "booking_code" not in str(e):
                    raise
                logger.warning(
                    "Booking code collision, retrying",
                    extra={"booking_code": booking.booking_code, "attempt": attempt}
                )
        else:
            logger.error("No unique booking code after retries", extra={"lock_key": slot.lock_key})
            raise DependencyError(dependency="record store", operation="booking.commit_booking")

        await self.db.refresh(booking)
        metrics_collector.record_booking_committed(slot.tour_type.value, request.channel.value)
        logger.info(
            "Booking committed",
            extra={
                "booking_id": str(booking.id),
                "booking_code": booking.booking_code,
                "channel": request.channel.value,
                "lock_key": slot.lock_key,
                "seats": party.seats,
                "total_amount": total_amount,
                "payment_status": booking.payment_status,
            }
        )

        await self.notifier.send_booking_confirmation(booking)
        return booking

    def _build_booking(
        self,
        request: CommitBookingRequest,
        slot: Slot,
        party: PassengerComposition,
        total_amount: int,
    ) -> Booking:
        staffed = request.channel == Channel.STAFFED
        payment_method = request.payment_method if staffed else None
        invoice = request.invoice if request.invoice_requested else None

        return Booking(
            booking_code=self._generate_booking_code(),
            tour_type=slot.tour_type.value,
            tour_date=slot.tour_date,
            tour_time=slot.tour_time,
            customer_name=request.customer_name or self.config.walk_in_customer_name,
            customer_email=request.customer_email or (self.config.walk_in_customer_email if staffed else None),
            customer_phone=request.customer_phone,
            adults=party.adults,
            children=party.children,
            infants=party.infants,
            wheelchair_adults=party.wheelchair_adults,
            wheelchair_children=party.wheelchair_children,
            total_amount=total_amount,
            status=BookingStatus.CONFIRMED.value,
            payment_status=resolve_payment_status(request.channel, payment_method, request.payment_status),
            payment_method=payment_method.value if payment_method else None,
            invoice_requested=request.invoice_requested,
            invoice=invoice.model_dump() if invoice else None,
            sold_on_site=staffed,
            notes=compose_notes(
                infants=party.infants,
                wheelchair_adults=party.wheelchair_adults,
                wheelchair_children=party.wheelchair_children,
                payment_method=payment_method,
                invoice_requested=request.invoice_requested,
                sold_on_site=staffed,
                invoice=invoice,
            ),
        )

    async def _commit_once(
        self,
        request: CommitBookingRequest,
        slot: Slot,
        party: PassengerComposition,
        booking: Booking,
        now: datetime,
    ) -> None:
        """Check capacity, consume the hold and store the booking in one transaction."""
        try:
            async with slot_lock(self.db, slot.lock_key):
                booked = await self.occupancy.booked_seats(slot)
                capacity = self.policy.ceiling(slot.tour_type, request.channel)
                metrics_collector.set_slot_occupancy(
                    slot.tour_type.value, f"{slot.tour_date} {slot.tour_time:%H:%M}", booked
                )

                if not self.policy.fits(slot.tour_type, request.channel, booked, party.seats):
                    logger.warning(
                        "Booking rejected - insufficient capacity",
                        extra={
                            "channel": request.channel.value,
                            "lock_key": slot.lock_key,
                            "occupied_seats": booked,
                            "requested_seats": party.seats,
                            "capacity": capacity,
                        }
                    )
                    metrics_collector.record_capacity_rejection(
                        slot.tour_type.value, request.channel.value, "commit_booking"
                    )
                    raise CapacityExceededError(booked, party.seats, capacity, request.channel.value)

                if request.channel == Channel.ONLINE:
                    hold = await self._live_hold(request.session_id, slot, now)
                    if hold is None:
                        logger.warning(
                            "Booking rejected - no live hold",
                            extra={"session_id": request.session_id, "lock_key": slot.lock_key}
                        )
                        raise HoldExpiredError(request.session_id)
                    if party.seats > hold.seats:
                        logger.warning(
                            "Booking rejected - party larger than hold",
                            extra={
                                "session_id": request.session_id,
                                "lock_key": slot.lock_key,
                                "held_seats": hold.seats,
                                "requested_seats": party.seats,
                            }
                        )
                        raise ValidationError(
                            f"The party needs {party.seats} seats but the checkout holds {hold.seats}",
                            errors={"seats": "place the hold again for the full party"},
                        )
                    # Consumed in the same transaction, so one hold yields one booking
                    await self.db.delete(hold)

                self.db.add(booking)
                await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def _live_hold(self, session_id: str, slot: Slot, now: datetime) -> ReservationHold | None:
        stmt = select(ReservationHold).where(
            ReservationHold.session_id == session_id,
            ReservationHold.tour_date == slot.tour_date,
            ReservationHold.tour_time == slot.tour_time,
            ReservationHold.tour_type == slot.tour_type.value,
            ReservationHold.expires_at > now,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

