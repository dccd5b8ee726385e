"""Reservation hold service: short-lived seat claims during checkout."""

import logging
from datetime import timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import Clock, system_clock
from ..core.config import settings
from ..core.database import store_call
from ..core.exceptions import BookingWindowError, CapacityExceededError
from ..core.locks import slot_lock
from ..core.observability import metrics_collector
from ..models.booking import Channel
from ..models.reservation import ReservationHold
from ..schemas.common import Slot
from ..schemas.reservation import PlaceHoldRequest
from .capacity_policy import CapacityPolicy
from .catalog_service import CatalogService
from .occupancy_service import OccupancyService

logger = logging.getLogger(__name__)


class ReservationService:
    """Places, refreshes and reaps reservation holds."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Clock | None = None,
        policy: CapacityPolicy | None = None,
        hold_ttl: timedelta | None = None,
    ):
        self.db = db
        self.clock = clock or system_clock
        self.policy = policy or CapacityPolicy.from_settings(settings)
        self.hold_ttl = hold_ttl or timedelta(seconds=settings.hold_ttl_seconds)
        self.occupancy = OccupancyService(db)
        self.catalog = CatalogService(db)

    @store_call("reservation.place_hold")
    async def place_hold(self, request: PlaceHoldRequest) -> ReservationHold:
        """
        Claim seats for a checkout session.

        One hold exists per session and departure; placing it again replaces
        the seat count and extends the expiry.

        Args:
            request: Hold request

        Returns:
            The stored hold

        Raises:
            BookingWindowError: If the departure cannot be booked now
            CatalogNotFoundError: If no tour configuration is current
            ValidationError: If no departure is scheduled at the requested time
            CapacityExceededError: If the online ceiling would be exceeded
        """
        slot = request.slot
        now = self.clock.now()

        if not self.policy.is_booking_allowed(slot, now):
            logger.info(
                "Hold rejected - outside booking window",
                extra={"session_id": request.session_id, "lock_key": slot.lock_key}
            )
            raise BookingWindowError(
                slot.tour_date,
                slot.tour_time,
                int(self.policy.min_lead.total_seconds() // 60),
                self.policy.max_advance.days,
            )

        await self.catalog.get_departure_config(slot)

        try:
            async with slot_lock(self.db, slot.lock_key):
                occupied = await self.occupancy.occupied_seats(slot, now, exclude_session=request.session_id)
                capacity = self.policy.ceiling(slot.tour_type, Channel.ONLINE)
                metrics_collector.set_slot_occupancy(
                    slot.tour_type.value, f"{slot.tour_date} {slot.tour_time:%H:%M}", occupied
                )

                if not self.policy.fits(slot.tour_type, Channel.ONLINE, occupied, request.seats):
                    logger.warning(
                        "Hold rejected - insufficient capacity",
                        extra={
                            "session_id": request.session_id,
                            "lock_key": slot.lock_key,
                            "occupied_seats": occupied,
                            "requested_seats": request.seats,
                            "capacity": capacity,
                        }
                    )
                    metrics_collector.record_capacity_rejection(
                        slot.tour_type.value, Channel.ONLINE.value, "place_hold"
                    )
                    raise CapacityExceededError(occupied, request.seats, capacity, Channel.ONLINE.value)

                hold = await self._find_hold(request.session_id, slot)
                expires_at = now + self.hold_ttl
                refreshed = hold is not None
                if hold is None:
                    hold = ReservationHold(
                        session_id=request.session_id,
                        tour_date=slot.tour_date,
                        tour_time=slot.tour_time,
                        tour_type=slot.tour_type.value,
                        seats=request.seats,
                        expires_at=expires_at,
                    )
                    self.db.add(hold)
                else:
                    hold.tour_type = slot.tour_type.value
                    hold.seats = request.seats
                    hold.expires_at = expires_at

                await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(hold)
        metrics_collector.record_hold_placed(slot.tour_type.value)
        logger.info(
            "Hold refreshed" if refreshed else "Hold placed",
            extra={
                "session_id": request.session_id,
                "lock_key": slot.lock_key,
                "seats": request.seats,
                "occupied_seats": occupied,
                "expires_at": expires_at.isoformat(),
            }
        )
        return hold

    async def _find_hold(self, session_id: str, slot: Slot) -> ReservationHold | None:
        stmt = select(ReservationHold).where(
            ReservationHold.session_id == session_id,
            ReservationHold.tour_date == slot.tour_date,
            ReservationHold.tour_time == slot.tour_time,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    @store_call("reservation.reap_expired_holds")
    async def reap_expired_holds(self) -> int:
        """
        Delete every hold whose expiry has passed.

        Returns:
            Number of holds deleted
        """
        now = self.clock.now()
        result = await self.db.execute(
            delete(ReservationHold).where(ReservationHold.expires_at < now)
        )
        await self.db.commit()

        reaped = result.rowcount or 0
        metrics_collector.record_holds_reaped(reaped)
        if reaped:
            logger.info("Expired holds reaped", extra={"count": reaped, "now": now.isoformat()})
        return reaped
