"""Availability service: remaining seats per departure for both sales channels."""

import logging
from datetime import date, timezone
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import Clock, system_clock
from ..core.config import settings
from ..core.database import store_call
from ..models.booking import Channel
from ..models.tour_config import TourType
from ..schemas.availability import (
    AvailabilityResponse,
    SlotAvailability,
    StaffedAvailabilityResponse,
    StaffedSlotAvailability,
    StaffedTourAvailability,
)
from ..schemas.common import Prices, Slot
from .capacity_policy import CapacityPolicy
from .catalog_service import CatalogService
from .occupancy_service import OccupancyService
from .reservation_service import ReservationService

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Answers availability questions; reaps expired holds before each read."""

    def __init__(self, db: AsyncSession, clock: Clock | None = None, policy: CapacityPolicy | None = None):
        self.db = db
        self.clock = clock or system_clock
        self.policy = policy or CapacityPolicy.from_settings(settings)
        self.catalog = CatalogService(db)
        self.occupancy = OccupancyService(db)
        self.reservations = ReservationService(db, clock=self.clock, policy=self.policy)

    def local_today(self) -> date:
        """Today's date on the island."""
        now = self.clock.now().replace(tzinfo=timezone.utc)
        return now.astimezone(ZoneInfo(self.policy.timezone)).date()

    @store_call("availability.get_availability")
    async def get_availability(
        self,
        tour_date: date,
        tour_type: TourType,
        session_id: str | None = None,
    ) -> AvailabilityResponse:
        """
        Online availability of every departure of a tour type on a day.

        The caller's own hold is not subtracted, so a checkout sees the seats
        it already holds as available.

        Raises:
            CatalogNotFoundError: If no configuration is current for the day
        """
        await self.reservations.reap_expired_holds()
        config = await self.catalog.get_current_config(tour_type, tour_date)
        now = self.clock.now()

        slots = {}
        for slot_time in config.slot_times:
            slot = Slot(tour_date=tour_date, tour_time=slot_time, tour_type=tour_type)
            occupied = await self.occupancy.occupied_seats(slot, now, exclude_session=session_id)
            slots[slot_time.strftime("%H:%M")] = SlotAvailability(
                remaining_seats=self.policy.remaining(slot.tour_type, Channel.ONLINE, occupied),
                booking_allowed=self.policy.is_booking_allowed(slot, now),
                wheelchair_available=self.policy.takes_wheelchairs(slot.tour_type),
                children_free=config.children_ride_free(slot_time),
            )

        return AvailabilityResponse(
            tour_date=tour_date,
            tour_type=tour_type,
            slots=slots,
            prices=Prices(adult=config.adult_price, child=config.child_price),
        )

    @store_call("availability.get_staffed_availability")
    async def get_staffed_availability(self, tour_date: date | None = None) -> StaffedAvailabilityResponse:
        """Both channels' remaining seats for every configured tour type on a day."""
        tour_date = tour_date or self.local_today()
        await self.reservations.reap_expired_holds()
        now = self.clock.now()

        tours = {}
        for tour_type in TourType:
            config = await self.catalog.find_current_config(tour_type, tour_date)
            if config is None:
                continue

            slots = {}
            for slot_time in config.slot_times:
                slot = Slot(tour_date=tour_date, tour_time=slot_time, tour_type=tour_type)
                booked = await self.occupancy.booked_seats(slot)
                held = await self.occupancy.held_seats(slot, now)
                slots[slot_time.strftime("%H:%M")] = StaffedSlotAvailability(
                    online_remaining=self.policy.remaining(tour_type, Channel.ONLINE, booked + held),
                    online_capacity=self.policy.ceiling(tour_type, Channel.ONLINE),
                    staffed_remaining=self.policy.remaining(tour_type, Channel.STAFFED, booked),
                    staffed_capacity=self.policy.ceiling(tour_type, Channel.STAFFED),
                    booked_seats=booked,
                    children_free=config.children_ride_free(slot_time),
                )
            tours[tour_type] = StaffedTourAvailability(
                slots=slots,
                prices=Prices(adult=config.adult_price, child=config.child_price),
            )

        logger.debug(
            "Staffed availability computed",
            extra={"tour_date": tour_date.isoformat(), "tour_types": [t.value for t in tours]}
        )
        return StaffedAvailabilityResponse(tour_date=tour_date, tours=tours)
