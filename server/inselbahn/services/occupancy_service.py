"""Occupancy calculation for one slot."""

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.booking import Booking, BookingStatus
from ..models.reservation import ReservationHold
from ..schemas.common import Slot
from .booking_notes import wheelchair_counts_from_notes
from .capacity_policy import seats_required

logger = logging.getLogger(__name__)


def booking_seats(booking: Booking) -> int:
    """
    Seats a booking occupies.

    Rows written before the typed wheelchair columns only mention wheelchair
    passengers in their notes; those counts are used when both typed fields
    are zero.
    """
    wheelchair_adults = booking.wheelchair_adults or 0
    wheelchair_children = booking.wheelchair_children or 0
    if wheelchair_adults == 0 and wheelchair_children == 0:
        wheelchair_adults, wheelchair_children = wheelchair_counts_from_notes(booking.notes)
    return seats_required(booking.adults or 0, booking.children or 0, wheelchair_adults, wheelchair_children)


class OccupancyService:
    """Reads seat consumption of bookings and holds. Callers own locking."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def booked_seats(self, slot: Slot) -> int:
        """Seats consumed by confirmed bookings in the slot."""
        stmt = select(Booking).where(
            Booking.tour_date == slot.tour_date,
            Booking.tour_time == slot.tour_time,
            Booking.tour_type == slot.tour_type.value,
            Booking.status == BookingStatus.CONFIRMED.value,
        )
        result = await self.db.execute(stmt)
        return sum(booking_seats(booking) for booking in result.scalars())

    async def held_seats(self, slot: Slot, now: datetime, exclude_session: str | None = None) -> int:
        """Seats claimed by live holds in the slot, optionally ignoring one session."""
        stmt = select(func.coalesce(func.sum(ReservationHold.seats), 0)).where(
            ReservationHold.tour_date == slot.tour_date,
            ReservationHold.tour_time == slot.tour_time,
            ReservationHold.tour_type == slot.tour_type.value,
            ReservationHold.expires_at > now,
        )
        if exclude_session:
            stmt = stmt.where(ReservationHold.session_id != exclude_session)
        result = await self.db.execute(stmt)
        return int(result.scalar_one())

    async def occupied_seats(self, slot: Slot, now: datetime, exclude_session: str | None = None) -> int:
        """Booked seats plus seats held by live holds of other sessions."""
        booked = await self.booked_seats(slot)
        held = await self.held_seats(slot, now, exclude_session=exclude_session)
        return booked + held
