"""Booking lists for the office and passenger manifests for drivers."""

import logging
from collections import defaultdict
from datetime import date, time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import store_call
from ..models.booking import Booking, BookingStatus
from ..models.tour_config import TourType
from ..schemas.booking import ListBookingsRequest, Manifest, ManifestDeparture, ManifestPassenger

logger = logging.getLogger(__name__)


class ManifestService:
    """Read-only booking queries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @store_call("manifest.list_bookings")
    async def list_bookings(self, filters: ListBookingsRequest) -> list[Booking]:
        """Bookings matching the filters, latest departure first."""
        stmt = select(Booking)
        if filters.start_date:
            stmt = stmt.where(Booking.tour_date >= filters.start_date)
        if filters.end_date:
            stmt = stmt.where(Booking.tour_date <= filters.end_date)
        if filters.status:
            stmt = stmt.where(Booking.status == filters.status.value)
        if filters.tour_type:
            stmt = stmt.where(Booking.tour_type == filters.tour_type.value)
        if filters.payment_status:
            stmt = stmt.where(Booking.payment_status == filters.payment_status)
        stmt = stmt.order_by(Booking.tour_date.desc(), Booking.tour_time.desc(), Booking.created_at.desc())

        result = await self.db.execute(stmt)
        return list(result.scalars())

    @store_call("manifest.get_driver_manifest")
    async def get_driver_manifest(self, tour_date: date, tour_type: TourType) -> Manifest:
        """Confirmed passengers of a tour type on a day, grouped by departure."""
        stmt = (
            select(Booking)
            .where(
                Booking.tour_date == tour_date,
                Booking.tour_type == TourType(tour_type).value,
                Booking.status == BookingStatus.CONFIRMED.value,
            )
            .order_by(Booking.tour_time, Booking.customer_name)
        )
        result = await self.db.execute(stmt)

        by_time: dict[time, list[Booking]] = defaultdict(list)
        for booking in result.scalars():
            by_time[booking.tour_time].append(booking)

        departures = [
            ManifestDeparture(
                tour_time=tour_time,
                tour_type=tour_type,
                passenger_count=sum(booking.passengers for booking in bookings),
                bookings=[ManifestPassenger.model_validate(booking) for booking in bookings],
            )
            for tour_time, bookings in sorted(by_time.items())
        ]
        logger.info(
            "Driver manifest built",
            extra={
                "tour_date": tour_date.isoformat(),
                "tour_type": TourType(tour_type).value,
                "departures": len(departures),
            }
        )
        return Manifest(tour_date=tour_date, tour_type=tour_type, departures=departures)
