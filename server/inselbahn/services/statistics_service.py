"""Statistics service: read-side rollups over confirmed bookings."""

import calendar
import logging
from collections import defaultdict
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import store_call
from ..models.booking import Booking, BookingStatus, Channel
from ..models.tour_config import TourType
from ..schemas.statistics import (
    CountRevenue,
    DailyRevenue,
    MonthBreakdown,
    SlotOccurrence,
    SlotSeries,
    StatisticsReport,
    TourTypeBreakdown,
)
from .booking_notes import STATISTICS_PAYMENT_METHODS, payment_method_from_notes
from .capacity_policy import CapacityPolicy
from .catalog_service import CatalogService

logger = logging.getLogger(__name__)


def resolve_period(year: int | None = None, month: int | None = None, today: date | None = None) -> tuple[date, date]:
    """A whole month, a whole year, or the current year."""
    if year is None:
        year = (today or date.today()).year
    if month is not None:
        last_day = calendar.monthrange(year, month)[1]
        return date(year, month, 1), date(year, month, last_day)
    return date(year, 1, 1), date(year, 12, 31)


def payment_method_of(booking: Booking) -> str:
    """Typed payment method when recorded, otherwise classified from the notes."""
    if booking.payment_method:
        return str(getattr(booking.payment_method, "value", booking.payment_method))
    return payment_method_from_notes(booking.notes)


def occupancy_rate(passengers: int, capacity: int, occurrences: int) -> float:
    """Percent of seats used over all departures, one decimal."""
    if occurrences <= 0 or capacity <= 0:
        return 0.0
    return round(passengers / (capacity * occurrences) * 100, 1)


class StatisticsService:
    """Aggregates revenue, passengers and occupancy for a period."""

    def __init__(self, db: AsyncSession, policy: CapacityPolicy | None = None):
        self.db = db
        self.policy = policy or CapacityPolicy.from_settings(settings)
        self.catalog = CatalogService(db)

    @store_call("statistics.get_statistics")
    async def get_statistics(self, start_date: date, end_date: date) -> StatisticsReport:
        """
        Build the statistics report for confirmed bookings in a date range.

        Args:
            start_date: First tour date, inclusive
            end_date: Last tour date, inclusive

        Returns:
            Statistics report, money in cents
        """
        stmt = (
            select(Booking)
            .where(
                Booking.tour_date >= start_date,
                Booking.tour_date <= end_date,
                Booking.status == BookingStatus.CONFIRMED.value,
            )
            .order_by(Booking.tour_date, Booking.tour_time)
        )
        result = await self.db.execute(stmt)
        bookings = list(result.scalars())

        report = StatisticsReport(start_date=start_date, end_date=end_date)
        report.by_payment_method = {method: CountRevenue() for method in STATISTICS_PAYMENT_METHODS}
        report.popular_times = {tour_type.value: {} for tour_type in TourType}

        # tour type -> HH:MM -> tour date -> occurrence
        occurrences: dict[str, dict[str, dict[date, SlotOccurrence]]] = defaultdict(lambda: defaultdict(dict))

        for booking in bookings:
            revenue = booking.total_amount
            passengers = booking.passengers
            tour_type = TourType(booking.tour_type).value
            method = payment_method_of(booking)
            month = booking.tour_date.strftime("%Y-%m")
            day = booking.tour_date.isoformat()
            slot_time = booking.tour_time.strftime("%H:%M")

            report.total_bookings += 1
            report.total_revenue += revenue
            report.total_passengers += passengers

            by_type = report.by_tour_type.setdefault(tour_type, TourTypeBreakdown())
            by_type.count += 1
            by_type.revenue += revenue
            by_type.passengers += passengers

            by_method = report.by_payment_method.setdefault(method, CountRevenue())
            by_method.count += 1
            by_method.revenue += revenue

            by_month = report.by_month.setdefault(month, MonthBreakdown())
            by_month.count += 1
            by_month.revenue += revenue
            by_month.passengers += passengers

            daily = report.daily_revenue.setdefault(
                day, DailyRevenue(by_payment_method={m: 0 for m in STATISTICS_PAYMENT_METHODS})
            )
            daily.total += revenue
            daily.by_payment_method[method] = daily.by_payment_method.get(method, 0) + revenue

            popular = report.popular_times[tour_type]
            popular[slot_time] = popular.get(slot_time, 0) + passengers

            occurrence = occurrences[tour_type][slot_time].setdefault(
                booking.tour_date, SlotOccurrence(tour_date=booking.tour_date)
            )
            occurrence.bookings += 1
            occurrence.passengers += passengers
            occurrence.revenue += revenue

        for breakdown in report.by_tour_type.values():
            if breakdown.count:
                breakdown.average_group_size = round(breakdown.passengers / breakdown.count, 2)
                breakdown.average_revenue = round(breakdown.revenue / breakdown.count, 2)

        for tour_type in TourType:
            slot_times = set(occurrences[tour_type.value])
            config = await self.catalog.find_current_config(tour_type, end_date)
            if config is not None:
                slot_times.update(config.times)

            capacity = self.policy.ceiling(tour_type, Channel.STAFFED)
            series_by_time: dict[str, SlotSeries] = {}
            rates: dict[str, float] = {}
            for slot_time in sorted(slot_times):
                tours = sorted(occurrences[tour_type.value][slot_time].values(), key=lambda o: o.tour_date)
                series = SlotSeries(
                    total_tours=len(tours),
                    total_passengers=sum(o.passengers for o in tours),
                    total_revenue=sum(o.revenue for o in tours),
                    tours=tours,
                )
                if series.total_tours:
                    series.average_passengers = round(series.total_passengers / series.total_tours, 2)
                    series.average_revenue = round(series.total_revenue / series.total_tours, 2)
                series_by_time[slot_time] = series
                rates[slot_time] = occupancy_rate(series.total_passengers, capacity, series.total_tours)

            report.tour_statistics[tour_type.value] = series_by_time
            report.occupancy_rates[tour_type.value] = rates

        logger.info(
            "Statistics computed",
            extra={
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "bookings": report.total_bookings,
            }
        )
        return report
