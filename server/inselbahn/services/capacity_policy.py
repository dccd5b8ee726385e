"""Capacity, booking window and cancellation notice rules.

Everything here is pure: no I/O, no clock of its own. A policy is built from
``Settings`` for the running service and directly with synthetic values in
tests.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from ..core.config import Settings
from ..models.booking import Channel
from ..models.tour_config import TourType
from ..schemas.common import Slot

# Seats a wheelchair passenger occupies in the vehicle
WHEELCHAIR_SEATS = 3


def seats_required(adults: int, children: int, wheelchair_adults: int = 0, wheelchair_children: int = 0) -> int:
    """
    Seats consumed by a party.

    ``adults`` and ``children`` are totals that already include wheelchair
    passengers, so each wheelchair passenger adds the two seats beyond the
    one already counted. Infants never take a seat and are not an input.
    """
    wheelchair = wheelchair_adults + wheelchair_children
    return adults + children + (WHEELCHAIR_SEATS - 1) * wheelchair


@dataclass(frozen=True)
class PassengerComposition:
    """Party of one booking; adults and children include wheelchair passengers."""

    adults: int = 0
    children: int = 0
    wheelchair_adults: int = 0
    wheelchair_children: int = 0
    infants: int = 0

    def __post_init__(self) -> None:
        if min(self.adults, self.children, self.wheelchair_adults, self.wheelchair_children, self.infants) < 0:
            raise ValueError("passenger counts must not be negative")
        if self.wheelchair_adults > self.adults or self.wheelchair_children > self.children:
            raise ValueError("wheelchair passengers must be part of the adult/child counts")

    @classmethod
    def from_ambulatory(
        cls,
        adults: int,
        children: int,
        wheelchair_adults: int = 0,
        wheelchair_children: int = 0,
        infants: int = 0,
    ) -> "PassengerComposition":
        """Build from counts where adults/children exclude wheelchair passengers."""
        return cls(
            adults=adults + wheelchair_adults,
            children=children + wheelchair_children,
            wheelchair_adults=wheelchair_adults,
            wheelchair_children=wheelchair_children,
            infants=infants,
        )

    @property
    def passengers(self) -> int:
        return self.adults + self.children

    @property
    def seats(self) -> int:
        return seats_required(self.adults, self.children, self.wheelchair_adults, self.wheelchair_children)


@dataclass(frozen=True)
class CapacityPolicy:
    """Per-channel seat ceilings plus the time windows that gate bookings and cancellations."""

    online_capacity: dict[TourType, int]
    staffed_capacity: dict[TourType, int]
    timezone: str = "Europe/Berlin"
    min_lead: timedelta = timedelta(hours=1)
    max_advance: timedelta = timedelta(days=7)
    cancellation_group_size: int = 8
    group_notice_hours: int = 72
    standard_notice_hours: int = 24
    wheelchair_tour_types: frozenset[TourType] = field(default_factory=lambda: frozenset({TourType.UNTERLAND}))

    @classmethod
    def from_settings(cls, settings: Settings) -> "CapacityPolicy":
        return cls(
            online_capacity={TourType(k): v for k, v in settings.online_capacity.items()},
            staffed_capacity={TourType(k): v for k, v in settings.staffed_capacity.items()},
            timezone=settings.tour_timezone,
            min_lead=timedelta(minutes=settings.booking_min_lead_minutes),
            max_advance=timedelta(days=settings.booking_max_advance_days),
            cancellation_group_size=settings.cancellation_group_size,
            group_notice_hours=settings.cancellation_notice_group_hours,
            standard_notice_hours=settings.cancellation_notice_standard_hours,
            wheelchair_tour_types=frozenset(TourType(t) for t in settings.wheelchair_tour_types),
        )

    # Capacity

    def ceiling(self, tour_type: TourType, channel: Channel) -> int:
        """Seat ceiling of a tour type for a sales channel."""
        table = self.staffed_capacity if channel == Channel.STAFFED else self.online_capacity
        return table[TourType(tour_type)]

    def remaining(self, tour_type: TourType, channel: Channel, occupied: int) -> int:
        return max(0, self.ceiling(tour_type, channel) - occupied)

    def fits(self, tour_type: TourType, channel: Channel, occupied: int, requested: int) -> bool:
        return occupied + requested <= self.ceiling(tour_type, channel)

    def takes_wheelchairs(self, tour_type: TourType) -> bool:
        return TourType(tour_type) in self.wheelchair_tour_types

    # Time windows

    def departure_utc(self, tour_date: date, tour_time: time) -> datetime:
        """Departure instant as naive UTC, from the local timetable time."""
        local = datetime.combine(tour_date, tour_time.replace(tzinfo=None), tzinfo=ZoneInfo(self.timezone))
        return local.astimezone(timezone.utc).replace(tzinfo=None)

    def hours_until_departure(self, slot: Slot, now: datetime) -> float:
        return (self.departure_utc(slot.tour_date, slot.tour_time) - now).total_seconds() / 3600

    def is_booking_allowed(self, slot: Slot, now: datetime) -> bool:
        """Departure starts at least ``min_lead`` and at most ``max_advance`` from now."""
        starts_at = self.departure_utc(slot.tour_date, slot.tour_time)
        return now + self.min_lead <= starts_at <= now + self.max_advance

    def required_notice_hours(self, passengers: int) -> int:
        """Minimum notice for a cancellation; large groups need longer."""
        if passengers >= self.cancellation_group_size:
            return self.group_notice_hours
        return self.standard_notice_hours

    def is_cancellation_allowed(self, slot: Slot, passengers: int, now: datetime) -> bool:
        return self.hours_until_departure(slot, now) >= self.required_notice_hours(passengers)
