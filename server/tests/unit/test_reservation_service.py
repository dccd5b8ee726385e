"""Unit tests for reservation holds and occupancy."""

from datetime import date, time, timedelta

import pytest
from sqlalchemy import func, select

from inselbahn.core.exceptions import BookingWindowError, CapacityExceededError, CatalogNotFoundError, ValidationError
from inselbahn.models import ReservationHold, TourType
from inselbahn.schemas.common import Slot
from inselbahn.schemas.reservation import PlaceHoldRequest
from inselbahn.services.occupancy_service import OccupancyService
from inselbahn.services.reservation_service import ReservationService

TOUR_DATE = date(2026, 6, 2)
SLOT = Slot(tour_date=TOUR_DATE, tour_time=time(13, 30), tour_type=TourType.UNTERLAND)


def hold_request(session_id: str, seats: int, **overrides) -> PlaceHoldRequest:
    values = {
        "session_id": session_id,
        "tour_date": TOUR_DATE,
        "tour_time": time(13, 30),
        "tour_type": TourType.UNTERLAND,
        "seats": seats,
    }
    values.update(overrides)
    return PlaceHoldRequest(**values)


@pytest.fixture
def service(test_session, clock, policy, catalog):
    return ReservationService(test_session, clock=clock, policy=policy)


async def count_holds(session) -> int:
    result = await session.execute(select(func.count()).select_from(ReservationHold))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_place_hold(service, clock):
    """Test placing a hold."""
    hold = await service.place_hold(hold_request("session-a", 2))

    assert hold.session_id == "session-a"
    assert hold.seats == 2
    assert hold.tour_type == TourType.UNTERLAND.value
    assert hold.expires_at == clock.now() + timedelta(minutes=10)


@pytest.mark.asyncio
async def test_hold_up_to_remaining_online_seats(service, add_booking):
    """With 34 seats booked, 2 more fit online and 3 do not."""
    await add_booking(adults=34)

    hold = await service.place_hold(hold_request("session-a", 2))
    assert hold.seats == 2

    with pytest.raises(CapacityExceededError) as exc_info:
        await service.place_hold(hold_request("session-b", 3))

    assert exc_info.value.status_code == 409
    assert exc_info.value.code == "FULL"


@pytest.mark.asyncio
async def test_fresh_slot_at_ceiling(service, add_booking):
    await add_booking(adults=34)

    with pytest.raises(CapacityExceededError):
        await service.place_hold(hold_request("session-b", 3))

    hold = await service.place_hold(hold_request("session-a", 2))
    assert hold.seats == 2


@pytest.mark.parametrize("booked", [0, 10, 35])
@pytest.mark.asyncio
async def test_remaining_seats_are_the_limit(service, add_booking, booked):
    if booked:
        await add_booking(adults=booked)
    remaining = 36 - booked

    with pytest.raises(CapacityExceededError):
        await service.place_hold(hold_request("too-many", remaining + 1))

    hold = await service.place_hold(hold_request("just-enough", remaining))
    assert hold.seats == remaining


@pytest.mark.asyncio
async def test_live_holds_of_others_count(service, add_booking, clock):
    await add_booking(adults=32)
    await service.place_hold(hold_request("session-a", 2))

    with pytest.raises(CapacityExceededError):
        await service.place_hold(hold_request("session-b", 3))

    clock.advance(minutes=11)
    assert await service.reap_expired_holds() == 1
    assert await count_holds(service.db) == 0

    hold = await service.place_hold(hold_request("session-b", 3))
    assert hold.seats == 3


@pytest.mark.asyncio
async def test_expired_holds_stop_counting_before_reaping(service, add_booking, clock):
    await add_booking(adults=32)
    await service.place_hold(hold_request("session-a", 2))

    clock.advance(minutes=11)
    hold = await service.place_hold(hold_request("session-b", 3))

    assert hold.seats == 3
    assert await count_holds(service.db) == 2


@pytest.mark.asyncio
async def test_refresh_replaces_without_stacking(service, test_session, clock):
    await service.place_hold(hold_request("session-a", 30))

    clock.advance(minutes=5)
    hold = await service.place_hold(hold_request("session-a", 34))

    assert hold.seats == 34
    assert hold.expires_at == clock.now() + timedelta(minutes=10)
    assert await count_holds(test_session) == 1


@pytest.mark.asyncio
async def test_holds_are_per_departure(service, test_session):
    await service.place_hold(hold_request("session-a", 2))
    await service.place_hold(hold_request("session-a", 2, tour_time=time(14, 30)))

    assert await count_holds(test_session) == 2


@pytest.mark.asyncio
async def test_hold_outside_booking_window(service):
    with pytest.raises(BookingWindowError) as exc_info:
        await service.place_hold(hold_request("session-a", 2, tour_date=date(2026, 6, 9)))

    assert exc_info.value.code == "OUTSIDE_BOOKING_WINDOW"
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_hold_at_unscheduled_time(service, test_session):
    with pytest.raises(ValidationError) as exc_info:
        await service.place_hold(hold_request("session-a", 36, tour_time=time(3, 17)))

    assert exc_info.value.status_code == 400
    assert exc_info.value.extensions["errors"]["tour_time"] == "must be one of 13:30, 14:30"
    assert await count_holds(test_session) == 0


@pytest.mark.asyncio
async def test_hold_without_catalog(test_session, clock, policy):
    service = ReservationService(test_session, clock=clock, policy=policy)

    with pytest.raises(CatalogNotFoundError):
        await service.place_hold(hold_request("session-a", 2))

    assert await count_holds(test_session) == 0


@pytest.mark.asyncio
async def test_premium_online_ceiling(service):
    with pytest.raises(CapacityExceededError):
        await service.place_hold(
            hold_request("session-a", 9, tour_type=TourType.PREMIUM, tour_time=time(14, 15))
        )


@pytest.mark.asyncio
async def test_reap_expired_holds(service, test_session, clock):
    await service.place_hold(hold_request("session-a", 2))
    clock.advance(minutes=3)
    await service.place_hold(hold_request("session-b", 2))

    clock.advance(minutes=8)
    assert await service.reap_expired_holds() == 1
    assert await count_holds(test_session) == 1

    clock.advance(minutes=10)
    assert await service.reap_expired_holds() == 1
    assert await service.reap_expired_holds() == 0


@pytest.mark.asyncio
async def test_occupancy_counts_bookings_and_live_holds(service, test_session, add_booking, clock):
    await add_booking(adults=2, children=1)
    await add_booking(adults=5, status="cancelled")
    await add_booking(adults=3, tour_time=time(14, 30))
    await service.place_hold(hold_request("session-a", 4))

    occupancy = OccupancyService(test_session)

    assert await occupancy.booked_seats(SLOT) == 3
    assert await occupancy.held_seats(SLOT, clock.now()) == 4
    assert await occupancy.occupied_seats(SLOT, clock.now()) == 7
    assert await occupancy.occupied_seats(SLOT, clock.now(), exclude_session="session-a") == 3
    assert await occupancy.held_seats(SLOT, clock.now() + timedelta(minutes=10)) == 0


@pytest.mark.asyncio
async def test_occupancy_counts_wheelchairs(test_session, add_booking):
    await add_booking(adults=1, wheelchair_adults=1)
    # Legacy row: wheelchair passenger only mentioned in the notes
    await add_booking(adults=2, children=1, notes="1 Kinder (Rollstuhl), Zahlung: Bar")

    occupancy = OccupancyService(test_session)

    assert await occupancy.booked_seats(SLOT) == 3 + 5
