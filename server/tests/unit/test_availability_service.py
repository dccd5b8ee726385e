"""Unit tests for availability and manifest queries."""

from datetime import date, time, timedelta

import pytest
from sqlalchemy import func, select

from inselbahn.core.exceptions import CatalogNotFoundError
from inselbahn.models import ReservationHold, TourType
from inselbahn.schemas.booking import ListBookingsRequest
from inselbahn.schemas.reservation import PlaceHoldRequest
from inselbahn.services.availability_service import AvailabilityService
from inselbahn.services.manifest_service import ManifestService
from inselbahn.services.reservation_service import ReservationService

TOUR_DATE = date(2026, 6, 2)


@pytest.fixture
def service(test_session, clock, policy):
    return AvailabilityService(test_session, clock=clock, policy=policy)


async def hold_seats(test_session, clock, policy, seats: int, session_id: str = "session-a"):
    await ReservationService(test_session, clock=clock, policy=policy).place_hold(PlaceHoldRequest(
        session_id=session_id,
        tour_date=TOUR_DATE,
        tour_time=time(13, 30),
        tour_type=TourType.UNTERLAND,
        seats=seats,
    ))


@pytest.mark.asyncio
async def test_online_availability(service, test_session, clock, policy, add_booking, catalog):
    """Test remaining online seats per departure."""
    await add_booking(adults=10)
    await hold_seats(test_session, clock, policy, 4)

    availability = await service.get_availability(TOUR_DATE, TourType.UNTERLAND)

    assert list(availability.slots) == ["13:30", "14:30"]
    first = availability.slots["13:30"]
    assert first.remaining_seats == 22
    assert first.booking_allowed is True
    assert first.wheelchair_available is True
    assert first.children_free is False
    assert availability.slots["14:30"].remaining_seats == 36
    assert availability.slots["14:30"].children_free is True
    assert availability.prices.adult == 1100
    assert availability.prices.child == 600


@pytest.mark.asyncio
async def test_own_hold_is_not_subtracted(service, test_session, clock, policy, add_booking, catalog):
    await add_booking(adults=10)
    await hold_seats(test_session, clock, policy, 4)

    availability = await service.get_availability(TOUR_DATE, TourType.UNTERLAND, session_id="session-a")

    assert availability.slots["13:30"].remaining_seats == 26


@pytest.mark.asyncio
async def test_remaining_never_negative(service, add_booking, catalog):
    # Staffed sales may take a departure past the online ceiling
    await add_booking(adults=44)

    availability = await service.get_availability(TOUR_DATE, TourType.UNTERLAND)

    assert availability.slots["13:30"].remaining_seats == 0


@pytest.mark.asyncio
async def test_availability_reaps_expired_holds(service, test_session, clock, policy, catalog):
    await hold_seats(test_session, clock, policy, 4)
    clock.advance(minutes=11)

    availability = await service.get_availability(TOUR_DATE, TourType.UNTERLAND)

    assert availability.slots["13:30"].remaining_seats == 36
    result = await test_session.execute(select(func.count()).select_from(ReservationHold))
    assert result.scalar_one() == 0


@pytest.mark.asyncio
async def test_premium_availability(service, clock, catalog):
    availability = await service.get_availability(clock.now().date(), TourType.PREMIUM)

    # 10:30 leaves in 30 minutes, too late to book
    assert availability.slots["10:30"].booking_allowed is False
    assert availability.slots["12:30"].booking_allowed is True
    assert availability.slots["12:30"].remaining_seats == 8
    assert availability.slots["12:30"].wheelchair_available is False


@pytest.mark.asyncio
async def test_availability_without_catalog(service):
    with pytest.raises(CatalogNotFoundError):
        await service.get_availability(TOUR_DATE, TourType.UNTERLAND)


@pytest.mark.asyncio
async def test_staffed_availability(service, test_session, clock, policy, add_booking, catalog):
    await add_booking(adults=30)
    await hold_seats(test_session, clock, policy, 4)

    overview = await service.get_staffed_availability(TOUR_DATE)

    assert set(overview.tours) == {TourType.UNTERLAND, TourType.PREMIUM}
    slot = overview.tours[TourType.UNTERLAND].slots["13:30"]
    assert slot.booked_seats == 30
    assert slot.online_remaining == 2
    assert slot.online_capacity == 36
    assert slot.staffed_remaining == 15
    assert slot.staffed_capacity == 45
    assert overview.tours[TourType.PREMIUM].slots["16:00"].staffed_remaining == 11


@pytest.mark.asyncio
async def test_staffed_availability_defaults_to_island_today(service, test_session, clock):
    # 23:30 UTC is already the next day on the island
    clock.advance(hours=15, minutes=30)

    overview = await service.get_staffed_availability()

    assert overview.tour_date == date(2026, 6, 2)
    assert overview.tours == {}


@pytest.mark.asyncio
async def test_list_bookings_filters(test_session, add_booking):
    await add_booking(booking_code="HEFIRST001", tour_date=date(2026, 6, 2))
    await add_booking(booking_code="HESECOND01", tour_date=date(2026, 6, 3), payment_status="paid")
    await add_booking(booking_code="HECANCEL01", tour_date=date(2026, 6, 4), status="cancelled")
    await add_booking(booking_code="HEPREMIUM1", tour_type="PREMIUM", tour_time=time(10, 30))

    service = ManifestService(test_session)

    everything = await service.list_bookings(ListBookingsRequest())
    assert [b.booking_code for b in everything][:3] == ["HECANCEL01", "HESECOND01", "HEFIRST001"]

    confirmed = await service.list_bookings(ListBookingsRequest(status="confirmed", tour_type="UNTERLAND"))
    assert {b.booking_code for b in confirmed} == {"HEFIRST001", "HESECOND01"}

    paid = await service.list_bookings(ListBookingsRequest(payment_status="paid"))
    assert [b.booking_code for b in paid] == ["HESECOND01"]

    ranged = await service.list_bookings(
        ListBookingsRequest(start_date=date(2026, 6, 3), end_date=date(2026, 6, 3) + timedelta(days=1))
    )
    assert {b.booking_code for b in ranged} == {"HESECOND01", "HECANCEL01"}


@pytest.mark.asyncio
async def test_driver_manifest(test_session, add_booking):
    await add_booking(customer_name="Zander", adults=2, children=1)
    await add_booking(customer_name="Albers", adults=1, wheelchair_adults=1, notes="1 Erwachsene (Rollstuhl)")
    await add_booking(customer_name="Storniert", adults=5, status="cancelled")
    await add_booking(customer_name="Spät", adults=4, tour_time=time(14, 30))
    await add_booking(customer_name="Premium", tour_type="PREMIUM", tour_time=time(10, 30))

    manifest = await ManifestService(test_session).get_driver_manifest(TOUR_DATE, TourType.UNTERLAND)

    assert [d.tour_time for d in manifest.departures] == [time(13, 30), time(14, 30)]
    first = manifest.departures[0]
    assert first.passenger_count == 4
    assert [p.customer_name for p in first.bookings] == ["Albers", "Zander"]
    assert first.bookings[0].notes == "1 Erwachsene (Rollstuhl)"
    assert manifest.departures[1].passenger_count == 4
