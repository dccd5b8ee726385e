"""Concurrency tests for holds, commits and cancellations racing on one departure."""

import asyncio
from datetime import date, time

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from inselbahn.core.database import Base
from inselbahn.core.exceptions import CapacityExceededError, HoldExpiredError, NotFoundError
from inselbahn.models import Booking, Channel, PaymentMethod, TourType
from inselbahn.schemas.booking import CommitBookingRequest
from inselbahn.schemas.catalog import CreateTourConfigRequest
from inselbahn.schemas.common import Slot
from inselbahn.schemas.reservation import PlaceHoldRequest
from inselbahn.services.booking_service import BookingService
from inselbahn.services.cancellation_service import CancellationService
from inselbahn.services.catalog_service import CatalogService
from inselbahn.services.notification_service import NotificationService
from inselbahn.services.occupancy_service import OccupancyService
from inselbahn.services.reservation_service import ReservationService

pytestmark = pytest.mark.concurrency

TOUR_DATE = date(2026, 6, 2)
SLOT = Slot(tour_date=TOUR_DATE, tour_time=time(13, 30), tour_type=TourType.UNTERLAND)


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path):
    """Sessions on separate connections to one file database."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path}/race.db",
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def seeded(session_factory):
    async with session_factory() as db:
        await CatalogService(db).create_config(CreateTourConfigRequest(
            tour_type=TourType.UNTERLAND,
            times=["13:30", "14:30"],
            adult_price=1100,
            child_price=600,
            valid_from=date(2026, 1, 1),
        ))
    return session_factory


async def booked_seats(session_factory) -> int:
    async with session_factory() as db:
        return await OccupancyService(db).booked_seats(SLOT)


@pytest.mark.asyncio
async def test_concurrent_holds_no_overbooking(seeded, clock, policy):
    """Test that concurrent hold requests don't exceed the online ceiling."""

    async def place_hold(customer_id: int):
        async with seeded() as db:
            service = ReservationService(db, clock=clock, policy=policy)
            try:
                return await service.place_hold(PlaceHoldRequest(
                    session_id=f"session-{customer_id}",
                    tour_date=TOUR_DATE,
                    tour_time=time(13, 30),
                    tour_type=TourType.UNTERLAND,
                    seats=3,
                ))
            except CapacityExceededError:
                return None

    results = await asyncio.gather(*(place_hold(i) for i in range(20)))

    successful = [hold for hold in results if hold is not None]
    assert len(successful) == 12

    async with seeded() as db:
        assert await OccupancyService(db).held_seats(SLOT, clock.now()) == 36


@pytest.mark.asyncio
async def test_concurrent_staffed_sales_no_overbooking(seeded, clock, policy):
    """Point-of-sale terminals racing for the last seats never exceed the staffed ceiling."""

    async def sell(terminal: int):
        async with seeded() as db:
            notifier = NotificationService(db)
            service = BookingService(db, clock=clock, policy=policy, notifier=notifier)
            try:
                return await service.commit_booking(CommitBookingRequest(
                    channel=Channel.STAFFED,
                    tour_type=TourType.UNTERLAND,
                    tour_date=TOUR_DATE,
                    tour_time=time(13, 30),
                    adults=4,
                    payment_method=PaymentMethod.BAR,
                ))
            except CapacityExceededError:
                return None

    results = await asyncio.gather(*(sell(i) for i in range(15)))

    sold = [booking for booking in results if booking is not None]
    assert len(sold) == 11
    assert len({booking.booking_code for booking in sold}) == 11
    assert await booked_seats(seeded) == 44


@pytest.mark.asyncio
async def test_concurrent_checkouts_of_one_session(seeded, clock, policy):
    """Two submissions of one checkout consume its hold at most once."""
    async with seeded() as db:
        await ReservationService(db, clock=clock, policy=policy).place_hold(PlaceHoldRequest(
            session_id="session-a",
            tour_date=TOUR_DATE,
            tour_time=time(13, 30),
            tour_type=TourType.UNTERLAND,
            seats=2,
        ))

    async def checkout():
        async with seeded() as db:
            service = BookingService(db, clock=clock, policy=policy, notifier=NotificationService(db))
            try:
                return await service.commit_booking(CommitBookingRequest(
                    channel=Channel.ONLINE,
                    session_id="session-a",
                    tour_type=TourType.UNTERLAND,
                    tour_date=TOUR_DATE,
                    tour_time=time(13, 30),
                    customer_name="Erika Mustermann",
                    customer_email="erika@example.com",
                    adults=2,
                ))
            except HoldExpiredError:
                return None

    results = await asyncio.gather(checkout(), checkout())

    assert sum(1 for booking in results if booking is not None) == 1
    assert await booked_seats(seeded) == 2


@pytest.mark.asyncio
async def test_concurrent_cancellations_win_once(seeded, clock, policy):
    async with seeded() as db:
        booking = Booking(
            booking_code="HERACE0001",
            tour_type=TourType.UNTERLAND.value,
            tour_date=TOUR_DATE,
            tour_time=time(13, 30),
            customer_name="Erika Mustermann",
            customer_email="erika@example.com",
            adults=2,
            total_amount=2200,
        )
        db.add(booking)
        await db.commit()
        booking_id = str(booking.id)

    async def cancel():
        async with seeded() as db:
            service = CancellationService(db, clock=clock, policy=policy, notifier=NotificationService(db))
            try:
                await service.cancel_by_admin(booking_id)
                return True
            except NotFoundError:
                return False

    results = await asyncio.gather(*(cancel() for _ in range(5)))

    assert results.count(True) == 1
    assert await booked_seats(seeded) == 0
