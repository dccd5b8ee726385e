"""Test configuration and fixtures."""

import itertools
import os
from datetime import date, datetime, time, timedelta

# Settings are read at import time; point the engine at SQLite before that happens
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from inselbahn.core.clock import Clock
from inselbahn.core.database import Base
from inselbahn.core.dependencies import get_capacity_policy, get_clock, get_db, get_email_sender
from inselbahn.core.exceptions import DependencyError
from inselbahn.models import Booking, TourType
from inselbahn.schemas.catalog import CreateTourConfigRequest
from inselbahn.services.capacity_policy import CapacityPolicy
from inselbahn.services.catalog_service import CatalogService
from inselbahn.services.notification_service import NotificationService, OutgoingEmail, SmtpEmailSender

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# 10:00 on the island (CEST), the day before the default tour date
FROZEN_NOW = datetime(2026, 6, 1, 8, 0)
TOUR_DATE = date(2026, 6, 2)


class FrozenClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = FROZEN_NOW):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        self._now += timedelta(**kwargs)
        return self._now


class RecordingEmailSender(SmtpEmailSender):
    """Keeps outgoing mail in memory instead of talking to a relay."""

    def __init__(self, fail: bool = False):
        super().__init__()
        self.fail = fail
        self.sent: list[OutgoingEmail] = []

    @property
    def configured(self) -> bool:
        return True

    async def send(self, email: OutgoingEmail) -> bool:
        if self.fail:
            raise DependencyError(dependency="email transport", operation=f"email.{email.kind}")
        self.sent.append(email)
        return True


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def policy():
    """Production ceilings and windows, independent of the environment."""
    return CapacityPolicy(
        online_capacity={TourType.UNTERLAND: 36, TourType.PREMIUM: 8},
        staffed_capacity={TourType.UNTERLAND: 45, TourType.PREMIUM: 11},
    )


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def notifier(test_session, email_sender):
    return NotificationService(test_session, sender=email_sender)


@pytest_asyncio.fixture(scope="function")
async def catalog(test_session):
    """Current timetable for both tour types; children ride free at 14:30 on the Unterland tour."""
    catalog_service = CatalogService(test_session)
    unterland = await catalog_service.create_config(CreateTourConfigRequest(
        tour_type=TourType.UNTERLAND,
        times=["13:30", "14:30"],
        child_free_times=["14:30"],
        adult_price=1100,
        child_price=600,
        valid_from=date(2026, 1, 1),
    ))
    premium = await catalog_service.create_config(CreateTourConfigRequest(
        tour_type=TourType.PREMIUM,
        times=["10:30", "12:30", "14:15", "16:00"],
        adult_price=2500,
        child_price=1500,
        valid_from=date(2026, 1, 1),
    ))
    return {TourType.UNTERLAND: unterland, TourType.PREMIUM: premium}


@pytest.fixture
def add_booking(test_session):
    """Factory that stores a booking row directly, bypassing capacity checks."""
    codes = itertools.count(1)

    async def _add(**overrides) -> Booking:
        values = {
            "booking_code": f"HET{next(codes):07d}",
            "tour_type": TourType.UNTERLAND.value,
            "tour_date": TOUR_DATE,
            "tour_time": time(13, 30),
            "customer_name": "Erika Mustermann",
            "customer_email": "erika@example.com",
            "adults": 2,
            "children": 0,
            "infants": 0,
            "wheelchair_adults": 0,
            "wheelchair_children": 0,
            "total_amount": 2200,
            "status": "confirmed",
            "payment_status": "pending",
        }
        values.update(overrides)
        booking = Booking(**values)
        test_session.add(booking)
        await test_session.commit()
        await test_session.refresh(booking)
        return booking

    return _add


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session, clock, policy, email_sender):
    """Create a test FastAPI application without workers or tracing."""
    from inselbahn.main import create_app
    from inselbahn.workers.manager import WorkerManager

    app = create_app(manager=WorkerManager(workers={}), create_tables=False, instrument=False)

    # Override database dependency
    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_capacity_policy] = lambda: policy
    app.dependency_overrides[get_email_sender] = lambda: email_sender

    yield app

    # Clean up
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_hold_data():
    """Sample hold data for testing."""
    return {
        "session_id": "checkout-abc",
        "tour_date": TOUR_DATE.isoformat(),
        "tour_time": "13:30",
        "tour_type": "UNTERLAND",
        "seats": 2,
    }


@pytest.fixture
def sample_booking_data(sample_hold_data):
    """Sample online checkout for the sample hold."""
    return {
        "channel": "online",
        "session_id": sample_hold_data["session_id"],
        "tour_date": sample_hold_data["tour_date"],
        "tour_time": sample_hold_data["tour_time"],
        "tour_type": sample_hold_data["tour_type"],
        "customer_name": "Erika Mustermann",
        "customer_email": "erika@example.com",
        "adults": 1,
        "children": 1,
    }
