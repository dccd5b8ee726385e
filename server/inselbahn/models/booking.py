"""Booking model definition."""

from datetime import date, datetime, time
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, CheckConstraint, Date, Index, Integer, String, Text, Time, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from .tour_config import TourType


class BookingStatus(str, Enum):
    """Booking status enumeration."""
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Well-known payment status labels; explicit overrides may store others."""
    PENDING = "pending"
    PAID = "paid"


class PaymentMethod(str, Enum):
    """Point-of-sale payment methods."""
    BAR = "bar"
    SUMUP = "sumup"
    RECHNUNG = "rechnung"


class Channel(str, Enum):
    """Sales channel enumeration."""
    ONLINE = "online"
    STAFFED = "staffed"


class Booking(Base):
    """Confirmed or cancelled unit of sale for one departure."""

    __tablename__ = "bookings"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Externally visible code, prefix + 8 uppercase alphanumerics
    booking_code: Mapped[str] = mapped_column(String(16), nullable=False, unique=True, index=True)

    # Slot
    tour_type: Mapped[TourType] = mapped_column(String(20), nullable=False)
    tour_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    tour_time: Mapped[time] = mapped_column(Time, nullable=False)

    # Customer
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    customer_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Passengers; adults and children include wheelchair passengers
    adults: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    children: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    infants: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    wheelchair_adults: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    wheelchair_children: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Price in minor units (cents)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[BookingStatus] = mapped_column(
        String(20),
        nullable=False,
        default=BookingStatus.CONFIRMED,
        index=True
    )
    payment_status: Mapped[str] = mapped_column(String(32), nullable=False, default=PaymentStatus.PENDING)
    payment_method: Mapped[PaymentMethod | None] = mapped_column(String(32), nullable=True)

    invoice_requested: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    invoice: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    sold_on_site: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Human-readable summary for drivers and office staff
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        server_onupdate=func.now()
    )

    # Constraints
    __table_args__ = (
        Index("ix_bookings_slot", "tour_date", "tour_time", "tour_type"),
        CheckConstraint("adults >= 0", name="ck_booking_adults_non_negative"),
        CheckConstraint("children >= 0", name="ck_booking_children_non_negative"),
        CheckConstraint("infants >= 0", name="ck_booking_infants_non_negative"),
        CheckConstraint("wheelchair_adults >= 0 AND wheelchair_adults <= adults", name="ck_booking_wheelchair_adults_range"),
        CheckConstraint(
            "wheelchair_children >= 0 AND wheelchair_children <= children",
            name="ck_booking_wheelchair_children_range"
        ),
        CheckConstraint("total_amount >= 0", name="ck_booking_total_amount_non_negative"),
        CheckConstraint("length(booking_code) > 0", name="ck_booking_code_not_empty"),
        CheckConstraint("status IN ('confirmed', 'cancelled')", name="ck_booking_status_valid"),
    )

    @property
    def passengers(self) -> int:
        """Seat-taking passengers; infants are not counted."""
        return self.adults + self.children

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, booking_code='{self.booking_code}', tour_type={self.tour_type}, "
            f"tour_date={self.tour_date}, tour_time={self.tour_time}, status={self.status})>"
        )
