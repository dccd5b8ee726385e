"""Reservation hold model definition."""

from datetime import date, datetime, time
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, DateTime, Index, Integer, String, Time, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from .tour_config import TourType


class ReservationHold(Base):
    """Temporary claim on seats while a checkout session completes."""

    __tablename__ = "reservation_holds"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Natural key: one hold per checkout session and departure
    session_id: Mapped[str] = mapped_column(String(128), nullable=False)
    tour_date: Mapped[date] = mapped_column(Date, nullable=False)
    tour_time: Mapped[time] = mapped_column(Time, nullable=False)

    tour_type: Mapped[TourType] = mapped_column(String(20), nullable=False)
    seats: Mapped[int] = mapped_column(Integer, nullable=False)

    # Naive UTC; the hold counts while now < expires_at
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )

    # Constraints
    __table_args__ = (
        UniqueConstraint("session_id", "tour_date", "tour_time", name="uq_reservation_hold_session_slot"),
        Index("ix_reservation_holds_slot", "tour_date", "tour_time", "tour_type"),
        CheckConstraint("seats > 0", name="ck_reservation_hold_seats_positive"),
        CheckConstraint("length(session_id) > 0", name="ck_reservation_hold_session_id_not_empty"),
    )

    def is_live(self, now: datetime) -> bool:
        return now < self.expires_at

    def __repr__(self) -> str:
        return (
            f"<ReservationHold(session_id='{self.session_id}', tour_date={self.tour_date}, "
            f"tour_time={self.tour_time}, seats={self.seats}, expires_at={self.expires_at})>"
        )
