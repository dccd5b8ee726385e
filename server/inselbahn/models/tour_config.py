"""Tour configuration model definition."""

from datetime import date, datetime, time
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import JSON, CheckConstraint, Date, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class TourType(str, Enum):
    """Tour product enumeration."""
    UNTERLAND = "UNTERLAND"
    PREMIUM = "PREMIUM"


class TourConfig(Base):
    """Versioned catalog entry: slots and prices of one tour type over a validity interval."""

    __tablename__ = "tour_configs"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    tour_type: Mapped[TourType] = mapped_column(String(20), nullable=False, index=True)

    # Departure times as "HH:MM", in timetable order
    times: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    child_free_times: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # Prices in minor units (cents)
    adult_price: Mapped[int] = mapped_column(Integer, nullable=False)
    child_price: Mapped[int] = mapped_column(Integer, nullable=False)

    valid_from: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    valid_until: Mapped[date | None] = mapped_column(Date, nullable=True)

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
        CheckConstraint("adult_price >= 0", name="ck_tour_config_adult_price_non_negative"),
        CheckConstraint("child_price >= 0", name="ck_tour_config_child_price_non_negative"),
        CheckConstraint(
            "valid_until IS NULL OR valid_until >= valid_from",
            name="ck_tour_config_validity_ordered"
        ),
    )

    @property
    def slot_times(self) -> list[time]:
        """Departure times as ``time`` values."""
        return [time.fromisoformat(value) for value in self.times]

    def has_departure(self, tour_time: time) -> bool:
        return tour_time.strftime("%H:%M") in self.times

    def children_ride_free(self, tour_time: time) -> bool:
        return tour_time.strftime("%H:%M") in (self.child_free_times or [])

    def __repr__(self) -> str:
        return (
            f"<TourConfig(id={self.id}, tour_type={self.tour_type}, "
            f"valid_from={self.valid_from}, valid_until={self.valid_until})>"
        )
