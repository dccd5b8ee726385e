"""Reservation hold Pydantic schemas."""

from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, Field

from ..models.tour_config import TourType
from .common import Slot


class PlaceHoldRequest(BaseModel):
    """Request schema for placing or refreshing a hold."""

    session_id: str = Field(..., min_length=1, max_length=128, description="Checkout session")
    tour_date: date = Field(..., description="Departure date")
    tour_time: time = Field(..., description="Departure time")
    tour_type: TourType = Field(..., description="Tour product")
    seats: int = Field(..., ge=1, le=60, description="Seats to hold")

    @property
    def slot(self) -> Slot:
        return Slot(tour_date=self.tour_date, tour_time=self.tour_time, tour_type=self.tour_type)


class Hold(BaseModel):
    """Hold response schema."""

    model_config = ConfigDict(from_attributes=True)

    session_id: str
    tour_date: date
    tour_time: time
    tour_type: TourType
    seats: int = Field(..., ge=1)
    expires_at: datetime = Field(..., description="Hold expiration time, UTC")
