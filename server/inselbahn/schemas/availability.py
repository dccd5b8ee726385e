"""Availability Pydantic schemas."""

from datetime import date

from pydantic import BaseModel, Field

from ..models.tour_config import TourType
from .common import Prices


class GetAvailabilityRequest(BaseModel):
    """Request schema for online availability of one tour type on one day."""

    tour_date: date = Field(..., description="Day to check")
    tour_type: TourType = Field(..., description="Tour product")
    session_id: str | None = Field(
        None,
        max_length=128,
        description="Checkout session; its own hold is not subtracted from the remaining seats"
    )


class SlotAvailability(BaseModel):
    """Online availability of one departure."""

    remaining_seats: int = Field(..., ge=0, description="Seats still bookable online")
    booking_allowed: bool = Field(..., description="Departure is inside the booking window")
    wheelchair_available: bool = Field(..., description="Vehicle takes wheelchairs")
    children_free: bool = Field(..., description="Children ride free on this departure")


class AvailabilityResponse(BaseModel):
    """Response schema for online availability."""

    tour_date: date
    tour_type: TourType
    slots: dict[str, SlotAvailability] = Field(..., description="Availability keyed by HH:MM")
    prices: Prices


class GetStaffedAvailabilityRequest(BaseModel):
    """Request schema for the point-of-sale overview; defaults to today."""

    tour_date: date | None = Field(None, description="Day to check")


class StaffedSlotAvailability(BaseModel):
    """Both channels' view of one departure."""

    online_remaining: int = Field(..., ge=0)
    online_capacity: int
    staffed_remaining: int = Field(..., ge=0)
    staffed_capacity: int
    booked_seats: int
    children_free: bool


class StaffedTourAvailability(BaseModel):
    slots: dict[str, StaffedSlotAvailability]
    prices: Prices


class StaffedAvailabilityResponse(BaseModel):
    """Response schema for the point-of-sale overview."""

    tour_date: date
    tours: dict[TourType, StaffedTourAvailability] = Field(
        ...,
        description="Tour types with a configuration valid on the day"
    )
