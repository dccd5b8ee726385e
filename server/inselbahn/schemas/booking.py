"""Booking-related Pydantic schemas."""

from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.booking import BookingStatus, Channel, PaymentMethod
from ..models.tour_config import TourType
from .common import Slot


class InvoiceDetails(BaseModel):
    """Billing address for invoice-on-account requests."""

    company: str = Field(..., min_length=1, max_length=255)
    tax_id: str | None = Field(None, max_length=64)
    street: str | None = Field(None, max_length=255)
    city: str | None = Field(None, max_length=255)


class CommitBookingRequest(BaseModel):
    """
    Request schema for committing a booking.

    ``adults`` and ``children`` count ambulatory passengers only; wheelchair
    passengers are given separately. ``infants`` ride free on a lap.
    """

    channel: Channel = Field(Channel.ONLINE, description="Online checkout or staffed sale")
    session_id: str | None = Field(None, max_length=128, description="Checkout session holding the seats")

    tour_type: TourType
    tour_date: date
    tour_time: time

    customer_name: str | None = Field(None, max_length=255)
    customer_email: str | None = Field(None, max_length=255)
    customer_phone: str | None = Field(None, max_length=64)

    adults: int = Field(0, ge=0, le=60)
    children: int = Field(0, ge=0, le=60)
    infants: int = Field(0, ge=0, le=60)
    wheelchair_adults: int = Field(0, ge=0, le=10)
    wheelchair_children: int = Field(0, ge=0, le=10)

    payment_method: PaymentMethod | None = Field(None, description="Point-of-sale payment method")
    payment_status: str | None = Field(None, max_length=32, description="Explicit payment status override")
    invoice_requested: bool = False
    invoice: InvoiceDetails | None = None

    @field_validator("customer_email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        if "@" not in v:
            raise ValueError("customer_email is not an email address")
        return v

    @model_validator(mode="after")
    def validate_channel_fields(self) -> "CommitBookingRequest":
        if self.adults + self.children + self.wheelchair_adults + self.wheelchair_children == 0:
            raise ValueError("at least one seat-taking passenger is required")
        if self.channel == Channel.ONLINE:
            if not self.session_id:
                raise ValueError("session_id is required for online bookings")
            if not self.customer_name or not self.customer_email:
                raise ValueError("customer_name and customer_email are required for online bookings")
        return self

    @property
    def slot(self) -> Slot:
        return Slot(tour_date=self.tour_date, tour_time=self.tour_time, tour_type=self.tour_type)


class Booking(BaseModel):
    """Booking response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Unique booking ID")
    booking_code: str = Field(..., description="Booking confirmation code")
    tour_type: TourType
    tour_date: date
    tour_time: time
    customer_name: str
    customer_email: str | None
    customer_phone: str | None
    adults: int
    children: int
    infants: int
    wheelchair_adults: int
    wheelchair_children: int
    total_amount: int = Field(..., description="Total price in cents")
    status: BookingStatus
    payment_status: str
    payment_method: PaymentMethod | None
    invoice_requested: bool
    invoice: dict[str, Any] | None
    sold_on_site: bool
    notes: str | None
    created_at: datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: object) -> str:
        return str(v)


class CommitBookingResponse(BaseModel):
    """Response schema for a committed booking."""

    booking: Booking
    total_amount: int = Field(..., description="Total price in cents")


class CancelBookingRequest(BaseModel):
    """Self-service cancellation by booking code and email."""

    booking_code: str = Field(..., min_length=1, max_length=16)
    email: str = Field(..., min_length=1, max_length=255)

    @field_validator("booking_code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("email")
    @classmethod
    def strip_email(cls, v: str) -> str:
        return v.strip()


class AdminCancelBookingRequest(BaseModel):
    """Administrative cancellation; no notice period applies."""

    booking_id: str = Field(..., description="Booking to cancel")
    notify_customer: bool = Field(False, description="Send a cancellation email")
    message: str | None = Field(None, max_length=5000, description="Text for the cancellation email")


class CancellationResponse(BaseModel):
    """Response schema for cancellations."""

    booking_code: str
    status: BookingStatus
    cancelled_at: datetime


class ListBookingsRequest(BaseModel):
    """Filters for the administrative booking list."""

    start_date: date | None = None
    end_date: date | None = None
    status: BookingStatus | None = None
    tour_type: TourType | None = None
    payment_status: str | None = Field(None, max_length=32)


class ListBookingsResponse(BaseModel):
    items: list[Booking]


class SendBookingEmailRequest(BaseModel):
    """Free-form message to the customer of one booking."""

    booking_id: str
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1, max_length=10000)


class GetManifestRequest(BaseModel):
    """Driver manifest request."""

    tour_date: date
    tour_type: TourType


class ManifestPassenger(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    booking_code: str
    customer_name: str
    adults: int
    children: int
    infants: int
    wheelchair_adults: int
    wheelchair_children: int
    notes: str | None


class ManifestDeparture(BaseModel):
    tour_time: time
    tour_type: TourType
    passenger_count: int
    bookings: list[ManifestPassenger]


class Manifest(BaseModel):
    """Confirmed passengers of one tour type on one day, per departure."""

    tour_date: date
    tour_type: TourType
    departures: list[ManifestDeparture]
