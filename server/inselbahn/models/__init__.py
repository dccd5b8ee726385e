"""Models module exporting all database models."""

from .booking import Booking, BookingStatus, Channel, PaymentMethod, PaymentStatus
from .reservation import ReservationHold
from .tour_config import TourConfig, TourType

__all__ = [
    # Catalog
    "TourConfig",
    "TourType",

    # Holds
    "ReservationHold",

    # Booking entities
    "Booking",
    "BookingStatus",
    "Channel",
    "PaymentMethod",
    "PaymentStatus",
]
