"""Service layer package."""

from .availability_service import AvailabilityService
from .booking_service import BookingService
from .cancellation_service import CancellationService
from .capacity_policy import CapacityPolicy, PassengerComposition
from .catalog_service import CatalogService
from .manifest_service import ManifestService
from .notification_service import NotificationService, SmtpEmailSender
from .occupancy_service import OccupancyService
from .reservation_service import ReservationService
from .statistics_service import StatisticsService

__all__ = [
    "AvailabilityService",
    "BookingService",
    "CancellationService",
    "CapacityPolicy",
    "CatalogService",
    "ManifestService",
    "NotificationService",
    "OccupancyService",
    "PassengerComposition",
    "ReservationService",
    "SmtpEmailSender",
    "StatisticsService",
]
