"""FastAPI routers package."""

from .admin import router as admin_router
from .availability import router as availability_router
from .booking import router as booking_router
from .catalog import router as catalog_router
from .health import router as health_router
from .metrics import router as metrics_router
from .reservation import router as reservation_router

__all__ = [
    "admin_router",
    "availability_router",
    "booking_router",
    "catalog_router",
    "health_router",
    "metrics_router",
    "reservation_router",
]
