"""FastAPI application initialization and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.database import close_db, engine, init_db
from .core.exceptions import (
    ProblemDetailsException,
    generic_exception_handler,
    problem_details_handler,
    request_validation_handler,
)
from .core.middleware import setup_middleware
from .core.observability import (
    SERVICE_NAME,
    SERVICE_VERSION,
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_structured_logging,
    setup_tracing,
)
from .routers import admin, availability, booking, catalog, health, metrics, reservation
from .workers.manager import WorkerManager, worker_manager

# Configure structured logging
setup_structured_logging()

logger = logging.getLogger(__name__)


def build_lifespan(manager: WorkerManager, create_tables: bool = True):
    """Lifespan that prepares the store and runs the background workers."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(
            "Starting reservation engine",
            extra={"environment": settings.environment, "debug": settings.debug}
        )

        try:
            if create_tables:
                await init_db()
                logger.info("Database initialized")

            await manager.start_all()
        except Exception as e:
            logger.error("Failed to initialize application", extra={"error": str(e)}, exc_info=True)
            raise

        logger.info("Application startup complete")

        yield

        logger.info("Shutting down reservation engine")
        try:
            await manager.stop_all()
            if create_tables:
                await close_db()
                logger.info("Database connections closed")
        except Exception as e:
            logger.error("Error during application cleanup", extra={"error": str(e)}, exc_info=True)

        logger.info("Application shutdown complete")

    return lifespan


def create_app(manager: WorkerManager | None = None, create_tables: bool = True, instrument: bool = True) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        manager: Worker manager run by the lifespan, the global one by default
        create_tables: Create tables on startup and dispose the engine on shutdown
        instrument: Set up OpenTelemetry tracing and instrumentation

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="Inselbahn Reservation Engine",
        description=(
            "Seat inventory and reservations for the Helgoland island tours: "
            "availability, checkout holds, bookings, cancellations and statistics"
        ),
        version=SERVICE_VERSION,
        debug=settings.debug,
        lifespan=build_lifespan(manager or worker_manager, create_tables=create_tables),
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )

    # Setup custom middleware
    setup_middleware(app, enable_logging=True)

    if instrument:
        setup_tracing(SERVICE_NAME)
        instrument_fastapi(app)
        instrument_sqlalchemy(engine)

    # Register exception handlers
    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # Register API routers
    app.include_router(health.router)
    app.include_router(catalog.router)
    app.include_router(availability.router)
    app.include_router(reservation.router)
    app.include_router(booking.router)
    app.include_router(admin.router)
    app.include_router(metrics.router)

    logger.info("FastAPI application created and configured")

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "inselbahn.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
