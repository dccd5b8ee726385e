"""Health check router."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import Clock
from ..core.config import settings
from ..core.dependencies import ClockDependency, DatabaseSession
from ..core.observability import SERVICE_NAME, SERVICE_VERSION
from ..schemas.health import HealthResponse, HealthStatus

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def check_database(db: AsyncSession) -> str:
    """Round-trip to the record store; returns "ok" or "unavailable"."""
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Readiness database check failed", extra={"error": str(e)})
        return "unavailable"
    return "ok"


@router.get("/health", summary="Health Check")
async def health_check() -> dict:
    """Liveness: the process is up and serving."""
    return {
        "status": HealthStatus.HEALTHY.value,
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "environment": settings.environment,
    }


@router.get("/ready", response_model=HealthResponse, summary="Readiness Check")
async def readiness_check(
    db: AsyncSession = DatabaseSession,
    clock: Clock = ClockDependency,
) -> JSONResponse:
    """Readiness: the record store answers. Responds 503 while it does not."""
    database = await check_database(db)
    healthy = database == "ok"
    response_data = HealthResponse(
        status=HealthStatus.HEALTHY if healthy else HealthStatus.DEGRADED,
        timestamp=clock.now(),
        version=SERVICE_VERSION,
        checks={"database": database},
    )
    return JSONResponse(
        status_code=200 if healthy else 503,
        content=response_data.model_dump(mode="json"),
    )


@router.post("/v1/health/ping", response_model=HealthResponse)
async def health_ping(clock: Clock = ClockDependency) -> JSONResponse:
    """
    Health check endpoint.

    Returns current service status and timestamp.
    """
    response_data = HealthResponse(
        status=HealthStatus.HEALTHY,
        timestamp=clock.now(),
        version=SERVICE_VERSION,
    )

    logger.debug(
        "Health check requested",
        extra={
            "status": response_data.status.value,
            "timestamp": response_data.timestamp.isoformat()
        }
    )

    return JSONResponse(
        status_code=200,
        content=response_data.model_dump(mode="json")
    )
