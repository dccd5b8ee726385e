"""Catalog router for publishing tour configurations."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import DatabaseSession
from ..schemas.catalog import CreateTourConfigRequest, TourConfig
from ..services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/catalog", tags=["catalog"])


@router.post("/create", response_model=TourConfig)
async def create_tour_config(
    request: CreateTourConfigRequest,
    db: AsyncSession = DatabaseSession,
) -> JSONResponse:
    """
    Publish a tour configuration.

    The newest configuration whose validity covers a date is the one used for
    that date; older ones stay for history.
    """
    catalog_service = CatalogService(db)
    config = await catalog_service.create_config(request)
    response_data = TourConfig.model_validate(config)
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))
