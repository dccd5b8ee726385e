"""Tour catalog service: versioned slot and price configuration."""

import logging
from datetime import date

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import store_call
from ..core.exceptions import CatalogNotFoundError, ValidationError
from ..models.tour_config import TourConfig, TourType
from ..schemas.catalog import CreateTourConfigRequest
from ..schemas.common import Slot

logger = logging.getLogger(__name__)


class CatalogService:
    """Service for tour configuration lookups and publication."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @store_call("catalog.get_current_config")
    async def get_current_config(self, tour_type: TourType, tour_date: date) -> TourConfig:
        """
        Get the configuration current for a tour type on a date.

        The current configuration is the one with the latest ``valid_from`` not
        after the date whose ``valid_until`` is open or not before it.

        Args:
            tour_type: Tour product
            tour_date: Departure date

        Returns:
            Current tour configuration

        Raises:
            CatalogNotFoundError: If no configuration covers the date
        """
        config = await self.find_current_config(tour_type, tour_date)
        if config is None:
            logger.warning(
                "No current tour configuration",
                extra={"tour_type": TourType(tour_type).value, "tour_date": tour_date.isoformat()}
            )
            raise CatalogNotFoundError(TourType(tour_type).value, tour_date)
        return config

    async def get_departure_config(self, slot: Slot) -> TourConfig:
        """
        Get the current configuration and check that it schedules the slot's time.

        Raises:
            CatalogNotFoundError: If no configuration covers the date
            ValidationError: If the configuration has no departure at that time
        """
        config = await self.get_current_config(slot.tour_type, slot.tour_date)
        if not config.has_departure(slot.tour_time):
            logger.info(
                "No departure at requested time",
                extra={"lock_key": slot.lock_key, "times": config.times}
            )
            raise ValidationError(
                f"No {TourType(slot.tour_type).value} departure at {slot.tour_time:%H:%M} on {slot.tour_date}",
                errors={"tour_time": f"must be one of {', '.join(config.times)}"},
            )
        return config

    async def find_current_config(self, tour_type: TourType, tour_date: date) -> TourConfig | None:
        stmt = (
            select(TourConfig)
            .where(
                TourConfig.tour_type == TourType(tour_type).value,
                TourConfig.valid_from <= tour_date,
                or_(TourConfig.valid_until.is_(None), TourConfig.valid_until >= tour_date),
            )
            .order_by(TourConfig.valid_from.desc(), TourConfig.created_at.desc())
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    @store_call("catalog.create_config")
    async def create_config(self, request: CreateTourConfigRequest) -> TourConfig:
        """Publish a new tour configuration."""
        config = TourConfig(
            tour_type=request.tour_type.value,
            times=list(request.times),
            child_free_times=list(request.child_free_times),
            adult_price=request.adult_price,
            child_price=request.child_price,
            valid_from=request.valid_from,
            valid_until=request.valid_until,
        )
        self.db.add(config)
        await self.db.commit()
        await self.db.refresh(config)

        logger.info(
            "Tour configuration created",
            extra={
                "config_id": str(config.id),
                "tour_type": request.tour_type.value,
                "times": request.times,
                "valid_from": request.valid_from.isoformat(),
                "valid_until": request.valid_until.isoformat() if request.valid_until else None,
            }
        )
        return config
