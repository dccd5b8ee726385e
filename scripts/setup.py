#!/usr/bin/env python3
"""Setup script for the reservation engine: migrate the database and seed the catalog."""

import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command
from alembic.config import Config
from sqlalchemy import func, select

from inselbahn.core.database import async_session_factory, close_db
from inselbahn.models import TourConfig, TourType
from inselbahn.schemas.catalog import CreateTourConfigRequest
from inselbahn.services.catalog_service import CatalogService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Timetable of the 2025 season; prices in cents are placeholders until the
# office publishes the season's fares through /v1/catalog/create.
DEFAULT_CATALOG = [
    CreateTourConfigRequest(
        tour_type=TourType.UNTERLAND,
        times=["13:30", "14:30"],
        adult_price=1100,
        child_price=600,
        valid_from=date(2025, 1, 1),
    ),
    CreateTourConfigRequest(
        tour_type=TourType.PREMIUM,
        times=["10:30", "12:30", "14:15", "16:00"],
        adult_price=2500,
        child_price=1500,
        valid_from=date(2025, 1, 1),
    ),
]


def run_migrations() -> None:
    """Run Alembic migrations up to head."""
    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))

    logger.info("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def seed_catalog() -> None:
    """Publish the default tour configurations into an empty catalog."""
    async with async_session_factory() as db:
        existing = await db.execute(select(func.count()).select_from(TourConfig))
        if existing.scalar_one() > 0:
            logger.info("Catalog already seeded, skipping...")
            return

        catalog_service = CatalogService(db)
        for request in DEFAULT_CATALOG:
            await catalog_service.create_config(request)
            logger.info("Seeded %s timetable %s", request.tour_type.value, ", ".join(request.times))

    await close_db()


def main() -> None:
    """Main setup function."""
    logger.info("Starting reservation engine setup...")

    # Alembic's env runs its own event loop, so migrations go first
    run_migrations()
    asyncio.run(seed_catalog())

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn inselbahn.main:app --reload")


if __name__ == "__main__":
    main()
