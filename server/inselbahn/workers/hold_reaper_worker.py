"""Background worker that deletes expired reservation holds."""

import logging
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import Clock, system_clock
from ..core.config import settings
from ..core.database import async_session_factory
from ..services.reservation_service import ReservationService
from .base import BaseWorker

logger = logging.getLogger(__name__)


class HoldReaperWorker(BaseWorker):
    """
    Periodically reaps holds past their expiry.

    Expired holds already stop counting the moment they expire; reaping only
    keeps the table small. Availability reads reap as well, so a missed sweep
    is harmless.
    """

    def __init__(
        self,
        interval_seconds: float | None = None,
        session_factory: Callable[[], AsyncSession] = async_session_factory,
        clock: Clock = system_clock,
    ):
        super().__init__(
            name="HoldReaper",
            interval_seconds=interval_seconds or settings.hold_reaper_interval_seconds,
        )
        self.session_factory = session_factory
        self.clock = clock
        self.last_reaped = 0

    async def process(self) -> None:
        """Reap expired holds in a session of its own."""
        async with self.session_factory() as db:
            reservation_service = ReservationService(db, clock=self.clock)
            self.last_reaped = await reservation_service.reap_expired_holds()

        if self.last_reaped:
            logger.info(
                "Reaper sweep removed expired holds",
                extra={"worker": self.name, "reaped": self.last_reaped}
            )
