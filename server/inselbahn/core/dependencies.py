"""FastAPI dependencies for database sessions, the clock, the capacity policy and email."""

from functools import lru_cache
from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..services.capacity_policy import CapacityPolicy
from ..services.notification_service import NotificationService, SmtpEmailSender
from .clock import Clock, system_clock
from .config import settings
from .database import get_async_session


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database dependency that provides async database sessions.

    Yields:
        AsyncSession: Database session
    """
    async for session in get_async_session():
        yield session


def get_clock() -> Clock:
    """Wall clock; tests override this with a controllable one."""
    return system_clock


@lru_cache
def get_capacity_policy() -> CapacityPolicy:
    """Capacity policy built once from settings."""
    return CapacityPolicy.from_settings(settings)


@lru_cache
def get_email_sender() -> SmtpEmailSender:
    return SmtpEmailSender(settings)


def get_notifier(
    db: AsyncSession = Depends(get_db),
    sender: SmtpEmailSender = Depends(get_email_sender),
) -> NotificationService:
    return NotificationService(db, sender=sender)


DatabaseSession = Depends(get_db)
ClockDependency = Depends(get_clock)
PolicyDependency = Depends(get_capacity_policy)
NotifierDependency = Depends(get_notifier)
