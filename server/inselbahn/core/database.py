"""Database configuration, async session management and store error translation."""

import asyncio
import functools
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from .config import settings
from .exceptions import DependencyError, ProblemDetailsException

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _engine_options(database_url: str) -> dict[str, Any]:
    """Build dialect-specific engine options."""
    if "sqlite" in database_url:
        # StaticPool keeps in-memory SQLite databases alive across sessions
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    options: dict[str, Any] = {
        "pool_pre_ping": True,
        "pool_timeout": settings.store_timeout_seconds,
    }
    if "asyncpg" in database_url:
        options["connect_args"] = {
            "timeout": settings.store_timeout_seconds,
            "command_timeout": settings.store_timeout_seconds,
        }
    return options


# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=False,
    future=True,
    **_engine_options(settings.database_url),
)

# Create async session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)

# Create declarative base for models
Base = declarative_base()


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function that yields database sessions.

    Yields:
        AsyncSession: Database session
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()


def store_call(operation: str) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Translate record store failures raised by a service method into DependencyError.

    Domain errors pass through untouched. Store errors are logged with full
    detail here; callers only see the generic retryable problem.

    Args:
        operation: Operation name used in logs
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except ProblemDetailsException:
                raise
            except (OperationalError, DBAPIError, asyncio.TimeoutError, ConnectionError) as e:
                logger.error(
                    "Record store call failed",
                    extra={"operation": operation, "error": str(e)},
                    exc_info=True,
                )
                raise DependencyError(dependency="record store", operation=operation) from e
            except SQLAlchemyError as e:
                logger.error(
                    "Unexpected record store error",
                    extra={"operation": operation, "error": str(e)},
                    exc_info=True,
                )
                raise DependencyError(dependency="record store", operation=operation) from e

        return wrapper

    return decorator
