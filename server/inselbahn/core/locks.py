"""Per-slot mutual exclusion for capacity read-check-write sequences."""

import asyncio
import logging
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from weakref import WeakKeyDictionary

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

# In-process locks for dialects without advisory locks (SQLite in tests).
# asyncio locks bind to one event loop, so they are kept per loop.
_local_slot_locks: "WeakKeyDictionary[asyncio.AbstractEventLoop, defaultdict[str, asyncio.Lock]]" = (
    WeakKeyDictionary()
)


def _local_lock(lock_key: str) -> asyncio.Lock:
    loop = asyncio.get_running_loop()
    locks = _local_slot_locks.get(loop)
    if locks is None:
        locks = _local_slot_locks[loop] = defaultdict(asyncio.Lock)
    return locks[lock_key]


def _uses_advisory_locks(db: AsyncSession) -> bool:
    return bool(db.bind) and db.bind.dialect.name == "postgresql"


@asynccontextmanager
async def slot_lock(db: AsyncSession, lock_key: str) -> AsyncIterator[None]:
    """
    Serialize capacity checks and writes for one slot.

    On PostgreSQL this takes a transaction-scoped advisory lock, released when
    the surrounding transaction commits or rolls back; the body must end the
    transaction. Elsewhere an in-process lock per key is held for the body.

    Args:
        db: Session whose transaction carries the lock
        lock_key: Slot key, see ``Slot.lock_key``
    """
    if _uses_advisory_locks(db):
        await db.execute(
            text("SELECT pg_advisory_xact_lock(hashtext(:lock_key))"),
            {"lock_key": lock_key}
        )
        logger.debug("Acquired advisory lock for slot", extra={"lock_key": lock_key})
        yield
        return

    async with _local_lock(lock_key):
        logger.debug("Acquired local lock for slot", extra={"lock_key": lock_key})
        yield
