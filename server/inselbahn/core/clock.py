"""Wall clock used by the engine.

Timestamps are naive UTC throughout the record store.
"""

from datetime import datetime, timezone


class Clock:
    """System wall clock."""

    def now(self) -> datetime:
        """Current time as naive UTC."""
        return datetime.now(timezone.utc).replace(tzinfo=None)


system_clock = Clock()
