"""
In-process volatile tier.

Holds at most one payload.  The value is served until the configured
window has elapsed since the last write.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from ratecache.storage.base import Clock, ReadResult, is_fresh, utc_now

logger = logging.getLogger(__name__)


class MemoryStorage:
    """Single-slot in-memory cache with a freshness window.

    Args:
        expiration_interval: How long a written value stays fresh.
        clock: Callable returning the current UTC time.
        name: Tier name used in logs and resolver statistics.
    """

    def __init__(
        self,
        expiration_interval: timedelta,
        clock: Clock = utc_now,
        name: str = "memory",
    ) -> None:
        self.name = name
        self._expiration_interval = expiration_interval
        self._clock = clock
        self._value: Optional[Any] = None
        self._last_updated: Optional[datetime] = None

    @property
    def can_write(self) -> bool:
        return True

    @property
    def expiration_interval(self) -> timedelta:
        return self._expiration_interval

    async def read(self) -> ReadResult:
        if self._value is None or self._last_updated is None:
            return ReadResult.absent()

        if not is_fresh(self._last_updated, self._expiration_interval, self._clock()):
            logger.debug("Memory tier entry expired", extra={"tier": self.name})
            return ReadResult.absent()

        logger.debug("Memory tier hit", extra={"tier": self.name})
        return ReadResult.hit(self._value)

    async def write(self, value: Any) -> None:
        self._value = value
        self._last_updated = self._clock()
        logger.debug("Memory tier set", extra={"tier": self.name})
