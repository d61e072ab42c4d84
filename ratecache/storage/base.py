"""
Storage tier contract shared by every backend in a resolution chain.

A tier holds at most one cached copy of the payload.  It reports what
it holds through a :class:`ReadResult` instead of returning ``None`` or
raising, so that "nothing here", "temporarily unreachable" and "stored
data is broken" stay distinguishable.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from pydantic import BaseModel

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock for all tiers."""
    return datetime.now(timezone.utc)


class ReadStatus(str, Enum):
    """Outcome of a single tier read."""

    HIT = "hit"
    ABSENT = "absent"
    FAILED = "failed"
    CORRUPT = "corrupt"


class ReadResult(BaseModel):
    """Result of a tier read.

    Attributes:
        status: Which outcome the read produced.
        payload: The fresh value (only set on ``HIT``).
        error: Human-readable failure description (``FAILED`` / ``CORRUPT``).
    """

    status: ReadStatus
    payload: Optional[Any] = None
    error: Optional[str] = None

    @classmethod
    def hit(cls, payload: Any) -> "ReadResult":
        return cls(status=ReadStatus.HIT, payload=payload)

    @classmethod
    def absent(cls) -> "ReadResult":
        return cls(status=ReadStatus.ABSENT)

    @classmethod
    def failed(cls, error: str) -> "ReadResult":
        return cls(status=ReadStatus.FAILED, error=error)

    @classmethod
    def corrupt(cls, error: str) -> "ReadResult":
        return cls(status=ReadStatus.CORRUPT, error=error)

    @property
    def is_hit(self) -> bool:
        return self.status is ReadStatus.HIT


@runtime_checkable
class StorageTier(Protocol):
    """Protocol for one backend in the resolution chain.

    Any concrete tier must expose these attributes and coroutines.
    """

    name: str

    @property
    def can_write(self) -> bool:
        """Whether back-fill may target this tier.  Static per instance."""
        ...

    @property
    def expiration_interval(self) -> Optional[timedelta]:
        """Freshness window, or ``None`` when expiry does not apply."""
        ...

    async def read(self) -> ReadResult:
        """Return the tier's current value, if it holds a fresh one.

        Returns:
            A :class:`ReadResult`; absence is a normal ``ABSENT`` result.
        """
        ...

    async def write(self, value: Any) -> None:
        """Store *value* as the tier's current value and reset its clock.

        Raises:
            WriteUnsupportedError: If ``can_write`` is False.
            StorageIOError: If the backing store cannot be written.
        """
        ...


def is_fresh(written_at: datetime, window: timedelta, now: datetime) -> bool:
    """Return True while ``now`` is strictly before ``written_at + window``."""
    return now - written_at < window
