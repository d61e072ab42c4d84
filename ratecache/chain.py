"""
Read-through resolution over an ordered chain of storage tiers.

Tiers are read cheapest first.  The first tier that holds a fresh
value wins; every writable tier in front of it is then back-filled so
the next resolution is satisfied earlier in the chain.
"""

import logging
from datetime import timedelta
from typing import Dict, Generic, Optional, Sequence, Tuple, TypeVar

from pydantic import BaseModel, Field

from ratecache.config import Settings, get_settings
from ratecache.exceptions import (
    CorruptDataError,
    StorageIOError,
    TransientFailureError,
    WriteUnsupportedError,
)
from ratecache.storage.base import ReadResult, ReadStatus, StorageTier
from ratecache.storage.file import FileSystemStorage
from ratecache.storage.memory import MemoryStorage
from ratecache.storage.web import WebServiceStorage

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResolverStats(BaseModel):
    """Aggregate resolver statistics.

    Attributes:
        resolutions: Number of ``resolve()`` calls that completed.
        hits_by_tier: Hit count keyed by tier name.
        misses: Resolutions where every tier was absent.
        backfill_writes: Successful back-fill writes.
        backfill_failures: Back-fill writes that raised.
        read_failures: Transient read failures downgraded to misses.
        hit_rate: Ratio of resolutions that produced a value.
    """

    resolutions: int = 0
    hits_by_tier: Dict[str, int] = Field(default_factory=dict)
    misses: int = 0
    backfill_writes: int = 0
    backfill_failures: int = 0
    read_failures: int = 0
    hit_rate: float = 0.0


class ChainResolver(Generic[T]):
    """Resolve one value through an ordered, fixed list of tiers.

    Args:
        tiers: Tiers in priority order (index 0 is read first).
        fall_through_on_corrupt: When True, a tier reporting corrupt
            data is logged and skipped instead of aborting resolution.
    """

    def __init__(
        self,
        tiers: Sequence[StorageTier],
        fall_through_on_corrupt: bool = False,
    ) -> None:
        self._tiers: Tuple[StorageTier, ...] = tuple(tiers)
        self._fall_through_on_corrupt = fall_through_on_corrupt
        self._resolutions = 0
        self._hits_by_tier: Dict[str, int] = {}
        self._misses = 0
        self._backfill_writes = 0
        self._backfill_failures = 0
        self._read_failures = 0

    @property
    def tiers(self) -> Tuple[StorageTier, ...]:
        return self._tiers

    async def resolve(self) -> Optional[T]:
        """Return the first fresh value in the chain, back-filling earlier tiers.

        Returns:
            The resolved value, or ``None`` when no tier holds one.

        Raises:
            CorruptDataError: If a tier reports undecodable stored data
                and ``fall_through_on_corrupt`` is False.
        """
        for index, tier in enumerate(self._tiers):
            result = await self._read(tier)

            if result.is_hit:
                value = result.payload
                await self._backfill(index, value)
                self._resolutions += 1
                self._hits_by_tier[tier.name] = self._hits_by_tier.get(tier.name, 0) + 1
                logger.debug(
                    "Chain resolved",
                    extra={"tier": tier.name, "tier_index": index},
                )
                return value

            if result.status is ReadStatus.FAILED:
                self._read_failures += 1
                logger.warning(
                    "Tier read failed, treating as miss",
                    extra={"tier": tier.name, "error": result.error},
                )
            elif result.status is ReadStatus.CORRUPT:
                if not self._fall_through_on_corrupt:
                    raise CorruptDataError(
                        f"Tier '{tier.name}' holds corrupt data: {result.error}",
                        tier=tier.name,
                    )
                logger.error(
                    "Tier holds corrupt data, falling through",
                    extra={"tier": tier.name, "error": result.error},
                )

        self._resolutions += 1
        self._misses += 1
        logger.info("Chain exhausted without a value", extra={"tiers": len(self._tiers)})
        return None

    async def _read(self, tier: StorageTier) -> ReadResult:
        try:
            return await tier.read()
        except TransientFailureError as e:
            return ReadResult.failed(str(e))

    async def _backfill(self, hit_index: int, value: T) -> None:
        """Write *value* into every writable tier in front of ``hit_index``."""
        written = []
        for tier in self._tiers[:hit_index]:
            if not tier.can_write:
                continue
            try:
                await tier.write(value)
            except (StorageIOError, WriteUnsupportedError) as e:
                self._backfill_failures += 1
                logger.warning(
                    "Back-fill write failed",
                    extra={"tier": tier.name, "error": str(e)},
                )
                continue
            self._backfill_writes += 1
            written.append(tier.name)

        if written:
            logger.info("Back-filled tiers", extra={"tiers": written})

    def stats(self) -> ResolverStats:
        """Return aggregate resolver statistics."""
        hits = sum(self._hits_by_tier.values())
        return ResolverStats(
            resolutions=self._resolutions,
            hits_by_tier=dict(self._hits_by_tier),
            misses=self._misses,
            backfill_writes=self._backfill_writes,
            backfill_failures=self._backfill_failures,
            read_failures=self._read_failures,
            hit_rate=hits / self._resolutions if self._resolutions > 0 else 0.0,
        )

    async def aclose(self) -> None:
        """Release resources held by tiers that own any."""
        for tier in self._tiers:
            close = getattr(tier, "aclose", None)
            if close is not None:
                await close()

    async def __aenter__(self) -> "ChainResolver[T]":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def build_default_chain(settings: Optional[Settings] = None) -> ChainResolver:
    """Assemble the memory -> file -> web chain from settings.

    Args:
        settings: Settings to use; defaults to :func:`get_settings`.

    Returns:
        A resolver over the enabled tiers, web tier last.

    Raises:
        ConfigurationError: If the remote API key is not configured.
    """
    settings = settings or get_settings()
    api_key = settings.resolve_api_key()

    tiers = []
    if settings.memory.enabled:
        tiers.append(
            MemoryStorage(timedelta(seconds=settings.memory.expiration_seconds))
        )
    if settings.file.enabled:
        tiers.append(
            FileSystemStorage(
                settings.file.path,
                timedelta(seconds=settings.file.expiration_seconds),
            )
        )
    tiers.append(
        WebServiceStorage(
            api_key,
            base_url=settings.remote.base_url,
            timeout_seconds=settings.remote.timeout_seconds,
            base_currency=settings.remote.base_currency,
        )
    )

    logger.info(
        "Resolution chain assembled",
        extra={"tiers": [tier.name for tier in tiers]},
    )
    return ChainResolver(
        tiers,
        fall_through_on_corrupt=settings.resolver.fall_through_on_corrupt,
    )
