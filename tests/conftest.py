"""Shared fixtures: a controllable clock and an instrumented tier."""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, List, Optional

import pytest

from ratecache.config import reset_settings
from ratecache.models import ExchangeRateList
from ratecache.storage.base import ReadResult


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingTier:
    """Tier double that returns a fixed read result and records calls."""

    def __init__(
        self,
        name: str,
        result: Optional[ReadResult] = None,
        can_write: bool = True,
        write_error: Optional[Exception] = None,
        read_error: Optional[Exception] = None,
    ) -> None:
        self.name = name
        self._result = result or ReadResult.absent()
        self._can_write = can_write
        self._write_error = write_error
        self._read_error = read_error
        self.read_calls = 0
        self.writes: List[Any] = []

    @property
    def can_write(self) -> bool:
        return self._can_write

    @property
    def expiration_interval(self) -> Optional[timedelta]:
        return timedelta(hours=1)

    async def read(self) -> ReadResult:
        self.read_calls += 1
        if self._read_error is not None:
            raise self._read_error
        return self._result

    async def write(self, value: Any) -> None:
        self.writes.append(value)
        if self._write_error is not None:
            raise self._write_error


@pytest.fixture(autouse=True)
def _clean_settings():
    """Reset the settings singleton around every test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def _drop_installed_log_handler():
    """Remove the root handler installed by configure_logging, if any."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler.get_name() == "ratecache":
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rates() -> ExchangeRateList:
    return ExchangeRateList(
        base="USD",
        rates={"EUR": Decimal("0.92"), "GBP": Decimal("0.79"), "JPY": Decimal("148.5")},
        timestamp=datetime(2024, 1, 1, 11, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def make_tier():
    """Factory for :class:`RecordingTier` instances."""
    return RecordingTier
