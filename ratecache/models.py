"""
Payload models for ratecache.

``ExchangeRateList`` is the value every tier stores and the chain
resolves.  ``OpenExchangeRatesResponse`` mirrors the subset of the
Open Exchange Rates ``latest.json`` schema the remote tier consumes.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict

from pydantic import BaseModel, Field, field_validator


class ExchangeRateList(BaseModel):
    """A snapshot of exchange rates.

    Attributes:
        base: Currency every rate is quoted against.
        rates: Mapping of ISO currency code to rate.
        timestamp: UTC time the rates were published.
    """

    base: str = "USD"
    rates: Dict[str, Decimal] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("timestamp")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class OpenExchangeRatesResponse(BaseModel):
    """Response body of ``GET /latest.json``.

    Attributes:
        timestamp: Unix time (seconds) of the rate snapshot.
        base: Base currency code.
        rates: Mapping of currency code to rate.
    """

    timestamp: int
    base: str = "USD"
    rates: Dict[str, Decimal]

    def to_rate_list(self) -> ExchangeRateList:
        """Convert the API response into the cached payload shape."""
        return ExchangeRateList(
            base=self.base,
            rates=dict(self.rates),
            timestamp=datetime.fromtimestamp(self.timestamp, tz=timezone.utc),
        )
