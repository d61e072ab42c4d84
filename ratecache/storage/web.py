"""
Open Exchange Rates tier (authoritative, read-only).

Every read performs ``GET {base_url}/latest.json``.  Network failures
and non-2xx responses are reported as ``FAILED`` reads so the chain
can finish gracefully; they are logged, never raised.
"""

import json
import logging
from datetime import timedelta
from decimal import Decimal
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from ratecache.exceptions import WriteUnsupportedError
from ratecache.models import OpenExchangeRatesResponse
from ratecache.storage.base import ReadResult

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openexchangerates.org/api"


class WebServiceStorage:
    """Remote tier backed by the Open Exchange Rates HTTP API.

    Args:
        api_key: Open Exchange Rates ``app_id``.
        base_url: API root, without trailing ``/latest.json``.
        timeout_seconds: Per-request timeout.
        base_currency: Optional ``base`` query parameter.
        client: Pre-built ``httpx.AsyncClient``; when omitted the tier
            creates and owns one.
        name: Tier name used in logs and resolver statistics.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 10.0,
        base_currency: str = "",
        client: Optional[httpx.AsyncClient] = None,
        name: str = "web",
    ) -> None:
        if not api_key or not api_key.strip():
            raise ValueError("API key must not be empty")
        self.name = name
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/latest.json"
        self._base_currency = base_currency
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout_seconds)

    @property
    def can_write(self) -> bool:
        return False

    @property
    def expiration_interval(self) -> Optional[timedelta]:
        return None

    async def read(self) -> ReadResult:
        """Fetch the latest rates.

        Returns:
            ``HIT`` with an ``ExchangeRateList``, or ``FAILED`` when the
            request or the response body is unusable.
        """
        params = {"app_id": self._api_key}
        if self._base_currency:
            params["base"] = self._base_currency

        try:
            response = await self._client.get(self._url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Exchange rate API returned error status",
                extra={"tier": self.name, "status_code": e.response.status_code},
            )
            return ReadResult.failed(f"HTTP {e.response.status_code}")
        except httpx.TimeoutException as e:
            logger.warning(
                "Exchange rate API request timed out",
                extra={"tier": self.name, "error": str(e)},
            )
            return ReadResult.failed(f"timeout: {e}")
        except httpx.RequestError as e:
            logger.warning(
                "Exchange rate API request failed",
                extra={"tier": self.name, "error": str(e)},
            )
            return ReadResult.failed(f"request error: {e}")

        try:
            data = json.loads(response.text, parse_float=Decimal)
            body = OpenExchangeRatesResponse.model_validate(data)
            rates = body.to_rate_list()
        except (ValueError, ValidationError, OverflowError, OSError) as e:
            logger.warning(
                "Exchange rate API response did not match schema",
                extra={"tier": self.name, "error": str(e)},
            )
            return ReadResult.failed(f"invalid response: {e}")

        logger.info(
            "Exchange rates fetched",
            extra={"tier": self.name, "currencies": len(rates.rates)},
        )
        return ReadResult.hit(rates)

    async def write(self, value: Any) -> None:
        raise WriteUnsupportedError(f"Tier '{self.name}' is read-only")

    async def aclose(self) -> None:
        """Close the HTTP client if this tier created it."""
        if self._owns_client:
            await self._client.aclose()
