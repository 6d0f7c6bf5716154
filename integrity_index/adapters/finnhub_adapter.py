"""
Market quote adapter backed by Finnhub.

Quotes are not persisted; the sync warms this adapter's short-lived cache
so presentation code reading quotes right after a sync hits memory.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import httpx

from .base_adapter import BaseAdapter
from ..config import settings
from ..models.adapter_models import AdapterResponse, QuoteData
from ..utils.dates import utcnow

QUOTE_CACHE_TTL_SECONDS = 60


class FinnhubQuoteAdapter(BaseAdapter[QuoteData]):
    """
    Adapter for Finnhub ``/quote``.

    Without an API key every lookup is "no quote" rather than an error.

    Example:
        adapter = FinnhubQuoteAdapter(api_key="...")
        quote = await adapter.get_quote("SU")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(
            source_name="finnhub",
            rate_limit_per_second=5.0,
            max_retries=1,
            client=client,
        )
        self.api_key = api_key if api_key is not None else settings.sources.finnhub_api_key
        self.quote_url = f"{settings.sources.finnhub_base_url.rstrip('/')}/quote"
        self._cache: Dict[str, Tuple[QuoteData, datetime]] = {}

    async def fetch(self, symbol: str, **kwargs: Any) -> AdapterResponse[QuoteData]:
        self._reset_metrics()
        start_time = utcnow()
        symbol = symbol.strip().upper()

        if not self.api_key:
            return self._build_failure_response(
                error=RuntimeError("FINNHUB_API_KEY is not configured"),
                start_time=start_time,
                retryable=False,
            )

        try:
            response = await self._request_with_retries(
                self.client.get,
                self.quote_url,
                params={"symbol": symbol, "token": self.api_key},
            )
            payload = response.json()
            payload["symbol"] = symbol
            quote = self.normalize(payload)
            return self._build_success_response(
                data=[quote],
                errors=[],
                start_time=start_time,
                cache_ttl_seconds=QUOTE_CACHE_TTL_SECONDS,
            )

        except httpx.HTTPError as e:
            self.logger.warning(f"Quote lookup failed for {symbol}: {e}")
            return self._build_failure_response(error=e, start_time=start_time, retryable=True)

        except Exception as e:
            self.logger.warning(f"Unusable quote for {symbol}: {e}")
            return self._build_failure_response(error=e, start_time=start_time, retryable=False)

    def normalize(self, raw_data: Dict[str, Any]) -> QuoteData:
        """
        Map Finnhub's ``c``/``d``/``pc`` fields; a non-positive price means
        Finnhub has no quote for the symbol.
        """
        price = raw_data.get("c") or raw_data.get("pc") or 0
        if float(price) <= 0:
            raise ValueError(f"no price for {raw_data.get('symbol')}")
        previous = raw_data.get("pc")
        return QuoteData(
            symbol=raw_data["symbol"],
            price=float(price),
            change=float(raw_data.get("d") or 0),
            previous_close=float(previous) if previous else None,
        )

    async def get_quote(self, symbol: str) -> Optional[QuoteData]:
        """Cached quote lookup; None when there is no key, no price, or an error."""
        key = symbol.strip().upper()
        if not key:
            return None
        cached = self._cache.get(key)
        if cached and cached[1] > utcnow():
            return cached[0]

        response = await self.fetch(symbol=key)
        records: List[QuoteData] = response.records
        if not records:
            return None
        self._cache[key] = (records[0], response.cache_until or utcnow())
        return records[0]

    def cached_quote(self, symbol: str) -> Optional[QuoteData]:
        cached = self._cache.get(symbol.strip().upper())
        return cached[0] if cached else None
