"""
Base adapter interface for all upstream data sources.

Defines the contract every source adapter (ethics registry, rosters,
LEGISinfo, market quotes, committee rosters) implements. Ensures
consistent error handling, rate limiting, and response format.

Responsibility: Abstract base class defining adapter contract
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar
import logging

import httpx

from ..config import settings
from ..models.adapter_models import (
    AdapterResponse,
    AdapterStatus,
    AdapterError,
    AdapterMetrics,
)
from ..utils.dates import utcnow
from ..utils.rate_limiter import RateLimiter
from ..utils.retry import RetryError, retry_async


T = TypeVar('T')


class BaseAdapter(ABC, Generic[T]):
    """
    Abstract base class for all data source adapters.

    Every adapter MUST:
    1. Implement fetch() to retrieve data
    2. Implement normalize() to convert one raw record to a DTO
    3. Rate limit requests through self.rate_limiter
    4. Return AdapterResponse with normalized data or errors

    Subclasses should NOT raise from fetch(); an unavailable source is an
    empty result for the caller, not an exception.
    """

    def __init__(
        self,
        source_name: str,
        rate_limit_per_second: float = 2.0,
        max_retries: int = 2,
        timeout_seconds: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize base adapter.

        Args:
            source_name: Identifier for this adapter (e.g., "ciec")
            rate_limit_per_second: Maximum requests per second
            max_retries: Attempts for retryable errors (1 = no retries)
            timeout_seconds: Request timeout; defaults to settings
            client: Pre-built HTTP client (tests pass one with a mock transport)
        """
        self.source_name = source_name
        self.rate_limit_per_second = rate_limit_per_second
        self.max_retries = max_retries
        self.timeout_seconds = timeout_seconds or settings.sources.http_timeout_seconds

        self.rate_limiter = RateLimiter(rate=rate_limit_per_second, burst=1)
        self.logger = logging.getLogger(f"adapter.{source_name}")

        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=self.timeout_seconds,
            headers={
                "User-Agent": settings.sources.user_agent,
                "Accept": "application/json, text/csv, application/xml, text/html;q=0.9",
            },
            follow_redirects=True,
        )
        self._retry_count = 0

    @abstractmethod
    async def fetch(self, **kwargs: Any) -> AdapterResponse[T]:
        """Fetch and normalize records from the source."""

    @abstractmethod
    def normalize(self, raw_data: Any) -> T:
        """
        Normalize one raw record into its DTO.

        Raises:
            ValueError: If the record cannot be normalized (caught by fetch())
        """

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _reset_metrics(self) -> None:
        self._retry_count = 0
        self.rate_limiter.hits = 0

    def _on_retry(self, attempt: int, error: Exception) -> None:
        self._retry_count += 1

    async def _request_with_retries(
        self,
        request: Callable[..., Awaitable[httpx.Response]],
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Rate-limited request with retries on transient failures.

        HTTP error statuses are raised as ``httpx.HTTPStatusError``; an
        exhausted retry budget re-raises the last underlying error.
        """
        async def call() -> httpx.Response:
            await self.rate_limiter.acquire()
            self.logger.debug(f"GET {url}")
            response = await request(url, **kwargs)
            response.raise_for_status()
            return response

        try:
            return await retry_async(
                call,
                max_attempts=self.max_retries,
                logger_instance=self.logger,
                on_retry=self._on_retry,
            )
        except RetryError as e:
            if e.last_exception is not None:
                raise e.last_exception from e
            raise

    def _build_success_response(
        self,
        data: list[T],
        errors: list[AdapterError],
        start_time: datetime,
        cache_ttl_seconds: Optional[int] = None
    ) -> AdapterResponse[T]:
        """Build a successful AdapterResponse with calculated metrics."""
        end_time = utcnow()
        duration = (end_time - start_time).total_seconds()

        status = AdapterStatus.SUCCESS if not errors else AdapterStatus.PARTIAL_SUCCESS

        cache_until = None
        if cache_ttl_seconds:
            cache_until = end_time + timedelta(seconds=cache_ttl_seconds)

        return AdapterResponse(
            status=status,
            data=data,
            errors=errors,
            metrics=AdapterMetrics(
                records_attempted=len(data) + len(errors),
                records_succeeded=len(data),
                records_failed=len(errors),
                duration_seconds=max(duration, 0.0),
                rate_limit_hits=self.rate_limiter.hits,
                retry_count=self._retry_count,
            ),
            source=self.source_name,
            fetch_timestamp=end_time,
            cache_until=cache_until
        )

    def _build_failure_response(
        self,
        error: Exception,
        start_time: datetime,
        retryable: bool = False
    ) -> AdapterResponse[T]:
        """
        Build a failed AdapterResponse.

        Used when the entire fetch fails (source unavailable, bad payload).
        """
        end_time = utcnow()
        duration = (end_time - start_time).total_seconds()

        return AdapterResponse(
            status=AdapterStatus.SOURCE_UNAVAILABLE if retryable else AdapterStatus.FAILURE,
            data=None,
            errors=[AdapterError(
                timestamp=end_time,
                error_type=type(error).__name__,
                message=str(error),
                context={"adapter": self.source_name},
                retryable=retryable
            )],
            metrics=AdapterMetrics(
                records_attempted=0,
                records_succeeded=0,
                records_failed=0,
                duration_seconds=max(duration, 0.0),
                rate_limit_hits=self.rate_limiter.hits,
                retry_count=self._retry_count,
            ),
            source=self.source_name,
            fetch_timestamp=end_time
        )

    def _record_error(self, errors: list[AdapterError], error: Exception, **context: Any) -> None:
        """Append a per-record normalization error."""
        errors.append(AdapterError(
            timestamp=utcnow(),
            error_type=type(error).__name__,
            message=str(error),
            context={"adapter": self.source_name, **context},
            retryable=False,
        ))
