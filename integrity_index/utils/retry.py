"""
Retry logic with exponential backoff for upstream HTTP calls.

Responsibility: Retry transient network failures with backoff and jitter
"""

import asyncio
import random
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar
import logging

import httpx

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RetryError(Exception):
    """Raised when all retry attempts are exhausted"""

    def __init__(self, message: str, last_exception: Optional[Exception] = None):
        super().__init__(message)
        self.last_exception = last_exception


def calculate_backoff(
    attempt: int,
    base_delay: float = 0.5,
    max_delay: float = 8.0,
    exponential_base: float = 2.0,
    jitter: bool = True
) -> float:
    """
    Backoff delay for a 0-indexed retry attempt.

    ``min(max_delay, base_delay * exponential_base ** attempt)``, scaled
    into [0.5x, 1.0x] when jitter is on.
    """
    delay = min(base_delay * (exponential_base ** attempt), max_delay)
    if jitter:
        delay = delay * (0.5 + random.random() * 0.5)
    return delay


def is_retryable_error(
    exception: Exception,
    retryable_exceptions: Tuple[Type[Exception], ...] = ()
) -> bool:
    """
    Timeouts, connection errors, HTTP 5xx and 429 are retryable.

    Anything in ``retryable_exceptions`` is too.
    """
    if retryable_exceptions and isinstance(exception, retryable_exceptions):
        return True

    if isinstance(exception, (httpx.TimeoutException, httpx.ConnectError)):
        return True

    if isinstance(exception, httpx.HTTPStatusError):
        status_code = exception.response.status_code
        return status_code >= 500 or status_code == 429

    return False


async def retry_async(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 8.0,
    jitter: bool = True,
    retryable_exceptions: Tuple[Type[Exception], ...] = (),
    logger_instance: Optional[logging.Logger] = None,
    on_retry: Optional[Callable[[int, Exception], None]] = None,
) -> T:
    """
    Retry an async callable with exponential backoff.

    Non-retryable errors propagate immediately; exhausting every attempt
    raises ``RetryError`` wrapping the last failure.

    Example:
        response = await retry_async(lambda: client.get(url), max_attempts=3)
    """
    log = logger_instance or logger
    last_exception: Optional[Exception] = None

    for attempt in range(max_attempts):
        try:
            result = await func()
            if attempt > 0:
                log.info(f"Succeeded after {attempt + 1} attempts")
            return result

        except Exception as e:
            last_exception = e

            if not is_retryable_error(e, retryable_exceptions):
                raise

            if attempt + 1 >= max_attempts:
                log.error(
                    f"All {max_attempts} retry attempts exhausted. "
                    f"Last error: {e}"
                )
                raise RetryError(
                    f"Failed after {max_attempts} attempts",
                    last_exception=e
                ) from e

            delay = calculate_backoff(
                attempt=attempt,
                base_delay=base_delay,
                max_delay=max_delay,
                jitter=jitter
            )
            log.warning(
                f"Attempt {attempt + 1}/{max_attempts} failed: {e}. "
                f"Retrying in {delay:.2f}s..."
            )
            if on_retry is not None:
                on_retry(attempt + 1, e)
            await asyncio.sleep(delay)

    raise RetryError(
        f"Failed after {max_attempts} attempts",
        last_exception=last_exception
    )
