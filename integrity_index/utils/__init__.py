"""
Utilities package for Integrity Index.

Reusable helpers for:
- Rate limiting and retries of upstream calls
- Time budgets for sync steps
- Slugs, text and date normalisation
- Committee identifiers
"""

from .rate_limiter import RateLimiter
from .retry import (
    retry_async,
    calculate_backoff,
    is_retryable_error,
    RetryError,
)
from .dedupe import dedupe_by_key
from .deadline import Deadline
from .slug import slug_from_name, allocate_unique_slug

__all__ = [
    "RateLimiter",
    "retry_async",
    "calculate_backoff",
    "is_retryable_error",
    "RetryError",
    "dedupe_by_key",
    "Deadline",
    "slug_from_name",
    "allocate_unique_slug",
]
