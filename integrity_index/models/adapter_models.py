"""
Adapter response models.

Defines unified response structures for all data source adapters.
These models ensure consistent error handling, metrics tracking,
and data normalization across different data sources.

Responsibility: Data transfer objects for adapter operations
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar, Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field


class AdapterStatus(str, Enum):
    """
    Status of an adapter operation.

    Used to quickly determine if retry logic or error handling is needed.
    """
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"  # Some records failed, some succeeded
    FAILURE = "failure"
    RATE_LIMITED = "rate_limited"
    SOURCE_UNAVAILABLE = "source_unavailable"


class AdapterError(BaseModel):
    """
    Structured error information from adapter operations.

    Captures context needed for debugging and retry decisions.
    """
    timestamp: datetime = Field(description="When the error occurred (UTC)")
    error_type: str = Field(description="Exception class name or error category")
    message: str = Field(description="Human-readable error message")
    context: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional context (URL, record ID, etc.)"
    )
    retryable: bool = Field(
        default=False,
        description="Whether this error can be retried"
    )


class AdapterMetrics(BaseModel):
    """Operational metrics for adapter execution."""
    records_attempted: int = Field(ge=0)
    records_succeeded: int = Field(ge=0)
    records_failed: int = Field(ge=0)
    duration_seconds: float = Field(ge=0.0)
    rate_limit_hits: int = Field(ge=0, default=0)
    retry_count: int = Field(ge=0, default=0)


T = TypeVar('T')


class AdapterResponse(BaseModel, Generic[T]):
    """
    Unified response wrapper for all adapter operations.

    Generic type T represents the normalized record (e.g. RosterMemberData).
    Callers treat anything other than a success status as "no data from this
    source right now" and carry on.
    """
    status: AdapterStatus = Field(description="Operation status")
    data: Optional[List[T]] = Field(
        default=None,
        description="List of successfully normalized records"
    )
    errors: List[AdapterError] = Field(default_factory=list)
    metrics: AdapterMetrics = Field(description="Operation performance metrics")
    source: str = Field(description="Adapter/source identifier")
    fetch_timestamp: datetime = Field(description="When data was fetched (UTC)")
    cache_until: Optional[datetime] = Field(default=None)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def ok(self) -> bool:
        return self.status in (AdapterStatus.SUCCESS, AdapterStatus.PARTIAL_SUCCESS)

    @property
    def records(self) -> List[T]:
        """Normalized records, or an empty list when the source failed."""
        return list(self.data or [])


# Data transfer objects for specific entity types


@dataclass
class DisclosureRowData:
    """One row of a member's public ethics-registry declaration."""
    asset_name: str
    nature_of_interest: Optional[str] = None
    is_material_change: bool = False
    event_date: Optional[datetime] = None


@dataclass
class RosterMemberData:
    """Legislator as published by a roster source."""
    id: str
    name: str
    riding: str
    party: str
    photo_url: Optional[str] = None
    official_id: Optional[str] = None


@dataclass
class BillData:
    """Bill summary from the LEGISinfo overview feed."""
    number: str
    status: str
    title: Optional[str] = None


@dataclass
class QuoteData:
    """Point-in-time market quote."""
    symbol: str
    price: float
    change: float
    previous_close: Optional[float] = None


@dataclass
class CommitteeMemberData:
    """Committee roster entry; only the display name is reliable."""
    name: str
    party: Optional[str] = None
