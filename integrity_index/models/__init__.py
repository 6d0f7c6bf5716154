"""
Models package for Integrity Index.

This package contains:
- Adapter responses and source record DTOs
- Domain enumerations (jurisdiction, trade direction, economic sector)
- Conflict audit and sync result value objects
"""

from .adapter_models import (
    AdapterStatus,
    AdapterError,
    AdapterMetrics,
    AdapterResponse,
)
from .enums import EconomicSector, Jurisdiction, TradeDirection
from .conflict import ConflictFlag, ConflictReport, ConflictSource
from .sync import StepResult, SyncResult, SyncTask

__all__ = [
    "AdapterStatus",
    "AdapterError",
    "AdapterMetrics",
    "AdapterResponse",
    "EconomicSector",
    "Jurisdiction",
    "TradeDirection",
    "ConflictFlag",
    "ConflictReport",
    "ConflictSource",
    "StepResult",
    "SyncResult",
    "SyncTask",
]
