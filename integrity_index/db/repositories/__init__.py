"""
Repository package for data access operations.

Implements the repository pattern: each class wraps an ``AsyncSession``
and owns the queries for one aggregate or reference table.
"""

from .app_status_repository import AppStatusRepository
from .bill_repository import BillRepository
from .committee_repository import CommitteeRepository
from .disclosure_repository import DisclosureRepository
from .member_repository import MemberRepository
from .sector_repository import SectorRepository
from .trade_repository import TradeRepository

__all__ = [
    "AppStatusRepository",
    "BillRepository",
    "CommitteeRepository",
    "DisclosureRepository",
    "MemberRepository",
    "SectorRepository",
    "TradeRepository",
]
