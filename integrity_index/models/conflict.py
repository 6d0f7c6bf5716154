"""
Value objects produced by the conflict auditor.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ConflictSource(str, Enum):
    """Kind of record a conflict was raised from"""
    DISCLOSURE = "disclosure"
    TRADE = "trade"


@dataclass(frozen=True)
class ConflictFlag:
    """
    A single holding overlapping an active committee's sectors.

    ``asset`` is the disclosure description or the trade symbol.
    """
    committee: str
    asset: str
    conflict_reason: str
    sector: str
    source: ConflictSource
    source_record_id: int

    @property
    def dedupe_key(self) -> tuple:
        return (self.committee, self.asset, self.source.value, self.source_record_id)


@dataclass
class ConflictReport:
    has_conflict: bool = False
    conflicts: List[ConflictFlag] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "ConflictReport":
        return cls(has_conflict=False, conflicts=[])

    def disclosure_flags(self) -> List[ConflictFlag]:
        return [c for c in self.conflicts if c.source is ConflictSource.DISCLOSURE]

    def reason_for_disclosure(self, disclosure_id: int) -> Optional[str]:
        """First conflict reason recorded against a disclosure, if any."""
        for flag in self.disclosure_flags():
            if flag.source_record_id == disclosure_id:
                return flag.conflict_reason
        return None
