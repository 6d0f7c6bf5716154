"""
Response schemas for member integrity and admin status endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ConflictFlagSchema(BaseModel):
    committee: str
    asset: str
    sector: str
    source: str = Field(..., description="'disclosure' or 'trade'")
    conflict_reason: str


class MemberIntegrityResponse(BaseModel):
    """Integrity rank and conflict report for one member."""

    member_id: str
    name: str
    jurisdiction: str
    party: str
    riding: str
    slug: Optional[str] = None
    integrity_rank: float = Field(..., ge=0, le=100, description="Rank computed from current data")
    stored_integrity_rank: Optional[float] = Field(
        None, description="Rank persisted by the last audit; null if never audited"
    )
    display_score: int = Field(..., ge=1, le=100, description="Delay-only fallback score")
    has_conflict: bool
    conflicts: List[ConflictFlagSchema] = Field(default_factory=list)
    committees: List[str] = Field(default_factory=list)


class AdminStatusResponse(BaseModel):
    last_successful_sync_at: Optional[datetime] = None
    federal_members: int
    provincial_members: int
    disclosures: int
    flagged_disclosures: int
    trades: int
    bills: int
    committees: int
    generated_at: datetime
