"""
Post-sync verification report.

Checks that the stored data looks like a complete sync: roster sizes
against chamber targets, slugs and photos present, every member scored,
reference data seeded.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..adapters.legisinfo_adapter import LEGISinfoBillsAdapter
from ..config import settings
from ..db.repositories import (
    BillRepository,
    CommitteeRepository,
    DisclosureRepository,
    MemberRepository,
    SectorRepository,
)
from ..models.enums import EconomicSector, Jurisdiction
from ..utils.dates import utcnow

logger = logging.getLogger(__name__)


class VerificationResult(BaseModel):
    model: str
    ok: bool
    detail: str
    count: Optional[int] = None
    expected: Optional[int] = None
    issues: List[str] = Field(default_factory=list)


class VerifySyncReport(BaseModel):
    ok: bool
    timestamp: str
    results: List[VerificationResult]
    summary: str


async def _verify_members(session: AsyncSession) -> VerificationResult:
    members = MemberRepository(session)
    federal = await members.count_by_jurisdiction(Jurisdiction.FEDERAL)
    provincial = await members.count_by_jurisdiction(Jurisdiction.PROVINCIAL)
    missing_photo = await members.count_missing("photo_url")
    missing_slug = await members.count_missing("slug")

    issues = []
    if federal < settings.sync.federal_target:
        issues.append(f"Federal count {federal} < {settings.sync.federal_target}")
    if provincial < settings.sync.provincial_target:
        issues.append(f"Provincial count {provincial} < {settings.sync.provincial_target}")
    if missing_photo:
        issues.append(f"{missing_photo} member(s) missing photo_url")
    if missing_slug:
        issues.append(f"{missing_slug} member(s) missing slug")

    return VerificationResult(
        model="Member",
        ok=not issues,
        detail=f"Federal: {federal}, Provincial: {provincial}, Total: {federal + provincial}",
        count=federal + provincial,
        expected=settings.sync.federal_target + settings.sync.provincial_target,
        issues=issues,
    )


async def _verify_bills(
    session: AsyncSession,
    bills_adapter: Optional[LEGISinfoBillsAdapter],
) -> VerificationResult:
    stored = await BillRepository(session).count()
    if bills_adapter is None:
        return VerificationResult(model="Bill", ok=stored > 0, detail=f"DB: {stored}", count=stored,
                                  issues=[] if stored else ["No bills stored"])

    response = await bills_adapter.fetch()
    if not response.ok:
        return VerificationResult(
            model="Bill",
            ok=False,
            detail="Could not fetch LEGISinfo overview",
            count=stored,
            issues=["LEGISinfo unreachable"],
        )
    expected = len(response.records)
    ok = stored >= expected
    return VerificationResult(
        model="Bill",
        ok=ok,
        detail=f"DB: {stored}, LEGISinfo: {expected}",
        count=stored,
        expected=expected,
        issues=[] if ok else [f"Bill count {stored} below LEGISinfo list ({expected})"],
    )


async def _verify_audit(session: AsyncSession) -> VerificationResult:
    members = MemberRepository(session)
    unscored = await members.count_missing("integrity_rank")
    flagged = await DisclosureRepository(session).count(flagged_only=True)
    return VerificationResult(
        model="ConflictAudit",
        ok=unscored == 0,
        detail=f"{flagged} flagged disclosure(s); {unscored} member(s) without integrity rank",
        count=flagged,
        issues=[f"{unscored} member(s) not yet audited"] if unscored else [],
    )


async def _verify_reference_data(session: AsyncSession) -> VerificationResult:
    sectors = await SectorRepository(session).count()
    committees = await CommitteeRepository(session).count()
    issues = []
    if sectors < len(EconomicSector):
        issues.append(f"Sector count {sectors} < {len(EconomicSector)}")
    if committees == 0:
        issues.append("No committees seeded")
    return VerificationResult(
        model="ReferenceData",
        ok=not issues,
        detail=f"{sectors} sectors, {committees} committees",
        count=sectors + committees,
        issues=issues,
    )


async def run_verify_sync(
    session: AsyncSession,
    bills_adapter: Optional[LEGISinfoBillsAdapter] = None,
) -> VerifySyncReport:
    """Build the verification report; pass a bills adapter to compare against LEGISinfo."""
    results = [
        await _verify_members(session),
        await _verify_bills(session, bills_adapter),
        await _verify_audit(session),
        await _verify_reference_data(session),
    ]
    failed = [result.model for result in results if not result.ok]
    summary = "All checks passed" if not failed else f"Failed: {', '.join(failed)}"
    logger.info("Sync verification: %s", summary)
    return VerifySyncReport(
        ok=not failed,
        timestamp=utcnow().isoformat(),
        results=results,
        summary=summary,
    )
