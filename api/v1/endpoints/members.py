"""Member integrity endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from integrity_index.db.repositories import (
    CommitteeRepository,
    DisclosureRepository,
    MemberRepository,
)
from integrity_index.db.session import get_session
from integrity_index.services import (
    ConflictAuditor,
    IntegrityRankCalculator,
    SectorClassifier,
    compute_display_integrity_score,
)

from api.dependencies import get_sector_classifier
from api.v1.schemas import ConflictFlagSchema, MemberIntegrityResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/members/{member_id}/integrity",
    response_model=MemberIntegrityResponse,
    summary="Integrity rank and conflict report for a member",
)
async def get_member_integrity(
    member_id: str,
    session: AsyncSession = Depends(get_session),
    classifier: SectorClassifier = Depends(get_sector_classifier),
) -> MemberIntegrityResponse:
    member = await MemberRepository(session).get_by_id(member_id)
    if member is None:
        raise HTTPException(status_code=404, detail=f"Member {member_id} not found")

    auditor = ConflictAuditor(session, classifier)
    report = await auditor.check_conflict(member_id)
    rank = await IntegrityRankCalculator(session).calculate_integrity_rank(
        member_id, precomputed_conflict_count=len(report.conflicts)
    )
    pairs = await DisclosureRepository(session).list_delay_pairs(member_id)

    return MemberIntegrityResponse(
        member_id=member.id,
        name=member.name,
        jurisdiction=member.jurisdiction,
        party=member.party,
        riding=member.riding,
        slug=member.slug,
        integrity_rank=rank,
        stored_integrity_rank=member.integrity_rank,
        display_score=compute_display_integrity_score(pairs),
        has_conflict=report.has_conflict,
        conflicts=[
            ConflictFlagSchema(
                committee=flag.committee,
                asset=flag.asset,
                sector=flag.sector,
                source=flag.source.value,
                conflict_reason=flag.conflict_reason,
            )
            for flag in report.conflicts
        ],
        committees=await CommitteeRepository(session).list_member_committee_names(member_id),
    )
