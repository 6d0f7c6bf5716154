"""Admin status endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from integrity_index.db.repositories import (
    AppStatusRepository,
    BillRepository,
    CommitteeRepository,
    DisclosureRepository,
    MemberRepository,
    TradeRepository,
)
from integrity_index.db.session import get_session
from integrity_index.models.enums import Jurisdiction
from integrity_index.utils.dates import utcnow

from api.v1.schemas import AdminStatusResponse

router = APIRouter()


@router.get(
    "/admin/status",
    response_model=AdminStatusResponse,
    summary="Last successful sync and table counts",
)
async def get_admin_status(session: AsyncSession = Depends(get_session)) -> AdminStatusResponse:
    members = MemberRepository(session)
    disclosures = DisclosureRepository(session)
    return AdminStatusResponse(
        last_successful_sync_at=await AppStatusRepository(session).get_last_successful_sync(),
        federal_members=await members.count_by_jurisdiction(Jurisdiction.FEDERAL),
        provincial_members=await members.count_by_jurisdiction(Jurisdiction.PROVINCIAL),
        disclosures=await disclosures.count(),
        flagged_disclosures=await disclosures.count(flagged_only=True),
        trades=await TradeRepository(session).count(),
        bills=await BillRepository(session).count(),
        committees=await CommitteeRepository(session).count(),
        generated_at=utcnow(),
    )
