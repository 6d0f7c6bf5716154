"""
Repository for committees, their sector links and member memberships.

Responsibility: Data access layer for ``committees``,
``committee_sectors`` and ``member_committees``.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ._dialect import insert_ignoring_duplicates
from ..models import CommitteeModel, MemberCommitteeModel, committee_sectors
from ...utils.dates import utcnow

logger = logging.getLogger(__name__)


class CommitteeRepository:
    """Repository encapsulating persistence for ``CommitteeModel`` records."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_name(self, name: str) -> Optional[CommitteeModel]:
        result = await self.session.execute(select(CommitteeModel).where(CommitteeModel.name == name))
        return result.scalar_one_or_none()

    async def ensure(
        self,
        name: str,
        code: Optional[str] = None,
        source_slug: Optional[str] = None,
    ) -> CommitteeModel:
        """Get or create a committee by name, filling in code/slug when known."""
        existing = await self.get_by_name(name)
        if existing:
            if code and not existing.code:
                existing.code = code
            if source_slug and not existing.source_slug:
                existing.source_slug = source_slug
            await self.session.flush()
            return existing

        await insert_ignoring_duplicates(
            self.session,
            CommitteeModel,
            {"name": name, "code": code, "source_slug": source_slug, "created_at": utcnow()},
            conflict_columns=("name",),
        )
        created = await self.get_by_name(name)
        if created is None:
            raise RuntimeError(f"Committee {name!r} could not be created")
        logger.debug("Created committee %s", name)
        return created

    async def link_sectors(self, committee_id: int, sector_ids: Iterable[int]) -> int:
        """Attach sectors to a committee; existing links are kept. Returns links added."""
        added = 0
        for sector_id in sector_ids:
            if await insert_ignoring_duplicates(
                self.session,
                committee_sectors,
                {"committee_id": committee_id, "sector_id": sector_id},
                conflict_columns=("committee_id", "sector_id"),
            ):
                added += 1
        return added

    async def link_member(self, member_id: str, committee_id: int) -> bool:
        """Idempotently record a membership; True when a new link was written."""
        exists = await self.session.execute(
            select(func.count()).select_from(MemberCommitteeModel).where(
                MemberCommitteeModel.member_id == member_id,
                MemberCommitteeModel.committee_id == committee_id,
            )
        )
        if exists.scalar_one():
            return False
        return await insert_ignoring_duplicates(
            self.session,
            MemberCommitteeModel,
            {"member_id": member_id, "committee_id": committee_id, "created_at": utcnow()},
            conflict_columns=("member_id", "committee_id"),
        )

    async def list_member_committee_names(self, member_id: str) -> List[str]:
        stmt = (
            select(CommitteeModel.name)
            .join(MemberCommitteeModel, MemberCommitteeModel.committee_id == CommitteeModel.id)
            .where(MemberCommitteeModel.member_id == member_id)
            .order_by(CommitteeModel.name)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self) -> int:
        stmt = select(func.count()).select_from(CommitteeModel)
        return int((await self.session.execute(stmt)).scalar_one())

    async def count_memberships(self) -> int:
        stmt = select(func.count()).select_from(MemberCommitteeModel)
        return int((await self.session.execute(stmt)).scalar_one())
