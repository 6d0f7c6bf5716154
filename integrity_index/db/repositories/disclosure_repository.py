"""
Repository for disclosure database operations.

Responsibility: Data access layer for the ``disclosures`` table.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.sql import Select
from sqlalchemy.ext.asyncio import AsyncSession

from ._dialect import insert_ignoring_duplicates
from ..models import DisclosureModel
from ...utils.dates import utcnow

logger = logging.getLogger(__name__)


class DisclosureRepository:
    """Repository encapsulating persistence for ``DisclosureModel`` records."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_natural_key(self, member_id: str, description: str) -> Optional[DisclosureModel]:
        stmt: Select = select(DisclosureModel).where(
            DisclosureModel.member_id == member_id,
            DisclosureModel.description == description,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_if_absent(
        self,
        member_id: str,
        category: str,
        description: str,
        disclosure_date: Optional[datetime],
        sector_id: Optional[int],
    ) -> bool:
        """
        Insert a disclosure unless (member_id, description) already exists.

        Returns True when a row was created. A concurrent insert of the same
        natural key is treated as a duplicate, not an error.
        """
        if await self.get_by_natural_key(member_id, description) is not None:
            return False

        created = await insert_ignoring_duplicates(
            self.session,
            DisclosureModel,
            {
                "member_id": member_id,
                "category": category,
                "description": description,
                "disclosure_date": disclosure_date,
                "sector_id": sector_id,
                "conflict_flag": False,
                "created_at": utcnow(),
            },
            conflict_columns=("member_id", "description"),
        )
        if not created:
            logger.debug("Duplicate disclosure skipped for %s: %s", member_id, description)
        return created

    async def list_recent_for_member(self, member_id: str, limit: int = 50) -> List[DisclosureModel]:
        stmt: Select = (
            select(DisclosureModel)
            .where(DisclosureModel.member_id == member_id)
            .order_by(DisclosureModel.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_delay_pairs(self, member_id: str) -> List[Tuple[Optional[datetime], datetime]]:
        """(disclosure_date, created_at) for every disclosure of a member."""
        stmt = (
            select(DisclosureModel.disclosure_date, DisclosureModel.created_at)
            .where(DisclosureModel.member_id == member_id)
            .order_by(DisclosureModel.id)
        )
        result = await self.session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def reset_all_conflicts(self) -> int:
        """Clear every conflict flag and reason; returns the number of rows touched."""
        result = await self.session.execute(
            update(DisclosureModel)
            .where(DisclosureModel.conflict_flag.is_(True) | DisclosureModel.conflict_reason.is_not(None))
            .values(conflict_flag=False, conflict_reason=None)
        )
        return result.rowcount or 0

    async def flag_conflict(self, disclosure_id: int, reason: str) -> None:
        await self.session.execute(
            update(DisclosureModel)
            .where(DisclosureModel.id == disclosure_id)
            .values(conflict_flag=True, conflict_reason=reason)
        )

    async def count(self, flagged_only: bool = False) -> int:
        stmt = select(func.count()).select_from(DisclosureModel)
        if flagged_only:
            stmt = stmt.where(DisclosureModel.conflict_flag.is_(True))
        return int((await self.session.execute(stmt)).scalar_one())
