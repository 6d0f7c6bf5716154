"""
Repository for member (legislator) database operations.

Handles roster upserts, slug allocation support, integrity rank
persistence and the counts used by sync verification.

Responsibility: Data access layer for the ``members`` table.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set

from sqlalchemy import func, select, update
from sqlalchemy.sql import Select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ._dialect import dialect_name
from ..models import MemberModel
from ...models.adapter_models import RosterMemberData
from ...models.enums import Jurisdiction
from ...utils.dates import utcnow

logger = logging.getLogger(__name__)


class MemberRepository:
    """Repository encapsulating persistence for ``MemberModel`` records."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, member_id: str) -> Optional[MemberModel]:
        stmt: Select = select(MemberModel).where(MemberModel.id == member_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def exists(self, member_id: str) -> bool:
        stmt = select(func.count()).select_from(MemberModel).where(MemberModel.id == member_id)
        return bool((await self.session.execute(stmt)).scalar_one())

    async def list_all(self, jurisdiction: Optional[Jurisdiction] = None) -> List[MemberModel]:
        """All members ordered by name, optionally restricted to one jurisdiction."""
        stmt: Select = select(MemberModel).order_by(MemberModel.name, MemberModel.id)
        if jurisdiction is not None:
            stmt = stmt.where(MemberModel.jurisdiction == jurisdiction.value)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_ids(self) -> List[str]:
        result = await self.session.execute(select(MemberModel.id).order_by(MemberModel.id))
        return list(result.scalars().all())

    async def list_sample(self, limit: int) -> List[MemberModel]:
        """First ``limit`` federal members by name; the disclosure step samples these."""
        stmt: Select = (
            select(MemberModel)
            .where(MemberModel.jurisdiction == Jurisdiction.FEDERAL.value)
            .order_by(MemberModel.name, MemberModel.id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_jurisdiction(self, jurisdiction: Jurisdiction) -> int:
        stmt = (
            select(func.count())
            .select_from(MemberModel)
            .where(MemberModel.jurisdiction == jurisdiction.value)
        )
        return int((await self.session.execute(stmt)).scalar_one())

    def _payload(self, member: RosterMemberData, jurisdiction: Jurisdiction) -> dict:
        return {
            "id": member.id,
            "name": member.name,
            "riding": member.riding,
            "party": member.party,
            "photo_url": member.photo_url,
            "official_id": member.official_id,
            "jurisdiction": jurisdiction.value,
            "chamber": jurisdiction.chamber,
        }

    async def upsert(self, member: RosterMemberData, jurisdiction: Jurisdiction) -> MemberModel:
        """Insert or update a single member; slug and integrity rank are left alone."""
        payload = self._payload(member, jurisdiction)
        existing = await self.get_by_id(member.id)
        if existing:
            for key, value in payload.items():
                if key == "id":
                    continue
                if key in {"photo_url", "official_id"} and value is None:
                    continue
                setattr(existing, key, value)
            existing.updated_at = utcnow()
            await self.session.flush()
            logger.debug("Updated member %s", member.id)
            return existing

        model = MemberModel(**payload)
        self.session.add(model)
        await self.session.flush()
        logger.debug("Inserted member %s", member.id)
        return model

    async def upsert_many(
        self,
        members: Iterable[RosterMemberData],
        jurisdiction: Jurisdiction,
    ) -> int:
        """
        Upsert a batch of roster members.

        Uses ``ON CONFLICT`` when backed by PostgreSQL. Falls back to per-row
        upserts otherwise.
        """
        members = list(members)
        if not members:
            return 0

        dialect = dialect_name(self.session)

        if dialect == "postgresql":
            now = utcnow()
            payload_list = [
                {**self._payload(member, jurisdiction), "created_at": now, "updated_at": now}
                for member in members
            ]
            stmt = pg_insert(MemberModel).values(payload_list)
            stmt = stmt.on_conflict_do_update(
                index_elements=[MemberModel.id],
                set_={
                    "name": stmt.excluded.name,
                    "riding": stmt.excluded.riding,
                    "party": stmt.excluded.party,
                    "jurisdiction": stmt.excluded.jurisdiction,
                    "chamber": stmt.excluded.chamber,
                    "photo_url": func.coalesce(stmt.excluded.photo_url, MemberModel.photo_url),
                    "official_id": func.coalesce(stmt.excluded.official_id, MemberModel.official_id),
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            await self.session.execute(stmt)
            await self.session.flush()
            logger.info("Upserted %s member records (bulk)", len(payload_list))
            return len(payload_list)

        for member in members:
            await self.upsert(member, jurisdiction)
        logger.info("Upserted %s member records (sequential)", len(members))
        return len(members)

    async def list_missing_slugs(self) -> List[MemberModel]:
        stmt: Select = (
            select(MemberModel)
            .where(MemberModel.slug.is_(None))
            .order_by(MemberModel.name, MemberModel.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def existing_slugs(self) -> Set[str]:
        result = await self.session.execute(
            select(MemberModel.slug).where(MemberModel.slug.is_not(None))
        )
        return set(result.scalars().all())

    async def set_slug(self, member_id: str, slug: str) -> None:
        await self.session.execute(
            update(MemberModel).where(MemberModel.id == member_id).values(slug=slug)
        )

    async def set_integrity_rank(self, member_id: str, rank: float) -> None:
        await self.session.execute(
            update(MemberModel).where(MemberModel.id == member_id).values(integrity_rank=rank)
        )

    async def count_missing(self, column_name: str) -> int:
        """Count members with a NULL/empty value in ``photo_url``, ``slug`` or ``integrity_rank``."""
        column = getattr(MemberModel, column_name)
        condition = column.is_(None)
        if column_name in {"photo_url", "slug"}:
            condition = condition | (column == "")
        stmt = select(func.count()).select_from(MemberModel).where(condition)
        return int((await self.session.execute(stmt)).scalar_one())
