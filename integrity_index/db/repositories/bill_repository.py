"""
Repository for bill database operations.

Bills are keyed by their number (``C-27``, ``S-5``, ``Bill 23``); every
sync upserts status and title and recomputes the key-vote marker.

Responsibility: Data access layer for the ``bills`` table.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.sql import Select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ._dialect import dialect_name
from ..models import BillModel
from ...models.adapter_models import BillData
from ...utils.dates import utcnow

logger = logging.getLogger(__name__)


class BillRepository:
    """Repository encapsulating persistence for ``BillModel`` records."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_number(self, number: str) -> Optional[BillModel]:
        stmt: Select = select(BillModel).where(BillModel.number == number)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(self, bill: BillData, key_vote: bool) -> BillModel:
        """Insert or update a single bill by number."""
        existing = await self.get_by_number(bill.number)
        if existing:
            existing.status = bill.status
            if bill.title:
                existing.title = bill.title
            existing.key_vote = key_vote
            existing.updated_at = utcnow()
            await self.session.flush()
            return existing

        model = BillModel(
            number=bill.number,
            status=bill.status,
            title=bill.title,
            key_vote=key_vote,
        )
        self.session.add(model)
        await self.session.flush()
        logger.debug("Inserted bill %s", bill.number)
        return model

    async def upsert_many(self, bills: Iterable[Tuple[BillData, bool]]) -> int:
        """
        Upsert ``(bill, key_vote)`` pairs.

        Uses ``ON CONFLICT`` when backed by PostgreSQL. Falls back to per-row
        upserts otherwise.
        """
        pairs = list(bills)
        if not pairs:
            return 0

        if dialect_name(self.session) == "postgresql":
            now = utcnow()
            payload_list = [
                {
                    "number": bill.number,
                    "status": bill.status,
                    "title": bill.title,
                    "key_vote": key_vote,
                    "created_at": now,
                    "updated_at": now,
                }
                for bill, key_vote in pairs
            ]
            stmt = pg_insert(BillModel).values(payload_list)
            stmt = stmt.on_conflict_do_update(
                index_elements=[BillModel.number],
                set_={
                    "status": stmt.excluded.status,
                    "title": func.coalesce(stmt.excluded.title, BillModel.title),
                    "key_vote": stmt.excluded.key_vote,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            await self.session.execute(stmt)
            await self.session.flush()
            logger.info("Upserted %s bill records (bulk)", len(payload_list))
            return len(payload_list)

        for bill, key_vote in pairs:
            await self.upsert(bill, key_vote)
        logger.info("Upserted %s bill records (sequential)", len(pairs))
        return len(pairs)

    async def list_titles(self, limit: int = 100) -> List[str]:
        """Titles of up to ``limit`` tracked bills, most recently updated first."""
        stmt = (
            select(BillModel.title)
            .where(BillModel.title.is_not(None))
            .order_by(BillModel.updated_at.desc(), BillModel.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [title for title in result.scalars().all() if title]

    async def count(self) -> int:
        stmt = select(func.count()).select_from(BillModel)
        return int((await self.session.execute(stmt)).scalar_one())
