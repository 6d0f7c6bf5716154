"""
Repository for trade ticker database operations.

Responsibility: Data access layer for the ``trade_tickers`` table.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from sqlalchemy import func, select
from sqlalchemy.sql import Select
from sqlalchemy.ext.asyncio import AsyncSession

from ._dialect import insert_ignoring_duplicates
from ..models import TradeTickerModel
from ...models.enums import TradeDirection
from ...utils.dates import utcnow

logger = logging.getLogger(__name__)


class TradeRepository:
    """Repository encapsulating persistence for ``TradeTickerModel`` records."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_if_absent(
        self,
        member_id: str,
        symbol: str,
        direction: TradeDirection,
        date: datetime,
    ) -> bool:
        """Insert a trade unless (member_id, symbol, date) exists. True when created."""
        stmt = select(func.count()).select_from(TradeTickerModel).where(
            TradeTickerModel.member_id == member_id,
            TradeTickerModel.symbol == symbol,
            TradeTickerModel.date == date,
        )
        if (await self.session.execute(stmt)).scalar_one():
            return False

        created = await insert_ignoring_duplicates(
            self.session,
            TradeTickerModel,
            {
                "member_id": member_id,
                "symbol": symbol,
                "type": direction.value,
                "date": date,
                "created_at": utcnow(),
            },
            conflict_columns=("member_id", "symbol", "date"),
        )
        if not created:
            logger.debug("Duplicate trade skipped for %s: %s@%s", member_id, symbol, date)
        return created

    async def list_recent_for_member(self, member_id: str, limit: int = 50) -> List[TradeTickerModel]:
        stmt: Select = (
            select(TradeTickerModel)
            .where(TradeTickerModel.member_id == member_id)
            .order_by(TradeTickerModel.date.desc(), TradeTickerModel.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def distinct_symbols(self, limit: int) -> List[str]:
        stmt = (
            select(TradeTickerModel.symbol)
            .distinct()
            .order_by(TradeTickerModel.symbol)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self) -> int:
        stmt = select(func.count()).select_from(TradeTickerModel)
        return int((await self.session.execute(stmt)).scalar_one())
