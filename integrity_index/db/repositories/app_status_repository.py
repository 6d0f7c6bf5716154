"""
Repository for the single-row application status table.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import AppStatusModel
from ...utils.dates import utcnow

STATUS_ROW_ID = 1


class AppStatusRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _get(self) -> Optional[AppStatusModel]:
        result = await self.session.execute(
            select(AppStatusModel).where(AppStatusModel.id == STATUS_ROW_ID)
        )
        return result.scalar_one_or_none()

    async def get_last_successful_sync(self) -> Optional[datetime]:
        status = await self._get()
        return status.last_successful_sync_at if status else None

    async def set_last_successful_sync(self, at: Optional[datetime] = None) -> datetime:
        at = at or utcnow()
        status = await self._get()
        if status is None:
            self.session.add(AppStatusModel(id=STATUS_ROW_ID, last_successful_sync_at=at))
        else:
            status.last_successful_sync_at = at
        await self.session.flush()
        return at
