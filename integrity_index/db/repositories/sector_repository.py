"""
Repository for sector reference data and the persisted classifier
keyword extension.

Responsibility: Data access layer for ``sectors`` and ``asset_sector_mappings``.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ._dialect import insert_ignoring_duplicates
from ..models import AssetSectorMappingModel, SectorModel
from ...utils.dates import utcnow

logger = logging.getLogger(__name__)


class SectorRepository:
    """Repository encapsulating persistence for sectors and keyword mappings."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_name(self, name: str) -> Optional[SectorModel]:
        result = await self.session.execute(select(SectorModel).where(SectorModel.name == name))
        return result.scalar_one_or_none()

    async def get_or_create(self, name: str) -> SectorModel:
        existing = await self.get_by_name(name)
        if existing:
            return existing
        await insert_ignoring_duplicates(
            self.session,
            SectorModel,
            {"name": name, "created_at": utcnow()},
            conflict_columns=("name",),
        )
        created = await self.get_by_name(name)
        if created is None:
            raise RuntimeError(f"Sector {name!r} could not be created")
        logger.debug("Created sector %s", name)
        return created

    async def id_by_name(self) -> Dict[str, int]:
        """Map of sector name to id for every known sector."""
        result = await self.session.execute(select(SectorModel.name, SectorModel.id))
        return {name: sector_id for name, sector_id in result.all()}

    async def list_asset_mappings(self) -> List[Tuple[str, str]]:
        """(keyword, sector name) pairs in insertion order."""
        stmt = (
            select(AssetSectorMappingModel.keyword, SectorModel.name)
            .join(SectorModel, SectorModel.id == AssetSectorMappingModel.sector_id)
            .order_by(AssetSectorMappingModel.id)
        )
        result = await self.session.execute(stmt)
        return [(keyword, sector) for keyword, sector in result.all()]

    async def add_asset_mapping(self, keyword: str, sector_name: str) -> bool:
        """Persist a keyword mapping; returns False when the keyword already exists."""
        sector = await self.get_or_create(sector_name)
        return await insert_ignoring_duplicates(
            self.session,
            AssetSectorMappingModel,
            {"keyword": keyword.strip().lower(), "sector_id": sector.id, "created_at": utcnow()},
            conflict_columns=("keyword",),
        )

    async def count(self) -> int:
        stmt = select(func.count()).select_from(SectorModel)
        return int((await self.session.execute(stmt)).scalar_one())
