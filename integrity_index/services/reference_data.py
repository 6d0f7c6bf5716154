"""
Reference data seeding: sectors, committees with their sector links,
and the persisted asset-keyword extension. Safe to run repeatedly.
"""

from __future__ import annotations

import logging
from typing import Dict, Tuple

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.repositories import CommitteeRepository, SectorRepository
from ..models.enums import EconomicSector
from ..utils.committee_registry import TRACKED_COMMITTEES
from .committee_sector_map import COMMITTEE_TO_SECTORS

logger = logging.getLogger(__name__)

# Keywords beyond the built-in classifier table
SUPPLEMENTARY_ASSET_KEYWORDS: Tuple[Tuple[str, EconomicSector], ...] = (
    ("telus", EconomicSector.TELECOMMUNICATIONS),
    ("rogers communications", EconomicSector.TELECOMMUNICATIONS),
    ("bce inc", EconomicSector.TELECOMMUNICATIONS),
    ("pfizer", EconomicSector.PHARMA),
    ("bausch", EconomicSector.PHARMA),
    ("nutrien", EconomicSector.AGRIBUSINESS),
    ("saputo", EconomicSector.AGRIBUSINESS),
    ("cameco", EconomicSector.NATURAL_RESOURCES),
    ("teck", EconomicSector.NATURAL_RESOURCES),
    ("farmland", EconomicSector.AGRICULTURE),
)


class SeedSummary(BaseModel):
    sectors: int = 0
    committees: int = 0
    committee_sector_links: int = 0
    asset_mappings: int = 0


async def seed_reference_data(session: AsyncSession) -> SeedSummary:
    """Create any missing reference rows; existing rows are left untouched."""
    sectors = SectorRepository(session)
    committees = CommitteeRepository(session)
    summary = SeedSummary()

    sector_ids: Dict[str, int] = {}
    for sector in EconomicSector:
        sector_ids[sector.value] = (await sectors.get_or_create(sector.value)).id
    summary.sectors = len(sector_ids)

    tracked = {committee.name: committee for committee in TRACKED_COMMITTEES}
    for name, committee_sectors in COMMITTEE_TO_SECTORS:
        source = tracked.get(name)
        committee = await committees.ensure(
            name,
            code=source.code if source else None,
            source_slug=source.source_slug if source else None,
        )
        summary.committee_sector_links += await committees.link_sectors(
            committee.id, [sector_ids[sector.value] for sector in committee_sectors]
        )
        summary.committees += 1

    for keyword, sector in SUPPLEMENTARY_ASSET_KEYWORDS:
        if await sectors.add_asset_mapping(keyword, sector.value):
            summary.asset_mappings += 1

    logger.info(
        "Reference data: %s sectors, %s committees, %s new sector links, %s new keywords",
        summary.sectors, summary.committees, summary.committee_sector_links, summary.asset_mappings,
    )
    return summary
