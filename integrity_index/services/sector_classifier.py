"""
Sector classifier: maps asset descriptions and ticker symbols to
economic sectors.

Matching is substring-based on purpose: registry descriptions are free
text ("Suncor Energy Inc. common shares") and the keyword table is
curated by hand. Short keywords such as ``su`` therefore also match
inside unrelated words; callers get the first keyword that matches.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from ..db.repositories.sector_repository import SectorRepository
from ..models.enums import EconomicSector

logger = logging.getLogger(__name__)

KeywordTable = Tuple[Tuple[str, str], ...]

# Ordered; first match wins. Tickers first within each sector, then names.
ASSET_KEYWORD_TO_SECTOR: Tuple[Tuple[str, EconomicSector], ...] = (
    ("su", EconomicSector.OIL_GAS_MINING),
    ("suncor", EconomicSector.OIL_GAS_MINING),
    ("cnq", EconomicSector.OIL_GAS_MINING),
    ("cenovus", EconomicSector.OIL_GAS_MINING),
    ("enb", EconomicSector.OIL_GAS_MINING),
    ("enbridge", EconomicSector.OIL_GAS_MINING),
    ("trp", EconomicSector.OIL_GAS_MINING),
    ("tcenergy", EconomicSector.OIL_GAS_MINING),
    ("ovv", EconomicSector.OIL_GAS_MINING),
    ("ico", EconomicSector.OIL_GAS_MINING),
    ("td", EconomicSector.BANKING_FINTECH),
    ("ry", EconomicSector.BANKING_FINTECH),
    ("bns", EconomicSector.BANKING_FINTECH),
    ("bmo", EconomicSector.BANKING_FINTECH),
    ("cm", EconomicSector.BANKING_FINTECH),
    ("shop", EconomicSector.BANKING_FINTECH),
    ("shopify", EconomicSector.BANKING_FINTECH),
    ("cnr", EconomicSector.RAIL),
    ("cp", EconomicSector.RAIL),
    ("cpr", EconomicSector.RAIL),
    ("cn", EconomicSector.RAIL),
    ("rental", EconomicSector.REAL_ESTATE_DEVELOPMENT),
    ("property", EconomicSector.REAL_ESTATE_DEVELOPMENT),
    ("real estate", EconomicSector.REAL_ESTATE_DEVELOPMENT),
)

STATIC_KEYWORD_TABLE: KeywordTable = tuple(
    (keyword, sector.value) for keyword, sector in ASSET_KEYWORD_TO_SECTOR
)


def _normalize(value: Optional[str]) -> str:
    return (value or "").strip().lower()


class SectorClassifier:
    """
    Resolves a sector name for an asset.

    The keyword table is the static built-in table followed by persisted
    ``AssetSectorMapping`` rows (loaded by ``refresh``). Instances are
    independent; nothing is cached at module level.

    Example:
        classifier = SectorClassifier()
        await classifier.refresh(session)
        classifier.resolve_sector("Suncor Energy shares")  # "Oil/Gas/Mining"
    """

    def __init__(
        self,
        extra_mappings: Iterable[Tuple[str, str]] = (),
        static_table: KeywordTable = STATIC_KEYWORD_TABLE,
    ):
        self._static: KeywordTable = tuple(static_table)
        self._persisted: KeywordTable = self._clean(extra_mappings)
        self._rebuild()

    @staticmethod
    def _clean(mappings: Iterable[Tuple[str, str]]) -> KeywordTable:
        cleaned = []
        for keyword, sector in mappings:
            keyword = _normalize(keyword)
            if keyword:
                cleaned.append((keyword, sector))
        return tuple(cleaned)

    def _rebuild(self) -> None:
        self._table: KeywordTable = self._static + self._persisted
        # First occurrence of a keyword keeps its sector
        self._by_symbol = {}
        for keyword, sector in self._table:
            self._by_symbol.setdefault(keyword, sector)

    @property
    def keyword_table(self) -> KeywordTable:
        return self._table

    async def refresh(self, session: AsyncSession) -> int:
        """Reload persisted keyword mappings; returns how many were loaded."""
        mappings = await SectorRepository(session).list_asset_mappings()
        self._persisted = self._clean(mappings)
        self._rebuild()
        logger.debug("Loaded %s persisted asset-sector mappings", len(self._persisted))
        return len(self._persisted)

    def invalidate(self) -> None:
        """Drop persisted mappings until the next ``refresh``."""
        self._persisted = ()
        self._rebuild()

    def resolve_sector(self, description: Optional[str], symbol: Optional[str] = None) -> Optional[str]:
        """
        Sector name for an asset, or None when no keyword applies.

        An exact symbol match takes precedence over anything in the
        description. Otherwise the first keyword contained in the
        description wins.
        """
        desc = _normalize(description)
        sym = _normalize(symbol)

        if sym and sym in self._by_symbol:
            return self._by_symbol[sym]
        if not desc:
            return None
        for keyword, sector in self._table:
            if keyword in desc:
                return sector
        return None
