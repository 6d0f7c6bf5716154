"""
Committee-sector map and the bill-keyword committee heuristic.

Real committee-to-bill assignments are not available from any source we
integrate, so the committees considered "active" are inferred from the
titles of tracked bills. ``infer_active_committees_from_bill_keywords``
is that proxy.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from ..models.enums import EconomicSector as S

logger = logging.getLogger(__name__)

FINANCE = "Finance"
NATURAL_RESOURCES = "Natural Resources"
ENVIRONMENT = "Environment"
INDUSTRY_AND_TECHNOLOGY = "Industry and Technology"
TRANSPORT = "Transport"
HEALTH = "Health"
AGRICULTURE = "Agriculture and Agri-Food"
MUNICIPAL_AFFAIRS_AND_HOUSING = "Municipal Affairs and Housing"

# Ordered association list: committee -> sectors it oversees
COMMITTEE_TO_SECTORS: Tuple[Tuple[str, Tuple[S, ...]], ...] = (
    (FINANCE, (S.BANKING_FINTECH, S.FINANCIAL_SERVICES)),
    (NATURAL_RESOURCES, (S.OIL_GAS_MINING, S.ENERGY, S.NATURAL_RESOURCES)),
    ("Environment and Sustainable Development", (S.OIL_GAS_MINING, S.ENERGY, S.ENVIRONMENT)),
    (ENVIRONMENT, (S.OIL_GAS_MINING, S.ENERGY, S.ENVIRONMENT)),
    (INDUSTRY_AND_TECHNOLOGY, (S.TECHNOLOGY, S.BANKING_FINTECH, S.TELECOMMUNICATIONS)),
    ("Industry", (S.TECHNOLOGY, S.BANKING_FINTECH, S.ENERGY)),
    ("Transport, Infrastructure and Communities", (S.RAIL, S.TRANSPORTATION, S.CONSTRUCTION)),
    (TRANSPORT, (S.RAIL, S.TRANSPORTATION)),
    (HEALTH, (S.HEALTHCARE, S.PHARMA)),
    (AGRICULTURE, (S.AGRICULTURE, S.AGRIBUSINESS)),
    ("Public Safety", (S.DEFENCE, S.SECURITY)),
    ("Fisheries and Oceans", (S.FISHERIES, S.MARINE)),
    ("Housing", (S.REAL_ESTATE, S.REAL_ESTATE_DEVELOPMENT)),
    (MUNICIPAL_AFFAIRS_AND_HOUSING, (S.REAL_ESTATE, S.REAL_ESTATE_DEVELOPMENT)),
)

# Ordered: the first keyword found in a bill title decides that bill's committee
BILL_KEYWORD_TO_COMMITTEE: Tuple[Tuple[str, str], ...] = (
    ("finance", FINANCE),
    ("banking", FINANCE),
    ("budget", FINANCE),
    ("tax", FINANCE),
    ("environment", ENVIRONMENT),
    ("carbon", ENVIRONMENT),
    ("climate", ENVIRONMENT),
    ("oil", NATURAL_RESOURCES),
    ("energy", NATURAL_RESOURCES),
    ("gas", NATURAL_RESOURCES),
    ("mining", NATURAL_RESOURCES),
    ("rail", TRANSPORT),
    ("transport", TRANSPORT),
    ("infrastructure", TRANSPORT),
    ("health", HEALTH),
    ("pharma", HEALTH),
    ("tech", INDUSTRY_AND_TECHNOLOGY),
    ("digital", INDUSTRY_AND_TECHNOLOGY),
    ("streaming", INDUSTRY_AND_TECHNOLOGY),
    ("agriculture", AGRICULTURE),
    ("housing", MUNICIPAL_AFFAIRS_AND_HOUSING),
    ("municipal", MUNICIPAL_AFFAIRS_AND_HOUSING),
)

DEFAULT_ACTIVE_COMMITTEES: Tuple[str, ...] = (
    FINANCE,
    NATURAL_RESOURCES,
    ENVIRONMENT,
    INDUSTRY_AND_TECHNOLOGY,
)

# Checked in this order when no active committee covers a sector
FALLBACK_COMMITTEE_PRIORITY: Tuple[str, ...] = (NATURAL_RESOURCES, FINANCE, ENVIRONMENT)


def sectors_for_committee(committee: str) -> Tuple[str, ...]:
    """Sector names a committee oversees; empty for unknown committees."""
    for name, sectors in COMMITTEE_TO_SECTORS:
        if name == committee:
            return tuple(sector.value for sector in sectors)
    return ()


def committee_for_bill_title(title: Optional[str]) -> Optional[str]:
    text = (title or "").lower()
    if not text:
        return None
    for keyword, committee in BILL_KEYWORD_TO_COMMITTEE:
        if keyword in text:
            return committee
    return None


def infer_active_committees_from_bill_keywords(titles: Iterable[Optional[str]]) -> List[str]:
    """
    Committees implicated by tracked bill titles, in first-seen order.

    Never empty: when no title matches a keyword the default committees
    are returned.
    """
    active: List[str] = []
    for title in titles:
        committee = committee_for_bill_title(title)
        if committee and committee not in active:
            active.append(committee)
    if not active:
        logger.debug("No bill keyword matched; using default active committees")
        return list(DEFAULT_ACTIVE_COMMITTEES)
    return active


def match_sector_to_committee(sector: str, active_committees: Iterable[str]) -> Optional[str]:
    """
    Committee that oversees ``sector``.

    Active committees are tried first, with a case-insensitive
    contains/contained-by comparison against each of their sectors. After
    that the fallback committees are checked for an exact sector entry.
    """
    wanted = sector.strip().lower()
    if not wanted:
        return None

    for committee in active_committees:
        for candidate in sectors_for_committee(committee):
            candidate = candidate.lower()
            if wanted in candidate or candidate in wanted:
                return committee

    for committee in FALLBACK_COMMITTEE_PRIORITY:
        if sector in sectors_for_committee(committee):
            return committee
    return None
