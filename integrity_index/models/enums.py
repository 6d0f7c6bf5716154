"""
Domain enumerations shared by the persistence layer and the services.
"""

from enum import Enum


class Jurisdiction(str, Enum):
    """Legislature a member sits in"""
    FEDERAL = "FEDERAL"
    PROVINCIAL = "PROVINCIAL"

    @property
    def chamber(self) -> str:
        if self is Jurisdiction.FEDERAL:
            return "House of Commons"
        return "Legislative Assembly"


class TradeDirection(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class EconomicSector(str, Enum):
    """
    Fixed economic sector vocabulary.

    Values are the display labels persisted in the ``sectors`` table and used
    by the committee-sector map, so they must stay stable.
    """
    OIL_GAS_MINING = "Oil/Gas/Mining"
    ENERGY = "Energy"
    NATURAL_RESOURCES = "Natural Resources"
    ENVIRONMENT = "Environment"
    BANKING_FINTECH = "Banking/Fintech"
    FINANCIAL_SERVICES = "Financial Services"
    TECHNOLOGY = "Technology"
    TELECOMMUNICATIONS = "Telecommunications"
    RAIL = "Rail"
    TRANSPORTATION = "Transportation"
    CONSTRUCTION = "Construction"
    HEALTHCARE = "Healthcare"
    PHARMA = "Pharma"
    AGRICULTURE = "Agriculture"
    AGRIBUSINESS = "Agribusiness"
    DEFENCE = "Defence"
    SECURITY = "Security"
    FISHERIES = "Fisheries"
    MARINE = "Marine"
    REAL_ESTATE = "Real Estate"
    REAL_ESTATE_DEVELOPMENT = "Real Estate/Development"

    @classmethod
    def from_label(cls, label: str) -> "EconomicSector":
        """Look up a sector by its label, case-insensitively."""
        wanted = label.strip().lower()
        for sector in cls:
            if sector.value.lower() == wanted:
                return sector
        raise ValueError(f"Unknown economic sector: {label!r}")
