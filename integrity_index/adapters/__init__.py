"""
Adapters package for Integrity Index.

Every upstream source is wrapped in a BaseAdapter subclass returning an
AdapterResponse.
"""

from .base_adapter import BaseAdapter
from .ciec_adapter import CIECDisclosureAdapter
from .committee_members_adapter import CommitteeRosterAdapter
from .finnhub_adapter import FinnhubQuoteAdapter
from .legisinfo_adapter import LEGISinfoBillsAdapter, is_key_vote_bill
from .roster_adapters import FederalRosterAdapter, OntarioRosterAdapter

__all__ = [
    "BaseAdapter",
    "CIECDisclosureAdapter",
    "CommitteeRosterAdapter",
    "FinnhubQuoteAdapter",
    "LEGISinfoBillsAdapter",
    "FederalRosterAdapter",
    "OntarioRosterAdapter",
    "is_key_vote_bill",
]
