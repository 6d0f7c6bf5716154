"""
Services package: the conflict engine (sector classifier, committee-sector
map, conflict auditor, integrity rank) plus committee linking, reference
data seeding and sync verification.
"""

from .sector_classifier import SectorClassifier
from .conflict_auditor import ConflictAuditor, audit_holdings
from .integrity_rank import (
    IntegrityRankCalculator,
    compute_display_integrity_score,
    compute_integrity_rank,
)
from .committee_sector_map import (
    infer_active_committees_from_bill_keywords,
    match_sector_to_committee,
)

__all__ = [
    "SectorClassifier",
    "ConflictAuditor",
    "audit_holdings",
    "IntegrityRankCalculator",
    "compute_display_integrity_score",
    "compute_integrity_rank",
    "infer_active_committees_from_bill_keywords",
    "match_sector_to_committee",
]
