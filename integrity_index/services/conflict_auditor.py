"""
Conflict auditor.

A conflict is a holding (disclosed asset or traded symbol) whose sector
is overseen by a committee considered active because of tracked bills.
The active-committee set comes from the bill-keyword heuristic in
``committee_sector_map``, standing in for real committee assignments.

Responsibility: Produce de-duplicated conflict flags for one member
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Protocol, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..db.repositories import (
    BillRepository,
    DisclosureRepository,
    MemberRepository,
    TradeRepository,
)
from ..models.conflict import ConflictFlag, ConflictReport, ConflictSource
from ..utils.dedupe import dedupe_by_key
from .committee_sector_map import (
    infer_active_committees_from_bill_keywords,
    match_sector_to_committee,
)
from .sector_classifier import SectorClassifier

logger = logging.getLogger(__name__)

RECENT_DISCLOSURE_LIMIT = 50
RECENT_TRADE_LIMIT = 50


class DisclosureLike(Protocol):
    id: int
    description: str


class TradeLike(Protocol):
    id: int
    symbol: str


def format_conflict_reason(committee: str, asset: str) -> str:
    return f"Committee: {committee} | Asset: {asset}"


def _flag_for(
    classifier: SectorClassifier,
    active_committees: Sequence[str],
    asset: str,
    symbol: Optional[str],
    source: ConflictSource,
    record_id: int,
) -> Optional[ConflictFlag]:
    sector = classifier.resolve_sector(asset, symbol)
    if not sector:
        return None
    committee = match_sector_to_committee(sector, active_committees)
    if not committee:
        return None
    return ConflictFlag(
        committee=committee,
        asset=asset,
        conflict_reason=format_conflict_reason(committee, asset),
        sector=sector,
        source=source,
        source_record_id=record_id,
    )


def audit_holdings(
    classifier: SectorClassifier,
    disclosures: Iterable[DisclosureLike],
    trades: Iterable[TradeLike],
    bill_titles: Iterable[Optional[str]],
) -> ConflictReport:
    """
    Pure conflict computation over already-loaded records.

    Disclosures are classified on their description only; trades use the
    symbol as both description and symbol.
    """
    active = infer_active_committees_from_bill_keywords(bill_titles)
    flags: List[ConflictFlag] = []

    for disclosure in disclosures:
        flag = _flag_for(
            classifier, active, disclosure.description, None,
            ConflictSource.DISCLOSURE, disclosure.id,
        )
        if flag:
            flags.append(flag)

    for trade in trades:
        flag = _flag_for(
            classifier, active, trade.symbol, trade.symbol,
            ConflictSource.TRADE, trade.id,
        )
        if flag:
            flags.append(flag)

    unique, duplicates = dedupe_by_key(flags, lambda flag: flag.dedupe_key)
    if duplicates:
        logger.debug("Dropped %s duplicate conflict flags", duplicates)
    return ConflictReport(has_conflict=bool(unique), conflicts=unique)


class ConflictAuditor:
    """
    Loads a member's recent holdings and the tracked bills, then audits them.

    Example:
        auditor = ConflictAuditor(session, classifier)
        report = await auditor.check_conflict("89156")
    """

    def __init__(
        self,
        session: AsyncSession,
        classifier: SectorClassifier,
        bill_limit: Optional[int] = None,
    ):
        self.session = session
        self.classifier = classifier
        self.bill_limit = bill_limit or settings.sync.audit_bill_limit

    async def check_conflict(self, member_id: str) -> ConflictReport:
        """Conflict report for one member; an unknown member has no conflicts."""
        if not await MemberRepository(self.session).exists(member_id):
            logger.info("Conflict check for unknown member %s", member_id)
            return ConflictReport.empty()

        disclosures = await DisclosureRepository(self.session).list_recent_for_member(
            member_id, limit=RECENT_DISCLOSURE_LIMIT
        )
        trades = await TradeRepository(self.session).list_recent_for_member(
            member_id, limit=RECENT_TRADE_LIMIT
        )
        bill_titles = await BillRepository(self.session).list_titles(limit=self.bill_limit)

        report = audit_holdings(self.classifier, disclosures, trades, bill_titles)
        if report.has_conflict:
            logger.info("Member %s: %s conflict(s)", member_id, len(report.conflicts))
        return report
