"""
Integrity rank calculator.

    rank = 100 - avg_delay_days * 0.5 - conflicts * 10

clamped to [0, 100] and rounded to one decimal. Filing delay is the gap
between a disclosure's event date and when it was recorded; only
positive delays count. A simpler delay-only display score is kept for
contexts without conflict data.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from ..db.repositories import DisclosureRepository, MemberRepository
from ..utils.dates import delay_days
from .conflict_auditor import ConflictAuditor
from .sector_classifier import SectorClassifier

logger = logging.getLogger(__name__)

MAX_RANK = 100.0
MIN_RANK = 0.0
DELAY_PENALTY_PER_DAY = 0.5
CONFLICT_PENALTY = 10.0
DISPLAY_DELAY_PENALTY_PER_DAY = 2

DelayPair = Tuple[Optional[datetime], Optional[datetime]]


def round_half_up(value: float, digits: int = 1) -> float:
    """Half-up rounding on the decimal text of ``value``, so 89.95 becomes 90.0."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def average_filing_delay_days(pairs: Iterable[DelayPair]) -> float:
    """Mean of the positive (event date, recorded at) delays, or 0.0."""
    delays = []
    for event, recorded in pairs:
        if event is None or recorded is None:
            continue
        delay = delay_days(event, recorded)
        if delay > 0:
            delays.append(delay)
    if not delays:
        return 0.0
    return sum(delays) / len(delays)


def compute_integrity_rank(avg_delay_days: float, conflict_count: int) -> float:
    raw = MAX_RANK - avg_delay_days * DELAY_PENALTY_PER_DAY - conflict_count * CONFLICT_PENALTY
    return round_half_up(min(MAX_RANK, max(MIN_RANK, raw)), 1)


def compute_display_integrity_score(pairs: Sequence[DelayPair]) -> int:
    """
    Delay-only score for views that have no conflict data.

    Averages over every disclosure carrying both dates (negative delays
    included), 2 points per day, clamped to [1, 100]; 100 when none do.
    """
    eligible = [
        delay_days(event, recorded)
        for event, recorded in pairs
        if event is not None and recorded is not None
    ]
    if not eligible:
        return 100
    average = sum(eligible) / len(eligible)
    score = math.floor(100 - min(100.0, average * DISPLAY_DELAY_PENALTY_PER_DAY) + 0.5)
    return max(1, min(100, score))


class IntegrityRankCalculator:
    """
    Example:
        calculator = IntegrityRankCalculator(session, auditor)
        rank = await calculator.calculate_integrity_rank("89156", precomputed_conflict_count=1)
    """

    def __init__(self, session: AsyncSession, auditor: Optional[ConflictAuditor] = None):
        self.session = session
        # Without an injected auditor, one is built over a fresh classifier
        # whose persisted keywords are loaded on first use
        self._classifier_loaded = auditor is not None
        self.auditor = auditor or ConflictAuditor(session, SectorClassifier())

    async def calculate_integrity_rank(
        self,
        member_id: str,
        precomputed_conflict_count: Optional[int] = None,
    ) -> float:
        """
        Rank for one member. Batch callers pass the conflict count they
        already computed; otherwise the conflicts are audited live.
        """
        if not await MemberRepository(self.session).exists(member_id):
            logger.warning("Integrity rank requested for unknown member %s", member_id)
            return MAX_RANK

        pairs = await DisclosureRepository(self.session).list_delay_pairs(member_id)
        avg_delay = average_filing_delay_days(pairs)

        if precomputed_conflict_count is not None:
            conflict_count = precomputed_conflict_count
        else:
            if not self._classifier_loaded:
                await self.auditor.classifier.refresh(self.session)
                self._classifier_loaded = True
            conflict_count = len((await self.auditor.check_conflict(member_id)).conflicts)

        return compute_integrity_rank(avg_delay, conflict_count)
