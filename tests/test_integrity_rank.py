from datetime import datetime, timedelta

from integrity_index.db.repositories import SectorRepository
from integrity_index.services.conflict_auditor import ConflictAuditor
from integrity_index.services.integrity_rank import (
    IntegrityRankCalculator,
    average_filing_delay_days,
    compute_display_integrity_score,
    compute_integrity_rank,
    round_half_up,
)
from integrity_index.services.sector_classifier import SectorClassifier

from tests.conftest import add_disclosure, add_member

JAN_1 = datetime(2024, 1, 1)


def _pair(days: float):
    return (JAN_1, JAN_1 + timedelta(days=days))


def test_clean_member_scores_100() -> None:
    assert compute_integrity_rank(0.0, 0) == 100.0


def test_twenty_day_average_delay_costs_ten_points() -> None:
    assert compute_integrity_rank(20.0, 0) == 90.0


def test_each_conflict_costs_exactly_ten_points() -> None:
    assert compute_integrity_rank(0.0, 1) == 90.0
    for conflicts in range(9):
        assert compute_integrity_rank(5.0, conflicts) - compute_integrity_rank(5.0, conflicts + 1) == 10.0


def test_rank_is_clamped_to_bounds() -> None:
    assert compute_integrity_rank(0.0, 11) == 0.0
    assert compute_integrity_rank(500.0, 0) == 0.0
    assert compute_integrity_rank(-40.0, 0) == 100.0


def test_rank_is_rounded_half_up_to_one_decimal() -> None:
    assert compute_integrity_rank(3.0, 0) == 98.5
    assert round_half_up(0.25) == 0.3
    assert round_half_up(97.04) == 97.0
    assert round_half_up(89.95) == 90.0
    assert round_half_up(0.05) == 0.1


def test_average_delay_ignores_negative_and_incomplete_pairs() -> None:
    pairs = [_pair(10), _pair(30), _pair(-5), (None, JAN_1), (JAN_1, None)]

    assert average_filing_delay_days(pairs) == 20.0
    assert average_filing_delay_days([]) == 0.0
    assert average_filing_delay_days([_pair(-3)]) == 0.0


def test_display_score() -> None:
    assert compute_display_integrity_score([]) == 100
    assert compute_display_integrity_score([(None, JAN_1)]) == 100
    assert compute_display_integrity_score([_pair(10)]) == 80
    assert compute_display_integrity_score([_pair(400)]) == 1
    # Negative delays are averaged in, unlike the integrity rank
    assert compute_display_integrity_score([_pair(-10), _pair(10)]) == 100
    assert compute_display_integrity_score([_pair(-10)]) == 100


async def test_rank_from_stored_disclosures_with_precomputed_count(database) -> None:
    await add_member(database, "89156", "Jasraj Singh Hallan")
    await add_disclosure(
        database, "89156", "Guaranteed investment certificate",
        disclosure_date=JAN_1, created_at=JAN_1 + timedelta(days=20),
    )

    async with database.session() as session:
        calculator = IntegrityRankCalculator(session)
        assert await calculator.calculate_integrity_rank("89156", precomputed_conflict_count=0) == 90.0
        assert await calculator.calculate_integrity_rank("89156", precomputed_conflict_count=2) == 70.0


async def test_rank_consults_auditor_without_precomputed_count(database) -> None:
    await add_member(database, "89156", "Jasraj Singh Hallan")
    await add_disclosure(
        database, "89156", "Suncor Energy Inc.",
        disclosure_date=JAN_1, created_at=JAN_1 + timedelta(days=20),
    )

    async with database.session() as session:
        auditor = ConflictAuditor(session, SectorClassifier())
        rank = await IntegrityRankCalculator(session, auditor).calculate_integrity_rank("89156")

    assert rank == 80.0


async def test_unknown_member_gets_neutral_rank(database) -> None:
    async with database.session() as session:
        rank = await IntegrityRankCalculator(session).calculate_integrity_rank("nobody")

    assert rank == 100.0


async def test_rank_audits_conflicts_live_by_default(database) -> None:
    await add_member(database, "m1", "Adam Chambers")
    await add_disclosure(database, "m1", "Suncor Energy shares")

    async with database.session() as session:
        rank = await IntegrityRankCalculator(session).calculate_integrity_rank("m1")

    # No bills tracked: default committees apply, Natural Resources covers Suncor
    assert rank == 90.0


async def test_live_rank_loads_persisted_keywords(database) -> None:
    await add_member(database, "m1", "Adam Chambers")
    await add_disclosure(database, "m1", "Suncor Energy shares")
    await add_disclosure(database, "m1", "Telus Corp")
    async with database.session() as session:
        await SectorRepository(session).add_asset_mapping("telus", "Telecommunications")

    async with database.session() as session:
        rank = await IntegrityRankCalculator(session).calculate_integrity_rank("m1")

    assert rank == 80.0
