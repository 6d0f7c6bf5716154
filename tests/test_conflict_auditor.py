from datetime import datetime
from types import SimpleNamespace

from integrity_index.db.repositories import BillRepository, TradeRepository
from integrity_index.models.adapter_models import BillData
from integrity_index.models.conflict import ConflictSource
from integrity_index.models.enums import TradeDirection
from integrity_index.services.conflict_auditor import (
    ConflictAuditor,
    audit_holdings,
    format_conflict_reason,
)
from integrity_index.services.sector_classifier import SectorClassifier

from tests.conftest import add_disclosure, add_member


def _disclosure(record_id: int, description: str) -> SimpleNamespace:
    return SimpleNamespace(id=record_id, description=description)


def _trade(record_id: int, symbol: str) -> SimpleNamespace:
    return SimpleNamespace(id=record_id, symbol=symbol)


def test_energy_bill_flags_oil_holding_under_natural_resources() -> None:
    report = audit_holdings(
        SectorClassifier(),
        [_disclosure(1, "Suncor Energy Inc.")],
        [],
        ["An Act respecting energy"],
    )

    assert report.has_conflict is True
    assert len(report.conflicts) == 1
    flag = report.conflicts[0]
    assert flag.committee == "Natural Resources"
    assert flag.sector == "Oil/Gas/Mining"
    assert flag.source is ConflictSource.DISCLOSURE
    assert flag.conflict_reason == "Committee: Natural Resources | Asset: Suncor Energy Inc."


def test_trades_are_classified_by_symbol() -> None:
    report = audit_holdings(SectorClassifier(), [], [_trade(7, "TD")], ["Budget Implementation Act"])

    assert [(f.committee, f.asset, f.source) for f in report.conflicts] == [
        ("Finance", "TD", ConflictSource.TRADE),
    ]


def test_unclassified_or_unmatched_holdings_produce_no_conflict() -> None:
    report = audit_holdings(
        SectorClassifier(),
        [_disclosure(1, "Guaranteed investment certificate"), _disclosure(2, "CN Rail shares")],
        [],
        ["An Act respecting energy"],
    )

    # Rail has no active committee and no fallback committee
    assert report.has_conflict is False
    assert report.conflicts == []


def test_duplicate_records_are_reported_once_in_stable_order() -> None:
    disclosures = [_disclosure(1, "Suncor Energy"), _disclosure(1, "Suncor Energy"), _disclosure(2, "Enbridge")]

    first = audit_holdings(SectorClassifier(), disclosures, [], ["Oil and Gas Act"])
    second = audit_holdings(SectorClassifier(), disclosures, [], ["Oil and Gas Act"])

    assert [f.source_record_id for f in first.conflicts] == [1, 2]
    assert first.conflicts == second.conflicts


def test_format_conflict_reason() -> None:
    assert format_conflict_reason("Finance", "RY") == "Committee: Finance | Asset: RY"


async def test_check_conflict_reads_member_holdings_and_bills(database) -> None:
    await add_member(database, "89156", "Jasraj Singh Hallan")
    disclosure_id = await add_disclosure(database, "89156", "Suncor Energy Inc.")
    async with database.session() as session:
        await BillRepository(session).upsert(
            BillData(number="C-50", status="Royal Assent", title="An Act respecting energy"), key_vote=False
        )
        await TradeRepository(session).create_if_absent(
            member_id="89156", symbol="CNQ", direction=TradeDirection.BUY, date=datetime(2024, 3, 1, 12)
        )

    async with database.session() as session:
        report = await ConflictAuditor(session, SectorClassifier()).check_conflict("89156")

    assert report.has_conflict is True
    assert {(f.source, f.asset) for f in report.conflicts} == {
        (ConflictSource.DISCLOSURE, "Suncor Energy Inc."),
        (ConflictSource.TRADE, "CNQ"),
    }
    assert report.reason_for_disclosure(disclosure_id) == (
        "Committee: Natural Resources | Asset: Suncor Energy Inc."
    )


async def test_without_bills_default_committees_apply(database) -> None:
    await add_member(database, "1", "Adam Chambers")
    await add_disclosure(database, "1", "Royal Bank of Canada (RY) shares")

    async with database.session() as session:
        report = await ConflictAuditor(session, SectorClassifier()).check_conflict("1")

    assert [f.committee for f in report.conflicts] == ["Finance"]


async def test_unknown_member_has_no_conflicts(database) -> None:
    async with database.session() as session:
        report = await ConflictAuditor(session, SectorClassifier()).check_conflict("missing")

    assert report.has_conflict is False
    assert report.conflicts == []
