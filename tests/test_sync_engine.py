from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import select

from integrity_index.config import SyncConfig
from integrity_index.db.models import DisclosureModel
from integrity_index.db.repositories import (
    AppStatusRepository,
    BillRepository,
    CommitteeRepository,
    DisclosureRepository,
    MemberRepository,
    SectorRepository,
    TradeRepository,
)
from integrity_index.models.adapter_models import (
    AdapterError,
    AdapterMetrics,
    AdapterResponse,
    AdapterStatus,
    BillData,
    CommitteeMemberData,
    DisclosureRowData,
    QuoteData,
    RosterMemberData,
)
from integrity_index.models.enums import Jurisdiction, TradeDirection
from integrity_index.orchestration import SyncEngine
from integrity_index.utils.dates import utcnow

from tests.conftest import add_disclosure, add_member

TEN_DAYS_AGO = utcnow() - timedelta(days=10)

FEDERAL_MEMBERS = [
    RosterMemberData(id="89156", name="Jasraj Singh Hallan", riding="Calgary East", party="Conservative",
                     official_id="89156"),
    RosterMemberData(id="2", name="Peter Fonseca", riding="Mississauga East", party="Liberal", official_id="2"),
    RosterMemberData(id="3", name="John Smith", riding="Ottawa Centre", party="Liberal", official_id="3"),
    RosterMemberData(id="4", name="John Smith", riding="Calgary Centre", party="Conservative", official_id="4"),
]

PROVINCIAL_MEMBERS = [
    RosterMemberData(id="doug-ford-etobicoke-north", name="Doug Ford", riding="Etobicoke North",
                     party="Progressive Conservative"),
]

DECLARATIONS = {
    "89156": [
        DisclosureRowData("SU", "Shares", True, TEN_DAYS_AGO),
        DisclosureRowData("Suncor Energy Inc.", "(not available)", False, TEN_DAYS_AGO),
        DisclosureRowData("Guaranteed investment certificate", None, False, None),
        DisclosureRowData("Beyond the per-member row limit", "Shares", False, None),
    ],
}

BILLS = [
    BillData(number="C-50", status="Royal Assent", title="An Act respecting energy"),
    BillData(number="C-27", status="Second Reading", title="Digital Charter Implementation Act"),
]


def _ok(records: list) -> AdapterResponse:
    return AdapterResponse(
        status=AdapterStatus.SUCCESS,
        data=records,
        errors=[],
        metrics=AdapterMetrics(
            records_attempted=len(records),
            records_succeeded=len(records),
            records_failed=0,
            duration_seconds=0.0,
        ),
        source="fake",
        fetch_timestamp=utcnow(),
    )


def _unavailable() -> AdapterResponse:
    return AdapterResponse(
        status=AdapterStatus.SOURCE_UNAVAILABLE,
        data=None,
        errors=[AdapterError(timestamp=utcnow(), error_type="HTTPStatusError", message="404 Not Found",
                             retryable=True)],
        metrics=AdapterMetrics(records_attempted=0, records_succeeded=0, records_failed=0, duration_seconds=0.0),
        source="fake",
        fetch_timestamp=utcnow(),
    )


class FakeDisclosures:
    def __init__(self, declarations: Dict[str, List[DisclosureRowData]]):
        self.declarations = declarations
        self.requested: List[str] = []

    async def fetch(self, declaration_id: str, **kwargs):
        self.requested.append(declaration_id)
        return _ok(list(self.declarations.get(declaration_id, [])))


class FakeQuotes:
    def __init__(self):
        self.requested: List[str] = []

    async def get_quote(self, symbol: str) -> Optional[QuoteData]:
        self.requested.append(symbol)
        if symbol == "BAD":
            raise RuntimeError("quote service exploded")
        return QuoteData(symbol=symbol, price=10.0, change=0.1)


class FakeBills:
    def __init__(self, bills: Optional[List[BillData]] = None, error: Optional[Exception] = None):
        self.bills = bills
        self.error = error

    async def fetch(self, **kwargs):
        if self.error is not None:
            raise self.error
        if self.bills is None:
            return _unavailable()
        return _ok(list(self.bills))


class FakeRoster:
    def __init__(self, members: List[RosterMemberData]):
        self.members = members
        self.calls = 0

    async def fetch(self, **kwargs):
        self.calls += 1
        return _ok(list(self.members))


class FakeCommittees:
    def __init__(self, rosters: Dict[str, List[str]]):
        self.rosters = rosters

    async def fetch(self, committee_key: str, **kwargs):
        if committee_key not in self.rosters:
            return _unavailable()
        return _ok([CommitteeMemberData(name=name) for name in self.rosters[committee_key]])


def _engine(database, config: Optional[SyncConfig] = None, **overrides) -> SyncEngine:
    adapters = dict(
        disclosure_adapter=FakeDisclosures(DECLARATIONS),
        quote_adapter=FakeQuotes(),
        bills_adapter=FakeBills(BILLS),
        federal_roster_adapter=FakeRoster(FEDERAL_MEMBERS),
        provincial_roster_adapter=FakeRoster(PROVINCIAL_MEMBERS),
        committee_adapter=FakeCommittees({"finance": ["Fonseca, Peter", "Hallan, Jasraj Singh"]}),
    )
    adapters.update(overrides)
    return SyncEngine(database, config=config or SyncConfig(), **adapters)


async def _counts(database) -> Dict[str, int]:
    async with database.session() as session:
        members = MemberRepository(session)
        return {
            "federal": await members.count_by_jurisdiction(Jurisdiction.FEDERAL),
            "provincial": await members.count_by_jurisdiction(Jurisdiction.PROVINCIAL),
            "disclosures": await DisclosureRepository(session).count(),
            "flagged": await DisclosureRepository(session).count(flagged_only=True),
            "trades": await TradeRepository(session).count(),
            "bills": await BillRepository(session).count(),
            "memberships": await CommitteeRepository(session).count_memberships(),
        }


async def test_full_sync_populates_and_audits(database) -> None:
    engine = _engine(database)

    first = await engine.run_sync()
    assert first.ok is True
    assert [step.step for step in first.steps] == [
        "disclosures", "quotes", "bills", "roster", "slugs", "committees", "audit",
    ]
    # Rosters land after the disclosure step, so holdings arrive on the next run
    second = await engine.run_sync()
    assert second.ok is True
    assert second.step("quotes").detail == "1/1 quotes"

    assert await _counts(database) == {
        "federal": 4,
        "provincial": 1,
        "disclosures": 3,
        "flagged": 2,
        "trades": 1,
        "bills": 2,
        "memberships": 2,
    }

    async with database.session() as session:
        member = await MemberRepository(session).get_by_id("89156")
        clean = await MemberRepository(session).get_by_id("2")
        disclosures = await DisclosureRepository(session).list_recent_for_member("89156")
        bill = await BillRepository(session).get_by_number("C-27")
        committees = await CommitteeRepository(session).list_member_committee_names("89156")
        last_sync = await AppStatusRepository(session).get_last_successful_sync()

    # Two disclosures and one trade conflict, ten days average delay
    assert member.integrity_rank == 65.0
    assert member.slug == "jasraj-singh-hallan"
    assert clean.integrity_rank == 100.0
    by_description = {d.description: d for d in disclosures}
    assert by_description["Suncor Energy Inc."].category == "Other"
    assert by_description["Suncor Energy Inc."].conflict_reason == (
        "Committee: Natural Resources | Asset: Suncor Energy Inc."
    )
    assert by_description["Guaranteed investment certificate"].conflict_flag is False
    assert bill.key_vote is True
    assert committees == ["Finance"]
    assert last_sync is not None


async def test_repeated_runs_do_not_duplicate_rows(database) -> None:
    engine = _engine(database)
    await engine.run_sync()
    await engine.run_sync()
    before = await _counts(database)

    result = await engine.run_sync()

    assert result.ok is True
    assert await _counts(database) == before


async def test_slugs_are_unique_for_namesakes(database) -> None:
    engine = _engine(database)
    await engine.run_sync(task="roster")

    result = await engine.run_sync(task="slugs")

    assert result.step("slugs").detail == "5 slug(s) assigned"
    async with database.session() as session:
        repo = MemberRepository(session)
        assert (await repo.get_by_id("3")).slug == "john-smith"
        assert (await repo.get_by_id("4")).slug == "john-smith-calgary-centre"
        assert await repo.existing_slugs() == {
            "jasraj-singh-hallan", "peter-fonseca", "john-smith", "john-smith-calgary-centre", "doug-ford",
        }


async def test_single_task_runs_alone_and_does_not_record_sync(database) -> None:
    engine = _engine(database)

    result = await engine.run_sync(task="roster")

    assert [step.step for step in result.steps] == ["roster"]
    assert result.ok is True
    assert result.steps[0].detail == "federal 4/4; provincial 1/1"
    async with database.session() as session:
        assert await AppStatusRepository(session).get_last_successful_sync() is None


async def test_unknown_task_is_reported_not_raised(database) -> None:
    result = await _engine(database).run_sync(task="everything")

    assert result.ok is False
    assert result.steps[0].step == "everything"
    assert "Unknown task" in result.steps[0].detail


async def test_unavailable_source_fails_only_its_step(database) -> None:
    engine = _engine(database, bills_adapter=FakeBills(None))

    result = await engine.run_sync()

    assert result.ok is False
    assert result.step("bills").ok is False
    assert "404 Not Found" in result.step("bills").detail
    assert result.step("roster").ok is True
    assert result.step("audit").ok is True
    async with database.session() as session:
        assert await AppStatusRepository(session).get_last_successful_sync() is None


async def test_exception_in_a_step_is_isolated(database) -> None:
    engine = _engine(database, bills_adapter=FakeBills(error=RuntimeError("boom")))

    result = await engine.run_sync()

    assert result.step("bills").ok is False
    assert result.step("bills").detail == "boom"
    assert result.step("roster").ok is True
    assert (await _counts(database))["federal"] == 4


async def test_expired_time_budget_is_reported_in_detail(database) -> None:
    engine = _engine(database, config=SyncConfig(time_budget_seconds=0))

    result = await engine.run_sync(task="roster")

    assert result.ok is True
    assert result.steps[0].detail == "federal 0/4; provincial skipped (time limit)"

    unbounded = await engine.run_sync(task="roster", no_time_limit=True)
    assert unbounded.steps[0].detail == "federal 4/4; provincial 1/1"


async def test_federal_roster_not_refetched_once_complete(database) -> None:
    federal = FakeRoster(FEDERAL_MEMBERS)
    engine = _engine(database, config=SyncConfig(federal_target=4), federal_roster_adapter=federal)

    await engine.run_sync(task="roster")
    second = await engine.run_sync(task="roster")

    assert federal.calls == 1
    assert second.steps[0].detail == "federal complete (4); provincial 1/1"


async def test_committee_fallback_roster_when_source_unavailable(database) -> None:
    engine = _engine(database, committee_adapter=FakeCommittees({}))
    await engine.run_sync(task="roster")

    result = await engine.run_sync(task="committees")

    assert result.step("committees").detail == "2 new link(s); fallback roster used for FINA"
    async with database.session() as session:
        assert await CommitteeRepository(session).list_member_committee_names("2") == ["Finance"]


async def test_quote_failures_do_not_fail_the_step(database) -> None:
    async with database.session() as session:
        await MemberRepository(session).upsert(FEDERAL_MEMBERS[0], Jurisdiction.FEDERAL)
        trades = TradeRepository(session)
        for symbol in ("SU", "BAD"):
            await trades.create_if_absent("89156", symbol, TradeDirection.BUY, datetime(2024, 3, 1, 12))

    quotes = FakeQuotes()
    result = await _engine(database, quote_adapter=quotes).run_sync(task="quotes")

    assert result.ok is True
    assert result.steps[0].detail == "1/2 quotes"
    assert sorted(quotes.requested) == ["BAD", "SU"]


async def _disclosures_by_description(database) -> Dict[str, DisclosureModel]:
    async with database.session() as session:
        rows = (await session.execute(select(DisclosureModel))).scalars().all()
    return {row.description: row for row in rows}


async def test_audit_clears_flags_that_no_longer_apply(database) -> None:
    await add_member(database, "2", "Peter Fonseca")
    for description in ("Telus Corp", "Suncor Energy shares", "Maple cottage"):
        await add_disclosure(database, "2", description)
    async with database.session() as session:
        await SectorRepository(session).add_asset_mapping("telus", "Telecommunications")
        await BillRepository(session).upsert(
            BillData(number="C-27", status="Second reading", title="Digital Charter Implementation Act"), False
        )
    engine = _engine(database)

    await engine.run_sync(task="audit")
    first = await _disclosures_by_description(database)

    # Only Transport is active now; no committee oversees telecommunications
    async with database.session() as session:
        await BillRepository(session).upsert(
            BillData(number="C-27", status="Second reading", title="Rail Safety Act"), False
        )
    result = await engine.run_sync(task="audit")
    second = await _disclosures_by_description(database)

    assert first["Telus Corp"].conflict_flag is True
    assert first["Telus Corp"].conflict_reason == "Committee: Industry and Technology | Asset: Telus Corp"
    assert result.ok is True
    assert second["Telus Corp"].conflict_flag is False
    assert second["Telus Corp"].conflict_reason is None
    assert second["Suncor Energy shares"].conflict_reason == (
        "Committee: Natural Resources | Asset: Suncor Energy shares"
    )
    assert second["Maple cottage"].conflict_flag is False
    for row in second.values():
        assert row.conflict_flag == (row.conflict_reason is not None)
