"""
Sync orchestration.

Runs the ingestion and audit steps strictly in sequence:

    disclosures -> quotes -> bills -> roster -> slugs -> committees -> audit

Each step is fault isolated: an exception inside a step becomes a failed
``StepResult`` and the next step still runs. Roster and disclosure work is
checked against a cooperative ``Deadline`` so a scheduled run fits its
time budget; running out of time is reported in the step detail, not as a
failure. The audit step is never time bounded.

Responsibility: Coordinate adapters, repositories and services for one sync run
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Set, Union

from ..adapters import (
    CIECDisclosureAdapter,
    CommitteeRosterAdapter,
    FederalRosterAdapter,
    FinnhubQuoteAdapter,
    LEGISinfoBillsAdapter,
    OntarioRosterAdapter,
    is_key_vote_bill,
)
from ..adapters.base_adapter import BaseAdapter
from ..config import SyncConfig, settings
from ..db.repositories import (
    AppStatusRepository,
    BillRepository,
    CommitteeRepository,
    DisclosureRepository,
    MemberRepository,
    SectorRepository,
    TradeRepository,
)
from ..db.session import Database
from ..models.adapter_models import RosterMemberData
from ..models.enums import Jurisdiction, TradeDirection
from ..models.sync import StepResult, SyncResult, SyncTask
from ..services.committee_linker import FALLBACK_ROSTERS, MemberNameIndex, match_roster
from ..services.conflict_auditor import ConflictAuditor
from ..services.integrity_rank import IntegrityRankCalculator
from ..services.reference_data import seed_reference_data
from ..services.sector_classifier import SectorClassifier
from ..utils.committee_registry import TRACKED_COMMITTEES
from ..utils.dates import at_noon_utc
from ..utils.deadline import Deadline
from ..utils.slug import allocate_unique_slug
from ..utils.text import looks_like_ticker_symbol, normalize_field, truncate

logger = logging.getLogger(__name__)

CATEGORY_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 500
DEFAULT_CATEGORY = "Other"
EMPTY_DESCRIPTION = "—"


class SyncEngine:
    """
    Orchestrates one sync run over the configured database.

    Adapters default to the live sources; tests and alternative triggers
    inject their own.

    Example:
        engine = SyncEngine(db)
        result = await engine.run_sync()
        partial = await engine.run_sync(task="roster", no_time_limit=True)
    """

    def __init__(
        self,
        database: Database,
        *,
        disclosure_adapter: Optional[CIECDisclosureAdapter] = None,
        quote_adapter: Optional[FinnhubQuoteAdapter] = None,
        bills_adapter: Optional[LEGISinfoBillsAdapter] = None,
        federal_roster_adapter: Optional[FederalRosterAdapter] = None,
        provincial_roster_adapter: Optional[OntarioRosterAdapter] = None,
        committee_adapter: Optional[CommitteeRosterAdapter] = None,
        classifier: Optional[SectorClassifier] = None,
        config: Optional[SyncConfig] = None,
    ):
        self.database = database
        self.config = config or settings.sync
        self._owned: List[BaseAdapter] = []

        self.disclosure_adapter = disclosure_adapter or self._own(CIECDisclosureAdapter())
        self.quote_adapter = quote_adapter or self._own(FinnhubQuoteAdapter())
        self.bills_adapter = bills_adapter or self._own(LEGISinfoBillsAdapter())
        self.federal_roster_adapter = federal_roster_adapter or self._own(
            FederalRosterAdapter(fallback_path=self.config.fallback_roster_path)
        )
        self.provincial_roster_adapter = provincial_roster_adapter or self._own(OntarioRosterAdapter())
        self.committee_adapter = committee_adapter or self._own(CommitteeRosterAdapter())
        self.classifier = classifier or SectorClassifier()

        self._steps: Dict[SyncTask, Callable[[Deadline], Awaitable[StepResult]]] = {
            SyncTask.DISCLOSURES: self.sync_disclosures,
            SyncTask.QUOTES: self.sync_quotes,
            SyncTask.BILLS: self.sync_bills,
            SyncTask.ROSTER: self.sync_roster,
            SyncTask.SLUGS: self.sync_slugs,
            SyncTask.COMMITTEES: self.sync_committees,
            SyncTask.AUDIT: self.sync_audit,
        }

    def _own(self, adapter: BaseAdapter) -> BaseAdapter:
        self._owned.append(adapter)
        return adapter

    async def close(self) -> None:
        """Close the HTTP clients of adapters this engine created."""
        for adapter in self._owned:
            await adapter.close()
        self._owned = []

    async def __aenter__(self) -> "SyncEngine":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def run_sync(
        self,
        task: Optional[Union[SyncTask, str]] = None,
        no_time_limit: bool = False,
    ) -> SyncResult:
        """
        Run every step, or only ``task`` when given.

        Never raises. The last successful sync timestamp is recorded only
        for a full run in which every step succeeded.
        """
        deadline = Deadline.unbounded() if no_time_limit else Deadline(self.config.time_budget_seconds)

        if task is not None:
            try:
                selected = [SyncTask(task)]
            except ValueError:
                logger.error(f"Unknown sync task: {task}")
                return SyncResult(
                    ok=False,
                    steps=[StepResult(step=str(task), ok=False, detail=f"Unknown task: {task}")],
                )
        else:
            selected = list(SyncTask)

        logger.info(
            "Starting sync: tasks=%s, time_limit=%s",
            ",".join(step.value for step in selected),
            "none" if no_time_limit else f"{self.config.time_budget_seconds}s",
        )

        steps: List[StepResult] = []
        for step in selected:
            steps.append(await self._run_step(step, deadline))

        result = SyncResult.from_steps(steps)

        if task is None and result.ok:
            try:
                async with self.database.session() as session:
                    await AppStatusRepository(session).set_last_successful_sync()
            except Exception as e:
                logger.error(f"Failed to record last successful sync: {e}", exc_info=True)

        logger.info(
            "Sync finished in %.1fs: ok=%s (%s)",
            deadline.elapsed(),
            result.ok,
            ", ".join(f"{s.step}={'ok' if s.ok else 'failed'}" for s in steps),
        )
        return result

    async def _run_step(self, step: SyncTask, deadline: Deadline) -> StepResult:
        logger.info(f"Sync step: {step.value}")
        try:
            result = await self._steps[step](deadline)
        except Exception as e:
            logger.error(f"Sync step {step.value} failed: {e}", exc_info=True)
            return StepResult(step=step.value, ok=False, detail=str(e) or type(e).__name__)
        logger.info(f"Sync step {step.value}: ok={result.ok} {result.detail or ''}".rstrip())
        return result

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def sync_disclosures(self, deadline: Deadline) -> StepResult:
        async with self.database.session() as session:
            await self.classifier.refresh(session)
            sample = await MemberRepository(session).list_sample(self.config.disclosure_sample_size)
            targets = [(member.id, member.official_id or member.id) for member in sample]

        disclosures = 0
        trades = 0
        unavailable = 0
        processed = 0

        for member_id, declaration_id in targets:
            if deadline.expired():
                break
            processed += 1

            response = await self.disclosure_adapter.fetch(declaration_id=declaration_id)
            if not response.ok:
                unavailable += 1
                continue

            rows = response.records[: self.config.disclosure_rows_per_member]
            async with self.database.session() as session:
                disclosure_repo = DisclosureRepository(session)
                trade_repo = TradeRepository(session)
                sector_repo = SectorRepository(session)

                for row in rows:
                    category = truncate(normalize_field(row.nature_of_interest, DEFAULT_CATEGORY), CATEGORY_MAX_LENGTH)
                    description = (
                        truncate(normalize_field(row.asset_name, ""), DESCRIPTION_MAX_LENGTH)
                        or EMPTY_DESCRIPTION
                    )

                    sector_id = None
                    sector_name = self.classifier.resolve_sector(description)
                    if sector_name:
                        sector_id = (await sector_repo.get_or_create(sector_name)).id

                    if await disclosure_repo.create_if_absent(
                        member_id=member_id,
                        category=category,
                        description=description,
                        disclosure_date=row.event_date,
                        sector_id=sector_id,
                    ):
                        disclosures += 1

                    symbol = (row.asset_name or "").strip()
                    if row.is_material_change and row.event_date and looks_like_ticker_symbol(symbol):
                        if await trade_repo.create_if_absent(
                            member_id=member_id,
                            symbol=symbol.upper(),
                            direction=TradeDirection.BUY,
                            date=at_noon_utc(row.event_date),
                        ):
                            trades += 1

        detail = f"{disclosures} disclosure(s), {trades} trade(s) from {processed}/{len(targets)} member(s)"
        if unavailable:
            detail += f"; registry unavailable for {unavailable}"
        if processed < len(targets):
            detail += "; stopped at time limit"
        return StepResult(step=SyncTask.DISCLOSURES.value, ok=True, detail=detail)

    async def sync_quotes(self, deadline: Deadline) -> StepResult:
        async with self.database.session() as session:
            symbols = await TradeRepository(session).distinct_symbols(self.config.quote_symbol_limit)

        if not symbols:
            return StepResult(step=SyncTask.QUOTES.value, ok=True, detail="0/0 quotes")

        results = await asyncio.gather(
            *(self.quote_adapter.get_quote(symbol) for symbol in symbols),
            return_exceptions=True,
        )
        fetched = 0
        for symbol, result in zip(symbols, results):
            if isinstance(result, BaseException):
                logger.warning(f"Quote for {symbol} failed: {result}")
            elif result is not None:
                fetched += 1

        return StepResult(step=SyncTask.QUOTES.value, ok=True, detail=f"{fetched}/{len(symbols)} quotes")

    async def sync_bills(self, deadline: Deadline) -> StepResult:
        response = await self.bills_adapter.fetch()
        if not response.ok:
            message = response.errors[0].message if response.errors else response.status.value
            return StepResult(step=SyncTask.BILLS.value, ok=False, detail=f"Bills source unavailable: {message}")

        bills = response.records
        async with self.database.session() as session:
            count = await BillRepository(session).upsert_many(
                (bill, is_key_vote_bill(bill.number)) for bill in bills
            )
        return StepResult(step=SyncTask.BILLS.value, ok=True, detail=f"{count} bills")

    async def _upsert_in_batches(
        self,
        members: List[RosterMemberData],
        jurisdiction: Jurisdiction,
        deadline: Deadline,
    ) -> int:
        """Upsert ``members`` batch by batch until done or out of time."""
        batch_size = max(1, self.config.batch_size)
        upserted = 0
        for start in range(0, len(members), batch_size):
            if deadline.expired():
                break
            batch = members[start:start + batch_size]
            async with self.database.session() as session:
                upserted += await MemberRepository(session).upsert_many(batch, jurisdiction)
        return upserted

    async def sync_roster(self, deadline: Deadline) -> StepResult:
        notes: List[str] = []

        async with self.database.session() as session:
            federal_count = await MemberRepository(session).count_by_jurisdiction(Jurisdiction.FEDERAL)

        if federal_count < self.config.federal_target:
            response = await self.federal_roster_adapter.fetch()
            if response.ok:
                members = response.records
                done = await self._upsert_in_batches(members, Jurisdiction.FEDERAL, deadline)
                notes.append(f"federal {done}/{len(members)}")
            else:
                notes.append("federal roster unavailable")
        else:
            notes.append(f"federal complete ({federal_count})")

        if deadline.expired():
            notes.append("provincial skipped (time limit)")
        else:
            response = await self.provincial_roster_adapter.fetch()
            if response.ok:
                members = response.records
                done = await self._upsert_in_batches(members, Jurisdiction.PROVINCIAL, deadline)
                notes.append(f"provincial {done}/{len(members)}")
            else:
                notes.append("provincial roster unavailable")

        return StepResult(step=SyncTask.ROSTER.value, ok=True, detail="; ".join(notes))

    async def sync_slugs(self, deadline: Deadline) -> StepResult:
        async with self.database.session() as session:
            repo = MemberRepository(session)
            missing = await repo.list_missing_slugs()
            taken: Set[str] = await repo.existing_slugs()

            for member in missing:
                slug = allocate_unique_slug(member.name, member.riding, taken.__contains__)
                taken.add(slug)
                await repo.set_slug(member.id, slug)

        return StepResult(step=SyncTask.SLUGS.value, ok=True, detail=f"{len(missing)} slug(s) assigned")

    async def sync_committees(self, deadline: Deadline) -> StepResult:
        async with self.database.session() as session:
            await seed_reference_data(session)
            federal = await MemberRepository(session).list_all(Jurisdiction.FEDERAL)
            index = MemberNameIndex.build([(member.id, member.name) for member in federal])

        new_links = 0
        fallbacks: List[str] = []

        for committee in TRACKED_COMMITTEES:
            response = await self.committee_adapter.fetch(committee_key=committee.source_slug)
            names = [entry.name for entry in response.records] if response.ok else []
            if not names and committee.code in FALLBACK_ROSTERS:
                names = list(FALLBACK_ROSTERS[committee.code])
                fallbacks.append(committee.code)
            if not names:
                continue

            member_ids = match_roster(names, index)
            async with self.database.session() as session:
                repo = CommitteeRepository(session)
                model = await repo.ensure(committee.name, committee.code, committee.source_slug)
                for member_id in member_ids:
                    if await repo.link_member(member_id, model.id):
                        new_links += 1

        detail = f"{new_links} new link(s)"
        if fallbacks:
            detail += f"; fallback roster used for {', '.join(fallbacks)}"
        return StepResult(step=SyncTask.COMMITTEES.value, ok=True, detail=detail)

    async def sync_audit(self, deadline: Deadline) -> StepResult:
        async with self.database.session() as session:
            await self.classifier.refresh(session)
            await DisclosureRepository(session).reset_all_conflicts()
            member_ids = await MemberRepository(session).list_ids()

        flagged = 0
        failures = 0

        for member_id in member_ids:
            try:
                async with self.database.session() as session:
                    auditor = ConflictAuditor(session, self.classifier, bill_limit=self.config.audit_bill_limit)
                    report = await auditor.check_conflict(member_id)

                    disclosure_repo = DisclosureRepository(session)
                    disclosure_ids = {flag.source_record_id for flag in report.disclosure_flags()}
                    for disclosure_id in sorted(disclosure_ids):
                        await disclosure_repo.flag_conflict(
                            disclosure_id, report.reason_for_disclosure(disclosure_id)
                        )
                        flagged += 1

                    rank = await IntegrityRankCalculator(session).calculate_integrity_rank(
                        member_id, precomputed_conflict_count=len(report.conflicts)
                    )
                    await MemberRepository(session).set_integrity_rank(member_id, rank)
            except Exception as e:
                failures += 1
                logger.error(f"Audit failed for member {member_id}: {e}", exc_info=True)

        detail = f"{len(member_ids)} member(s) audited, {flagged} disclosure(s) flagged"
        if failures:
            detail += f", {failures} failure(s)"
        return StepResult(step=SyncTask.AUDIT.value, ok=failures == 0, detail=detail)

