"""
Command-line interface for Integrity Index.

Usage:
    python -m integrity_index.cli.sync_cli init-db
    python -m integrity_index.cli.sync_cli seed
    python -m integrity_index.cli.sync_cli sync [--task roster] [--no-time-limit]
    python -m integrity_index.cli.sync_cli audit 89156
    python -m integrity_index.cli.sync_cli verify [--live-bills]
"""

import asyncio
import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from ..adapters import LEGISinfoBillsAdapter
from ..config import settings
from ..db.repositories import MemberRepository
from ..db.session import Database, db as default_db
from ..models.sync import SyncResult, SyncTask
from ..orchestration import SyncEngine
from ..services import ConflictAuditor, IntegrityRankCalculator, SectorClassifier
from ..services.reference_data import seed_reference_data
from ..services.verification import VerifySyncReport, run_verify_sync

logger = logging.getLogger(__name__)

console = Console()


def _print_sync_result(result: SyncResult) -> None:
    table = Table(title="Sync result")
    table.add_column("Step", style="cyan")
    table.add_column("Status")
    table.add_column("Detail", overflow="fold")
    for step in result.steps:
        status = "[green]ok[/green]" if step.ok else "[red]failed[/red]"
        table.add_row(step.step, status, step.detail or "")
    console.print(table)
    if result.ok:
        console.print("[bold green]✅ Sync completed[/bold green]")
    else:
        console.print("[bold red]❌ Sync finished with failures[/bold red]")


def _print_verify_report(report: VerifySyncReport) -> None:
    table = Table(title=f"Sync verification ({report.timestamp})")
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Detail")
    table.add_column("Issues", overflow="fold")
    for check in report.results:
        status = "[green]ok[/green]" if check.ok else "[yellow]attention[/yellow]"
        table.add_row(check.model, status, check.detail, "; ".join(check.issues))
    console.print(table)
    console.print(f"[bold]{report.summary}[/bold]")


async def init_db(database: Database) -> int:
    await database.create_tables()
    console.print("[green]✅ Tables created[/green]")
    return 0


async def seed(database: Database) -> int:
    async with database.session() as session:
        summary = await seed_reference_data(session)
    console.print(
        f"[green]✅ Reference data seeded:[/green] {summary.sectors} sectors, "
        f"{summary.committees} committees, {summary.committee_sector_links} committee-sector links, "
        f"{summary.asset_mappings} asset keywords"
    )
    return 0


async def sync(database: Database, task: Optional[str], no_time_limit: bool) -> int:
    async with SyncEngine(database) as engine:
        result = await engine.run_sync(task=task, no_time_limit=no_time_limit)
    _print_sync_result(result)
    return 0 if result.ok else 1


async def audit(database: Database, member_id: str) -> int:
    async with database.session() as session:
        member = await MemberRepository(session).get_by_id(member_id)
        if member is None:
            console.print(f"[yellow]Member {member_id} not found[/yellow]")
            return 1

        classifier = SectorClassifier()
        await classifier.refresh(session)
        report = await ConflictAuditor(session, classifier).check_conflict(member_id)
        rank = await IntegrityRankCalculator(session).calculate_integrity_rank(
            member_id, precomputed_conflict_count=len(report.conflicts)
        )

    console.print(f"\n[bold cyan]{member.name}[/bold cyan] ({member.party}, {member.riding})")
    console.print(f"Integrity rank: [bold]{rank:.1f}[/bold]")

    if not report.has_conflict:
        console.print("[green]No conflicts found[/green]")
        return 0

    table = Table(title="Conflicts")
    table.add_column("Committee", style="cyan")
    table.add_column("Sector")
    table.add_column("Source")
    table.add_column("Asset", overflow="fold")
    for flag in report.conflicts:
        table.add_row(flag.committee, flag.sector, flag.source.value, flag.asset)
    console.print(table)
    return 0


async def verify(database: Database, live_bills: bool) -> int:
    bills_adapter = LEGISinfoBillsAdapter() if live_bills else None
    try:
        async with database.session() as session:
            report = await run_verify_sync(session, bills_adapter=bills_adapter)
    finally:
        if bills_adapter is not None:
            await bills_adapter.close()
    _print_verify_report(report)
    return 0 if report.ok else 1


async def run_command(args: argparse.Namespace, database: Database) -> int:
    if not database.is_initialized:
        await database.initialize()
    try:
        if args.command == "init-db":
            return await init_db(database)
        if args.command == "seed":
            return await seed(database)
        if args.command == "sync":
            return await sync(database, args.task, args.no_time_limit)
        if args.command == "audit":
            return await audit(database, args.member_id)
        if args.command == "verify":
            return await verify(database, args.live_bills)
        raise ValueError(f"Unknown command: {args.command}")
    finally:
        await database.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="integrity-index",
        description="Integrity Index sync and audit tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create tables and seed sectors/committees
  integrity-index init-db && integrity-index seed

  # Full sync without the 50s budget
  integrity-index sync --no-time-limit

  # Only refresh the rosters
  integrity-index sync --task roster

  # Conflict report for one member
  integrity-index audit 89156
        """
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create database tables")
    subparsers.add_parser("seed", help="Seed sectors, committees and asset keywords")

    sync_parser = subparsers.add_parser("sync", help="Run the sync engine")
    sync_parser.add_argument(
        "--task",
        choices=[task.value for task in SyncTask],
        help="Run a single step"
    )
    sync_parser.add_argument(
        "--no-time-limit",
        action="store_true",
        help=f"Disable the {settings.sync.time_budget_seconds:.0f}s time budget"
    )

    audit_parser = subparsers.add_parser("audit", help="Conflict report and rank for one member")
    audit_parser.add_argument("member_id", help="Member id (e.g. 89156)")

    verify_parser = subparsers.add_parser("verify", help="Report data completeness")
    verify_parser.add_argument(
        "--live-bills",
        action="store_true",
        help="Compare the stored bill count with the live LEGISinfo list"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.app.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    return asyncio.run(run_command(args, default_db))


if __name__ == "__main__":
    sys.exit(main())
