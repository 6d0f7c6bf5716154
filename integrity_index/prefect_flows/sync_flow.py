"""
Prefect flows for the scheduled integrity sync.

The daily deployment runs the full sync; ``verify_sync_flow`` reports on
what the database holds afterwards.
"""

from datetime import datetime
from typing import Any, Dict, Optional
import logging

from prefect import flow, task, get_run_logger

from integrity_index.config import settings
from integrity_index.db.session import db
from integrity_index.orchestration import SyncEngine
from integrity_index.services.verification import run_verify_sync

logger = logging.getLogger(__name__)


@task(name="run_sync", retries=0)
async def run_sync_task(task_name: Optional[str] = None, no_time_limit: bool = False) -> Dict[str, Any]:
    """
    Run the sync engine once.

    Args:
        task_name: Single step to run (e.g. "roster"); None runs all steps
        no_time_limit: Disable the cooperative time budget

    Returns:
        Serialized SyncResult
    """
    logger_task = get_run_logger()
    logger_task.info(f"Running sync (task={task_name or 'all'}, no_time_limit={no_time_limit})")

    async with SyncEngine(db) as engine:
        result = await engine.run_sync(task=task_name, no_time_limit=no_time_limit)

    for step in result.steps:
        if step.ok:
            logger_task.info(f"{step.step}: {step.detail}")
        else:
            logger_task.error(f"{step.step} failed: {step.detail}")
    return result.model_dump()


@task(name="verify_sync")
async def verify_sync_task() -> Dict[str, Any]:
    logger_task = get_run_logger()
    async with db.session() as session:
        report = await run_verify_sync(session)
    for check in report.results:
        log = logger_task.info if check.ok else logger_task.warning
        log(f"[{check.model}] {check.detail}")
    return report.model_dump()


@flow(
    name="integrity_sync",
    description="Sync disclosures, bills, rosters and committees, then audit conflicts",
    log_prints=True
)
async def integrity_sync_flow(task_name: Optional[str] = None, no_time_limit: bool = False) -> Dict[str, Any]:
    logger_flow = get_run_logger()
    start_time = datetime.utcnow()

    if not db.is_initialized:
        await db.initialize()
    await db.create_tables()

    result = await run_sync_task(task_name, no_time_limit)

    duration = (datetime.utcnow() - start_time).total_seconds()
    logger_flow.info(f"Sync flow finished in {duration:.1f}s: ok={result['ok']}")
    return {**result, "duration_seconds": duration}


@flow(name="verify_sync", description="Report data completeness after a sync", log_prints=True)
async def verify_sync_flow() -> Dict[str, Any]:
    if not db.is_initialized:
        await db.initialize()
    return await verify_sync_task()


if __name__ == "__main__":
    logging.basicConfig(
        level=getattr(logging, settings.app.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    integrity_sync_flow.serve(name="daily-integrity-sync", cron=settings.sync.cron_schedule)
