"""
Sync trigger endpoints.

Both the manual trigger and the scheduler callback require the cron
bearer secret; the response carries the per-step results.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from integrity_index.models.sync import SyncTask
from integrity_index.orchestration import SyncEngine

from api.dependencies import get_sync_engine, require_cron_secret

logger = logging.getLogger(__name__)

router = APIRouter()


async def _run(engine: SyncEngine, task: Optional[SyncTask], no_time_limit: bool) -> JSONResponse:
    result = await engine.run_sync(task=task, no_time_limit=no_time_limit)
    if not result.ok:
        failed = [step.step for step in result.steps if not step.ok]
        logger.warning(f"Sync finished with failed steps: {failed}")
    return JSONResponse(
        content=result.model_dump(),
        status_code=200 if result.ok else 500,
    )


@router.api_route(
    "/v1/sync",
    methods=["GET", "POST"],
    dependencies=[Depends(require_cron_secret)],
    summary="Run the sync (all steps or one task)",
)
async def trigger_sync(
    task: Optional[SyncTask] = Query(None, description="Run a single step"),
    no_time_limit: bool = Query(False, description="Disable the cooperative time budget"),
    engine: SyncEngine = Depends(get_sync_engine),
):
    return await _run(engine, task, no_time_limit)


@router.get(
    "/cron/sync",
    dependencies=[Depends(require_cron_secret)],
    summary="Scheduled full sync",
)
async def cron_sync(engine: SyncEngine = Depends(get_sync_engine)):
    return await _run(engine, None, False)
