"""
Shared FastAPI dependencies: cron authentication, the sync engine and
the per-request sector classifier.
"""

import hmac
import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from integrity_index.config import settings
from integrity_index.db.session import db, get_session
from integrity_index.orchestration import SyncEngine
from integrity_index.services import SectorClassifier

logger = logging.getLogger(__name__)


def require_cron_secret(authorization: Optional[str] = Header(default=None)) -> None:
    """
    Require ``Authorization: Bearer <CRON_SECRET>``.

    503 when no secret is configured, 401 when the token does not match.
    """
    secret = settings.app.cron_secret
    if not secret:
        logger.error("CRON_SECRET is not set; refusing sync trigger")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Cron not configured")

    token = authorization or ""
    if token.startswith("Bearer "):
        token = token[len("Bearer "):]
    if not hmac.compare_digest(token.encode(), secret.encode()):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


async def get_sync_engine() -> AsyncGenerator[SyncEngine, None]:
    if not db.is_initialized:
        await db.initialize()
    async with SyncEngine(db) as engine:
        yield engine


async def get_sector_classifier(session: AsyncSession = Depends(get_session)) -> SectorClassifier:
    """A classifier per request, loaded with the persisted keyword mappings."""
    classifier = SectorClassifier()
    await classifier.refresh(session)
    return classifier
