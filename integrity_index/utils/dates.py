"""
Date helpers.

Timestamps are stored as naive UTC ``datetime`` values.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%d/%m/%Y", "%B %d, %Y", "%b %d, %Y")


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_date(value: Any) -> Optional[datetime]:
    """
    Best-effort conversion of registry/API date values to ``datetime``.

    Returns ``None`` when the value is empty or unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        return to_naive_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    logger.debug("Unable to parse date string %s", text)
    return None


def at_noon_utc(value: datetime) -> datetime:
    """Pin a calendar date to 12:00 UTC so trade dates don't drift across zones."""
    return value.replace(hour=12, minute=0, second=0, microsecond=0)


def delay_days(event: datetime, recorded: datetime) -> float:
    """Fractional days between an event and when it was recorded."""
    return (recorded - event).total_seconds() / 86400.0
