"""
Text normalisation helpers for upstream records.
"""

from __future__ import annotations

import re
from typing import Optional

NOT_AVAILABLE = "(not available)"

_TICKER_PATTERN = re.compile(r"^[A-Z]{1,5}(\.[A-Z]{1,2})?$")
_WHITESPACE = re.compile(r"\s+")


def normalize_field(value: Optional[str], default: str) -> str:
    """Strip a field, mapping empty values and ``(not available)`` to ``default``."""
    if value is None:
        return default
    text = _WHITESPACE.sub(" ", str(value)).strip()
    if not text or text.lower() == NOT_AVAILABLE:
        return default
    return text


def truncate(value: str, max_length: int) -> str:
    return value if len(value) <= max_length else value[:max_length]


def normalize_person_name(value: str) -> str:
    """Lowercase, collapse whitespace and drop punctuation except commas and hyphens."""
    text = value.lower().replace(".", " ")
    text = re.sub(r"[^\w\s,\-']", "", text)
    return _WHITESPACE.sub(" ", text).strip()


def looks_like_ticker_symbol(value: Optional[str]) -> bool:
    """
    True for exchange-style symbols such as ``SU``, ``CNQ`` or ``BBD.B``.

    Registry asset names are free text; only short uppercase tokens are
    treated as tradeable symbols.
    """
    if not value:
        return False
    return bool(_TICKER_PATTERN.match(value.strip()))
