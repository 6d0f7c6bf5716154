"""
URL slug generation for member profile pages.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, Optional

_NON_SLUG = re.compile(r"[^a-z0-9-]")
_DASHES = re.compile(r"-+")


def slug_from_name(value: Optional[str]) -> str:
    """
    Build a URL slug: lowercase, spaces to dashes, other characters dropped.

    >>> slug_from_name("Jasraj Singh Hallan")
    'jasraj-singh-hallan'
    """
    text = (value or "").strip().lower()
    text = re.sub(r"\s+", "-", text)
    text = _NON_SLUG.sub("", text)
    text = _DASHES.sub("-", text).strip("-")
    return text or "unknown"


def allocate_unique_slug(
    name: str,
    riding: Optional[str],
    is_taken: Callable[[str], bool],
) -> str:
    """
    Pick the first free slug from name, then name+riding, then numeric suffixes.

    ``is_taken`` is consulted for every candidate, so callers control the
    namespace (database rows plus slugs allocated earlier in the same batch).
    """
    for candidate in _candidates(name, riding):
        if not is_taken(candidate):
            return candidate
    raise RuntimeError("slug candidates exhausted")  # pragma: no cover


def _candidates(name: str, riding: Optional[str]) -> Iterable[str]:
    base = slug_from_name(name)
    yield base
    with_riding = slug_from_name(f"{name} {riding}") if riding else base
    if with_riding != base:
        yield with_riding
    suffix = 2
    while True:
        yield f"{with_riding}-{suffix}"
        suffix += 1
