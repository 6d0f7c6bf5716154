"""
Committee identifiers and committee-roster source slugs.

House committees are referred to three ways: the display name the
conflict engine uses ("Finance"), the official acronym (``FINA``) and the
slug of the committee-roster API (``finance``). This module keeps the
mapping in one place so the sync step, the seeding code and the conflict
engine agree.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class TrackedCommittee:
    """A committee whose roster is synced from the committee-roster API."""

    name: str
    code: str
    source_slug: str

    @property
    def source_title(self) -> str:
        return f"Standing Committee on {self.name} ({self.code})"


# Committees with a federal roster source. Ordered; FINA first because it
# carries the static fallback roster.
TRACKED_COMMITTEES: Tuple[TrackedCommittee, ...] = (
    TrackedCommittee("Finance", "FINA", "finance"),
    TrackedCommittee("Natural Resources", "RNNR", "natural-resources"),
    TrackedCommittee("Environment and Sustainable Development", "ENVI", "environment"),
    TrackedCommittee("Industry and Technology", "INDU", "industry-and-technology"),
    TrackedCommittee("Transport, Infrastructure and Communities", "TRAN", "transport"),
    TrackedCommittee("Health", "HESA", "health"),
    TrackedCommittee("Agriculture and Agri-Food", "AGRI", "agriculture"),
    TrackedCommittee("Public Safety", "SECU", "public-safety"),
    TrackedCommittee("Fisheries and Oceans", "FOPO", "fisheries"),
)

COMMITTEE_CODE_TO_SOURCE_SLUG: Dict[str, str] = {
    committee.code: committee.source_slug for committee in TRACKED_COMMITTEES
}

SOURCE_SLUG_TO_CODE: Dict[str, str] = {
    slug: code for code, slug in COMMITTEE_CODE_TO_SOURCE_SLUG.items()
}

_TITLE_CODE = re.compile(r"\(([A-Z]{4})\)\s*$")


def normalize_committee_code(value: Optional[str]) -> Optional[str]:
    """
    Normalize any representation of a committee to its acronym.

    Accepts acronyms (``FINA``), roster slugs (``finance``) and official
    titles ending in the acronym ("Standing Committee on Finance (FINA)").
    """
    if not value:
        return None

    trimmed = value.strip()
    if not trimmed:
        return None

    lower_value = trimmed.lower()
    if lower_value in SOURCE_SLUG_TO_CODE:
        return SOURCE_SLUG_TO_CODE[lower_value]

    match = _TITLE_CODE.search(trimmed)
    if match:
        return match.group(1)

    if trimmed.upper() in COMMITTEE_CODE_TO_SOURCE_SLUG:
        return trimmed.upper()

    for committee in TRACKED_COMMITTEES:
        if committee.name.lower() == lower_value:
            return committee.code

    return None


def resolve_source_slug(value: Optional[str]) -> Optional[str]:
    """Resolve any committee identifier to its roster API slug."""
    code = normalize_committee_code(value)
    if not code:
        return None
    return COMMITTEE_CODE_TO_SOURCE_SLUG.get(code)


def find_tracked_committee(value: Optional[str]) -> Optional[TrackedCommittee]:
    code = normalize_committee_code(value)
    for committee in TRACKED_COMMITTEES:
        if committee.code == code:
            return committee
    return None
