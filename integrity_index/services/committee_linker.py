"""
Links committee roster names to stored members.

Roster sources spell names differently from the member roster ("Hallan,
Jasraj Singh" vs "Jasraj Singh Hallan"), so matching is an ordered chain
of strategies; the first one returning a member id wins:

    try_exact_match -> try_reversed_match -> try_last_name_match
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..utils.text import normalize_person_name

logger = logging.getLogger(__name__)

# Used when the roster source for Finance is unreachable or empty
FINANCE_FALLBACK_NAMES: Tuple[str, ...] = (
    "Peter Fonseca",
    "Jasraj Singh Hallan",
    "Gabriel Ste-Marie",
    "Yvan Baker",
    "Adam Chambers",
    "Francesco Sorbara",
    "Philip Lawrence",
    "Dan Albas",
    "Taylor Bachrach",
    "Daniel Blaikie",
)

FALLBACK_ROSTERS: Dict[str, Tuple[str, ...]] = {
    "FINA": FINANCE_FALLBACK_NAMES,
}


def reverse_name(name: str) -> Optional[str]:
    """
    Swap between "last, first" and "first last" forms.

    >>> reverse_name("hallan, jasraj singh")
    'jasraj singh hallan'
    >>> reverse_name("jasraj singh hallan")
    'hallan, jasraj singh'
    """
    if "," in name:
        last, _, first = name.partition(",")
        last, first = last.strip(), first.strip()
        return f"{first} {last}" if first and last else None
    parts = name.split(" ")
    if len(parts) < 2:
        return None
    return f"{parts[-1]}, {' '.join(parts[:-1])}"


@dataclass(frozen=True)
class MemberNameIndex:
    """Normalized member names, in roster order, for the matchers."""

    entries: Tuple[Tuple[str, str], ...]

    @classmethod
    def build(cls, members: Sequence[Tuple[str, str]]) -> "MemberNameIndex":
        """``members`` is a sequence of (member_id, display name)."""
        return cls(tuple((member_id, normalize_person_name(name)) for member_id, name in members))

    def find_exact(self, normalized: str) -> Optional[str]:
        for member_id, name in self.entries:
            if name == normalized:
                return member_id
        return None


Matcher = Callable[[str, MemberNameIndex], Optional[str]]


def try_exact_match(candidate: str, index: MemberNameIndex) -> Optional[str]:
    return index.find_exact(normalize_person_name(candidate))


def try_reversed_match(candidate: str, index: MemberNameIndex) -> Optional[str]:
    normalized = normalize_person_name(candidate)
    reversed_candidate = reverse_name(normalized)
    if reversed_candidate:
        found = index.find_exact(reversed_candidate)
        if found:
            return found
    # Stored names may themselves be "last, first"
    for member_id, name in index.entries:
        if reverse_name(name) == normalized:
            return member_id
    return None


def try_last_name_match(candidate: str, index: MemberNameIndex) -> Optional[str]:
    """First member whose name contains the candidate's last name."""
    normalized = normalize_person_name(candidate)
    if "," in normalized:
        last = normalized.partition(",")[0].strip()
    else:
        last = normalized.split(" ")[-1] if normalized else ""
    if not last:
        return None
    for member_id, name in index.entries:
        if last in name:
            return member_id
    return None


MATCHER_CHAIN: Tuple[Matcher, ...] = (
    try_exact_match,
    try_reversed_match,
    try_last_name_match,
)


def match_member(candidate: str, index: MemberNameIndex) -> Optional[str]:
    for matcher in MATCHER_CHAIN:
        member_id = matcher(candidate, index)
        if member_id:
            return member_id
    return None


def match_roster(candidates: Sequence[str], index: MemberNameIndex) -> List[str]:
    """Distinct member ids for a committee roster, in roster order."""
    matched: List[str] = []
    for candidate in candidates:
        member_id = match_member(candidate, index)
        if member_id is None:
            logger.debug("No member matched committee roster name %r", candidate)
            continue
        if member_id not in matched:
            matched.append(member_id)
    return matched
