"""
Utility helpers for deduplicating records.

Responsibility: Drop duplicate records by a key function and report how
many were removed.
"""

from __future__ import annotations

from typing import Callable, Hashable, Iterable, List, Tuple, TypeVar

T = TypeVar("T")


def dedupe_by_key(
    records: Iterable[T],
    key_fn: Callable[[T], Hashable],
) -> Tuple[List[T], int]:
    """
    Keep the first record seen for each key, preserving input order.

    Records whose key is ``None`` are dropped without counting as duplicates.

    Returns:
        Tuple of (unique_records, duplicate_count).
    """
    seen: dict = {}
    duplicates = 0

    for record in records:
        key = key_fn(record)
        if key is None:
            continue
        if key in seen:
            duplicates += 1
            continue
        seen[key] = record

    return list(seen.values()), duplicates
