"""
Dialect-aware insert helpers shared by the repositories.
"""

from __future__ import annotations

from typing import Any, Dict, Sequence

from sqlalchemy import insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


def dialect_name(session: AsyncSession) -> str:
    return session.bind.dialect.name


async def insert_ignoring_duplicates(
    session: AsyncSession,
    model: Any,
    values: Dict[str, Any],
    conflict_columns: Sequence[str],
) -> bool:
    """
    INSERT that silently skips rows violating the given unique key.

    Returns True when a row was written.
    """
    dialect = dialect_name(session)
    if dialect == "postgresql":
        stmt = pg_insert(model).values(**values).on_conflict_do_nothing(
            index_elements=list(conflict_columns)
        )
    elif dialect == "sqlite":
        stmt = sqlite_insert(model).values(**values).on_conflict_do_nothing(
            index_elements=list(conflict_columns)
        )
    else:
        stmt = insert(model).values(**values)
    result = await session.execute(stmt)
    return result.rowcount != 0
