from datetime import datetime
from typing import Optional

import pytest_asyncio

from integrity_index.db.models import DisclosureModel
from integrity_index.db.repositories import MemberRepository
from integrity_index.db.session import Database
from integrity_index.models.adapter_models import RosterMemberData
from integrity_index.models.enums import Jurisdiction


@pytest_asyncio.fixture
async def database():
    """Fresh in-memory database per test."""
    database = Database("sqlite+aiosqlite:///:memory:")
    await database.initialize()
    await database.create_tables()
    yield database
    await database.close()


async def add_member(
    database: Database,
    member_id: str,
    name: str,
    riding: str = "Calgary Centre",
    party: str = "Conservative",
    jurisdiction: Jurisdiction = Jurisdiction.FEDERAL,
) -> None:
    async with database.session() as session:
        await MemberRepository(session).upsert(
            RosterMemberData(id=member_id, name=name, riding=riding, party=party, official_id=member_id),
            jurisdiction,
        )


async def add_disclosure(
    database: Database,
    member_id: str,
    description: str,
    disclosure_date: Optional[datetime] = None,
    created_at: Optional[datetime] = None,
    category: str = "Assets",
) -> int:
    async with database.session() as session:
        model = DisclosureModel(
            member_id=member_id,
            category=category,
            description=description,
            disclosure_date=disclosure_date,
        )
        if created_at is not None:
            model.created_at = created_at
        session.add(model)
        await session.flush()
        return model.id
