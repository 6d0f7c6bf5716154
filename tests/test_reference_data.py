from integrity_index.db.repositories import CommitteeRepository, SectorRepository
from integrity_index.models.enums import EconomicSector
from integrity_index.services.reference_data import seed_reference_data
from integrity_index.services.sector_classifier import SectorClassifier
from integrity_index.services.verification import run_verify_sync

from tests.conftest import add_member


async def test_seed_is_idempotent(database) -> None:
    async with database.session() as session:
        first = await seed_reference_data(session)
    async with database.session() as session:
        second = await seed_reference_data(session)
        sectors = await SectorRepository(session).count()
        committees = await CommitteeRepository(session).count()

    assert first.sectors == len(EconomicSector)
    assert first.committee_sector_links == 34
    assert first.asset_mappings == 10
    assert second.committee_sector_links == 0
    assert second.asset_mappings == 0
    assert sectors == len(EconomicSector)
    assert committees == 14


async def test_seeded_keywords_reach_the_classifier(database) -> None:
    classifier = SectorClassifier()
    assert classifier.resolve_sector("Saputo") is None

    async with database.session() as session:
        await seed_reference_data(session)
        await classifier.refresh(session)

    assert classifier.resolve_sector("Saputo") == EconomicSector.AGRIBUSINESS.value


async def test_verification_reports_incomplete_sync(database) -> None:
    await add_member(database, "89156", "Jasraj Singh Hallan")
    async with database.session() as session:
        await seed_reference_data(session)
        report = await run_verify_sync(session)

    checks = {check.model: check for check in report.results}
    assert report.ok is False
    assert checks["ReferenceData"].ok is True
    assert checks["Member"].ok is False
    assert "1 member(s) missing slug" in checks["Member"].issues
    assert checks["Bill"].issues == ["No bills stored"]
    assert checks["ConflictAudit"].issues == ["1 member(s) not yet audited"]
    assert report.summary == "Failed: Member, Bill, ConflictAudit"
