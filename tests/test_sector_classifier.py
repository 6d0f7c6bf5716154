from integrity_index.db.repositories import SectorRepository
from integrity_index.services.sector_classifier import SectorClassifier, STATIC_KEYWORD_TABLE


def test_resolves_company_name_from_description() -> None:
    classifier = SectorClassifier()

    assert classifier.resolve_sector("Suncor Energy Inc. common shares") == "Oil/Gas/Mining"
    assert classifier.resolve_sector("Enbridge Inc.") == "Oil/Gas/Mining"
    assert classifier.resolve_sector("Shopify Inc.") == "Banking/Fintech"
    assert classifier.resolve_sector("Residential rental unit, Ottawa") == "Real Estate/Development"


def test_symbol_match_takes_precedence_over_description() -> None:
    classifier = SectorClassifier()

    assert classifier.resolve_sector("Suncor Energy Inc.", symbol="TD") == "Banking/Fintech"
    assert classifier.resolve_sector("Toronto-Dominion Bank", symbol="su") == "Oil/Gas/Mining"


def test_unknown_symbol_falls_back_to_description() -> None:
    classifier = SectorClassifier()

    assert classifier.resolve_sector("Cenovus Energy", symbol="ZZZZ") == "Oil/Gas/Mining"


def test_no_match_returns_none() -> None:
    classifier = SectorClassifier()

    assert classifier.resolve_sector("Guaranteed investment certificate") is None
    assert classifier.resolve_sector("") is None
    assert classifier.resolve_sector(None) is None


def test_short_keywords_match_inside_unrelated_words() -> None:
    # "su" is a ticker keyword, so any description containing it is
    # classified as Oil/Gas/Mining
    classifier = SectorClassifier()

    assert classifier.resolve_sector("Sun Life Financial") == "Oil/Gas/Mining"


def test_resolution_is_deterministic_across_instances() -> None:
    first, second = SectorClassifier(), SectorClassifier()

    descriptions = ["Suncor", "Canadian National Railway", "BMO mutual fund", "Nothing relevant"]
    assert [first.resolve_sector(d) for d in descriptions] == [second.resolve_sector(d) for d in descriptions]
    assert [first.resolve_sector(d) for d in descriptions] == [first.resolve_sector(d) for d in descriptions]


def test_first_keyword_occurrence_keeps_its_sector() -> None:
    classifier = SectorClassifier(extra_mappings=[("su", "Technology"), ("telus", "Telecommunications")])

    assert classifier.resolve_sector("", symbol="SU") == "Oil/Gas/Mining"
    assert classifier.resolve_sector("Telus Corp") == "Telecommunications"
    assert classifier.keyword_table[: len(STATIC_KEYWORD_TABLE)] == STATIC_KEYWORD_TABLE


async def test_refresh_loads_persisted_mappings_and_invalidate_drops_them(database) -> None:
    async with database.session() as session:
        await SectorRepository(session).add_asset_mapping("Telus", "Telecommunications")

    classifier = SectorClassifier()
    assert classifier.resolve_sector("Telus Corp") is None

    async with database.session() as session:
        loaded = await classifier.refresh(session)

    assert loaded == 1
    assert classifier.resolve_sector("Telus Corp") == "Telecommunications"

    classifier.invalidate()
    assert classifier.resolve_sector("Telus Corp") is None
