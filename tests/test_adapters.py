import json
from datetime import datetime

import httpx

from integrity_index.adapters import (
    CIECDisclosureAdapter,
    CommitteeRosterAdapter,
    FederalRosterAdapter,
    FinnhubQuoteAdapter,
    LEGISinfoBillsAdapter,
    OntarioRosterAdapter,
    is_key_vote_bill,
)
from integrity_index.adapters.ciec_adapter import parse_declaration_html
from integrity_index.adapters.committee_members_adapter import parse_committee_members
from integrity_index.adapters.legisinfo_adapter import parse_overview_xml
from integrity_index.adapters.roster_adapters import (
    federal_photo_url,
    parse_federal_members_csv,
    parse_federal_members_json,
    parse_ontario_members_json,
)
from integrity_index.models.adapter_models import AdapterStatus

FEDERAL_CSV = (
    "\ufeff\"Honorific Title\",\"First Name\",\"Last Name\",\"Constituency\",\"Province / Territory\","
    "\"Political Affiliation\",\"Start Date\",\"End Date\"\n"
    "\"\",\"Jasraj Singh\",\"Hallan\",\"Calgary East\",\"Alberta\",\"Conservative\",\"2021-09-20\",\"\"\n"
    "\"Hon.\",\"Peter\",\"Fonseca\",\"Mississauga East\",\"Ontario\",\"\",\"2021-09-20\",\"\"\n"
)

DECLARATION_HTML = """
<html><body>
<h2>Declaration of Material Change</h2>
<table>
  <tr><th>Asset Name</th><th>Nature of Interest</th><th>Date</th></tr>
  <tr><td>SU</td><td>Shares</td><td>2024-03-15</td></tr>
</table>
<h2>Summary Statement</h2>
<table>
  <tr><th>Asset Name</th><th>Nature of Interest</th></tr>
  <tr><td>Royal Bank of Canada</td><td>(not available)</td></tr>
  <tr><td></td><td></td></tr>
</table>
</body></html>
"""

OVERVIEW_XML = """<?xml version="1.0" encoding="utf-8"?>
<Bills>
  <Bill><Number>C-11</Number><Status>Royal Assent</Status><Title>Online Streaming Act</Title></Bill>
  <Bill><Number>C-69</Number><Status></Status><Title>Budget Implementation Act, 2024, No. 1</Title></Bill>
  <Bill><Number>C-11</Number><Status>Duplicate</Status><Title>Ignored</Title></Bill>
</Bills>
"""


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# Parsers ---------------------------------------------------------------------

def test_parse_federal_csv_joins_names_and_defaults_party() -> None:
    members = parse_federal_members_csv(FEDERAL_CSV)

    assert [m.name for m in members] == ["Jasraj Singh Hallan", "Peter Fonseca"]
    assert members[0].riding == "Calgary East"
    assert members[0].party == "Conservative"
    assert members[0].id == "jasraj-singh-hallan-calgary-east"
    assert members[1].party == "Independent"


def test_parse_federal_json_accepts_several_shapes() -> None:
    row = {"personshortname": "Dan Albas", "ConstituencyName": "Central Okanagan", "CaucusShortName": "Dan Albas"}

    for payload in ({"Items": [row]}, {"members": [row]}, [row]):
        members = parse_federal_members_json(payload)
        assert len(members) == 1
        assert members[0].name == "Dan Albas"
        # Party equal to the member's name is an export quirk
        assert members[0].party == "Independent"

    assert parse_federal_members_json({"unexpected": True}) == []
    assert parse_federal_members_json(None) == []


def test_parse_federal_json_keeps_official_id() -> None:
    members = parse_federal_members_json([
        {"OfficialId": "89156", "PersonShortName": "Jasraj Singh Hallan", "ConstituencyName": "Calgary East",
         "CaucusShortName": "Conservative"},
        {"PersonShortName": "", "ConstituencyName": "Nowhere"},
    ])

    assert len(members) == 1
    assert members[0].id == "89156"
    assert members[0].official_id == "89156"


def test_federal_photo_derived_from_official_id() -> None:
    members = parse_federal_members_json([
        {"OfficialId": "89156", "PersonShortName": "Jasraj Singh Hallan", "ConstituencyName": "Calgary East"},
        {"OfficialId": "2", "PersonShortName": "Peter Fonseca", "ConstituencyName": "Mississauga East",
         "PhotoUrl": "https://example.org/fonseca.jpg"},
        {"PersonShortName": "Dan Albas", "ConstituencyName": "Central Okanagan"},
    ])

    assert members[0].photo_url == federal_photo_url("89156")
    assert members[0].photo_url.endswith("/89156.jpg")
    assert members[1].photo_url == "https://example.org/fonseca.jpg"
    assert members[2].photo_url is None
    assert federal_photo_url(None) is None


def test_parse_ontario_members() -> None:
    members = parse_ontario_members_json({"objects": [
        {"name": "Doug Ford", "district_name": "Etobicoke North", "party_name": "Progressive Conservative",
         "photo_url": "https://example.org/ford.jpg"},
        {"name": "", "district_name": "Somewhere"},
    ]})

    assert len(members) == 1
    assert members[0].id == "doug-ford-etobicoke-north"
    assert members[0].party == "Progressive Conservative"
    assert members[0].photo_url == "https://example.org/ford.jpg"


def test_parse_declaration_html_detects_material_change_tables() -> None:
    rows = parse_declaration_html(DECLARATION_HTML)

    assert rows == [
        {"asset_name": "SU", "nature_of_interest": "Shares", "is_material_change": True, "event_date": "2024-03-15"},
        {"asset_name": "Royal Bank of Canada", "nature_of_interest": "(not available)",
         "is_material_change": False, "event_date": None},
    ]


def test_parse_declaration_html_falls_back_to_two_cell_rows() -> None:
    rows = parse_declaration_html("<table><tr><td>Cameco Corp</td><td>Shares</td></tr></table>")

    assert rows == [
        {"asset_name": "Cameco Corp", "nature_of_interest": "Shares", "is_material_change": False, "event_date": None},
    ]


def test_parse_overview_xml_dedupes_by_number() -> None:
    bills = parse_overview_xml(OVERVIEW_XML)

    assert [(b.number, b.status, b.title) for b in bills] == [
        ("C-11", "Royal Assent", "Online Streaming Act"),
        ("C-69", "Unknown", "Budget Implementation Act, 2024, No. 1"),
    ]


def test_parse_overview_xml_scans_text_when_no_bill_elements() -> None:
    bills = parse_overview_xml("<Overview><Entry>Bill C-5</Entry><Entry>Bill S-12</Entry></Overview>")

    assert [(b.number, b.status) for b in bills] == [("C-5", "Unknown"), ("S-12", "Unknown")]


def test_key_vote_bills() -> None:
    assert is_key_vote_bill("C-27")
    assert is_key_vote_bill(" C-11 ")
    assert not is_key_vote_bill("C-69")


def test_parse_committee_members_handles_nested_names() -> None:
    members = parse_committee_members({"members": [
        {"politician": {"name": "Peter Fonseca"}, "party": "Liberal"},
        {"name": {"en": "Dan Albas", "fr": "Dan Albas"}},
        "Yvan Baker",
        {},
    ]})

    assert [(m.name, m.party) for m in members] == [
        ("Peter Fonseca", "Liberal"),
        ("Dan Albas", None),
        ("Yvan Baker", None),
    ]


# Adapters over a mock transport ----------------------------------------------

async def test_federal_roster_prefers_csv() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/csv"):
            return httpx.Response(200, text=FEDERAL_CSV)
        return httpx.Response(404)

    async with _client(handler) as client:
        response = await FederalRosterAdapter(client=client).fetch()

    assert response.status == AdapterStatus.SUCCESS
    assert len(response.records) == 2


async def test_federal_roster_falls_back_to_json_then_file(tmp_path) -> None:
    def json_handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/json"):
            return httpx.Response(200, json={"Items": [{"PersonShortName": "Dan Albas", "ConstituencyName": "X"}]})
        return httpx.Response(404)

    async with _client(json_handler) as client:
        response = await FederalRosterAdapter(client=client).fetch()
    assert [m.name for m in response.records] == ["Dan Albas"]

    fallback = tmp_path / "roster.json"
    fallback.write_text(json.dumps({"Items": [{"PersonShortName": "Yvan Baker", "ConstituencyName": "Y"}]}))

    async with _client(lambda request: httpx.Response(404)) as client:
        response = await FederalRosterAdapter(client=client, fallback_path=fallback).fetch()
    assert response.ok
    assert [m.name for m in response.records] == ["Yvan Baker"]


async def test_federal_roster_fails_when_every_source_fails(tmp_path) -> None:
    async with _client(lambda request: httpx.Response(404)) as client:
        response = await FederalRosterAdapter(client=client, fallback_path=tmp_path / "missing.json").fetch()

    assert response.ok is False
    assert response.records == []


async def test_bundled_fallback_roster_is_readable() -> None:
    async with _client(lambda request: httpx.Response(404)) as client:
        response = await FederalRosterAdapter(client=client).fetch()

    assert response.ok
    assert "Jasraj Singh Hallan" in [m.name for m in response.records]


async def test_ontario_roster_adapter() -> None:
    payload = {"objects": [{"name": "Doug Ford", "district_name": "Etobicoke North", "party_name": "PC"}]}

    async with _client(lambda request: httpx.Response(200, json=payload)) as client:
        response = await OntarioRosterAdapter(client=client).fetch()

    assert [m.id for m in response.records] == ["doug-ford-etobicoke-north"]


async def test_ciec_adapter_requests_declaration_by_id() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.params.get("DeclarationID"))
        return httpx.Response(200, text=DECLARATION_HTML)

    async with _client(handler) as client:
        response = await CIECDisclosureAdapter(client=client).fetch(declaration_id="89156")

    assert seen == ["89156"]
    rows = response.records
    assert rows[0].asset_name == "SU"
    assert rows[0].is_material_change is True
    assert rows[0].event_date == datetime(2024, 3, 15)
    assert rows[1].event_date is None


async def test_ciec_adapter_unavailable_source_is_a_failure_response() -> None:
    async with _client(lambda request: httpx.Response(404)) as client:
        response = await CIECDisclosureAdapter(client=client).fetch(declaration_id="1")

    assert response.status == AdapterStatus.SOURCE_UNAVAILABLE
    assert response.records == []
    assert response.errors[0].error_type == "HTTPStatusError"


async def test_legisinfo_adapter() -> None:
    async with _client(lambda request: httpx.Response(200, text=OVERVIEW_XML)) as client:
        response = await LEGISinfoBillsAdapter(client=client).fetch()

    assert [b.number for b in response.records] == ["C-11", "C-69"]
    assert response.cache_until is not None


async def test_finnhub_without_key_returns_none_without_requests() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"c": 10})

    async with _client(handler) as client:
        adapter = FinnhubQuoteAdapter(api_key="", client=client)
        assert await adapter.get_quote("SU") is None

    assert calls == []


async def test_finnhub_quote_is_cached() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.params.get("symbol"))
        return httpx.Response(200, json={"c": 35.2, "d": 0.4, "pc": 34.8})

    async with _client(handler) as client:
        adapter = FinnhubQuoteAdapter(api_key="test-key", client=client)
        first = await adapter.get_quote("su")
        second = await adapter.get_quote("SU")

    assert calls == ["SU"]
    assert first == second
    assert first.price == 35.2
    assert first.previous_close == 34.8
    assert adapter.cached_quote("su") == first


async def test_finnhub_zero_price_means_no_quote() -> None:
    async with _client(lambda request: httpx.Response(200, json={"c": 0, "d": 0, "pc": 0})) as client:
        adapter = FinnhubQuoteAdapter(api_key="test-key", client=client)
        assert await adapter.get_quote("ZZZ") is None


async def test_committee_roster_adapter() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.path, request.url.params.get("format")))
        return httpx.Response(200, json={"members": [{"name": "Peter Fonseca"}]})

    async with _client(handler) as client:
        response = await CommitteeRosterAdapter(client=client).fetch(committee_key="finance")

    assert seen == [("/committees/finance/", "json")]
    assert [m.name for m in response.records] == ["Peter Fonseca"]


async def test_committee_roster_adapter_failure() -> None:
    async with _client(lambda request: httpx.Response(404)) as client:
        response = await CommitteeRosterAdapter(client=client).fetch(committee_key="finance")

    assert response.ok is False
