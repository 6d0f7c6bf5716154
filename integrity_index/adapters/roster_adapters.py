"""
Roster adapters for federal MPs and Ontario MPPs.

Federal members come from the House of Commons member exports (CSV first,
then JSON) with a bundled roster file as the last resort. Ontario members
come from the OpenNorth Represent API.

Responsibility: Fetch and normalize legislator rosters
"""

import csv
import io
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import httpx

from .base_adapter import BaseAdapter
from ..config import settings
from ..models.adapter_models import AdapterResponse, AdapterError, RosterMemberData
from ..utils.dates import utcnow
from ..utils.slug import slug_from_name
from ..utils.text import normalize_field

# 45th Parliament seat count; 338 means the 44th Parliament archive was served
FEDERAL_SEAT_COUNT = 343
PREVIOUS_PARLIAMENT_SEAT_COUNT = 338


def _pick(row: Dict[str, Any], *keys: str) -> str:
    """First non-empty value among ``keys``, matching keys case-insensitively."""
    lowered = {str(k).lower(): v for k, v in row.items()}
    for key in keys:
        value = lowered.get(key.lower())
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def build_roster_member(
    raw_id: str,
    raw_name: str,
    raw_riding: str,
    raw_party: str,
    photo_url: Optional[str] = None,
) -> Optional[RosterMemberData]:
    """
    Apply the roster defaults shared by every source.

    Missing riding becomes "Unknown"; a missing party, or a party equal to
    the member's name (a known export quirk), becomes "Independent". Rows
    without a name are dropped.
    """
    name = normalize_field(raw_name, "Unknown")
    if name == "Unknown":
        return None
    riding = normalize_field(raw_riding, "Unknown")
    party = raw_party.strip() if raw_party else ""
    party = normalize_field(party if party and party != name else None, "Independent")
    official_id = raw_id.strip() or None
    return RosterMemberData(
        id=official_id or slug_from_name(f"{name}-{riding}"),
        name=name,
        riding=riding,
        party=party,
        photo_url=(photo_url or "").strip() or None,
        official_id=official_id,
    )


def federal_photo_url(official_id: Optional[str]) -> Optional[str]:
    """Official portrait URL for a federal member, or None without an official id."""
    if not official_id:
        return None
    return settings.sources.federal_photo_url_template.format(official_id=official_id)


def _with_federal_photo(member: Optional[RosterMemberData]) -> Optional[RosterMemberData]:
    if member is not None and member.photo_url is None:
        member.photo_url = federal_photo_url(member.official_id)
    return member


def parse_federal_members_csv(text: str) -> List[RosterMemberData]:
    """
    Parse the House of Commons member search CSV.

    Header names are matched loosely; exports with separate first/last name
    columns are joined.
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    rows = [row for row in reader if any(cell.strip() for cell in row)]
    if len(rows) < 2:
        return []
    headers = [cell.strip().lower() for cell in rows[0]]

    def column(*needles: str) -> int:
        for needle in needles:
            for index, header in enumerate(headers):
                if needle in header:
                    return index
        return -1

    first_idx, last_idx = column("first name"), column("last name")
    name_idx = column("name", "person")
    riding_idx = column("constituency", "riding")
    party_idx = column("political affiliation", "party", "caucus")
    id_idx = column("officialid", "official id", "personid")

    if name_idx < 0:
        name_idx = 0
    if riding_idx < 0:
        riding_idx = 1

    def cell(parts: List[str], index: int) -> str:
        return parts[index].strip() if 0 <= index < len(parts) else ""

    members: List[RosterMemberData] = []
    for parts in rows[1:]:
        if first_idx >= 0 and last_idx >= 0:
            name = f"{cell(parts, first_idx)} {cell(parts, last_idx)}".strip()
        else:
            name = cell(parts, name_idx)
        member = _with_federal_photo(build_roster_member(
            cell(parts, id_idx), name, cell(parts, riding_idx), cell(parts, party_idx)
        ))
        if member:
            members.append(member)
    return members


def parse_federal_members_json(data: Any) -> List[RosterMemberData]:
    """
    Parse the House of Commons JSON export or the bundled roster file.

    Accepts a flat list or an object with ``Items``/``items``/``members``/
    ``Members``; field names are matched case-insensitively.
    """
    if data is None:
        return []
    if isinstance(data, list):
        raw: Iterable[Any] = data
    elif isinstance(data, dict):
        raw = next(
            (data[key] for key in ("Items", "items", "members", "Members") if isinstance(data.get(key), list)),
            [],
        )
    else:
        return []

    members: List[RosterMemberData] = []
    for row in raw:
        if not isinstance(row, dict):
            continue
        member = _with_federal_photo(build_roster_member(
            _pick(row, "OfficialId", "PersonId", "Id"),
            _pick(row, "PersonShortName", "Name"),
            _pick(row, "ConstituencyName", "Riding"),
            _pick(row, "CaucusShortName", "Party"),
            _pick(row, "PhotoUrl", "photo_url") or None,
        ))
        if member:
            members.append(member)
    return members


def parse_ontario_members_json(data: Any) -> List[RosterMemberData]:
    """Parse an OpenNorth Represent ``objects`` payload."""
    objects = data.get("objects") if isinstance(data, dict) else None
    if not isinstance(objects, list):
        return []

    members: List[RosterMemberData] = []
    for obj in objects:
        if not isinstance(obj, dict):
            continue
        name = normalize_field(obj.get("name"), "Unknown")
        district = normalize_field(obj.get("district_name") or obj.get("district"), "Unknown")
        if name == "Unknown":
            continue
        photo = obj.get("photo_url") or obj.get("image")
        members.append(RosterMemberData(
            id=slug_from_name(f"{name}-{district}"),
            name=name,
            riding=district,
            party=normalize_field(obj.get("party_name") or obj.get("party"), "Independent"),
            photo_url=photo.strip() if isinstance(photo, str) and photo.strip() else None,
        ))
    return members


class FederalRosterAdapter(BaseAdapter[RosterMemberData]):
    """
    Adapter for the federal House of Commons roster.

    Tries the CSV export, then the JSON export, then the bundled roster
    file. The first source yielding at least one member wins.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        fallback_path: Optional[Path] = None,
    ):
        super().__init__(source_name="ourcommons_roster", max_retries=2, client=client)
        self.csv_url = settings.sources.ourcommons_csv_url
        self.json_url = settings.sources.ourcommons_json_url
        self.fallback_path = Path(fallback_path or settings.sync.fallback_roster_path)

    async def fetch(self, **kwargs: Any) -> AdapterResponse[RosterMemberData]:
        self._reset_metrics()
        start_time = utcnow()
        errors: List[AdapterError] = []

        try:
            response = await self._request_with_retries(
                self.client.get, self.csv_url, headers={"Accept": "text/csv"}
            )
            members = parse_federal_members_csv(response.text)
            if members:
                return self._finish(members, errors, start_time, "CSV export")
        except (httpx.HTTPError, csv.Error) as e:
            self.logger.warning(f"CSV export failed: {e}")
            self._record_error(errors, e, url=self.csv_url)

        try:
            response = await self._request_with_retries(
                self.client.get, self.json_url, headers={"Accept": "application/json"}
            )
            members = parse_federal_members_json(response.json())
            if members:
                return self._finish(members, errors, start_time, "JSON export")
        except (httpx.HTTPError, ValueError) as e:
            self.logger.warning(f"JSON export failed: {e}")
            self._record_error(errors, e, url=self.json_url)

        try:
            members = parse_federal_members_json(json.loads(self.fallback_path.read_text(encoding="utf-8")))
            if members:
                self.logger.warning(f"Using fallback roster file {self.fallback_path}")
                return self._finish(members, errors, start_time, "fallback file")
            raise ValueError(f"fallback roster {self.fallback_path} has no members")
        except (OSError, ValueError) as e:
            self.logger.error(f"Fallback roster read failed: {e}")
            return self._build_failure_response(error=e, start_time=start_time, retryable=False)

    def _finish(
        self,
        members: List[RosterMemberData],
        errors: List[AdapterError],
        start_time,
        source: str,
    ) -> AdapterResponse[RosterMemberData]:
        if len(members) == PREVIOUS_PARLIAMENT_SEAT_COUNT:
            self.logger.warning(
                f"{source}: got {len(members)} members, likely the previous Parliament's "
                f"archive ({FEDERAL_SEAT_COUNT} seats expected)"
            )
        else:
            self.logger.info(f"{source}: {len(members)} members")
        # Earlier source failures are informational once a later one succeeds
        return self._build_success_response(data=members, errors=[], start_time=start_time)

    def normalize(self, raw_data: Dict[str, Any]) -> RosterMemberData:
        members = parse_federal_members_json([raw_data])
        if not members:
            raise ValueError("roster row has no name")
        return members[0]


class OntarioRosterAdapter(BaseAdapter[RosterMemberData]):
    """Adapter for Ontario MPPs via the OpenNorth Represent API."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        super().__init__(source_name="opennorth_ontario", max_retries=2, client=client)
        self.url = settings.sources.ontario_roster_url

    async def fetch(self, **kwargs: Any) -> AdapterResponse[RosterMemberData]:
        self._reset_metrics()
        start_time = utcnow()

        try:
            response = await self._request_with_retries(
                self.client.get, self.url, headers={"Accept": "application/json"}
            )
            members = parse_ontario_members_json(response.json())
            self.logger.info(f"OpenNorth: {len(members)} Ontario members")
            return self._build_success_response(data=members, errors=[], start_time=start_time)

        except httpx.HTTPError as e:
            self.logger.error(f"HTTP error fetching Ontario roster: {e}")
            return self._build_failure_response(error=e, start_time=start_time, retryable=True)

        except Exception as e:
            self.logger.error(f"Unexpected error parsing Ontario roster: {e}", exc_info=True)
            return self._build_failure_response(error=e, start_time=start_time, retryable=False)

    def normalize(self, raw_data: Dict[str, Any]) -> RosterMemberData:
        members = parse_ontario_members_json({"objects": [raw_data]})
        if not members:
            raise ValueError("OpenNorth record has no name")
        return members[0]
