"""
Committee roster adapter (OpenParliament committees API).

Returns the names of a committee's current members; matching those names
to stored members is the committee linker's job.
"""

from typing import Any, Dict, List, Optional

import httpx

from .base_adapter import BaseAdapter
from ..config import settings
from ..models.adapter_models import AdapterResponse, AdapterError, CommitteeMemberData
from ..utils.dates import utcnow

_MEMBER_LIST_KEYS = ("members", "politicians", "current_members")


def _name_of(entry: Any) -> str:
    if isinstance(entry, str):
        return entry.strip()
    if not isinstance(entry, dict):
        return ""
    name = entry.get("name")
    politician = entry.get("politician")
    if not name and isinstance(politician, dict):
        name = politician.get("name")
    elif not name and isinstance(politician, str):
        name = politician
    if isinstance(name, dict):
        name = name.get("en") or next(iter(name.values()), "")
    return str(name or "").strip()


def parse_committee_members(payload: Any) -> List[CommitteeMemberData]:
    """Extract member names from whichever member list key the payload carries."""
    if not isinstance(payload, dict):
        return []
    entries: List[Any] = []
    for key in _MEMBER_LIST_KEYS:
        if isinstance(payload.get(key), list) and payload[key]:
            entries = payload[key]
            break

    members: List[CommitteeMemberData] = []
    for entry in entries:
        name = _name_of(entry)
        if not name:
            continue
        party = entry.get("party") if isinstance(entry, dict) else None
        members.append(CommitteeMemberData(name=name, party=party if isinstance(party, str) else None))
    return members


class CommitteeRosterAdapter(BaseAdapter[CommitteeMemberData]):
    """
    Example:
        adapter = CommitteeRosterAdapter()
        response = await adapter.fetch(committee_key="finance")
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        super().__init__(source_name="committee_roster", max_retries=1, client=client)
        self.base_url = settings.sources.committee_api_base.rstrip("/")

    async def fetch(self, committee_key: str, **kwargs: Any) -> AdapterResponse[CommitteeMemberData]:
        self._reset_metrics()
        start_time = utcnow()
        errors: List[AdapterError] = []
        url = f"{self.base_url}/{committee_key}/"

        try:
            response = await self._request_with_retries(
                self.client.get,
                url,
                params={"format": "json"},
                headers={"Accept": "application/json"},
            )
            members = parse_committee_members(response.json())
            self.logger.info(f"Committee {committee_key}: {len(members)} members listed")
            return self._build_success_response(data=members, errors=errors, start_time=start_time)

        except httpx.HTTPError as e:
            self.logger.warning(f"HTTP error fetching committee {committee_key}: {e}")
            return self._build_failure_response(error=e, start_time=start_time, retryable=True)

        except Exception as e:
            self.logger.error(f"Unexpected error parsing committee {committee_key}: {e}", exc_info=True)
            return self._build_failure_response(error=e, start_time=start_time, retryable=False)

    def normalize(self, raw_data: Dict[str, Any]) -> CommitteeMemberData:
        members = parse_committee_members({"members": [raw_data]})
        if not members:
            raise ValueError("committee entry has no name")
        return members[0]
