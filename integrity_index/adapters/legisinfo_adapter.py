"""
LEGISinfo adapter for the tracked bill list.

Reads the LEGISinfo overview XML feed and extracts bill number, status
and title for every bill in it. Bills of high corporate interest are
marked as key votes.

Responsibility: Fetch and normalize the LEGISinfo bill overview
"""

import re
from typing import Any, FrozenSet, List, Optional

import httpx
from bs4 import BeautifulSoup
from bs4.element import Tag

from .base_adapter import BaseAdapter
from ..config import settings
from ..models.adapter_models import AdapterResponse, AdapterError, BillData
from ..utils.dates import utcnow
from ..utils.dedupe import dedupe_by_key
from ..utils.text import normalize_field

KEY_VOTE_BILL_NUMBERS: FrozenSet[str] = frozenset({
    "C-11",
    "C-18",
    "C-27",
    "C-21",
    "S-5",
    "Bill 23",
    "Bill 97",
    "Bill 124",
})

# html.parser lowercases tag names, so the feed's <Bill>/<Number> arrive as bill/number
_BILL_TAGS = ["bill", "billversion", "item"]
_BILL_NUMBER_FALLBACK = re.compile(r"(?:BillNumber|Number|bill)[^>]*>?\s*([CS]-\d+)", re.IGNORECASE)


def is_key_vote_bill(number: str) -> bool:
    return number.strip() in KEY_VOTE_BILL_NUMBERS


def _child_text(element: Tag, *names: str) -> str:
    for name in names:
        child = element.find(name)
        if child is not None:
            text = child.get_text(" ", strip=True)
            if text:
                return text
    return ""


def parse_overview_xml(xml: str) -> List[BillData]:
    """
    Parse the overview feed into bills, first occurrence of a number wins.

    Falls back to scanning the raw text for ``C-nn``/``S-nn`` numbers when
    the feed has no recognisable bill elements.
    """
    soup = BeautifulSoup(xml, "html.parser")
    bills: List[BillData] = []

    for element in soup.find_all(_BILL_TAGS):
        number = (
            _child_text(element, "number", "billnumber")
            or (element.get("number") or "").strip()
        )
        if not number:
            continue
        status = _child_text(element, "status", "currentstatus") or (element.get("status") or "")
        title = _child_text(element, "title", "shorttitle") or None
        bills.append(BillData(
            number=number.strip(),
            status=normalize_field(status, "Unknown"),
            title=title,
        ))

    if not bills:
        for match in _BILL_NUMBER_FALLBACK.finditer(xml):
            bills.append(BillData(number=match.group(1).upper(), status="Unknown"))

    unique, _ = dedupe_by_key(bills, lambda bill: bill.number)
    return unique


class LEGISinfoBillsAdapter(BaseAdapter[BillData]):
    """
    Adapter for the LEGISinfo overview XML.

    Example:
        adapter = LEGISinfoBillsAdapter()
        response = await adapter.fetch()
        for bill in response.records:
            print(bill.number, bill.status)
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        super().__init__(
            source_name="legisinfo",
            rate_limit_per_second=0.5,
            max_retries=2,
            client=client,
        )
        self.url = settings.sources.legisinfo_overview_url

    async def fetch(self, **kwargs: Any) -> AdapterResponse[BillData]:
        self._reset_metrics()
        start_time = utcnow()
        errors: List[AdapterError] = []

        self.logger.info("Fetching LEGISinfo overview")

        try:
            response = await self._request_with_retries(
                self.client.get, self.url, headers={"Accept": "application/xml, text/xml"}
            )
            bills = parse_overview_xml(response.text)
            self.logger.info(f"LEGISinfo overview: {len(bills)} bills")
            return self._build_success_response(
                data=bills,
                errors=errors,
                start_time=start_time,
                cache_ttl_seconds=3600
            )

        except httpx.HTTPError as e:
            self.logger.error(f"HTTP error fetching LEGISinfo overview: {e}")
            return self._build_failure_response(error=e, start_time=start_time, retryable=True)

        except Exception as e:
            self.logger.error(f"Unexpected error parsing LEGISinfo overview: {e}", exc_info=True)
            return self._build_failure_response(error=e, start_time=start_time, retryable=False)

    def normalize(self, raw_data: Tag) -> BillData:
        bills = parse_overview_xml(str(raw_data))
        if not bills:
            raise ValueError("element has no bill number")
        return bills[0]
