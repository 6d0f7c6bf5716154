"""
Ethics registry (CIEC) scraper adapter.

Scrapes a member's public declaration page and extracts the asset
summary rows. Material-change rows carry an event date; those are the
ones that can become trade events downstream.

Responsibility: Scrape and normalize declaration rows from CIEC HTML pages
"""

from typing import Any, Dict, List, Optional

import httpx
from bs4 import BeautifulSoup
from bs4.element import Tag

from .base_adapter import BaseAdapter
from ..config import settings
from ..models.adapter_models import AdapterResponse, AdapterError, DisclosureRowData
from ..utils.dates import parse_date, utcnow

MATERIAL_CHANGE_MARKER = "material change"


def _cell_text(cell: Tag) -> str:
    return " ".join(cell.get_text(" ", strip=True).split())


def _find_column(headers: List[str], *needles: str) -> int:
    for needle in needles:
        for index, header in enumerate(headers):
            if needle in header:
                return index
    return -1


def _table_context(table: Tag) -> str:
    """Caption plus the nearest preceding heading, lowercased."""
    parts: List[str] = []
    caption = table.find("caption")
    if caption:
        parts.append(caption.get_text(" ", strip=True))
    heading = table.find_previous(["h1", "h2", "h3", "h4", "h5"])
    if heading:
        parts.append(heading.get_text(" ", strip=True))
    return " ".join(parts).lower()


def parse_declaration_html(html: str) -> List[Dict[str, Any]]:
    """
    Extract raw asset rows from a declaration page.

    Tables are recognised by their header row: an "asset ... name" column
    and a "nature"/"interest" column. When no table qualifies, any table
    row with at least two cells is read as (asset, nature).
    """
    soup = BeautifulSoup(html, "html.parser")
    rows: List[Dict[str, Any]] = []

    for table in soup.find_all("table"):
        header_row = table.find("tr")
        if header_row is None:
            continue
        headers = [_cell_text(cell).lower() for cell in header_row.find_all(["th", "td"])]

        asset_idx = next(
            (i for i, h in enumerate(headers) if "asset" in h and "name" in h), -1
        )
        nature_idx = _find_column(headers, "nature", "interest")
        if asset_idx == -1 or nature_idx == -1:
            continue
        date_idx = _find_column(headers, "date")
        change_idx = _find_column(headers, "change", "type of disclosure")
        table_is_material = MATERIAL_CHANGE_MARKER in _table_context(table)

        for tr in table.find_all("tr")[1:]:
            cells = tr.find_all("td")
            if len(cells) < max(asset_idx, nature_idx) + 1:
                continue
            asset = _cell_text(cells[asset_idx])
            nature = _cell_text(cells[nature_idx])
            if not asset and not nature:
                continue
            change_text = _cell_text(cells[change_idx]).lower() if 0 <= change_idx < len(cells) else ""
            date_text = _cell_text(cells[date_idx]) if 0 <= date_idx < len(cells) else ""
            rows.append({
                "asset_name": asset,
                "nature_of_interest": nature,
                "is_material_change": table_is_material or MATERIAL_CHANGE_MARKER in change_text,
                "event_date": date_text or None,
            })

    if not rows:
        for tr in soup.find_all("tr"):
            cells = tr.find_all("td")
            if len(cells) < 2:
                continue
            first, second = _cell_text(cells[0]), _cell_text(cells[1])
            if first or second:
                rows.append({
                    "asset_name": first,
                    "nature_of_interest": second,
                    "is_material_change": False,
                    "event_date": None,
                })

    return rows


class CIECDisclosureAdapter(BaseAdapter[DisclosureRowData]):
    """
    Adapter for a member's public declaration in the ethics registry.

    The registry has no API; pages are addressed by declaration id.

    Example:
        adapter = CIECDisclosureAdapter()
        response = await adapter.fetch(declaration_id="89156")
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        super().__init__(
            source_name="ciec",
            rate_limit_per_second=1.0,
            max_retries=2,
            client=client,
        )
        self.base_url = settings.sources.ciec_base_url

    async def fetch(self, declaration_id: str, **kwargs: Any) -> AdapterResponse[DisclosureRowData]:
        """
        Fetch declaration rows for one member.

        Args:
            declaration_id: Registry declaration id (the member's official id)
        """
        self._reset_metrics()
        start_time = utcnow()
        errors: List[AdapterError] = []

        self.logger.info(f"Fetching declaration {declaration_id}")

        try:
            response = await self._request_with_retries(
                self.client.get,
                self.base_url,
                params={"DeclarationID": declaration_id},
                headers={"Accept": "text/html", "Accept-Language": "en-CA,en;q=0.9"},
            )

            data: List[DisclosureRowData] = []
            for raw in parse_declaration_html(response.text):
                try:
                    data.append(self.normalize(raw))
                except ValueError as e:
                    self._record_error(errors, e, declaration_id=declaration_id)

            self.logger.info(f"Declaration {declaration_id}: {len(data)} rows")
            return self._build_success_response(data=data, errors=errors, start_time=start_time)

        except httpx.HTTPError as e:
            self.logger.error(f"HTTP error fetching declaration {declaration_id}: {e}")
            return self._build_failure_response(error=e, start_time=start_time, retryable=True)

        except Exception as e:
            self.logger.error(
                f"Unexpected error scraping declaration {declaration_id}: {e}",
                exc_info=True
            )
            return self._build_failure_response(error=e, start_time=start_time, retryable=False)

    def normalize(self, raw_data: Dict[str, Any]) -> DisclosureRowData:
        asset = (raw_data.get("asset_name") or "").strip()
        nature = (raw_data.get("nature_of_interest") or "").strip()
        if not asset and not nature:
            raise ValueError("declaration row has neither asset nor nature of interest")
        return DisclosureRowData(
            asset_name=asset,
            nature_of_interest=nature or None,
            is_material_change=bool(raw_data.get("is_material_change")),
            event_date=parse_date(raw_data.get("event_date")),
        )
