"""
ENTSO-E Transparency Platform client - the fallback upstream.

Fetches day-ahead prices (document type A44) for a bidding zone and
flattens the publication market document into price points.
"""

import xml.etree.ElementTree as ET
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

import httpx

from eprice.exceptions import EntsoeApiError, NoDataFoundError, ParsingError
from eprice.logging_config import get_logger
from eprice.models.price import PricePoint
from eprice.utils.time_utils import to_utc

logger = get_logger(__name__)

DAY_AHEAD_DOCUMENT = "A44"
DEFAULT_RESOLUTION_MINUTES = 60
NO_DATA_MARKER = "no matching data found"

# Country code -> EIC code of the bidding zone used for the fallback.
# Countries split into several zones map to one representative zone.
BIDDING_ZONES = {
    "EE": "10Y1001A1001A39I",
    "LV": "10YLV-1001A00074",
    "LT": "10YLT-1001A0008Q",
    "FI": "10YFI-1--------U",
    "SE": "10Y1001A1001A46L",  # SE3
    "NO": "10YNO-1--------2",  # NO1
    "DK": "10YDK-1--------W",  # DK1
    "DE": "10Y1001A1001A82H",  # DE-LU
    "LU": "10Y1001A1001A82H",
    "PL": "10YPL-AREA-----S",
    "FR": "10YFR-RTE------C",
    "NL": "10YNL----------L",
    "BE": "10YBE----------2",
    "AT": "10YAT-APG------L",
    "CH": "10YCH-SWISSGRIDZ",
    "CZ": "10YCZ-CEPS-----N",
    "SK": "10YSK-SEPS-----K",
    "HU": "10YHU-MAVIR----U",
    "SI": "10YSI-ELES-----O",
    "HR": "10YHR-HEP------M",
    "RO": "10YRO-TEL------P",
    "BG": "10YCA-BULGARIA-R",
    "GR": "10YGR-HTSO-----Y",
    "ES": "10YES-REE------0",
    "PT": "10YPT-REN------W",
    "IT": "10Y1001A1001A73I",  # IT-North
}


def to_bidding_zone(country_code: str) -> Optional[str]:
    """EIC bidding zone for a country, or None when there is no mapping."""
    return BIDDING_ZONES.get(country_code.upper())


def format_entsoe_instant(value: datetime) -> str:
    """ENTSO-E period format: yyyyMMddHHmm in UTC."""
    return to_utc(value).strftime("%Y%m%d%H%M")


def _local(tag: str) -> str:
    """Strip the XML namespace from a tag."""
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> List[ET.Element]:
    return [child for child in element if _local(child.tag) == name]


def _child_text(element: ET.Element, name: str) -> Optional[str]:
    for child in element:
        if _local(child.tag) == name:
            return (child.text or "").strip()
    return None


def _resolution_minutes(resolution: Optional[str]) -> int:
    """'PT60M' -> 60, 'PT15M' -> 15; anything unrecognised -> 60."""
    if not resolution:
        return DEFAULT_RESOLUTION_MINUTES
    value = resolution.strip()
    if value.startswith("PT") and value.endswith("M"):
        try:
            return int(value[2:-1])
        except ValueError:
            pass
    return DEFAULT_RESOLUTION_MINUTES


def _parse_instant(value: str) -> datetime:
    # timeInterval starts look like '2023-01-01T00:00Z'
    return to_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def parse_market_document(xml_text: str) -> List[PricePoint]:
    """
    Flatten a Publication_MarketDocument into price points.

    Each Point's position is 1-based relative to its Period start. Positions
    may skip; skipped intervals are left out rather than filled.

    Raises:
        ParsingError: body is not XML or a required field is missing or malformed.
    """
    try:
        return _flatten(ET.fromstring(xml_text))
    except (ET.ParseError, TypeError, ValueError, ArithmeticError) as e:
        raise ParsingError(f"Invalid ENTSO-E market document: {e}") from e


def _flatten(root: ET.Element) -> List[PricePoint]:
    points: List[PricePoint] = []

    for time_series in _children(root, "TimeSeries"):
        for period in _children(time_series, "Period"):
            interval = _children(period, "timeInterval")
            start_text = _child_text(interval[0], "start") if interval else None
            if not start_text:
                raise ValueError("Period without timeInterval start")

            period_start = _parse_instant(start_text)
            step = timedelta(minutes=_resolution_minutes(_child_text(period, "resolution")))

            for point in _children(period, "Point"):
                position = int(_child_text(point, "position"))
                amount = Decimal(_child_text(point, "price.amount"))
                points.append(PricePoint(
                    start_time=period_start + (position - 1) * step,
                    price_per_kwh=amount / Decimal("1000"),
                ))

    return points


class EntsoeClient:
    """Fetches day-ahead prices from the ENTSO-E REST API."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, api_key: str):
        self.client = client
        self.base_url = base_url
        self.api_key = api_key

    async def fetch_prices(self, bidding_zone: str, start: datetime, end: datetime) -> List[PricePoint]:
        """
        Fetch and parse day-ahead prices for a bidding zone.

        Raises:
            EntsoeApiError: missing API key, error status or an error Reason payload.
            NoDataFoundError: the API answers "No matching data found".
            httpx.HTTPError: transport failures and timeouts.
            ParsingError: malformed XML or market document.
        """
        if not self.api_key.strip():
            raise EntsoeApiError(500, "ENTSOE_API_KEY is not set.")

        period_start = format_entsoe_instant(start)
        period_end = format_entsoe_instant(end)
        params = {
            "securityToken": self.api_key,
            "documentType": DAY_AHEAD_DOCUMENT,
            "in_Domain": bidding_zone,
            "out_Domain": bidding_zone,
            "periodStart": period_start,
            "periodEnd": period_end,
        }

        response = await self.client.get(self.base_url, params=params)
        xml_text = response.text

        if not response.is_success or "<Reason>" in xml_text:
            if NO_DATA_MARKER in xml_text.lower():
                raise NoDataFoundError(
                    f"No matching data found for period {period_start} - {period_end}"
                )
            raise EntsoeApiError(
                response.status_code,
                f"Failed to fetch data from ENTSO-E: {xml_text}",
            )

        points = parse_market_document(xml_text)
        logger.debug("Fetched ENTSO-E prices", bidding_zone=bidding_zone, count=len(points))
        return points
