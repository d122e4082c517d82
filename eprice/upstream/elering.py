"""
Elering NPS price client - the primary upstream.
Returns hourly Nord Pool prices for the Baltic and Finnish areas as JSON.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List

import httpx
from pydantic import BaseModel, Field

from eprice.exceptions import EleringApiError, NoDataFoundError
from eprice.logging_config import get_logger
from eprice.models.price import PricePoint
from eprice.utils.time_utils import to_utc

logger = get_logger(__name__)

MWH_TO_KWH = Decimal("1000")


class EleringPriceData(BaseModel):
    timestamp: int = Field(description="Unix timestamp (seconds) of the interval start")
    price: Decimal = Field(description="Price in EUR/MWh")


class EleringPriceResponse(BaseModel):
    success: bool
    data: Dict[str, List[EleringPriceData]] = Field(default_factory=dict)

    def to_price_points(self, country_code: str) -> List[PricePoint]:
        """Prices for one country converted to EUR/kWh; empty when absent."""
        if not self.success:
            return []

        rows = self.data.get(country_code.lower())
        if rows is None:
            rows = self.data.get(country_code.upper(), [])

        return [
            PricePoint(
                start_time=datetime.fromtimestamp(row.timestamp, tz=timezone.utc),
                price_per_kwh=row.price / MWH_TO_KWH,
            )
            for row in rows
        ]


def format_elering_instant(value: datetime) -> str:
    """ISO-8601 UTC without fractional seconds, e.g. '2023-01-01T00:00:00Z'."""
    return to_utc(value).strftime("%Y-%m-%dT%H:%M:%SZ")


class EleringClient:
    """Fetches prices from the Elering dashboard API."""

    PRICE_PATH = "/api/nps/price"

    def __init__(self, client: httpx.AsyncClient, base_url: str):
        self.client = client
        self.base_url = base_url.rstrip("/")

    async def fetch_prices(self, country_code: str, start: datetime, end: datetime) -> List[PricePoint]:
        """
        Fetch prices for a country between two instants.

        Raises:
            EleringApiError: non-success HTTP status.
            NoDataFoundError: the API reports no data for the period.
            httpx.HTTPError: transport failures and timeouts.
            pydantic.ValidationError: malformed response body.
        """
        period_start = format_elering_instant(start)
        period_end = format_elering_instant(end)
        params = {
            "start": period_start,
            "end": period_end,
            "country_code": country_code.lower(),
        }

        response = await self.client.get(f"{self.base_url}{self.PRICE_PATH}", params=params)

        if not response.is_success:
            raise EleringApiError(
                response.status_code,
                f"Failed to fetch data from Elering: {response.reason_phrase}",
            )

        price_response = EleringPriceResponse.model_validate_json(response.content)

        if not price_response.success or not price_response.data:
            raise NoDataFoundError(
                f"Elering reported no data for {country_code} in period {period_start} - {period_end}"
            )

        points = price_response.to_price_points(country_code)
        logger.debug("Fetched Elering prices", country_code=country_code, count=len(points))
        return points
