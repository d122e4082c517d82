"""
Price service - cached multi-source price fetching.

Serves a price series for a country and time window from the TTL cache,
then from Elering, then from ENTSO-E as the fallback.
"""

from datetime import datetime
from typing import Callable, List, Optional

from eprice.exceptions import ApiError, NoDataFoundError, UnsupportedCountryError, to_api_error
from eprice.logging_config import get_logger
from eprice.models.price import PricePoint
from eprice.storage.daily_average_cache import DailyAverageCache
from eprice.storage.price_cache import PriceCache
from eprice.upstream.elering import EleringClient
from eprice.upstream.entsoe import EntsoeClient, to_bidding_zone
from eprice.utils.time_utils import current_price_window, format_cache_instant, utc_now

logger = get_logger(__name__)


def series_cache_key(country_code: str, start: datetime, end: datetime) -> str:
    """Deterministic TTL cache key, e.g. 'EE|2023-01-01T00:00Z|2023-01-03T00:00Z'."""
    return f"{country_code.upper()}|{format_cache_instant(start)}|{format_cache_instant(end)}"


class PriceService:
    """Fallback fetch orchestrator over the two upstream providers."""

    def __init__(
        self,
        price_cache: PriceCache,
        daily_average_cache: DailyAverageCache,
        elering: EleringClient,
        entsoe: EntsoeClient,
        zone_resolver: Callable[[str], Optional[str]] = to_bidding_zone,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.price_cache = price_cache
        self.daily_average_cache = daily_average_cache
        self.elering = elering
        self.entsoe = entsoe
        self.zone_resolver = zone_resolver
        self.clock = clock

    async def get_current_prices(self, country_code: str) -> List[PricePoint]:
        """Prices from yesterday 00:00 until tomorrow 23:59 UTC."""
        start, end = current_price_window(self.clock())
        return await self.get_prices(country_code, start, end)

    async def get_prices(
        self,
        country_code: str,
        start: datetime,
        end: datetime,
        cache_results: bool = True,
    ) -> List[PricePoint]:
        """
        Fetch a price series, preferring the cache, then Elering, then ENTSO-E.

        Returns an empty list when the fallback has no data for the period.

        Raises:
            UnsupportedCountryError: Elering had nothing and the country has no bidding zone.
            ApiError: classified ENTSO-E failure (network, server, timeout, parsing, unknown).
        """
        key = series_cache_key(country_code, start, end)

        cached = self.price_cache.get(key)
        if cached is not None:
            logger.debug("Serving prices from cache", key=key, count=len(cached))
            return cached

        prices = await self._fetch_primary(country_code, start, end)
        if not prices:
            prices = await self._fetch_fallback(country_code, start, end)

        if prices and cache_results:
            self.price_cache.put(key, prices)

        return prices

    def clear_caches(self) -> None:
        """Clear both caches. Never raises; failures are only logged."""
        for name, cache in (("price", self.price_cache), ("daily_average", self.daily_average_cache)):
            try:
                cache.clear()
            except Exception as e:
                logger.error("Failed to clear cache", cache=name, error=str(e))
        logger.info("Cache clear initiated for all caches")

    async def _fetch_primary(self, country_code: str, start: datetime, end: datetime) -> List[PricePoint]:
        logger.info("Hitting Elering", country_code=country_code)
        try:
            prices = await self.elering.fetch_prices(country_code, start, end)
        except NoDataFoundError as e:
            logger.info("Elering has no data, falling back", country_code=country_code, reason=str(e))
            return []
        except Exception as e:
            logger.warning("Elering request failed, falling back", country_code=country_code, error=str(e))
            return []

        if not prices:
            logger.info("Elering returned no usable prices, falling back", country_code=country_code)
        return prices

    async def _fetch_fallback(self, country_code: str, start: datetime, end: datetime) -> List[PricePoint]:
        bidding_zone = self.zone_resolver(country_code)
        if bidding_zone is None:
            raise UnsupportedCountryError(
                f"Unsupported country code for ENTSO-E fallback: {country_code}"
            )

        logger.info("Hitting ENTSO-E", country_code=country_code, bidding_zone=bidding_zone)
        try:
            return await self.entsoe.fetch_prices(bidding_zone, start, end)
        except NoDataFoundError as e:
            logger.info("ENTSO-E has no data for period", country_code=country_code, reason=e.details)
            return []
        except ApiError:
            raise
        except Exception as e:
            error = to_api_error(e)
            logger.error(
                "ENTSO-E request failed",
                country_code=country_code,
                kind=error.kind.value,
                error=str(error),
            )
            raise error from e
