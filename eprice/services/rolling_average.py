"""
Rolling average service.

Averages daily average prices over the days ending yesterday. Days missing
from the daily average cache are fetched concurrently, averaged and cached.
"""

import asyncio
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, List, Optional

from eprice.exceptions import InvalidArgumentError, NoDataFoundError
from eprice.logging_config import get_logger
from eprice.models.price import RollingAverageResult
from eprice.services.price_service import PriceService
from eprice.storage.daily_average_cache import DailyAverageCache
from eprice.utils.time_utils import day_window, trailing_dates, utc_now

logger = get_logger(__name__)


def mean(values: List[Decimal]) -> Decimal:
    """Arithmetic mean of a non-empty list of prices."""
    return sum(values, Decimal("0")) / len(values)


class RollingAverageService:
    """Computes rolling average prices on top of the daily average cache."""

    def __init__(
        self,
        price_service: PriceService,
        daily_average_cache: DailyAverageCache,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.price_service = price_service
        self.daily_average_cache = daily_average_cache
        self.clock = clock

    async def execute(self, country_code: str, days: int) -> RollingAverageResult:
        """
        Rolling average for `country_code` over `days` days ending yesterday.

        Args:
            country_code: 2-letter country code (e.g. "EE").
            days: Number of calendar days in the window.

        Returns:
            RollingAverageResult over every day that has data.

        Raises:
            InvalidArgumentError: days is not positive or reaches past the calendar.
            ApiError: fetching a missing day failed. Days that completed
                before the failure stay in the daily average cache.
            NoDataFoundError: no day in the window has any price data.
        """
        if days <= 0:
            raise InvalidArgumentError("Number of days must be positive.")

        country_code = country_code.upper()
        try:
            dates = trailing_dates(days, self.clock().date())
        except OverflowError as e:
            raise InvalidArgumentError(f"Number of days is out of range: {days}") from e
        start_date, end_date = dates[0], dates[-1]

        cached = self.daily_average_cache.get_range(country_code, start_date, end_date)
        missing = [day for day in dates if day not in cached]

        fetched: List[Decimal] = []
        if missing:
            logger.info(
                "Filling missing daily averages",
                country_code=country_code,
                cached=len(cached),
                missing=len(missing),
            )
            # gather re-raises the first failure; siblings keep running and still cache their day
            results = await asyncio.gather(
                *(self._fill_day(country_code, day) for day in missing)
            )
            fetched = [average for average in results if average is not None]

        averages = list(cached.values()) + fetched
        if not averages:
            raise NoDataFoundError(
                f"No price data found for {country_code} between {start_date} and {end_date}."
            )

        result = RollingAverageResult(
            country_code=country_code,
            days_requested=days,
            days_calculated=len(averages),
            start_date=start_date,
            end_date=end_date,
            average_price=mean(averages),
        )
        logger.info(
            "Calculated rolling average",
            country_code=country_code,
            days_requested=days,
            days_calculated=result.days_calculated,
            average_price=f"{result.average_price:.5f} EUR/kWh",
        )
        return result

    async def _fill_day(self, country_code: str, day: date) -> Optional[Decimal]:
        """Fetch one day, cache its average and return it; None when the day has no data."""
        start, end = day_window(day)
        prices = await self.price_service.get_prices(country_code, start, end, cache_results=False)
        if not prices:
            logger.debug("No prices for day", country_code=country_code, day=day.isoformat())
            return None

        average = mean([point.price_per_kwh for point in prices])
        self.daily_average_cache.put(country_code, day, average)
        return average
