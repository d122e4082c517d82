"""
Tests for price data edge cases including negative prices, currency precision
and UTC window boundaries.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import httpx
import pytest
import pytz

from eprice.models.price import PriceData, PricePoint
from eprice.monitoring import ServiceMonitor
from eprice.services.rolling_average import mean
from eprice.utils.time_utils import (
    current_price_window,
    day_window,
    format_cache_instant,
    format_duration,
    to_utc,
    trailing_dates,
)


class TestNegativePrices:
    """Negative spot prices occur in real markets and must pass through."""

    def test_negative_price_point(self):
        point = PricePoint(start_time=datetime(2023, 1, 1, 3, tzinfo=timezone.utc), price_per_kwh=Decimal("-0.0055"))

        assert PriceData.from_point(point).price_eur_kwh == "-0.00550"

    def test_negative_prices_in_mean(self):
        assert mean([Decimal("-0.10"), Decimal("0.30")]) == Decimal("0.10")


class TestCurrencyPrecision:
    """Test currency precision of averages and formatting."""

    def test_decimal_mean_is_exact(self):
        """0.10, 0.12 and 0.14 average to exactly 0.12."""
        assert mean([Decimal("0.10"), Decimal("0.12"), Decimal("0.14")]) == Decimal("0.12")

    def test_price_is_rounded_to_five_decimals(self):
        point = PricePoint(start_time=datetime(2023, 1, 1, tzinfo=timezone.utc), price_per_kwh=Decimal("0.123456"))

        assert PriceData.from_point(point).price_eur_kwh == "0.12346"

    def test_price_padded_to_five_decimals(self):
        point = PricePoint(start_time=datetime(2023, 1, 1, tzinfo=timezone.utc), price_per_kwh=Decimal("0.15"))

        assert PriceData.from_point(point).price_eur_kwh == "0.15000"


class TestTimezones:
    """Price points are always UTC."""

    def test_naive_start_is_treated_as_utc(self):
        point = PricePoint(start_time=datetime(2023, 1, 1, 12), price_per_kwh=Decimal("0.1"))

        assert point.start_time == datetime(2023, 1, 1, 12, tzinfo=timezone.utc)
        assert point.start_time.utcoffset() == timedelta(0)

    def test_offset_start_is_converted(self):
        tallinn = pytz.timezone("Europe/Tallinn")
        local = tallinn.localize(datetime(2023, 1, 1, 2, 0))

        point = PricePoint(start_time=local, price_per_kwh=Decimal("0.1"))

        assert PriceData.from_point(point).startTimeUTC == "2023-01-01T00:00:00Z"

    def test_to_utc_naive(self):
        assert to_utc(datetime(2023, 1, 1)).tzinfo is not None


class TestPriceWindows:
    """Tests for the UTC windows used by the price endpoints."""

    def test_current_window(self):
        start, end = current_price_window(datetime(2023, 1, 2, 13, 37, tzinfo=timezone.utc))

        assert start == datetime(2023, 1, 1, 0, 0, tzinfo=timezone.utc)
        assert end == datetime(2023, 1, 3, 23, 59, tzinfo=timezone.utc)

    def test_current_window_just_after_midnight(self):
        start, end = current_price_window(datetime(2023, 3, 1, 0, 0, 1, tzinfo=timezone.utc))

        assert start == datetime(2023, 2, 28, tzinfo=timezone.utc)
        assert end == datetime(2023, 3, 2, 23, 59, tzinfo=timezone.utc)

    def test_current_window_uses_utc_day(self):
        """A local time already past midnight still belongs to the UTC day."""
        helsinki = pytz.timezone("Europe/Helsinki")
        start, _ = current_price_window(helsinki.localize(datetime(2023, 1, 2, 1, 0)))

        assert start == datetime(2022, 12, 31, tzinfo=timezone.utc)

    def test_day_window(self):
        start, end = day_window(date(2024, 2, 29))

        assert start == datetime(2024, 2, 29, 0, 0, 0, tzinfo=timezone.utc)
        assert end == datetime(2024, 2, 29, 23, 59, 59, tzinfo=timezone.utc)

    def test_trailing_dates_end_yesterday(self):
        dates = trailing_dates(30, date(2023, 3, 1))

        assert len(dates) == 30
        assert dates[0] == date(2023, 1, 30)
        assert dates[-1] == date(2023, 2, 28)

    @pytest.mark.parametrize("value, expected", [
        (datetime(2023, 1, 1, tzinfo=timezone.utc), "2023-01-01T00:00Z"),
        (datetime(2023, 1, 1, 23, 59, 59, tzinfo=timezone.utc), "2023-01-01T23:59:59Z"),
        (datetime(2023, 1, 1, 0, 0, 0, 500, tzinfo=timezone.utc), "2023-01-01T00:00:00.000500Z"),
    ])
    def test_cache_instant_format(self, value, expected):
        assert format_cache_instant(value) == expected


class TestServiceMonitor:
    """Tests for uptime and request rate reporting."""

    def test_rates_over_uptime(self, clock):
        monitor = ServiceMonitor(clock=clock)
        for _ in range(4):
            monitor.increment_incoming()
        monitor.increment_outgoing()

        clock.advance(hours=2)
        stats = monitor.get_stats()

        assert stats.uptime == "0d 2h 0m 0s"
        assert stats.totalIncomingRequests == 4
        assert stats.avgIncomingPerHour == pytest.approx(2.0)
        assert stats.avgOutgoingPerHour == pytest.approx(0.5)

    def test_zero_uptime_does_not_divide_by_zero(self, clock):
        monitor = ServiceMonitor(clock=clock)
        monitor.increment_incoming()

        assert monitor.get_stats().avgIncomingPerHour == pytest.approx(3600.0)

    @pytest.mark.asyncio
    async def test_outgoing_hook_counts_requests(self):
        monitor = ServiceMonitor()
        transport = httpx.MockTransport(lambda request: httpx.Response(200))

        async with httpx.AsyncClient(transport=transport, event_hooks={"request": [monitor.on_outgoing_request]}) as client:
            await client.get("https://upstream.test/a")
            await client.get("https://upstream.test/b")

        assert monitor.get_stats().totalOutgoingRequests == 2

    def test_format_duration(self):
        assert format_duration(timedelta(days=1, hours=2, minutes=3, seconds=4)) == "1d 2h 3m 4s"
