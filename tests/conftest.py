"""
Test configuration and fixtures for the Electricity Price API tests.
Contains shared fixtures and test utilities.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from eprice.container import Services
from eprice.main import create_app
from eprice.models.price import PricePoint
from eprice.monitoring import ServiceMonitor
from eprice.services.price_service import PriceService
from eprice.services.rolling_average import RollingAverageService
from eprice.storage.daily_average_cache import InMemoryDailyAverageCache
from eprice.storage.price_cache import InMemoryPriceCache


class FakeClock:
    """Controllable replacement for utc_now."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_points(start: datetime, prices: List[str]) -> List[PricePoint]:
    """Hourly price points starting at `start`."""
    return [
        PricePoint(start_time=start + timedelta(hours=offset), price_per_kwh=Decimal(price))
        for offset, price in enumerate(prices)
    ]


@pytest.fixture
def points_factory():
    return make_points


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2023, 1, 4, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def sample_points() -> List[PricePoint]:
    """
    The two points of the 2023-01-01 reference window.
    """
    return make_points(datetime(2023, 1, 1, tzinfo=timezone.utc), ["0.15000", "0.12000"])


@pytest.fixture
def price_cache(clock) -> InMemoryPriceCache:
    return InMemoryPriceCache(clock=clock)


@pytest.fixture
def daily_average_cache() -> InMemoryDailyAverageCache:
    return InMemoryDailyAverageCache()


@pytest.fixture
def mock_elering():
    """
    Mocked primary upstream client.
    """
    client = MagicMock()
    client.fetch_prices = AsyncMock(return_value=[])
    return client


@pytest.fixture
def mock_entsoe():
    """
    Mocked fallback upstream client.
    """
    client = MagicMock()
    client.fetch_prices = AsyncMock(return_value=[])
    return client


@pytest.fixture
def price_service(price_cache, daily_average_cache, mock_elering, mock_entsoe, clock) -> PriceService:
    return PriceService(
        price_cache=price_cache,
        daily_average_cache=daily_average_cache,
        elering=mock_elering,
        entsoe=mock_entsoe,
        clock=clock,
    )


@pytest.fixture
def rolling_average_service(price_service, daily_average_cache, clock) -> RollingAverageService:
    return RollingAverageService(price_service, daily_average_cache, clock=clock)


@pytest.fixture
def mock_services():
    """
    Service graph with mocked services for route tests.
    """
    price_service = MagicMock()
    price_service.get_current_prices = AsyncMock(return_value=[])
    price_service.clear_caches = MagicMock()

    rolling_average_service = MagicMock()
    rolling_average_service.execute = AsyncMock()

    return Services(
        price_service=price_service,
        rolling_average_service=rolling_average_service,
        monitor=ServiceMonitor(),
    )


@pytest.fixture
def test_app(mock_services):
    """
    Create a test instance of the FastAPI application.
    """
    return create_app(services=mock_services)


@pytest.fixture
def test_client(test_app):
    """
    Create a test client for the FastAPI application.
    """
    return TestClient(test_app)
