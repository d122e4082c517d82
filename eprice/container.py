"""
Explicit construction of the service graph.
Builds stores, caches, upstream clients and services and wires them together.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx

from eprice.config import Settings
from eprice.logging_config import get_logger
from eprice.models.price import DailyAverageSnapshot, SeriesCacheEntry
from eprice.monitoring import ServiceMonitor
from eprice.services.price_service import PriceService
from eprice.services.rolling_average import RollingAverageService
from eprice.storage.daily_average_cache import FileBackedDailyAverageCache
from eprice.storage.file_store import AtomicFileStore
from eprice.storage.price_cache import FileBackedPriceCache
from eprice.upstream.elering import EleringClient
from eprice.upstream.entsoe import EntsoeClient

logger = get_logger(__name__)


@dataclass
class Services:
    """Everything the route layer needs, owned by the application."""
    price_service: PriceService
    rolling_average_service: RollingAverageService
    monitor: ServiceMonitor
    http_client: Optional[httpx.AsyncClient] = None
    stores: List[AtomicFileStore] = field(default_factory=list)

    async def aclose(self) -> None:
        """Close the HTTP client and let pending cache writes land."""
        if self.http_client is not None:
            await self.http_client.aclose()
        for store in self.stores:
            store.close()
        logger.info("Services shut down")


def build_http_client(settings: Settings, monitor: ServiceMonitor) -> httpx.AsyncClient:
    timeout = httpx.Timeout(settings.http_request_timeout, connect=settings.http_connect_timeout)
    return httpx.AsyncClient(
        timeout=timeout,
        event_hooks={"request": [monitor.on_outgoing_request]},
    )


def build_services(settings: Settings) -> Services:
    """Assemble the production service graph from settings."""
    monitor = ServiceMonitor()
    http_client = build_http_client(settings, monitor)

    price_store = AtomicFileStore(
        settings.price_cache_path,
        Dict[str, SeriesCacheEntry],
        max_workers=settings.cache_persist_workers,
    )
    daily_store = AtomicFileStore(
        settings.daily_average_cache_path,
        DailyAverageSnapshot,
        max_workers=settings.cache_persist_workers,
    )
    price_cache = FileBackedPriceCache(price_store)
    daily_average_cache = FileBackedDailyAverageCache(daily_store)

    if not settings.entsoe_api_key:
        logger.warning("ENTSOE_API_KEY is not set, the ENTSO-E fallback will fail")

    price_service = PriceService(
        price_cache=price_cache,
        daily_average_cache=daily_average_cache,
        elering=EleringClient(http_client, settings.elering_base_url),
        entsoe=EntsoeClient(http_client, settings.entsoe_base_url, settings.entsoe_api_key),
    )
    rolling_average_service = RollingAverageService(price_service, daily_average_cache)

    return Services(
        price_service=price_service,
        rolling_average_service=rolling_average_service,
        monitor=monitor,
        http_client=http_client,
        stores=[price_store, daily_store],
    )
