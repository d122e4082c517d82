"""
Storage package for the Electricity Price API.
Contains the atomic snapshot file store and the two price caches.
"""

from .daily_average_cache import DailyAverageCache, FileBackedDailyAverageCache, InMemoryDailyAverageCache
from .file_store import AtomicFileStore
from .price_cache import CACHE_TTL, FileBackedPriceCache, InMemoryPriceCache, PriceCache

__all__ = [
    "AtomicFileStore",
    "CACHE_TTL",
    "DailyAverageCache",
    "FileBackedDailyAverageCache",
    "FileBackedPriceCache",
    "InMemoryDailyAverageCache",
    "InMemoryPriceCache",
    "PriceCache",
]
