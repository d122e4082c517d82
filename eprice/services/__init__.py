"""
Services package for the Electricity Price API.
Contains the fallback price service and the rolling average service.
"""

from .price_service import PriceService, series_cache_key
from .rolling_average import RollingAverageService

__all__ = [
    "PriceService",
    "RollingAverageService",
    "series_cache_key",
]
