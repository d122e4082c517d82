"""
Data models package for the Electricity Price API.
Contains Pydantic models for price data and API responses.
"""

from .price import (
    DailyAverageSnapshot,
    ErrorResponse,
    PriceData,
    PricePoint,
    RollingAverageResult,
    SeriesCacheEntry,
    ServiceStats,
)

__all__ = [
    "DailyAverageSnapshot",
    "ErrorResponse",
    "PriceData",
    "PricePoint",
    "RollingAverageResult",
    "SeriesCacheEntry",
    "ServiceStats",
]
