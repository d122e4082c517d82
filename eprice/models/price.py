"""
Pydantic data models for price data and API responses.
Defines the normalized price series and the HTTP response formats.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class PricePoint(BaseModel):
    """
    A single normalized price interval.

    Both upstreams publish EUR/MWh; points always carry EUR/kWh.
    """
    start_time: datetime = Field(description="Start of the interval as an aware UTC instant")
    price_per_kwh: Decimal = Field(description="Price in EUR/kWh - can be negative")

    @field_validator("start_time")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class SeriesCacheEntry(BaseModel):
    """Cached series plus the instant after which it must not be served."""
    data: List[PricePoint]
    expiry: datetime


class DailyAverageSnapshot(BaseModel):
    """On-disk shape of the daily average cache: COUNTRY -> YYYY-MM-DD -> average."""
    data: Dict[str, Dict[str, Decimal]] = Field(default_factory=dict)


class PriceData(BaseModel):
    """
    API response item for price endpoints.
    """
    startTimeUTC: str = Field(description="ISO-8601 UTC start of the interval")
    price_eur_kwh: str = Field(description="Price in EUR/kWh with 5 decimals")

    @classmethod
    def from_point(cls, point: PricePoint) -> "PriceData":
        start = point.start_time.astimezone(timezone.utc)
        return cls(
            startTimeUTC=start.strftime("%Y-%m-%dT%H:%M:%SZ"),
            price_eur_kwh=f"{point.price_per_kwh:.5f}",
        )


class RollingAverageResult(BaseModel):
    """
    Rolling average report, computed per call and never persisted.
    """
    model_config = ConfigDict(populate_by_name=True)

    country_code: str = Field(alias="countryCode")
    days_requested: int = Field(alias="daysRequested")
    days_calculated: int = Field(alias="daysCalculated")
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    average_price: Decimal = Field(alias="averagePrice")

    @field_serializer("average_price")
    def _price_as_number(self, value: Decimal) -> float:
        return float(value)


class ServiceStats(BaseModel):
    """
    Service monitor response model.
    """
    uptime: str
    totalIncomingRequests: int
    totalOutgoingRequests: int
    avgIncomingPerHour: float
    avgOutgoingPerHour: float


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
