"""
Domain exceptions for the Electricity Price API.
Provides clear, typed exceptions for business logic and upstream errors.
"""

import json
from enum import Enum
from typing import Optional
from xml.etree.ElementTree import ParseError

import httpx
from pydantic import ValidationError


class PriceAPIException(Exception):
    """Base exception for all Electricity Price API errors."""
    pass


class InvalidArgumentError(PriceAPIException, ValueError):
    """Raised when a caller passes an argument outside the accepted range."""
    pass


class ApiErrorKind(str, Enum):
    """
    Classification of every failure the price engine can report.
    """
    NETWORK = "NETWORK"
    SERVER = "SERVER"
    TIMEOUT = "TIMEOUT"
    PARSING = "PARSING"
    UNKNOWN = "UNKNOWN"
    NO_DATA_FOUND = "NO_DATA_FOUND"
    UNSUPPORTED_COUNTRY = "UNSUPPORTED_COUNTRY"


class ApiError(PriceAPIException):
    """
    Classified error surfaced by the fetch orchestrator and rolling average engine.

    Every subclass pins ``kind`` so callers can match on it exhaustively.
    """
    kind: ApiErrorKind = ApiErrorKind.UNKNOWN
    default_message: str = "Unknown error"

    def __init__(self, details: str, message: Optional[str] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.message}: {self.details}"


class NetworkError(ApiError):
    kind = ApiErrorKind.NETWORK
    default_message = "Network error"


class ServerError(ApiError):
    kind = ApiErrorKind.SERVER

    def __init__(self, code: int, details: str):
        self.code = code
        super().__init__(details, message=f"Server error (code {code})")


class RequestTimeoutError(ApiError):
    kind = ApiErrorKind.TIMEOUT
    default_message = "Outgoing Request timed out"


class ParsingError(ApiError):
    kind = ApiErrorKind.PARSING
    default_message = "Data parsing error"


class UnknownError(ApiError):
    kind = ApiErrorKind.UNKNOWN
    default_message = "Unknown error"


class NoDataFoundError(ApiError):
    """Non-fatal: upstream has no prices for the period."""
    kind = ApiErrorKind.NO_DATA_FOUND
    default_message = "No data found"


class UnsupportedCountryError(ApiError):
    """Raised when a country has no bidding zone for the ENTSO-E fallback."""
    kind = ApiErrorKind.UNSUPPORTED_COUNTRY
    default_message = "Unsupported country"


class UpstreamApiError(PriceAPIException):
    """An upstream answered with an error status or error payload."""

    source = "upstream"

    def __init__(self, code: int, details: str):
        self.code = code
        self.details = details
        super().__init__(f"{self.source} API Error: {details}")


class EleringApiError(UpstreamApiError):
    source = "Elering"


class EntsoeApiError(UpstreamApiError):
    source = "ENTSO-E"


def to_api_error(error: BaseException) -> ApiError:
    """
    Map an arbitrary exception onto the classified ApiError family.
    """
    if isinstance(error, ApiError):
        return error

    details = str(error) or error.__class__.__name__

    if isinstance(error, httpx.TimeoutException):
        classified = RequestTimeoutError(details)
    elif isinstance(error, UpstreamApiError):
        classified = ServerError(error.code, error.details)
    elif isinstance(error, httpx.HTTPError):
        classified = NetworkError(details)
    elif isinstance(error, (ValidationError, json.JSONDecodeError, ParseError)):
        classified = ParsingError(details)
    else:
        classified = UnknownError(details)

    classified.__cause__ = error
    return classified
