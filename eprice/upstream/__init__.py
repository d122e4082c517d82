"""
Upstream price provider clients.
Elering is the primary source, ENTSO-E the fallback.
"""

from .elering import EleringClient, EleringPriceResponse
from .entsoe import BIDDING_ZONES, EntsoeClient, parse_market_document, to_bidding_zone

__all__ = [
    "BIDDING_ZONES",
    "EleringClient",
    "EleringPriceResponse",
    "EntsoeClient",
    "parse_market_document",
    "to_bidding_zone",
]
