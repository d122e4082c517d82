"""
Electricity Price API - day-ahead prices per country

A small service that answers "what does electricity cost in country C at
hour H" from Elering, falling back to ENTSO-E, with file-backed caching.

Main components:
- Atomic JSON snapshot store backing two caches
- 60 minute price series cache and permanent daily average cache
- Fallback price service and rolling average service
- Domain exceptions classifying every upstream failure
"""

__version__ = "1.0.0"
