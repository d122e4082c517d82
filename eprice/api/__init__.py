"""
API package for the Electricity Price API.
Contains FastAPI route handlers and error mapping.
"""

from .routes import router

__all__ = [
    "router",
]
