"""
Health check module for Docker health checks and monitoring.
Verifies the API answers and the cache files can be written.
"""

import asyncio
import os
import sys
from pathlib import Path

import httpx

from eprice.config import settings
from eprice.logging_config import get_logger

logger = get_logger(__name__)


def cache_paths_writable() -> bool:
    """Check that the directories holding both cache files are writable."""
    for path in (settings.price_cache_path, settings.daily_average_cache_path):
        directory = Path(path).resolve().parent
        if not directory.is_dir() or not os.access(directory, os.W_OK):
            logger.error("Cache directory not writable", path=str(directory))
            return False
    return True


async def api_responding(base_url: str = None) -> bool:
    """Check that the local API answers its liveness probe."""
    base_url = base_url or f"http://127.0.0.1:{settings.api_port}"
    try:
        async with httpx.AsyncClient(timeout=5) as client:
            response = await client.get(f"{base_url}/health")
            return response.status_code == 200 and response.json().get("status") == "UP"
    except httpx.HTTPError as e:
        logger.error("API health probe failed", error=str(e))
        return False


async def health_check() -> bool:
    """
    Perform comprehensive health check of the service.
    """
    return cache_paths_writable() and await api_responding()


async def main():
    """
    Main health check entry point for command line usage.
    """
    is_healthy = await health_check()

    if is_healthy:
        logger.info("Health check passed")
        sys.exit(0)
    else:
        logger.error("Health check failed")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
