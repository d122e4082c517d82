#!/usr/bin/env python3
"""
Development helper scripts for the Electricity Price API.
Provides utilities for manual fetches, cache inspection and configuration.
"""

import asyncio
import sys
from pathlib import Path

# Add the repository root to Python path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from eprice.config import settings
from eprice.container import build_services
from eprice.logging_config import setup_logging


async def show_prices(country_code: str):
    """Fetch and display yesterday..tomorrow prices for a country."""
    print(f"Fetching prices for {country_code}...")
    setup_logging()
    services = build_services(settings)

    try:
        prices = await services.price_service.get_current_prices(country_code)
        if not prices:
            print("No price data available")
            return

        print(f"\nFound {len(prices)} price points:")
        print("-" * 40)
        print(f"{'Start (UTC)':<20} {'EUR/kWh':>12}")
        print("-" * 40)
        for point in prices:
            print(f"{point.start_time.strftime('%Y-%m-%d %H:%M'):<20} {point.price_per_kwh:>12.5f}")
    except Exception as e:
        print(f"Fetch failed: {e}")
    finally:
        await services.aclose()


async def show_rolling_average(country_code: str, days: int):
    """Compute and display a rolling average, filling the daily cache."""
    print(f"Calculating {days}-day rolling average for {country_code}...")
    setup_logging()
    services = build_services(settings)

    try:
        result = await services.rolling_average_service.execute(country_code, days)
        print(f"Window: {result.start_date} .. {result.end_date}")
        print(f"Days with data: {result.days_calculated}/{result.days_requested}")
        print(f"Average: {result.average_price:.5f} EUR/kWh")
    except Exception as e:
        print(f"Calculation failed: {e}")
    finally:
        await services.aclose()


async def clear_caches():
    """Clear both caches, in memory and on disk."""
    setup_logging()
    services = build_services(settings)
    services.price_service.clear_caches()
    await services.aclose()
    print("Caches cleared")


def show_config():
    """Display current configuration settings."""
    print("Current Configuration:")
    print("-" * 40)
    print(f"API Host: {settings.api_host}")
    print(f"API Port: {settings.api_port}")
    print(f"Debug Mode: {settings.api_debug}")
    print(f"Elering URL: {settings.elering_base_url}")
    print(f"ENTSO-E URL: {settings.entsoe_base_url}")
    print(f"ENTSO-E API Key: {'set' if settings.entsoe_api_key else 'NOT SET'}")
    print(f"Price Cache: {settings.price_cache_path}")
    print(f"Daily Average Cache: {settings.daily_average_cache_path}")
    print(f"Log Level: {settings.log_level}")


def main():
    """Main script entry point with command selection."""
    if len(sys.argv) < 2:
        print("Electricity Price API Development Scripts")
        print("Usage: python scripts/dev.py <command> [country] [days]")
        print("\nAvailable commands:")
        print("  show-prices       - Display yesterday..tomorrow prices")
        print("  rolling-average   - Calculate a rolling average")
        print("  clear-caches      - Clear both caches")
        print("  show-config       - Display current configuration")
        return

    command = sys.argv[1]
    country_code = (sys.argv[2] if len(sys.argv) > 2 else settings.default_country_code).upper()

    if command == "show-prices":
        asyncio.run(show_prices(country_code))
    elif command == "rolling-average":
        days = int(sys.argv[3]) if len(sys.argv) > 3 else settings.rolling_average_days
        asyncio.run(show_rolling_average(country_code, days))
    elif command == "clear-caches":
        asyncio.run(clear_caches())
    elif command == "show-config":
        show_config()
    else:
        print(f"Unknown command: {command}")
        print("Run without arguments to see available commands")


if __name__ == "__main__":
    main()
