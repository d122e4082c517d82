"""
Application configuration management using Pydantic Settings.
Handles environment variables and default values for the service.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host address")
    api_port: int = Field(default=8080, description="API port")
    api_debug: bool = Field(default=False, description="Enable debug mode")
    api_reload: bool = Field(default=False, description="Enable auto-reload")

    # Elering (primary upstream) Configuration
    elering_base_url: str = Field(
        default="https://dashboard.elering.ee",
        description="Base URL for the Elering NPS price API"
    )

    # ENTSO-E (fallback upstream) Configuration
    entsoe_base_url: str = Field(
        default="https://web-api.tp.entsoe.eu/api",
        description="ENTSO-E Transparency Platform REST endpoint"
    )
    entsoe_api_key: str = Field(
        default="",
        description="ENTSO-E security token (ENTSOE_API_KEY)"
    )

    # Outgoing HTTP Configuration
    http_request_timeout: float = Field(default=15.0, description="Total request timeout in seconds")
    http_connect_timeout: float = Field(default=10.0, description="Connect timeout in seconds")

    # Cache Configuration
    price_cache_path: str = Field(
        default="eprice-cache.json",
        description="File backing the 60 minute price series cache"
    )
    daily_average_cache_path: str = Field(
        default="daily-average-cache.json",
        description="File backing the permanent daily average cache"
    )
    cache_persist_workers: int = Field(
        default=1,
        ge=1,
        description="Background threads per cache file used for persistence"
    )

    # Domain defaults
    default_country_code: str = Field(default="EE", description="Country used when none is given")
    rolling_average_days: int = Field(default=30, description="Window of the rolling average endpoint")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json/text)")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()
