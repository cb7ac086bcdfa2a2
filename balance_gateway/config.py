"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Payments backend
    backend_api_base: str = "http://localhost:8001"

    # Service
    service_name: str = "balance-gateway"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 5.0

    # Venue defaults
    venue_timezone: str = "America/Mexico_City"
    calendar_horizon_days: int = 30  # Settlement calendar looks this far ahead
    closeout_reminder_days: int = 7

    # Response cache
    cache_ttl_seconds: float = 30.0


settings = Settings()
