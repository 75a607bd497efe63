from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Storage
    database_url: str = "sqlite:///weather.db"

    # Upstream forecast API
    owm_base_url: str = "https://api.openweathermap.org/data/2.5/forecast/daily"
    owm_api_key: Optional[str] = None
    location: str = "Mountain View, CA"
    units: str = "metric"
    forecast_days: int = 14

    # Transport
    http_timeout_connect: float = 5.0
    http_timeout_read: float = 15.0
    http_max_retries: int = 3

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="SUNSHINE_",  # e.g. SUNSHINE_DATABASE_URL
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
