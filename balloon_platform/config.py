from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    app_name: str = "BalloonTracker"
    app_version: str = "0.1.0"
    app_env: str = "development"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    # Upstreams
    balloon_base_url: str = "https://a.windbornesystems.com/treasure"
    weather_base_url: str = "https://api.open-meteo.com/v1/forecast"
    snapshot_count: int = 24
    fetch_timeout_s: float = 10.0

    # Caching; weather entries never expire unless a TTL is set
    balloon_cache_ttl_s: float = 300.0
    weather_cache_ttl_s: Optional[float] = None

    # .env support and prefix for clarity
    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
