from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "TourOps API"
    env: str = "dev"
    log_level: str = "INFO"
    database_url: str = Field(default="sqlite:///./tourops.db")
    redis_url: str = Field(default="redis://localhost:6379/0")
    cache_enabled: bool = True
    cache_schema_version: str = "1"
    api_token: str = "dev-api-token"

    google_sheets_api_base: str = "https://sheets.googleapis.com/v4/spreadsheets"
    google_api_key: str | None = None
    google_access_token: str | None = None
    sheets_timeout_seconds: float = 120.0
    sheets_max_retries: int = 2
    sheets_retry_backoff_seconds: float = 0.6
    sheet_name_prefix: str = "S"

    sync_delete_chunk_size: int = 500
    sync_min_delete_chunk_size: int = 100
    sync_delete_max_attempts: int = 100
    sync_delete_progress_every: int = 1000
    sync_progress_every: int = 50
    sync_lock_ttl_seconds: int = 3600

    child_price_ratio: float = 0.7
    infant_price_ratio: float = 0.3
    stack_manual_overrides: bool = True
    payment_minimum_usd: float = 0.50

    model_config = SettingsConfigDict(env_file=".env", env_prefix="TOUROPS_")

    @property
    def sheets_configured(self) -> bool:
        return bool(self.google_api_key or self.google_access_token)


@lru_cache
def get_settings() -> Settings:
    return Settings()
