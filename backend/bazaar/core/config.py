from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Bazaar Feed"
    environment: str = "dev"
    debug: bool = False
    log_level: str = "INFO"
    secret_key: str = "CHANGE_ME"

    database_url: str = "sqlite+aiosqlite:///./bazaar.db"
    redis_url: str = "redis://redis:6379/0"

    cors_origins: str = "*"
    rate_limit_per_minute: int = 60

    storage_base_url: str = "http://localhost:54321/storage/v1/object/public"

    snapshot_cache_backend: str = "memory"
    snapshot_cache_key: str = "marketplace:snapshot"
    snapshot_cache_ttl_seconds: int = 5 * 60

    fairness_window: int = 8
    page_size: int = 6
    search_debounce_ms: int = 275
    search_history_max: int = 10
    default_radius_miles: float = 50.0
    current_term_weight: int = 2
    history_term_weight: int = 1
    vocabulary_path: str | None = None

    geocoder_url: str = "https://nominatim.openstreetmap.org/search"
    geocoder_user_agent: str = "bazaar-feed/0.1 (geocode)"
    geocoder_timeout_seconds: float = 10.0


@lru_cache
def get_settings() -> Settings:
    return Settings()
