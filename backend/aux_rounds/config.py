"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Scheduler settings are read once at startup; changing them needs a restart

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://aux:aux@db:5432/aux"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Round lifecycle scheduler
    round_scheduler_enabled: bool = True
    round_tick_interval_seconds: int = 3600
    round_run_on_startup: bool = True
    round_logging_enabled: bool = True

    @field_validator("round_tick_interval_seconds")
    @classmethod
    def positive_interval(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("round_tick_interval_seconds must be positive")
        return v

    # Spotify
    spotify_client_id: str = "spotify-client-placeholder"
    spotify_client_secret: str = "spotify-secret-placeholder"
    spotify_api_url: str = "https://api.spotify.com/v1"
    spotify_accounts_url: str = "https://accounts.spotify.com/api/token"
    spotify_timeout_seconds: int = 30
    spotify_max_retries: int = 3
    spotify_token_refresh_margin_seconds: int = 300

    # Expo push
    expo_push_url: str = "https://exp.host/--/api/v2/push/send"
    expo_access_token: str | None = None
    expo_timeout_seconds: int = 30

    # API
    cors_origins: list[str] = ["http://localhost:8081"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
