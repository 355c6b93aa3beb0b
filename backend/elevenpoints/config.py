"""Application Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache): single instance per process
    - Missing upstream credentials are allowed at startup; dependent calls fail closed
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://elevenpoints:elevenpoints@db:5432/elevenpoints"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Conversational host (ElevenLabs)
    elevenlabs_api_key: str = ""
    elevenlabs_agent_id: str = ""
    elevenlabs_base_url: str = "https://api.elevenlabs.io"

    # Image search (Unsplash)
    unsplash_access_key: str = ""
    unsplash_base_url: str = "https://api.unsplash.com"
    image_page_size: int = 10
    image_orientation: str = "landscape"

    # Upstream resilience
    upstream_timeout_seconds: float = 15.0
    upstream_max_retries: int = 2
    upstream_base_delay_ms: int = 500
    upstream_max_delay_ms: int = 8_000

    # Realtime feed
    feed_queue_size: int = 100
    feed_keepalive_seconds: float = 15.0

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
