"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache): single instance per process
    - dedup_window_seconds is strictly positive

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Dedup window configurable: 30s absorbs the observed double-delivery races,
      but no bound on worst-case redelivery delay is known (ADR: tune per deployment)
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database (tool-call audit log)
    database_url: str = "sqlite+aiosqlite:///deckrelay.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 5
    database_max_overflow: int = 10
    audit_tool_calls: bool = True

    # Embed channel
    embed_origin: str = "https://chat.usable.dev"
    embed_auth_token: str | None = None
    embed_config: dict | None = None

    # Delivery deduplication
    dedup_window_seconds: float = 30.0

    @field_validator("dedup_window_seconds")
    @classmethod
    def check_positive_window(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("dedup_window_seconds must be > 0")
        return v

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
