"""Application Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - Secrets (GitHub token) come from environment variables only
    - get_settings() is cached (lru_cache): single instance per process
    - network_page_size is the page size requested from GitHub on every load

Design Decisions:
    - SQLite file by default: the cache is local to the process that reads it
    - postgresql:// URLs rewritten to the asyncpg driver, same as the deploy target
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = "sqlite+aiosqlite:///./repo_search.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_auto_create: bool = True

    # GitHub
    github_api_url: str = "https://api.github.com"
    github_token: str | None = None
    github_max_retries: int = 3
    github_timeout_seconds: int = 30
    github_base_delay_ms: int = 1000
    github_max_delay_ms: int = 60_000

    # Paging
    network_page_size: int = 30
    starting_page_index: int = 1
    prefetch_distance: int | None = None

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
