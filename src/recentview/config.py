"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, RedisDsn
from pydantic_settings import BaseSettings, SettingsConfigDict


class RecentViewSettings(BaseSettings):
    """Application configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="RECENTVIEW_",
    )

    # Storefront
    storefront_url: str = Field(
        default="http://localhost:9292",
        description="Base URL of the storefront serving search and product JSON",
    )

    # Persistence
    redis_url: RedisDsn | None = Field(
        default=None,
        description="Redis connection URL (in-memory store when unset)",
    )
    redis_prefix: str = Field(
        default="session:",
        description="Prefix applied to every key written to Redis",
    )

    # Cache TTLs (seconds)
    handle_ttl: float = Field(default=24 * 3600, gt=0, description="Handle cache TTL")
    record_ttl: float = Field(default=24 * 3600, gt=0, description="Record cache TTL")
    lookup_ttl: float = Field(default=5 * 60, gt=0, description="Remote lookup cache TTL")
    sweep_interval: float = Field(
        default=600,
        gt=0,
        description="Minimum seconds between opportunistic expiry sweeps",
    )

    # Remote calls
    request_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Per remote call timeout in seconds",
    )
    max_concurrency: int = Field(
        default=5,
        ge=1,
        description="Concurrent identifier-scoped lookups",
    )

    # Recently viewed list
    default_capacity: int = Field(
        default=4,
        ge=1,
        le=50,
        description="Identifiers kept when no capacity has been stored",
    )

    # App settings
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )


@lru_cache
def get_settings() -> RecentViewSettings:
    """Get cached settings instance."""
    return RecentViewSettings()
