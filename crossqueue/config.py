"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with sensible defaults.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from crossqueue.constants import (
    DEFAULT_ACK_RETENTION,
    DEFAULT_DEDUP_CAPACITY,
    GcPolicy,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Durable store
    database_url: str = "sqlite+aiosqlite:///./crossqueue.db"
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Queue engine
    dedup_capacity: int = Field(default=DEFAULT_DEDUP_CAPACITY, gt=0)
    ack_retention: int = Field(default=DEFAULT_ACK_RETENTION, ge=0)
    gc_policy: GcPolicy = GcPolicy.EAGER

    # Collector
    collector_interval_seconds: float = 30.0
    collector_channels: list[str] = Field(default_factory=list)

    # Observability
    tracing_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "crossqueue"
    log_level: str = "INFO"
    log_format: str = "json"  # json or console


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
