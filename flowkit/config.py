"""
Configuration for Flowkit.

Uses pydantic-settings for environment variable loading (prefix FLOWKIT_).

Invariants:
    - All settings have sensible defaults for local development
    - Settings are read once per process via get_settings()

How to change safely:
    - Add new settings with defaults that keep existing deployments working
    - Tests should build Settings(...) explicitly instead of patching env
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Flowkit configuration loaded from environment."""

    # Storage
    data_dir: str = Field(default="./data", description="Directory for SQLite design stores")
    busy_timeout_ms: int = Field(default=5000, description="SQLite busy timeout")
    wal_mode: bool = Field(default=True, description="Enable SQLite WAL journal mode")

    # Compilation
    default_channel: str = Field(
        default="whatsapp",
        description="Adapter used when a design lists no registered channel",
    )
    strict_templates: bool = Field(
        default=False,
        description="Template policy findings become errors instead of warnings",
    )
    max_filter_depth: int = Field(default=5, description="Maximum chained template filters")
    plan_schema: str = Field(default="flowkit/1.0/plan", description="Schema tag of compiled plans")

    # Observability
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text", description="Log format: 'text' or 'json'")

    # HTTP API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8090)
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
    )

    model_config = {"env_prefix": "FLOWKIT_"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings instance."""
    return Settings()
