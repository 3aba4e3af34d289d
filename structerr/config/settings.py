from __future__ import annotations

"""structerr/config/settings.py

Library configuration using environment-driven settings.

This module centralizes:
- application identity (name, version, environment tier)
- whether reported errors are also logged
- how much ambient context a new error inherits
- size limits for captured process output
- Statsig credentials and event naming for the default reporter

All values can be overridden with `STRUCTERR_*` environment variables or a
`.env` file.
"""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "structerr"
    app_version: str = "0.0.0"
    environment: str = "development"

    # Reporting
    enable_logging: bool = True

    # Context merge
    include_global_context: bool = False

    # Classification limits
    stderr_limit: int = 4096

    # Statsig reporter
    statsig_server_secret: str | None = None
    statsig_event_name: str = "error_reported"
    statsig_user_id: str = "backend"

    model_config = SettingsConfigDict(
        env_prefix="STRUCTERR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
