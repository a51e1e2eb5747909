"""Centralized, typed configuration using pydantic-settings.

Provides a single ``Settings`` class backed by ``.env`` file and environment
variables, a cached ``get_settings()`` accessor, and a ``validate_credentials()``
startup gate that enforces provider credentials in production mode.

This module has no imports from the rest of the ``mailbridge`` package so it
can be loaded first by anything.
"""

from __future__ import annotations

import sys
from functools import lru_cache

import structlog
from pydantic import Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


class Settings(BaseSettings):
    """Application settings loaded from environment variables and ``.env`` file.

    ``SecretStr`` fields keep the provider API key out of logs and error
    output.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- General ---------------------------------------------------------------
    production: bool = False
    port: int = 3000

    # -- Unipile ---------------------------------------------------------------
    unipile_api_key: SecretStr = SecretStr("")
    unipile_base_url: str = ""
    unipile_dsn: str = ""
    provider_timeout: float = 30.0

    # -- Normalization & enrichment --------------------------------------------
    organization_token: str = "kalvium"
    # Floor keeps the 20-character "No content available" preview within
    # max_length + 3.
    preview_max_length: int = Field(default=200, ge=17)

    # -- Bulk send -------------------------------------------------------------
    max_bulk_delay_ms: int = Field(default=60_000, ge=0)

    # -- Observability ---------------------------------------------------------
    sentry_dsn: str = ""

    @property
    def include_debug_info(self) -> bool:
        """Attach ``_debug`` diagnostics to normalized emails outside production."""
        return not self.production


@lru_cache
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    Environment variables are parsed exactly once.  Call
    ``get_settings.cache_clear()`` in tests to reset.

    Returns:
        The application ``Settings``.
    """
    try:
        return Settings()
    except ValidationError as exc:
        # Log only the structured errors list -- never the full exception
        # which may contain raw SecretStr values.
        logger.error("settings_validation_failed", errors=exc.errors())
        sys.exit(1)


def validate_credentials(settings: Settings) -> None:
    """Enforce provider credential presence at startup.

    In **production** mode (``settings.production is True``), the application
    exits with a clear error block if any required credential is missing.

    In **development** mode, each missing credential is logged as a warning
    and the application starts with the provider client disabled.

    Args:
        settings: The loaded application settings.
    """
    errors: list[str] = []

    if not settings.unipile_api_key.get_secret_value():
        errors.append("UNIPILE_API_KEY is empty or not set")

    if not settings.unipile_base_url:
        errors.append("UNIPILE_BASE_URL is empty or not set")

    if not errors:
        logger.info("credential_validation_passed")
        return

    if settings.production:
        for err in errors:
            logger.error("credential_missing", detail=err)
        print("\n=== STARTUP FAILED ===", file=sys.stderr)
        print("Missing required credentials for production mode:", file=sys.stderr)
        for err in errors:
            print(f"  - {err}", file=sys.stderr)
        print("======================\n", file=sys.stderr)
        sys.exit(1)
    else:
        for err in errors:
            logger.warning("credential_missing_dev", detail=err)
