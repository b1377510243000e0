"""Centralized configuration using Pydantic Settings.

Single source of truth for the knobs the normalizer and the workflows
read: schema version, ticketing retry bounds, the placeholder segment
used by the PNR import and the fixture transport location.

Configuration can be overridden via environment variables:
- AIRBK_SCHEMA_VERSION=v52_0
- AIRBK_TICKETING_MAX_ATTEMPTS=5
- AIRBK_IMPORT_CARRIER=OK
- AIRBK_LOG_STRUCTURED=true
- etc.
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaConfig(BaseSettings):
    """Vendor schema configuration.

    Environment variables prefixed with AIRBK_SCHEMA_.
    """

    model_config = SettingsConfigDict(env_prefix="AIRBK_SCHEMA_")

    version: str = "v47_0"

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        if not re.fullmatch(r"v\d+_\d+", value):
            raise ValueError(f"schema version must look like v47_0, got {value!r}")
        return value


class TicketingConfig(BaseSettings):
    """Ticketing retry bounds.

    Environment variables prefixed with AIRBK_TICKETING_.
    """

    model_config = SettingsConfigDict(env_prefix="AIRBK_TICKETING_")

    retries_per_condition: int = Field(default=1, ge=0)
    max_attempts: int = Field(default=3, ge=1)


class ImportConfig(BaseSettings):
    """Placeholder segment and confirmation policy for PNR import.

    Environment variables prefixed with AIRBK_IMPORT_.
    """

    model_config = SettingsConfigDict(env_prefix="AIRBK_IMPORT_")

    carrier: str = "OK"
    booking_class: str = "Y"
    origin: str = "DOH"
    destination: str = "ODM"
    remark: str = "NO1"
    days_ahead: int = Field(default=42, ge=1)
    received_from: str = "UAPI"
    confirmation_retrievals: int = Field(default=2, ge=1)


class TransportConfig(BaseSettings):
    """Fixture transport configuration.

    Environment variables prefixed with AIRBK_TRANSPORT_.
    """

    model_config = SettingsConfigDict(env_prefix="AIRBK_TRANSPORT_")

    fixtures_dir: Path = Field(default_factory=lambda: Path.cwd() / "fixtures")


class ObservabilityConfig(BaseSettings):
    """Logging configuration.

    Environment variables prefixed with AIRBK_LOG_.
    """

    model_config = SettingsConfigDict(env_prefix="AIRBK_LOG_")

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = False  # JSON lines with the extra= fields


class AppConfig(BaseSettings):
    """Main configuration aggregating all sub-configs.

        config = get_config()
        print(config.vendor_schema.version)
        print(config.ticketing.max_attempts)

    Environment variables prefixed with AIRBK_.
    """

    model_config = SettingsConfigDict(env_prefix="AIRBK_")

    vendor_schema: SchemaConfig = Field(default_factory=SchemaConfig)
    ticketing: TicketingConfig = Field(default_factory=TicketingConfig)
    pnr_import: ImportConfig = Field(default_factory=ImportConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Get the singleton configuration.

    Loaded once and cached. Use reset_config() first to reload it.
    """
    return AppConfig()


def reset_config() -> None:
    """Reset the configuration cache (tests)."""
    get_config.cache_clear()
