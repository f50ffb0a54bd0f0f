"""Application configuration management using Pydantic Settings.

This module defines the `Settings` class, which loads configuration parameters
from environment variables and a `.env` file: the telemetry level gate, the
backend instrumentation key (with several accepted variable names), the OTLP
exporter endpoint and the flattening options applied when objects are logged.

The `get_settings` function provides a cached, singleton instance of the
configuration, ensuring consistent settings throughout the application.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict as _SettingsConfigDict

from .flattening.casing import StringCasing
from .models.telemetry import LogLevel

_LEVEL_NAMES = {
    "Trace": LogLevel.TRACE,
    "Debug": LogLevel.DEBUG,
    "Information": LogLevel.INFORMATION,
    "Warning": LogLevel.WARNING,
    "Error": LogLevel.ERROR,
    "Critical": LogLevel.CRITICAL,
}


def resolve_log_level(default_level: Optional[str], desired_level: Optional[str]) -> LogLevel:
    """Return the telemetry level named by `desired_level`, else `default_level`.

    Names are matched exactly (``Trace``, ``Debug``, ``Information``,
    ``Warning``, ``Error``, ``Critical``). Anything else, including a missing
    value, disables telemetry (`LogLevel.NONE`).
    """
    name = desired_level if desired_level else default_level
    return _LEVEL_NAMES.get(name or "", LogLevel.NONE)


class Settings(BaseSettings):
    """Defines all application configuration parameters.

    The instrumentation key may be supplied under any of the accepted
    variable names; `resolve_instrumentation_key` picks the first non-empty
    one in declaration order.
    """

    model_config = _SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Process logging level")
    TELEMETRY_LOG_LEVEL_DEFAULT: str = Field(
        default="Information", description="Default telemetry level name"
    )
    TELEMETRY_LOG_LEVEL: Optional[str] = Field(
        default=None,
        description="Telemetry-specific level name; overrides TELEMETRY_LOG_LEVEL_DEFAULT when set",
    )

    # Backend identity, in lookup order
    INSTRUMENTATION_KEY: Optional[str] = None
    APPINSIGHTS_INSTRUMENTATIONKEY: Optional[str] = None
    LOGGING_INSTRUMENTATION_KEY: Optional[str] = None
    APPINSIGHTS_INSTRUMENTATION_KEY: Optional[str] = None

    # OTLP
    OTEL_EXPORTER_OTLP_ENDPOINT: Optional[str] = Field(
        default=None, description="OTLP/HTTP traces endpoint; export skipped when unset"
    )
    OTEL_EXPORTER_OTLP_TIMEOUT: int = Field(
        default=30, description="Timeout (seconds) for OTLP HTTP export requests"
    )
    OTEL_SERVICE_NAME: str = Field(default="telemetry-flattener", description="Resource service.name")

    # Flattening of logged objects
    MASK_SENSITIVE_DATA: bool = Field(
        default=True,
        description="Mask values of fields marked as personal data or sensitive info",
    )
    KEY_DELIMITER: str = Field(default=".", description="Delimiter between flattened key segments")
    KEY_CASING: StringCasing = Field(
        default=StringCasing.UNCHANGED, description="Casing applied to flattened keys"
    )

    DRY_RUN: bool = Field(
        default=False,
        description="If true, telemetry items are assembled but never exported",
    )

    @field_validator("KEY_CASING", mode="before")
    @classmethod
    def parse_casing(cls, v: Any) -> StringCasing:
        """Accept member names (``UPPER_CASE``) as well as values (``upper``)."""
        if isinstance(v, str):
            return StringCasing.parse(v)
        return v

    @field_validator("KEY_DELIMITER")
    @classmethod
    def delimiter_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("KEY_DELIMITER must not be empty")
        return v

    @field_validator(
        "INSTRUMENTATION_KEY",
        "APPINSIGHTS_INSTRUMENTATIONKEY",
        "LOGGING_INSTRUMENTATION_KEY",
        "APPINSIGHTS_INSTRUMENTATION_KEY",
        "TELEMETRY_LOG_LEVEL",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        if isinstance(v, str):
            trimmed = v.strip()
            return trimmed or None
        return v

    @model_validator(mode="after")
    def resolve_key_aliases(self) -> "Settings":
        """Collapse the accepted key variables into `INSTRUMENTATION_KEY`."""
        if not self.INSTRUMENTATION_KEY:
            self.INSTRUMENTATION_KEY = (
                self.APPINSIGHTS_INSTRUMENTATIONKEY
                or self.LOGGING_INSTRUMENTATION_KEY
                or self.APPINSIGHTS_INSTRUMENTATION_KEY
            )
        return self

    @property
    def telemetry_level(self) -> LogLevel:
        return resolve_log_level(self.TELEMETRY_LOG_LEVEL_DEFAULT, self.TELEMETRY_LOG_LEVEL)


def resolve_instrumentation_key(settings: Settings) -> Optional[str]:
    return settings.INSTRUMENTATION_KEY


@lru_cache(maxsize=1)
def get_settings() -> Settings:  # pragma: no cover - trivial
    """Return a cached, singleton instance of the application settings."""
    return Settings()
