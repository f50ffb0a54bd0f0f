from __future__ import annotations

import pytest
from pydantic import ValidationError

from telemetry_flattener.config import (
    Settings,
    get_settings,
    resolve_instrumentation_key,
    resolve_log_level,
)
from telemetry_flattener.flattening import StringCasing
from telemetry_flattener.models.telemetry import LogLevel


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def test_defaults(clean_env):
    s = _settings()
    assert s.MASK_SENSITIVE_DATA is True
    assert s.KEY_DELIMITER == "."
    assert s.KEY_CASING is StringCasing.UNCHANGED
    assert s.telemetry_level is LogLevel.INFORMATION
    assert s.INSTRUMENTATION_KEY is None
    assert s.DRY_RUN is False


@pytest.mark.parametrize(
    "default,desired,expected",
    [
        ("Information", None, LogLevel.INFORMATION),
        ("Information", "", LogLevel.INFORMATION),
        ("Information", "Error", LogLevel.ERROR),
        ("Trace", None, LogLevel.TRACE),
        ("Critical", "Debug", LogLevel.DEBUG),
        ("Information", "Verbose", LogLevel.NONE),
        ("information", None, LogLevel.NONE),
        (None, None, LogLevel.NONE),
    ],
)
def test_resolve_log_level(default, desired, expected):
    assert resolve_log_level(default, desired) is expected


def test_level_from_env(clean_env):
    clean_env.setenv("TELEMETRY_LOG_LEVEL_DEFAULT", "Debug")
    assert _settings().telemetry_level is LogLevel.DEBUG
    clean_env.setenv("TELEMETRY_LOG_LEVEL", "Warning")
    assert _settings().telemetry_level is LogLevel.WARNING
    # blank override falls back to the default
    clean_env.setenv("TELEMETRY_LOG_LEVEL", "  ")
    assert _settings().telemetry_level is LogLevel.DEBUG


@pytest.mark.parametrize(
    "var",
    [
        "INSTRUMENTATION_KEY",
        "APPINSIGHTS_INSTRUMENTATIONKEY",
        "LOGGING_INSTRUMENTATION_KEY",
        "APPINSIGHTS_INSTRUMENTATION_KEY",
    ],
)
def test_instrumentation_key_aliases(clean_env, var):
    clean_env.setenv(var, "key-123")
    s = _settings()
    assert s.INSTRUMENTATION_KEY == "key-123"
    assert resolve_instrumentation_key(s) == "key-123"


def test_instrumentation_key_lookup_order(clean_env):
    clean_env.setenv("LOGGING_INSTRUMENTATION_KEY", "second")
    clean_env.setenv("APPINSIGHTS_INSTRUMENTATIONKEY", "first")
    assert _settings().INSTRUMENTATION_KEY == "first"
    clean_env.setenv("INSTRUMENTATION_KEY", "explicit")
    assert _settings().INSTRUMENTATION_KEY == "explicit"


def test_blank_key_is_missing(clean_env):
    clean_env.setenv("INSTRUMENTATION_KEY", "   ")
    assert _settings().INSTRUMENTATION_KEY is None


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("UPPER_CASE", StringCasing.UPPER_CASE),
        ("upper", StringCasing.UPPER_CASE),
        ("LowerCase", StringCasing.LOWER_CASE),
        ("unchanged", StringCasing.UNCHANGED),
    ],
)
def test_key_casing_from_env(clean_env, raw, expected):
    clean_env.setenv("KEY_CASING", raw)
    assert _settings().KEY_CASING is expected


def test_invalid_casing_rejected(clean_env):
    clean_env.setenv("KEY_CASING", "camel")
    with pytest.raises(ValidationError):
        _settings()


def test_empty_delimiter_rejected(clean_env):
    with pytest.raises(ValidationError):
        _settings(KEY_DELIMITER="")


def test_mask_flag_from_env(clean_env):
    clean_env.setenv("MASK_SENSITIVE_DATA", "false")
    assert _settings().MASK_SENSITIVE_DATA is False


def test_get_settings_is_cached(clean_env):
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
