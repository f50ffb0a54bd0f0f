import sys
from pathlib import Path

import pytest

# Ensure `src` is on sys.path for tests when the package is not installed editable.
ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

_KEY_VARS = (
    "INSTRUMENTATION_KEY",
    "APPINSIGHTS_INSTRUMENTATIONKEY",
    "LOGGING_INSTRUMENTATION_KEY",
    "APPINSIGHTS_INSTRUMENTATION_KEY",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove telemetry variables that could leak in from the host environment."""
    for name in _KEY_VARS + (
        "TELEMETRY_LOG_LEVEL",
        "TELEMETRY_LOG_LEVEL_DEFAULT",
        "KEY_CASING",
        "KEY_DELIMITER",
        "MASK_SENSITIVE_DATA",
        "DRY_RUN",
        "OTEL_EXPORTER_OTLP_ENDPOINT",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
