"""Pydantic models exchanged between the telemetry logger and its exporter."""
from __future__ import annotations

from .telemetry import LogLevel, TelemetryItem, TelemetryKind

__all__ = ["LogLevel", "TelemetryItem", "TelemetryKind"]
