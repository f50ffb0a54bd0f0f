"""Pydantic models for telemetry items handed to the exporter.

A ``TelemetryItem`` is the fully assembled unit the ``TelemetryLogger``
converts into an OpenTelemetry span: a name, a severity, a message and the
flat string properties produced by the flattener plus the default
``Telemetry.*`` properties.
"""
from __future__ import annotations

import logging
from enum import Enum, IntEnum
from typing import Dict, Optional

from pydantic import BaseModel, Field

__all__ = ["LogLevel", "TelemetryKind", "TelemetryItem"]


class LogLevel(IntEnum):
    """Telemetry severity; ``NONE`` disables every level."""

    TRACE = 0
    DEBUG = 1
    INFORMATION = 2
    WARNING = 3
    ERROR = 4
    CRITICAL = 5
    NONE = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_stdlib(cls, levelno: int) -> "LogLevel":
        """Map a stdlib ``logging`` level number onto the nearest telemetry level."""
        if levelno >= logging.CRITICAL:
            return cls.CRITICAL
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARNING
        if levelno >= logging.INFO:
            return cls.INFORMATION
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.TRACE


class TelemetryKind(str, Enum):
    EVENT = "event"
    EXCEPTION = "exception"
    METRIC = "metric"


class TelemetryItem(BaseModel):
    kind: TelemetryKind = TelemetryKind.EVENT
    name: str
    level: LogLevel
    message: Optional[str] = None
    properties: Dict[str, str] = Field(default_factory=dict)
    metric_value: Optional[float] = None
    exception_type: Optional[str] = None
