"""telemetry-flattener: flatten arbitrary objects into telemetry properties.

The public surface is the `flatten` projector and the `TelemetryLogger` sink
that consumes it. Submodules can be imported directly for finer-grained
access (e.g. `telemetry_flattener.flattening.field_descriptors`).
"""
from __future__ import annotations

from .flattening import (
    REDACTION_MARKER,
    FieldDescriptor,
    PersonalData,
    SensitiveInfo,
    Sensitivity,
    StringCasing,
    flatten,
    personal_data,
    register_fields,
    sensitive_info,
)
from .models.telemetry import LogLevel

__all__ = [
    "flatten",
    "StringCasing",
    "FieldDescriptor",
    "Sensitivity",
    "PersonalData",
    "SensitiveInfo",
    "personal_data",
    "sensitive_info",
    "register_fields",
    "REDACTION_MARKER",
    "LogLevel",
]
