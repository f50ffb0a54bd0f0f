"""Flattening subpackage: projects arbitrary values onto flat string maps.

All functions within this package are pure (no network I/O, no mutation of
the input) and deterministic for a given input and field registry.

Modules:
    flattener: traversal/dispatch core exposing ``flatten``
    casing: key path joining and casing policy
    type_classifier: system-type / enumerable predicates, zero values, leaf rendering
    field_descriptors: record field introspection and sensitivity markers
    sensitivity: redaction classifier collaborator
    tokens: JSON token tree decoding and normalization
"""
from __future__ import annotations

from .casing import StringCasing
from .field_descriptors import (
    FieldDescriptor,
    FieldRegistry,
    PersonalData,
    SensitiveInfo,
    Sensitivity,
    describe_fields,
    personal_data,
    register_fields,
    sensitive_info,
)
from .flattener import FlatMap, flatten
from .sensitivity import REDACTION_MARKER, DefaultSensitivityClassifier, SensitivityClassifier
from .tokens import ArrayToken, ObjectToken, ScalarToken, decode_json, normalize_token

__all__ = [
    "flatten",
    "FlatMap",
    "StringCasing",
    "FieldDescriptor",
    "FieldRegistry",
    "Sensitivity",
    "PersonalData",
    "SensitiveInfo",
    "personal_data",
    "sensitive_info",
    "register_fields",
    "describe_fields",
    "REDACTION_MARKER",
    "SensitivityClassifier",
    "DefaultSensitivityClassifier",
    "ObjectToken",
    "ArrayToken",
    "ScalarToken",
    "decode_json",
    "normalize_token",
]
