"""Sensitivity classification consulted when redaction is enabled.

Classification is per declared field (its descriptor), never per runtime
value. A field counts as sensitive when the descriptor carries a
personal-data or sensitive-info tag, or when its declaring class was marked
with ``@personal_data`` / ``@sensitive_info``.
"""
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from .field_descriptors import FieldDescriptor, Sensitivity, type_sensitivity

__all__ = [
    "REDACTION_MARKER",
    "SensitivityClassifier",
    "DefaultSensitivityClassifier",
    "is_sensitive",
]

REDACTION_MARKER = "*****"


@runtime_checkable
class SensitivityClassifier(Protocol):
    def is_personal_data(self, descriptor: FieldDescriptor) -> bool: ...

    def is_sensitive_info(self, descriptor: FieldDescriptor) -> bool: ...


class DefaultSensitivityClassifier:
    def is_personal_data(self, descriptor: FieldDescriptor) -> bool:
        return (
            descriptor.sensitivity is Sensitivity.PERSONAL_DATA
            or type_sensitivity(descriptor.declaring_type) is Sensitivity.PERSONAL_DATA
        )

    def is_sensitive_info(self, descriptor: FieldDescriptor) -> bool:
        return (
            descriptor.sensitivity is Sensitivity.SENSITIVE_INFO
            or type_sensitivity(descriptor.declaring_type) is Sensitivity.SENSITIVE_INFO
        )


def is_sensitive(
    classifier: SensitivityClassifier, descriptor: Optional[FieldDescriptor]
) -> bool:
    """OR of both classifier predicates; fields without a descriptor are never sensitive."""
    if descriptor is None:
        return False
    return classifier.is_personal_data(descriptor) or classifier.is_sensitive_info(descriptor)
