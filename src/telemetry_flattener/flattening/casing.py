"""Key path construction and casing policy.

Flattened keys are built by joining path segments with a configurable
delimiter. Casing is applied to the fully joined path, never to individual
segments, so a field name that itself contains the delimiter is cased
together with its neighbours.
"""
from __future__ import annotations

from enum import Enum

__all__ = [
    "StringCasing",
    "apply_casing",
    "join_key",
    "index_key",
]


class StringCasing(str, Enum):
    """Transform applied to every emitted key."""

    UNCHANGED = "unchanged"
    UPPER_CASE = "upper"
    LOWER_CASE = "lower"

    @classmethod
    def parse(cls, value: "str | StringCasing | None") -> "StringCasing":
        """Resolve a casing from its member name or value (case-insensitive).

        Accepts ``"UPPER_CASE"``, ``"upper"``, ``"UpperCase"`` etc. so the
        same setting can be supplied from env vars and CLI flags.
        """
        if value is None:
            return cls.UNCHANGED
        if isinstance(value, StringCasing):
            return value
        token = value.strip().lower().replace("_", "").replace("-", "")
        for member in cls:
            if token in (member.name.lower().replace("_", ""), member.value):
                return member
        raise ValueError(f"Unknown key casing: {value!r}")


def apply_casing(key: str, casing: StringCasing) -> str:
    if casing is StringCasing.UPPER_CASE:
        return key.upper()
    if casing is StringCasing.LOWER_CASE:
        return key.lower()
    return key


def join_key(prefix: str, segment: str, delimiter: str) -> str:
    """Join a segment onto a prefix; an empty prefix contributes nothing."""
    if not prefix:
        return segment
    return f"{prefix}{delimiter}{segment}"


def index_key(key: str, index: int) -> str:
    # zero-based, no padding
    return f"{key}[{index}]"
