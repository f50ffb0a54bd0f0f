"""Terminal ("system") type classification, zero values and leaf rendering.

The flattener dispatches on three questions about a value:

    is_system_type: rendered directly via its own string conversion (numbers,
        strings, booleans, dates/times, enums, UUIDs, bytes, paths)
    is_enumerable_type: expanded element-wise (sequences and mappings)
    is_default_value: equal to the zero value of its type, which renders as
        an empty string exactly like ``None``

Zero values come from an explicit table instead of runtime default
synthesis. Types without an entry (str, records, containers) only treat
``None`` as default.
"""
from __future__ import annotations

import uuid
from collections import deque
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from functools import lru_cache
from pathlib import PurePath
from typing import Any, Optional, Tuple

__all__ = [
    "SYSTEM_TYPES",
    "is_system_type",
    "is_enumerable_type",
    "is_mapping_value",
    "is_sequence_value",
    "zero_value",
    "is_default_value",
    "render_leaf",
]

SYSTEM_TYPES: Tuple[type, ...] = (
    str,
    bool,
    int,
    float,
    complex,
    Decimal,
    Fraction,
    datetime,
    date,
    time,
    timedelta,
    uuid.UUID,
    bytes,
    bytearray,
    PurePath,
    Enum,
)

_SEQUENCE_TYPES: Tuple[type, ...] = (list, tuple, set, frozenset, deque, range)

_NO_ZERO = object()

# Ordered most-specific first: bool before int, datetime before date.
_ZERO_VALUES: Tuple[Tuple[type, Any], ...] = (
    (bool, False),
    (int, 0),
    (float, 0.0),
    (complex, 0j),
    (Decimal, Decimal(0)),
    (Fraction, Fraction(0)),
    (datetime, datetime.min),
    (date, date.min),
    (time, time.min),
    (timedelta, timedelta(0)),
    (uuid.UUID, uuid.UUID(int=0)),
)

def is_system_type(tp: type) -> bool:
    try:
        return issubclass(tp, SYSTEM_TYPES)
    except TypeError:
        return False


def is_enumerable_type(tp: type) -> bool:
    """True for sequence-like and map-like types (never for str/bytes)."""
    try:
        if issubclass(tp, (str, bytes, bytearray)):
            return False
        return issubclass(tp, _SEQUENCE_TYPES) or issubclass(tp, Mapping)
    except TypeError:
        return False


def is_mapping_value(value: Any) -> bool:
    return isinstance(value, Mapping)


def is_sequence_value(value: Any) -> bool:
    if isinstance(value, (str, bytes, bytearray)) or isinstance(value, Mapping):
        return False
    return isinstance(value, _SEQUENCE_TYPES)


@lru_cache(maxsize=None)
def _enum_zero(tp: type) -> Any:
    for member in tp:  # type: ignore[attr-defined]
        if member.value == 0 and not isinstance(member.value, str):
            return member
    return _NO_ZERO


def zero_value(tp: type) -> Any:
    """Return the zero value registered for ``tp`` or a private sentinel.

    Enum types use the member whose value is ``0`` when one exists.
    """
    if issubclass(tp, Enum):
        return _enum_zero(tp)
    for candidate, zero in _ZERO_VALUES:
        if issubclass(tp, candidate):
            return zero
    return _NO_ZERO


def is_default_value(value: Any) -> bool:
    if value is None:
        return True
    tp = type(value)
    zero = zero_value(tp)
    if zero is _NO_ZERO:
        return False
    if isinstance(value, Enum):
        return value is zero
    try:
        return bool(value == zero)
    except (TypeError, ValueError):
        return False


def render_leaf(value: Optional[Any]) -> str:
    """Render a terminal value to its string form.

    ``None`` renders as an empty string and Enum members render as their
    member name; everything else uses ``str``.
    """
    if value is None:
        return ""
    if isinstance(value, Enum):
        return value.name
    return str(value)
