"""Dynamically-typed JSON nodes and their normalization.

Decoded JSON is first wrapped in a small tagged union so that callers can
hand the flattener a parsed document without the flattener having to guess
whether a ``dict`` came from a wire payload or from application code:

    ObjectToken(members)  -> dict of normalized members
    ArrayToken(items)     -> list of normalized items
    ScalarToken(value)    -> the scalar itself (str, int, float, bool, None)

``normalize_token`` walks the tree recursively and returns plain Python
values; member order is preserved.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

__all__ = [
    "ObjectToken",
    "ArrayToken",
    "ScalarToken",
    "Token",
    "is_token",
    "to_token",
    "decode_json",
    "normalize_token",
]


@dataclass(frozen=True)
class ObjectToken:
    members: Dict[str, "Token"] = field(default_factory=dict)


@dataclass(frozen=True)
class ArrayToken:
    items: List["Token"] = field(default_factory=list)


@dataclass(frozen=True)
class ScalarToken:
    value: Any = None


Token = Union[ObjectToken, ArrayToken, ScalarToken]

_TOKEN_TYPES = (ObjectToken, ArrayToken, ScalarToken)


def is_token(value: Any) -> bool:
    return isinstance(value, _TOKEN_TYPES)


def to_token(value: Any) -> Token:
    """Wrap an already-decoded JSON value (dict/list/scalar) as a token tree."""
    if is_token(value):
        return value
    if isinstance(value, dict):
        return ObjectToken({str(k): to_token(v) for k, v in value.items()})
    if isinstance(value, list):
        return ArrayToken([to_token(v) for v in value])
    return ScalarToken(value)


def decode_json(text: Union[str, bytes, bytearray]) -> Token:
    """Parse a JSON document into a token tree.

    Raises:
        json.JSONDecodeError: When ``text`` is not valid JSON.
    """
    return to_token(json.loads(text))


def normalize_token(token: Token) -> Any:
    if isinstance(token, ObjectToken):
        return {k: normalize_token(v) for k, v in token.members.items()}
    if isinstance(token, ArrayToken):
        return [normalize_token(v) for v in token.items]
    return token.value
