import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from pathlib import Path

import pytest

from telemetry_flattener.flattening.casing import (
    StringCasing,
    apply_casing,
    index_key,
    join_key,
)
from telemetry_flattener.flattening.type_classifier import (
    is_default_value,
    is_enumerable_type,
    is_system_type,
    render_leaf,
    zero_value,
)


class Status(Enum):
    UNKNOWN = 0
    ACTIVE = 1


class Label(Enum):
    A = "a"


@pytest.mark.parametrize(
    "tp",
    [str, bool, int, float, Decimal, datetime, date, timedelta, uuid.UUID, bytes, Path, Status],
)
def test_system_types(tp):
    assert is_system_type(tp)


@pytest.mark.parametrize("tp", [dict, list, object, type(None)])
def test_non_system_types(tp):
    assert not is_system_type(tp)


def test_enumerable_types_exclude_strings():
    assert is_enumerable_type(list)
    assert is_enumerable_type(dict)
    assert is_enumerable_type(tuple)
    assert not is_enumerable_type(str)
    assert not is_enumerable_type(bytes)
    assert not is_enumerable_type(int)


@pytest.mark.parametrize(
    "value",
    [None, 0, 0.0, False, Decimal(0), timedelta(0), uuid.UUID(int=0), datetime.min, Status.UNKNOWN],
)
def test_default_values(value):
    assert is_default_value(value)


@pytest.mark.parametrize("value", ["", "x", 1, True, Status.ACTIVE, Label.A, [], {}, object()])
def test_non_default_values(value):
    assert not is_default_value(value)


def test_render_leaf():
    assert render_leaf(None) == ""
    assert render_leaf(True) == "True"
    assert render_leaf(Status.ACTIVE) == "ACTIVE"
    assert render_leaf(1.5) == "1.5"


def test_casing_parse_and_apply():
    assert StringCasing.parse("UPPER_CASE") is StringCasing.UPPER_CASE
    assert StringCasing.parse("lower") is StringCasing.LOWER_CASE
    assert StringCasing.parse(None) is StringCasing.UNCHANGED
    with pytest.raises(ValueError):
        StringCasing.parse("camel")
    assert apply_casing("Ab:Cd", StringCasing.UPPER_CASE) == "AB:CD"
    assert apply_casing("Ab:Cd", StringCasing.UNCHANGED) == "Ab:Cd"


def test_key_joining():
    assert join_key("", "a", ":") == "a"
    assert join_key("a", "b", "/") == "a/b"
    assert index_key("xs", 3) == "xs[3]"
    assert index_key("", 0) == "[0]"


def test_enum_zero_member_lookup():
    assert zero_value(Status) is Status.UNKNOWN
    assert zero_value(Status) is zero_value(Status)
    assert not is_default_value(Label.A)
