"""Flattening of records, mappings, sequences and leaves into flat key maps.

Covers the key path grammar (delimiter joins, ``[i]`` indices), default value
rendering, casing, redaction of sensitive record fields and the declared-only
field rule for inherited records.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

import pytest
from pydantic import BaseModel, Field

from telemetry_flattener.flattening import (
    REDACTION_MARKER,
    FieldDescriptor,
    FieldRegistry,
    PersonalData,
    Sensitivity,
    StringCasing,
    flatten,
    personal_data,
    sensitive_info,
)
from telemetry_flattener.flattening.tokens import decode_json


@dataclass
class SubItem:
    PropE: str = ""
    PropF: List[int] = field(default_factory=list)


@dataclass
class Test:
    __test__ = False  # not a pytest test class

    PropA: str = ""
    PropB: int = 0
    PropC: bool = False
    PropD: Optional[SubItem] = None


def _sample() -> Test:
    return Test(
        PropA="propA",
        PropB=1,
        PropC=True,
        PropD=SubItem(PropE="propE", PropF=[1, 2, 3]),
    )


class Color(Enum):
    NONE = 0
    RED = 1


@dataclass
class Customer:
    name: str
    email: Annotated[str, PersonalData] = ""
    token: str = field(default="", metadata={"sensitivity": Sensitivity.SENSITIVE_INFO})


@sensitive_info
@dataclass
class Credentials:
    user: str = ""
    password: str = ""
    scopes: List[str] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass
class Base:
    inherited: str = "base"


@dataclass
class Derived(Base):
    own: str = "derived"


@personal_data
@dataclass
class MarkedBase:
    secret: str = "s"


@dataclass
class UnmarkedChild(MarkedBase):
    visible: str = "v"


class Opaque:
    def __str__(self) -> str:
        return "opaque-value"


class Person(BaseModel):
    name: str
    email: Annotated[str, PersonalData] = ""
    ssn: str = Field(default="", json_schema_extra={"sensitivity": "sensitive_info"})


class Employee(Person):
    employee_id: int = 0


@dataclass
class Holder:
    attrs: Dict[str, Any] = field(default_factory=dict)
    color: Color = Color.NONE


def test_record_projection_matches_expected_entries():
    result = flatten(_sample())
    assert result == {
        "PropA": "propA",
        "PropB": "1",
        "PropC": "True",
        "PropD:PropE": "propE",
        "PropD:PropF[0]": "1",
        "PropD:PropF[1]": "2",
        "PropD:PropF[2]": "3",
    }
    assert len(result) == 7


def test_field_order_follows_declaration():
    assert list(flatten(_sample()))[:3] == ["PropA", "PropB", "PropC"]


def test_none_yields_empty_map():
    assert flatten(None) == {}
    assert flatten(None, key_prefix="x") == {}


def test_leaf_at_top_level_uses_prefix_as_key():
    assert flatten("hello") == {"": "hello"}
    assert flatten(42, key_prefix="answer") == {"answer": "42"}
    # no default check at the top level
    assert flatten(0) == {"": "0"}


def test_top_level_sequence_indexes_under_prefix():
    assert flatten([1, "a"], key_prefix="items") == {"items[0]": "1", "items[1]": "a"}
    assert flatten((True,)) == {"[0]": "True"}


def test_null_and_zero_fields_render_empty():
    result = flatten(Test())
    assert result == {"PropA": "", "PropB": "", "PropC": "", "PropD": ""}


def test_enum_zero_member_is_default_and_others_render_by_name():
    assert flatten(Holder())["color"] == ""
    assert flatten(Holder(color=Color.RED))["color"] == "RED"


def test_empty_field_sequence_emits_nothing():
    result = flatten(SubItem(PropE="e"))
    assert result == {"PropE": "e"}


def test_delimiter_substitution():
    result = flatten(_sample(), delimiter=".")
    assert "PropD.PropE" in result
    assert "PropD.PropF[2]" in result
    assert not any(":" in k for k in result)


def test_empty_delimiter_rejected():
    with pytest.raises(ValueError):
        flatten(_sample(), delimiter="")


@pytest.mark.parametrize(
    "casing,transform",
    [
        (StringCasing.UPPER_CASE, str.upper),
        (StringCasing.LOWER_CASE, str.lower),
        (StringCasing.UNCHANGED, lambda k: k),
    ],
)
def test_casing_applies_to_full_keys(casing, transform):
    plain = flatten(_sample())
    cased = flatten(_sample(), casing=casing)
    assert cased == {transform(k): v for k, v in plain.items()}
    # values are never cased
    assert cased[transform("PropA")] == "propA"


def test_casing_is_idempotent():
    once = flatten(_sample(), casing=StringCasing.UPPER_CASE)
    again = flatten(once, casing=StringCasing.UPPER_CASE)
    assert again == once


def test_casing_accepts_string_names():
    assert "PROPA" in flatten(_sample(), casing="upper")
    assert "propa" in flatten(_sample(), casing="LOWER_CASE")


def test_key_prefix_scopes_record_fields():
    result = flatten(SubItem(PropE="e", PropF=[7]), key_prefix="item")
    assert result == {"item:PropE": "e", "item:PropF[0]": "7"}


def test_redaction_of_annotated_and_metadata_fields():
    c = Customer(name="Ann", email="ann@example.com", token="abc")
    assert flatten(c, redact=True) == {
        "name": "Ann",
        "email": REDACTION_MARKER,
        "token": REDACTION_MARKER,
    }


def test_no_redaction_without_flag():
    c = Customer(name="Ann", email="ann@example.com", token="abc")
    assert flatten(c) == {"name": "Ann", "email": "ann@example.com", "token": "abc"}


def test_empty_string_is_not_a_default_and_is_masked():
    # strings only treat None as their default value
    assert flatten(Customer(name="Ann"), redact=True)["email"] == REDACTION_MARKER
    assert flatten(Customer(name="Ann", email=None), redact=True)["email"] == ""


def test_class_marker_redacts_leaves_but_not_collections():
    creds = Credentials(
        user="root",
        password="hunter2",
        scopes=["read"],
        labels={"env": "prod"},
    )
    result = flatten(creds, redact=True)
    assert result["user"] == REDACTION_MARKER
    assert result["password"] == REDACTION_MARKER
    # sequence elements and mapping entries carry no field descriptor
    assert result["scopes[0]"] == "read"
    assert result["env"] == "prod"


def test_class_marker_is_not_inherited():
    result = flatten(UnmarkedChild(), redact=True)
    assert result == {"visible": "v"}


def test_mapping_leaves_are_never_redacted():
    data = {"password": "hunter2", "nested": {"email": "a@b.c"}}
    assert flatten(data, redact=True) == {"password": "hunter2", "nested:email": "a@b.c"}


def test_nested_mappings_and_sequences_inside_mapping():
    data = {"a": {"b": {"c": 1}}, "xs": [1, {"y": 2}], "n": None}
    assert flatten(data) == {
        "a:b:c": "1",
        "xs[0]": "1",
        "xs[1]:y": "2",
        "n": "",
    }


def test_mapping_field_entries_join_the_enclosing_prefix():
    holder = Holder(attrs={"region": "eu", "limits": {"cpu": 2}, "zones": ["a", "b"]})
    result = flatten(holder)
    assert result["region"] == "eu"
    assert result["limits:cpu"] == "2"
    assert result["zones[0]"] == "a"
    assert result["zones[1]"] == "b"
    assert not any(k.startswith("attrs") for k in result)


def test_mapping_field_of_nested_record_uses_record_prefix():
    result = flatten(Holder(attrs={"region": "eu"}), key_prefix="h")
    assert result == {"h:region": "eu", "h:color": ""}


def test_mapping_keys_are_stringified():
    assert flatten({1: "one", Color.RED: "r"}) == {"1": "one", "RED": "r"}


def test_only_declared_fields_are_visited():
    assert flatten(Derived()) == {"own": "derived"}


def test_record_without_fields_renders_via_str():
    assert flatten(Opaque()) == {"": "opaque-value"}
    assert flatten({"thing": Opaque()}) == {"thing": "opaque-value"}


def test_plain_object_public_attributes():
    class Plain:
        def __init__(self) -> None:
            self.visible = 3
            self._hidden = 4

    assert flatten(Plain()) == {"visible": "3"}


def test_pydantic_model_fields_and_markers():
    p = Person(name="Bo", email="bo@example.com", ssn="123")
    assert flatten(p, redact=True) == {
        "name": "Bo",
        "email": REDACTION_MARKER,
        "ssn": REDACTION_MARKER,
    }
    assert flatten(p)["ssn"] == "123"


def test_pydantic_subclass_only_visits_own_fields():
    e = Employee(name="Bo", employee_id=7)
    assert flatten(e) == {"employee_id": "7"}


def test_json_tokens_are_normalized():
    token = decode_json('{"a": {"b": [1, true]}, "n": null, "s": "x"}')
    assert flatten(token, delimiter=".") == {
        "a.b[0]": "1",
        "a.b[1]": "True",
        "n": "",
        "s": "x",
    }


def test_manual_registry_descriptors():
    class Account:
        __slots__ = ("first", "last")

        def __init__(self, first: str, last: str) -> None:
            self.first = first
            self.last = last

    registry = FieldRegistry()
    registry.register(
        Account,
        [
            FieldDescriptor("FullName", getter=lambda a: f"{a.first} {a.last}", declared_type=str),
            FieldDescriptor.attribute("last", declared_type=str, sensitivity=Sensitivity.PERSONAL_DATA),
        ],
    )
    account = Account("Ada", "Lovelace")
    assert flatten(account, registry=registry) == {"FullName": "Ada Lovelace", "last": "Lovelace"}
    assert flatten(account, redact=True, registry=registry)["last"] == REDACTION_MARKER


def test_custom_classifier_is_consulted():
    class EverythingSensitive:
        def is_personal_data(self, descriptor):
            return True

        def is_sensitive_info(self, descriptor):
            return False

    result = flatten(SubItem(PropE="e", PropF=[1]), redact=True, classifier=EverythingSensitive())
    assert result == {"PropE": REDACTION_MARKER, "PropF[0]": "1"}


def test_input_is_not_mutated_and_result_is_fresh():
    source = {"a": [1, 2], "b": {"c": "d"}}
    snapshot = copy.deepcopy(source)
    first = flatten(source)
    first["a[0]"] = "changed"
    assert source == snapshot
    assert flatten(source)["a[0]"] == "1"


def test_flatten_is_deterministic():
    assert flatten(_sample()) == flatten(_sample())


def test_set_elements_are_indexed_in_rendered_order():
    assert flatten({"gamma", "alpha", "beta"}) == {"[0]": "alpha", "[1]": "beta", "[2]": "gamma"}
    assert flatten(Holder(attrs={"tags": frozenset({"b", "a"})})) == {
        "tags[0]": "a",
        "tags[1]": "b",
        "color": "",
    }


def test_unresolvable_hint_keeps_markers_on_other_fields(caplog):
    @dataclass
    class Address:
        city: str = ""

    @dataclass
    class User:
        email: Annotated[str, PersonalData] = ""
        home: Optional[Address] = None

    with caplog.at_level(logging.WARNING):
        result = flatten(User(email="ann@example.com", home=Address(city="Oslo")), redact=True)
    assert result == {"email": REDACTION_MARKER, "home:city": "Oslo"}
    assert "home" in caplog.text
