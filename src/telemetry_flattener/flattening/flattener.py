"""Object-to-flat-map projection.

``flatten`` walks an arbitrary value graph and returns a fresh
``Dict[str, str]`` of delimited key paths to rendered values, e.g. with the
default ``":"`` delimiter:

    Order(id=7, customer=Customer(name="Ann"), lines=[Line(sku="A1")])
    -> {"id": "7", "customer:name": "Ann", "lines[0]:sku": "A1"}

Dispatch order (mutually exclusive):
    1. None                -> {} (a None *field* renders as {key: ""})
    2. JSON token          -> normalized to dict/list/scalar, re-dispatched
    3. Mapping             -> one entry per key, nested mappings recurse
    4. Sequence            -> elements recursed under "prefix[i]"; sets are
                              indexed in rendered-value order
    5. System type leaf    -> {prefix: rendered}
    6. Record              -> own fields through the per-field handler; a
                              record without fields renders as {prefix: str(v)}

Per-field rules:
    - None or the zero value of the field's type renders as "" and is never
      expanded.
    - Mapping field values expand one level inline: entry keys join the
      enclosing prefix, not the field name. Mapping-valued entries recurse
      fully.
    - Sequence field values expand per element under "key[i]".
    - System type leaves are replaced by "*****" when redaction is on and the
      field is classified as personal data or sensitive info.
    - Anything else is a nested record and recurses under "key".

Leaves reached through a mapping entry are never redacted, only record
fields carry the declared sensitivity used for classification.

Cyclic graphs recurse until ``RecursionError``; they are not detected.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .casing import StringCasing, apply_casing, index_key, join_key
from .field_descriptors import FieldDescriptor, FieldRegistry, default_registry
from .sensitivity import (
    REDACTION_MARKER,
    DefaultSensitivityClassifier,
    SensitivityClassifier,
    is_sensitive,
)
from .tokens import is_token, normalize_token
from .type_classifier import (
    is_default_value,
    is_mapping_value,
    is_sequence_value,
    is_system_type,
    render_leaf,
)

logger = logging.getLogger(__name__)

__all__ = ["FlatMap", "FlattenOptions", "flatten"]

FlatMap = Dict[str, str]

DEFAULT_DELIMITER = ":"


@dataclass(frozen=True)
class FlattenOptions:
    casing: StringCasing
    redact: bool
    delimiter: str
    classifier: SensitivityClassifier
    registry: FieldRegistry

    def key(self, raw: str) -> str:
        return apply_casing(raw, self.casing)


def flatten(
    value: Any,
    casing: StringCasing = StringCasing.UNCHANGED,
    redact: bool = False,
    delimiter: str = DEFAULT_DELIMITER,
    key_prefix: str = "",
    *,
    classifier: Optional[SensitivityClassifier] = None,
    registry: Optional[FieldRegistry] = None,
) -> FlatMap:
    """Flatten ``value`` into a single-level map of key path -> string.

    Args:
        value: Any value (None, leaf, mapping, sequence, record, JSON token).
        casing: Casing applied to every fully joined key.
        redact: Replace sensitive record-field leaves with ``"*****"``.
        delimiter: Separator between path segments (non-empty).
        key_prefix: Scope every emitted key under this prefix.
        classifier: Sensitivity classifier (default reads field markers).
        registry: Field descriptor registry (default module registry).

    Returns:
        A new dict owned by the caller; the source value is not mutated.

    Raises:
        ValueError: If ``delimiter`` is empty.
    """
    if not delimiter:
        raise ValueError("delimiter must be a non-empty string")
    opts = FlattenOptions(
        casing=StringCasing.parse(casing),
        redact=redact,
        delimiter=delimiter,
        classifier=classifier or DefaultSensitivityClassifier(),
        registry=registry or default_registry,
    )
    result = _flatten_value(value, key_prefix, opts)
    logger.debug("Flattened %s into %d entries", type(value).__name__, len(result))
    return result


def _flatten_value(value: Any, prefix: str, opts: FlattenOptions) -> FlatMap:
    if value is None:
        return {}
    if is_token(value):
        return _flatten_value(normalize_token(value), prefix, opts)
    if is_mapping_value(value):
        return _flatten_mapping(value, prefix, opts)
    if is_sequence_value(value):
        return _flatten_sequence(value, prefix, opts)
    if is_system_type(type(value)):
        return {prefix: render_leaf(value)}
    return _flatten_record(value, prefix, opts)


def _flatten_mapping(source: Mapping[Any, Any], prefix: str, opts: FlattenOptions) -> FlatMap:
    out: FlatMap = {}
    for entry_key, entry_value in source.items():
        name = render_leaf(entry_key)
        item_key = opts.key(join_key(prefix, name, opts.delimiter))
        if is_mapping_value(entry_value):
            out.update(_flatten_value(entry_value, item_key, opts))
        elif is_sequence_value(entry_value):
            out.update(_flatten_field(prefix, name, entry_value, None, opts))
        else:
            out[item_key] = render_leaf(entry_value)
    return out


def _flatten_sequence(items: Any, prefix: str, opts: FlattenOptions) -> FlatMap:
    if isinstance(items, (set, frozenset)):
        # unordered: index by rendered value so keys do not depend on hash order
        items = sorted(items, key=render_leaf)
    out: FlatMap = {}
    for index, item in enumerate(items):
        out.update(_flatten_value(item, opts.key(index_key(prefix, index)), opts))
    return out


def _flatten_record(record: Any, prefix: str, opts: FlattenOptions) -> FlatMap:
    descriptors = opts.registry.describe(record)
    if not descriptors:
        return {prefix: str(record)}
    out: FlatMap = {}
    for descriptor in descriptors:
        out.update(_flatten_field(prefix, descriptor.name, descriptor.get(record), descriptor, opts))
    return out


def _flatten_field(
    prefix: str,
    name: str,
    value: Any,
    descriptor: Optional[FieldDescriptor],
    opts: FlattenOptions,
) -> FlatMap:
    key = opts.key(join_key(prefix, name, opts.delimiter))
    if is_default_value(value):
        return {key: ""}
    if is_token(value):
        value = normalize_token(value)
        if value is None:
            return {key: ""}
    if is_mapping_value(value):
        out: FlatMap = {}
        for entry_key, entry_value in value.items():
            item_key = opts.key(join_key(prefix, render_leaf(entry_key), opts.delimiter))
            if is_mapping_value(entry_value):
                out.update(_flatten_mapping(entry_value, item_key, opts))
            elif is_sequence_value(entry_value):
                out.update(_flatten_field(prefix, render_leaf(entry_key), entry_value, None, opts))
            else:
                out[item_key] = render_leaf(entry_value)
        return out
    if is_sequence_value(value):
        return _flatten_sequence(value, key, opts)
    if is_system_type(type(value)):
        if opts.redact and is_sensitive(opts.classifier, descriptor):
            return {key: REDACTION_MARKER}
        return {key: render_leaf(value)}
    return _flatten_record(value, key, opts)
