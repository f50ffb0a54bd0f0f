"""Field descriptors: the record introspection layer used by the flattener.

A record is any value whose fields can be enumerated as an ordered sequence
of ``FieldDescriptor`` objects. Descriptors are resolved by the
``FieldRegistry`` using, in order:

1. An explicit registration (``register_fields``) for the exact type.
2. Dataclass fields declared on the class itself.
3. Pydantic model fields declared on the class itself.
4. Public instance attributes of plain objects (``vars(obj)``).

Only fields declared by the value's own class are described; fields inherited
from a base class are not visited. Types resolved through strategies 1-3 are
cached per class.

Sensitivity markers:
    Annotated[str, PersonalData]           # dataclass or pydantic field
    field(metadata={"sensitivity": Sensitivity.SENSITIVE_INFO})
    FieldDescriptor(..., sensitivity=Sensitivity.PERSONAL_DATA)
    @personal_data / @sensitive_info       # whole declaring class
"""
from __future__ import annotations

import dataclasses
import inspect
import logging
import threading
import typing
from dataclasses import dataclass
from enum import Enum
from operator import attrgetter
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

logger = logging.getLogger(__name__)

__all__ = [
    "Sensitivity",
    "SensitivityMarker",
    "PersonalData",
    "SensitiveInfo",
    "FieldDescriptor",
    "FieldRegistry",
    "default_registry",
    "register_fields",
    "describe_fields",
    "personal_data",
    "sensitive_info",
    "type_sensitivity",
]

SENSITIVITY_METADATA_KEY = "sensitivity"
_TYPE_SENSITIVITY_ATTR = "__telemetry_sensitivity__"


class Sensitivity(str, Enum):
    NONE = "none"
    PERSONAL_DATA = "personal_data"
    SENSITIVE_INFO = "sensitive_info"


class SensitivityMarker:
    """``Annotated`` metadata object tagging a field's sensitivity."""

    __slots__ = ("sensitivity",)

    def __init__(self, sensitivity: Sensitivity) -> None:
        self.sensitivity = sensitivity

    def __repr__(self) -> str:
        return f"SensitivityMarker({self.sensitivity.value})"


PersonalData = SensitivityMarker(Sensitivity.PERSONAL_DATA)
SensitiveInfo = SensitivityMarker(Sensitivity.SENSITIVE_INFO)


@dataclass(frozen=True)
class FieldDescriptor:
    """One reflected field of a record type."""

    name: str
    getter: Callable[[Any], Any]
    declared_type: Any = None
    sensitivity: Sensitivity = Sensitivity.NONE
    declaring_type: Optional[type] = None

    def get(self, instance: Any) -> Any:
        return self.getter(instance)

    @classmethod
    def attribute(
        cls,
        name: str,
        declared_type: Any = None,
        sensitivity: Sensitivity = Sensitivity.NONE,
        declaring_type: Optional[type] = None,
    ) -> "FieldDescriptor":
        """Descriptor reading ``getattr(instance, name)``."""
        return cls(
            name=name,
            getter=attrgetter(name),
            declared_type=declared_type,
            sensitivity=sensitivity,
            declaring_type=declaring_type,
        )


def _mark_type(sensitivity: Sensitivity) -> Callable[[type], type]:
    def decorator(cls: type) -> type:
        setattr(cls, _TYPE_SENSITIVITY_ATTR, sensitivity)
        return cls

    return decorator


personal_data = _mark_type(Sensitivity.PERSONAL_DATA)
personal_data.__doc__ = "Class decorator: every field of the class holds personal data."
sensitive_info = _mark_type(Sensitivity.SENSITIVE_INFO)
sensitive_info.__doc__ = "Class decorator: every field of the class is sensitive."


def type_sensitivity(tp: Optional[type]) -> Sensitivity:
    if tp is None:
        return Sensitivity.NONE
    # own attribute only; a marked base class does not mark its subclasses
    return tp.__dict__.get(_TYPE_SENSITIVITY_ATTR, Sensitivity.NONE)


def _sensitivity_from_metadata(items: Sequence[Any]) -> Sensitivity:
    for item in items:
        if isinstance(item, SensitivityMarker):
            return item.sensitivity
        if isinstance(item, Sensitivity):
            return item
    return Sensitivity.NONE


def _own_annotations(cls: type) -> Dict[str, Any]:
    return dict(inspect.get_annotations(cls))


def _resolve_annotation(cls: type, name: str, raw: Any) -> Any:
    """Evaluate one postponed annotation with ``Annotated`` extras kept.

    Each field is resolved on its own so an unresolvable hint (typically a
    type local to a function) only loses that field's declared type, not the
    sensitivity markers of its neighbours.
    """
    if not isinstance(raw, str):
        return raw
    holder = type(cls.__name__, (), {"__annotations__": {name: raw}, "__module__": cls.__module__})
    try:
        return typing.get_type_hints(holder, localns=dict(vars(cls)), include_extras=True)[name]
    except (NameError, TypeError, AttributeError, SyntaxError):
        logger.warning(
            "Could not resolve type hint %r for %s.%s; sensitivity markers on it are ignored",
            raw,
            cls.__qualname__,
            name,
        )
        return raw


def _resolved_hints(cls: type) -> Dict[str, Any]:
    return {name: _resolve_annotation(cls, name, raw) for name, raw in _own_annotations(cls).items()}


def _split_annotated(hint: Any) -> Tuple[Any, Tuple[Any, ...]]:
    if typing.get_origin(hint) is typing.Annotated:
        args = typing.get_args(hint)
        return args[0], tuple(args[1:])
    return hint, ()


def _describe_dataclass(cls: type) -> List[FieldDescriptor]:
    own = _own_annotations(cls)
    hints = _resolved_hints(cls)
    out: List[FieldDescriptor] = []
    for f in dataclasses.fields(cls):
        if f.name not in own:
            continue
        declared, extras = _split_annotated(hints.get(f.name, f.type))
        sensitivity = _sensitivity_from_metadata(extras)
        meta_value = f.metadata.get(SENSITIVITY_METADATA_KEY)
        if sensitivity is Sensitivity.NONE and meta_value is not None:
            sensitivity = Sensitivity(meta_value)
        out.append(
            FieldDescriptor.attribute(
                f.name, declared_type=declared, sensitivity=sensitivity, declaring_type=cls
            )
        )
    return out


def _describe_pydantic(cls: type) -> List[FieldDescriptor]:
    own = _own_annotations(cls)
    out: List[FieldDescriptor] = []
    for name, info in cls.model_fields.items():  # type: ignore[attr-defined]
        if name not in own:
            continue
        sensitivity = _sensitivity_from_metadata(info.metadata)
        extra = info.json_schema_extra
        if (
            sensitivity is Sensitivity.NONE
            and isinstance(extra, dict)
            and extra.get(SENSITIVITY_METADATA_KEY) is not None
        ):
            sensitivity = Sensitivity(extra[SENSITIVITY_METADATA_KEY])
        out.append(
            FieldDescriptor.attribute(
                name, declared_type=info.annotation, sensitivity=sensitivity, declaring_type=cls
            )
        )
    return out


def _describe_plain(value: Any) -> List[FieldDescriptor]:
    try:
        attrs = vars(value)
    except TypeError:
        return []
    cls = type(value)
    return [
        FieldDescriptor.attribute(name, declared_type=type(attr), declaring_type=cls)
        for name, attr in attrs.items()
        if not name.startswith("_")
    ]


class FieldRegistry:
    """Resolves and caches field descriptors per record type."""

    def __init__(self) -> None:
        self._explicit: Dict[type, Tuple[FieldDescriptor, ...]] = {}
        self._cache: Dict[type, Tuple[FieldDescriptor, ...]] = {}
        self._lock = threading.RLock()

    def register(self, cls: type, descriptors: Sequence[FieldDescriptor]) -> None:
        """Register explicit descriptors for ``cls`` (exact type match)."""
        normalized = tuple(
            d if d.declaring_type is not None else dataclasses.replace(d, declaring_type=cls)
            for d in descriptors
        )
        with self._lock:
            self._explicit[cls] = normalized
            self._cache.pop(cls, None)
        logger.debug("Registered %d field descriptor(s) for %s", len(normalized), cls.__name__)

    def unregister(self, cls: type) -> None:
        with self._lock:
            self._explicit.pop(cls, None)
            self._cache.pop(cls, None)

    def is_registered(self, cls: type) -> bool:
        return cls in self._explicit

    def describe(self, value: Any) -> Tuple[FieldDescriptor, ...]:
        cls = type(value)
        cached = self._cache.get(cls)
        if cached is not None:
            return cached
        if cls in self._explicit:
            return self._explicit[cls]
        if dataclasses.is_dataclass(cls):
            described = tuple(_describe_dataclass(cls))
        elif isinstance(value, BaseModel):
            described = tuple(_describe_pydantic(cls))
        else:
            # plain objects: instance attributes differ per instance, no caching
            return tuple(_describe_plain(value))
        with self._lock:
            self._cache[cls] = described
        return described


default_registry = FieldRegistry()


def register_fields(cls: type, descriptors: Sequence[FieldDescriptor]) -> None:
    default_registry.register(cls, descriptors)


def describe_fields(value: Any, registry: Optional[FieldRegistry] = None) -> Tuple[FieldDescriptor, ...]:
    return (registry or default_registry).describe(value)
