"""Classify decoded document values into inferred types."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime
from importlib import import_module
from typing import Any, Dict, Optional

from bson import Int64, ObjectId
from bson.binary import Binary
from bson.datetime_ms import DatetimeMS
from bson.dbref import DBRef
from bson.timestamp import Timestamp

from .errors import ConfigError, UnclassifiableValueError
from .lattice import NIL, Kind, Mixed, Primitive, Sequence, Struct, Type, is_nil, merge

DBREF_KEYS = ("$db", "$ref", "$id")

DEFAULT_SCALAR_KINDS: dict[type, Kind] = {
    bool: Kind.BOOL,
    int: Kind.INT64,
    Int64: Kind.INT64,
    float: Kind.DOUBLE,
    str: Kind.STRING,
    datetime: Kind.TIMESTAMP,
    DatetimeMS: Kind.TIMESTAMP,
    Timestamp: Kind.TIMESTAMP,
    bytes: Kind.BINARY,
    Binary: Kind.BINARY,
    uuid.UUID: Kind.BINARY,
    ObjectId: Kind.OBJECT_ID,
    DBRef: Kind.DBREF,
}


class ScalarRegistry:
    """Mapping from Python scalar classes to primitive kinds.

    Lookups walk the value's MRO, so the most specific registration wins:
    ``bool`` resolves before ``int`` and ``Binary`` before ``bytes``.
    """

    def __init__(self, kinds: Optional[Mapping[type, Kind]] = None) -> None:
        self.kinds: Dict[type, Kind] = dict(DEFAULT_SCALAR_KINDS if kinds is None else kinds)

    def register(self, python_type: type, kind: Kind) -> None:
        """Register ``python_type`` values as primitives of ``kind``."""

        self.kinds[python_type] = kind

    def register_entrypoint(self, dotted_path: str, kind: Kind | str) -> None:
        """Register a class given by dotted path, e.g. ``numpy.int32``."""

        if isinstance(kind, str):
            try:
                kind = Kind(kind)
            except ValueError as exc:
                raise ConfigError(f"unknown primitive kind {kind!r}", path=dotted_path) from exc
        python_type = self.load_entrypoint(dotted_path)
        if not isinstance(python_type, type):
            raise ConfigError("scalar type entry does not name a class", path=dotted_path)
        self.register(python_type, kind)

    def load_entrypoint(self, dotted_path: str) -> Any:
        """Dynamically load an attribute via dotted path."""

        module_name, _, attr = dotted_path.rpartition(".")
        if not module_name:
            raise ConfigError("expected a dotted path like 'package.Class'", path=dotted_path)
        try:
            module = import_module(module_name)
            return getattr(module, attr)
        except (ImportError, AttributeError) as exc:
            raise ConfigError(f"cannot import scalar type: {exc}", path=dotted_path) from exc

    def lookup(self, value: Any) -> Optional[Kind]:
        for cls in type(value).__mro__:
            kind = self.kinds.get(cls)
            if kind is not None:
                return kind
        return None

    def copy(self) -> "ScalarRegistry":
        return ScalarRegistry(self.kinds)


registry = ScalarRegistry()


def classify(value: Any, scalars: Optional[ScalarRegistry] = None) -> Type:
    """Return the inferred type of one decoded value, recursing into containers.

    Raises :class:`UnclassifiableValueError` for values outside the supported
    data model instead of guessing.
    """

    scalars = registry if scalars is None else scalars

    if value is None:
        return NIL

    kind = scalars.lookup(value)
    if kind is not None:
        return Primitive(kind)

    if isinstance(value, Mapping):
        return _classify_mapping(value, scalars)

    if isinstance(value, (list, tuple)):
        return _classify_sequence(value, scalars)

    raise UnclassifiableValueError(value)


def is_dbref_mapping(value: Mapping[str, Any]) -> bool:
    """True when all document-reference keys are present and non-null."""

    return all(value.get(key) is not None for key in DBREF_KEYS)


def _classify_mapping(value: Mapping[Any, Any], scalars: ScalarRegistry) -> Type:
    if is_dbref_mapping(value):
        return Primitive(Kind.DBREF)

    fields: dict[str, Type] = {}
    for key, child in value.items():
        child_type = classify(child, scalars)
        if is_nil(child_type):
            continue
        fields[str(key)] = child_type
    return Struct(fields)


def _classify_sequence(value: list[Any] | tuple[Any, ...], scalars: ScalarRegistry) -> Sequence:
    element: Type = NIL
    for item in value:
        item_type = classify(item, scalars)
        if is_nil(item_type):
            continue
        if isinstance(element, Mixed) and isinstance(item_type, Struct):
            # fold into the existing struct alternative, as separate records would
            element = merge(Sequence(element), Sequence(item_type)).element
        else:
            element = merge(element, item_type)
    return Sequence(element)
