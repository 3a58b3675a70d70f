"""Inferred type variants and the merge rules defined over them."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union


class Kind(Enum):
    """Scalar kinds a document field can hold."""

    BINARY = "binary"
    BOOL = "bool"
    DOUBLE = "double"
    INT32 = "int32"
    INT64 = "int64"
    OBJECT_ID = "object_id"
    STRING = "string"
    TIMESTAMP = "timestamp"
    DBREF = "dbref"


@dataclass(frozen=True, slots=True)
class NilType:
    """Absence of type information: only nulls or empty sequences were seen."""

    def __repr__(self) -> str:
        return "NIL"


NIL = NilType()


@dataclass(frozen=True, slots=True)
class Primitive:
    kind: Kind


@dataclass(frozen=True, slots=True)
class Struct:
    """Record shape keyed by source field name.

    The field mapping is exposed read-only; merging produces a new struct.
    Equality ignores field order.
    """

    fields: Mapping[str, "Type"] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Struct):
            return NotImplemented
        return dict(self.fields) == dict(other.fields)


@dataclass(frozen=True, slots=True)
class Sequence:
    element: "Type" = NIL


@dataclass(frozen=True, slots=True, eq=False)
class Mixed:
    """Irreducible union of two or more distinct alternatives.

    Alternatives keep the order in which they were first observed. Equality
    treats them as a set.
    """

    alternatives: tuple["Type", ...]

    def __post_init__(self) -> None:
        alternatives = tuple(self.alternatives)
        if len(alternatives) < 2:
            raise ValueError("mixed type needs at least two alternatives")
        for index, alternative in enumerate(alternatives):
            if is_nil(alternative):
                raise ValueError("mixed type cannot hold a nil alternative")
            if isinstance(alternative, Mixed):
                raise ValueError("mixed type cannot nest another mixed type")
            if alternative in alternatives[:index]:
                raise ValueError(f"duplicate alternative {alternative!r}")
        object.__setattr__(self, "alternatives", alternatives)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mixed):
            return NotImplemented
        return len(self.alternatives) == len(other.alternatives) and all(
            alternative in other.alternatives for alternative in self.alternatives
        )


Type = Union[NilType, Primitive, Struct, Sequence, Mixed]


BINARY = Primitive(Kind.BINARY)
BOOL = Primitive(Kind.BOOL)
DOUBLE = Primitive(Kind.DOUBLE)
INT32 = Primitive(Kind.INT32)
INT64 = Primitive(Kind.INT64)
OBJECT_ID = Primitive(Kind.OBJECT_ID)
STRING = Primitive(Kind.STRING)
TIMESTAMP = Primitive(Kind.TIMESTAMP)
DBREF = Primitive(Kind.DBREF)

_INTEGER_KINDS = frozenset({Kind.INT32, Kind.INT64})


def is_nil(value: Type) -> bool:
    """Return True for NIL and for sequences that never held a value."""

    if isinstance(value, NilType):
        return True
    if isinstance(value, Sequence):
        return is_nil(value.element)
    return False


def merge(left: Type, right: Type) -> Type:
    """Join two inferred types into the narrowest type covering both.

    The left operand's variant selects the merge routine. Neither operand is
    modified; callers must use the returned value.
    """

    if is_nil(left):
        return right
    if is_nil(right):
        return left
    if isinstance(left, Mixed):
        return _merge_into_mixed(left, right)

    if isinstance(left, Primitive) and isinstance(right, Primitive):
        widened = _widen(left.kind, right.kind)
        if widened is not None:
            return widened
    elif isinstance(left, Struct) and isinstance(right, Struct):
        return _merge_structs(left, right)
    elif isinstance(left, Sequence) and isinstance(right, Sequence):
        merged = _merge_sequences(left, right)
        if merged is not None:
            return merged

    if left == right:
        return left
    return Mixed(_append_alternatives((left,), right))


def merge_all(values: Iterable[Type], initial: Type = NIL) -> Type:
    """Fold ``values`` into ``initial`` from left to right."""

    result = initial
    for value in values:
        result = merge(result, value)
    return result


def _widen(left: Kind, right: Kind) -> Optional[Primitive]:
    if left in _INTEGER_KINDS and right is Kind.DOUBLE:
        return DOUBLE
    if right in _INTEGER_KINDS and left is Kind.DOUBLE:
        return DOUBLE
    return None


def _merge_structs(left: Struct, right: Struct) -> Struct:
    fields = dict(left.fields)
    for name, field_type in right.fields.items():
        if name in fields:
            fields[name] = merge(fields[name], field_type)
        else:
            fields[name] = field_type
    return Struct(fields)


def _merge_sequences(left: Sequence, right: Sequence) -> Optional[Sequence]:
    if left.element == right.element:
        return left
    if not isinstance(right.element, Struct):
        return None

    if isinstance(left.element, Struct):
        return Sequence(_merge_structs(left.element, right.element))

    if isinstance(left.element, Mixed):
        alternatives = list(left.element.alternatives)
        for index, alternative in enumerate(alternatives):
            if isinstance(alternative, Struct):
                alternatives[index] = _merge_structs(alternative, right.element)
                break
        else:
            alternatives.append(right.element)
        # a widened struct alternative may now coincide with another one
        deduplicated = _append_alternatives((), *alternatives)
        if len(deduplicated) == 1:
            return Sequence(deduplicated[0])
        return Sequence(Mixed(deduplicated))

    return None


def _merge_into_mixed(left: Mixed, right: Type) -> Mixed:
    alternatives = _append_alternatives(left.alternatives, right)
    if len(alternatives) == len(left.alternatives):
        return left
    return Mixed(alternatives)


def _append_alternatives(existing: tuple[Type, ...], *candidates: Type) -> tuple[Type, ...]:
    result = list(existing)
    for candidate in candidates:
        flattened = candidate.alternatives if isinstance(candidate, Mixed) else (candidate,)
        for alternative in flattened:
            if alternative not in result:
                result.append(alternative)
    return tuple(result)
