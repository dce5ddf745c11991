"""Value model for records ingested by infergraph.

Record field data is represented as a closed sum type rather than raw
Python objects so that the merger and the type builder can dispatch on
an explicit ``ValueKind`` tag instead of probing ``isinstance`` on
arbitrary data.  Every node is a frozen dataclass; equality is
structural.

Each value may carry an arena ``handle`` assigned by the record store at
ingestion time.  The handle is excluded from equality and hashing: it is
provenance, not data.  ``RecordStore.resolve_owning_record`` maps a
handle back to the id of the record that contains the value.

The merger adds one more member to the family, the ``INVALID``
sentinel, which marks a field whose observed values could not be
unified.
"""
from __future__ import annotations

import datetime
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Union

#: Field-name segment marking a value as a reference to another record's id.
LINK_MARKER = "___NODE"


class ValueKind(Enum):
    """Runtime kind tag of a ``Value``."""

    NULL = auto()
    BOOL = auto()
    INT = auto()
    FLOAT = auto()
    STRING = auto()
    DATE = auto()
    LIST = auto()
    OBJECT = auto()
    LINK = auto()
    INVALID = auto()

    @property
    def is_numeric(self) -> bool:
        return self in (ValueKind.INT, ValueKind.FLOAT)


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NullValue:
    """An explicit ``null`` or a missing value."""

    kind = ValueKind.NULL
    handle = None

    def to_python(self) -> None:
        return None


@dataclass(frozen=True, slots=True)
class BoolValue:
    value: bool
    handle: int | None = field(default=None, compare=False, hash=False)

    kind = ValueKind.BOOL

    def to_python(self) -> bool:
        return self.value


@dataclass(frozen=True, slots=True)
class IntValue:
    value: int
    handle: int | None = field(default=None, compare=False, hash=False)

    kind = ValueKind.INT

    def to_python(self) -> int:
        return self.value


@dataclass(frozen=True, slots=True)
class FloatValue:
    value: float
    handle: int | None = field(default=None, compare=False, hash=False)

    kind = ValueKind.FLOAT

    def to_python(self) -> float:
        return self.value


@dataclass(frozen=True, slots=True)
class StringValue:
    value: str
    handle: int | None = field(default=None, compare=False, hash=False)

    kind = ValueKind.STRING

    def to_python(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class DateValue:
    """A native date or datetime (strings that merely look like dates stay strings)."""

    value: datetime.date
    handle: int | None = field(default=None, compare=False, hash=False)

    kind = ValueKind.DATE

    def to_python(self) -> datetime.date:
        return self.value


@dataclass(frozen=True, slots=True)
class LinkRef:
    """A scalar tagged as a reference to another record.

    Parameters
    ----------
    target_id:
        The referenced id, or the value of the alternate key named in
        the field's link marker (``author___NODE___slug``).
    link_kind:
        The expected kind of the target record, when known.
    """

    target_id: str | int | float | bool
    link_kind: str | None = None
    handle: int | None = field(default=None, compare=False, hash=False)

    kind = ValueKind.LINK

    def to_python(self) -> str | int | float | bool:
        return self.target_id


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ListValue:
    items: tuple["Value", ...] = ()
    handle: int | None = field(default=None, compare=False, hash=False)

    kind = ValueKind.LIST

    def to_python(self) -> list[Any]:
        return [item.to_python() for item in self.items]


@dataclass(frozen=True, slots=True)
class ObjectValue:
    """A nested mapping of field name to value.

    ``fields`` is stored as a sorted tuple of pairs so that two objects
    with the same content compare and hash equal regardless of the key
    order they were built with.
    """

    fields: tuple[tuple[str, "Value"], ...] = ()
    handle: int | None = field(default=None, compare=False, hash=False)

    kind = ValueKind.OBJECT

    @classmethod
    def of(cls, mapping: Mapping[str, "Value"], handle: int | None = None) -> "ObjectValue":
        """Build an ``ObjectValue`` from a mapping, normalizing key order."""
        return cls(fields=tuple(sorted(mapping.items())), handle=handle)

    def as_dict(self) -> dict[str, "Value"]:
        return dict(self.fields)

    def get(self, key: str) -> "Value | None":
        for name, value in self.fields:
            if name == key:
                return value
        return None

    def to_python(self) -> dict[str, Any]:
        return {name: value.to_python() for name, value in self.fields}


class _InvalidValue:
    """Sentinel for a field whose observed values have incompatible kinds."""

    __slots__ = ()
    kind = ValueKind.INVALID
    handle = None

    def __repr__(self) -> str:
        return "INVALID"

    def __reduce__(self) -> str:
        return "INVALID"

    def to_python(self) -> None:
        return None


NULL = NullValue()
INVALID = _InvalidValue()

Value = Union[
    NullValue,
    BoolValue,
    IntValue,
    FloatValue,
    StringValue,
    DateValue,
    LinkRef,
    ListValue,
    ObjectValue,
]

ExampleValue = Union[Value, _InvalidValue]


# ---------------------------------------------------------------------------
# Conversion from plain Python data
# ---------------------------------------------------------------------------


def is_link_key(key: str) -> bool:
    """Return True if ``key`` carries the link marker segment."""
    return LINK_MARKER in key


def from_python(
    data: Any,
    allocate: Callable[[], int | None] | None = None,
    *,
    link: bool = False,
) -> Value:
    """Convert plain Python data into a ``Value`` tree.

    Parameters
    ----------
    data:
        JSON-like data: ``None``, bools, numbers, strings, dates, lists,
        tuples and string-keyed mappings.
    allocate:
        Called once per non-null value to obtain its arena handle.  When
        omitted, values carry no handle.
    link:
        When ``True``, scalars are ingested as ``LinkRef`` (used for
        fields whose key carries ``LINK_MARKER``).

    Raises
    ------
    TypeError
        If ``data`` contains an unsupported Python type.
    """
    if data is None:
        return NULL
    handle = allocate() if allocate is not None else None

    if isinstance(data, Mapping):
        return ObjectValue.of(
            {
                str(key): from_python(value, allocate, link=is_link_key(str(key)))
                for key, value in data.items()
            },
            handle=handle,
        )
    if isinstance(data, (list, tuple)):
        return ListValue(
            items=tuple(from_python(item, allocate, link=link) for item in data),
            handle=handle,
        )
    if link and isinstance(data, (str, int, float, bool)):
        return LinkRef(target_id=data, handle=handle)
    # bool is a subclass of int and must be checked first
    if isinstance(data, bool):
        return BoolValue(data, handle=handle)
    if isinstance(data, int):
        return IntValue(data, handle=handle)
    if isinstance(data, float):
        return FloatValue(data, handle=handle)
    if isinstance(data, str):
        return StringValue(data, handle=handle)
    if isinstance(data, datetime.date):
        return DateValue(data, handle=handle)
    raise TypeError(f"Cannot convert {type(data).__name__} value {data!r} to a record Value")


def is_empty(value: ExampleValue) -> bool:
    """Return True for values that carry no type information.

    ``Null``, ``INVALID``, empty lists and objects, and containers made
    only of such values are all empty.
    """
    if value is INVALID or value.kind == ValueKind.NULL:
        return True
    if isinstance(value, ListValue):
        return all(is_empty(item) for item in value.items)
    if isinstance(value, ObjectValue):
        return all(is_empty(item) for _, item in value.fields)
    return False


def sort_key(value: Value) -> Any:
    """Return a key that orders values of the same kind.

    Scalars order by value, dates chronologically, links by target id and
    containers by their canonical JSON text.
    """
    if value.kind == ValueKind.NULL:
        return ""
    if value.kind == ValueKind.DATE:
        return value.value.isoformat()
    if value.kind == ValueKind.LINK:
        return (type(value.target_id).__name__, str(value.target_id))
    if value.kind in (ValueKind.LIST, ValueKind.OBJECT):
        return json.dumps(value.to_python(), sort_keys=True, default=str)
    return value.value
