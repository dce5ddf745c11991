"""Example merger: reduce many records of one kind to a single example.

The merger folds the field maps of all records pairwise and produces one
representative ``ExampleValue`` per field.  The type builder then infers
types from that example alone.

Arrays are reduced to a single representative element:

- ``["red"]`` and ``["blue", "yellow"]`` → ``["blue"]``
- ``[{color: "red"}]`` and ``[{color: "blue", ht: 5}]`` →
  ``[{color: "blue", ht: 5}]``

except link arrays (``tags___NODE``), which keep every element so that
all linked kinds stay visible to the type builder.

The fold is commutative and associative: same-kind scalars keep the
smaller value under a per-kind ordering and numeric widening is sticky,
so any permutation of the same records merges to the same example.
Conflicting kinds turn the field into ``INVALID`` and are reported to
the ``ConflictTracker``.  Lists without non-null elements count as
``NULL`` at every step, so they never conflict.  Empty objects collapse
to ``NULL`` only once the fold is complete.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Union

from infergraph.conflicts.tracker import ConflictTracker
from infergraph.model.records import FieldPath, Record
from infergraph.model.values import (
    INVALID,
    NULL,
    ExampleValue,
    ListValue,
    ObjectValue,
    Value,
    ValueKind,
    is_link_key,
    sort_key,
)
from infergraph.names import create_key

#: Delimiter used when flattening nested field names.
FLATTEN_DELIMITER = "___"
FLATTEN_MAX_DEPTH = 3

MergeSource = Union[Record, ObjectValue, Mapping[str, ExampleValue]]


def _fields_of(source: MergeSource) -> Mapping[str, ExampleValue]:
    if isinstance(source, Record):
        return source.fields
    if isinstance(source, ObjectValue):
        return source.as_dict()
    return source


def _join(path: str | None, key: str) -> str:
    return f"{path}.{key}" if path else key


def _same_kind(a: ExampleValue, b: ExampleValue) -> bool:
    return a.kind == b.kind or (a.kind.is_numeric and b.kind.is_numeric)


def _blank_to_null(value: ExampleValue) -> ExampleValue:
    if isinstance(value, ListValue) and all(i.kind == ValueKind.NULL for i in value.items):
        return NULL
    return value


def _pick_scalar(a: Value, b: Value) -> Value:
    """Choose the representative of two same-kind scalars."""
    if a.kind != b.kind:
        # Int vs Float: widen to the float side.
        return a if a.kind == ValueKind.FLOAT else b
    return b if sort_key(b) < sort_key(a) else a


def _finalize(value: ExampleValue) -> ExampleValue:
    """Collapse empty containers to ``NULL`` once the fold is done."""
    if value is INVALID or value.kind == ValueKind.NULL:
        return value
    if isinstance(value, ObjectValue):
        fields = {key: _finalize(item) for key, item in value.fields}
        if all(item is INVALID or item.kind == ValueKind.NULL for item in fields.values()):
            return NULL
        return ObjectValue.of(fields, handle=value.handle)
    if isinstance(value, ListValue):
        items = tuple(
            item for item in (_finalize(i) for i in value.items) if item.kind != ValueKind.NULL
        )
        if not items:
            return NULL
        return ListValue(items, handle=value.handle)
    return value


class ExampleMerger:
    """Folds records into per-field example values.

    Parameters
    ----------
    tracker:
        Receives every type conflict.  When omitted, conflicts still make
        fields ``INVALID`` but are not reported anywhere.
    """

    def __init__(self, tracker: ConflictTracker | None = None) -> None:
        self._tracker = tracker

    def merge(
        self,
        records: Iterable[MergeSource],
        path: FieldPath | str | None = None,
    ) -> dict[str, ExampleValue]:
        """Merge ``records`` into one example value per field.

        Parameters
        ----------
        records:
            Records, object values, or field maps (including the output of
            a previous ``merge``).
        path:
            Selector prefix for conflict reporting, usually the record
            kind.  Without it, selectors are bare field names.

        Returns
        -------
        dict[str, ExampleValue]
            Field name to merged example.  Fields whose values were all
            null or empty map to ``NULL``; conflicting fields map to
            ``INVALID``.
        """
        prefix = str(path) if path is not None else None
        merged = self._merge_maps((_fields_of(r) for r in records), prefix)
        return {key: _finalize(value) for key, value in merged.items()}

    # ------------------------------------------------------------------
    # Fold
    # ------------------------------------------------------------------

    def _merge_maps(
        self, maps: Iterable[Mapping[str, ExampleValue]], path: str | None
    ) -> dict[str, ExampleValue]:
        result: dict[str, ExampleValue] = {}
        for fields in maps:
            for key, value in fields.items():
                current = result.get(key, NULL)
                result[key] = self._merge_values(current, value, _join(path, key), key)
        return result

    def _conflict(self, selector: str, *values: ExampleValue) -> None:
        samples = [v for v in values if v is not INVALID and v.kind != ValueKind.NULL]
        if self._tracker is not None and samples:
            self._tracker.record_conflict(selector, *samples)

    def _merge_values(
        self, current: ExampleValue, nxt: ExampleValue, selector: str, key: str
    ) -> ExampleValue:
        # Lists without non-null elements carry no type information.
        current, nxt = _blank_to_null(current), _blank_to_null(nxt)
        # Once invalid, keep reporting later values so every offender shows up.
        if current is INVALID or nxt is INVALID:
            self._conflict(selector, nxt if current is INVALID else current)
            return INVALID

        if current.kind == ValueKind.NULL and nxt.kind == ValueKind.NULL:
            return NULL
        if current.kind != ValueKind.NULL and nxt.kind != ValueKind.NULL:
            if not _same_kind(current, nxt):
                self._conflict(selector, current, nxt)
                return INVALID

        present = nxt if current.kind == ValueKind.NULL else current
        if present.kind == ValueKind.OBJECT:
            return self._merge_objects(current, nxt, selector)
        if present.kind == ValueKind.LIST:
            return self._merge_lists(current, nxt, selector, key)
        if current.kind == ValueKind.NULL:
            return nxt
        if nxt.kind == ValueKind.NULL:
            return current
        return _pick_scalar(current, nxt)

    def _merge_objects(
        self, current: ExampleValue, nxt: ExampleValue, selector: str
    ) -> ObjectValue:
        sides = [v for v in (current, nxt) if isinstance(v, ObjectValue)]
        merged = self._merge_maps((side.as_dict() for side in sides), selector)
        return ObjectValue.of(merged, handle=sides[0].handle)

    def _merge_lists(
        self, current: ExampleValue, nxt: ExampleValue, selector: str, key: str
    ) -> ExampleValue:
        sides = [v for v in (current, nxt) if isinstance(v, ListValue)]
        handle = sides[0].handle
        items = [
            item for side in sides for item in side.items if item.kind != ValueKind.NULL
        ]
        if not items:
            return NULL

        first = items[0]
        if not all(_same_kind(first, item) for item in items[1:]):
            self._conflict(selector, *sides)
            return INVALID

        # Link arrays keep every element so each linked kind stays visible.
        if is_link_key(key):
            return ListValue(tuple(sorted(items, key=sort_key)), handle=handle)

        element_selector = f"{selector}[]"
        if first.kind == ValueKind.OBJECT:
            merged = self._merge_maps((item.as_dict() for item in items), element_selector)
            return ListValue((ObjectValue.of(merged, handle=first.handle),), handle=handle)

        representative: ExampleValue = NULL
        for item in items:
            representative = self._merge_values(representative, item, element_selector, key)
        if representative is INVALID:
            return INVALID
        return ListValue((representative,), handle=handle)


# ---------------------------------------------------------------------------
# Field name extraction
# ---------------------------------------------------------------------------


def flatten_example(
    example: Mapping[str, ExampleValue],
    max_depth: int = FLATTEN_MAX_DEPTH,
) -> dict[str, ExampleValue]:
    """Flatten nested object examples into ``outer___inner`` keys.

    Lists are not flattened.  Nesting deeper than ``max_depth`` levels is
    kept as an object value under the last flattened key.
    """

    def visit(fields: Mapping[str, ExampleValue], prefix: str, depth: int) -> None:
        for key, value in fields.items():
            name = f"{prefix}{FLATTEN_DELIMITER}{key}" if prefix else key
            if isinstance(value, ObjectValue) and value.fields and depth < max_depth:
                visit(value.as_dict(), name, depth + 1)
            else:
                flat[name] = value

    flat: dict[str, ExampleValue] = {}
    visit(example, "", 1)
    return flat


def extract_field_names(records: Iterable[MergeSource]) -> list[str]:
    """Return the flattened field names present in ``records``.

    Nested objects are flattened to ``outer___inner``; the list keeps the
    order fields were first seen in.
    """
    return list(flatten_example(ExampleMerger().merge(records)))


def build_field_enum_values(records: Iterable[MergeSource]) -> dict[str, str]:
    """Map sanitized enum keys to flattened field names with usable data.

    Fields whose example is null or conflicting are left out.
    """
    enum_values: dict[str, str] = {}
    for name, value in flatten_example(ExampleMerger().merge(records)).items():
        if value is INVALID or value.kind == ValueKind.NULL:
            continue
        enum_values[create_key(name)] = name
    return enum_values
