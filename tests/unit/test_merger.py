"""Unit tests for infergraph.merger: ExampleMerger and field name helpers."""
from __future__ import annotations

import itertools
from typing import Any

import pytest

from infergraph.conflicts.tracker import ConflictTracker
from infergraph.merger.merger import (
    ExampleMerger,
    build_field_enum_values,
    extract_field_names,
    flatten_example,
)
from infergraph.model.records import FieldPath, Record
from infergraph.model.values import (
    INVALID,
    NULL,
    BoolValue,
    FloatValue,
    IntValue,
    LinkRef,
    ListValue,
    ObjectValue,
    StringValue,
)
from infergraph.store.store import MemoryRecordStore


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _records(*rows: dict[str, Any], kind: str = "Thing") -> list[Record]:
    """Ingest ``rows`` as records of one kind with generated ids."""
    store = MemoryRecordStore()
    return [store.add(f"r{i}", kind, row) for i, row in enumerate(rows)]


def _merge(*rows: dict[str, Any], tracker: ConflictTracker | None = None) -> dict[str, Any]:
    return ExampleMerger(tracker).merge(_records(*rows))


# ===========================================================================
# Scalars
# ===========================================================================


class TestScalarMerge:
    def test_single_record_passes_through(self) -> None:
        assert _merge({"title": "Hi"}) == {"title": StringValue("Hi")}

    def test_null_is_absorbed(self) -> None:
        assert _merge({"n": None}, {"n": 3}) == {"n": IntValue(3)}

    def test_all_null_stays_null(self) -> None:
        assert _merge({"n": None}, {"n": None}) == {"n": NULL}

    def test_same_kind_keeps_smallest_value(self) -> None:
        assert _merge({"s": "pear"}, {"s": "apple"}) == {"s": StringValue("apple")}

    def test_int_and_float_widen_to_float(self) -> None:
        assert _merge({"n": 1}, {"n": 2.5}) == {"n": FloatValue(2.5)}

    def test_widening_is_sticky(self) -> None:
        merged = _merge({"n": 1.5}, {"n": 0}, {"n": 7})
        assert merged == {"n": FloatValue(1.5)}

    def test_missing_fields_are_kept_from_other_records(self) -> None:
        assert _merge({"a": 1}, {"b": True}) == {"a": IntValue(1), "b": BoolValue(True)}

    def test_path_does_not_change_the_example(self) -> None:
        records = _records({"a": 1}, {"a": 2})
        assert ExampleMerger().merge(records, FieldPath.root("Thing")) == ExampleMerger().merge(
            records
        )


# ===========================================================================
# Containers
# ===========================================================================


class TestContainerMerge:
    def test_objects_merge_recursively(self) -> None:
        merged = _merge({"m": {"a": 1}}, {"m": {"b": "x"}})
        assert merged == {"m": ObjectValue.of({"a": IntValue(1), "b": StringValue("x")})}

    def test_scalar_lists_keep_one_representative(self) -> None:
        merged = _merge({"c": ["red"]}, {"c": ["blue", "yellow"]})
        assert merged == {"c": ListValue((StringValue("blue"),))}

    def test_object_lists_merge_all_elements(self) -> None:
        merged = _merge({"c": [{"color": "red"}]}, {"c": [{"color": "blue", "ht": 5}]})
        element = ObjectValue.of({"color": StringValue("blue"), "ht": IntValue(5)})
        assert merged == {"c": ListValue((element,))}

    def test_numeric_lists_widen(self) -> None:
        assert _merge({"v": [1, 2.5]}) == {"v": ListValue((FloatValue(2.5),))}

    def test_link_lists_keep_every_element_sorted(self) -> None:
        merged = _merge({"tags___NODE": ["b", "a"]}, {"tags___NODE": ["c"]})
        assert merged == {
            "tags___NODE": ListValue((LinkRef("a"), LinkRef("b"), LinkRef("c")))
        }

    def test_nested_lists(self) -> None:
        merged = _merge({"grid": [[1, 2]]}, {"grid": [[0]]})
        assert merged == {"grid": ListValue((ListValue((IntValue(0),)),))}


class TestEmptyContainers:
    def test_empty_list_and_object_become_null(self) -> None:
        assert _merge({"a": [], "b": {}}) == {"a": NULL, "b": NULL}

    def test_lists_of_nulls_become_null(self) -> None:
        assert _merge({"a": [None]}, {"a": []}) == {"a": NULL}

    def test_objects_of_nulls_become_null(self) -> None:
        assert _merge({"o": {"x": None, "y": {}}}) == {"o": NULL}

    def test_empty_list_does_not_hide_later_data(self) -> None:
        assert _merge({"a": []}, {"a": ["x"]}) == {"a": ListValue((StringValue("x"),))}


# ===========================================================================
# Conflicts
# ===========================================================================


class TestConflicts:
    def test_string_and_int_conflict(self) -> None:
        tracker = ConflictTracker()
        merged = _merge({"f": "x"}, {"f": 1}, tracker=tracker)
        assert merged == {"f": INVALID}
        report = list(tracker.report())
        assert [(sel, [s.type_name for s in samples]) for sel, samples in report] == [
            ("f", ["Int", "String"])
        ]

    def test_conflict_samples_carry_origin(self) -> None:
        store = MemoryRecordStore()
        records = [store.add("A", "T", {"f": "x"}), store.add("B", "T", {"f": 1})]
        tracker = ConflictTracker(store.resolve_owning_record)
        ExampleMerger(tracker).merge(records, "T")
        (selector, samples), = tracker.report()
        assert selector == "T.f"
        assert {(s.type_name, s.origin) for s in samples} == {("String", "A"), ("Int", "B")}

    def test_values_after_invalid_are_still_reported(self) -> None:
        tracker = ConflictTracker()
        _merge({"f": "x"}, {"f": 1}, {"f": True}, tracker=tracker)
        assert tracker.get("f").type_names == ["Boolean", "Int", "String"]

    def test_object_against_scalar(self) -> None:
        tracker = ConflictTracker()
        assert _merge({"m": {"a": 1}}, {"m": "s"}, tracker=tracker) == {"m": INVALID}
        assert tracker.get("m").type_names == ["Object", "String"]

    def test_mixed_list_elements_invalidate_the_list(self) -> None:
        tracker = ConflictTracker()
        assert _merge({"v": [1, "x"]}, tracker=tracker) == {"v": INVALID}
        assert tracker.get("v").type_names == ["List<Int|String>"]

    def test_subfield_conflict_in_object_list_keeps_the_list(self) -> None:
        tracker = ConflictTracker()
        merged = _merge(
            {"items": [{"a": 1, "b": True}]}, {"items": [{"a": "x"}]}, tracker=tracker
        )
        (element,) = merged["items"].items
        assert element.get("a") is INVALID
        assert element.get("b") == BoolValue(True)
        assert tracker.selectors == ["items[].a"]

    def test_report_is_independent_of_record_order(self) -> None:
        rows = {"A": {"f": 10}, "B": {"f": 9}, "C": {"f": "x"}, "D": {"f": "w"}}
        reports = set()
        for order in itertools.permutations(rows):
            store = MemoryRecordStore()
            records = [store.add(record_id, "T", rows[record_id]) for record_id in order]
            tracker = ConflictTracker(store.resolve_owning_record)
            ExampleMerger(tracker).merge(records, "T")
            (_, samples), = tracker.report()
            reports.add(tuple((s.type_name, s.sample, s.origin) for s in samples))
        assert reports == {(("Int", 9, "B"), ("String", "w", "D"))}

    def test_null_never_conflicts(self) -> None:
        tracker = ConflictTracker()
        _merge({"f": None}, {"f": 1}, {"f": None}, tracker=tracker)
        assert len(tracker) == 0

    def test_empty_object_still_conflicts_during_the_fold(self) -> None:
        tracker = ConflictTracker()
        assert _merge({"g": {"x": None}}, {"g": "s"}, tracker=tracker) == {"g": INVALID}
        assert tracker.get("g").type_names == ["Object", "String"]

    def test_list_of_null_does_not_conflict_with_scalar(self) -> None:
        tracker = ConflictTracker()
        assert _merge({"f": 1}, {"f": [None]}, tracker=tracker) == {"f": IntValue(1)}
        assert len(tracker) == 0

    @pytest.mark.parametrize("order", [0, 1])
    def test_empty_list_yields_to_scalar(self, order: int) -> None:
        tracker = ConflictTracker()
        rows = [{"a": [], "b": 1}, {"a": "x", "b": 2}]
        if order:
            rows.reverse()
        merged = _merge(*rows, tracker=tracker)
        assert merged["a"] == StringValue("x")
        assert len(tracker) == 0

    def test_empty_list_after_invalid_adds_no_sample(self) -> None:
        tracker = ConflictTracker()
        _merge({"f": "x"}, {"f": 1}, {"f": []}, tracker=tracker)
        assert tracker.get("f").type_names == ["Int", "String"]


# ===========================================================================
# Fold properties
# ===========================================================================


_ROWS: list[dict[str, Any]] = [
    {"a": 1, "b": "x", "tags": ["t2"]},
    {"a": 2.5, "b": "y", "c": [1], "links___NODE": ["z"]},
    {"a": None, "c": [], "d": {"e": "z"}, "links___NODE": ["y"]},
    {"b": "w", "d": {"f": [3, 4]}, "tags": ["t1", "t3"]},
]


class TestFoldProperties:
    def test_order_independence(self) -> None:
        expected = _merge(*_ROWS)
        for permutation in itertools.permutations(_ROWS):
            assert _merge(*permutation) == expected

    def test_idempotence(self) -> None:
        merger = ExampleMerger()
        once = merger.merge(_records(*_ROWS))
        assert merger.merge([once]) == once

    def test_idempotence_with_invalid_fields(self) -> None:
        merger = ExampleMerger()
        once = merger.merge(_records({"f": 1}, {"f": "x"}, {"g": True}))
        assert once["f"] is INVALID
        assert merger.merge([once]) == once

    def test_merging_examples_equals_merging_records(self) -> None:
        merger = ExampleMerger()
        left = merger.merge(_records(*_ROWS[:2]))
        right = merger.merge(_records(*_ROWS[2:]))
        assert merger.merge([left, right]) == merger.merge(_records(*_ROWS))


# ===========================================================================
# Field name extraction
# ===========================================================================


class TestFieldNames:
    def test_flatten_stops_at_max_depth(self) -> None:
        records = _records({"a": 1, "b": {"c": {"d": {"e": 1}}}, "l": [{"x": 1}]})
        assert sorted(extract_field_names(records)) == ["a", "b___c___d", "l"]

    def test_flatten_custom_depth(self) -> None:
        example = ExampleMerger().merge(_records({"b": {"c": {"d": 1}}}))
        assert list(flatten_example(example, max_depth=1)) == ["b"]

    def test_enum_values_sanitize_and_skip_unusable(self) -> None:
        records = _records({"a-b": 1, "n": None, "m": {"x y": "v"}}, {"bad": 1}, {"bad": "s"})
        assert build_field_enum_values(records) == {"a_b": "a-b", "m___x_y": "m___x y"}

    @pytest.mark.parametrize("rows", [[], [{}]])
    def test_no_fields(self, rows: list[dict[str, Any]]) -> None:
        assert extract_field_names(_records(*rows)) == []
