"""Unit tests for infergraph.conflicts.tracker: ConflictTracker and report types."""
from __future__ import annotations

import logging

import pytest

from infergraph.conflicts.tracker import (
    ConflictEntry,
    ConflictSample,
    ConflictTracker,
    meaningful_type_name,
)
from infergraph.model.values import INVALID, NULL, from_python


# ===========================================================================
# meaningful_type_name
# ===========================================================================


class TestMeaningfulTypeName:
    @pytest.mark.parametrize(
        ("data", "expected"),
        [
            (True, "Boolean"),
            (1, "Int"),
            (1.5, "Float"),
            ("x", "String"),
            ({"a": 1}, "Object"),
            ([1, 2], "List<Int>"),
            (["x", 1, "y"], "List<Int|String>"),
            ([[1]], "List<List<Int>>"),
            ([], "List<>"),
        ],
    )
    def test_value_names(self, data: object, expected: str) -> None:
        assert meaningful_type_name(from_python(data)) == expected

    def test_null(self) -> None:
        assert meaningful_type_name(NULL) == "Null"

    def test_link(self) -> None:
        assert meaningful_type_name(from_python("a", link=True)) == "Link"

    def test_unknown_object_uses_class_name(self) -> None:
        assert meaningful_type_name(object()) == "object"


# ===========================================================================
# ConflictEntry / ConflictSample
# ===========================================================================


class TestConflictEntry:
    def test_first_sample_per_type_wins(self) -> None:
        entry = ConflictEntry("Post.f")
        entry.add(ConflictSample("Int", 1))
        entry.add(ConflictSample("Int", 2))
        assert entry.samples["Int"].sample == 1

    def test_lowest_ranked_sample_wins(self) -> None:
        entry = ConflictEntry("Post.f")
        entry.add(ConflictSample("Int", 9, origin="B"), rank=(9, "B"))
        entry.add(ConflictSample("Int", 10, origin="C"), rank=(10, "C"))
        entry.add(ConflictSample("Int", 3, origin="A"), rank=(3, "A"))
        assert entry.samples["Int"].origin == "A"

    def test_sorted_samples(self) -> None:
        entry = ConflictEntry("Post.f")
        entry.add(ConflictSample("String", "x"))
        entry.add(ConflictSample("Int", 1))
        assert [s.type_name for s in entry.sorted_samples()] == ["Int", "String"]

    def test_str(self) -> None:
        entry = ConflictEntry("Post.f")
        entry.add(ConflictSample("String", "x"))
        entry.add(ConflictSample("Int", 1))
        assert str(entry) == "Post.f: Int, String"

    def test_sample_str_mentions_origin(self) -> None:
        assert str(ConflictSample("Int", 1, origin="B")) == "Int: 1 (from B)"
        assert str(ConflictSample("Int", 1)) == "Int: 1"


# ===========================================================================
# ConflictTracker
# ===========================================================================


class TestConflictTracker:
    def test_record_and_report(self) -> None:
        tracker = ConflictTracker()
        tracker.record_conflict("b", from_python("x"), from_python(1))
        tracker.record_conflict("a", from_python(True))
        report = list(tracker.report())
        assert [selector for selector, _ in report] == ["a", "b"]
        assert [s.sample for s in report[1][1]] == [1, "x"]

    def test_invalid_and_none_are_ignored(self) -> None:
        tracker = ConflictTracker()
        tracker.record_conflict("f", INVALID, None, from_python(2))
        assert tracker.get("f").type_names == ["Int"]

    def test_origin_from_resolver(self) -> None:
        tracker = ConflictTracker(resolve_owner=lambda value: "rec-1")
        tracker.record_conflict("f", from_python(1))
        assert tracker.get("f").samples["Int"].origin == "rec-1"

    def test_resolver_failure_degrades_to_none(self) -> None:
        def broken(value: object) -> str:
            raise RuntimeError("store is gone")

        tracker = ConflictTracker(resolve_owner=broken)
        tracker.record_conflict("f", from_python(1))
        assert tracker.get("f").samples["Int"].origin is None

    def test_plain_python_samples(self) -> None:
        tracker = ConflictTracker()
        tracker.record_conflict("f", "raw")
        assert tracker.get("f").samples["str"].sample == "raw"

    def test_lowest_value_is_kept(self) -> None:
        tracker = ConflictTracker()
        tracker.record_conflict("f", from_python(10), from_python("x"))
        tracker.record_conflict("f", from_python(9))
        tracker.record_conflict("f", from_python(12))
        assert tracker.get("f").samples["Int"].sample == 9

    def test_clear(self) -> None:
        tracker = ConflictTracker()
        tracker.record_conflict("f", from_python(1))
        tracker.clear()
        assert len(tracker) == 0
        assert list(tracker.report()) == []

    def test_repr(self) -> None:
        tracker = ConflictTracker()
        tracker.record_conflict("f", from_python(1))
        assert repr(tracker) == "ConflictTracker(selectors=['f'])"

    def test_log_report_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        tracker = ConflictTracker()
        tracker.record_conflict("Post.f", from_python("x"), from_python(1))
        with caplog.at_level(logging.WARNING, logger="infergraph.conflicts.tracker"):
            tracker.log_report()
        assert "conflicting field types" in caplog.text
        assert "Post.f: Int, String" in caplog.text

    def test_log_report_silent_without_conflicts(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="infergraph.conflicts.tracker"):
            ConflictTracker().log_report()
        assert caplog.text == ""
