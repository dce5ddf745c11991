"""Type conflict tracking for the example merger.

Whenever the merger meets two values of incompatible kinds at the same
field path it hands both samples to a ``ConflictTracker``.  The tracker
keeps, per selector, the lowest sample value for every distinct type
name it has seen, together with the id of the record the sample came
from.  Keeping the lowest rather than the first makes the report
independent of record order.
At the end of a build pass the entries are drained into a report,
sorted by selector and then by type name so the output is stable.

Conflict tracking is diagnostics only: the merger has already decided
the field is ``INVALID`` by the time the tracker hears about it.

Usage
-----
::

    tracker = ConflictTracker(resolve_owner=store.resolve_owning_record)
    merger = ExampleMerger(tracker)
    merger.merge(records, FieldPath.root("Post"))
    for selector, samples in tracker.report():
        print(selector, [s.type_name for s in samples])
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from infergraph.model.values import INVALID, ListValue, ValueKind, sort_key

logger = logging.getLogger(__name__)

OwnerResolver = Callable[[Any], "str | None"]

_TYPE_NAMES: dict[ValueKind, str] = {
    ValueKind.NULL: "Null",
    ValueKind.BOOL: "Boolean",
    ValueKind.INT: "Int",
    ValueKind.FLOAT: "Float",
    ValueKind.STRING: "String",
    ValueKind.DATE: "Date",
    ValueKind.OBJECT: "Object",
    ValueKind.LINK: "Link",
    ValueKind.INVALID: "Invalid",
}


def meaningful_type_name(value: Any) -> str:
    """Return a readable type name for a sample value.

    Lists are described by their element types, e.g. ``List<Int|String>``.
    """
    if isinstance(value, ListValue):
        names = sorted({meaningful_type_name(item) for item in value.items})
        return f"List<{'|'.join(names)}>"
    return _TYPE_NAMES.get(getattr(value, "kind", None), type(value).__name__)


@dataclass(frozen=True)
class ConflictSample:
    """One observed type at a conflicting selector.

    Parameters
    ----------
    type_name:
        Readable type name of the sample.
    sample:
        The sample value, converted to plain Python data.
    origin:
        Id of the record the sample was found in, when resolvable.
    """

    type_name: str
    sample: Any
    origin: str | None = None

    def __str__(self) -> str:
        where = f" (from {self.origin})" if self.origin else ""
        return f"{self.type_name}: {self.sample!r}{where}"


@dataclass
class ConflictEntry:
    """All types observed at one selector, keyed by type name."""

    selector: str
    samples: dict[str, ConflictSample] = field(default_factory=dict)
    _ranks: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def add(self, sample: ConflictSample, rank: Any = None) -> None:
        """Keep ``sample`` if it is the first, or lowest ranked, of its type.

        Without a ``rank`` the first sample per type wins.
        """
        name = sample.type_name
        if name not in self.samples:
            self.samples[name] = sample
            self._ranks[name] = rank
            return
        current = self._ranks[name]
        if rank is not None and (current is None or rank < current):
            self.samples[name] = sample
            self._ranks[name] = rank

    @property
    def type_names(self) -> list[str]:
        return sorted(self.samples)

    def sorted_samples(self) -> list[ConflictSample]:
        return [self.samples[name] for name in self.type_names]

    def __str__(self) -> str:
        return f"{self.selector}: {', '.join(self.type_names)}"


class ConflictTracker:
    """Collects type conflicts for one build pass.

    Parameters
    ----------
    resolve_owner:
        Maps a raw value to the id of the top-level record containing
        it.  Usually ``RecordStore.resolve_owning_record``.  Failures are
        swallowed and the sample is kept unattributed.
    """

    def __init__(self, resolve_owner: OwnerResolver | None = None) -> None:
        self._resolve_owner = resolve_owner
        self._entries: dict[str, ConflictEntry] = {}

    def record_conflict(self, selector: str, *values: Any) -> None:
        """Record one or more conflicting sample values at ``selector``.

        ``None`` arguments and ``INVALID`` placeholders are ignored.
        """
        entry = self._entries.get(selector)
        if entry is None:
            entry = ConflictEntry(selector)
            self._entries[selector] = entry
        for value in values:
            if value is None or value is INVALID:
                continue
            origin = self._origin_of(value)
            # The lowest value per type is kept, so the report does not
            # depend on record order.
            rank = (sort_key(value), origin or "") if hasattr(value, "kind") else None
            entry.add(
                ConflictSample(
                    type_name=meaningful_type_name(value),
                    sample=value.to_python() if hasattr(value, "to_python") else value,
                    origin=origin,
                ),
                rank,
            )

    def _origin_of(self, value: Any) -> str | None:
        if self._resolve_owner is None:
            return None
        try:
            return self._resolve_owner(value)
        except Exception as exc:  # noqa: BLE001
            # Provenance is best effort and must never break a pass.
            logger.debug("Could not resolve owner of conflicting value %r: %s", value, exc)
            return None

    def report(self) -> Iterator[tuple[str, list[ConflictSample]]]:
        """Yield ``(selector, samples)`` pairs sorted by selector, then type name."""
        for selector in sorted(self._entries):
            yield selector, self._entries[selector].sorted_samples()

    def log_report(self) -> None:
        """Log a warning summarizing every recorded conflict."""
        if not self._entries:
            return
        logger.warning(
            "There are conflicting field types in your data. "
            "The inferred schema will omit those fields."
        )
        for selector in sorted(self._entries):
            logger.warning("%s", self._entries[selector])

    def clear(self) -> None:
        """Forget all recorded conflicts (called at the start of a pass)."""
        self._entries.clear()

    def get(self, selector: str) -> ConflictEntry | None:
        return self._entries.get(selector)

    @property
    def selectors(self) -> list[str]:
        return sorted(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ConflictTracker(selectors={self.selectors})"
