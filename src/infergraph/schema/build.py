"""Schema build pass: records in, type graph and conflict report out.

A pass runs in four steps:

1. reset the type registry and clear the conflict tracker
2. declare an object type for every record kind, so links can point at
   any kind regardless of build order
3. for each kind (sorted): merge its records into an example and build
   its object type
4. check the result is usable and drain the conflict report

Fatal errors abort the pass after resetting the registry and tracker,
so a failed pass never leaves half-built types behind.

Usage
-----
::

    from infergraph.schema import SchemaBuilder
    from infergraph.store import MemoryRecordStore

    store = MemoryRecordStore.from_dicts(rows)
    result = SchemaBuilder(store).build()
    result.types["Post"].fields
    for selector, samples in result.conflicts:
        ...
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from infergraph.builder.builder import TypeBuilder
from infergraph.config import InferenceConfig, LinkErrorPolicy
from infergraph.conflicts.tracker import ConflictSample, ConflictTracker
from infergraph.errors import EmptySchema, MappingTargetNotFound, UnresolvedLink
from infergraph.merger.merger import ExampleMerger
from infergraph.model.records import FieldPath, Record
from infergraph.model.types import ObjectType, TypeNode
from infergraph.registry.registry import TypeRegistry
from infergraph.store.store import RecordStore

logger = logging.getLogger(__name__)

ConflictReport = list[tuple[str, list[ConflictSample]]]


@dataclass(frozen=True)
class SchemaResult:
    """Output of one build pass.

    Parameters
    ----------
    types:
        Read-only snapshot of the registry, sorted by type name.
    conflicts:
        Conflict report, sorted by selector then type name.
    kinds:
        Record kind to its built object type.
    skipped:
        Kinds left out because of unresolved links, with the error.
    """

    types: Mapping[str, TypeNode]
    conflicts: ConflictReport = field(default_factory=list)
    kinds: Mapping[str, ObjectType] = field(default_factory=dict)
    skipped: Mapping[str, UnresolvedLink] = field(default_factory=dict)

    def get_kind(self, kind: str) -> ObjectType | None:
        return self.kinds.get(kind)


class SchemaBuilder:
    """Runs schema build passes over a record store.

    The registry and tracker are owned by the builder and reset at the
    start of every pass; pass them in to inspect them afterwards.

    Parameters
    ----------
    store:
        The record store to infer from.
    config:
        Link mapping, declared types and link error policy.
    registry:
        Registry to populate.  A fresh one is created when omitted.
    tracker:
        Conflict tracker to populate.  A fresh one, resolving owners via
        ``store``, is created when omitted.
    """

    def __init__(
        self,
        store: RecordStore,
        config: InferenceConfig | None = None,
        registry: TypeRegistry | None = None,
        tracker: ConflictTracker | None = None,
    ) -> None:
        self._store = store
        self._config = config or InferenceConfig()
        self._registry = registry if registry is not None else TypeRegistry()
        self._tracker = (
            tracker if tracker is not None else ConflictTracker(store.resolve_owning_record)
        )

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    @property
    def tracker(self) -> ConflictTracker:
        return self._tracker

    def build(self) -> SchemaResult:
        """Run one complete build pass.

        Raises
        ------
        MappingTargetNotFound
            If a declared link mapping targets a kind with no records.
        UnresolvedLink
            If a link cannot be resolved and the policy is ``RAISE``.
        CannotInferType
            If a list field has no inferable element type.
        EmptySchema
            If no record kind ended up with any field.
        """
        self._registry.reset()
        self._registry.set_declared_types(self._config.declared_types)
        self._tracker.clear()
        try:
            return self._run()
        except Exception:
            self._registry.reset()
            self._tracker.clear()
            raise

    def _run(self) -> SchemaResult:
        by_kind = group_by_kind(self._store.get_records())
        logger.debug("Building schema for %d kind(s)", len(by_kind))

        for kind in by_kind:
            self._registry.claim(kind, kind)
            self._registry.declare_object(kind)
        self._check_mapping_targets(by_kind)

        merger = ExampleMerger(self._tracker)
        builder = TypeBuilder(self._store, self._registry, self._config.link_mapping)
        kinds: dict[str, ObjectType] = {}
        skipped: dict[str, UnresolvedLink] = {}

        for kind, records in by_kind.items():
            example = merger.merge(records, FieldPath.root(kind))
            checkpoint = self._registry.checkpoint()
            try:
                kinds[kind] = builder.build_kind(kind, example)
            except UnresolvedLink as exc:
                if self._config.on_unresolved_link is not LinkErrorPolicy.SKIP_KIND:
                    raise
                logger.warning("Skipping kind %r: %s", kind, exc)
                skipped[kind] = exc
                # Drop the nested types the failed kind registered.
                self._registry.rollback(checkpoint)

        if not any(node.fields for node in kinds.values()):
            raise EmptySchema(
                f"There are no available record types with fields among {len(by_kind)} kind(s)"
            )

        self._tracker.log_report()
        return SchemaResult(
            types=self._registry.snapshot(),
            conflicts=list(self._tracker.report()),
            kinds=kinds,
            skipped=skipped,
        )

    def _check_mapping_targets(self, by_kind: Mapping[str, list[Record]]) -> None:
        for selector, target in sorted(self._config.link_mapping.items()):
            if target not in by_kind:
                raise MappingTargetNotFound(selector, target)


def group_by_kind(records: Iterable[Record]) -> dict[str, list[Record]]:
    """Group records by kind; kinds come back sorted, records keep their order."""
    groups: dict[str, list[Record]] = {}
    for record in records:
        groups.setdefault(record.kind, []).append(record)
    return dict(sorted(groups.items()))


def build_schema(store: RecordStore, config: InferenceConfig | None = None) -> SchemaResult:
    """Convenience function: run one build pass with a fresh registry."""
    return SchemaBuilder(store, config).build()
