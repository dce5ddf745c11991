"""Record loaders: files of flat record dicts → a record store.

Each supported file format is a ``RecordLoader`` subclass registered in
a ``LoaderRegistry`` under a short name.  Loaders are picked by file
suffix.  Third-party packages can add formats by declaring entry-points
in their own ``pyproject.toml`` under the "infergraph.loaders" group::

    [project.entry-points."infergraph.loaders"]
    csv = "my_package.loaders:CsvLoader"

Usage
-----
::

    from infergraph.store.loaders import load_records

    store = load_records("records.yaml")

A records file holds a list of records, each a mapping with ``id`` and
``kind`` keys plus arbitrary field data (see ``MemoryRecordStore.add_dict``).
"""
from __future__ import annotations

import importlib.metadata
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, ClassVar

import yaml

from infergraph.store.store import MemoryRecordStore

logger = logging.getLogger(__name__)

#: Entry-point group scanned by ``LoaderRegistry.load_entrypoints``.
ENTRYPOINT_GROUP = "infergraph.loaders"


class RecordLoadError(ValueError):
    """Raised when a records file cannot be read or has the wrong shape."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(
            f"Cannot load records from {path!r}: {reason}. "
            "A records file must hold a list of mappings with 'id' and 'kind' keys."
        )


class LoaderNotFoundError(KeyError):
    """Raised when no loader is registered for a name or file suffix."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.loader_name = name
        self.available = available
        super().__init__(
            f"No record loader registered for {name!r}. "
            f"Available loaders: {', '.join(available) or '(none)'}. "
            "Check that the package providing it is installed."
        )


class RecordLoader(ABC):
    """Parses the text of a records file into a list of record dicts."""

    #: File suffixes (lower case, with the dot) handled by this loader.
    suffixes: ClassVar[tuple[str, ...]] = ()

    @abstractmethod
    def parse(self, text: str) -> Any:
        """Return the parsed document; ``load`` checks its shape."""

    def load(self, text: str, source: str = "<string>") -> list[Mapping[str, Any]]:
        """Parse ``text`` and return its records.

        Raises
        ------
        RecordLoadError
            If the text does not parse or is not a list of mappings.
        """
        try:
            data = self.parse(text)
        except (ValueError, yaml.YAMLError) as exc:
            raise RecordLoadError(source, str(exc)) from exc
        if data is None:
            return []
        if not isinstance(data, list):
            raise RecordLoadError(source, f"expected a list, got {type(data).__name__}")
        for index, row in enumerate(data):
            if not isinstance(row, Mapping):
                raise RecordLoadError(source, f"entry {index} is a {type(row).__name__}")
        return data


class JsonLoader(RecordLoader):
    suffixes = (".json",)

    def parse(self, text: str) -> Any:
        return json.loads(text)


class JsonLinesLoader(RecordLoader):
    """One JSON record per line; blank lines are ignored."""

    suffixes = (".jsonl", ".ndjson")

    def parse(self, text: str) -> Any:
        return [json.loads(line) for line in text.splitlines() if line.strip()]


class YamlLoader(RecordLoader):
    suffixes = (".yaml", ".yml")

    def parse(self, text: str) -> Any:
        return yaml.safe_load(text)


class LoaderRegistry:
    """Name-keyed registry of ``RecordLoader`` classes.

    Loaders are registered with the ``register`` decorator at import
    time, or lazily via ``load_entrypoints`` for installed packages.
    """

    def __init__(self) -> None:
        self._loaders: dict[str, type[RecordLoader]] = {}

    def register(self, name: str) -> Callable[[type[RecordLoader]], type[RecordLoader]]:
        """Return a class decorator that registers a loader under ``name``.

        Raises
        ------
        ValueError
            If ``name`` is already in use.
        TypeError
            If the decorated class does not subclass ``RecordLoader``.
        """

        def decorator(cls: type[RecordLoader]) -> type[RecordLoader]:
            if name in self._loaders:
                raise ValueError(
                    f"Record loader {name!r} is already registered. "
                    "Use a unique name or deregister the existing entry first."
                )
            if not (isinstance(cls, type) and issubclass(cls, RecordLoader)):
                raise TypeError(
                    f"Cannot register {cls!r} under {name!r}: "
                    "it must be a subclass of RecordLoader."
                )
            self._loaders[name] = cls
            logger.debug("Registered record loader %r -> %s", name, cls.__qualname__)
            return cls

        return decorator

    def deregister(self, name: str) -> None:
        """Remove the loader registered as ``name``.

        Raises
        ------
        LoaderNotFoundError
            If ``name`` is not registered.
        """
        if name not in self._loaders:
            raise LoaderNotFoundError(name, self.list_loaders())
        del self._loaders[name]
        logger.debug("Deregistered record loader %r", name)

    def get(self, name: str) -> type[RecordLoader]:
        """Return the loader class registered as ``name``."""
        try:
            return self._loaders[name]
        except KeyError:
            raise LoaderNotFoundError(name, self.list_loaders()) from None

    def for_path(self, path: str | Path) -> RecordLoader:
        """Return a loader instance for ``path``, chosen by its suffix."""
        suffix = Path(path).suffix.lower()
        for cls in self._loaders.values():
            if suffix in cls.suffixes:
                return cls()
        raise LoaderNotFoundError(suffix or str(path), self.list_loaders())

    def list_loaders(self) -> list[str]:
        return sorted(self._loaders)

    def load_entrypoints(self, group: str = ENTRYPOINT_GROUP) -> None:
        """Register every loader class advertised under entry-point ``group``.

        Entry-points that fail to import or register are logged and
        skipped; already registered names are left alone.
        """
        for ep in importlib.metadata.entry_points(group=group):
            if ep.name in self._loaders:
                logger.debug("Record loader %r already registered; skipping.", ep.name)
                continue
            try:
                cls = ep.load()
            except Exception:
                logger.exception(
                    "Failed to load entry-point %r from group %r; skipping.", ep.name, group
                )
                continue
            try:
                self.register(ep.name)(cls)
            except (ValueError, TypeError):
                logger.warning(
                    "Entry-point %r loaded but could not be registered as a record loader; "
                    "skipping.",
                    ep.name,
                )

    def __contains__(self, name: object) -> bool:
        return name in self._loaders

    def __len__(self) -> int:
        return len(self._loaders)

    def __repr__(self) -> str:
        return f"LoaderRegistry(loaders={self.list_loaders()})"


loader_registry = LoaderRegistry()
loader_registry.register("json")(JsonLoader)
loader_registry.register("jsonl")(JsonLinesLoader)
loader_registry.register("yaml")(YamlLoader)


def load_records(
    path: str | Path, registry: LoaderRegistry | None = None
) -> MemoryRecordStore:
    """Read a records file into a new ``MemoryRecordStore``.

    Raises
    ------
    RecordLoadError
        If the file cannot be read, does not parse, or holds an entry
        that is not a valid record.
    LoaderNotFoundError
        If no loader handles the file's suffix.
    """
    loader = (registry or loader_registry).for_path(path)
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise RecordLoadError(str(path), exc.strerror or str(exc)) from exc
    rows = loader.load(text, source=str(path))
    try:
        store = MemoryRecordStore.from_dicts(rows)
    except (ValueError, TypeError) as exc:
        raise RecordLoadError(str(path), str(exc)) from exc
    logger.debug("Loaded %d record(s) from %s", len(store), path)
    return store
