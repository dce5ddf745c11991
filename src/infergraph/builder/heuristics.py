"""Value heuristics that refine plain string typing.

Both heuristics are pure predicates over a ``Value`` plus, for file
links, in-memory lookups against the record store:

- ``looks_like_date``: ISO-8601 dates and timestamps become ``Date``.
- ``points_to_file``: a relative path that resolves, from the owning
  record's root ``File`` ancestor, to another ``File`` record becomes a
  file link.
"""
from __future__ import annotations

import datetime
import mimetypes
import posixpath
import re
from typing import TYPE_CHECKING

from infergraph.model.values import DateValue, StringValue, Value

if TYPE_CHECKING:
    from infergraph.model.records import Record
    from infergraph.store.store import RecordStore

#: Kind of the records that represent files on disk.
FILE_KIND = "File"
#: Field of a ``File`` record holding its directory.
FILE_DIR_FIELD = "dir"
#: Field of a ``File`` record holding its normalized absolute path.
FILE_PATH_FIELD = "absolutePath"

_DATE_RE = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})(?:-(?P<day>\d{2})"
    r"(?:[T ](?P<hour>\d{2})(?::(?P<minute>\d{2})(?::(?P<second>\d{2})(?:\.\d+)?)?)?"
    r"(?P<tz>Z|[+-]\d{2}(?::?\d{2})?)?)?)?$"
)

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")

# Types that mean "no idea" or that match domain names such as example.com
_NOT_FILE_TYPES = frozenset(
    {
        "application/octet-stream",
        "application/x-msdownload",
        "application/x-msdos-program",
    }
)


def looks_like_date(value: Value) -> bool:
    """Return True for date values and ISO-8601 date strings.

    Accepts ``YYYY-MM``, ``YYYY-MM-DD`` and timestamps such as
    ``2018-01-28T13:45:00.000Z``.  Calendar validity is checked, so
    ``2018-02-30`` is not a date.
    """
    if isinstance(value, DateValue):
        return True
    if not isinstance(value, StringValue):
        return False
    match = _DATE_RE.match(value.value)
    if match is None:
        return False
    parts = match.groupdict()
    try:
        datetime.date(int(parts["year"]), int(parts["month"]), int(parts["day"] or 1))
    except ValueError:
        return False
    if parts["hour"] is not None and int(parts["hour"]) > 23:
        return False
    if parts["minute"] is not None and int(parts["minute"]) > 59:
        return False
    if parts["second"] is not None and int(parts["second"]) > 59:
        return False
    return True


def looks_like_relative_file(text: str) -> bool:
    """Return True if ``text`` reads like a relative path to a known file type."""
    if not text or text.startswith(("/", "\\", "//", "#", "?")):
        return False
    if _SCHEME_RE.match(text):
        return False
    mime, _ = mimetypes.guess_type(text, strict=False)
    return mime is not None and mime not in _NOT_FILE_TYPES


def join_file_path(directory: str, relative: str) -> str:
    """Join ``relative`` onto ``directory`` and normalize to forward slashes."""
    joined = posixpath.join(directory.replace("\\", "/"), relative.replace("\\", "/"))
    return posixpath.normpath(joined)


def points_to_file(store: "RecordStore", value: Value) -> bool:
    """Return True if ``value`` is a relative path to another ``File`` record.

    The value's owning record is looked up through its arena handle and
    its root ancestor must be a ``File``: only data derived from a file
    can link to a sibling file.
    """
    if not isinstance(value, StringValue) or not looks_like_relative_file(value.value):
        return False
    owner_id = store.resolve_owning_record(value)
    owner = store.get_record(owner_id) if owner_id is not None else None
    if owner is None:
        return False
    root = store.find_root_record(owner)
    if root is None or root.kind != FILE_KIND:
        return False
    directory = root.get(FILE_DIR_FIELD)
    if not isinstance(directory, StringValue):
        return False
    return find_file_record(store, directory.value, value.value) is not None


def _file_path_of(record: "Record") -> str | None:
    path = record.get(FILE_PATH_FIELD)
    return path.value.replace("\\", "/") if isinstance(path, StringValue) else None


def find_file_record(store: "RecordStore", directory: str, relative: str) -> "Record | None":
    """Return the ``File`` record at ``relative`` from ``directory``, if any."""
    target = join_file_path(directory, relative)
    for record in store.get_records():
        if record.kind == FILE_KIND and _file_path_of(record) == target:
            return record
    return None
