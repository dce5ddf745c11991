"""Exception types raised during a schema build pass.

Recoverable type conflicts never raise: the merger records them with the
``ConflictTracker`` and the pass continues.  Everything here is either
fatal to a single field's inference (``CannotInferType``,
``UnresolvedLink``) or fatal to the whole pass (``MappingTargetNotFound``,
``EmptySchema``).  ``AmbiguousOwnership`` is never raised; it is logged
as a warning by the record store.
"""
from __future__ import annotations

from typing import Any


class InferenceError(Exception):
    """Base class for all errors raised by a schema build pass."""


class CannotInferType(InferenceError):
    """Raised when a list field has no inferable element type."""

    def __init__(self, selector: str, value: Any) -> None:
        self.selector = selector
        self.value = value
        super().__init__(
            f"Could not infer a type for {selector!r} from value {value!r}. "
            "Lists must contain at least one element of a supported kind."
        )


class UnresolvedLink(InferenceError):
    """Raised when a link-marked value cannot be resolved to a typed record.

    Parameters
    ----------
    selector:
        Field path of the link field.
    value:
        The stored reference that failed to resolve.
    reason:
        Why resolution failed.
    """

    def __init__(self, selector: str, value: Any, reason: str) -> None:
        self.selector = selector
        self.value = value
        self.reason = reason
        super().__init__(
            f"Encountered an error trying to infer a type for {selector!r}: {reason}"
        )


class MappingTargetNotFound(InferenceError):
    """Raised when a declared link mapping points at a kind with no type."""

    def __init__(self, selector: str, target: str) -> None:
        self.selector = selector
        self.target = target
        super().__init__(
            f"Couldn't find a matching record type {target!r} for mapping {selector!r}. "
            "Check that records of that kind exist or fix the mapping configuration."
        )


class EmptySchema(InferenceError):
    """Raised when a completed pass produced no usable object types."""

    def __init__(self, message: str = "There are no available record types with fields") -> None:
        super().__init__(message)


class TypeNotFoundError(KeyError):
    """Raised when a requested type name is not in the registry."""

    def __init__(self, name: str) -> None:
        self.type_name = name
        super().__init__(
            f"Type {name!r} is not registered. "
            "Check that a record kind or declared type with this name exists."
        )


class DeclaredTypeError(InferenceError):
    """Raised when a declared type reference names no known type."""

    def __init__(self, ref: object, owner: str | None = None) -> None:
        self.ref = ref
        self.owner = owner
        where = f" (declared on {owner!r})" if owner else ""
        super().__init__(
            f"Declared type {str(ref)!r}{where} does not name a scalar, a record kind "
            "or another declared type."
        )


class AmbiguousOwnership(InferenceError):
    """A parent walk exceeded the maximum depth, most likely a parent cycle.

    Constructed for its message and logged; never raised by the library.
    """

    def __init__(self, record_id: str, depth: int) -> None:
        self.record_id = record_id
        self.depth = depth
        super().__init__(
            f"It looks like record {record_id!r} has a parent cycle: "
            f"gave up after {depth} ancestors."
        )
