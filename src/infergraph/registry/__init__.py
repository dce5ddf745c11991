"""infergraph registry module.

Exports the ``TypeRegistry`` and its ``RegistryCheckpoint``.
"""
from __future__ import annotations

from infergraph.registry.registry import RegistryCheckpoint, TypeRegistry

__all__ = ["RegistryCheckpoint", "TypeRegistry"]
