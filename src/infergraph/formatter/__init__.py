"""infergraph formatter module.

Exports the ``SdlFormatter`` class and the ``format_schema`` convenience function.
"""
from __future__ import annotations

from infergraph.formatter.sdl import SdlFormatter, format_schema

__all__ = ["SdlFormatter", "format_schema"]
