"""CLI package.

The ``cli`` sub-package contains the Click application and all
command implementations. Heavy imports happen inside the commands
so that ``infergraph --help`` stays fast.
"""
from __future__ import annotations
