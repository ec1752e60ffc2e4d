"""Protocols every layout engine must implement."""

from __future__ import annotations

from typing import Protocol

from edsl_layout.config import LayoutConfig
from edsl_layout.ir.graph import GraphIR
from edsl_layout.layout.types import Scope
from edsl_layout.types import Point


class LayoutEngine(Protocol):
    """Positions a whole graph in place."""

    name: str

    def layout(self, gir: GraphIR, config: LayoutConfig) -> None:
        """Write node positions, container bounds and edge endpoints into ``gir``."""
        ...


class ScopeAlgorithm(Protocol):
    """Places the members of a single scope in a local frame starting at (0, 0)."""

    name: str

    def place(self, scope: Scope, config: LayoutConfig) -> dict[str, Point]:
        """Return the top-left corner of every member of ``scope``."""
        ...
