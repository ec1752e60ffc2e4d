"""edsl-layout: layout engine for the Excalidraw DSL diagram compiler."""

from __future__ import annotations

from typing import Any

from edsl_layout.config import LayoutConfig, parse_direction
from edsl_layout.errors import (
    DelegateFailureError,
    InvalidGraphError,
    LayoutError,
    NumericInstabilityError,
    UnknownEngineError,
)
from edsl_layout.ir import GraphIR, graph_from_dict, graph_to_dict
from edsl_layout.layout import LayoutManager
from edsl_layout.types import ContainerKind, Direction

__all__ = [
    "ContainerKind",
    "DelegateFailureError",
    "Direction",
    "GraphIR",
    "InvalidGraphError",
    "LayoutConfig",
    "LayoutError",
    "LayoutManager",
    "NumericInstabilityError",
    "UnknownEngineError",
    "layout_document",
]


def layout_document(
    doc: dict[str, Any],
    layout: str | None = None,
    direction: str | None = None,
    manager: LayoutManager | None = None,
) -> dict[str, Any]:
    """Lay out a graph document and return the positioned document.

    Args:
        doc: Graph document (see :mod:`edsl_layout.ir.document`).
        layout: Override the document's algorithm ('dagre', 'force', 'elk').
        direction: Override the document's direction ('TB', 'LR', ...).
        manager: Manager to use; a fresh one by default.

    Returns:
        The document with node positions, container bounds and edge endpoints.

    Raises:
        ValueError: If the document or an override is malformed.
        LayoutError: If layout fails.
    """
    gir = graph_from_dict(doc)
    overrides: dict[str, Any] = {}
    if layout is not None:
        overrides["algorithm"] = layout.strip().lower()
    if direction is not None:
        overrides["direction"] = parse_direction(direction)
    if overrides:
        gir.config = gir.config.replace(**overrides)
    (manager or LayoutManager()).layout(gir)
    return graph_to_dict(gir)
