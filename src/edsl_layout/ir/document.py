"""JSON graph documents: the wire form of a GraphIR.

A document is a plain dict::

    {
      "config": {"layout": "dagre", "direction": "left-to-right", ...},
      "nodes": [{"id": "a", "label": "A", "shape": "rectangle", "width": 120, ...}],
      "edges": [{"from": "a", "to": "b", "label": "calls", "arrow": "single"}],
      "containers": [{"id": "svc", "label": "Service", "kind": "flow", "children": ["a", "b"]}]
    }

Container ``children`` may name nodes or other containers. ``kind`` is one of
container (default), flow, basic or semantic.
"""

from __future__ import annotations

from typing import Any

from edsl_layout.config import LayoutConfig
from edsl_layout.ir.graph import CONTAINER_PREFIX, GraphIR
from edsl_layout.types import ArrowType, BoundingBox, ContainerKind, NodeShape, Point

_ARROWS: dict[str, ArrowType] = {
    "single": ArrowType.Single,
    "->": ArrowType.Single,
    "double": ArrowType.Double,
    "<->": ArrowType.Double,
    "line": ArrowType.Line,
    "--": ArrowType.Line,
    "wavy": ArrowType.Wavy,
    "~>": ArrowType.Wavy,
}

_NODE_KEYS = {"id", "label", "shape", "width", "height", "attrs", "x", "y"}
_EDGE_KEYS = {"from", "to", "source", "target", "label", "arrow", "attrs", "start", "end"}


def _shape(value: Any) -> NodeShape:
    if value is None:
        return NodeShape.default()
    try:
        return NodeShape(str(value).lower())
    except ValueError:
        raise ValueError(f"Unknown node shape '{value}'") from None


def _arrow(value: Any) -> ArrowType:
    if value is None:
        return ArrowType.default()
    key = str(value).lower()
    if key not in _ARROWS:
        raise ValueError(f"Unknown arrow type '{value}'")
    return _ARROWS[key]


def _kind(value: Any) -> ContainerKind:
    if value is None:
        return ContainerKind.default()
    try:
        return ContainerKind(str(value).lower())
    except ValueError:
        raise ValueError(f"Unknown container kind '{value}'") from None


def _entries(doc: dict[str, Any], section: str) -> list[dict[str, Any]]:
    entries = doc.get(section) or []
    if not isinstance(entries, list):
        raise ValueError(f"'{section}' must be a list, got {type(entries).__name__}")
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError(f"Entry in '{section}' must be an object, got {entry!r}")
    return entries


def graph_from_dict(doc: dict[str, Any]) -> GraphIR:
    """Build an unvalidated GraphIR from a document dict.

    Raises:
        ValueError: If a node, edge or container entry is malformed.
        InvalidGraphError: On duplicate node or container ids.
    """
    if not isinstance(doc, dict):
        raise ValueError(f"Graph document must be an object, got {type(doc).__name__}")
    gir = GraphIR(LayoutConfig.from_options(doc.get("config") or {}))

    for entry in _entries(doc, "nodes"):
        if "id" not in entry:
            raise ValueError(f"Node entry without 'id': {entry!r}")
        attrs = dict(entry.get("attrs") or {})
        attrs.update({k: v for k, v in entry.items() if k not in _NODE_KEYS})
        gir.add_node(
            str(entry["id"]),
            entry.get("label"),
            shape=_shape(entry.get("shape")),
            width=entry.get("width"),
            height=entry.get("height"),
            attrs=attrs,
        )

    for entry in _entries(doc, "edges"):
        source = entry.get("from", entry.get("source"))
        target = entry.get("to", entry.get("target"))
        if source is None or target is None:
            raise ValueError(f"Edge entry needs 'from' and 'to': {entry!r}")
        attrs = dict(entry.get("attrs") or {})
        attrs.update({k: v for k, v in entry.items() if k not in _EDGE_KEYS})
        gir.add_edge(str(source), str(target), entry.get("label"), arrow=_arrow(entry.get("arrow")), attrs=attrs)

    for entry in _entries(doc, "containers"):
        gir.add_container(
            [str(c) for c in entry.get("children", [])],
            entry.get("id"),
            entry.get("label"),
            kind=_kind(entry.get("kind")),
            attrs=dict(entry.get("attrs") or {}),
        )

    return gir


def _point(p: Point | None) -> dict[str, float] | None:
    return None if p is None else {"x": p.x, "y": p.y}


def _box(b: BoundingBox | None) -> dict[str, float] | None:
    return None if b is None else {"x": b.x, "y": b.y, "width": b.width, "height": b.height}


def graph_to_dict(gir: GraphIR) -> dict[str, Any]:
    """Render a (usually positioned) GraphIR back into a document dict."""
    return {
        "config": gir.config.to_options(),
        "nodes": [
            {
                "id": n.id,
                "label": n.label,
                "shape": n.shape.value,
                "x": n.x,
                "y": n.y,
                "width": n.width,
                "height": n.height,
                "attrs": dict(n.attrs),
            }
            for n in gir.nodes()
        ],
        "edges": [
            {
                "from": e.source,
                "to": e.target,
                "label": e.label,
                "arrow": e.arrow.value,
                "start": _point(e.start),
                "end": _point(e.end),
                "attrs": dict(e.attrs),
            }
            for e in gir.edges()
        ],
        "containers": [
            {
                "id": None if c.key.startswith(CONTAINER_PREFIX) else c.key,
                "label": c.label,
                "kind": c.kind.value,
                "children": list(c.members),
                "bounds": _box(c.bounds),
                "attrs": dict(c.attrs),
            }
            for c in gir.containers
        ],
    }
