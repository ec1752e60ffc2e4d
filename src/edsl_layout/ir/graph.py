"""Graph IR: the shared structure every layout engine reads and writes.

Nodes and edges live in a networkx MultiDiGraph (parallel edges and self-loops
are legal in the DSL). Containers form a forest stored as an arena: a list of
``ContainerData`` indexed by integer handles, with parent links held as indices
rather than references.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

import networkx as nx

from edsl_layout.config import LayoutConfig
from edsl_layout.errors import InvalidGraphError
from edsl_layout.ir.sizing import estimate_node_size
from edsl_layout.types import ArrowType, BoundingBox, ContainerKind, NodeShape, Point

CONTAINER_PREFIX = "__container_"

# Default padding of group kinds; plain containers use config.container_padding.
GROUP_PADDING: dict[ContainerKind, float] = {
    ContainerKind.Flow: 30.0,
    ContainerKind.Basic: 25.0,
    ContainerKind.Semantic: 35.0,
}


@dataclass
class NodeData:
    id: str
    label: str
    width: float
    height: float
    shape: NodeShape = NodeShape.Rectangle
    attrs: dict[str, Any] = field(default_factory=dict)
    x: float = 0.0
    y: float = 0.0
    container: int | None = None

    @property
    def box(self) -> BoundingBox:
        return BoundingBox(self.x, self.y, self.width, self.height)

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)


@dataclass
class EdgeData:
    id: int
    source: str
    target: str
    label: str | None = None
    arrow: ArrowType = ArrowType.Single
    attrs: dict[str, Any] = field(default_factory=dict)
    start: Point | None = None
    end: Point | None = None


@dataclass
class ContainerData:
    key: str
    label: str | None
    members: list[str]
    kind: ContainerKind = ContainerKind.Container
    attrs: dict[str, Any] = field(default_factory=dict)
    parent: int | None = None
    bounds: BoundingBox | None = None

    def padding(self, default: float) -> float:
        value = self.attrs.get("padding")
        if value is None:
            return GROUP_PADDING.get(self.kind, default)
        return float(value)


class GraphIR:
    """The intermediate graph handed from the parser to the layout engine.

    Topology is fixed once built; only the geometric fields of nodes, edges and
    containers are written by layout.
    """

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.digraph: nx.MultiDiGraph = nx.MultiDiGraph()
        self.containers: list[ContainerData] = []
        self.config = config or LayoutConfig()
        self._container_index: dict[str, int] = {}
        self._next_edge_id = 0

    # ─── Construction ────────────────────────────────────────────────────────

    def add_node(
        self,
        node_id: str,
        label: str | None = None,
        *,
        shape: NodeShape = NodeShape.Rectangle,
        width: float | None = None,
        height: float | None = None,
        attrs: dict[str, Any] | None = None,
    ) -> NodeData:
        """Add a node, sizing it from its label unless width/height are given."""
        if node_id in self.digraph and "data" in self.digraph.nodes[node_id]:
            raise InvalidGraphError(f"Duplicate node '{node_id}'")
        attrs = dict(attrs or {})
        label = node_id if label is None else label
        width = attrs.get("width") if width is None else width
        height = attrs.get("height") if height is None else height
        if width is None or height is None:
            est_w, est_h = estimate_node_size(label, attrs.get("font_size"), attrs.get("font"))
            width = est_w if width is None else width
            height = est_h if height is None else height
        data = NodeData(id=node_id, label=label, width=float(width), height=float(height), shape=shape, attrs=attrs)
        self.digraph.add_node(node_id, data=data)
        return data

    def add_edge(
        self,
        source: str,
        target: str,
        label: str | None = None,
        *,
        arrow: ArrowType = ArrowType.Single,
        attrs: dict[str, Any] | None = None,
    ) -> EdgeData:
        """Add an edge. Unknown endpoints are reported by :meth:`validate`."""
        data = EdgeData(
            id=self._next_edge_id,
            source=source,
            target=target,
            label=label,
            arrow=arrow,
            attrs=dict(attrs or {}),
        )
        self.digraph.add_edge(source, target, key=data.id, data=data)
        self._next_edge_id += 1
        return data

    def add_container(
        self,
        members: Iterable[str],
        container_id: str | None = None,
        label: str | None = None,
        *,
        kind: ContainerKind = ContainerKind.Container,
        attrs: dict[str, Any] | None = None,
    ) -> ContainerData:
        """Add a container whose members are node ids or other container keys."""
        key = container_id if container_id is not None else f"{CONTAINER_PREFIX}{len(self.containers)}"
        if key in self._container_index:
            raise InvalidGraphError(f"Duplicate container '{key}'")
        container = ContainerData(key=key, label=label, members=list(members), kind=kind, attrs=dict(attrs or {}))
        self._container_index[key] = len(self.containers)
        self.containers.append(container)
        return container

    # ─── Queries ─────────────────────────────────────────────────────────────

    def node_count(self) -> int:
        return self.digraph.number_of_nodes()

    def edge_count(self) -> int:
        return self.digraph.number_of_edges()

    def node(self, node_id: str) -> NodeData:
        return self.digraph.nodes[node_id]["data"]

    def nodes(self) -> Iterator[NodeData]:
        """Nodes in insertion order."""
        for node_id in self.digraph.nodes:
            data = self.digraph.nodes[node_id].get("data")
            if data is not None:
                yield data

    def edges(self) -> list[EdgeData]:
        """Edges in insertion order."""
        result = [attrs["data"] for _, _, attrs in self.digraph.edges(data=True)]
        result.sort(key=lambda e: e.id)
        return result

    def container(self, key: str) -> ContainerData:
        return self.containers[self._container_index[key]]

    def container_index(self, key: str) -> int | None:
        return self._container_index.get(key)

    def is_container(self, key: str) -> bool:
        return key in self._container_index

    def root_members(self) -> list[str]:
        """Top-level nodes and containers, nodes first in insertion order, then containers."""
        members = [n.id for n in self.nodes() if n.container is None]
        members.extend(c.key for c in self.containers if c.parent is None)
        return members

    def nested_containers(self, index: int) -> list[int]:
        return [self._container_index[m] for m in self.containers[index].members if m in self._container_index]

    def post_order(self) -> list[int]:
        """Container indices with every container after all of its nested containers."""
        order: list[int] = []
        seen: set[int] = set()

        def visit(idx: int) -> None:
            if idx in seen:
                return
            seen.add(idx)
            for child in self.nested_containers(idx):
                visit(child)
            order.append(idx)

        for idx, container in enumerate(self.containers):
            if container.parent is None:
                visit(idx)
        return order

    def ancestors(self, node_id: str) -> list[int]:
        """Container indices enclosing a node, innermost first."""
        chain: list[int] = []
        current = self.node(node_id).container
        while current is not None:
            chain.append(current)
            current = self.containers[current].parent
        return chain

    def descendant_nodes(self, index: int) -> list[str]:
        result: list[str] = []
        for member in self.containers[index].members:
            child = self._container_index.get(member)
            if child is None:
                result.append(member)
            else:
                result.extend(self.descendant_nodes(child))
        return result

    def is_dag(self) -> bool:
        return nx.is_directed_acyclic_graph(self.digraph)

    # ─── Validation ──────────────────────────────────────────────────────────

    def validate(self) -> None:
        """Check the graph invariants and resolve container parent links.

        Raises:
            InvalidGraphError: On a dangling edge endpoint, an unknown or
                multiply-owned container member, a node/container id clash, a
                container cycle or a container padding that is not a finite
                number >= 0.
        """
        for node_id in self.digraph.nodes:
            if "data" not in self.digraph.nodes[node_id]:
                edge = next(
                    (e for e in self.edges() if node_id in (e.source, e.target)),
                    None,
                )
                where = f" (edge {edge.source} -> {edge.target})" if edge is not None else ""
                raise InvalidGraphError(f"Edge references unknown node '{node_id}'{where}")

        for key in self._container_index:
            if key in self.digraph:
                raise InvalidGraphError(f"Container '{key}' has the same id as a node")
        for container in self.containers:
            _check_padding(container)

        node_parent: dict[str, int] = {}
        container_parent: dict[int, int] = {}
        for idx, container in enumerate(self.containers):
            for member in container.members:
                child = self._container_index.get(member)
                if child is not None:
                    if child in container_parent:
                        owner = self.containers[container_parent[child]].key
                        raise InvalidGraphError(
                            f"Container '{member}' belongs to both '{owner}' and '{container.key}'"
                        )
                    if child == idx:
                        raise InvalidGraphError(f"Container '{member}' contains itself")
                    container_parent[child] = idx
                elif member in self.digraph:
                    if member in node_parent:
                        owner = self.containers[node_parent[member]].key
                        raise InvalidGraphError(f"Node '{member}' belongs to both '{owner}' and '{container.key}'")
                    node_parent[member] = idx
                else:
                    raise InvalidGraphError(f"Container '{container.key}' references unknown member '{member}'")

        forest: nx.DiGraph = nx.DiGraph()
        forest.add_nodes_from(range(len(self.containers)))
        forest.add_edges_from((parent, child) for child, parent in container_parent.items())
        if not nx.is_directed_acyclic_graph(forest):
            cycle = nx.find_cycle(forest)
            names = " -> ".join(self.containers[a].key for a, _ in cycle)
            raise InvalidGraphError(f"Container nesting forms a cycle: {names}")

        for idx, container in enumerate(self.containers):
            container.parent = container_parent.get(idx)
        for node in self.nodes():
            node.container = node_parent.get(node.id)

    # ─── Geometry helpers ────────────────────────────────────────────────────

    def reset_geometry(self) -> None:
        """Zero every position written by layout (sizes are kept)."""
        for node in self.nodes():
            node.x = 0.0
            node.y = 0.0
        for edge in self.edges():
            edge.start = None
            edge.end = None
        for container in self.containers:
            container.bounds = None

    def is_finite(self) -> bool:
        """True if every node box and container bound is finite with non-negative size."""
        for node in self.nodes():
            if not _finite_box(node.x, node.y, node.width, node.height):
                return False
        for container in self.containers:
            b = container.bounds
            if b is None or not _finite_box(b.x, b.y, b.width, b.height):
                return False
        return True


def _check_padding(container: ContainerData) -> None:
    value = container.attrs.get("padding")
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value) or value < 0:
        raise InvalidGraphError(
            f"Container '{container.key}' has invalid padding {value!r}; expected a finite number >= 0"
        )


def _finite_box(x: float, y: float, w: float, h: float) -> bool:
    return all(math.isfinite(v) for v in (x, y, w, h)) and w >= 0 and h >= 0
