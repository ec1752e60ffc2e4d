"""Layout types shared across layout engines, the orchestrator and the cache."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

import networkx as nx

from edsl_layout.ir.graph import GraphIR
from edsl_layout.types import BoundingBox, Point

# Prefix constants
DUMMY_PREFIX = "__dummy_"


@dataclass
class Scope:
    """One independent layout problem: the direct members of a container or of the top level.

    ``graph`` holds one node per member, in member order, with ``width`` and
    ``height`` attributes; containers appear as sized macro-nodes. Edges are
    the graph's edges collapsed onto the members that hold their endpoints.
    """

    key: str | None
    graph: nx.DiGraph

    @property
    def members(self) -> list[str]:
        return list(self.graph.nodes)

    def size(self, member: str) -> tuple[float, float]:
        attrs = self.graph.nodes[member]
        return (attrs["width"], attrs["height"])

    @classmethod
    def from_sizes(
        cls,
        sizes: list[tuple[str, float, float]],
        edges: Iterable[tuple[str, str]] = (),
        key: str | None = None,
    ) -> Scope:
        g: nx.DiGraph = nx.DiGraph()
        for member, width, height in sizes:
            g.add_node(member, width=width, height=height)
        for src, tgt in edges:
            g.add_edge(src, tgt)
        return cls(key=key, graph=g)


@dataclass
class LayoutSnapshot:
    """Every geometric field of a positioned graph, keyed by identity."""

    nodes: dict[str, tuple[float, float]] = field(default_factory=dict)
    containers: dict[str, tuple[float, float, float, float]] = field(default_factory=dict)
    edges: dict[int, tuple[float, float, float, float]] = field(default_factory=dict)

    @classmethod
    def capture(cls, gir: GraphIR) -> LayoutSnapshot:
        snap = cls()
        for node in gir.nodes():
            snap.nodes[node.id] = (node.x, node.y)
        for container in gir.containers:
            if container.bounds is not None:
                b = container.bounds
                snap.containers[container.key] = (b.x, b.y, b.width, b.height)
        for edge in gir.edges():
            if edge.start is not None and edge.end is not None:
                snap.edges[edge.id] = (edge.start.x, edge.start.y, edge.end.x, edge.end.y)
        return snap

    def apply(self, gir: GraphIR) -> None:
        """Copy the stored geometry onto ``gir`` (new objects, never shared)."""
        for node in gir.nodes():
            if node.id in self.nodes:
                node.x, node.y = self.nodes[node.id]
        for container in gir.containers:
            if container.key in self.containers:
                container.bounds = BoundingBox(*self.containers[container.key])
        for edge in gir.edges():
            if edge.id in self.edges:
                sx, sy, ex, ey = self.edges[edge.id]
                edge.start = Point(sx, sy)
                edge.end = Point(ex, ey)
