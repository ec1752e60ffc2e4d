"""Recursive container layout.

Every container is laid out on its own, children before parents, and then
stands in its parent's scope as a single sized macro-node. Once the top level
is placed, local frames are translated down the tree so that every node
position and container bound ends up in the top-level frame.

Group containers (flow, basic, semantic) arrange their own members; see
:mod:`edsl_layout.layout.groups`. Because a finished group is a single
macro-node in its parent scope, groups never overlap each other.

Containers whose nested containers are all finished form a wave; the members
of a wave are independent and are laid out together on a thread pool.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from edsl_layout.config import LayoutConfig
from edsl_layout.ir.graph import GraphIR
from edsl_layout.layout.base import ScopeAlgorithm
from edsl_layout.layout.edges import connect_edges
from edsl_layout.layout.groups import arrange_members
from edsl_layout.layout.types import Scope
from edsl_layout.types import BoundingBox, Point

logger = logging.getLogger(__name__)

ScopeId = int | None  # container index, or None for the top level


@dataclass
class PlacedContainer:
    """A container laid out in its own frame: members relative to its top-left corner."""

    width: float
    height: float
    members: dict[str, Point] = field(default_factory=dict)


# ─── Scope construction ──────────────────────────────────────────────────────


def lowest_common_container(gir: GraphIR, source: str, target: str) -> ScopeId:
    target_chain = set(gir.ancestors(target))
    for idx in gir.ancestors(source):
        if idx in target_chain:
            return idx
    return None


def member_in_scope(gir: GraphIR, node_id: str, scope: ScopeId) -> str:
    """The direct member of ``scope`` that holds ``node_id`` (the node or an enclosing container)."""
    holder = node_id
    for idx in gir.ancestors(node_id):
        if idx == scope:
            return holder
        holder = gir.containers[idx].key
    return holder


def scope_edges(gir: GraphIR) -> dict[ScopeId, list[tuple[str, str]]]:
    """Assign each edge to the scope of its lowest common container.

    Endpoints are replaced by the members of that scope that hold them. Edges
    that collapse onto a single member are dropped.
    """
    result: dict[ScopeId, list[tuple[str, str]]] = {}
    for edge in gir.edges():
        scope = lowest_common_container(gir, edge.source, edge.target)
        src = member_in_scope(gir, edge.source, scope)
        tgt = member_in_scope(gir, edge.target, scope)
        if src == tgt:
            continue
        result.setdefault(scope, []).append((src, tgt))
    return result


def build_scope(
    gir: GraphIR,
    scope: ScopeId,
    placed: dict[int, PlacedContainer],
    edges: dict[ScopeId, list[tuple[str, str]]],
) -> Scope:
    members = gir.root_members() if scope is None else gir.containers[scope].members
    sizes: list[tuple[str, float, float]] = []
    for member in members:
        idx = gir.container_index(member)
        if idx is None:
            node = gir.node(member)
            sizes.append((member, node.width, node.height))
        else:
            sizes.append((member, placed[idx].width, placed[idx].height))
    key = None if scope is None else gir.containers[scope].key
    return Scope.from_sizes(sizes, edges.get(scope, []), key=key)


def container_waves(gir: GraphIR) -> list[list[int]]:
    """Group containers into waves; every container follows all of its nested ones."""
    done: set[int] = set()
    remaining = gir.post_order()
    waves: list[list[int]] = []
    while remaining:
        wave = [idx for idx in remaining if all(child in done for child in gir.nested_containers(idx))]
        waves.append(wave)
        done.update(wave)
        remaining = [idx for idx in remaining if idx not in done]
    return waves


# ─── Orchestrator ────────────────────────────────────────────────────────────


class ContainerLayout:
    """Apply a per-scope algorithm to every container and to the top level."""

    def __init__(self, algorithm: ScopeAlgorithm, name: str | None = None) -> None:
        self.algorithm = algorithm
        self.name = name or algorithm.name

    def layout_container(
        self,
        gir: GraphIR,
        idx: int,
        placed: dict[int, PlacedContainer],
        edges: dict[ScopeId, list[tuple[str, str]]],
        config: LayoutConfig,
    ) -> PlacedContainer:
        container = gir.containers[idx]
        padding = container.padding(config.container_padding)
        scope = build_scope(gir, idx, placed, edges)
        positions = arrange_members(container.kind, scope, config, self.algorithm)
        if not positions:
            return PlacedContainer(width=2 * padding, height=2 * padding)

        min_x = min(p.x for p in positions.values())
        min_y = min(p.y for p in positions.values())
        max_x = max(positions[m].x + scope.size(m)[0] for m in positions)
        max_y = max(positions[m].y + scope.size(m)[1] for m in positions)
        members = {m: Point(p.x - min_x + padding, p.y - min_y + padding) for m, p in positions.items()}
        return PlacedContainer(
            width=max_x - min_x + 2 * padding,
            height=max_y - min_y + 2 * padding,
            members=members,
        )

    def run_wave(
        self,
        gir: GraphIR,
        wave: list[int],
        placed: dict[int, PlacedContainer],
        edges: dict[ScopeId, list[tuple[str, str]]],
        config: LayoutConfig,
    ) -> dict[int, PlacedContainer]:
        if config.parallel and len(wave) > 1:
            with ThreadPoolExecutor(max_workers=config.max_workers) as pool:
                futures = [pool.submit(self.layout_container, gir, idx, placed, edges, config) for idx in wave]
                results = [future.result() for future in futures]
        else:
            results = [self.layout_container(gir, idx, placed, edges, config) for idx in wave]
        return dict(zip(wave, results))

    def layout(self, gir: GraphIR, config: LayoutConfig) -> None:
        edges = scope_edges(gir)
        placed: dict[int, PlacedContainer] = {}

        for number, wave in enumerate(container_waves(gir)):
            logger.debug("container wave %d: %d containers", number, len(wave))
            # Merge only after the whole wave has joined.
            placed.update(self.run_wave(gir, wave, placed, edges, config))

        root = build_scope(gir, None, placed, edges)
        root_positions = self.algorithm.place(root, config)
        for member, pos in root_positions.items():
            self._translate(gir, member, pos.x, pos.y, placed)

        connect_edges(gir)

    def _translate(self, gir: GraphIR, member: str, x: float, y: float, placed: dict[int, PlacedContainer]) -> None:
        idx = gir.container_index(member)
        if idx is None:
            node = gir.node(member)
            node.x, node.y = x, y
            return
        local = placed[idx]
        gir.containers[idx].bounds = BoundingBox(x, y, local.width, local.height)
        for child, pos in local.members.items():
            self._translate(gir, child, x + pos.x, y + pos.y, placed)
