"""Sugiyama-style layered graph layout engine.

Phases:
  1. Cycle breaking (DFS back-edge reversal)
  2. Layer assignment (longest path)
  3. Dummy node insertion
  4. Crossing minimization (median / barycenter sweeps, best kept)
  5. Coordinate assignment
  6. Component packing

Coordinates are computed in an abstract frame (primary axis = rank direction,
secondary axis = order within a rank) and mapped to x/y at the end according
to the layout direction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import networkx as nx

from edsl_layout.config import LayoutConfig
from edsl_layout.layout.types import DUMMY_PREFIX, Scope
from edsl_layout.types import Direction, Point

logger = logging.getLogger(__name__)

# ─── Tuning constants ────────────────────────────────────────────────────────

ALIGNMENT_PASSES: int = 4


# ─── Cycle Breaking (DFS) ────────────────────────────────────────────────────


@dataclass
class CycleRemovalResult:
    reversed_edges: set[tuple[str, str]] = field(default_factory=set)


def _has_real_predecessor(graph: nx.DiGraph, node: str) -> bool:
    return any(pred != node for pred in graph.predecessors(node))


def find_back_edges(graph: nx.DiGraph) -> CycleRemovalResult:
    """Depth-first traversal in input order, sources first.

    Any edge that reaches a node still on the DFS stack closes a cycle and is
    reported as a back edge. Self-loops are skipped.
    """
    sources = [n for n in graph.nodes if not _has_real_predecessor(graph, n)]
    rest = [n for n in graph.nodes if _has_real_predecessor(graph, n)]

    on_stack: set[str] = set()
    done: set[str] = set()
    back_edges: set[tuple[str, str]] = set()

    for root in sources + rest:
        if root in done:
            continue
        on_stack.add(root)
        stack = [(root, iter(list(graph.successors(root))))]
        while stack:
            node, successors = stack[-1]
            descended = False
            for succ in successors:
                if succ == node:
                    continue
                if succ in on_stack:
                    back_edges.add((node, succ))
                elif succ not in done:
                    on_stack.add(succ)
                    stack.append((succ, iter(list(graph.successors(succ)))))
                    descended = True
                    break
            if not descended:
                stack.pop()
                on_stack.discard(node)
                done.add(node)

    return CycleRemovalResult(reversed_edges=back_edges)


def remove_cycles(graph: nx.DiGraph) -> tuple[nx.DiGraph, set[tuple[str, str]]]:
    """Reverse DFS back edges and drop self-loops. Returns (dag, reversed_edges).

    The reversal only affects ranking; callers keep the original direction
    for rendering and arrowheads.
    """
    if graph.number_of_nodes() == 0:
        return nx.DiGraph(), set()

    reversed_edges = find_back_edges(graph).reversed_edges

    dag: nx.DiGraph = nx.DiGraph()
    for node_id in graph.nodes:
        dag.add_node(node_id, **graph.nodes[node_id])

    for src, tgt in graph.edges():
        if src == tgt:
            continue
        if (src, tgt) in reversed_edges:
            dag.add_edge(tgt, src)
        else:
            dag.add_edge(src, tgt)

    return dag, reversed_edges


# ─── Layer Assignment ────────────────────────────────────────────────────────


class LayerAssignment:
    def __init__(
        self,
        layers: dict[str, int],
        layer_count: int,
        reversed_edges: set[tuple[str, str]],
        dag: nx.DiGraph,
    ) -> None:
        self.layers = layers
        self.layer_count = layer_count
        self.reversed_edges = reversed_edges
        self.dag = dag

    @classmethod
    def assign(cls, graph: nx.DiGraph) -> LayerAssignment:
        """Longest-path ranking: each node sits one below its deepest predecessor.

        Ties are broken by input order so that the result is deterministic.
        """
        dag, reversed_edges = remove_cycles(graph)
        position: dict[str, int] = {node_id: i for i, node_id in enumerate(graph.nodes)}
        layers: dict[str, int] = {node_id: 0 for node_id in graph.nodes}

        for node_id in nx.lexicographical_topological_sort(dag, key=position.__getitem__):
            for succ in dag.successors(node_id):
                if layers[succ] < layers[node_id] + 1:
                    layers[succ] = layers[node_id] + 1

        layer_count = (max(layers.values()) + 1) if layers else 0
        return cls(layers=layers, layer_count=layer_count, reversed_edges=reversed_edges, dag=dag)


# ─── Dummy Node Insertion ────────────────────────────────────────────────────


@dataclass
class DummyEdge:
    original_src: str
    original_tgt: str
    dummy_ids: list[str]


@dataclass
class AugmentedGraph:
    graph: nx.DiGraph
    layers: dict[str, int]
    layer_count: int
    dummy_edges: list[DummyEdge]

    def is_dummy(self, node_id: str) -> bool:
        return bool(self.graph.nodes[node_id].get("dummy", False))


def insert_dummy_nodes(la: LayerAssignment) -> AugmentedGraph:
    """Insert dummy nodes for edges spanning multiple layers."""
    g: nx.DiGraph = nx.DiGraph()
    for node_id in la.dag.nodes:
        g.add_node(node_id, dummy=False)

    layers: dict[str, int] = dict(la.layers)
    dummy_edges: list[DummyEdge] = []
    edge_counter = 0

    for src_id, tgt_id in la.dag.edges():
        span = layers[tgt_id] - layers[src_id]
        if span <= 1:
            g.add_edge(src_id, tgt_id)
            continue

        dummy_ids: list[str] = []
        chain_prev = src_id
        for i in range(span - 1):
            dummy_id = f"{DUMMY_PREFIX}{edge_counter}_{i}"
            g.add_node(dummy_id, dummy=True)
            layers[dummy_id] = layers[src_id] + i + 1
            dummy_ids.append(dummy_id)
            g.add_edge(chain_prev, dummy_id)
            chain_prev = dummy_id
        g.add_edge(chain_prev, tgt_id)

        dummy_edges.append(DummyEdge(original_src=src_id, original_tgt=tgt_id, dummy_ids=dummy_ids))
        edge_counter += 1

    return AugmentedGraph(graph=g, layers=layers, layer_count=la.layer_count, dummy_edges=dummy_edges)


# ─── Crossing Minimization ───────────────────────────────────────────────────


def initial_ordering(aug: AugmentedGraph) -> list[list[str]]:
    """Nodes grouped by layer in graph insertion order (real nodes first, then dummies)."""
    ordering: list[list[str]] = [[] for _ in range(aug.layer_count)]
    for node_id in aug.graph.nodes:
        ordering[aug.layers[node_id]].append(node_id)
    return ordering


def count_crossings(ordering: list[list[str]], graph: nx.DiGraph) -> int:
    total = 0
    for l_idx in range(len(ordering) - 1):
        tgt_pos: dict[str, int] = {nid: i for i, nid in enumerate(ordering[l_idx + 1])}
        edges: list[tuple[int, int]] = []
        for sp, src_id in enumerate(ordering[l_idx]):
            if src_id in graph:
                for nb in graph.successors(src_id):
                    if nb in tgt_pos:
                        edges.append((sp, tgt_pos[nb]))
        for i in range(len(edges)):
            for j in range(i + 1, len(edges)):
                ei, ej = edges[i], edges[j]
                if (ei[0] < ej[0] and ei[1] > ej[1]) or (ei[0] > ej[0] and ei[1] < ej[1]):
                    total += 1
    return total


def _median(values: list[float]) -> float:
    values = sorted(values)
    mid = len(values) // 2
    if len(values) % 2 == 1:
        return values[mid]
    return (values[mid - 1] + values[mid]) / 2


def _order_key(
    neighbors: list[str],
    neighbor_pos: dict[str, int],
    current: int,
    heuristic: str,
) -> float:
    positions = [float(neighbor_pos[nb]) for nb in neighbors if nb in neighbor_pos]
    if not positions:
        return float(current)
    if heuristic == "barycenter":
        return sum(positions) / len(positions)
    return _median(positions)


def _sweep_layer(
    layer: list[str],
    fixed: list[str],
    graph: nx.DiGraph,
    downward: bool,
    heuristic: str,
) -> list[str]:
    fixed_pos = {nid: i for i, nid in enumerate(fixed)}
    keys: dict[str, float] = {}
    for i, node_id in enumerate(layer):
        neighbors = list(graph.predecessors(node_id)) if downward else list(graph.successors(node_id))
        keys[node_id] = _order_key(neighbors, fixed_pos, i, heuristic)
    return sorted(layer, key=keys.__getitem__)


def minimise_crossings(aug: AugmentedGraph, sweeps: int = 8, heuristic: str = "median") -> list[list[str]]:
    """Reorder nodes within layers to reduce edge crossings.

    Sweeps alternate top-to-bottom and bottom-to-top. The ordering with the
    fewest crossings seen so far is kept, starting with the initial ordering;
    a later sweep replaces it on ties.
    """
    ordering = initial_ordering(aug)
    best = [list(layer) for layer in ordering]
    best_count = count_crossings(ordering, aug.graph)
    if aug.layer_count < 2:
        return best

    for sweep in range(sweeps):
        downward = sweep % 2 == 0
        if downward:
            for layer_idx in range(1, aug.layer_count):
                ordering[layer_idx] = _sweep_layer(
                    ordering[layer_idx], ordering[layer_idx - 1], aug.graph, True, heuristic
                )
        else:
            for layer_idx in range(aug.layer_count - 2, -1, -1):
                ordering[layer_idx] = _sweep_layer(
                    ordering[layer_idx], ordering[layer_idx + 1], aug.graph, False, heuristic
                )

        crossings = count_crossings(ordering, aug.graph)
        logger.debug("sweep %d (%s): %d crossings", sweep, "down" if downward else "up", crossings)
        if crossings <= best_count:
            best_count = crossings
            best = [list(layer) for layer in ordering]

    return best


# ─── Coordinate Assignment ───────────────────────────────────────────────────


@dataclass
class PlacedComponent:
    """A component positioned in the abstract frame, with its extents."""

    secondary: dict[str, float]  # left edge along the secondary axis
    primary: dict[str, float]  # top edge along the primary axis
    secondary_extent: float
    primary_extent: float


def _extents(
    aug: AugmentedGraph,
    sizes: dict[str, tuple[float, float]],
    direction: Direction,
    edge_spacing: float,
) -> tuple[dict[str, float], dict[str, float]]:
    """Per-node (secondary, primary) extents. Dummies are thin along the primary axis."""
    sec: dict[str, float] = {}
    pri: dict[str, float] = {}
    for node_id in aug.graph.nodes:
        if aug.is_dummy(node_id):
            sec[node_id] = edge_spacing
            pri[node_id] = 0.0
            continue
        width, height = sizes[node_id]
        if direction.is_horizontal:
            sec[node_id], pri[node_id] = height, width
        else:
            sec[node_id], pri[node_id] = width, height
    return sec, pri


def assign_coordinates(
    ordering: list[list[str]],
    aug: AugmentedGraph,
    sizes: dict[str, tuple[float, float]],
    config: LayoutConfig,
) -> PlacedComponent:
    """Assign primary/secondary offsets to every node of one component."""
    sec_ext, pri_ext = _extents(aug, sizes, config.direction, config.edge_spacing)

    def sep(a: str, b: str) -> float:
        return config.node_spacing + (sec_ext[a] + sec_ext[b]) / 2

    # Primary axis: rank bands.
    primary: dict[str, float] = {}
    offset = 0.0
    for layer_idx, layer in enumerate(ordering):
        band = max((pri_ext[n] for n in layer), default=0.0)
        for node_id in layer:
            primary[node_id] = offset + (band - pri_ext[node_id]) / 2
        offset += band
        if layer_idx < len(ordering) - 1:
            offset += config.rank_spacing

    # Secondary axis: packed centres, then pulled toward neighbours.
    center: dict[str, float] = {}
    for layer in ordering:
        pos = 0.0
        for i, node_id in enumerate(layer):
            pos = sec_ext[node_id] / 2 if i == 0 else pos + sep(layer[i - 1], node_id)
            center[node_id] = pos

    for pass_idx in range(ALIGNMENT_PASSES):
        downward = pass_idx % 2 == 0
        layer_indices = range(1, len(ordering)) if downward else range(len(ordering) - 2, -1, -1)
        for layer_idx in layer_indices:
            layer = ordering[layer_idx]
            if not layer:
                continue
            desired: list[float] = []
            for node_id in layer:
                neighbors = (
                    list(aug.graph.predecessors(node_id)) if downward else list(aug.graph.successors(node_id))
                )
                if neighbors:
                    desired.append(sum(center[nb] for nb in neighbors) / len(neighbors))
                else:
                    desired.append(center[node_id])

            left = list(desired)
            for i in range(1, len(layer)):
                left[i] = max(desired[i], left[i - 1] + sep(layer[i - 1], layer[i]))
            right = list(desired)
            for i in range(len(layer) - 2, -1, -1):
                right[i] = min(desired[i], right[i + 1] - sep(layer[i], layer[i + 1]))
            for i, node_id in enumerate(layer):
                center[node_id] = (left[i] + right[i]) / 2

    if not center:
        return PlacedComponent(secondary={}, primary={}, secondary_extent=0.0, primary_extent=0.0)

    min_edge = min(center[n] - sec_ext[n] / 2 for n in center)
    max_edge = max(center[n] + sec_ext[n] / 2 for n in center)
    secondary = {n: center[n] - sec_ext[n] / 2 - min_edge for n in center}
    return PlacedComponent(
        secondary=secondary,
        primary=primary,
        secondary_extent=max_edge - min_edge,
        primary_extent=offset,
    )


# ─── SugiyamaLayout Engine ───────────────────────────────────────────────────


@dataclass
class ComponentPlan:
    """The ranking and ordering of one weakly connected component."""

    members: list[str]
    assignment: LayerAssignment
    aug: AugmentedGraph
    ordering: list[list[str]]


def split_components(graph: nx.DiGraph) -> list[list[str]]:
    """Weakly connected components, each in input order, ordered by first member."""
    position = {n: i for i, n in enumerate(graph.nodes)}
    components = [sorted(comp, key=position.__getitem__) for comp in nx.weakly_connected_components(graph)]
    components.sort(key=lambda comp: position[comp[0]])
    return components


class SugiyamaLayout:
    """Sugiyama layered layout engine."""

    name = "hierarchical"

    def plan(self, graph: nx.DiGraph, config: LayoutConfig) -> list[ComponentPlan]:
        plans: list[ComponentPlan] = []
        for members in split_components(graph):
            member_set = set(members)
            component: nx.DiGraph = nx.DiGraph()
            component.add_nodes_from(members)
            component.add_edges_from((s, t) for s, t in graph.edges() if s in member_set and t in member_set)
            la = LayerAssignment.assign(component)
            aug = insert_dummy_nodes(la)
            ordering = minimise_crossings(aug, config.crossing_sweeps, config.ordering_heuristic)
            plans.append(ComponentPlan(members=members, assignment=la, aug=aug, ordering=ordering))
        return plans

    def place(self, scope: Scope, config: LayoutConfig) -> dict[str, Point]:
        if scope.graph.number_of_nodes() == 0:
            return {}

        sizes = {m: scope.size(m) for m in scope.members}
        placed: list[PlacedComponent] = []
        for plan in self.plan(scope.graph, config):
            placed.append(assign_coordinates(plan.ordering, plan.aug, sizes, config))

        # Pack components side by side along the secondary axis.
        secondary: dict[str, float] = {}
        primary: dict[str, float] = {}
        cursor = 0.0
        for comp in placed:
            for node_id, offset in comp.secondary.items():
                secondary[node_id] = cursor + offset
            primary.update(comp.primary)
            cursor += comp.secondary_extent + config.node_spacing

        direction = config.direction
        total_primary = max(comp.primary_extent for comp in placed)
        positions: dict[str, Point] = {}
        for member in scope.members:
            width, height = sizes[member]
            pri_extent = width if direction.is_horizontal else height
            pri = primary[member]
            if direction.is_reversed:
                pri = total_primary - pri - pri_extent
            sec = secondary[member]
            positions[member] = Point(pri, sec) if direction.is_horizontal else Point(sec, pri)

        logger.debug("hierarchical layout of scope %r: %d members, %d components", scope.key, len(positions), len(placed))
        return positions
