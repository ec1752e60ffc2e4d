"""Unit tests for the layered layout: cycle breaking, ranking, ordering and coordinates."""

from __future__ import annotations

import random

import networkx as nx
import pytest

from edsl_layout.config import LayoutConfig
from edsl_layout.layout.sugiyama import (
    LayerAssignment,
    SugiyamaLayout,
    count_crossings,
    find_back_edges,
    initial_ordering,
    insert_dummy_nodes,
    minimise_crossings,
    remove_cycles,
    split_components,
)
from edsl_layout.layout.types import DUMMY_PREFIX, Scope
from edsl_layout.types import Direction

# ─── Helpers ─────────────────────────────────────────────────────────────────


def _digraph(nodes: list[str], edges: list[tuple[str, str]]) -> nx.DiGraph:
    g: nx.DiGraph = nx.DiGraph()
    g.add_nodes_from(nodes)
    g.add_edges_from(edges)
    return g


def _scope(nodes: list[str], edges: list[tuple[str, str]], width: float = 100.0, height: float = 50.0) -> Scope:
    return Scope.from_sizes([(n, width, height) for n in nodes], edges)


def _diamond() -> nx.DiGraph:
    return _digraph(["A", "B", "C", "D"], [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")])


def _random_graph(rng: random.Random, n: int, m: int) -> nx.DiGraph:
    nodes = [f"n{i}" for i in range(n)]
    edges = []
    for _ in range(m):
        a, b = rng.sample(nodes, 2)
        edges.append((a, b))
    return _digraph(nodes, edges)


# ─── Cycle breaking ──────────────────────────────────────────────────────────


class TestRemoveCycles:
    def test_acyclic_graph_unchanged(self):
        dag, reversed_edges = remove_cycles(_diamond())
        assert reversed_edges == set()
        assert set(dag.edges()) == {("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")}

    def test_three_cycle_reverses_closing_edge(self):
        g = _digraph(["A", "B", "C"], [("A", "B"), ("B", "C"), ("C", "A")])
        dag, reversed_edges = remove_cycles(g)
        assert reversed_edges == {("C", "A")}
        assert nx.is_directed_acyclic_graph(dag)

    def test_self_loop_ignored(self):
        g = _digraph(["A", "B"], [("A", "A"), ("A", "B")])
        dag, reversed_edges = remove_cycles(g)
        assert reversed_edges == set()
        assert ("A", "A") not in dag.edges()

    def test_dfs_starts_from_sources(self):
        # X has no predecessors, so traversal starts there even though A comes first.
        g = _digraph(["A", "B", "X"], [("A", "B"), ("B", "A"), ("X", "A")])
        result = find_back_edges(g)
        assert result.reversed_edges == {("B", "A")}

    def test_empty_graph(self):
        dag, reversed_edges = remove_cycles(nx.DiGraph())
        assert dag.number_of_nodes() == 0
        assert reversed_edges == set()

    def test_random_graphs_become_acyclic(self):
        rng = random.Random(3)
        for _ in range(25):
            g = _random_graph(rng, 7, 14)
            dag, _ = remove_cycles(g)
            assert nx.is_directed_acyclic_graph(dag)


# ─── Layer assignment ────────────────────────────────────────────────────────


class TestLayerAssignment:
    def test_diamond_ranks(self):
        la = LayerAssignment.assign(_diamond())
        assert la.layers == {"A": 0, "B": 1, "C": 1, "D": 2}
        assert la.layer_count == 3

    def test_longest_path(self):
        g = _digraph(["A", "B", "C"], [("A", "B"), ("B", "C"), ("A", "C")])
        la = LayerAssignment.assign(g)
        assert la.layers["C"] == 2

    def test_three_cycle_gets_distinct_ranks(self):
        g = _digraph(["A", "B", "C"], [("A", "B"), ("B", "C"), ("C", "A")])
        la = LayerAssignment.assign(g)
        assert sorted(la.layers.values()) == [0, 1, 2]
        assert la.layers["A"] == 0

    def test_isolated_nodes_at_rank_zero(self):
        la = LayerAssignment.assign(_digraph(["A", "B"], []))
        assert la.layers == {"A": 0, "B": 0}
        assert la.layer_count == 1

    def test_edges_point_downward_after_ranking(self):
        rng = random.Random(11)
        for _ in range(20):
            la = LayerAssignment.assign(_random_graph(rng, 8, 12))
            for src, tgt in la.dag.edges():
                assert la.layers[src] < la.layers[tgt]


# ─── Dummy nodes ─────────────────────────────────────────────────────────────


class TestDummyNodes:
    def test_long_edge_split(self):
        g = _digraph(["A", "B", "C"], [("A", "B"), ("B", "C"), ("A", "C")])
        aug = insert_dummy_nodes(LayerAssignment.assign(g))
        assert len(aug.dummy_edges) == 1
        dummy = aug.dummy_edges[0]
        assert (dummy.original_src, dummy.original_tgt) == ("A", "C")
        assert len(dummy.dummy_ids) == 1
        assert dummy.dummy_ids[0].startswith(DUMMY_PREFIX)
        assert aug.layers[dummy.dummy_ids[0]] == 1
        assert aug.is_dummy(dummy.dummy_ids[0])

    def test_short_edges_untouched(self):
        aug = insert_dummy_nodes(LayerAssignment.assign(_diamond()))
        assert aug.dummy_edges == []
        assert aug.graph.number_of_nodes() == 4

    def test_every_edge_spans_one_layer(self):
        rng = random.Random(5)
        for _ in range(20):
            aug = insert_dummy_nodes(LayerAssignment.assign(_random_graph(rng, 8, 14)))
            for src, tgt in aug.graph.edges():
                assert aug.layers[tgt] - aug.layers[src] == 1


# ─── Crossing minimisation ───────────────────────────────────────────────────


class TestCrossings:
    def test_count_single_crossing(self):
        g = _digraph(["A", "B", "C", "D"], [("A", "D"), ("B", "C")])
        assert count_crossings([["A", "B"], ["C", "D"]], g) == 1
        assert count_crossings([["A", "B"], ["D", "C"]], g) == 0

    def test_diamond_has_no_crossings(self):
        aug = insert_dummy_nodes(LayerAssignment.assign(_diamond()))
        ordering = minimise_crossings(aug)
        assert count_crossings(ordering, aug.graph) == 0

    def test_removes_avoidable_crossing(self):
        g = _digraph(["A", "B", "C", "D"], [("A", "D"), ("B", "C")])
        aug = insert_dummy_nodes(LayerAssignment.assign(g))
        assert count_crossings(initial_ordering(aug), aug.graph) == 1
        ordering = minimise_crossings(aug)
        assert count_crossings(ordering, aug.graph) == 0

    @pytest.mark.parametrize("heuristic", ["median", "barycenter"])
    def test_never_worse_than_initial(self, heuristic):
        rng = random.Random(2024)
        for _ in range(30):
            aug = insert_dummy_nodes(LayerAssignment.assign(_random_graph(rng, 9, 16)))
            before = count_crossings(initial_ordering(aug), aug.graph)
            after = count_crossings(minimise_crossings(aug, 8, heuristic), aug.graph)
            assert after <= before

    def test_zero_sweeps_keeps_initial_order(self):
        aug = insert_dummy_nodes(LayerAssignment.assign(_diamond()))
        assert minimise_crossings(aug, sweeps=0) == initial_ordering(aug)

    def test_ordering_is_permutation_of_layers(self):
        rng = random.Random(8)
        aug = insert_dummy_nodes(LayerAssignment.assign(_random_graph(rng, 10, 18)))
        ordering = minimise_crossings(aug)
        for layer_idx, layer in enumerate(ordering):
            assert sorted(layer) == sorted(n for n, r in aug.layers.items() if r == layer_idx)


# ─── Components ──────────────────────────────────────────────────────────────


class TestComponents:
    def test_split_in_first_appearance_order(self):
        g = _digraph(["X", "A", "Y", "B"], [("A", "B"), ("X", "Y")])
        assert split_components(g) == [["X", "Y"], ["A", "B"]]

    def test_components_side_by_side(self):
        cfg = LayoutConfig()
        pos = SugiyamaLayout().place(_scope(["A", "B", "C", "D"], [("A", "B"), ("C", "D")]), cfg)
        # Second component starts after the first plus node spacing.
        assert pos["A"].x == pytest.approx(0.0)
        assert pos["C"].x == pytest.approx(100.0 + cfg.node_spacing)
        assert pos["A"].y == pos["C"].y == pytest.approx(0.0)


# ─── Coordinates ─────────────────────────────────────────────────────────────


class TestCoordinates:
    def test_empty_scope(self):
        assert SugiyamaLayout().place(_scope([], []), LayoutConfig()) == {}

    def test_single_node_at_origin(self):
        pos = SugiyamaLayout().place(_scope(["A"], []), LayoutConfig())
        assert (pos["A"].x, pos["A"].y) == (0.0, 0.0)

    def test_rank_spacing_top_to_bottom(self):
        cfg = LayoutConfig()
        pos = SugiyamaLayout().place(_scope(["A", "B"], [("A", "B")]), cfg)
        assert pos["B"].y == pytest.approx(pos["A"].y + 50.0 + cfg.rank_spacing)
        assert pos["A"].x == pytest.approx(pos["B"].x)

    def test_diamond_is_symmetric(self):
        pos = SugiyamaLayout().place(_scope(["A", "B", "C", "D"], list(_diamond().edges())), LayoutConfig())
        assert pos["A"].x == pytest.approx(pos["D"].x)
        mid_bc = (pos["B"].x + pos["C"].x) / 2
        assert pos["A"].x == pytest.approx(mid_bc)
        assert pos["B"].y == pytest.approx(pos["C"].y)

    def test_bottom_to_top_mirrors(self):
        cfg = LayoutConfig(direction=Direction.BT)
        pos = SugiyamaLayout().place(_scope(["A", "B"], [("A", "B")]), cfg)
        assert pos["B"].y == pytest.approx(0.0)
        assert pos["A"].y > pos["B"].y

    def test_left_to_right(self):
        cfg = LayoutConfig(direction=Direction.LR)
        pos = SugiyamaLayout().place(_scope(["A", "B"], [("A", "B")]), cfg)
        assert pos["B"].x == pytest.approx(100.0 + cfg.rank_spacing)
        assert pos["A"].y == pytest.approx(pos["B"].y)

    def test_right_to_left(self):
        cfg = LayoutConfig(direction=Direction.RL)
        pos = SugiyamaLayout().place(_scope(["A", "B"], [("A", "B")]), cfg)
        assert pos["B"].x == pytest.approx(0.0)
        assert pos["A"].x == pytest.approx(100.0 + cfg.rank_spacing)

    def test_mixed_heights_centred_in_rank(self):
        scope = Scope.from_sizes([("A", 100, 100), ("B", 100, 40), ("C", 100, 50)], [("A", "C"), ("B", "C")])
        pos = SugiyamaLayout().place(scope, LayoutConfig())
        assert pos["A"].y == pytest.approx(0.0)
        assert pos["B"].y == pytest.approx(30.0)
        assert pos["C"].y == pytest.approx(100.0 + 150.0)

    @pytest.mark.parametrize("direction", list(Direction))
    def test_no_same_rank_overlap(self, direction):
        cfg = LayoutConfig(direction=direction)
        rng = random.Random(17)
        engine = SugiyamaLayout()
        for _ in range(10):
            g = _random_graph(rng, 10, 14)
            sizes = [(n, rng.uniform(60, 200), rng.uniform(40, 120)) for n in g.nodes]
            scope = Scope.from_sizes(sizes, g.edges())
            pos = engine.place(scope, cfg)
            plans = engine.plan(scope.graph, cfg)
            for plan in plans:
                for layer in plan.ordering:
                    real = [n for n in layer if not plan.aug.is_dummy(n)]
                    for i, a in enumerate(real):
                        for b in real[i + 1 :]:
                            wa, ha = scope.size(a)
                            wb, hb = scope.size(b)
                            if direction.is_horizontal:
                                dist = abs((pos[a].y + ha / 2) - (pos[b].y + hb / 2))
                                need = cfg.node_spacing + (ha + hb) / 2
                            else:
                                dist = abs((pos[a].x + wa / 2) - (pos[b].x + wb / 2))
                                need = cfg.node_spacing + (wa + wb) / 2
                            assert dist >= need - 1e-6

    def test_output_starts_at_origin(self):
        rng = random.Random(4)
        g = _random_graph(rng, 8, 10)
        pos = SugiyamaLayout().place(Scope.from_sizes([(n, 120, 60) for n in g.nodes], g.edges()), LayoutConfig())
        assert min(p.x for p in pos.values()) == pytest.approx(0.0)
        assert min(p.y for p in pos.values()) == pytest.approx(0.0)

    def test_deterministic(self):
        rng = random.Random(9)
        g = _random_graph(rng, 12, 20)
        scope = Scope.from_sizes([(n, 100, 60) for n in g.nodes], g.edges())
        first = SugiyamaLayout().place(scope, LayoutConfig())
        second = SugiyamaLayout().place(scope, LayoutConfig())
        assert first == second

    def test_dummies_not_in_output(self):
        g = _digraph(["A", "B", "C"], [("A", "B"), ("B", "C"), ("A", "C")])
        pos = SugiyamaLayout().place(_scope(list(g.nodes), list(g.edges())), LayoutConfig())
        assert set(pos) == {"A", "B", "C"}
