"""Layout engines, orchestration and the public layout API."""

from __future__ import annotations

from edsl_layout.layout.adaptive import AdaptiveLayout, select_algorithm
from edsl_layout.layout.base import LayoutEngine, ScopeAlgorithm
from edsl_layout.layout.cache import LayoutCache, fingerprint
from edsl_layout.layout.containers import ContainerLayout
from edsl_layout.layout.edges import connect_edges
from edsl_layout.layout.elk import ElkLayout, NodeElkRunner, to_elk_graph
from edsl_layout.layout.force import ForceDirectedLayout
from edsl_layout.layout.groups import place_flow, place_grid
from edsl_layout.layout.manager import LayoutManager
from edsl_layout.layout.registry import get_engine
from edsl_layout.layout.sugiyama import (
    AugmentedGraph,
    CycleRemovalResult,
    DummyEdge,
    LayerAssignment,
    SugiyamaLayout,
    count_crossings,
    insert_dummy_nodes,
    minimise_crossings,
    remove_cycles,
)
from edsl_layout.layout.types import DUMMY_PREFIX, LayoutSnapshot, Scope

__all__ = [
    "DUMMY_PREFIX",
    "AdaptiveLayout",
    "AugmentedGraph",
    "ContainerLayout",
    "CycleRemovalResult",
    "DummyEdge",
    "ElkLayout",
    "ForceDirectedLayout",
    "LayerAssignment",
    "LayoutCache",
    "LayoutEngine",
    "LayoutManager",
    "LayoutSnapshot",
    "NodeElkRunner",
    "Scope",
    "ScopeAlgorithm",
    "SugiyamaLayout",
    "connect_edges",
    "count_crossings",
    "fingerprint",
    "get_engine",
    "insert_dummy_nodes",
    "minimise_crossings",
    "place_flow",
    "place_grid",
    "remove_cycles",
    "select_algorithm",
    "to_elk_graph",
]
