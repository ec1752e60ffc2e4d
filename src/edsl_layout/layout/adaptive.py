"""Adaptive engine: pick an algorithm from the shape of the graph."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from edsl_layout.config import LayoutConfig
from edsl_layout.errors import UnknownEngineError
from edsl_layout.ir.graph import GraphIR
from edsl_layout.layout.base import LayoutEngine
from edsl_layout.types import EngineKind

logger = logging.getLogger(__name__)

DENSE_EDGE_RATIO = 2
LARGE_GRAPH_NODES = 100


def select_algorithm(gir: GraphIR) -> str:
    """Force for small, dense, flat graphs; hierarchical for everything else.

    A graph is dense when it has more than ``DENSE_EDGE_RATIO`` edges per node
    and large above ``LARGE_GRAPH_NODES`` nodes. Any container makes the graph
    structured, which always selects the hierarchical engine.
    """
    nodes = gir.node_count()
    structured = bool(gir.containers)
    dense = gir.edge_count() > nodes * DENSE_EDGE_RATIO
    large = nodes > LARGE_GRAPH_NODES
    if dense and not structured and not large:
        return EngineKind.Force.value
    return EngineKind.Hierarchical.value


class AdaptiveLayout:
    """Delegates to the engine ``select_algorithm`` picks.

    ``engines`` is read at layout time, so engines registered later replace
    the built-in ones here too.
    """

    name = "adaptive"

    def __init__(self, engines: Mapping[str, LayoutEngine]) -> None:
        self.engines = engines

    def layout(self, gir: GraphIR, config: LayoutConfig) -> None:
        choice = select_algorithm(gir)
        engine = self.engines.get(choice)
        if engine is None:
            raise UnknownEngineError(choice, sorted(self.engines))
        logger.debug(
            "adaptive layout chose %s for %d nodes, %d edges, %d containers",
            choice,
            gir.node_count(),
            gir.edge_count(),
            len(gir.containers),
        )
        engine.layout(gir, config.replace(algorithm=choice))
