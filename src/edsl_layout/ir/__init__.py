"""Intermediate representation: the graph model and its JSON document form."""

from edsl_layout.ir.document import graph_from_dict, graph_to_dict
from edsl_layout.ir.graph import CONTAINER_PREFIX, GROUP_PADDING, ContainerData, EdgeData, GraphIR, NodeData
from edsl_layout.ir.sizing import estimate_node_size, text_dimensions

__all__ = [
    "CONTAINER_PREFIX",
    "GROUP_PADDING",
    "ContainerData",
    "EdgeData",
    "GraphIR",
    "NodeData",
    "estimate_node_size",
    "graph_from_dict",
    "graph_to_dict",
    "text_dimensions",
]
