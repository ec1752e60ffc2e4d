"""Edge connector endpoints.

After node boxes are placed, each edge gets a start and end point where the
centre-to-centre line leaves the source shape and enters the target shape.
"""

from __future__ import annotations

import math

from edsl_layout.ir.graph import GraphIR, NodeData
from edsl_layout.types import NodeShape, Point


def boundary_point(node: NodeData, toward: Point) -> Point:
    """Point on the outline of ``node`` along the ray from its centre to ``toward``."""
    centre = node.center
    dx = toward.x - centre.x
    dy = toward.y - centre.y
    length = math.hypot(dx, dy)
    if length == 0.0:
        return centre

    ux, uy = dx / length, dy / length
    hw, hh = node.width / 2, node.height / 2

    if node.shape is NodeShape.Ellipse and hw > 0 and hh > 0:
        t = 1.0 / math.sqrt((ux / hw) ** 2 + (uy / hh) ** 2)
    elif node.shape is NodeShape.Diamond and hw > 0 and hh > 0:
        t = 1.0 / (abs(ux) / hw + abs(uy) / hh)
    else:
        tx = hw / abs(ux) if ux != 0.0 else math.inf
        ty = hh / abs(uy) if uy != 0.0 else math.inf
        t = min(tx, ty)
        if not math.isfinite(t):
            t = 0.0

    return Point(centre.x + ux * t, centre.y + uy * t)


def connect_edge(source: NodeData, target: NodeData) -> tuple[Point, Point]:
    if source.id == target.id:
        # Self-loop: leave from the right side, come back in at the top.
        return (
            Point(source.x + source.width, source.y + source.height / 2),
            Point(source.x + source.width / 2, source.y),
        )
    return boundary_point(source, target.center), boundary_point(target, source.center)


def connect_edges(gir: GraphIR) -> None:
    """Write ``start``/``end`` for every edge of a positioned graph."""
    for edge in gir.edges():
        edge.start, edge.end = connect_edge(gir.node(edge.source), gir.node(edge.target))
