"""Fixed member arrangements for group containers.

Flow groups line their members up in member order along the diagram
direction. Basic and semantic groups whose members share no edges become a
near-square grid; with edges between members they fall back to the active
algorithm like a plain container.
"""

from __future__ import annotations

import math

from edsl_layout.config import LayoutConfig
from edsl_layout.layout.base import ScopeAlgorithm
from edsl_layout.layout.types import Scope
from edsl_layout.types import ContainerKind, Point

FLOW_SPACING_FACTOR = 1.5


def place_flow(scope: Scope, config: LayoutConfig) -> dict[str, Point]:
    """One line of members, ``1.5 * node_spacing`` apart, centred on the cross axis."""
    members = scope.members
    if not members:
        return {}
    horizontal = config.direction.is_horizontal
    gap = config.node_spacing * FLOW_SPACING_FACTOR

    def along(member: str) -> float:
        width, height = scope.size(member)
        return width if horizontal else height

    def across(member: str) -> float:
        width, height = scope.size(member)
        return height if horizontal else width

    band = max(across(m) for m in members)
    offsets: dict[str, float] = {}
    offset = 0.0
    for member in members:
        offsets[member] = offset
        offset += along(member) + gap
    length = offset - gap

    positions: dict[str, Point] = {}
    for member in members:
        main = offsets[member]
        if config.direction.is_reversed:
            main = length - main - along(member)
        cross = (band - across(member)) / 2
        positions[member] = Point(main, cross) if horizontal else Point(cross, main)
    return positions


def place_grid(scope: Scope, config: LayoutConfig) -> dict[str, Point]:
    """Row-major grid with ``ceil(sqrt(n))`` columns sized to their widest member."""
    members = scope.members
    if not members:
        return {}
    cols = math.ceil(math.sqrt(len(members)))
    rows = math.ceil(len(members) / cols)
    col_widths = [0.0] * cols
    row_heights = [0.0] * rows
    for i, member in enumerate(members):
        width, height = scope.size(member)
        col_widths[i % cols] = max(col_widths[i % cols], width)
        row_heights[i // cols] = max(row_heights[i // cols], height)

    xs = [0.0]
    for width in col_widths[:-1]:
        xs.append(xs[-1] + width + config.node_spacing)
    ys = [0.0]
    for height in row_heights[:-1]:
        ys.append(ys[-1] + height + config.rank_spacing)
    return {member: Point(xs[i % cols], ys[i // cols]) for i, member in enumerate(members)}


def arrange_members(
    kind: ContainerKind,
    scope: Scope,
    config: LayoutConfig,
    algorithm: ScopeAlgorithm,
) -> dict[str, Point]:
    if kind is ContainerKind.Flow:
        return place_flow(scope, config)
    if kind in (ContainerKind.Basic, ContainerKind.Semantic) and scope.graph.number_of_edges() == 0:
        return place_grid(scope, config)
    return algorithm.place(scope, config)
