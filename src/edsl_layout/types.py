"""Shared type definitions for edsl-layout.

Enums and small geometry types used across the graph model, the layout
engines and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Direction(Enum):
    TB = "top-to-bottom"
    BT = "bottom-to-top"
    LR = "left-to-right"
    RL = "right-to-left"

    @classmethod
    def default(cls) -> Direction:
        return cls.TB

    @property
    def is_horizontal(self) -> bool:
        """True when ranks advance along the x axis."""
        return self in (Direction.LR, Direction.RL)

    @property
    def is_reversed(self) -> bool:
        """True when ranks advance toward smaller coordinates."""
        return self in (Direction.BT, Direction.RL)


class NodeShape(Enum):
    Rectangle = "rectangle"
    Ellipse = "ellipse"
    Diamond = "diamond"
    Text = "text"

    @classmethod
    def default(cls) -> NodeShape:
        return cls.Rectangle


class ArrowType(Enum):
    Single = "single"  # ->
    Line = "line"  # --
    Double = "double"  # <->
    Wavy = "wavy"  # ~>

    @classmethod
    def default(cls) -> ArrowType:
        return cls.Single


class ContainerKind(Enum):
    """How a container arranges its direct members."""

    Container = "container"  # the active algorithm
    Flow = "flow"  # one line along the diagram direction
    Basic = "basic"  # grid when no member edges
    Semantic = "semantic"

    @classmethod
    def default(cls) -> ContainerKind:
        return cls.Container


class EngineKind(Enum):
    """The closed set of layout algorithms the manager knows how to build."""

    Hierarchical = "hierarchical"
    Force = "force"
    Elk = "elk"
    Adaptive = "adaptive"

    @classmethod
    def default(cls) -> EngineKind:
        return cls.Hierarchical


ENGINE_ALIASES: dict[str, EngineKind] = {
    "hierarchical": EngineKind.Hierarchical,
    "dagre": EngineKind.Hierarchical,
    "force": EngineKind.Force,
    "elk": EngineKind.Elk,
    "adaptive": EngineKind.Adaptive,
    "auto": EngineKind.Adaptive,
}


@dataclass
class Point:
    """A 2D point in diagram coordinates."""

    x: float
    y: float


@dataclass
class BoundingBox:
    """An axis-aligned box; ``x``/``y`` is the top-left corner."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, other: BoundingBox, margin: float = 0.0) -> bool:
        """True if ``other`` lies inside this box shrunk by ``margin`` on each side."""
        eps = 1e-6
        return (
            other.x >= self.x + margin - eps
            and other.y >= self.y + margin - eps
            and other.right <= self.right - margin + eps
            and other.bottom <= self.bottom - margin + eps
        )
