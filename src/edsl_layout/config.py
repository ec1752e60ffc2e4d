"""Centralized configuration for edsl-layout."""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from typing import Any

from edsl_layout.types import Direction

_DIRECTION_MAP: dict[str, Direction] = {
    "TOP-TO-BOTTOM": Direction.TB,
    "TB": Direction.TB,
    "TD": Direction.TB,
    "DOWN": Direction.TB,
    "BOTTOM-TO-TOP": Direction.BT,
    "BT": Direction.BT,
    "UP": Direction.BT,
    "LEFT-TO-RIGHT": Direction.LR,
    "LR": Direction.LR,
    "RIGHT": Direction.LR,
    "RIGHT-TO-LEFT": Direction.RL,
    "RL": Direction.RL,
    "LEFT": Direction.RL,
}

_ORDERING_HEURISTICS = ("median", "barycenter")

_FLOAT_OPTIONS = (
    "node_spacing",
    "rank_spacing",
    "edge_spacing",
    "container_padding",
    "ideal_edge_length",
    "repulsion_strength",
    "attraction_strength",
    "step_size",
    "cooling_factor",
    "min_distance",
    "convergence_threshold",
)
_INT_OPTIONS = ("iterations", "crossing_sweeps", "seed", "max_workers")
_TRUE_STRINGS = ("true", "1", "yes", "on")
_FALSE_STRINGS = ("false", "0", "no", "off")


def parse_direction(value: str | Direction) -> Direction:
    """Resolve a direction name ('top-to-bottom', 'TB', 'LR', ...) to a Direction."""
    if isinstance(value, Direction):
        return value
    key = str(value).strip().upper().replace("_", "-")
    if key not in _DIRECTION_MAP:
        raise ValueError(
            f"Unknown direction '{value}'; use top-to-bottom, bottom-to-top, left-to-right or right-to-left"
        )
    return _DIRECTION_MAP[key]


@dataclass
class LayoutConfig:
    """Global layout parameters carried by a graph and passed to every engine."""

    algorithm: str = "hierarchical"
    direction: Direction = field(default_factory=Direction.default)

    # Spacing
    node_spacing: float = 80.0
    rank_spacing: float = 150.0
    edge_spacing: float = 20.0
    container_padding: float = 20.0

    # Hierarchical tuning
    crossing_sweeps: int = 8
    ordering_heuristic: str = "median"

    # Force-directed tuning
    iterations: int = 200
    ideal_edge_length: float = 150.0
    repulsion_strength: float = 1.0
    attraction_strength: float = 1.0
    step_size: float = 0.1
    cooling_factor: float = 0.95
    min_distance: float = 1.0
    convergence_threshold: float = 0.01
    seed: int = 0

    # Orchestration
    parallel: bool = True
    max_workers: int | None = None
    fallback: str | None = None

    def replace(self, **changes: Any) -> LayoutConfig:
        return dataclasses.replace(self, **changes)

    def fingerprint_fields(self) -> dict[str, Any]:
        """Fields that influence computed geometry, for cache keys."""
        data = dataclasses.asdict(self)
        data["direction"] = self.direction.value
        # Scheduling knobs do not change the result.
        for key in ("parallel", "max_workers"):
            data.pop(key)
        return data

    def to_options(self) -> dict[str, Any]:
        """The option record ``from_options`` reads back into an equal config."""
        data = dataclasses.asdict(self)
        options: dict[str, Any] = {"layout": data.pop("algorithm"), "direction": self.direction.value}
        data.pop("direction")
        options.update(data)
        return options

    @classmethod
    def from_options(cls, options: dict[str, Any]) -> LayoutConfig:
        """Build a config from the parser's option record.

        Recognised keys are ``layout``, ``direction``, the spacing options,
        ``iterations`` and the tuning fields of this class. Unknown keys are
        ignored, as the parser's global config carries theme and font options
        the layout engine does not use.

        Raises:
            ValueError: If a recognised option has an invalid value.
        """
        cfg = cls()
        if "layout" in options and options["layout"] is not None:
            cfg.algorithm = str(options["layout"]).strip().lower()
        if "algorithm" in options and options["algorithm"] is not None:
            cfg.algorithm = str(options["algorithm"]).strip().lower()
        if "direction" in options and options["direction"] is not None:
            cfg.direction = parse_direction(options["direction"])

        for key in _FLOAT_OPTIONS:
            if key in options and options[key] is not None:
                setattr(cfg, key, _as_float(key, options[key]))
        for key in _INT_OPTIONS:
            if key in options and options[key] is not None:
                setattr(cfg, key, _as_int(key, options[key]))

        if "ordering_heuristic" in options and options["ordering_heuristic"] is not None:
            heuristic = str(options["ordering_heuristic"]).lower()
            if heuristic not in _ORDERING_HEURISTICS:
                raise ValueError(f"Unknown ordering heuristic '{heuristic}'; use median or barycenter")
            cfg.ordering_heuristic = heuristic
        if "parallel" in options and options["parallel"] is not None:
            cfg.parallel = _as_bool("parallel", options["parallel"])
        if "fallback" in options and options["fallback"] is not None:
            cfg.fallback = str(options["fallback"]).strip().lower()

        if cfg.iterations < 0 or cfg.crossing_sweeps < 0:
            raise ValueError("iterations and crossing_sweeps must be non-negative")
        if cfg.max_workers is not None and cfg.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if not 0.0 < cfg.cooling_factor <= 1.0:
            raise ValueError("cooling_factor must be in (0, 1]")
        if cfg.ideal_edge_length <= 0:
            raise ValueError("ideal_edge_length must be positive")
        return cfg


def _as_float(key: str, value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Option '{key}' must be a number, got {value!r}") from None
    if not math.isfinite(number) or number < 0:
        raise ValueError(f"Option '{key}' must be a finite non-negative number, got {value!r}")
    return number


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Option '{key}' must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Option '{key}' must be an integer, got {value!r}") from None
    if isinstance(value, float) and value != number:
        raise ValueError(f"Option '{key}' must be an integer, got {value!r}")
    return number


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValueError(f"Option '{key}' must be true or false, got {value!r}")
