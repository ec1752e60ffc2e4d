"""Layout engine registry: resolve algorithm names to engine instances."""

from __future__ import annotations

from collections.abc import Mapping

from edsl_layout.errors import UnknownEngineError
from edsl_layout.layout.adaptive import AdaptiveLayout
from edsl_layout.layout.base import LayoutEngine
from edsl_layout.layout.containers import ContainerLayout
from edsl_layout.layout.elk import ElkLayout, ElkRunner
from edsl_layout.layout.force import ForceDirectedLayout
from edsl_layout.layout.sugiyama import SugiyamaLayout
from edsl_layout.types import ENGINE_ALIASES, EngineKind


def build_engine(
    kind: EngineKind,
    elk_runner: ElkRunner | None = None,
    engines: Mapping[str, LayoutEngine] | None = None,
) -> LayoutEngine:
    """Construct the engine for one of the built-in algorithms.

    ``engines`` is the table the adaptive engine chooses from; a fresh default
    table is built when it is None.
    """
    if kind is EngineKind.Hierarchical:
        return ContainerLayout(SugiyamaLayout())
    if kind is EngineKind.Force:
        return ContainerLayout(ForceDirectedLayout())
    if kind is EngineKind.Adaptive:
        return AdaptiveLayout(engines if engines is not None else default_engines(elk_runner))
    return ElkLayout(elk_runner)


def default_engines(elk_runner: ElkRunner | None = None) -> dict[str, LayoutEngine]:
    engines: dict[str, LayoutEngine] = {}
    for kind in EngineKind:
        engines[kind.value] = build_engine(kind, elk_runner, engines)
    return engines


def canonical_name(name: str) -> str:
    """Lower-case ``name`` and resolve aliases such as ``dagre``."""
    key = name.strip().lower()
    kind = ENGINE_ALIASES.get(key)
    return kind.value if kind is not None else key


def get_engine(name: str, engines: dict[str, LayoutEngine] | None = None) -> LayoutEngine:
    """Look up an engine by name or alias.

    Raises:
        UnknownEngineError: If no engine is registered under ``name``.
    """
    engines = engines if engines is not None else default_engines()
    key = canonical_name(name)
    if key not in engines:
        raise UnknownEngineError(name, sorted(engines))
    return engines[key]
