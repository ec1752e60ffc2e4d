"""Layout manager: dispatch, validation, caching and fallback."""

from __future__ import annotations

import logging
from typing import Any

from edsl_layout.config import LayoutConfig
from edsl_layout.errors import DelegateFailureError, NumericInstabilityError
from edsl_layout.ir.graph import GraphIR
from edsl_layout.layout.base import LayoutEngine
from edsl_layout.layout.cache import LayoutCache, fingerprint
from edsl_layout.layout.elk import ElkRunner
from edsl_layout.layout.registry import canonical_name, default_engines, get_engine
from edsl_layout.layout.types import LayoutSnapshot

logger = logging.getLogger(__name__)


class LayoutManager:
    """Entry point for laying out a GraphIR.

    Args:
        cache: Result cache to use; a private ``LayoutCache`` by default. Pass
            the same instance to several managers to share results.
        enable_cache: Set to False to always recompute.
        parallel: Overrides ``config.parallel`` when not None.
        elk_runner: Runner for the ELK delegate (``node`` + ``elkjs`` by default).
    """

    def __init__(
        self,
        cache: LayoutCache | None = None,
        *,
        enable_cache: bool = True,
        parallel: bool | None = None,
        elk_runner: ElkRunner | None = None,
    ) -> None:
        self.cache = cache if cache is not None else LayoutCache()
        self.enable_cache = enable_cache
        self.parallel = parallel
        self._engines: dict[str, LayoutEngine] = default_engines(elk_runner)

    # ─── Registry ────────────────────────────────────────────────────────────

    def register(self, name: str, engine: LayoutEngine) -> None:
        """Add or replace an engine. Cached results are dropped."""
        self._engines[canonical_name(name)] = engine
        self.cache.clear()

    def engine_names(self) -> list[str]:
        return sorted(self._engines)

    def engine(self, name: str) -> LayoutEngine:
        return get_engine(name, self._engines)

    # ─── Cache ───────────────────────────────────────────────────────────────

    def clear_cache(self) -> None:
        self.cache.clear()

    def cache_stats(self) -> dict[str, Any]:
        return self.cache.stats()

    # ─── Layout ──────────────────────────────────────────────────────────────

    def layout(self, gir: GraphIR, config: LayoutConfig | None = None) -> None:
        """Position every node, container and edge endpoint of ``gir`` in place.

        Raises:
            UnknownEngineError: If ``config.algorithm`` (or ``config.fallback``)
                names no registered engine. Raised before any other work.
            InvalidGraphError: If the graph breaks a structural invariant.
            NumericInstabilityError: If the force simulation diverges.
            DelegateFailureError: If the ELK delegate fails and no fallback
                is configured.
        """
        config = config or gir.config
        if self.parallel is not None:
            config = config.replace(parallel=self.parallel)

        engine = self.engine(config.algorithm)
        fallback = self.engine(config.fallback) if config.fallback else None

        gir.validate()

        if not self.enable_cache:
            self._run(gir, config, engine, fallback)
            return

        key = fingerprint(gir, config)

        def compute() -> LayoutSnapshot:
            self._run(gir, config, engine, fallback)
            return LayoutSnapshot.capture(gir)

        snapshot, hit = self.cache.get_or_compute(key, compute)
        if hit:
            logger.debug("cache hit %s", key[:12])
            gir.reset_geometry()
            snapshot.apply(gir)
        else:
            logger.debug("cache miss %s, computed with %s", key[:12], engine.name)

    def _run(
        self,
        gir: GraphIR,
        config: LayoutConfig,
        engine: LayoutEngine,
        fallback: LayoutEngine | None,
    ) -> None:
        logger.debug(
            "laying out %d nodes, %d edges, %d containers with %s",
            gir.node_count(),
            gir.edge_count(),
            len(gir.containers),
            engine.name,
        )
        try:
            engine.layout(gir, config)
        except DelegateFailureError as exc:
            if fallback is None:
                raise
            logger.warning("%s layout failed (%s); falling back to %s", engine.name, exc, fallback.name)
            gir.reset_geometry()
            fallback.layout(gir, config)

        if not gir.is_finite():
            raise NumericInstabilityError("Layout produced non-finite or negative geometry")
