"""Layout result cache keyed by graph fingerprint."""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from edsl_layout.config import LayoutConfig
from edsl_layout.ir.graph import GraphIR
from edsl_layout.layout.types import LayoutSnapshot

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 128


def fingerprint(gir: GraphIR, config: LayoutConfig) -> str:
    """SHA-256 over topology, sizes, style attributes and config.

    Input order is kept because it drives tie-breaking in every engine.
    """
    payload: dict[str, Any] = {
        "nodes": [
            [n.id, n.label, n.shape.value, n.width, n.height, n.attrs]
            for n in gir.nodes()
        ],
        "edges": [
            [e.source, e.target, e.label, e.arrow.value, e.attrs]
            for e in gir.edges()
        ],
        "containers": [
            [c.key, c.label, c.kind.value, c.members, c.attrs]
            for c in gir.containers
        ],
        "config": config.fingerprint_fields(),
    }
    text = json.dumps(payload, separators=(",", ":"), default=str)
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class LayoutCache:
    """Bounded LRU map from fingerprint to positioned snapshot.

    Safe for concurrent use. ``get_or_compute`` runs at most one computation
    per key at a time; other callers for the same key wait and then read the
    stored entry.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("cache capacity must be at least 1")
        self.capacity = capacity
        self._entries: OrderedDict[str, LayoutSnapshot] = OrderedDict()
        self._lock = threading.Lock()
        self._in_flight: dict[str, threading.Event] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: str) -> LayoutSnapshot | None:
        with self._lock:
            return self._lookup(key)

    def put(self, key: str, snapshot: LayoutSnapshot) -> None:
        with self._lock:
            self._store(key, snapshot)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> dict[str, Any]:
        with self._lock:
            lookups = self.hits + self.misses
            return {
                "entries": len(self._entries),
                "capacity": self.capacity,
                "hits": self.hits,
                "misses": self.misses,
                "hit_rate": self.hits / lookups if lookups else 0.0,
            }

    def get_or_compute(self, key: str, compute: Callable[[], LayoutSnapshot]) -> tuple[LayoutSnapshot, bool]:
        """Return ``(snapshot, hit)``, computing and storing on a miss.

        If ``compute`` raises, the error propagates to this caller and a
        waiting caller takes over the computation. Each call counts once in
        the stats: a miss for the caller that computes, a hit otherwise.
        """
        while True:
            with self._lock:
                snapshot = self._lookup(key, record_miss=False)
                if snapshot is not None:
                    return snapshot, True
                event = self._in_flight.get(key)
                if event is None:
                    self.misses += 1
                    event = threading.Event()
                    self._in_flight[key] = event
                    break
            logger.debug("waiting for in-flight layout %s", key[:12])
            event.wait()

        try:
            snapshot = compute()
            with self._lock:
                self._store(key, snapshot)
            return snapshot, False
        finally:
            with self._lock:
                del self._in_flight[key]
            event.set()

    # Callers hold the lock.

    def _lookup(self, key: str, record_miss: bool = True) -> LayoutSnapshot | None:
        snapshot = self._entries.get(key)
        if snapshot is None:
            if record_miss:
                self.misses += 1
            return None
        self._entries.move_to_end(key)
        self.hits += 1
        return snapshot

    def _store(self, key: str, snapshot: LayoutSnapshot) -> None:
        self._entries[key] = snapshot
        self._entries.move_to_end(key)
        while len(self._entries) > self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("evicted layout %s", evicted[:12])
