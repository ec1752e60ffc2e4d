"""Exceptions raised by the layout engine."""

from __future__ import annotations


class LayoutError(Exception):
    """Base class for every failure surfaced by :func:`LayoutManager.layout`.

    After a ``LayoutError`` the graph's geometric fields are in an unspecified
    state; callers should discard the graph or retry the layout.
    """


class UnknownEngineError(LayoutError):
    def __init__(self, name: str, available: list[str] | None = None) -> None:
        self.name = name
        self.available = list(available or [])
        msg = f"Unknown layout engine: {name}"
        if self.available:
            msg += f". Available: {', '.join(self.available)}"
        super().__init__(msg)


class InvalidGraphError(LayoutError):
    """Dangling edge reference, bad container membership or a container cycle."""


class NumericInstabilityError(LayoutError):
    """The force simulation produced non-finite positions it could not recover from."""


class DelegateFailureError(LayoutError):
    """An external layout engine failed or returned an inconsistent result."""
