"""Error taxonomy raised by the projection pipeline."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple


class ProjectionError(RuntimeError):
    """Base class for every failure surfaced by a projection run."""


class DisconnectedGraphError(ProjectionError):
    """Raised when vertices required for placement cannot be reached from the start."""

    def __init__(self, start: int, unreachable: Iterable[int], message: Optional[str] = None):
        self.start = start
        self.unreachable: Tuple[int, ...] = tuple(sorted(unreachable))
        if message is None:
            preview = ", ".join(str(v) for v in self.unreachable[:8])
            if len(self.unreachable) > 8:
                preview += ", ..."
            message = (
                f"{len(self.unreachable)} vertex(es) unreachable from vertex {start}: {preview}"
            )
        super().__init__(message)


class DegenerateTriangulationError(ProjectionError):
    """Raised when a vertex cannot be solved from its pivots."""

    def __init__(self, vertex: int, pivots: Sequence[int], message: str):
        super().__init__(f"vertex {vertex} (pivots {tuple(pivots)}): {message}")
        self.vertex = vertex
        self.pivots: Tuple[int, ...] = tuple(pivots)


class InvalidParameterError(ProjectionError, ValueError):
    pass


class ProjectionCancelledError(ProjectionError):
    """Raised inside a run when its operation was cancelled between phases."""


__all__ = [
    "DegenerateTriangulationError",
    "DisconnectedGraphError",
    "InvalidParameterError",
    "ProjectionCancelledError",
    "ProjectionError",
]
