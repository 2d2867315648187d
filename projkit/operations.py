"""Cancellable projection operations with completion and error handlers."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future
from typing import Any, Callable, Optional, Sequence

from .config import get_default_options
from .coordinatizer import reorder
from .engine import project
from .errors import ProjectionCancelledError, ProjectionError
from .graph import GraphAccess
from .model import Ordering, ProjectionOptions, ProjectionResult, VertexId
from .spanning_tree import build_minimum_spanning_tree

logger = logging.getLogger(__name__)

CompletionHandler = Callable[[Any], None]
ErrorHandler = Callable[[ProjectionError], None]


class ProjectionOperation:
    """A unit of work that reports through handlers instead of returning.

    ``run`` executes on the calling thread; ``submit`` schedules it on an
    executor. ``cancel`` is cooperative: the running work stops at the next
    phase boundary and the error handler receives a
    :class:`~projkit.errors.ProjectionCancelledError`.
    """

    def __init__(
        self,
        name: str,
        work: Callable[[threading.Event], Any],
        completion_handler: Optional[CompletionHandler] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.name = name
        self._work = work
        self.completion_handler = completion_handler
        self.error_handler = error_handler
        self._cancel_event = threading.Event()
        self._done = threading.Event()
        self._result: Any = None
        self._error: Optional[ProjectionError] = None

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def error(self) -> Optional[ProjectionError]:
        return self._error

    def cancel(self) -> None:
        logger.info("Cancellation requested for %s", self.name)
        self._cancel_event.set()

    def run(self) -> None:
        if self.done:
            raise RuntimeError(f"{self.name} has already run")
        logger.info("Starting %s", self.name)
        try:
            outcome = self._work(self._cancel_event)
        except ProjectionError as exc:
            logger.info("%s failed: %s", self.name, exc)
            self._error = exc
            self._done.set()
            if self.error_handler is not None:
                self.error_handler(exc)
            return
        except Exception:
            self._done.set()
            raise
        self._result = outcome
        self._done.set()
        logger.info("%s finished", self.name)
        if self.completion_handler is not None:
            self.completion_handler(outcome)

    def submit(self, executor: Executor) -> Future:
        return executor.submit(self.run)

    def result(self, timeout: Optional[float] = None) -> Any:
        """Wait for the operation and return its outcome, re-raising its failure."""

        if not self._done.wait(timeout):
            raise TimeoutError(f"{self.name} did not finish within {timeout} s")
        if self._error is not None:
            raise self._error
        return self._result


def _projection_operation(
    name: str,
    graph: GraphAccess,
    options: ProjectionOptions,
    completion_handler: Optional[CompletionHandler],
    error_handler: Optional[ErrorHandler],
) -> ProjectionOperation:
    def work(cancel_event: threading.Event) -> ProjectionResult:
        return project(graph, options, cancel_event=cancel_event)

    return ProjectionOperation(name, work, completion_handler, error_handler)


def _options(**overrides: Any) -> ProjectionOptions:
    base = get_default_options()
    for key, value in overrides.items():
        if not hasattr(base, key):
            raise TypeError(f"unknown projection option {key!r}")
        setattr(base, key, value)
    return base


def triangular_projection(
    graph: GraphAccess,
    start: VertexId,
    dimensions: Optional[Sequence[int]] = None,
    minimum_area: bool = False,
    minimum_perimeter: bool = False,
    minimum_distance: bool = True,
    map_nnc: bool = False,
    map_emanating_edges: bool = False,
    number_of_iterations: int = 10,
    completion_handler: Optional[CompletionHandler] = None,
    error_handler: Optional[ErrorHandler] = None,
    **options: Any,
) -> ProjectionOperation:
    """Build a 2D triangular projection operation."""

    opts = _options(
        start=start,
        dimensions=dimensions,
        minimum_area=minimum_area,
        minimum_perimeter=minimum_perimeter,
        minimum_distance=minimum_distance,
        map_nnc=map_nnc,
        map_emanating_edges=map_emanating_edges,
        number_of_iterations=number_of_iterations,
        number_of_dimensions=2,
        **options,
    )
    return _projection_operation("triangular projection", graph, opts, completion_handler, error_handler)


def polyhedral_projection(
    graph: GraphAccess,
    start: VertexId,
    dimensions: Optional[Sequence[int]] = None,
    minimum_area: bool = False,
    minimum_perimeter: bool = False,
    minimum_distance: bool = True,
    map_nnc: bool = False,
    map_emanating_edges: bool = False,
    number_of_dimensions: int = 3,
    number_of_iterations: int = 10,
    completion_handler: Optional[CompletionHandler] = None,
    error_handler: Optional[ErrorHandler] = None,
    **options: Any,
) -> ProjectionOperation:
    """Build an N-dimensional polyhedral projection operation."""

    opts = _options(
        start=start,
        dimensions=dimensions,
        minimum_area=minimum_area,
        minimum_perimeter=minimum_perimeter,
        minimum_distance=minimum_distance,
        map_nnc=map_nnc,
        map_emanating_edges=map_emanating_edges,
        number_of_dimensions=number_of_dimensions,
        number_of_iterations=number_of_iterations,
        **options,
    )
    return _projection_operation(
        f"polyhedral projection ({opts.projection_type})", graph, opts, completion_handler, error_handler
    )


def geometric_coordinatizer(
    graph: GraphAccess,
    start: VertexId,
    finish: Optional[VertexId] = None,
    reorder_nodes: bool = True,
    number_of_dimensions: int = 2,
    completion_handler: Optional[CompletionHandler] = None,
    error_handler: Optional[ErrorHandler] = None,
) -> ProjectionOperation:
    """Build an operation producing the vertex :class:`Ordering` for a later projection.

    Without ``reorder_nodes`` the ordering is the spanning tree's visitation
    order from ``start`` (up to ``finish`` when given).
    """

    def work(cancel_event: threading.Event) -> Ordering:
        tree = build_minimum_spanning_tree(graph, start, finish)
        if cancel_event.is_set():
            raise ProjectionCancelledError("cancelled before reordering")
        if not reorder_nodes:
            return Ordering(list(tree.order), number_of_dimensions)
        ordering = reorder(graph, len(graph.vertices()), number_of_dimensions, start=start)
        return Ordering(ordering.apply(tree.order), number_of_dimensions)

    return ProjectionOperation("geometric coordinatizer", work, completion_handler, error_handler)


__all__ = [
    "CompletionHandler",
    "ErrorHandler",
    "ProjectionOperation",
    "geometric_coordinatizer",
    "polyhedral_projection",
    "triangular_projection",
]
