"""Nearest-neighbour queries and the diagnostic traversal sequences built on them."""

from __future__ import annotations

import logging
from typing import Callable, Container, List, Optional, Set

from .errors import InvalidParameterError
from .graph import GraphAccess
from .model import VertexId

logger = logging.getLogger(__name__)

Visitor = Callable[[Optional[VertexId]], None]


def nearest_neighbor(
    graph: GraphAccess,
    vertex: VertexId,
    visited: Container[VertexId],
    pre_visitor: Optional[Visitor] = None,
    post_visitor: Optional[Visitor] = None,
) -> Optional[VertexId]:
    """Return the unvisited vertex joined to ``vertex`` by the lightest edge.

    Ties go to the lowest identifier. ``None`` means every other vertex is
    visited or has no edge to ``vertex``. ``visited`` is only read.
    """

    if pre_visitor is not None:
        pre_visitor(vertex)

    best: Optional[VertexId] = None
    best_weight = float("inf")
    for other in sorted(graph.vertices()):
        if other == vertex or other in visited:
            continue
        weight = graph.weight(vertex, other)
        if weight is None:
            continue
        if weight < best_weight:
            best = other
            best_weight = weight

    if post_visitor is not None:
        post_visitor(best)
    return best


def _check_start(graph: GraphAccess, start: VertexId) -> None:
    if start not in set(graph.vertices()):
        raise InvalidParameterError(f"start vertex {start!r} is not in the graph")


def nearest_neighbor_chain(graph: GraphAccess, start: VertexId) -> List[VertexId]:
    """Follow nearest-neighbour links from ``start`` until the chain runs dry."""

    _check_start(graph, start)
    sequence: List[VertexId] = []
    visited: Set[VertexId] = {start}

    def record(vertex: Optional[VertexId]) -> None:
        if vertex is not None and (not sequence or sequence[-1] != vertex):
            sequence.append(vertex)

    current: Optional[VertexId] = start
    while current is not None:
        current = nearest_neighbor(graph, current, visited, pre_visitor=record, post_visitor=record)
        if current is not None:
            visited.add(current)

    logger.debug("Nearest-neighbour chain from %s: %s", start, sequence)
    return sequence


def emanating_edges(graph: GraphAccess, start: VertexId) -> List[VertexId]:
    """Return the neighbours of ``start`` ordered by increasing edge weight."""

    _check_start(graph, start)
    sequence: List[VertexId] = []
    visited: Set[VertexId] = {start}

    def record(vertex: Optional[VertexId]) -> None:
        if vertex is not None:
            sequence.append(vertex)

    while True:
        found = nearest_neighbor(graph, start, visited, post_visitor=record)
        if found is None:
            break
        visited.add(found)

    logger.debug("Edges emanating from %s: %s", start, sequence)
    return sequence


__all__ = ["Visitor", "emanating_edges", "nearest_neighbor", "nearest_neighbor_chain"]
