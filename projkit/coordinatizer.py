"""Geometric coordinatizer: reorders vertices before a projection runs."""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from .errors import InvalidParameterError
from .graph import GraphAccess, shortest_path_matrix, weight_matrix
from .model import Ordering, VertexId
from .polyhedral import cayley_menger_volume

logger = logging.getLogger(__name__)


def reorder(
    graph: GraphAccess,
    number_of_nodes: int,
    number_of_dimensions: int,
    start: Optional[VertexId] = None,
) -> Ordering:
    """Return a vertex ordering that favours well-conditioned triangulation.

    The seed is ``start`` or the vertex of highest degree (lighter total
    weight, then lower id, on ties). The next ``number_of_dimensions``
    vertices maximise the volume of the base simplex among vertices adjacent
    to the ordered set; the rest follow maximum adjacency: most direct edges
    into the ordered set, then smallest summed distance to it, then lowest id.
    Vertices unreachable from the seed come last by id. The graph is not
    modified.
    """

    if number_of_dimensions < 2:
        raise InvalidParameterError(f"number_of_dimensions must be >= 2 (got {number_of_dimensions})")
    if number_of_nodes < 0:
        raise InvalidParameterError(f"number_of_nodes must be >= 0 (got {number_of_nodes})")

    ids = sorted(graph.vertices())
    n = len(ids)
    if n == 0 or number_of_nodes == 0:
        return Ordering([], number_of_dimensions)
    position = {vid: idx for idx, vid in enumerate(ids)}
    if start is not None and start not in position:
        raise InvalidParameterError(f"start vertex {start!r} is not in the graph")

    weights = weight_matrix(graph, None if ids == list(graph.vertices()) else ids)
    adjacency = np.isfinite(weights)
    np.fill_diagonal(adjacency, False)
    known = shortest_path_matrix(weights)

    if start is None:
        degree = adjacency.sum(axis=1)
        total = np.where(adjacency, weights, 0.0).sum(axis=1)
        seed = min(range(n), key=lambda idx: (-int(degree[idx]), float(total[idx]), idx))
    else:
        seed = position[start]

    ordered: List[int] = [seed]
    remaining = {idx for idx in range(n) if idx != seed and np.isfinite(known[seed, idx])}
    links = adjacency[seed].astype(int)
    spread = known[seed].copy()

    def take(idx: int) -> None:
        ordered.append(idx)
        remaining.discard(idx)
        links[:] += adjacency[idx]
        spread[:] += known[idx]

    for _ in range(number_of_dimensions):
        if not remaining:
            break
        pool = [idx for idx in remaining if links[idx] > 0] or list(remaining)

        def volume(idx: int) -> float:
            members = ordered + [idx]
            return cayley_menger_volume(known[np.ix_(members, members)])

        take(min(pool, key=lambda idx: (-volume(idx), idx)))

    while remaining:
        take(min(remaining, key=lambda idx: (-int(links[idx]), float(spread[idx]), idx)))

    seen = set(ordered)
    unreachable = [idx for idx in range(n) if idx not in seen]
    result = [ids[idx] for idx in ordered + unreachable][: min(number_of_nodes, n)]
    logger.info(
        "Reordered %d of %d vertices from seed %s (%d unreachable)",
        len(result),
        n,
        ids[seed],
        len(unreachable),
    )
    return Ordering(result, number_of_dimensions)


__all__ = ["reorder"]
