"""Prim-style minimum spanning tree growth over a graph capability."""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from .errors import DisconnectedGraphError, InvalidParameterError
from .graph import GraphAccess, weight_matrix
from .model import SpanningTree, VertexId

logger = logging.getLogger(__name__)


def build_minimum_spanning_tree(
    graph: GraphAccess,
    start: VertexId,
    finish: Optional[VertexId] = None,
    *,
    weights: Optional[np.ndarray] = None,
) -> SpanningTree:
    """Grow a minimum spanning tree from ``start``.

    Every step adds the unvisited vertex joined to the visited set by the
    lightest edge. Equal weights go to the lowest unvisited identifier, then
    to the lowest visited identifier. With ``finish`` the growth stops as
    soon as that vertex joins the tree.

    ``weights`` may carry a precomputed direct-weight matrix aligned with
    ``sorted(graph.vertices())``.
    """

    ids = sorted(graph.vertices())
    position = {vid: idx for idx, vid in enumerate(ids)}
    if start not in position:
        raise InvalidParameterError(f"start vertex {start!r} is not in the graph")
    if finish is not None and finish not in position:
        raise InvalidParameterError(f"finish vertex {finish!r} is not in the graph")

    if weights is None:
        weights = weight_matrix(graph, None if ids == list(graph.vertices()) else ids)

    for vid in ids:
        graph.set_visited(vid, False)

    n = len(ids)
    tree = SpanningTree(root=start, finish=finish)
    visited = np.zeros(n, dtype=bool)
    best = np.full(n, np.inf, dtype=float)
    via = np.full(n, -1, dtype=int)

    current = position[start]
    visited[current] = True
    graph.set_visited(start, True)
    tree.order.append(start)

    while True:
        if finish is not None and visited[position[finish]]:
            break
        if visited.all():
            break

        row = weights[current]
        improve = (~visited) & np.isfinite(row) & (
            (row < best) | ((row == best) & ((via < 0) | (current < via)))
        )
        best[improve] = row[improve]
        via[improve] = current

        candidates = np.where(visited, np.inf, best)
        nxt = int(np.argmin(candidates))
        if not np.isfinite(candidates[nxt]):
            unreachable = [ids[idx] for idx in np.flatnonzero(~visited)]
            logger.info(
                "Spanning tree from %s stalled after %d vertices; %d unreachable",
                start,
                len(tree.order),
                len(unreachable),
            )
            raise DisconnectedGraphError(start, unreachable)

        vertex = ids[nxt]
        parent = ids[int(via[nxt])]
        weight = float(candidates[nxt])
        visited[nxt] = True
        graph.set_visited(vertex, True)
        tree.parents[vertex] = parent
        tree.weights[vertex] = weight
        tree.order.append(vertex)
        tree.total_weight += weight
        logger.debug("Tree edge %s -> %s (weight=%.6g)", parent, vertex, weight)
        current = nxt

    logger.info(
        "Built spanning tree from %s: %d vertices, total weight %.6g",
        start,
        len(tree.order),
        tree.total_weight,
    )
    return tree


def successor_in_tree(tree: SpanningTree, vertex: VertexId) -> Optional[VertexId]:
    """Return the next vertex towards the root, ``None`` for the root itself."""

    if vertex not in tree:
        raise InvalidParameterError(f"vertex {vertex!r} is not part of the spanning tree")
    return tree.parent(vertex)


def tree_path(tree: SpanningTree, vertex: VertexId) -> List[VertexId]:
    """Return the ancestors of ``vertex`` from its parent up to the root."""

    path: List[VertexId] = []
    current = successor_in_tree(tree, vertex)
    while current is not None:
        if len(path) > len(tree.order):
            raise RuntimeError("spanning tree parent links contain a cycle")
        path.append(current)
        current = tree.parent(current)
    return path


__all__ = ["build_minimum_spanning_tree", "successor_in_tree", "tree_path"]
