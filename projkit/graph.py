"""Graph access capability and an in-memory weighted graph."""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np
from scipy.spatial.distance import pdist, squareform

from .errors import InvalidParameterError
from .model import Vertex, VertexId

logger = logging.getLogger(__name__)

WeightedEdge = Tuple[VertexId, VertexId, float]


@runtime_checkable
class GraphAccess(Protocol):
    """Capability the projection engines require from a host graph."""

    def vertices(self) -> Sequence[VertexId]:
        """Return vertex identifiers in ascending order."""

    def weight(self, a: VertexId, b: VertexId) -> Optional[float]:
        """Return the edge weight between ``a`` and ``b`` or ``None`` for no edge."""

    def get_coordinates(self, vertex: VertexId) -> Optional[np.ndarray]:
        ...

    def set_coordinates(self, vertex: VertexId, vector: Sequence[float]) -> None:
        ...

    def is_visited(self, vertex: VertexId) -> bool:
        ...

    def set_visited(self, vertex: VertexId, flag: bool) -> None:
        ...


def _coerce_weight(value: object) -> Optional[float]:
    if value is None:
        return None
    weight = float(value)  # type: ignore[arg-type]
    if math.isnan(weight) or math.isinf(weight):
        return None
    if weight < 0.0:
        raise InvalidParameterError(f"edge weights must be >= 0 (got {weight})")
    return weight


class WeightedGraph:
    """Arena of vertices addressed by integer id with a symmetric weight matrix.

    Absent edges are stored as ``inf`` and reported as ``None`` through
    :meth:`weight`. The diagonal is zero.
    """

    def __init__(self, size: int, attributes: Optional[np.ndarray] = None):
        if size < 0:
            raise InvalidParameterError("graph size must be >= 0")
        self._weights = np.full((size, size), np.inf, dtype=float)
        np.fill_diagonal(self._weights, 0.0)
        self._vertices: List[Vertex] = [Vertex(vid) for vid in range(size)]
        self._attributes: Optional[np.ndarray] = None
        if attributes is not None:
            table = np.asarray(attributes, dtype=float)
            if table.ndim != 2 or table.shape[0] != size:
                raise InvalidParameterError(
                    f"attribute table must have shape ({size}, k), got {table.shape}"
                )
            self._attributes = table
            for vertex, row in zip(self._vertices, table):
                vertex.attributes = row

    # -- construction -------------------------------------------------

    @classmethod
    def from_distance_matrix(cls, matrix: Sequence[Sequence[Optional[float]]]) -> "WeightedGraph":
        """Build a graph from a square matrix; ``None``/``nan``/``inf`` mean no edge."""

        rows = [list(row) for row in matrix]
        size = len(rows)
        if any(len(row) != size for row in rows):
            raise InvalidParameterError("distance matrix must be square")
        graph = cls(size)
        for i in range(size):
            for j in range(i + 1, size):
                a = _coerce_weight(rows[i][j])
                b = _coerce_weight(rows[j][i])
                if a is not None and b is not None and not math.isclose(a, b, rel_tol=1e-9, abs_tol=1e-12):
                    raise InvalidParameterError(
                        f"distance matrix is not symmetric at ({i}, {j}): {a} != {b}"
                    )
                value = a if a is not None else b
                if value is not None:
                    graph.add_edge(i, j, value)
        logger.info("Built graph with %d vertices and %d edges from matrix", size, graph.edge_count())
        return graph

    @classmethod
    def from_edges(cls, size: int, edges: Iterable[Sequence[float]]) -> "WeightedGraph":
        graph = cls(size)
        for edge in edges:
            if len(edge) != 3:
                raise InvalidParameterError(f"edges must be (a, b, weight) triples, got {edge!r}")
            a, b, w = edge
            graph.add_edge(int(a), int(b), float(w))
        logger.info("Built graph with %d vertices and %d edges", size, graph.edge_count())
        return graph

    @classmethod
    def from_points(
        cls,
        data: Sequence[Sequence[float]],
        dimensions: Optional[Sequence[int]] = None,
        metric: str = "euclidean",
    ) -> "WeightedGraph":
        """Build a complete graph whose weights are distances between attribute rows."""

        table = np.atleast_2d(np.asarray(data, dtype=float))
        if table.size == 0:
            return cls(0, attributes=np.zeros((0, 0), dtype=float))
        graph = cls(table.shape[0], attributes=table)
        matrix = column_distances(table, dimensions, metric=metric)
        graph._weights = matrix
        logger.info(
            "Built complete graph with %d vertices over %d attribute column(s)",
            table.shape[0],
            table.shape[1] if dimensions is None else len(list(dimensions)),
        )
        return graph

    def add_edge(self, a: VertexId, b: VertexId, weight: float) -> None:
        self._check(a)
        self._check(b)
        if a == b:
            raise InvalidParameterError(f"self-loop on vertex {a} is not allowed")
        value = _coerce_weight(weight)
        if value is None:
            raise InvalidParameterError(f"edge ({a}, {b}) needs a finite weight")
        self._weights[a, b] = value
        self._weights[b, a] = value

    # -- capability ---------------------------------------------------

    def vertices(self) -> List[VertexId]:
        return [vertex.id for vertex in self._vertices]

    def weight(self, a: VertexId, b: VertexId) -> Optional[float]:
        self._check(a)
        self._check(b)
        value = self._weights[a, b]
        if not np.isfinite(value):
            return None
        return float(value)

    def get_coordinates(self, vertex: VertexId) -> Optional[np.ndarray]:
        self._check(vertex)
        coords = self._vertices[vertex].coordinates
        return None if coords is None else coords.copy()

    def set_coordinates(self, vertex: VertexId, vector: Sequence[float]) -> None:
        self._check(vertex)
        self._vertices[vertex].coordinates = np.asarray(vector, dtype=float).copy()

    def is_visited(self, vertex: VertexId) -> bool:
        self._check(vertex)
        return self._vertices[vertex].visited

    def set_visited(self, vertex: VertexId, flag: bool) -> None:
        self._check(vertex)
        self._vertices[vertex].visited = bool(flag)

    def attributes(self) -> Optional[np.ndarray]:
        return None if self._attributes is None else self._attributes.copy()

    # -- helpers ------------------------------------------------------

    def __len__(self) -> int:
        return len(self._vertices)

    def vertex(self, vertex: VertexId) -> Vertex:
        self._check(vertex)
        return self._vertices[vertex]

    def weight_matrix(self) -> np.ndarray:
        return self._weights.copy()

    def neighbors(self, vertex: VertexId) -> List[Tuple[VertexId, float]]:
        self._check(vertex)
        row = self._weights[vertex]
        return [
            (int(other), float(row[other]))
            for other in np.flatnonzero(np.isfinite(row))
            if other != vertex
        ]

    def degree(self, vertex: VertexId) -> int:
        return len(self.neighbors(vertex))

    def edge_count(self) -> int:
        finite = np.isfinite(self._weights)
        np.fill_diagonal(finite, False)
        return int(finite.sum() // 2)

    def reset_visited(self) -> None:
        for vertex in self._vertices:
            vertex.visited = False

    def _check(self, vertex: VertexId) -> None:
        if not isinstance(vertex, (int, np.integer)) or not 0 <= vertex < len(self._vertices):
            raise InvalidParameterError(f"unknown vertex {vertex!r}")


class ColumnGraph:
    """View of a multi-attribute graph whose weights use selected columns only.

    Coordinates and visited markers are delegated to the wrapped graph.
    """

    def __init__(self, graph: GraphAccess, dimensions: Sequence[int], metric: str = "euclidean"):
        getter = getattr(graph, "attributes", None)
        table = getter() if callable(getter) else None
        if table is None:
            raise InvalidParameterError("dimension columns were given but the graph carries no attributes")
        self._graph = graph
        self.dimensions = [int(c) for c in dimensions]
        self._weights = column_distances(table, self.dimensions, metric=metric)
        self._index = index_map(graph)

    def vertices(self) -> Sequence[VertexId]:
        return self._graph.vertices()

    def weight(self, a: VertexId, b: VertexId) -> Optional[float]:
        return float(self._weights[self._index[a], self._index[b]])

    def weight_matrix(self) -> np.ndarray:
        return self._weights.copy()

    def get_coordinates(self, vertex: VertexId) -> Optional[np.ndarray]:
        return self._graph.get_coordinates(vertex)

    def set_coordinates(self, vertex: VertexId, vector: Sequence[float]) -> None:
        self._graph.set_coordinates(vertex, vector)

    def is_visited(self, vertex: VertexId) -> bool:
        return self._graph.is_visited(vertex)

    def set_visited(self, vertex: VertexId, flag: bool) -> None:
        self._graph.set_visited(vertex, flag)


def column_distances(
    table: np.ndarray,
    dimensions: Optional[Sequence[int]] = None,
    metric: str = "euclidean",
) -> np.ndarray:
    """Pairwise distances between the rows of ``table`` over the selected columns."""

    table = np.atleast_2d(np.asarray(table, dtype=float))
    if dimensions is not None:
        columns = [int(c) for c in dimensions]
        if not columns:
            raise InvalidParameterError("dimensions must select at least one column")
        if len(set(columns)) != len(columns):
            raise InvalidParameterError(f"dimensions contains duplicate columns: {columns}")
        bad = [c for c in columns if c < 0 or c >= table.shape[1]]
        if bad:
            raise InvalidParameterError(
                f"dimension columns {bad} out of range for {table.shape[1]} attribute(s)"
            )
        table = table[:, columns]
    if table.shape[0] < 2:
        return np.zeros((table.shape[0], table.shape[0]), dtype=float)
    return squareform(pdist(table, metric=metric))


def weight_matrix(graph: GraphAccess, vertices: Optional[Sequence[VertexId]] = None) -> np.ndarray:
    """Direct-edge weight matrix over ``vertices`` with ``inf`` for absent edges."""

    ids = list(graph.vertices()) if vertices is None else list(vertices)
    getter = getattr(graph, "weight_matrix", None)
    if vertices is None and callable(getter):
        return np.asarray(getter(), dtype=float)
    n = len(ids)
    matrix = np.full((n, n), np.inf, dtype=float)
    np.fill_diagonal(matrix, 0.0)
    for i in range(n):
        for j in range(i + 1, n):
            value = graph.weight(ids[i], ids[j])
            if value is not None:
                matrix[i, j] = matrix[j, i] = float(value)
    return matrix


def shortest_path_matrix(weights: np.ndarray) -> np.ndarray:
    """Complete a direct-weight matrix with shortest-path distances (Floyd-Warshall)."""

    dist = np.array(weights, dtype=float, copy=True)
    n = dist.shape[0]
    if n:
        np.fill_diagonal(dist, 0.0)
    for k in range(n):
        Dik = dist[:, k][:, None]
        Dkj = dist[k, :][None, :]
        dist = np.minimum(dist, Dik + Dkj)
    return dist


def index_map(graph: GraphAccess) -> Dict[VertexId, int]:
    return {vid: idx for idx, vid in enumerate(graph.vertices())}


__all__ = [
    "ColumnGraph",
    "GraphAccess",
    "WeightedEdge",
    "WeightedGraph",
    "column_distances",
    "index_map",
    "shortest_path_matrix",
    "weight_matrix",
]
