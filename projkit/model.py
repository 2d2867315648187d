"""Core data structures for the projection pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

VertexId = int
Facet = Tuple[VertexId, ...]


@dataclass
class Vertex:
    """One arena slot of a graph, addressed by its integer identifier."""

    id: VertexId
    coordinates: Optional[np.ndarray] = None
    visited: bool = False
    attributes: Optional[np.ndarray] = None

    def has_coordinates(self) -> bool:
        return self.coordinates is not None


@dataclass
class SpanningTree:
    """Parent table produced by the spanning tree builder.

    ``order`` lists the vertices in insertion order, so every vertex appears
    after its parent. ``parents`` and ``weights`` have one entry per visited
    vertex except ``root``.
    """

    root: VertexId
    parents: Dict[VertexId, VertexId] = field(default_factory=dict)
    weights: Dict[VertexId, float] = field(default_factory=dict)
    order: List[VertexId] = field(default_factory=list)
    total_weight: float = 0.0
    finish: Optional[VertexId] = None

    def __contains__(self, vertex: object) -> bool:
        return vertex == self.root or vertex in self.parents

    def __len__(self) -> int:
        return len(self.order)

    def parent(self, vertex: VertexId) -> Optional[VertexId]:
        return self.parents.get(vertex)

    def edges(self) -> List[Tuple[VertexId, VertexId, float]]:
        return [(self.parents[v], v, self.weights[v]) for v in self.order if v in self.parents]


@dataclass
class PivotSelection:
    vertex: VertexId
    pivots: Facet
    distances: Tuple[float, ...]
    pivot_distances: np.ndarray
    policy: str = "tree"


@dataclass
class RefinementState:
    """Lambda schedule bookkeeping for one refinement phase."""

    max_iterations: int
    lambda_: float = 1.0
    iteration: int = 0
    threshold: float = 1e-9
    history: List[float] = field(default_factory=list)

    @property
    def finished(self) -> bool:
        return self.iteration >= self.max_iterations or self.lambda_ < self.threshold

    def reduce_lambda(self) -> float:
        """Advance one iteration and shrink lambda towards zero."""

        self.iteration += 1
        if self.max_iterations > 0:
            factor = 1.0 - self.iteration / float(self.max_iterations)
            self.lambda_ = self.lambda_ * max(0.0, factor)
        self.history.append(self.lambda_)
        return self.lambda_


@dataclass
class ProjectionOptions:
    """Invocation parameters of a projection run."""

    start: VertexId = 0
    finish: Optional[VertexId] = None
    reorder: bool = False
    number_of_dimensions: int = 2
    dimensions: Optional[Sequence[int]] = None
    minimum_area: bool = False
    minimum_perimeter: bool = False
    minimum_distance: bool = True
    map_nnc: bool = False
    map_emanating_edges: bool = False
    number_of_iterations: int = 10
    initial_lambda: float = 1.0
    lambda_threshold: float = 1e-9
    boundary_usage_limit: int = 1
    tolerance: float = 1e-9
    strict: bool = False

    @property
    def projection_type(self) -> str:
        if self.number_of_dimensions == 2:
            return "2D"
        if self.number_of_dimensions == 3:
            return "3D"
        return f"{self.number_of_dimensions}D"


@dataclass
class Ordering:
    """Vertex reordering produced by the geometric coordinatizer."""

    ids: List[VertexId]
    number_of_dimensions: int = 2
    _rank: Dict[VertexId, int] = field(init=False, default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self._rank = {vid: idx for idx, vid in enumerate(self.ids)}

    def __len__(self) -> int:
        return len(self.ids)

    def __iter__(self):
        return iter(self.ids)

    def __contains__(self, vertex: object) -> bool:
        return vertex in self._rank

    def rank(self, vertex: VertexId) -> int:
        """Position of ``vertex``; vertices missing from the ordering sort last."""

        return self._rank.get(vertex, len(self.ids))

    def apply(self, vertices: Sequence[VertexId]) -> List[VertexId]:
        return sorted(vertices, key=lambda vid: (self.rank(vid), vid))


@dataclass
class ProjectionResult:
    coordinates: Dict[VertexId, np.ndarray]
    order: List[VertexId]
    tree: SpanningTree
    pivots: Dict[VertexId, PivotSelection] = field(default_factory=dict)
    nnc_sequence: List[VertexId] = field(default_factory=list)
    emanating_edges: List[VertexId] = field(default_factory=list)
    iterations: int = 0
    lambda_history: List[float] = field(default_factory=list)
    stress: float = 0.0
    warnings: List[str] = field(default_factory=list)
    ordering: Optional[Ordering] = None

    def as_array(self) -> np.ndarray:
        """Return coordinates stacked in placement order."""

        if not self.order:
            return np.zeros((0, 0), dtype=float)
        return np.vstack([self.coordinates[vid] for vid in self.order])

    def point_coords(self) -> Dict[VertexId, Tuple[float, ...]]:
        return {vid: tuple(float(c) for c in vec) for vid, vec in self.coordinates.items()}


__all__ = [
    "Facet",
    "Ordering",
    "PivotSelection",
    "ProjectionOptions",
    "ProjectionResult",
    "RefinementState",
    "SpanningTree",
    "Vertex",
    "VertexId",
]
