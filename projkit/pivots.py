"""Pivot selection policies and the boundary bookkeeping they rely on.

Vertices are addressed by their position in the engine's arena here; the
engine translates positions back to graph identifiers.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .polyhedral import affine_rank, cayley_menger_volume
from .triangulation import heron_area

logger = logging.getLogger(__name__)

Facet = Tuple[int, ...]


def _facet(items: Iterable[int]) -> Facet:
    return tuple(sorted(items))


class BoundaryComplex:
    """Usage counts of the facets of the growing triangulation.

    In the plane a facet is an edge; in ``N`` dimensions it is an ``N``-tuple
    of placed vertices. Placing a vertex on a facet uses that facet once
    more and opens the ``N`` facets joining the vertex to each sub-facet. A
    facet used at most ``limit`` times lies on the outer boundary.
    """

    def __init__(self, number_of_dimensions: int, limit: int = 1):
        self.number_of_dimensions = number_of_dimensions
        self.limit = limit
        self.usage: Counter = Counter()

    def seed(self, vertices: Sequence[int]) -> None:
        if len(vertices) >= self.number_of_dimensions:
            self.usage[_facet(vertices[: self.number_of_dimensions])] += 0

    def register(self, facet: Sequence[int], vertex: int) -> None:
        key = _facet(facet)
        self.usage[key] += 1
        for dropped in key:
            self.usage[_facet([p for p in key if p != dropped] + [vertex])] += 1

    def boundary(self) -> List[Facet]:
        return sorted(facet for facet, count in self.usage.items() if count <= self.limit)

    def __len__(self) -> int:
        return len(self.usage)


def _is_solvable(facet: Sequence[int], coords: Mapping[int, np.ndarray], eps: float) -> bool:
    points = np.vstack([coords[p] for p in facet])
    return affine_rank(points, eps) == len(facet) - 1


def tree_pivots(
    vertex: int,
    ancestors: Sequence[int],
    placed: Sequence[int],
    coords: Mapping[int, np.ndarray],
    known: np.ndarray,
    number_of_dimensions: int,
    eps: float,
) -> Optional[Facet]:
    """Pivots from the tree: parent, grandparent, ... then the nearest placed vertices.

    A candidate is kept only when it raises the affine rank of the pivots,
    so the result is always solvable. ``None`` when fewer than
    ``number_of_dimensions`` independent pivots exist.
    """

    placed_set = set(placed)
    chain = [a for a in ancestors if a in placed_set]
    chained = set(chain)
    others = sorted((p for p in placed if p not in chained), key=lambda p: (known[vertex, p], p))

    chosen: List[int] = []
    for candidate in chain + others:
        trial = chosen + [candidate]
        if len(trial) == 1 or affine_rank(np.vstack([coords[p] for p in trial]), eps) == len(trial) - 1:
            chosen = trial
        if len(chosen) == number_of_dimensions:
            return tuple(chosen)
    return None


def facet_score(
    vertex: int,
    facet: Sequence[int],
    known: np.ndarray,
    minimum_area: bool,
) -> Tuple[float, ...]:
    """Sort key of a boundary facet; lower is better."""

    perimeter = float(sum(known[vertex, p] for p in facet))
    if not minimum_area:
        return (perimeter,)
    members = list(facet) + [vertex]
    if len(facet) == 2:
        p0, p1 = facet
        size = heron_area(known[p0, p1], known[p0, vertex], known[p1, vertex])
    else:
        size = cayley_menger_volume(known[np.ix_(members, members)])
    return (size, perimeter)


def boundary_pivots(
    vertex: int,
    complex_: BoundaryComplex,
    coords: Mapping[int, np.ndarray],
    known: np.ndarray,
    minimum_area: bool,
    eps: float,
) -> Optional[Facet]:
    """Best solvable boundary facet under the minimum-area / minimum-perimeter policy."""

    best: Optional[Facet] = None
    best_key: Optional[Tuple[float, ...]] = None
    for facet in complex_.boundary():
        if not np.all(np.isfinite(known[vertex, list(facet)])):
            continue
        if not _is_solvable(facet, coords, eps):
            continue
        key = facet_score(vertex, facet, known, minimum_area)
        if best_key is None or key < best_key:
            best, best_key = facet, key
    if best is not None:
        logger.debug("Boundary facet %s selected for %s with score %s", best, vertex, best_key)
    return best


def reference_candidates(
    vertex: int,
    pivots: Sequence[int],
    placed: Sequence[int],
    known: np.ndarray,
) -> List[int]:
    """Placed non-pivot vertices usable to resolve a flip, nearest first."""

    excluded = set(pivots)
    others = [p for p in placed if p not in excluded and np.isfinite(known[vertex, p])]
    return sorted(others, key=lambda p: (known[vertex, p], p))


def pivot_distance_table(pivots: Sequence[int], known: np.ndarray) -> np.ndarray:
    return known[np.ix_(list(pivots), list(pivots))].copy()


__all__ = [
    "BoundaryComplex",
    "boundary_pivots",
    "facet_score",
    "pivot_distance_table",
    "reference_candidates",
    "tree_pivots",
]
