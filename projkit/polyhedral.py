"""N-dimensional distance geometry: canonical simplex, trilateration, simplex volume."""

from __future__ import annotations

import logging
import math
from typing import Optional, Tuple

import numpy as np
from scipy import linalg

from .logging_utils import apply_debug_logging

logger = logging.getLogger(__name__)

_EPS = 1e-12


def canonical_simplex(distances: np.ndarray, number_of_dimensions: int) -> np.ndarray:
    """Place ``k <= number_of_dimensions`` vertices from their pairwise distances.

    Vertex 0 sits at the origin, vertex 1 on the first axis, and vertex ``i``
    in the span of the first ``i`` axes with a non-negative component on
    axis ``i - 1``. Inconsistent distances are flattened.
    """

    dist = np.asarray(distances, dtype=float)
    k = dist.shape[0]
    if k > number_of_dimensions:
        raise ValueError(f"canonical simplex holds at most {number_of_dimensions} vertices, got {k}")
    coords = np.zeros((k, number_of_dimensions), dtype=float)
    for i in range(1, k):
        m = i - 1
        if m:
            prev = coords[1:i, :m]
            norms = np.einsum("ij,ij->i", prev, prev)
            rhs = 0.5 * (dist[i, 0] ** 2 - dist[i, 1:i] ** 2 + norms)
            solution, *_ = linalg.lstsq(prev, rhs)
            coords[i, :m] = solution
        height_sq = dist[i, 0] ** 2 - float(np.dot(coords[i, :m], coords[i, :m]))
        coords[i, m] = math.sqrt(max(0.0, height_sq))
    return coords


def trilaterate(
    pivots: np.ndarray,
    distances: np.ndarray,
    eps: float = _EPS,
) -> Optional[Tuple[np.ndarray, np.ndarray]]:
    """Return the two points at the given distances from ``N`` pivots in ``R^N``.

    The sphere equations are reduced to ``N - 1`` linear equations inside the
    pivots' affine hull plus one quadratic along the hull normal ``n``. The
    normal is oriented so that ``det([q_1, ..., q_{N-1}, n]) > 0`` where
    ``q_i = p_i - p_0``; the first candidate lies on that side. ``None`` means
    the pivots are not affinely independent.
    """

    P = np.asarray(pivots, dtype=float)
    r = np.asarray(distances, dtype=float)
    count, dim = P.shape
    if count != dim or r.shape != (count,):
        raise ValueError(f"expected {dim} pivots with {dim} distances, got {count} and {r.shape}")

    origin = P[0]
    Q = P[1:] - origin
    _, singular, vt = linalg.svd(Q)
    if singular.size < dim - 1 or float(singular.min()) <= eps:
        return None

    basis = vt[: dim - 1].T
    normal = vt[dim - 1].copy()
    if linalg.det(np.vstack([Q, normal])) < 0.0:
        normal = -normal

    rhs = 0.5 * (r[0] ** 2 - r[1:] ** 2 + np.einsum("ij,ij->i", Q, Q))
    y = linalg.solve(Q @ basis, rhs)
    foot = origin + basis @ y
    height = math.sqrt(max(0.0, r[0] ** 2 - float(np.dot(y, y))))
    return foot + height * normal, foot - height * normal


def cayley_menger_volume(distances: np.ndarray) -> float:
    """Volume of the simplex spanned by ``k + 1`` points given their pairwise distances.

    Returns zero for degenerate or inconsistent distance sets.
    """

    dist = np.asarray(distances, dtype=float)
    points = dist.shape[0]
    k = points - 1
    if k <= 0:
        return 0.0
    cm = np.ones((points + 1, points + 1), dtype=float)
    cm[0, 0] = 0.0
    cm[1:, 1:] = dist ** 2
    det = float(linalg.det(cm))
    volume_sq = ((-1) ** (k + 1)) * det / ((2.0 ** k) * (math.factorial(k) ** 2))
    return math.sqrt(volume_sq) if volume_sq > 0.0 else 0.0


def affine_rank(points: np.ndarray, eps: float = _EPS) -> int:
    """Dimension of the affine hull of ``points``."""

    P = np.atleast_2d(np.asarray(points, dtype=float))
    if P.shape[0] <= 1:
        return 0
    singular = linalg.svdvals(P[1:] - P[0])
    return int(np.count_nonzero(singular > eps))


def nearest_candidate(
    candidates: Tuple[np.ndarray, np.ndarray],
    references: np.ndarray,
    eps: float = _EPS,
) -> Optional[int]:
    """Index of the first reference row that tells the two candidates apart.

    References are expected in preference order; ``None`` when every
    reference sits on the mirror plane.
    """

    plus, minus = candidates
    for idx, ref in enumerate(np.atleast_2d(references)):
        gap = abs(float(np.linalg.norm(ref - plus)) - float(np.linalg.norm(ref - minus)))
        if gap > eps:
            return idx
    return None


apply_debug_logging(globals(), logger=logger)
