"""Planar triangulation helpers: circle intersection, Heron area, flip choice."""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence, Tuple

import numpy as np

from .logging_utils import apply_debug_logging

logger = logging.getLogger(__name__)

Candidates = Tuple[np.ndarray, np.ndarray]

_EPS = 1e-12


def _rotate90(v: np.ndarray) -> np.ndarray:
    return np.array([-v[1], v[0]], dtype=float)


def triangulate(
    p0: Sequence[float],
    p1: Sequence[float],
    d0: float,
    d1: float,
    eps: float = _EPS,
) -> Optional[Candidates]:
    """Return the two placements at distances ``d0`` from ``p0`` and ``d1`` from ``p1``.

    The first candidate lies on the left of the directed line ``p0 -> p1``
    (the ``+h`` solution), the second is its mirror image. ``None`` means the
    pivots coincide. Inconsistent distances are flattened onto the line.
    """

    a = np.asarray(p0, dtype=float)
    b = np.asarray(p1, dtype=float)
    base = b - a
    separation = math.hypot(base[0], base[1])
    if separation <= eps:
        return None
    unit = base / separation
    x = (d0 * d0 - d1 * d1 + separation * separation) / (2.0 * separation)
    h = math.sqrt(max(0.0, d0 * d0 - x * x))
    foot = a + x * unit
    offset = h * _rotate90(unit)
    return foot + offset, foot - offset


def triangle_inconsistency(a: float, b: float, c: float) -> float:
    """How far the side lengths ``a, b, c`` are from satisfying the triangle inequality."""

    longest = max(a, b, c)
    return max(0.0, longest - (a + b + c - longest))


def heron_area(a: float, b: float, c: float) -> float:
    """Area of the triangle with side lengths ``a``, ``b`` and ``c``.

    Inconsistent side lengths yield zero.
    """

    s = 0.5 * (a + b + c)
    product = s * (s - a) * (s - b) * (s - c)
    return math.sqrt(product) if product > 0.0 else 0.0


def choose_flip(
    plus: np.ndarray,
    minus: np.ndarray,
    prior: Optional[np.ndarray] = None,
    reference: Optional[np.ndarray] = None,
    reference_distance: Optional[float] = None,
) -> Tuple[np.ndarray, bool]:
    """Pick one of two mirrored candidates.

    Returns the chosen point and whether the flipped (``minus``) one won.
    A prior position wins over a reference point; with neither the ``plus``
    candidate is kept. Equal scores keep ``plus``.
    """

    if prior is not None:
        flipped = float(np.linalg.norm(prior - minus)) < float(np.linalg.norm(prior - plus))
        return (minus if flipped else plus), flipped
    if reference is not None and reference_distance is not None:
        err_plus = abs(float(np.linalg.norm(reference - plus)) - reference_distance)
        err_minus = abs(float(np.linalg.norm(reference - minus)) - reference_distance)
        flipped = err_minus < err_plus
        return (minus if flipped else plus), flipped
    return plus, False


apply_debug_logging(globals(), logger=logger, skip={"_rotate90"})
