import math

import numpy as np
import pytest

from projkit import choose_flip, heron_area, triangulate
from projkit.triangulation import triangle_inconsistency


def test_triangulate_recovers_both_mirror_placements():
    p0 = np.array([0.5, -1.0])
    p1 = np.array([3.0, 1.5])
    target = np.array([1.0, 2.0])
    d0 = float(np.linalg.norm(target - p0))
    d1 = float(np.linalg.norm(target - p1))

    plus, minus = triangulate(p0, p1, d0, d1)

    for candidate in (plus, minus):
        assert np.linalg.norm(candidate - p0) == pytest.approx(d0)
        assert np.linalg.norm(candidate - p1) == pytest.approx(d1)
    assert np.allclose(plus, target) or np.allclose(minus, target)
    midpoint = 0.5 * (plus + minus)
    direction = (p1 - p0) / np.linalg.norm(p1 - p0)
    assert np.dot(plus - minus, direction) == pytest.approx(0.0, abs=1e-9)
    offset = midpoint - p0
    assert offset[0] * direction[1] - offset[1] * direction[0] == pytest.approx(0.0, abs=1e-9)


def test_plus_candidate_lies_left_of_the_pivot_line():
    plus, minus = triangulate([0.0, 0.0], [1.0, 0.0], 1.0, math.sqrt(2.0))

    assert np.allclose(plus, [0.0, 1.0])
    assert np.allclose(minus, [0.0, -1.0])


def test_inconsistent_distances_are_flattened_onto_the_line():
    plus, minus = triangulate([0.0, 0.0], [1.0, 0.0], 5.0, 1.0)

    assert np.allclose(plus, minus)
    assert plus[1] == pytest.approx(0.0)


def test_coincident_pivots_have_no_solution():
    assert triangulate([1.0, 1.0], [1.0, 1.0], 1.0, 1.0) is None


def test_heron_area_and_inconsistency():
    assert heron_area(3.0, 4.0, 5.0) == pytest.approx(6.0)
    assert heron_area(1.0, 2.0, 3.0) == 0.0
    assert heron_area(1.0, 1.0, 5.0) == 0.0
    assert triangle_inconsistency(3.0, 4.0, 5.0) == 0.0
    assert triangle_inconsistency(1.0, 1.0, 3.0) == pytest.approx(1.0)


def test_choose_flip_is_deterministic():
    plus = np.array([0.0, 1.0])
    minus = np.array([0.0, -1.0])

    assert choose_flip(plus, minus)[1] is False
    chosen, flipped = choose_flip(plus, minus, prior=np.array([0.1, -0.8]))
    assert flipped and np.allclose(chosen, minus)
    chosen, flipped = choose_flip(plus, minus, reference=np.array([2.0, 1.0]), reference_distance=2.0)
    assert not flipped and np.allclose(chosen, plus)
    # prior wins over a reference pointing the other way
    chosen, _ = choose_flip(
        plus, minus, prior=np.array([0.0, 0.9]), reference=np.array([2.0, -1.0]), reference_distance=2.0
    )
    assert np.allclose(chosen, plus)
    # a reference on the mirror line cannot decide, plus is kept
    chosen, flipped = choose_flip(plus, minus, reference=np.array([3.0, 0.0]), reference_distance=1.0)
    assert not flipped
