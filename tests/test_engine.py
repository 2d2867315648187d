import logging
import math
import threading

import numpy as np
import pytest
from scipy.spatial.distance import pdist, squareform

from projkit import (
    DegenerateTriangulationError,
    DisconnectedGraphError,
    InvalidParameterError,
    ProjectionCancelledError,
    ProjectionOptions,
    WeightedGraph,
    project,
)

SQUARE_DISTANCES = [1.0, math.sqrt(2.0), 1.0, 1.0, math.sqrt(2.0), 1.0]


def _square() -> WeightedGraph:
    r2 = math.sqrt(2.0)
    return WeightedGraph.from_edges(
        4,
        [(0, 1, 1.0), (1, 2, 1.0), (2, 3, 1.0), (3, 0, 1.0), (0, 2, r2), (1, 3, r2)],
    )


def _pairwise(result, ids):
    return pdist(np.vstack([result.coordinates[v] for v in ids]))


def test_unit_square_is_reproduced():
    graph = _square()

    result = project(graph, ProjectionOptions(start=0))

    assert result.order == [0, 1, 2, 3]
    assert np.allclose(_pairwise(result, [0, 1, 2, 3]), SQUARE_DISTANCES, atol=1e-6)
    assert np.allclose(result.coordinates[0], [0.0, 0.0])
    assert np.allclose(result.coordinates[1], [1.0, 0.0])
    assert result.stress == pytest.approx(0.0, abs=1e-9)
    assert result.pivots[2].pivots == (1, 0)
    assert result.pivots[3].pivots == (0, 2)
    assert result.warnings == []


@pytest.mark.parametrize("flag", ["minimum_area", "minimum_perimeter"])
def test_boundary_policies_reproduce_the_square(flag):
    options = ProjectionOptions(start=0, **{flag: True})

    result = project(_square(), options)

    assert np.allclose(_pairwise(result, [0, 1, 2, 3]), SQUARE_DISTANCES, atol=1e-6)
    expected_policy = flag.replace("_", "-")
    assert {selection.policy for selection in result.pivots.values()} == {expected_policy}


def test_path_graph_is_placed_on_a_line():
    graph = WeightedGraph.from_edges(5, [(0, 1, 1.0), (1, 2, 2.0), (2, 3, 3.0), (3, 4, 4.0)])

    result = project(graph, ProjectionOptions(start=0))

    coords = result.as_array()
    assert np.allclose(coords[:, 1], 0.0, atol=1e-9)
    assert np.allclose(coords[:, 0], [0.0, 1.0, 3.0, 6.0, 10.0])


def test_coincident_pivots_raise_degenerate_error():
    # vertices 0 and 1 coincide, so nothing can be triangulated against them
    graph = WeightedGraph.from_edges(3, [(0, 1, 0.0), (1, 2, 1.0), (0, 2, 1.0)])

    with pytest.raises(DegenerateTriangulationError) as excinfo:
        project(graph, ProjectionOptions(start=0))

    assert excinfo.value.vertex == 2
    assert graph.get_coordinates(0) is None


def test_collinear_base_cannot_host_a_solid():
    distances = [
        [0.0, 1.0, 1.0, 0.5],
        [1.0, 0.0, 1.0, 0.5],
        [1.0, 1.0, 0.0, 0.5],
        [0.5, 0.5, 0.5, 0.0],
    ]

    with pytest.raises(DegenerateTriangulationError):
        project(WeightedGraph.from_distance_matrix(distances), ProjectionOptions(number_of_dimensions=3))


def _non_euclidean_tetrahedron() -> WeightedGraph:
    # a metric, but vertex 3 cannot sit at these distances from the unit triangle
    return WeightedGraph.from_distance_matrix(
        [
            [0.0, 1.0, 1.0, 1.0],
            [1.0, 0.0, 1.0, 1.0],
            [1.0, 1.0, 0.0, 1.9],
            [1.0, 1.0, 1.9, 0.0],
        ]
    )


def test_strict_mode_rejects_inconsistent_distances():
    options = ProjectionOptions(number_of_dimensions=3, strict=True)

    with pytest.raises(DegenerateTriangulationError) as excinfo:
        project(_non_euclidean_tetrahedron(), options)

    assert excinfo.value.vertex == 3
    assert excinfo.value.pivots == (0, 1, 2)


def test_lenient_mode_flattens_inconsistent_distances():
    result = project(_non_euclidean_tetrahedron(), ProjectionOptions(number_of_dimensions=3))

    assert result.coordinates[3][2] == pytest.approx(0.0, abs=1e-9)
    assert len(result.warnings) == 1
    assert result.stress > 0.0


def test_flattened_vertices_are_logged_as_warnings(caplog):
    caplog.set_level(logging.WARNING, logger="projkit")

    project(_non_euclidean_tetrahedron(), ProjectionOptions(number_of_dimensions=3))

    warnings = [record for record in caplog.records if record.levelname == "WARNING"]
    assert len(warnings) == 1
    assert "flattened" in warnings[0].getMessage()


def test_disconnected_graph_leaves_other_component_untouched():
    graph = WeightedGraph.from_edges(5, [(0, 1, 1.0), (1, 2, 1.0), (0, 2, 1.0), (3, 4, 1.0)])

    with pytest.raises(DisconnectedGraphError) as excinfo:
        project(graph, ProjectionOptions(start=0))

    assert excinfo.value.unreachable == (3, 4)
    for vertex in graph.vertices():
        assert graph.get_coordinates(vertex) is None
    assert not graph.is_visited(3)
    assert not graph.is_visited(4)


def test_regular_tetrahedron_in_three_dimensions():
    graph = WeightedGraph.from_distance_matrix(np.ones((4, 4)) - np.eye(4))

    result = project(graph, ProjectionOptions(number_of_dimensions=3))

    assert all(vec.shape == (3,) for vec in result.coordinates.values())
    assert np.allclose(_pairwise(result, [0, 1, 2, 3]), 1.0, atol=1e-6)
    assert abs(result.coordinates[3][2]) == pytest.approx(math.sqrt(2.0 / 3.0))


def test_points_in_four_dimensions_are_recovered():
    rng = np.random.default_rng(11)
    points = rng.normal(size=(9, 4))
    graph = WeightedGraph.from_points(points)

    result = project(graph, ProjectionOptions(number_of_dimensions=4, number_of_iterations=3))

    ids = sorted(result.coordinates)
    assert np.allclose(_pairwise(result, ids), pdist(points), atol=1e-6)
    assert result.stress == pytest.approx(0.0, abs=1e-6)


def test_random_planar_points_are_recovered_up_to_congruence():
    rng = np.random.default_rng(3)
    points = rng.uniform(0.0, 10.0, size=(15, 2))
    graph = WeightedGraph.from_points(points)

    result = project(graph, ProjectionOptions(start=4))

    ids = sorted(result.coordinates)
    assert np.allclose(squareform(_pairwise(result, ids)), squareform(pdist(points)), atol=1e-6)


def test_zero_iterations_keep_the_initial_placement():
    reference = project(_square(), ProjectionOptions(number_of_iterations=0))
    graph = _square()

    result = project(graph, ProjectionOptions(number_of_iterations=0))

    assert result.iterations == 0
    assert result.lambda_history == [1.0]
    for vertex, vector in reference.coordinates.items():
        assert np.allclose(result.coordinates[vertex], vector)
        assert np.allclose(graph.get_coordinates(vertex), vector)


def _unit_k4() -> WeightedGraph:
    # four mutually equidistant vertices have no exact planar embedding
    return WeightedGraph.from_distance_matrix(np.ones((4, 4)) - np.eye(4))


def test_refinement_blends_towards_the_relaxed_target():
    h = math.sqrt(3.0) / 2.0
    initial = project(_unit_k4(), ProjectionOptions(number_of_iterations=0))

    assert np.allclose(initial.coordinates[0], [0.0, 0.0])
    assert np.allclose(initial.coordinates[1], [1.0, 0.0])
    assert np.allclose(initial.coordinates[2], [0.5, h])
    assert np.allclose(initial.coordinates[3], [0.5, -h])

    one_pass = project(_unit_k4(), ProjectionOptions(number_of_iterations=1))

    relaxed = (h + 1.0) / 3.0
    assert np.allclose(one_pass.coordinates[2], [0.5, relaxed])
    assert np.allclose(one_pass.coordinates[3], [0.5, -relaxed])
    assert not np.allclose(one_pass.coordinates[3], initial.coordinates[3])

    half_step = project(_unit_k4(), ProjectionOptions(number_of_iterations=1, initial_lambda=0.5))

    for vertex in (2, 3):
        step = one_pass.coordinates[vertex] - initial.coordinates[vertex]
        assert np.allclose(half_step.coordinates[vertex], initial.coordinates[vertex] + 0.5 * step)
    for vertex in (0, 1):
        assert np.allclose(half_step.coordinates[vertex], initial.coordinates[vertex])


def test_flip_reference_near_the_mirror_line_respects_tolerance():
    # vertex 2 sits 1e-4 off the 0-1 line, so it barely tells vertex 3's candidates apart
    points = [[0.0, 0.0], [1.0, 0.0], [2.2, -1e-4], [0.5, -2.0]]

    exact = project(WeightedGraph.from_points(points), ProjectionOptions(number_of_iterations=0))
    coarse = project(
        WeightedGraph.from_points(points),
        ProjectionOptions(number_of_iterations=0, tolerance=1e-3),
    )

    assert np.allclose(exact.coordinates[3], [0.5, -2.0], atol=1e-6)
    assert np.allclose(coarse.coordinates[3], [0.5, 2.0], atol=1e-6)


@pytest.mark.parametrize("iterations", [0, 3])
def test_minimum_distance_off_keeps_the_plus_candidate(iterations):
    resolved = project(_square(), ProjectionOptions(number_of_iterations=iterations))
    unresolved = project(
        _square(), ProjectionOptions(number_of_iterations=iterations, minimum_distance=False)
    )

    assert np.allclose(_pairwise(resolved, [0, 1, 2, 3]), SQUARE_DISTANCES, atol=1e-6)
    assert np.allclose(unresolved.coordinates[3], [1.0, 0.0], atol=1e-6)
    assert np.allclose(unresolved.coordinates[3], unresolved.coordinates[1], atol=1e-6)


def test_lambda_schedule_is_non_increasing_and_ends_at_zero():
    result = project(_square(), ProjectionOptions(number_of_iterations=4))

    assert result.iterations == 4
    assert result.lambda_history == pytest.approx([1.0, 0.75, 0.375, 0.09375, 0.0])
    assert all(a >= b for a, b in zip(result.lambda_history, result.lambda_history[1:]))


def test_lambda_threshold_stops_refinement_early():
    result = project(_square(), ProjectionOptions(number_of_iterations=4, lambda_threshold=0.5))

    assert result.iterations == 2
    assert result.lambda_history == pytest.approx([1.0, 0.75, 0.375])


def test_coordinates_are_committed_to_the_graph():
    graph = _square()

    result = project(graph)

    for vertex in graph.vertices():
        assert np.allclose(graph.get_coordinates(vertex), result.coordinates[vertex])


def test_dimension_columns_select_attributes():
    table = np.array(
        [
            [0.0, 0.0, 40.0],
            [1.0, 0.0, -3.0],
            [1.0, 1.0, 12.0],
            [0.0, 1.0, 7.0],
        ]
    )
    graph = WeightedGraph.from_points(table)

    result = project(graph, ProjectionOptions(dimensions=[0, 1]))

    assert np.allclose(_pairwise(result, [0, 1, 2, 3]), pdist(table[:, :2]), atol=1e-6)
    # the graph's own weights still span all three columns
    assert graph.weight(0, 1) == pytest.approx(math.sqrt(1.0 + 43.0 ** 2))


def test_dimension_columns_are_validated():
    graph = WeightedGraph.from_points(np.eye(3))

    with pytest.raises(InvalidParameterError):
        project(graph, ProjectionOptions(dimensions=[0, 5]))
    with pytest.raises(InvalidParameterError):
        project(graph, ProjectionOptions(dimensions=[1, 1]))
    with pytest.raises(InvalidParameterError):
        project(_square(), ProjectionOptions(dimensions=[0]))


@pytest.mark.parametrize(
    "overrides",
    [
        {"number_of_dimensions": 1},
        {"number_of_iterations": -1},
        {"initial_lambda": 0.0},
        {"tolerance": 0.0},
        {"start": 42},
    ],
)
def test_invalid_parameters_are_rejected(overrides):
    with pytest.raises(InvalidParameterError):
        project(_square(), ProjectionOptions(**overrides))


def test_reorder_changes_placement_order_only():
    result = project(_square(), ProjectionOptions(reorder=True))

    assert result.ordering is not None
    assert result.order[:2] == [0, 2]
    assert sorted(result.order) == [0, 1, 2, 3]
    assert np.allclose(_pairwise(result, [0, 1, 2, 3]), SQUARE_DISTANCES, atol=1e-6)


def test_diagnostic_sequences_do_not_change_placement():
    plain = project(_square())

    result = project(_square(), ProjectionOptions(map_nnc=True, map_emanating_edges=True))

    assert result.nnc_sequence == [0, 1, 2, 3]
    assert result.emanating_edges == [1, 3, 2]
    for vertex, vector in plain.coordinates.items():
        assert np.allclose(result.coordinates[vertex], vector)


def test_cancelled_run_commits_nothing():
    graph = _square()
    event = threading.Event()
    event.set()

    with pytest.raises(ProjectionCancelledError):
        project(graph, cancel_event=event)

    assert all(graph.get_coordinates(v) is None for v in graph.vertices())


def test_phase_boundaries_are_logged(caplog):
    caplog.set_level(logging.INFO, logger="projkit")

    project(_square(), ProjectionOptions(number_of_iterations=2))

    messages = [record.getMessage() for record in caplog.records]
    assert any(message.startswith("Built spanning tree from 0") for message in messages)
    assert any(message.startswith("Refinement pass 2/2") for message in messages)
