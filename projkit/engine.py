"""Placement engine shared by the triangular (2D) and polyhedral (N-D) projections."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

import numpy as np
from scipy.spatial.distance import pdist

from .config import get_default_options, validate_options
from .coordinatizer import reorder
from .errors import DegenerateTriangulationError, InvalidParameterError, ProjectionCancelledError
from .graph import ColumnGraph, GraphAccess, shortest_path_matrix, weight_matrix
from .logging_utils import debug_log_call
from .model import (
    Ordering,
    PivotSelection,
    ProjectionOptions,
    ProjectionResult,
    RefinementState,
    SpanningTree,
    VertexId,
)
from .neighbors import emanating_edges, nearest_neighbor_chain
from .pivots import (
    BoundaryComplex,
    boundary_pivots,
    pivot_distance_table,
    reference_candidates,
    tree_pivots,
)
from .polyhedral import canonical_simplex, nearest_candidate, trilaterate
from .spanning_tree import build_minimum_spanning_tree, tree_path
from .triangulation import choose_flip, triangulate

logger = logging.getLogger(__name__)

Candidates = Tuple[np.ndarray, np.ndarray]


class PlacementEngine:
    """One projection run over a graph, parameterised by output dimensionality.

    Coordinates are computed into private buffers keyed by arena position and
    written back through the graph capability once per phase: after the
    initial placement and after every refinement pass.
    """

    def __init__(self, graph: GraphAccess, options: ProjectionOptions, cancel_event=None):
        validate_options(options)
        self.graph = graph
        self.options = options
        self.dim = int(options.number_of_dimensions)
        self.cancel_event = cancel_event
        self.view: GraphAccess = (
            ColumnGraph(graph, options.dimensions) if options.dimensions is not None else graph
        )
        self.ids: List[VertexId] = sorted(self.view.vertices())
        self.position: Dict[VertexId, int] = {vid: idx for idx, vid in enumerate(self.ids)}
        self.known = np.zeros((0, 0), dtype=float)
        self.eps = options.tolerance
        self.flattened: Set[int] = set()

    # -- phases -------------------------------------------------------

    def run(self) -> ProjectionResult:
        opts = self.options
        self._check_cancelled("spanning tree")
        natural = self.ids == list(self.view.vertices())
        weights = weight_matrix(self.view, None if natural else self.ids)
        tree = build_minimum_spanning_tree(self.view, opts.start, opts.finish, weights=weights)

        members = [self.position[v] for v in tree.order]
        self.known = shortest_path_matrix(weights)
        inner = self.known[np.ix_(members, members)]
        finite = inner[np.isfinite(inner)]
        scale = float(finite.max()) if finite.size else 0.0
        self.eps = opts.tolerance * max(1.0, scale)

        ordering: Optional[Ordering] = None
        order = list(tree.order)
        if opts.reorder:
            ordering = reorder(self.view, len(self.ids), self.dim, start=opts.start)
            order = ordering.apply(order)
        placement = [self.position[v] for v in order]

        self._check_cancelled("initial placement")
        coords, selections = self._initial_placement(tree, placement)
        self._commit(coords)
        logger.info(
            "Initial %s placement of %d vertices finished (%d flattened triangle(s))",
            opts.projection_type,
            len(placement),
            len(self.flattened),
        )

        state = RefinementState(
            max_iterations=int(opts.number_of_iterations),
            lambda_=float(opts.initial_lambda),
            threshold=float(opts.lambda_threshold),
        )
        fixed = min(self.dim, len(placement))
        while not state.finished:
            self._check_cancelled(f"refinement pass {state.iteration + 1}")
            coords = self._refine(coords, placement[fixed:], selections, state.lambda_)
            self._commit(coords)
            applied = state.lambda_
            state.reduce_lambda()
            logger.info(
                "Refinement pass %d/%d applied lambda=%.6g",
                state.iteration,
                state.max_iterations,
                applied,
            )

        result = ProjectionResult(
            coordinates={self.ids[p]: coords[p].copy() for p in placement},
            order=order,
            tree=tree,
            pivots={self.ids[p]: self._public_selection(sel) for p, sel in selections.items()},
            iterations=state.iteration,
            lambda_history=[float(opts.initial_lambda)] + list(state.history),
            stress=self._stress(coords, placement),
            ordering=ordering,
        )
        if self.flattened:
            message = f"{len(self.flattened)} vertex(es) had inconsistent distances and were flattened onto their pivots"
            logger.warning("%s (pass strict=True to fail instead)", message)
            result.warnings.append(message)
        if opts.map_nnc:
            result.nnc_sequence = nearest_neighbor_chain(self.view, opts.start)
        if opts.map_emanating_edges:
            result.emanating_edges = emanating_edges(self.view, opts.start)
        logger.info(
            "Projection from %s finished: %d vertices, %d pass(es), stress=%.3e",
            opts.start,
            len(placement),
            result.iterations,
            result.stress,
        )
        return result

    def _initial_placement(
        self, tree: SpanningTree, placement: Sequence[int]
    ) -> Tuple[Dict[int, np.ndarray], Dict[int, PivotSelection]]:
        base = list(placement[: self.dim])
        simplex = canonical_simplex(self.known[np.ix_(base, base)], self.dim)
        coords: Dict[int, np.ndarray] = {p: simplex[i] for i, p in enumerate(base)}
        selections: Dict[int, PivotSelection] = {}

        complex_ = BoundaryComplex(self.dim, self.options.boundary_usage_limit)
        complex_.seed(base)
        placed: List[int] = list(base)

        for vertex in placement[self.dim :]:
            selection = self._select_pivots(vertex, tree, placed, coords, complex_)
            plus, minus = self._solve(vertex, selection.pivots, coords)
            refs = reference_candidates(vertex, selection.pivots, placed, self.known)
            chosen = plus
            if refs and self.options.minimum_distance:
                idx = nearest_candidate((plus, minus), np.vstack([coords[r] for r in refs]), eps=self.eps)
                if idx is not None:
                    ref = refs[idx]
                    chosen, flipped = choose_flip(
                        plus, minus, reference=coords[ref], reference_distance=float(self.known[vertex, ref])
                    )
                    if flipped:
                        logger.debug("Vertex %s flipped using reference %s", self.ids[vertex], self.ids[ref])
            coords[vertex] = chosen
            complex_.register(selection.pivots, vertex)
            selections[vertex] = selection
            placed.append(vertex)
        return coords, selections

    def _refine(
        self,
        previous: Dict[int, np.ndarray],
        movable: Sequence[int],
        selections: Dict[int, PivotSelection],
        lam: float,
    ) -> Dict[int, np.ndarray]:
        frozen = {p: c.copy() for p, c in previous.items()}
        updated = dict(frozen)
        for vertex in movable:
            pivots = selections[vertex].pivots
            plus, minus = self._solve(vertex, pivots, frozen)
            target = plus
            if self.options.minimum_distance:
                target, _ = choose_flip(plus, minus, prior=frozen[vertex])
            target = self._relax(vertex, target, pivots, frozen)
            updated[vertex] = frozen[vertex] + lam * (target - frozen[vertex])
        return updated

    def _relax(
        self,
        vertex: int,
        solution: np.ndarray,
        pivots: Sequence[int],
        frozen: Dict[int, np.ndarray],
    ) -> np.ndarray:
        """Weighted mean of the pivot solution and the pull of every other vertex.

        The pivot solution counts once per pivot. Another vertex ``j`` with a
        known distance pulls towards ``x_j + d * unit(p - x_j)``, the point at
        the known distance along the current direction from ``x_j``. Exact
        embeddings are fixed points.
        """

        prior = frozen[vertex]
        total = len(pivots) * solution
        weight = float(len(pivots))
        excluded = set(pivots)
        excluded.add(vertex)
        for other, position in frozen.items():
            if other in excluded:
                continue
            distance = float(self.known[vertex, other])
            if not np.isfinite(distance):
                continue
            offset = prior - position
            norm = float(np.linalg.norm(offset))
            if norm <= self.eps:
                continue
            total = total + position + distance * offset / norm
            weight += 1.0
        return total / weight

    # -- steps --------------------------------------------------------

    def _select_pivots(
        self,
        vertex: int,
        tree: SpanningTree,
        placed: Sequence[int],
        coords: Dict[int, np.ndarray],
        complex_: BoundaryComplex,
    ) -> PivotSelection:
        opts = self.options
        pivots = None
        policy = "tree"
        if opts.minimum_area or opts.minimum_perimeter:
            pivots = boundary_pivots(vertex, complex_, coords, self.known, opts.minimum_area, self.eps)
            policy = "minimum-area" if opts.minimum_area else "minimum-perimeter"
            if pivots is None:
                logger.debug("No solvable boundary facet for %s; using tree pivots", self.ids[vertex])
        if pivots is None:
            ancestors = [self.position[a] for a in tree_path(tree, self.ids[vertex])]
            pivots = tree_pivots(vertex, ancestors, placed, coords, self.known, self.dim, self.eps)
            policy = "tree"
        if pivots is None:
            raise DegenerateTriangulationError(
                self.ids[vertex],
                [],
                f"fewer than {self.dim} affinely independent placed pivots are available",
            )
        distances = tuple(float(self.known[vertex, p]) for p in pivots)
        if not all(np.isfinite(distances)):
            raise DegenerateTriangulationError(
                self.ids[vertex], [self.ids[p] for p in pivots], "a pivot distance is missing"
            )
        return PivotSelection(
            vertex=vertex,
            pivots=tuple(pivots),
            distances=distances,
            pivot_distances=pivot_distance_table(pivots, self.known),
            policy=policy,
        )

    def _solve(self, vertex: int, pivots: Sequence[int], coords: Dict[int, np.ndarray]) -> Candidates:
        points = np.vstack([coords[p] for p in pivots])
        distances = self.known[vertex, list(pivots)]
        if self.dim == 2:
            candidates = triangulate(points[0], points[1], float(distances[0]), float(distances[1]), self.eps)
        else:
            candidates = trilaterate(points, distances, self.eps)
        if candidates is None:
            raise DegenerateTriangulationError(
                self.ids[vertex],
                [self.ids[p] for p in pivots],
                "pivots are coincident or not affinely independent",
            )
        mismatch = float(np.max(np.abs(np.linalg.norm(points - candidates[0], axis=1) - distances)))
        if mismatch > self.eps:
            if self.options.strict:
                raise DegenerateTriangulationError(
                    self.ids[vertex],
                    [self.ids[p] for p in pivots],
                    f"distances are inconsistent with the pivots (residual {mismatch:.3e})",
                )
            self.flattened.add(vertex)
        return candidates

    # -- helpers ------------------------------------------------------

    def _commit(self, coords: Dict[int, np.ndarray]) -> None:
        for p, vector in coords.items():
            self.graph.set_coordinates(self.ids[p], vector)

    def _check_cancelled(self, phase: str) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            logger.info("Projection cancelled before %s", phase)
            raise ProjectionCancelledError(f"cancelled before {phase}")

    def _public_selection(self, selection: PivotSelection) -> PivotSelection:
        return PivotSelection(
            vertex=self.ids[selection.vertex],
            pivots=tuple(self.ids[p] for p in selection.pivots),
            distances=selection.distances,
            pivot_distances=selection.pivot_distances,
            policy=selection.policy,
        )

    def _stress(self, coords: Dict[int, np.ndarray], placement: Sequence[int]) -> float:
        if len(placement) < 2:
            return 0.0
        embedded = pdist(np.vstack([coords[p] for p in placement]))
        target_full = self.known[np.ix_(list(placement), list(placement))]
        target = target_full[np.triu_indices(len(placement), k=1)]
        denom = float(np.dot(target, target))
        if denom <= 0.0:
            return 0.0
        diff = embedded - target
        return float(np.sqrt(np.dot(diff, diff) / denom))


@debug_log_call(logger, name="project", log_result=False)
def project(
    graph: GraphAccess,
    options: Optional[ProjectionOptions] = None,
    *,
    cancel_event=None,
) -> ProjectionResult:
    """Run a projection synchronously and return its result.

    Raises :class:`~projkit.errors.ProjectionError` subclasses on failure.
    Coincident or dependent pivots and missing distances always raise
    :class:`~projkit.errors.DegenerateTriangulationError`. Distances that no
    placement can satisfy raise it only with ``options.strict``; otherwise
    the vertex is flattened onto its pivots, a WARNING is logged and the
    result carries the count in ``warnings``.
    """

    opts = options if options is not None else get_default_options()
    if opts.start not in set(graph.vertices()):
        raise InvalidParameterError(f"start vertex {opts.start!r} is not in the graph")
    return PlacementEngine(graph, opts, cancel_event=cancel_event).run()


__all__ = ["PlacementEngine", "project"]
