"""projkit: distance-preserving projection of edge-weighted graphs.

Vertices are placed one at a time along a minimum spanning tree by
triangulating against already placed pivots, then relaxed by a damped
refinement schedule. ``triangular_projection`` targets the plane,
``polyhedral_projection`` any number of dimensions.
"""

from .config import get_default_options, set_default_options, validate_options
from .coordinatizer import reorder
from .engine import PlacementEngine, project
from .errors import (
    DegenerateTriangulationError,
    DisconnectedGraphError,
    InvalidParameterError,
    ProjectionCancelledError,
    ProjectionError,
)
from .graph import ColumnGraph, GraphAccess, WeightedGraph, shortest_path_matrix
from .model import (
    Ordering,
    PivotSelection,
    ProjectionOptions,
    ProjectionResult,
    RefinementState,
    SpanningTree,
    Vertex,
)
from .neighbors import emanating_edges, nearest_neighbor, nearest_neighbor_chain
from .operations import (
    ProjectionOperation,
    geometric_coordinatizer,
    polyhedral_projection,
    triangular_projection,
)
from .polyhedral import canonical_simplex, cayley_menger_volume, trilaterate
from .spanning_tree import build_minimum_spanning_tree, successor_in_tree, tree_path
from .triangulation import choose_flip, heron_area, triangulate

__all__ = [
    'ColumnGraph',
    'DegenerateTriangulationError',
    'DisconnectedGraphError',
    'GraphAccess',
    'InvalidParameterError',
    'Ordering',
    'PivotSelection',
    'PlacementEngine',
    'ProjectionCancelledError',
    'ProjectionError',
    'ProjectionOperation',
    'ProjectionOptions',
    'ProjectionResult',
    'RefinementState',
    'SpanningTree',
    'Vertex',
    'WeightedGraph',
    'build_minimum_spanning_tree',
    'canonical_simplex',
    'cayley_menger_volume',
    'choose_flip',
    'emanating_edges',
    'geometric_coordinatizer',
    'get_default_options',
    'heron_area',
    'nearest_neighbor',
    'nearest_neighbor_chain',
    'polyhedral_projection',
    'project',
    'reorder',
    'set_default_options',
    'shortest_path_matrix',
    'successor_in_tree',
    'tree_path',
    'triangular_projection',
    'triangulate',
    'trilaterate',
    'validate_options',
]
