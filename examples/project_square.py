"""Example pipeline: project a unit square from its edge weights."""

import math

from projkit import ProjectionOptions, WeightedGraph, project

R2 = math.sqrt(2.0)
EDGES = [
    (0, 1, 1.0),
    (1, 2, 1.0),
    (2, 3, 1.0),
    (3, 0, 1.0),
    (0, 2, R2),
    (1, 3, R2),
]


def main() -> None:
    graph = WeightedGraph.from_edges(4, EDGES)
    result = project(graph, ProjectionOptions(start=0, minimum_area=True))
    print("Iterations:", result.iterations)
    print("Stress:", result.stress)
    for vid, (x, y) in result.point_coords().items():
        print(f"{vid}: ({x:.6f}, {y:.6f})")


if __name__ == "__main__":
    main()
