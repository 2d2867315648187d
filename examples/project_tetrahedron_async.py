"""Example pipeline: run a 3D projection on a worker thread."""

from concurrent.futures import ThreadPoolExecutor

import numpy as np

from projkit import WeightedGraph, polyhedral_projection


def main() -> None:
    graph = WeightedGraph.from_distance_matrix(np.ones((4, 4)) - np.eye(4))

    def report(result) -> None:
        for vid, vec in result.point_coords().items():
            print(vid, ", ".join(f"{c:.6f}" for c in vec))

    operation = polyhedral_projection(
        graph,
        0,
        number_of_dimensions=3,
        completion_handler=report,
        error_handler=lambda exc: print("Projection failed:", exc),
    )
    with ThreadPoolExecutor(max_workers=1) as executor:
        operation.submit(executor).result()


if __name__ == "__main__":
    main()
