import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from projkit import (
    ProjectionError,
    ProjectionOptions,
    ProjectionResult,
    WeightedGraph,
    project,
)

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _parse_columns(value: Optional[str]) -> Optional[List[int]]:
    if not value:
        return None
    return [int(part) for part in value.split(",") if part.strip()]


def load_graph(path: Path) -> WeightedGraph:
    """Read a graph from JSON holding ``distances``, ``edges`` or ``points``."""

    data = json.loads(path.read_text(encoding="utf-8"))
    if "distances" in data:
        return WeightedGraph.from_distance_matrix(data["distances"])
    if "edges" in data:
        size = data.get("vertices")
        if size is None:
            size = 1 + max(max(int(a), int(b)) for a, b, _ in data["edges"])
        return WeightedGraph.from_edges(int(size), data["edges"])
    if "points" in data:
        return WeightedGraph.from_points(data["points"])
    raise ValueError(f"{path} must define one of 'distances', 'edges' or 'points'")


def result_to_dict(result: ProjectionResult) -> Dict[str, object]:
    return {
        "order": list(result.order),
        "coordinates": {str(vid): [float(c) for c in vec] for vid, vec in result.coordinates.items()},
        "tree": [[parent, child, weight] for parent, child, weight in result.tree.edges()],
        "iterations": result.iterations,
        "lambda_history": list(result.lambda_history),
        "stress": result.stress,
        "nnc_sequence": list(result.nnc_sequence),
        "emanating_edges": list(result.emanating_edges),
        "warnings": list(result.warnings),
    }


def plot_result(result: ProjectionResult, output_path: Path) -> None:
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(6, 6))
    for parent, child, _ in result.tree.edges():
        a = result.coordinates[parent]
        b = result.coordinates[child]
        ax.plot([a[0], b[0]], [a[1], b[1]], color="0.7", linewidth=0.8, zorder=1)
    for vid, vec in result.coordinates.items():
        ax.scatter([vec[0]], [vec[1]], color="tab:blue", s=18, zorder=2)
        ax.annotate(str(vid), (vec[0], vec[1]), textcoords="offset points", xytext=(3, 3), fontsize=8)
    ax.set_aspect("equal", adjustable="datalim")
    ax.set_title(f"stress={result.stress:.3e}")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Project an edge-weighted graph into low dimensions")
    parser.add_argument("path", help="Path to a JSON graph description")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--start", type=int, default=0, help="Start vertex (default: 0)")
    parser.add_argument("--finish", type=int, help="Stop growing the spanning tree at this vertex")
    parser.add_argument(
        "--dimensions",
        type=int,
        default=2,
        help="Number of output dimensions (default: 2)",
    )
    parser.add_argument("--columns", help="Attribute columns used for distances, e.g. 0,2")
    parser.add_argument(
        "--iterations",
        type=int,
        default=10,
        help="Maximum number of refinement passes (default: 10)",
    )
    parser.add_argument("--minimum-area", action="store_true", help="Pick pivots by minimum area")
    parser.add_argument("--minimum-perimeter", action="store_true", help="Pick pivots by minimum perimeter")
    parser.add_argument(
        "--no-minimum-distance",
        action="store_true",
        help="Always keep the +h candidate instead of resolving flips",
    )
    parser.add_argument("--map-nnc", action="store_true", help="Report the nearest-neighbour chain")
    parser.add_argument(
        "--map-emanating-edges",
        action="store_true",
        help="Report the edges emanating from the start vertex",
    )
    parser.add_argument("--reorder", action="store_true", help="Reorder vertices before placement")
    parser.add_argument("--strict", action="store_true", help="Fail on inconsistent triangles")
    parser.add_argument("--output-path", help="Write the projection as JSON to the given path")
    parser.add_argument("--plot-output-path", help="Render the first two axes to an image (needs matplotlib)")
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    logger.info("Loading graph from %s", args.path)
    graph = load_graph(Path(args.path))

    options = ProjectionOptions(
        start=args.start,
        finish=args.finish,
        reorder=args.reorder,
        number_of_dimensions=args.dimensions,
        dimensions=_parse_columns(args.columns),
        minimum_area=args.minimum_area,
        minimum_perimeter=args.minimum_perimeter,
        minimum_distance=not args.no_minimum_distance,
        map_nnc=args.map_nnc,
        map_emanating_edges=args.map_emanating_edges,
        number_of_iterations=args.iterations,
        strict=args.strict,
    )

    try:
        result = project(graph, options)
    except ProjectionError as exc:
        logger.error("Projection failed: %s", exc)
        raise SystemExit(1)

    print(f"Projection ({options.projection_type}) of {len(result.order)} vertices")
    print(f"Iterations: {result.iterations}")
    print(f"Stress: {result.stress:.6e}")
    print("Coordinates:")
    for vid in result.order:
        rendered = ", ".join(f"{c:.6f}" for c in result.coordinates[vid])
        print(f"  {vid}: ({rendered})")
    if args.map_nnc:
        print("NNC:", " -> ".join(str(v) for v in result.nnc_sequence))
    if args.map_emanating_edges:
        print("Emanating edges:", ", ".join(str(v) for v in result.emanating_edges))
    for warning in result.warnings:
        print(f"Warning: {warning}")

    if args.output_path:
        output_path = Path(args.output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Writing projection to %s", output_path)
        output_path.write_text(json.dumps(result_to_dict(result), indent=2), encoding="utf-8")
        print(f"Projection written to {output_path}")

    if args.plot_output_path:
        plot_result(result, Path(args.plot_output_path))
        print(f"Plot written to {args.plot_output_path}")


if __name__ == "__main__":
    main(sys.argv[1:])
