import json
import math

import numpy as np
import pytest

import projkit.__main__ as cli


def _write_square(path):
    r2 = math.sqrt(2.0)
    path.write_text(
        json.dumps(
            {
                "distances": [
                    [0.0, 1.0, r2, 1.0],
                    [1.0, 0.0, 1.0, r2],
                    [r2, 1.0, 0.0, 1.0],
                    [1.0, r2, 1.0, 0.0],
                ]
            }
        ),
        encoding="utf-8",
    )


def test_main_writes_projection_json(tmp_path, capsys):
    graph_path = tmp_path / "square.json"
    _write_square(graph_path)
    output_path = tmp_path / "out" / "projection.json"

    cli.main([str(graph_path), "--iterations", "3", "--map-nnc", "--output-path", str(output_path)])

    payload = json.loads(output_path.read_text(encoding="utf-8"))
    assert payload["order"] == [0, 1, 2, 3]
    assert payload["iterations"] == 3
    assert payload["nnc_sequence"] == [0, 1, 2, 3]
    coords = np.array([payload["coordinates"][str(v)] for v in range(4)])
    assert np.linalg.norm(coords[0] - coords[2]) == pytest.approx(math.sqrt(2.0))

    out = capsys.readouterr().out
    assert "Projection (2D) of 4 vertices" in out
    assert "NNC: 0 -> 1 -> 2 -> 3" in out


def test_main_reads_edge_lists_and_points(tmp_path, capsys):
    edges_path = tmp_path / "edges.json"
    edges_path.write_text(json.dumps({"edges": [[0, 1, 1.0], [1, 2, 2.0]]}), encoding="utf-8")
    points_path = tmp_path / "points.json"
    points_path.write_text(
        json.dumps({"points": [[0, 0, 5], [3, 0, 1], [0, 4, 2], [3, 4, 9]]}), encoding="utf-8"
    )

    cli.main([str(edges_path), "--iterations", "0"])
    cli.main([str(points_path), "--columns", "0,1", "--dimensions", "2"])

    out = capsys.readouterr().out
    assert "Projection (2D) of 3 vertices" in out
    assert "Projection (2D) of 4 vertices" in out


def test_main_exits_with_error_on_disconnected_graph(tmp_path):
    graph_path = tmp_path / "split.json"
    graph_path.write_text(json.dumps({"edges": [[0, 1, 1.0], [2, 3, 1.0]], "vertices": 4}), encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(graph_path)])

    assert excinfo.value.code == 1


def test_main_hands_plot_path_to_renderer(tmp_path, monkeypatch):
    graph_path = tmp_path / "square.json"
    _write_square(graph_path)
    plot_path = tmp_path / "figure.png"
    rendered = []

    monkeypatch.setattr(cli, "plot_result", lambda result, path: rendered.append((len(result.order), path)))

    cli.main([str(graph_path), "--plot-output-path", str(plot_path)])

    assert rendered == [(4, plot_path)]


def test_load_graph_rejects_unknown_payload(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"nodes": []}), encoding="utf-8")

    with pytest.raises(ValueError):
        cli.load_graph(path)


def test_main_can_keep_the_plus_candidate(tmp_path):
    graph_path = tmp_path / "square.json"
    _write_square(graph_path)
    resolved_path = tmp_path / "resolved.json"
    unresolved_path = tmp_path / "unresolved.json"

    cli.main([str(graph_path), "--output-path", str(resolved_path)])
    cli.main([str(graph_path), "--no-minimum-distance", "--output-path", str(unresolved_path)])

    resolved = json.loads(resolved_path.read_text(encoding="utf-8"))["coordinates"]
    unresolved = json.loads(unresolved_path.read_text(encoding="utf-8"))["coordinates"]
    assert not np.allclose(resolved["3"], resolved["1"])
    assert np.allclose(unresolved["3"], unresolved["1"], atol=1e-6)
