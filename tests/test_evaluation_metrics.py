import json

import numpy as np
import pytest

from evaluation_metrics import EvaluationConfig, GraphEvaluator
from graph_build import GridGraphBuilder, build_grid_graph
from grid_codec import GridCoordinateCodec
from grid_errors import BoundsError
from grid_graph import GridGraph
from image_grid import ImageGrid
from neighborhood import NeighborhoodOffsetSet, face_offsets, full_offsets


@pytest.mark.parametrize("directed", [False, True])
@pytest.mark.parametrize("offsets", [face_offsets(2), full_offsets(2), [(1, 0), (0, 2)], [(-1, 0), (1, 0)]])
def test_built_graphs_pass_validation(directed, offsets):
    grid = ImageGrid(np.random.default_rng(3).random((5, 7)))
    builder = GridGraphBuilder(offsets=offsets, directedness=directed)
    graph = builder.build(grid)

    metrics = GraphEvaluator().evaluate(grid, graph, builder.neighbors, codec=builder.codec)
    assert metrics["valid"], metrics["problems"]
    assert metrics["degree"]["mismatches"] == 0
    assert metrics["edges"]["self_loops"] == 0
    assert metrics["codec"]["round_trip_failures"] == 0


def test_duplicate_offsets_validate_under_both_policies():
    grid = ImageGrid(np.zeros((3, 4)))
    for policy in ("ordered", "unique"):
        for directed in (False, True):
            offsets = NeighborhoodOffsetSet([(1, 0), (1, 0), (0, 1)], policy=policy)
            graph, codec = build_grid_graph(grid, offsets, directed=directed, offset_policy=policy)
            metrics = GraphEvaluator().evaluate(grid, graph, offsets, codec=codec)
            assert metrics["valid"], (policy, directed, metrics["problems"])


def test_expected_degrees_uniform_rule():
    codec = GridCoordinateCodec((4, 3))
    expected = GraphEvaluator.expected_degrees(codec, [(-1, 0), (1, 0)], directed=False)
    assert expected.reshape(3, 4).tolist() == [[1, 2, 2, 1]] * 3


def test_missing_edge_is_reported():
    grid = ImageGrid(np.zeros((2, 3)))
    graph = GridGraph(6)
    graph.add_edge(0, 1, 0.0)

    evaluator = GraphEvaluator(EvaluationConfig(max_reported=2))
    metrics = evaluator.evaluate(grid, graph, [(1, 0), (-1, 0)])
    assert not metrics["valid"]
    assert metrics["degree"]["mismatches"] == 5
    assert len(metrics["degree"]["mismatched_vertices"]) == 2
    with pytest.raises(BoundsError):
        evaluator.assert_valid(metrics)


def test_report_and_json(tmp_path, capsys):
    grid = ImageGrid(np.arange(9).reshape(3, 3))
    graph, codec = build_grid_graph(grid, face_offsets(2))
    evaluator = GraphEvaluator()
    metrics = evaluator.evaluate(grid, graph, face_offsets(2), codec=codec)

    assert metrics["graph"]["num_components"] == 1
    assert metrics["weights"]["min"] == 1.0
    assert metrics["weights"]["max"] == 9.0

    evaluator.print_report(metrics)
    out = capsys.readouterr().out
    assert "GRID GRAPH REPORT" in out
    assert "Status: OK" in out

    path = tmp_path / "metrics" / "graph.json"
    evaluator.save_json(metrics, path)
    with open(path) as f:
        loaded = json.load(f)
    assert loaded["basic"]["num_edges"] == 12
    assert loaded["valid"] is True
