import json

import numpy as np
import pytest

from graph_build import GraphBuildConfig, build_graph_from_config, load_config
from grid_errors import ConfigurationError


def test_defaults_without_path():
    cfg = load_config(None)
    assert cfg.neighbor_mode == "4"
    assert cfg.directed is False
    assert cfg.metric == "squared_difference"


def test_load_nested_block(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "graph_build": {
            "neighbor_mode": "8",
            "metric": "absolute_difference",
            "verify": True,
            "evaluation": {"max_reported": 3},
            "not_a_setting": 1,
        }
    }))
    cfg = load_config(path)
    assert cfg.neighbor_mode == "8"
    assert cfg.metric == "absolute_difference"
    assert cfg.verify is True
    assert cfg.evaluation.max_reported == 3
    assert not hasattr(cfg, "not_a_setting")

    graph, codec = build_graph_from_config(cfg, np.arange(9).reshape(3, 3))
    assert graph.number_of_edges() == 20
    # horizontal neighbors differ by 1
    assert graph.edge_weight(0, 1) == 1


def test_flat_block_and_explicit_offsets(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"offsets": [[1, 0], [1, 0]], "directed": True, "offset_policy": "ordered"}))
    cfg = load_config(path)
    graph, _ = build_graph_from_config(cfg, np.zeros((2, 3)))
    assert graph.directed
    assert graph.number_of_edges() == 8


def test_bad_values_are_configuration_errors():
    with pytest.raises(ConfigurationError):
        build_graph_from_config(GraphBuildConfig(metric="nope"), np.zeros((2, 2)))
    with pytest.raises(ConfigurationError):
        build_graph_from_config(GraphBuildConfig(neighbor_mode="26"), np.zeros((2, 2)))
    with pytest.raises(ConfigurationError):
        build_graph_from_config(GraphBuildConfig(), None)


def test_verify_runs_on_3d_grid():
    cfg = GraphBuildConfig(neighbor_mode="26", verify=True)
    graph, codec = build_graph_from_config(cfg, np.zeros((2, 2, 2)))
    # every pair of the 8 cells is adjacent
    assert graph.number_of_edges() == 28
    assert codec.size == (2, 2, 2)


@pytest.mark.parametrize("flag", ["undirected", "false", "False", False])
def test_string_directed_flag_builds_undirected(flag):
    graph, _ = build_graph_from_config(GraphBuildConfig(directed=flag), np.zeros((3, 3)))
    assert graph.directed is False
    assert graph.number_of_edges() == 12


def test_directed_string_from_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"directed": "undirected"}))
    graph, _ = build_graph_from_config(load_config(path), np.zeros((3, 3)))
    assert graph.directed is False

    path.write_text(json.dumps({"directed": "directed"}))
    graph, _ = build_graph_from_config(load_config(path), np.zeros((3, 3)))
    assert graph.directed is True
    assert graph.number_of_edges() == 24


def test_unknown_directed_flag_rejected():
    with pytest.raises(ConfigurationError):
        build_graph_from_config(GraphBuildConfig(directed="sideways"), np.zeros((3, 3)))
