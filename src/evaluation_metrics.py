"""
evaluation_metrics.py

Consistency checks and statistics for graphs built on top of a sample grid.

Inputs:
- grid: ImageGrid (or any grid provider with `size`)
- graph: GridGraph produced by GridGraphBuilder
- offsets: the NeighborhoodOffsetSet (or plain offset list) used for the build

Checks:
- vertex count == grid cell count
- codec round-trip for every vertex
- no self-loops
- undirected graphs: at most one edge per unordered pair
- degree of every cell == number of in-bounds neighbors reachable through the
  offsets (uniform rule, applied to every row / slice alike)

Outputs:
- metrics dict (JSON-serializable) + optional report printing
"""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import networkx as nx

from grid_codec import GridCoordinateCodec
from grid_errors import BoundsError


@dataclass
class EvaluationConfig:
    # How many offending vertices to list per failed check
    max_reported: int = 10

    # Connected-component stats (networkx); can be slow on very large grids
    compute_components: bool = True

    # Weight statistics
    weight_percentiles: Tuple[float, float, float] = (10.0, 50.0, 90.0)


class GraphEvaluator:
    def __init__(self, cfg: Optional[EvaluationConfig] = None) -> None:
        self.cfg = cfg or EvaluationConfig()

    # ----------------------------
    # Public API
    # ----------------------------
    def evaluate(
        self,
        grid: Any,
        graph: Any,
        offsets: Iterable[Sequence[int]],
        codec: Optional[GridCoordinateCodec] = None,
    ) -> Dict[str, Any]:
        if grid is None:
            raise ValueError("grid is None")
        if graph is None:
            raise ValueError("graph is None")

        offsets = [tuple(int(c) for c in off) for off in offsets]
        if codec is None:
            codec = GridCoordinateCodec(grid.size)

        n = graph.number_of_vertices()
        metrics: Dict[str, Any] = {
            "basic": {
                "grid_size": [int(s) for s in codec.size],
                "num_cells": int(codec.num_cells),
                "num_vertices": int(n),
                "num_edges": int(graph.number_of_edges()),
                "directed": bool(graph.directed),
                "num_offsets": len(offsets),
                "vertex_count_ok": bool(n == codec.num_cells),
            }
        }

        metrics["codec"] = self._codec_metrics(codec)
        metrics["edges"] = self._edge_metrics(graph)
        metrics["degree"] = self._degree_metrics(graph, codec, offsets)
        metrics["weights"] = self._weight_metrics(graph)
        if self.cfg.compute_components:
            metrics["graph"] = self._graph_metrics_nx(graph.to_networkx())

        metrics["problems"] = self._collect_problems(metrics)
        metrics["valid"] = not metrics["problems"]
        return metrics

    def assert_valid(self, metrics: Dict[str, Any]) -> None:
        problems = metrics.get("problems") or []
        if problems:
            raise BoundsError("graph failed validation: " + "; ".join(problems))

    def save_json(self, metrics: Dict[str, Any], out_path: Path) -> None:
        out_path = Path(out_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w") as f:
            json.dump(metrics, f, indent=2)

    def print_report(self, metrics: Dict[str, Any]) -> None:
        b = metrics.get("basic", {})
        c = metrics.get("codec", {})
        e = metrics.get("edges", {})
        d = metrics.get("degree", {})
        w = metrics.get("weights", {})
        g = metrics.get("graph", {})

        print("\n========== GRID GRAPH REPORT ==========")
        print(f"- Grid size: {b.get('grid_size')} | cells={b.get('num_cells')} | directed={b.get('directed')}")
        print(f"- Vertices: {b.get('num_vertices')} | Edges: {b.get('num_edges')} | Offsets: {b.get('num_offsets')}")
        if c:
            print(f"- Codec round-trip failures: {c.get('round_trip_failures')}")
        if e:
            print(f"- Self-loops: {e.get('self_loops')} | duplicate pairs: {e.get('duplicate_pairs')}")
        if d:
            print(f"- Degree mismatches: {d.get('mismatches')} | histogram={d.get('histogram')}")
        if w:
            print(f"- Weight mean={w.get('mean')} | p10_p50_p90={w.get('p10_p50_p90')}")
        if g:
            print(f"- Connected components: {g.get('num_components')} | giant_component_ratio={g.get('giant_component_ratio')}")
        status = "OK" if metrics.get("valid") else "FAILED: " + "; ".join(metrics.get("problems", []))
        print(f"- Status: {status}")
        print("=======================================\n")

    # ----------------------------
    # Expected degrees
    # ----------------------------
    @staticmethod
    def expected_degrees(
        codec: GridCoordinateCodec,
        offsets: Sequence[Tuple[int, ...]],
        directed: bool,
    ) -> np.ndarray:
        """
        Degree each vertex must have, from grid bounds alone.

        undirected: number of distinct in-bounds cells at index +- offset
        directed:   out (index + offset, duplicates counted) + in (index - offset)
        """
        expected = np.zeros((codec.num_cells,), dtype=np.int64)
        mirrored = [tuple(-c for c in off) for off in offsets]

        for vid in range(codec.num_cells):
            index = codec.to_coordinate(vid)
            if directed:
                out_deg = sum(1 for off in offsets if codec.is_inside(_shift(index, off)))
                in_deg = sum(1 for off in mirrored if codec.is_inside(_shift(index, off)))
                expected[vid] = out_deg + in_deg
            else:
                reach = set()
                for off in list(offsets) + mirrored:
                    nb = _shift(index, off)
                    if nb != index and codec.is_inside(nb):
                        reach.add(nb)
                expected[vid] = len(reach)
        return expected

    # ----------------------------
    # Metric blocks
    # ----------------------------
    def _codec_metrics(self, codec: GridCoordinateCodec) -> Dict[str, Any]:
        failures: List[int] = []
        count = 0
        for vid in range(codec.num_cells):
            index = codec.to_coordinate(vid)
            back, inside = codec.to_vertex(index)
            if not inside or back != vid:
                count += 1
                if len(failures) < self.cfg.max_reported:
                    failures.append(int(vid))
        return {"round_trip_failures": count, "failing_vertices": failures}

    def _edge_metrics(self, graph: Any) -> Dict[str, Any]:
        self_loops = 0
        pairs: Counter = Counter()
        for u, v, _ in graph.edges():
            if u == v:
                self_loops += 1
            key = (u, v) if graph.directed else (min(u, v), max(u, v))
            pairs[key] += 1

        repeated = sum(1 for c in pairs.values() if c > 1)
        return {
            "self_loops": int(self_loops),
            # parallel directed edges are legal (one per offset occurrence)
            "duplicate_pairs": 0 if graph.directed else int(repeated),
            "parallel_pairs": int(repeated) if graph.directed else 0,
        }

    def _degree_metrics(
        self,
        graph: Any,
        codec: GridCoordinateCodec,
        offsets: Sequence[Tuple[int, ...]],
    ) -> Dict[str, Any]:
        actual = graph.degrees()
        if len(actual) != codec.num_cells:
            return {"mismatches": None, "mismatched_vertices": [], "histogram": None}

        expected = self.expected_degrees(codec, offsets, graph.directed)
        bad = np.flatnonzero(actual != expected)

        listed = []
        for vid in bad[: self.cfg.max_reported]:
            listed.append({
                "vertex": int(vid),
                "index": [int(i) for i in codec.to_coordinate(int(vid))],
                "degree": int(actual[vid]),
                "expected": int(expected[vid]),
            })

        values, counts = np.unique(actual, return_counts=True)
        return {
            "mismatches": int(len(bad)),
            "mismatched_vertices": listed,
            "histogram": {str(int(k)): int(c) for k, c in zip(values, counts)},
        }

    def _weight_metrics(self, graph: Any) -> Dict[str, Any]:
        _, _, w = graph.edge_arrays()
        if len(w) == 0:
            return {"mean": None, "min": None, "max": None, "p10_p50_p90": None, "negative": 0}
        return {
            "mean": float(np.mean(w)),
            "min": float(np.min(w)),
            "max": float(np.max(w)),
            "p10_p50_p90": self._percentiles(w, self.cfg.weight_percentiles),
            "negative": int(np.sum(w < 0)),
        }

    def _graph_metrics_nx(self, G) -> Dict[str, Any]:
        n = G.number_of_nodes()
        if n == 0:
            return {"num_components": 0, "giant_component_ratio": None}

        if G.is_directed():
            comps = list(nx.weakly_connected_components(G))
        else:
            comps = list(nx.connected_components(G))
        comp_sizes = sorted([len(c) for c in comps], reverse=True)
        return {
            "num_components": int(len(comps)),
            "giant_component_ratio": float(comp_sizes[0] / n),
        }

    @staticmethod
    def _collect_problems(metrics: Dict[str, Any]) -> List[str]:
        problems = []
        b = metrics["basic"]
        if not b["vertex_count_ok"]:
            problems.append(f"{b['num_vertices']} vertices for {b['num_cells']} cells")
        if metrics["codec"]["round_trip_failures"]:
            problems.append(f"{metrics['codec']['round_trip_failures']} vertices fail the codec round-trip")
        if metrics["edges"]["self_loops"]:
            problems.append(f"{metrics['edges']['self_loops']} self-loops")
        if metrics["edges"]["duplicate_pairs"]:
            problems.append(f"{metrics['edges']['duplicate_pairs']} duplicated undirected pairs")
        mism = metrics["degree"]["mismatches"]
        if mism:
            problems.append(f"{mism} vertices with unexpected degree")
        return problems

    @staticmethod
    def _percentiles(arr: np.ndarray, ps: Tuple[float, float, float]) -> List[float]:
        a = np.asarray(arr, dtype=float)
        return [float(np.percentile(a, p)) for p in ps]


def _shift(index: Tuple[int, ...], off: Tuple[int, ...]) -> Tuple[int, ...]:
    return tuple(i + o for i, o in zip(index, off))
