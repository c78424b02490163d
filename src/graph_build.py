"""
graph_build.py

Build a weighted graph on top of an n-dimensional sample grid:

1) every grid cell becomes one vertex (id = row-major linear offset)
2) every registered neighbor offset connects a cell to the cell at
   index + offset, when that cell lies inside the grid
3) edge weights come from a pairwise metric over the two samples,
   evaluated once at insertion

Directedness policy:
- undirected: at most one edge per unordered pair; the reciprocal offset
  visiting the pair from the other end is skipped
- directed: one u -> v edge per offset occurrence, no existence check

Outputs:
- GridGraph (see grid_graph.py), exportable to networkx / scipy.sparse
- GridCoordinateCodec mapping algorithm results back to grid indices
"""

from __future__ import annotations

import itertools
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from evaluation_metrics import EvaluationConfig, GraphEvaluator
from grid_codec import GridCoordinateCodec
from grid_errors import BoundsError, ConfigurationError
from grid_graph import GridGraph
from image_grid import as_grid
from neighborhood import NeighborhoodOffsetSet, OffsetPolicy, offsets_for_mode
from pairwise_metrics import PairwiseMetric, get_metric

logger = logging.getLogger(__name__)


class Directedness(str, Enum):
    UNDIRECTED = "undirected"
    DIRECTED = "directed"

    @classmethod
    def coerce(cls, value: Union["Directedness", str, bool]) -> "Directedness":
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return cls.DIRECTED if value else cls.UNDIRECTED
        key = str(value).lower()
        # JSON configs may spell the flag as a string
        if key in ("true", "false"):
            return cls.DIRECTED if key == "true" else cls.UNDIRECTED
        try:
            return cls(key)
        except ValueError:
            raise ConfigurationError(
                f"directedness must be 'directed' or 'undirected', got {value!r}"
            ) from None


def iter_grid_indices(size: Sequence[int]) -> Iterator[Tuple[int, ...]]:
    """All indices of a grid, x fastest (ascending vertex id)."""
    for rev in itertools.product(*(range(n) for n in reversed(tuple(size)))):
        yield rev[::-1]


class GridGraphBuilder:
    def __init__(
        self,
        offsets: Optional[Iterable[Sequence[int]]] = None,
        metric: Union[None, str, PairwiseMetric, Any] = None,
        directedness: Union[Directedness, str, bool] = Directedness.UNDIRECTED,
        offset_policy: Union[OffsetPolicy, str] = OffsetPolicy.ORDERED,
    ):
        """
        :param offsets:       neighbor offsets in index order (dx, dy, ...)
        :param metric:        PairwiseMetric, registry name or fn(a, b); default (a-b)^2
        :param directedness:  "undirected" (default) / "directed" / bool
        :param offset_policy: "ordered" keeps duplicates, "unique" drops them
        """
        self.metric = get_metric(metric)
        self.directedness = Directedness.coerce(directedness)
        self.neighbors = NeighborhoodOffsetSet(offsets, policy=offset_policy)

        self._graph: Optional[GridGraph] = None
        self._codec: Optional[GridCoordinateCodec] = None

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #
    def set_neighbors(self, offsets: Iterable[Sequence[int]]) -> None:
        """Replace the registered offsets, keeping the offset policy."""
        fresh = NeighborhoodOffsetSet(offsets, policy=self.neighbors.policy)
        self.neighbors = fresh

    @property
    def directed(self) -> bool:
        return self.directedness is Directedness.DIRECTED

    # ------------------------------------------------------------------ #
    # Build
    # ------------------------------------------------------------------ #
    def build(self, grid: Any) -> GridGraph:
        """
        Build a fresh graph over `grid`. The grid is only read, and only
        for the duration of this call.
        """
        grid = as_grid(grid)
        if grid is None:
            raise ConfigurationError("input grid is not set")

        # A rebuild never appends to, or exposes, a previous graph
        self._graph = None
        self._codec = None

        size = tuple(int(s) for s in grid.size)
        offsets = self.neighbors.offsets
        dim = self.neighbors.dimension
        if dim is not None and dim != len(size):
            raise ConfigurationError(
                f"offsets are {dim}D but the grid is {len(size)}D (size={size})"
            )

        codec = GridCoordinateCodec(size)
        graph = GridGraph(codec.num_cells, directed=self.directed)

        radius = self.neighbors.derived_radius() or (0,) * len(size)
        deltas = [sum(o * st for o, st in zip(off, codec.strides)) for off in offsets]
        interior_lo = radius
        interior_hi = tuple(n - r for n, r in zip(size, radius))

        logger.debug(
            "build: size=%s offsets=%d radius=%s policy=%s",
            size, len(offsets), radius, self.neighbors.policy.value,
        )

        undirected = not self.directed
        metric = self.metric
        interior_cells = 0

        for index in iter_grid_indices(size):
            u, inside = codec.to_vertex(index)
            if not inside or codec.to_coordinate(u) != index:
                raise BoundsError(f"index {index} does not round-trip through vertex {u}")

            interior = all(lo <= i < hi for i, lo, hi in zip(index, interior_lo, interior_hi))
            if interior:
                interior_cells += 1

            for (off, neigh), delta in zip(self.neighbors.enumerate_active_neighbors(index), deltas):
                if interior:
                    v = u + delta
                else:
                    v, inside = codec.to_vertex(neigh)
                    if not inside:
                        continue
                if v == u:
                    continue
                if undirected and graph.has_edge(u, v):
                    continue
                graph.add_edge(u, v, metric.evaluate(grid, index, neigh))

        self._codec = codec
        self._graph = graph

        logger.debug("build: %d of %d cells handled without bounds checks", interior_cells, codec.num_cells)
        logger.info(
            "Built %s graph on grid size=%s: vertices=%d edges=%d (offsets=%d, metric=%s)",
            self.directedness.value, size, graph.number_of_vertices(),
            graph.number_of_edges(), len(offsets), getattr(metric, "name", type(metric).__name__),
        )
        return graph

    # ------------------------------------------------------------------ #
    # Outputs
    # ------------------------------------------------------------------ #
    @property
    def graph(self) -> GridGraph:
        if self._graph is None:
            raise RuntimeError("Graph not built. Call build(grid) first.")
        return self._graph

    @property
    def codec(self) -> GridCoordinateCodec:
        if self._codec is None:
            raise RuntimeError("Graph not built. Call build(grid) first.")
        return self._codec

    def vertex_from_index(self, index: Sequence[int]) -> Tuple[int, bool]:
        return self.codec.to_vertex(index)

    def index_from_vertex(self, vertex_id: int) -> Tuple[int, ...]:
        return self.codec.to_coordinate(vertex_id)


def build_grid_graph(
    grid: Any,
    offsets: Iterable[Sequence[int]],
    metric: Union[None, str, PairwiseMetric, Any] = None,
    directed: Union[Directedness, str, bool] = False,
    offset_policy: Union[OffsetPolicy, str] = OffsetPolicy.ORDERED,
) -> Tuple[GridGraph, GridCoordinateCodec]:
    builder = GridGraphBuilder(
        offsets=offsets,
        metric=metric,
        directedness=directed,
        offset_policy=offset_policy,
    )
    graph = builder.build(grid)
    return graph, builder.codec


# ----------------------------
# Config
# ----------------------------
@dataclass
class GraphBuildConfig:
    neighbor_mode: str = "4"        # "4", "8" (2D), "6", "26" (3D), "face", "full"
    offsets: Optional[List[List[int]]] = None  # explicit offsets override neighbor_mode
    offset_policy: str = "ordered"  # "ordered" keeps duplicates, "unique" drops them
    directed: bool = False
    metric: str = "squared_difference"

    # Run GraphEvaluator after the build and fail on inconsistencies
    verify: bool = False
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)


def load_config(config_path: Optional[Union[str, Path]] = None) -> GraphBuildConfig:
    cfg = GraphBuildConfig()
    if not config_path:
        return cfg
    with open(config_path, "r") as f:
        data = json.load(f)
    # allow nesting under "graph_build"
    block = data.get("graph_build", data)
    for k, v in block.items():
        if k == "evaluation" and isinstance(v, dict):
            for ek, ev in v.items():
                if hasattr(cfg.evaluation, ek):
                    setattr(cfg.evaluation, ek, ev)
        elif hasattr(cfg, k):
            setattr(cfg, k, v)
        else:
            logger.warning("Ignoring unknown graph_build key: %s", k)
    return cfg


def resolve_offsets(cfg: GraphBuildConfig, ndim: int) -> List[Tuple[int, ...]]:
    if cfg.offsets:
        return [tuple(off) for off in cfg.offsets]
    return offsets_for_mode(cfg.neighbor_mode, ndim)


def build_graph_from_config(cfg: GraphBuildConfig, grid: Any) -> Tuple[GridGraph, GridCoordinateCodec]:
    grid = as_grid(grid)
    if grid is None:
        raise ConfigurationError("input grid is not set")

    offsets = resolve_offsets(cfg, len(grid.size))
    builder = GridGraphBuilder(
        offsets=offsets,
        metric=cfg.metric,
        directedness=cfg.directed,
        offset_policy=cfg.offset_policy,
    )
    graph = builder.build(grid)

    if cfg.verify:
        evaluator = GraphEvaluator(cfg.evaluation)
        metrics = evaluator.evaluate(grid, graph, builder.neighbors, codec=builder.codec)
        evaluator.assert_valid(metrics)

    return graph, builder.codec
