"""
grid_graph.py

Output graph of the grid builder.

- vertex count is fixed at construction: vertices are 0..num_vertices-1
- edges accumulate as (u, v, weight); weights are never modified afterwards
- undirected graphs hold at most one edge per unordered pair
- directed graphs may hold parallel u -> v edges (one per offset occurrence)
- self-loops are rejected

Downstream graph algorithms run on the exports:
- to_networkx()      : nx.Graph / nx.DiGraph / nx.MultiDiGraph
- to_scipy_sparse()  : scipy.sparse.csr_matrix for scipy.sparse.csgraph
"""

from __future__ import annotations

from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

import numpy as np
import networkx as nx
from scipy import sparse

from grid_errors import BoundsError


class Edge(NamedTuple):
    u: int
    v: int
    weight: float


class GridGraph:
    def __init__(self, num_vertices: int, directed: bool = False):
        if num_vertices < 0:
            raise ValueError("num_vertices must be >= 0")
        self._n = int(num_vertices)
        self._directed = bool(directed)

        self._u: List[int] = []
        self._v: List[int] = []
        self._w: List[float] = []
        # key -> index of the first edge with that key
        self._index: Dict[Tuple[int, int], int] = {}
        self._parallel = False
        # (out, in, total) degree arrays, dropped on every add_edge
        self._degree_cache: Optional[Tuple[np.ndarray, np.ndarray, np.ndarray]] = None

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #
    def _key(self, u: int, v: int) -> Tuple[int, int]:
        if self._directed or u < v:
            return (u, v)
        return (v, u)

    def add_edge(self, u: int, v: int, weight: float) -> int:
        """Append an edge and return its position in the edge list."""
        u, v = int(u), int(v)
        if u == v:
            raise BoundsError(f"self-loop on vertex {u}")
        if not (0 <= u < self._n and 0 <= v < self._n):
            raise BoundsError(f"edge ({u}, {v}) outside vertex range [0, {self._n})")

        key = self._key(u, v)
        if key in self._index:
            if not self._directed:
                raise BoundsError(f"undirected edge ({u}, {v}) already exists")
            self._parallel = True
        else:
            self._index[key] = len(self._u)

        self._u.append(u)
        self._v.append(v)
        self._w.append(weight)
        self._degree_cache = None
        return len(self._u) - 1

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #
    @property
    def directed(self) -> bool:
        return self._directed

    @property
    def has_parallel_edges(self) -> bool:
        return self._parallel

    def number_of_vertices(self) -> int:
        return self._n

    def number_of_edges(self) -> int:
        return len(self._u)

    def has_edge(self, u: int, v: int) -> bool:
        """For undirected graphs the orientation of (u, v) is ignored."""
        return self._key(int(u), int(v)) in self._index

    def edge_weight(self, u: int, v: int) -> float:
        """Weight of the first inserted u-v edge; KeyError if there is none."""
        return self._w[self._index[self._key(int(u), int(v))]]

    def edges(self) -> Iterator[Edge]:
        for u, v, w in zip(self._u, self._v, self._w):
            yield Edge(u, v, w)

    def edge_arrays(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        return (
            np.asarray(self._u, dtype=np.int64),
            np.asarray(self._v, dtype=np.int64),
            np.asarray(self._w, dtype=float),
        )

    def out_degree(self, v: int) -> int:
        return int(self._degree_arrays()[0][int(v)])

    def in_degree(self, v: int) -> int:
        return int(self._degree_arrays()[1][int(v)])

    def degree(self, v: int) -> int:
        """Number of incident edge endpoints (in + out for directed graphs)."""
        return int(self._degree_arrays()[2][int(v)])

    def degrees(self) -> np.ndarray:
        return self._degree_arrays()[2].copy()

    def _degree_arrays(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        if self._degree_cache is None:
            u = np.asarray(self._u, dtype=np.int64)
            v = np.asarray(self._v, dtype=np.int64)
            out_deg = np.bincount(u, minlength=self._n)
            in_deg = np.bincount(v, minlength=self._n)
            self._degree_cache = (out_deg, in_deg, out_deg + in_deg)
        return self._degree_cache

    # ------------------------------------------------------------------ #
    # Conversions
    # ------------------------------------------------------------------ #
    def to_networkx(self, codec=None):
        """
        networkx view of the graph. With a codec, every node also gets an
        `index` attribute holding its grid coordinate.
        """
        if not self._directed:
            G = nx.Graph()
        elif self._parallel:
            G = nx.MultiDiGraph()
        else:
            G = nx.DiGraph()

        if codec is None:
            G.add_nodes_from(range(self._n))
        else:
            G.add_nodes_from((i, {"index": codec.to_coordinate(i)}) for i in range(self._n))

        for u, v, w in zip(self._u, self._v, self._w):
            G.add_edge(u, v, weight=w)
        return G

    def to_scipy_sparse(self) -> sparse.csr_matrix:
        """
        (n, n) weighted adjacency matrix. Undirected graphs are stored
        symmetrically; parallel directed edges keep their minimum weight.
        """
        best: Dict[Tuple[int, int], float] = {}
        for u, v, w in zip(self._u, self._v, self._w):
            prev = best.get((u, v))
            if prev is None or w < prev:
                best[(u, v)] = w

        rows: List[int] = []
        cols: List[int] = []
        data: List[float] = []
        for (u, v), w in best.items():
            rows.append(u)
            cols.append(v)
            data.append(float(w))
            if not self._directed:
                rows.append(v)
                cols.append(u)
                data.append(float(w))

        return sparse.csr_matrix(
            (np.asarray(data, dtype=float), (np.asarray(rows, dtype=np.int64), np.asarray(cols, dtype=np.int64))),
            shape=(self._n, self._n),
        )

    def __repr__(self) -> str:
        kind = "directed" if self._directed else "undirected"
        return f"GridGraph({kind}, vertices={self._n}, edges={len(self._u)})"


def path_to_indices(path: List[int], codec) -> List[Tuple[int, ...]]:
    """Map a vertex path from a graph algorithm back to grid indices."""
    return [codec.to_coordinate(v) for v in path]


def partition_to_mask(vertices, codec) -> np.ndarray:
    """
    Boolean mask (numpy order, shape reversed from codec.size) marking the
    cells of a vertex set, e.g. one side of a min-cut.
    """
    mask = np.zeros(tuple(reversed(codec.size)), dtype=bool)
    flat = mask.reshape(-1)
    for v in vertices:
        flat[int(v)] = True
    return mask
