"""
grid_codec.py

Bijection between grid indices (x, y[, z, ...]) and linear vertex ids.

vertex_id = x + y*W + z*W*H + ...   (row-major linear offset, x fastest)

Vertex ids are exported as int64 arrays (numpy / scipy.sparse), so the
cell count of the grid must fit in a signed 64-bit integer.
"""

from __future__ import annotations

from numbers import Integral
from typing import Sequence, Tuple

import numpy as np

from grid_errors import ConfigurationError, RangeError

VERTEX_ID_MAX = int(np.iinfo(np.int64).max)


class GridCoordinateCodec:
    def __init__(self, size: Sequence[int]):
        size = tuple(int(s) for s in size)
        if len(size) == 0:
            raise ConfigurationError("codec needs at least one dimension")
        if any(s < 0 for s in size):
            raise ConfigurationError(f"negative grid extent: {size}")

        strides = []
        stride = 1
        for s in size:
            strides.append(stride)
            stride *= s
        if stride > VERTEX_ID_MAX:
            raise RangeError(
                f"grid of size {size} has {stride} cells, "
                f"more than the largest vertex id ({VERTEX_ID_MAX})"
            )

        self._size = size
        self._strides = tuple(strides)
        self._num_cells = stride

    @classmethod
    def from_grid(cls, grid) -> "GridCoordinateCodec":
        return cls(grid.size)

    @property
    def size(self) -> Tuple[int, ...]:
        return self._size

    @property
    def strides(self) -> Tuple[int, ...]:
        return self._strides

    @property
    def ndim(self) -> int:
        return len(self._size)

    @property
    def num_cells(self) -> int:
        return self._num_cells

    def is_inside(self, index: Sequence[int]) -> bool:
        self._check_dimension(index)
        for i, n in zip(index, self._size):
            if i < 0 or i >= n:
                return False
        return True

    def to_vertex(self, index: Sequence[int]) -> Tuple[int, bool]:
        """
        Map an index to (vertex_id, inside).

        Out-of-bounds indices are a normal outcome: they return (0, False).
        """
        if not self.is_inside(index):
            return 0, False
        vid = 0
        for i, st in zip(index, self._strides):
            vid += int(i) * st
        return vid, True

    def to_coordinate(self, vertex_id: int) -> Tuple[int, ...]:
        """
        Inverse of to_vertex.

        Precondition: 0 <= vertex_id < num_cells (not checked).
        """
        rest = int(vertex_id)
        index = []
        for s in self._size:
            rest, i = divmod(rest, s)
            index.append(i)
        return tuple(index)

    def _check_dimension(self, index: Sequence[int]) -> None:
        if len(index) != len(self._size):
            raise ConfigurationError(
                f"index {tuple(index)} has {len(index)} components, grid has {len(self._size)} dimensions"
            )
        for i in index:
            if isinstance(i, (bool, np.bool_)) or not isinstance(i, (Integral, np.integer)):
                raise ConfigurationError(f"index components must be integers, got {tuple(index)!r}")

    def __repr__(self) -> str:
        return f"GridCoordinateCodec(size={self._size})"
