"""
image_grid.py

Read-only view of an n-dimensional sample grid (2D/3D image, traversability map).

Index convention:
- an index is (x, y[, z, ...]) : index[0] is the fastest varying axis
- a numpy array of shape (H, W) is addressed as array[y, x]
- `size` is the extent in index order, i.e. array.shape reversed
"""

from __future__ import annotations

from typing import Any, Sequence, Tuple

import numpy as np


class ImageGrid:
    def __init__(self, array: Any):
        arr = np.asarray(array)
        if arr.ndim == 0:
            raise ValueError("grid must have at least one dimension")

        # A view, so the caller's own array keeps its flags
        view = arr.view()
        view.flags.writeable = False
        self._array = view

    @property
    def array(self) -> np.ndarray:
        return self._array

    @property
    def shape(self) -> Tuple[int, ...]:
        """numpy order, slowest axis first."""
        return tuple(int(s) for s in self._array.shape)

    @property
    def size(self) -> Tuple[int, ...]:
        """Index order, fastest axis first."""
        return tuple(int(s) for s in reversed(self._array.shape))

    @property
    def ndim(self) -> int:
        return int(self._array.ndim)

    @property
    def num_cells(self) -> int:
        return int(self._array.size)

    def is_inside(self, index: Sequence[int]) -> bool:
        size = self.size
        if len(index) != len(size):
            return False
        for i, n in zip(index, size):
            if i < 0 or i >= n:
                return False
        return True

    def get_sample(self, index: Sequence[int]) -> Any:
        """
        Sample value at `index` as a Python scalar.

        Unsigned image types would wrap on subtraction as numpy scalars;
        returning Python numbers keeps metric arithmetic exact.
        """
        return self._array[tuple(reversed(tuple(index)))].item()

    def __repr__(self) -> str:
        return f"ImageGrid(size={self.size}, dtype={self._array.dtype})"


def as_grid(obj: Any):
    """Pass grid providers through, wrap array-likes, keep None."""
    if obj is None:
        return None
    if isinstance(obj, ImageGrid):
        return obj
    if hasattr(obj, "size") and hasattr(obj, "is_inside") and hasattr(obj, "get_sample"):
        return obj
    return ImageGrid(obj)
