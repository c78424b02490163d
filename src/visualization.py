"""
visualization.py

Plotting for grid graphs:
- the sample grid itself (2D)
- grid + graph overlay (edges colored by weight)
- optional vertex path (e.g. a shortest path) mapped back to grid indices

Build modules stay free of plotting; everything matplotlib lives here.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Tuple

import numpy as np
import matplotlib

# Headless-friendly backend (Docker / CI / no X server)
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.collections import LineCollection

logger = logging.getLogger(__name__)


class GridGraphVisualizer:
    def __init__(
        self,
        grid_cmap: str = "gray",
        edge_cmap: str = "viridis",
    ):
        self.grid_cmap = grid_cmap
        self.edge_cmap = edge_cmap

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    @staticmethod
    def _finalize_figure(
        fig: Any,
        save_path: Optional[Path],
        show: bool,
        dpi: int = 200,
    ) -> None:
        plt.tight_layout()
        if save_path is not None:
            save_path = Path(save_path)
            save_path.parent.mkdir(parents=True, exist_ok=True)
            plt.savefig(save_path, dpi=dpi)
            logger.info("Saved figure to: %s", save_path)

        if show:
            plt.show()
        else:
            plt.close(fig)

    @staticmethod
    def _as_2d(grid: Any) -> np.ndarray:
        arr = np.asarray(getattr(grid, "array", grid))
        if arr.ndim != 2:
            raise ValueError(f"plotting needs a 2D grid, got shape={arr.shape}")
        return arr

    # ------------------------------------------------------------------ #
    # 1) Grid
    # ------------------------------------------------------------------ #
    def plot_grid(
        self,
        grid: Any,
        title: str = "Sample Grid",
        save_path: Optional[Path] = None,
        show: bool = False,
        figsize: Tuple[float, float] = (6, 6),
    ) -> None:
        arr = self._as_2d(grid)

        fig, ax = plt.subplots(figsize=figsize)
        im = ax.imshow(arr, origin="lower", cmap=self.grid_cmap, interpolation="nearest")
        cbar = fig.colorbar(im, ax=ax)
        cbar.set_label("Sample value")

        ax.set_title(title)
        ax.set_xlabel("x (cell)")
        ax.set_ylabel("y (cell)")

        self._finalize_figure(fig, save_path, show)

    # ------------------------------------------------------------------ #
    # 2) Grid + graph overlay
    # ------------------------------------------------------------------ #
    def plot_grid_graph(
        self,
        grid: Any,
        graph: Any,
        codec: Any,
        path: Optional[Sequence[int]] = None,
        title: str = "Grid Graph (edges colored by weight)",
        save_path: Optional[Path] = None,
        show: bool = False,
        figsize: Tuple[float, float] = (6, 6),
        edge_width: float = 0.8,
        edge_alpha: float = 0.6,
        path_color: str = "red",
        path_width: float = 2.0,
    ) -> None:
        """
        :param path: optional vertex ids (e.g. a shortest path) drawn on top
        """
        arr = self._as_2d(grid)
        if graph is None:
            raise ValueError("graph is None")

        fig, ax = plt.subplots(figsize=figsize)
        ax.imshow(arr, origin="lower", cmap=self.grid_cmap, interpolation="nearest")

        u, v, w = graph.edge_arrays()
        if len(u):
            segments = [
                [codec.to_coordinate(int(a)), codec.to_coordinate(int(b))]
                for a, b in zip(u, v)
            ]
            lc = LineCollection(
                segments,
                cmap=self.edge_cmap,
                linewidths=edge_width,
                alpha=edge_alpha,
                zorder=2,
            )
            lc.set_array(w)
            ax.add_collection(lc)
            cbar = fig.colorbar(lc, ax=ax)
            cbar.set_label("Edge weight")

        if path is not None and len(path) > 0:
            pts = np.array([codec.to_coordinate(int(p)) for p in path], dtype=float)
            ax.plot(
                pts[:, 0],
                pts[:, 1],
                color=path_color,
                linewidth=path_width,
                zorder=3,
                label="Path",
            )
            ax.legend(loc="upper right")

        ax.set_title(title)
        ax.set_xlabel("x (cell)")
        ax.set_ylabel("y (cell)")

        self._finalize_figure(fig, save_path, show)
