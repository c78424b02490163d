"""
pairwise_metrics.py

Edge weight functions over two grid samples.

Every metric exposes:
    evaluate(grid, index_a, index_b) -> weight

Metrics are pure and stateless: the same grid and indices always give the
same weight. The builder evaluates each edge exactly once, on insertion.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Dict, Sequence, Union

from grid_errors import ConfigurationError


class PairwiseMetric:
    name = "base"

    def evaluate(self, grid: Any, index_a: Sequence[int], index_b: Sequence[int]) -> float:
        return self.cost(grid.get_sample(index_a), grid.get_sample(index_b))

    def cost(self, a: Any, b: Any) -> float:
        raise NotImplementedError

    def __call__(self, grid: Any, index_a: Sequence[int], index_b: Sequence[int]) -> float:
        return self.evaluate(grid, index_a, index_b)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SquaredDifferenceMetric(PairwiseMetric):
    """(a - b)^2, the default cost."""

    name = "squared_difference"

    def cost(self, a, b):
        d = a - b
        return d * d


class AbsoluteDifferenceMetric(PairwiseMetric):
    name = "absolute_difference"

    def cost(self, a, b):
        return abs(a - b)


class GradientMagnitudeMetric(PairwiseMetric):
    """
    |a - b| / step length.

    Long-range offsets (radius > 1) are normalized by their Euclidean length,
    so diagonal and far neighbors are comparable to face neighbors.
    """

    name = "gradient_magnitude"

    def evaluate(self, grid, index_a, index_b):
        a = grid.get_sample(index_a)
        b = grid.get_sample(index_b)
        step = math.sqrt(sum((int(i) - int(j)) ** 2 for i, j in zip(index_a, index_b)))
        return self.cost(a, b) / step

    def cost(self, a, b):
        return abs(a - b)


class MeanCostMetric(PairwiseMetric):
    """
    1 - mean(a, b), for maps holding traversability in [0, 1]
    (higher traversability -> lower cost).
    """

    name = "mean_cost"

    def cost(self, a, b):
        return 1.0 - 0.5 * (a + b)


class CallableMetric(PairwiseMetric):
    """Wrap a plain fn(a, b) -> weight over sample values."""

    def __init__(self, fn: Callable[[Any, Any], float], name: str = "callable"):
        if not callable(fn):
            raise ConfigurationError(f"metric function is not callable: {fn!r}")
        self.fn = fn
        self.name = name

    def cost(self, a, b):
        return self.fn(a, b)

    def __repr__(self) -> str:
        return f"CallableMetric({self.name})"


METRICS: Dict[str, type] = {
    SquaredDifferenceMetric.name: SquaredDifferenceMetric,
    AbsoluteDifferenceMetric.name: AbsoluteDifferenceMetric,
    GradientMagnitudeMetric.name: GradientMagnitudeMetric,
    MeanCostMetric.name: MeanCostMetric,
}


def get_metric(metric: Union[None, str, PairwiseMetric, Callable] = None) -> PairwiseMetric:
    """
    Resolve a metric spec:
      None             -> SquaredDifferenceMetric
      str              -> registry lookup
      PairwiseMetric   -> itself
      callable(a, b)   -> CallableMetric
    """
    if metric is None:
        return SquaredDifferenceMetric()
    if isinstance(metric, PairwiseMetric):
        return metric
    if isinstance(metric, str):
        cls = METRICS.get(metric.lower())
        if cls is None:
            raise ConfigurationError(
                f"unknown metric {metric!r}; available: {sorted(METRICS)}"
            )
        return cls()
    if hasattr(metric, "evaluate"):
        return metric
    if callable(metric):
        return CallableMetric(metric, name=getattr(metric, "__name__", "callable"))
    raise ConfigurationError(f"cannot use {metric!r} as a metric")
