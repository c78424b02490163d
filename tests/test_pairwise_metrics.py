import math

import numpy as np
import pytest

from grid_errors import ConfigurationError
from image_grid import ImageGrid
from pairwise_metrics import (
    AbsoluteDifferenceMetric,
    CallableMetric,
    GradientMagnitudeMetric,
    MeanCostMetric,
    SquaredDifferenceMetric,
    get_metric,
)


def test_squared_difference_is_exact_on_uint8():
    grid = ImageGrid(np.array([[0, 255]], dtype=np.uint8))
    m = SquaredDifferenceMetric()
    assert m.evaluate(grid, (0, 0), (1, 0)) == 65025
    assert m.evaluate(grid, (1, 0), (0, 0)) == 65025


def test_absolute_difference():
    grid = ImageGrid(np.array([[3, 10]]))
    assert AbsoluteDifferenceMetric().evaluate(grid, (0, 0), (1, 0)) == 7


def test_gradient_magnitude_normalizes_by_step_length():
    grid = ImageGrid(np.array([[0, 0], [0, 4]]))
    m = GradientMagnitudeMetric()
    assert m.evaluate(grid, (0, 0), (1, 1)) == pytest.approx(4 / math.sqrt(2))
    assert m.evaluate(grid, (1, 0), (1, 1)) == pytest.approx(4.0)


def test_mean_cost():
    grid = ImageGrid(np.array([[0.2, 0.6]]))
    assert MeanCostMetric().evaluate(grid, (0, 0), (1, 0)) == pytest.approx(0.6)


def test_get_metric_resolution():
    assert isinstance(get_metric(None), SquaredDifferenceMetric)
    assert isinstance(get_metric("absolute_difference"), AbsoluteDifferenceMetric)
    m = SquaredDifferenceMetric()
    assert get_metric(m) is m

    wrapped = get_metric(lambda a, b: max(a, b))
    assert isinstance(wrapped, CallableMetric)
    grid = ImageGrid(np.array([[2, 5]]))
    assert wrapped.evaluate(grid, (0, 0), (1, 0)) == 5


def test_unknown_metric_name():
    with pytest.raises(ConfigurationError):
        get_metric("cosine")


def test_metric_is_deterministic():
    grid = ImageGrid(np.random.default_rng(0).random((4, 4)))
    m = SquaredDifferenceMetric()
    assert m(grid, (0, 0), (1, 0)) == m(grid, (0, 0), (1, 0))


def test_gradient_magnitude_uses_cost():
    class Doubled(GradientMagnitudeMetric):
        def cost(self, a, b):
            return 2 * abs(a - b)

    grid = ImageGrid(np.array([[0, 3], [4, 0]], dtype=float))
    assert Doubled().evaluate(grid, (0, 0), (1, 0)) == pytest.approx(6.0)
    assert Doubled().evaluate(grid, (1, 0), (0, 1)) == pytest.approx(2 * 1 / math.sqrt(2))
