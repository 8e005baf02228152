import pytest

from dynamo.core.point_grid import Bounds, PointGrid
from dynamo.profiles import Mandelbrot, Multibrot, MultibrotParameters


@pytest.fixture
def mandelbrot():
    return Mandelbrot(max_iter=256)


@pytest.fixture
def quadratic():
    """z^2 + c without the analytic cardioid/bulb shortcut."""
    return Multibrot(MultibrotParameters(degree=2), max_iter=256)


@pytest.fixture
def small_grid():
    return PointGrid(10, 8, Bounds(-2.0, 0.5, -1.2, 1.2))
