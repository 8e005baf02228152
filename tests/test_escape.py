import math

import pytest

from dynamo.core.dynamics import DynamicalFamily
from dynamo.core.escape import EscapeTimeIterator, escape_potential
from dynamo.core.point_grid import Bounds
from dynamo.core.types import EscapeKind, PointKind
from dynamo.profiles import Multibrot, MultibrotParameters


class ConstantFamily(DynamicalFamily):
    """Every orbit sits still at its start point."""

    name = "constant"

    def map_and_multiplier(self, z, c):
        return z, 1 + 0j

    def start_point(self, point, c):
        return point

    def escape_radius(self):
        return 2.0

    def default_bounds(self):
        return Bounds.centered_square(4.0)


class PoleFamily(ConstantFamily):
    name = "pole"

    def map_and_multiplier(self, z, c):
        return 1.0 / (z - z), 1 + 0j


class NanFamily(ConstantFamily):
    name = "nan"

    def map_and_multiplier(self, z, c):
        return complex(float('nan'), 0.0), 1 + 0j


def test_superattracting_fixed_point(quadratic):
    state = quadratic.run_point(0j)
    assert state.kind is EscapeKind.PERIODIC
    assert state.data.period == 1
    assert state.data.multiplier == 0


def test_period_two_orbit(quadratic):
    state = quadratic.run_point(-1 + 0j)
    assert state.kind is EscapeKind.PERIODIC
    assert state.data.period == 2
    assert state.data.preperiod == 2
    assert abs(state.data.multiplier) < 1e-12


def test_escaping_point_has_smooth_potential(quadratic):
    state = quadratic.run_point(1 + 0j)
    assert state.kind is EscapeKind.ESCAPING
    assert 0 < state.potential < quadratic.max_iter


def test_potential_is_continuous_across_escape_steps(quadratic):
    # Nearby points escaping at different steps get nearby potentials.
    a = quadratic.run_point(0.5 + 0.5j).potential
    b = quadratic.run_point(0.5001 + 0.5j).potential
    assert abs(a - b) < 0.1


def test_parabolic_point_exhausts_budget():
    family = Multibrot(MultibrotParameters(degree=2), max_iter=50)
    assert family.run_point(0.25 + 0j).kind is EscapeKind.BOUNDED
    assert family.classify_point(0.25 + 0j).kind is PointKind.BOUNDED


def test_escape_is_checked_before_periodicity():
    family = ConstantFamily(max_iter=10)
    assert family.run_point(3 + 0j).kind is EscapeKind.ESCAPING
    assert family.run_point(1 + 0j).kind is EscapeKind.PERIODIC


def test_pole_counts_as_escape():
    family = PoleFamily(max_iter=10)
    state = family.run_point(1 + 0j)
    assert state.kind is EscapeKind.ESCAPING
    assert state.potential == 10


def test_nan_counts_as_escape():
    family = NanFamily(max_iter=7)
    state = family.run_point(1 + 0j)
    assert state.kind is EscapeKind.ESCAPING
    assert state.potential == 7


def test_classification_is_deterministic(quadratic):
    for point in (0.3 + 0.5j, -0.75 + 0.1j, -1.2 + 0.2j):
        assert quadratic.classify_point(point) == quadratic.classify_point(point)


def test_early_bailout_agrees_with_iteration(mandelbrot, quadratic):
    for point, period in ((0.1 + 0.1j, 1), (-0.9 + 0j, 2)):
        analytic = mandelbrot.classify_point(point)
        iterated = quadratic.classify_point(point)
        assert analytic.kind is PointKind.PERIODIC_KNOWN_POTENTIAL
        assert iterated.kind is PointKind.PERIODIC
        assert analytic.data.period == iterated.data.period == period
        assert abs(analytic.data.multiplier - iterated.data.multiplier) < 1e-5


def test_escape_potential_formula():
    assert escape_potential(5, 4.0, 2.0, 2.0) == pytest.approx(4.0)
    assert escape_potential(5, 4.0, 2.0, math.nan) == 5.0
    assert escape_potential(5, 16.0, 2.0, 2.0, escaping_period=2) == pytest.approx(1.0)


def test_iterator_validation():
    with pytest.raises(ValueError):
        EscapeTimeIterator(max_iter=0)
    with pytest.raises(ValueError):
        EscapeTimeIterator(max_iter=10, min_iter=11)
    with pytest.raises(ValueError):
        EscapeTimeIterator(escape_radius=-1.0)


def test_orbit_stops_after_escape(quadratic):
    orbit = quadratic.iter_orbit(1 + 0j, max_len=100)
    assert orbit[:4] == [0j, 1 + 0j, 2 + 0j, 5 + 0j]
    assert abs(orbit[-1]) > quadratic.escape_radius()
    assert len(orbit) < 100
