import pytest

from dynamo.core.covering import CoveringMap, identity_cover
from dynamo.core.types import PointKind
from dynamo.profiles.mandelbrot import (DYNATOMIC_COVERS, MARKED_CYCLE_COVERS,
                                        MISIUREWICZ_COVERS, marked_cycle_cover_1)

ALL_COVERS = ([cover for cover, _ in MARKED_CYCLE_COVERS.values()]
              + [cover for cover, _ in DYNATOMIC_COVERS.values()]
              + [cover for cover, _ in MISIUREWICZ_COVERS.values()])


@pytest.mark.parametrize("cover", ALL_COVERS, ids=lambda f: f.__name__)
def test_cover_derivative_matches_finite_difference(cover):
    t = 0.7 + 0.3j
    h = 1e-6
    _, dc = cover(t)
    numeric = (cover(t + h)[0] - cover(t - h)[0]) / (2 * h)
    assert dc == pytest.approx(numeric, rel=1e-5)


def test_marked_fixed_point_cover(mandelbrot):
    # t marks the fixed point 1/2 + t of z^2 + c(t).
    t = 0.3 - 0.2j
    c, _ = marked_cycle_cover_1(t)
    z = 0.5 + t
    assert mandelbrot.map(z, c) == pytest.approx(z)


def test_dynatomic_cover_of_period_two_has_two_cycle(mandelbrot):
    cover, _ = DYNATOMIC_COVERS[2]
    c, _ = cover(1.7 + 0.4j)
    cycle = mandelbrot.cycles_child(c, 2)
    for z in cycle:
        assert mandelbrot.map(mandelbrot.map(z, c), c) == pytest.approx(z)


def test_covering_map_chains_derivatives(mandelbrot):
    curve = mandelbrot.dynatomic_curve(2)
    assert isinstance(curve, CoveringMap)
    t = 1.7 + 0.4j
    h = 1e-6
    _, dc = curve.param_map_d(t)
    numeric = (curve.param_map(t + h) - curve.param_map(t - h)) / (2 * h)
    assert dc == pytest.approx(numeric, rel=1e-5)


def test_covering_map_delegates_to_base(mandelbrot):
    curve = mandelbrot.marked_cycle_curve(1)
    assert curve.degree() == mandelbrot.degree()
    assert curve.escape_radius() == mandelbrot.escape_radius()
    assert curve.point_grid.res_y == mandelbrot.point_grid.res_y
    assert curve.point_grid.bounds.to_tuple() == (-1.8, 1.8, -1.0, 1.0)
    # t = 0 maps to c = 1/4, the cusp of the main cardioid.
    assert curve.param_map(0j) == 0.25
    info = curve.classify_point(0.5 + 0j)
    assert info.kind is PointKind.PERIODIC_KNOWN_POTENTIAL
    assert info.data.period == 1


def test_covering_map_does_not_mutate_base(mandelbrot):
    bounds = mandelbrot.point_grid.bounds.to_tuple()
    curve = mandelbrot.misiurewicz_curve(2, 1)
    curve.change_bounds(curve.default_bounds())
    curve.set_max_iter(10)
    assert mandelbrot.point_grid.bounds.to_tuple() == bounds
    assert mandelbrot.max_iter == 256


def test_unknown_curve_falls_back_to_identity(mandelbrot):
    curve = mandelbrot.dynatomic_curve(9)
    assert curve.covering is identity_cover
    assert curve.param_map(0.1 + 0.2j) == 0.1 + 0.2j


def test_covering_map_julia_set(mandelbrot):
    curve = mandelbrot.marked_cycle_curve(1)
    julia = curve.julia_set(0.5 + 0j)
    assert julia.get_param() == pytest.approx(0.0)
    assert julia.classify_point(0j).data.period == 1
