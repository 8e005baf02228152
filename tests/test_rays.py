import cmath

import pytest

from dynamo.core.point_grid import Bounds, PointGrid
from dynamo.core.rays import (_level_phases, find_periodic_point, newton_until_convergence,
                              orbit_with_derivative)
from dynamo.profiles import Mandelbrot


def test_newton_solves_square_root():
    x, fx, _ = newton_until_convergence(lambda z: (z * z, 2 * z), 1 + 0j, target=2 + 0j)
    assert x == pytest.approx(2 ** 0.5)
    assert fx == pytest.approx(2.0)


def test_newton_stops_on_zero_derivative():
    x, _, _ = newton_until_convergence(lambda z: (1 + 0j, 0j), 3 + 0j)
    assert x == 3 + 0j


def test_level_phases_double_the_angle():
    assert _level_phases(1 / 3, 2.0, 3) == pytest.approx([1 / 3, 2 / 3, 1 / 3])
    assert _level_phases(0.25, 3.0, 2) == pytest.approx([0.25, 0.75])


def test_orbit_derivative_matches_finite_difference(mandelbrot):
    point = 0.3 + 0.6j
    h = 1e-6
    z, dz = orbit_with_derivative(mandelbrot, point, 4)
    plus, _ = orbit_with_derivative(mandelbrot, point + h, 4)
    minus, _ = orbit_with_derivative(mandelbrot, point - h, 4)
    assert dz == pytest.approx((plus - minus) / (2 * h), rel=1e-6)


def test_parameter_ray_of_angle_zero(mandelbrot):
    ray = mandelbrot.external_ray(0.0)
    assert ray[0] == 400 + 0j
    assert len(ray) > 20
    assert all(abs(z.imag) < 1e-9 for z in ray)
    assert all(z.real > 0.2 for z in ray)
    assert ray[-1].real < 2.5


def test_dynamical_ray_of_angle_quarter(mandelbrot):
    julia = mandelbrot.julia_set(0j)
    ray = julia.external_ray(0.25)
    assert ray[0] == pytest.approx(400j)
    for z in ray:
        assert abs(z.real) < 1e-6
        assert z.imag > 0
    assert 0.99 < abs(ray[-1]) < 1.05


def test_ray_polyline_moves_inward(mandelbrot):
    ray = mandelbrot.external_ray(1 / 7)
    radii = [abs(z) for z in ray]
    assert radii[0] == pytest.approx(400.0)
    assert radii[-1] < 2.0
    assert all(cmath.isfinite(z) for z in ray)


def test_ray_parameters_are_validated(mandelbrot):
    with pytest.raises(ValueError):
        mandelbrot.external_ray(0.0, depth=0)
    with pytest.raises(ValueError):
        mandelbrot.external_ray(0.0, escape_radius=0.5)


def test_equipotential_is_closed(mandelbrot):
    point = 1 + 1j
    curve = mandelbrot.equipotential(point)
    assert curve[0] == point
    assert len(curve) == 321
    assert abs(curve[-1] - point) < 1e-6


def test_equipotential_of_bounded_point(mandelbrot):
    assert mandelbrot.equipotential(0j) is None


def test_equipotential_far_from_the_set(mandelbrot):
    curve = mandelbrot.equipotential(500 + 0j)
    assert len(curve) == 21
    assert all(abs(abs(z) - 500.0) < 1e-6 for z in curve)


def test_equipotential_too_close_to_the_set(mandelbrot):
    assert mandelbrot.equipotential(0.26 + 0j) is None


def test_find_periodic_point_locates_rabbit_center(mandelbrot):
    center = find_periodic_point(mandelbrot, -0.12 + 0.74j, 3)
    assert center == pytest.approx(-0.12256116687665 + 0.74486176661974j, abs=1e-9)


def test_find_periodic_point_uses_classified_period(mandelbrot):
    center = mandelbrot.find_periodic_point(-0.12 + 0.74j)
    assert center == pytest.approx(-0.12256116687665 + 0.74486176661974j, abs=1e-9)


def test_find_periodic_point_on_dynamical_plane(mandelbrot):
    julia = mandelbrot.julia_set(-1 + 0j)
    z = julia.find_periodic_point(1.5 + 0.1j, 1)
    assert z == pytest.approx((1 + 5 ** 0.5) / 2)


def test_find_periodic_point_without_period():
    family = Mandelbrot(point_grid=PointGrid(10, 10, Bounds.centered_square(2.0)), max_iter=50)
    assert family.find_periodic_point(1 + 1j) is None
