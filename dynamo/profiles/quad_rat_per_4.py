"""
Quadratic rational maps with a critical 4-cycle.

In the coordinates f_c(z) = (z - c)((c - 1)z - 2c + 1) / ((c - 1)z^2) the
critical 4-cycle is 0 -> inf -> 1 -> c -> 0; the plane is colored by the
activity of the free critical point.
"""

import cmath
from typing import List, Tuple
import logging

import mpmath

from ..core.covering import CoveringMap
from ..core.dynamics import DynamicalFamily
from ..core.point_grid import Bounds
from ..core.polynomial_roots import horner, horner_monic, solve_cubic, solve_polynomial

logger = logging.getLogger(__name__)

POLE = 2.61803398874989

# The period-3 marked-cycle curve is elliptic with these Weierstrass invariants.
CURVE_3_G2 = 12.0 ** (1.0 / 3.0)
CURVE_3_G3 = -19.0 / 12.0
CURVE_3_BOUNDS = Bounds(-3.6, 3.6, -2.4, 2.4)


def weierstrass_p(z: complex, g2: float, g3: float) -> Tuple[complex, complex]:
    """
    Weierstrass p-function of the lattice with invariants g2, g3, and its derivative.

    With e1, e2, e3 the roots of 4x^3 - g2 x - g3,
    p(z) = e3 + (e1 - e3) / sn^2(sqrt(e1 - e3) z | m), m = (e2 - e3) / (e1 - e3).

    Raises:
        ZeroDivisionError: at the lattice points, where p has its poles
    """
    e1, e2, e3 = (mpmath.mpc(e) for e in solve_cubic(-g3 / 4.0, -g2 / 4.0, 0.0))
    k = mpmath.sqrt(e1 - e3)
    m = (e2 - e3) / (e1 - e3)
    w = k * mpmath.mpc(z)
    sn = mpmath.ellipfun('sn', w, m)
    cn = mpmath.ellipfun('cn', w, m)
    dn = mpmath.ellipfun('dn', w, m)
    if sn == 0:
        raise ZeroDivisionError("Weierstrass p has a pole at a lattice point")
    p = e3 + k * k / (sn * sn)
    dp = -2 * k ** 3 * cn * dn / sn ** 3
    return complex(p), complex(dp)


def marked_cycle_cover_3(t: complex) -> Tuple[complex, complex]:
    """Uniformization of the period-3 marked-cycle curve, (u(t), du/dt)."""
    p, dp = weierstrass_p(t, CURVE_3_G2, CURVE_3_G3)
    x = (CURVE_3_G2 * p + 1.0) / 3.0
    dx = CURVE_3_G2 * dp / 3.0
    xx = x + 1.0
    return x / xx, dx / (xx * xx)


class QuadRatPer4(DynamicalFamily):
    """Moduli space of quadratic rational maps with a critical 4-cycle."""

    name = "quad_rat_per_4"

    def param_map(self, point: complex):
        return 1.0 / point + POLE

    def param_map_d(self, point: complex) -> Tuple[complex, complex]:
        u = 1.0 / point
        return u + POLE, -u * u

    def start_point(self, point: complex, c) -> complex:
        c2 = c * c
        return 2.0 * (2.0 * c2 - c) / (c2 + c - 1.0)

    def start_point_d(self, point: complex, c) -> Tuple[complex, complex, complex]:
        c2 = c * c
        denom = 1.0 / (c2 + c - 1.0)
        return (2.0 * (2.0 * c2 - c) * denom,
                0j,
                (6.0 * c2 - 8.0 * c + 2.0) * denom * denom)

    def map(self, z: complex, c) -> complex:
        return (c * (z - 2.0) - z + 1.0) * (z - c) / (z * z * (c - 1.0))

    def map_and_multiplier(self, z: complex, c) -> Tuple[complex, complex]:
        c2 = c * c
        c_minus_1 = c - 1.0
        u = 1.0 / (c_minus_1 * z * z)
        two_c = 2.0 * c
        return ((z - c) * (c_minus_1 * z - two_c + 1.0) * u,
                (c2 + c_minus_1 - (4.0 * c2 - two_c) / z) * u)

    def gradient(self, z: complex, c) -> Tuple[complex, complex, complex]:
        v = c - 1.0
        c2 = c * c
        u = 1.0 / (v * z * z)
        two_c = 2.0 * c
        return ((z - c) * (c * z - z - two_c + 1.0) * u,
                (c2 + v - (4.0 * c2 - two_c) / z) * u,
                (1.0 + (two_c - c2) * (z - 2.0)) * u / v)

    def degree(self) -> float:
        # 0 and inf are both critical, so the first-return map at inf has local degree 4.
        return 4.0

    def escaping_period(self) -> int:
        return 4

    def escape_radius(self) -> float:
        return 1e10

    def default_bounds(self) -> Bounds:
        return Bounds(-1.0, 0.2, -0.5, 0.5)

    def default_julia_bounds(self, point: complex, c) -> Bounds:
        return Bounds.square(4.0, 2.0)

    def critical_points_child(self, c) -> List[complex]:
        c2 = c * c
        return [0j, 2.0 * (2.0 * c2 - c) / (c2 + c - 1.0)]

    def cycles_child(self, c, period: int) -> List[complex]:
        c = complex(c)
        if period == 1:
            c_minus_1 = c - 1.0
            return solve_cubic(-c * (2.0 * c - 1.0) / c_minus_1,
                               (c * c + c - 1.0) / c_minus_1,
                               -1.0)
        if period == 2:
            c2 = c * c
            x0 = 3.0 * c2
            denom = 0.5 / (c - 1.0)
            disc = cmath.sqrt(x0 * x0 - c * (8.0 * c2 - 6.0 * c + 4.0) + 1.0)
            return [denom * (x0 + disc - 1.0), denom * (x0 - disc - 1.0)]
        if period == 3:
            c2 = c * c
            coeffs = [
                c2 * c * horner(c, 1., -7., 18., -20., 8.),
                c2 * horner(c, -4., 25., -54., 41., 4., -12.),
                c * horner(c, 5., -24., 26., 33., -72., 23., 10.),
                horner(c, -2., 2., 29., -83., 71., -4., -10., -5.),
                horner_monic(c, 4., -17., 19., 11., -36., 23., -4.),
                horner(c, -2., 9., -16., 14., -4., -3., 2.),
                c * horner_monic(c, 1., -4., 6., -4.),
            ]
            return solve_polynomial(coeffs)
        if period == 4:
            c2 = c * c
            c3 = c * c2
            c4 = c2 * c2
            coeffs = [
                c3 * c4 * horner(c, -1., 12., -61., 170., -280., 272., -144., 32.),
                c4 * horner(c, 1., -15., 103., -419., 1089., -1817., 1835., -896., -72.,
                            272., -80.),
                c3 * horner(c, -4., 57., -360., 1300., -2868., 3747., -2293., -527., 1686.,
                            -732., -104., 96.),
                c2 * horner(c, 6., -79., 445., -1345., 2127., -841., -3011., 5721., -3916.,
                            382., 726., -144., -72.),
                c * horner(c, -4., 45., -191., 261., 737., -3856., 7348., -6869., 2028.,
                           1633., -1223., -90., 151., 34.),
                horner(c, 1., -6., -21., 322., -1375., 2999., -3272., 469., 3191., -3641.,
                       1294., 192., -105., -41., -9.),
                horner_monic(c, -2., 24., -117., 264., -90., -1028., 2817., -3546., 2169.,
                             -238., -392., 115., 26., -3.),
                horner(c, 1., -14., 87., -312., 701., -987., 774., -121., -362., 329.,
                       -98., 1., -1., 2.),
                c2 * c3 * horner_monic(c, -1., 7., -21., 35., -35., 21., -7.),
            ]
            roots = solve_polynomial(coeffs)
            # The finite points of the critical 4-cycle.
            roots.extend([1 + 0j, c, 0j])
            return roots
        return []

    def marked_cycle_curve(self, period: int) -> CoveringMap:
        if period == 3:
            return CoveringMap(self, marked_cycle_cover_3, CURVE_3_BOUNDS)
        return super().marked_cycle_curve(period)

    def get_description(self) -> str:
        return ("Quadratic rational maps with a critical 4-cycle 0 -> inf -> 1 -> c -> 0, "
                "f_c(z) = (z-c)(z(c-1)-2c+1)/(z^2(c-1)), colored by the free critical point")
