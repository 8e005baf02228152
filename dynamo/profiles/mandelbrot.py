"""
The quadratic family z^2 + c.

Besides the parameter plane itself, this module provides closed-form
cycle points for low periods, an analytic test for the main cardioid and
the period-2 bulb, and rational parametrizations of several marked-cycle,
dynatomic and Misiurewicz curves.
"""

import cmath
import math
from typing import List, Optional, Tuple
import logging

from ..core.covering import CoveringMap
from ..core.point_grid import Bounds, PointGrid
from ..core.types import EscapeState, PeriodicData
from .multibrot import Multibrot, MultibrotParameters

logger = logging.getLogger(__name__)

EARLY_BAILOUT_ERROR = 1e-6 + 0j


def _internal_potential(init_dist: float, decay_rate: float, scale: float) -> Tuple[float, int]:
    """Potential and preperiod of an orbit attracted at a known rate."""
    if init_dist <= 0.0 or decay_rate <= 0.0 or decay_rate == 1.0:
        return 0.0, 0
    potential = scale * math.log(init_dist) / math.log(decay_rate)
    if not math.isfinite(potential) or potential < 0.0:
        return 0.0, 0
    return potential, int(potential)


# Covers of the parameter plane. Each returns (c(t), dc/dt).

def marked_cycle_cover_1(t: complex) -> Tuple[complex, complex]:
    return 0.25 - t * t, -2.0 * t


def marked_cycle_cover_3(t: complex) -> Tuple[complex, complex]:
    return -1.75 * (1.0 + 7.0 * t * t), -24.5 * t


def marked_cycle_cover_4(t: complex) -> Tuple[complex, complex]:
    t2 = t * t
    return -0.25 * t2 - 0.75 - 1.0 / t, -0.5 * t + 1.0 / t2


def dynatomic_cover_2(t: complex) -> Tuple[complex, complex]:
    u = 9.0 / (t * t)
    return (t - 1.0) * u - 3.0, (2.0 - t) * u / t


def dynatomic_cover_3(t: complex) -> Tuple[complex, complex]:
    t2 = t * t
    v = t2 * (t2 - 3.0 * t + 6.0) - 2.0 * t + 2.0
    dv = -2.0 + t * (12.0 + t * (-9.0 + 4.0 * t))
    w = 1.0 / (t2 - t)
    dw = (1.0 - 2.0 * t) * w * w
    u = v + w
    du = dv + dw
    return -0.25 * u * w, -0.25 * (du * w + u * dw)


def misiurewicz_cover_2_1(t: complex) -> Tuple[complex, complex]:
    t2 = t * t
    u = 1.0 / (t2 - 1.0)
    u2 = u * u
    return -2.0 * (t2 + 1.0) * u2, 4.0 * t * (t2 + 3.0) * u2 * u


def misiurewicz_cover_2_2(t: complex) -> Tuple[complex, complex]:
    t2 = t * t
    t3 = t2 * t
    c = -(t2 * (t2 + 2.0 * t + 2.0) - 2.0 * t + 1.0) / (4.0 * t2)
    dc = -0.5 * (t2 + t - 1.0) * (t2 + 1.0) / t3
    return c, dc


MARKED_CYCLE_COVERS = {
    1: (marked_cycle_cover_1, Bounds(-1.8, 1.8, -1.0, 1.0)),
    3: (marked_cycle_cover_3, Bounds(-0.3, 0.3, -0.5, 0.5)),
    4: (marked_cycle_cover_4, Bounds(-2.9, 2.1, -3.1, 3.1)),
}

DYNATOMIC_COVERS = {
    1: (marked_cycle_cover_1, Bounds(-1.8, 1.8, -1.0, 1.0)),
    2: (dynatomic_cover_2, Bounds(0.5, 8.3, -2.7, 2.7)),
    3: (dynatomic_cover_3, Bounds(-2.5, 3.5, -3.0, 3.0)),
}

MISIUREWICZ_COVERS = {
    (2, 1): (misiurewicz_cover_2_1, Bounds(-3.5, 3.5, -3.0, 3.0)),
    (2, 2): (misiurewicz_cover_2_2, Bounds(-4.0, 2.4, -2.5, 2.5)),
}


class Mandelbrot(Multibrot):
    """Parameter plane of the quadratic family f_c(z) = z^2 + c."""

    name = "mandelbrot"
    parameters_class = None

    def __init__(self, point_grid: Optional[PointGrid] = None,
                 max_iter: int = 1024, min_iter: int = 0):
        super().__init__(MultibrotParameters(degree=2), point_grid, max_iter, min_iter)

    def map(self, z: complex, c) -> complex:
        return z * z + c

    def map_and_multiplier(self, z: complex, c) -> Tuple[complex, complex]:
        return z * z + c, z + z

    def escape_radius(self) -> float:
        return 1e26

    def default_bounds(self) -> Bounds:
        return Bounds(-2.1, 0.55, -1.25, 1.25)

    def default_julia_bounds(self, point: complex, c) -> Bounds:
        return Bounds.centered_square(2.2)

    def early_bailout(self, point: complex, c) -> Optional[EscapeState]:
        """
        Decide membership in the main cardioid and the period-2 bulb.

        Inside either component the critical orbit converges to an
        attracting cycle whose multiplier is known in closed form.
        """
        c = complex(c)
        four_c = 4.0 * c
        y2 = four_c.imag * four_c.imag
        temp = four_c.real - 1.0
        mu_norm2 = temp * temp + y2
        a = mu_norm2 * (0.25 * mu_norm2 + temp)

        if a < y2:
            multiplier = 1.0 - cmath.sqrt(1.0 - four_c)
            fixed_point = 0.5 * multiplier
            init_dist = abs(c - fixed_point) ** 2
            potential, preperiod = _internal_potential(init_dist, abs(multiplier), 1.0)
            return EscapeState.periodic(PeriodicData(
                value=fixed_point, period=1, preperiod=preperiod,
                multiplier=multiplier, final_error=EARLY_BAILOUT_ERROR,
                potential=potential))

        mu2 = four_c + 4.0
        if abs(mu2) ** 2 < 1.0:
            fixed_point = -0.5 - 0.5 * cmath.sqrt(-four_c - 3.0)
            init_dist = abs(c - fixed_point) ** 2
            potential, preperiod = _internal_potential(init_dist, abs(mu2), 2.0)
            return EscapeState.periodic(PeriodicData(
                value=fixed_point, period=2, preperiod=preperiod,
                multiplier=mu2, final_error=EARLY_BAILOUT_ERROR,
                potential=potential))

        return None

    def cycles(self, period: int) -> List[complex]:
        if period == 1:
            return [0j]
        if period == 2:
            return [-1 + 0j]
        return super().cycles(period)

    def cycles_child(self, c, period: int) -> List[complex]:
        if period == 1:
            u = cmath.sqrt(1.0 - 4.0 * c)
            return [0.5 * (1.0 + u), 0.5 * (1.0 - u)]
        if period == 2:
            u = cmath.sqrt(-3.0 - 4.0 * c)
            return [0.5 * (-1.0 + u), -0.5 * (1.0 + u)]
        return super().cycles_child(c, period)

    def marked_cycle_curve(self, period: int) -> CoveringMap:
        cover, bounds = MARKED_CYCLE_COVERS.get(period, (None, None))
        if cover is None:
            return super().marked_cycle_curve(period)
        return CoveringMap(self, cover, bounds)

    def dynatomic_curve(self, period: int) -> CoveringMap:
        cover, bounds = DYNATOMIC_COVERS.get(period, (None, None))
        if cover is None:
            return super().dynatomic_curve(period)
        return CoveringMap(self, cover, bounds)

    def misiurewicz_curve(self, preperiod: int, period: int) -> CoveringMap:
        cover, bounds = MISIUREWICZ_COVERS.get((preperiod, period), (None, None))
        if cover is None:
            return super().misiurewicz_curve(preperiod, period)
        return CoveringMap(self, cover, bounds)

    def get_meta_params(self):
        return None

    def set_meta_params(self, meta_params) -> None:
        if meta_params is not None:
            raise ValueError("mandelbrot has no meta-parameters")

    def get_description(self) -> str:
        return ("Mandelbrot set: the moduli space of quadratic polynomials "
                "f_c(z) = z^2 + c, colored by the activity of the free critical point 0")
