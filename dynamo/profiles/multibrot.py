"""
Unicritical polynomial families z^d + c.

Cycle and precycle points are computed exactly where possible: centers of
hyperbolic components are roots of Gleason polynomials, built with integer
arithmetic, and periodic points of a fixed member are roots of dynatomic
polynomials.
"""

import cmath
import math
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Tuple
import logging

from ..core.dynamics import DynamicalFamily, FamilyParameters
from ..core.point_grid import Bounds, PointGrid
from ..core.polynomial_roots import poly_add, poly_divmod, poly_mul, solve_polynomial
from ..core.types import OrbitSchema

logger = logging.getLogger(__name__)

# Largest polynomial degree handed to the root solver.
MAX_POLYNOMIAL_DEGREE = 64
MAX_PRECYCLE_POINTS = 4096


def _divisors(n: int) -> List[int]:
    return [k for k in range(1, n) if n % k == 0]


def _poly_pow(p: List, exponent: int) -> List:
    result = [1]
    for _ in range(exponent):
        result = poly_mul(result, p)
    return result


@lru_cache(maxsize=None)
def critical_orbit_polynomial(degree: int, n: int) -> Tuple[int, ...]:
    """f_c^n(0) for f_c(z) = z^degree + c, as integer coefficients in c."""
    p = [0, 1]
    for _ in range(n - 1):
        p = poly_add(_poly_pow(p, degree), [0, 1])
    return tuple(p)


@lru_cache(maxsize=None)
def gleason_polynomial(degree: int, period: int) -> Tuple[int, ...]:
    """
    Polynomial whose roots are the centers of exact period.

    f_c^n(0) factors as the product of the Gleason polynomials of all
    periods dividing n.
    """
    quotient = list(critical_orbit_polynomial(degree, period))
    for k in _divisors(period):
        quotient, remainder = poly_divmod(quotient, list(gleason_polynomial(degree, k)))
        if remainder:
            raise ArithmeticError(f"Inexact Gleason division for period {period}")
    return tuple(quotient)


def dynatomic_coefficients(c: complex, degree: int, period: int) -> List[complex]:
    """
    Coefficients of the dynatomic polynomial of z^degree + c.

    f_c^period(z) - z factors as the product of the dynatomic polynomials
    of all periods dividing period; the lower ones are divided out.
    """
    step = [complex(c)] + [0j] * (degree - 1) + [1 + 0j]
    iterate = step
    for _ in range(period - 1):
        iterate = _poly_pow(iterate, degree)
        iterate[0] += c
    result = list(iterate)
    result[1] -= 1
    for k in _divisors(period):
        result, _ = poly_divmod(result, dynatomic_coefficients(c, degree, k))
    return result


def _roots_of_unity(degree: int) -> List[complex]:
    return [cmath.exp(2j * math.pi * k / degree) for k in range(degree)]


@dataclass
class MultibrotParameters(FamilyParameters):
    """Parameters for unicritical polynomial families."""

    degree: int = 3

    def validate(self) -> None:
        """Validate Multibrot parameters."""
        if not isinstance(self.degree, int) or isinstance(self.degree, bool):
            raise ValueError("degree must be an integer")
        if self.degree < 2:
            raise ValueError("degree must be at least 2")


class Multibrot(DynamicalFamily):
    """Parameter plane of z^d + c with a runtime degree d."""

    name = "multibrot"
    parameters_class = MultibrotParameters

    def __init__(self, parameters: Optional[MultibrotParameters] = None,
                 point_grid: Optional[PointGrid] = None,
                 max_iter: int = 1024, min_iter: int = 0):
        """
        Initialize a unicritical family.

        Args:
            parameters: Family parameters (degree)
            point_grid: Sampling grid
            max_iter, min_iter: Iteration budget
        """
        if parameters is None:
            parameters = MultibrotParameters()
        parameters.validate()
        self.parameters = parameters
        super().__init__(point_grid, max_iter, min_iter)

    @property
    def d(self) -> int:
        return self.parameters.degree

    def map_and_multiplier(self, z: complex, c) -> Tuple[complex, complex]:
        zd1 = z ** (self.d - 1)
        return zd1 * z + c, self.d * zd1

    def start_point(self, point: complex, c) -> complex:
        return 0j

    def degree(self) -> float:
        return float(self.d)

    def escape_radius(self) -> float:
        return 1e10

    def default_bounds(self) -> Bounds:
        scale = 2.0 if self.d <= 4 else 1.5
        return Bounds.centered_square(scale)

    def default_julia_bounds(self, point: complex, c) -> Bounds:
        return Bounds.centered_square(2.0)

    def critical_points(self) -> List[complex]:
        return [0j]

    def critical_points_child(self, c) -> List[complex]:
        return [0j]

    def cycles(self, period: int) -> List[complex]:
        """Centers of the hyperbolic components of exact period."""
        if period < 1 or self.d ** (period - 1) > MAX_POLYNOMIAL_DEGREE:
            return []
        coeffs = [complex(a) for a in gleason_polynomial(self.d, period)]
        return solve_polynomial(coeffs)

    def cycles_child(self, c, period: int) -> List[complex]:
        """Points of exact period of z^d + c."""
        if period < 1 or self.d ** period > MAX_POLYNOMIAL_DEGREE:
            return []
        return solve_polynomial(dynatomic_coefficients(c, self.d, period))

    def precycles_child(self, c, schema: OrbitSchema) -> List[complex]:
        """
        Points landing on a cycle after exactly schema.preperiod steps.

        z^d + c identifies z with its rotations by d-th roots of unity, so
        the strictly preperiodic preimages of a cycle point w are the
        nontrivial rotations of w; deeper levels take all d-th roots.
        """
        cycle = self.cycles_child(c, schema.period)
        if schema.preperiod == 0 or not cycle:
            return cycle
        size = len(cycle) * (self.d - 1) * self.d ** (schema.preperiod - 1)
        if size > MAX_PRECYCLE_POINTS:
            logger.warning(f"Skipping {size} precycle points for schema {schema}")
            return []

        units = _roots_of_unity(self.d)
        points = [u * w for w in cycle for u in units[1:]]
        for _ in range(schema.preperiod - 1):
            points = [u * cmath.exp(cmath.log(y - c) / self.d) if y != c else 0j
                      for y in points for u in units]
        return points

    def get_meta_params(self) -> MultibrotParameters:
        return self.parameters

    def set_meta_params(self, meta_params: MultibrotParameters) -> None:
        if not isinstance(meta_params, MultibrotParameters):
            raise ValueError("Multibrot meta-parameters must be MultibrotParameters")
        meta_params.validate()
        self.parameters = meta_params

    def get_description(self) -> str:
        return (f"Multibrot: z_{{n+1}} = z_n^{self.d} + c, colored by the activity "
                f"of the critical point 0")
