"""
Scaled Chebyshev polynomials c * T(z) of even degree 2D.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple
import logging

from ..core.dynamics import DynamicalFamily, FamilyParameters
from ..core.point_grid import Bounds, PointGrid

logger = logging.getLogger(__name__)


class ChebyshevCoeffTable:
    """
    Coefficients of the Chebyshev polynomials T_n.

    Row n lists the coefficients of x^(n mod 2), x^(n mod 2 + 2), ... of
    T_n(x); rows follow T_n = 2x T_(n-1) - T_(n-2).
    """

    def __init__(self, max_degree: int = 1):
        self.coeffs: List[List[int]] = [[1], [1]]
        self.extend_to(max_degree)

    def extend(self) -> None:
        n = len(self.coeffs)
        coeff0 = self.coeffs[n - 2] + [0]
        if n % 2 == 0:
            coeff1 = [0] + self.coeffs[n - 1]
        else:
            coeff1 = self.coeffs[n - 1]
        self.coeffs.append([2 * b - a for a, b in zip(coeff0, coeff1)])

    def extend_to(self, degree: int) -> None:
        while len(self.coeffs) <= degree:
            self.extend()

    def coefficients(self, degree: int) -> List[int]:
        self.extend_to(degree)
        return self.coeffs[degree]


@dataclass
class ChebyshevParameters(FamilyParameters):
    """Parameters for the Chebyshev family; the map has degree 2 * order."""

    order: int = 2

    def validate(self) -> None:
        """Validate Chebyshev parameters."""
        if not isinstance(self.order, int) or isinstance(self.order, bool):
            raise ValueError("order must be an integer")
        if self.order < 1:
            raise ValueError("order must be positive")


class Chebyshev(DynamicalFamily):
    """Parameter plane of c * (-1)^D T_2D(z/2)."""

    name = "chebyshev"
    parameters_class = ChebyshevParameters

    def __init__(self, parameters: Optional[ChebyshevParameters] = None,
                 point_grid: Optional[PointGrid] = None,
                 max_iter: int = 1024, min_iter: int = 0):
        if parameters is None:
            parameters = ChebyshevParameters()
        parameters.validate()
        self._set_parameters(parameters)
        super().__init__(point_grid, max_iter, min_iter)

    def _set_parameters(self, parameters: ChebyshevParameters) -> None:
        self.parameters = parameters
        order = parameters.order
        sign = 1 - 2 * (order % 2)
        table = ChebyshevCoeffTable(2 * order)
        self.coeffs = [float(sign * a) for a in table.coefficients(2 * order)]
        self.coeffs_d = [k * a for k, a in enumerate(self.coeffs)][1:]

    def _evaluate(self, z: complex) -> Tuple[complex, complex]:
        """T and its z-derivative divided by c."""
        w = 0.5 * z
        w2 = w * w
        zval = 0j
        for a in reversed(self.coeffs):
            zval = zval * w2 + a
        dval = 0j
        for b in reversed(self.coeffs_d):
            dval = dval * w2 + b
        return zval, dval * w

    def map(self, z: complex, c) -> complex:
        return c * self._evaluate(z)[0]

    def map_and_multiplier(self, z: complex, c) -> Tuple[complex, complex]:
        zval, dval = self._evaluate(z)
        return c * zval, c * dval

    def gradient(self, z: complex, c) -> Tuple[complex, complex, complex]:
        zval, dval = self._evaluate(z)
        return c * zval, c * dval, zval

    def start_point(self, point: complex, c) -> complex:
        return 0j

    def degree(self) -> float:
        return float(2 * self.parameters.order)

    def default_bounds(self) -> Bounds:
        return Bounds.centered_square(3.0 / self.parameters.order)

    def default_julia_bounds(self, point: complex, c) -> Bounds:
        return Bounds.centered_square(2.5)

    def critical_points(self) -> List[complex]:
        return [0j]

    def critical_points_child(self, c) -> List[complex]:
        """Critical points 2cos(k pi / 2D) of T_2D(z/2), k = 1 .. 2D-1."""
        n = 2 * self.parameters.order
        points = [complex(2.0 * math.cos(k * math.pi / n)) for k in range(1, n)]
        return [complex(round(p.real, 15)) for p in points]

    def get_meta_params(self) -> ChebyshevParameters:
        return self.parameters

    def set_meta_params(self, meta_params: ChebyshevParameters) -> None:
        if not isinstance(meta_params, ChebyshevParameters):
            raise ValueError("Chebyshev meta-parameters must be ChebyshevParameters")
        meta_params.validate()
        self._set_parameters(meta_params)

    def get_description(self) -> str:
        return (f"Chebyshev degree {2 * self.parameters.order}: "
                f"f_c(z) = c * T(z/2), colored by the critical point 0")
