"""
Transcendental families built on the Riemann xi function.

xi(s) = s(s-1)/2 * pi^(-s/2) * Gamma(s/2) * zeta(s) is evaluated with
mpmath. These families have no finite degree, so escape potentials are
plain iteration counts and external rays are unavailable.
"""

import math
import mpmath
from typing import List, Optional, Tuple
import logging

from ..core.dynamics import DynamicalFamily
from ..core.point_grid import Bounds, PointGrid
from ..core.types import EscapeKind, EscapeState, PointInfo, ParamStack

logger = logging.getLogger(__name__)

# Fixed points of the Newton map are grouped by the height of the root they
# converge to; the classes cycle through this many colors.
NUM_ROOT_CLASSES = 12
ROOT_CLASS_HEIGHT = 2.0


def _xi(s):
    # xi(s) = xi(1 - s) keeps Gamma and zeta away from their poles at s <= 0.
    if s.real < 0.5:
        s = 1 - s
    if s == 1:
        return mpmath.mpf("0.5")
    return 0.5 * s * (s - 1) * mpmath.power(mpmath.pi, -s / 2) * mpmath.gamma(s / 2) * mpmath.zeta(s)


def riemann_xi(s: complex) -> complex:
    return complex(_xi(mpmath.mpc(s)))


def riemann_xi_d(s: complex, order: int = 1) -> List[complex]:
    """xi and its first `order` derivatives at s."""
    return [complex(v) for v in mpmath.diffs(_xi, mpmath.mpc(s), order)]


class RiemannXi(DynamicalFamily):
    """Parameter plane of s -> xi(s) + c, started at s = c."""

    name = "riemann_xi"

    def map(self, z: complex, c) -> complex:
        return riemann_xi(z) + c

    def map_and_multiplier(self, z: complex, c) -> Tuple[complex, complex]:
        u, du = riemann_xi_d(z)
        return u + c, du

    def start_point(self, point: complex, c) -> complex:
        return complex(c)

    def start_point_d(self, point: complex, c) -> Tuple[complex, complex, complex]:
        return complex(c), 0j, 1 + 0j

    def degree(self) -> float:
        return math.nan

    def escape_radius(self) -> float:
        return 1e10

    def default_bounds(self) -> Bounds:
        return Bounds.centered_square(30.0)

    def default_julia_bounds(self, point: complex, c) -> Bounds:
        return Bounds.square(30.0, 0.5)

    def default_selection(self) -> complex:
        return 0j

    def julia_set(self, selection: Optional[complex] = None) -> 'RiemannXiNewton':
        """Newton's method for xi(s) + c at the selected parameter."""
        if selection is None:
            selection = self.default_selection()
        grid = PointGrid.new_by_res_y(self.point_grid.res_y,
                                      Bounds.square(30.0, 0.5))
        return RiemannXiNewton(param=self.param_map(selection), point_grid=grid,
                               max_iter=self.max_iter)

    def get_description(self) -> str:
        return "Riemann Xi: s -> xi(s) + c, started at the parameter"


class RiemannXiNewton(DynamicalFamily):
    """
    Newton's method for the roots of xi(s) + c.

    Orbits converging to a root are colored by the root they find, so the
    picture shows the basins of the (shifted) zeros of xi.
    """

    name = "riemann_xi_newton"

    def __init__(self, param: complex = 0j, point_grid: Optional[PointGrid] = None,
                 max_iter: int = 1024, min_iter: int = 0):
        self.param = complex(param)
        super().__init__(point_grid, max_iter, min_iter)

    def map(self, z: complex, c) -> complex:
        u, du = riemann_xi_d(z)
        return z - (u + c) / du

    def map_and_multiplier(self, z: complex, c) -> Tuple[complex, complex]:
        u, du, d2u = riemann_xi_d(z, 2)
        u = u + c
        return z - u / du, u * d2u / (du * du)

    def gradient(self, z: complex, c) -> Tuple[complex, complex, complex]:
        u, du, d2u = riemann_xi_d(z, 2)
        u = u + c
        return z - u / du, u * d2u / (du * du), -1.0 / du

    def param_map(self, point: complex):
        return self.param

    def param_map_d(self, point: complex) -> Tuple[complex, complex]:
        return self.param, 0j

    def start_point(self, point: complex, c) -> complex:
        return point

    def start_point_d(self, point: complex, c) -> Tuple[complex, complex, complex]:
        return point, 1 + 0j, 0j

    def degree(self) -> float:
        return math.nan

    def escape_radius(self) -> float:
        return 1e10

    def default_bounds(self) -> Bounds:
        return Bounds.square(30.0, 0.5)

    def default_julia_bounds(self, point: complex, c) -> Bounds:
        return Bounds.centered_square(30.0)

    def default_selection(self) -> complex:
        return 0j

    def is_dynamical(self) -> bool:
        return True

    def encode_escape_result(self, state: EscapeState, c) -> PointInfo:
        """Fixed points become root classes; non-converging orbits wander."""
        if state.kind is EscapeKind.PERIODIC and state.data.period == 1:
            class_id = int(math.floor(state.data.value.imag / ROOT_CLASS_HEIGHT))
            return PointInfo.marked_point(class_id, NUM_ROOT_CLASSES)
        if state.kind is EscapeKind.BOUNDED:
            return PointInfo.WANDERING
        return super().encode_escape_result(state, c)

    def get_meta_params(self) -> ParamStack:
        return ParamStack(None, self.param)

    def set_meta_params(self, meta_params: ParamStack) -> None:
        if not isinstance(meta_params, ParamStack):
            raise ValueError("Newton meta-parameters must be a ParamStack")
        self.param = complex(meta_params.local_param)

    def get_param(self):
        return self.param

    def set_param(self, param) -> None:
        self.param = complex(param)

    def get_description(self) -> str:
        return f"Newton's method for xi(s) + c with c = {self.param}"
