"""
Covering maps: families reparametrized by an algebraic substitution.

A covering substitutes t -> u(t) in front of a base family's parameter map,
which realizes curves such as marked-cycle or dynatomic curves as families
of their own.
"""

from typing import Callable, List, Optional, Tuple
import logging

from .dynamics import DynamicalFamily
from .point_grid import Bounds, PointGrid
from .types import EscapeState, OrbitSchema, PointInfo

logger = logging.getLogger(__name__)

Cover = Callable[[complex], Tuple[complex, complex]]


def identity_cover(t: complex) -> Tuple[complex, complex]:
    return t, 1 + 0j


class CoveringMap(DynamicalFamily):
    """Base family seen through a covering t -> u(t)."""

    def __init__(self, base: DynamicalFamily, covering: Cover,
                 bounds: Optional[Bounds] = None):
        """
        Initialize a covering map.

        Args:
            base: Family being covered (cloned, never mutated)
            covering: Module-level function t -> (u, du/dt)
            bounds: Region of the covering plane (base bounds if omitted)
        """
        self.base = base.clone()
        self.covering = covering
        if bounds is None:
            bounds = self.base.point_grid.bounds.copy()
        self._bounds = bounds.copy()
        super().__init__(self.base.point_grid.new_with_same_height(bounds),
                         self.base.max_iter, self.base.min_iter)
        self.name = f"{self.base.name}_cover"

    def map_and_multiplier(self, z: complex, c) -> Tuple[complex, complex]:
        return self.base.map_and_multiplier(z, c)

    def map(self, z: complex, c) -> complex:
        return self.base.map(z, c)

    def gradient(self, z: complex, c) -> Tuple[complex, complex, complex]:
        return self.base.gradient(z, c)

    def param_map(self, point: complex):
        u, _ = self.covering(point)
        return self.base.param_map(u)

    def param_map_d(self, point: complex):
        u, du = self.covering(point)
        c, dc = self.base.param_map_d(u)
        return c, dc * du

    def start_point(self, point: complex, c) -> complex:
        u, _ = self.covering(point)
        return self.base.start_point(u, c)

    def start_point_d(self, point: complex, c) -> Tuple[complex, complex, complex]:
        u, du = self.covering(point)
        z0, dz_dpoint, dz_dc = self.base.start_point_d(u, c)
        return z0, dz_dpoint * du, dz_dc

    def dynam_map(self, point: complex) -> complex:
        return self.base.dynam_map(point)

    def dynam_map_d(self, point: complex) -> Tuple[complex, complex]:
        return self.base.dynam_map_d(point)

    def early_bailout(self, point: complex, c) -> Optional[EscapeState]:
        u, _ = self.covering(point)
        return self.base.early_bailout(u, c)

    def encode_escape_result(self, state: EscapeState, c) -> PointInfo:
        return self.base.encode_escape_result(state, c)

    def critical_points_child(self, c) -> List[complex]:
        return self.base.critical_points_child(c)

    def cycles_child(self, c, period: int) -> List[complex]:
        return self.base.cycles_child(c, period)

    def precycles_child(self, c, schema: OrbitSchema) -> List[complex]:
        return self.base.precycles_child(c, schema)

    def degree(self) -> float:
        return self.base.degree()

    def escape_radius(self) -> float:
        return self.base.escape_radius()

    def escaping_period(self) -> int:
        return self.base.escaping_period()

    def periodicity_tolerance(self) -> float:
        return self.base.periodicity_tolerance()

    def default_bounds(self) -> Bounds:
        return self._bounds.copy()

    def default_julia_bounds(self, point: complex, c) -> Bounds:
        u, _ = self.covering(point)
        return self.base.default_julia_bounds(u, c)

    def get_meta_params(self):
        return self.base.get_meta_params()

    def set_meta_params(self, meta_params) -> None:
        self.base.set_meta_params(meta_params)

    def is_dynamical(self) -> bool:
        return self.base.is_dynamical()

    def default_coloring(self):
        return self.base.default_coloring()
