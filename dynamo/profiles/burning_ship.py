"""
The Burning Ship family (|Re z| + i|Im z|)^2 + c.
"""

from typing import List, Tuple
import logging

from ..core.dynamics import DynamicalFamily
from ..core.point_grid import Bounds

logger = logging.getLogger(__name__)


class BurningShip(DynamicalFamily):
    """
    Burning Ship parameter plane.

    The map is only real-smooth; the reported multiplier 2w, with w the
    folded point, has the exact modulus of the local stretching factor.
    """

    name = "burning_ship"

    def map_and_multiplier(self, z: complex, c) -> Tuple[complex, complex]:
        w = complex(abs(z.real), abs(z.imag))
        return w * w + c, 2.0 * w

    def start_point(self, point: complex, c) -> complex:
        return 0j

    def escape_radius(self) -> float:
        return 1e10

    def default_bounds(self) -> Bounds:
        return Bounds(-2.5, 1.5, -2.0, 1.0)

    def default_julia_bounds(self, point: complex, c) -> Bounds:
        return Bounds.centered_square(2.0)

    def critical_points(self) -> List[complex]:
        return [0j]

    def critical_points_child(self, c) -> List[complex]:
        return [0j]

    def get_description(self) -> str:
        return "Burning Ship: z_{n+1} = (|Re(z_n)| + i|Im(z_n)|)^2 + c"
