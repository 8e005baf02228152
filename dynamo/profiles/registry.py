"""
Catalog of the built-in dynamical families.
"""

from typing import Any, Dict, Optional
import logging

from ..core.dynamics import DynamicalFamily
from ..core.point_grid import PointGrid
from .burning_ship import BurningShip
from .chebyshev import Chebyshev
from .mandelbrot import Mandelbrot
from .multibrot import Multibrot
from .quad_rat_per_4 import QuadRatPer4
from .zeta import RiemannXi, RiemannXiNewton

logger = logging.getLogger(__name__)


class FamilyRegistry:
    """Registry for managing available dynamical families."""

    _families: Dict[str, type] = {
        'mandelbrot': Mandelbrot,
        'multibrot': Multibrot,
        'chebyshev': Chebyshev,
        'quad_rat_per_4': QuadRatPer4,
        'riemann_xi': RiemannXi,
        'riemann_xi_newton': RiemannXiNewton,
        'burning_ship': BurningShip,
    }

    @classmethod
    def register(cls, name: str, family_class: type) -> None:
        """
        Register a new family.

        Args:
            name: Unique identifier for the family
            family_class: Class implementing the family
        """
        if not isinstance(family_class, type) or not issubclass(family_class, DynamicalFamily):
            raise ValueError("Family class must inherit from DynamicalFamily")
        cls._families[name.lower()] = family_class
        logger.info(f"Registered family: {name}")

    @classmethod
    def get(cls, name: str) -> type:
        """
        Get a family class by name.

        Args:
            name: Family identifier

        Returns:
            Family class
        """
        family_class = cls._families.get(name.lower())
        if family_class is None:
            available = ', '.join(cls._families.keys())
            raise ValueError(f"Unknown family '{name}'. Available: {available}")
        return family_class

    @classmethod
    def names(cls):
        return list(cls._families.keys())

    @classmethod
    def list_families(cls) -> Dict[str, str]:
        """Get a dictionary of available families and their descriptions."""
        result = {}
        for name, family_class in cls._families.items():
            temp = family_class(point_grid=PointGrid(1, 1))
            result[name] = temp.get_description()
        return result

    @classmethod
    def create_family(cls, name: str, parameters: Optional[Dict[str, Any]] = None,
                      point_grid: Optional[PointGrid] = None,
                      max_iter: int = 1024, min_iter: int = 0) -> DynamicalFamily:
        """
        Create a family instance with the given parameters.

        Args:
            name: Family name
            parameters: Meta-parameters as a plain dictionary
            point_grid: Sampling grid (defaults to the family's bounds)
            max_iter: Maximum number of iterations per point
            min_iter: Iterations before the escape test is active

        Returns:
            Configured family instance
        """
        family_class = cls.get(name)
        parameters = dict(parameters or {})
        kwargs = {'point_grid': point_grid, 'max_iter': max_iter, 'min_iter': min_iter}

        param_class = family_class.parameters_class
        if param_class is not None:
            if parameters:
                kwargs['parameters'] = param_class.from_dict(parameters)
        elif family_class is RiemannXiNewton:
            if 'param' in parameters:
                kwargs['param'] = complex(parameters.pop('param'))
            if parameters:
                raise ValueError(f"Unexpected parameters for {name}: {', '.join(parameters)}")
        elif parameters:
            raise ValueError(f"{name} takes no parameters")

        return family_class(**kwargs)


# Parameters of the quadratic family with well-known Julia sets
JULIA_PRESETS = {
    'basilica': complex(-1.0, 0.0),
    'rabbit': complex(-0.123, 0.745),
    'airplane': complex(-1.755, 0.0),
    'dendrite': complex(0.0, 1.0),
    'dragon': complex(-0.75, 0.1),
    'spiral': complex(-0.4, 0.6),
    'lightning': complex(-0.8, 0.156),
    'san_marco': complex(-0.75, 0.0),
    'siegel_disk': complex(-0.391, -0.587),
}
