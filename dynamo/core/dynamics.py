"""
Dynamical family definitions.

This module defines the capability interface every family of holomorphic
(or, occasionally, merely real-smooth) maps implements, plus the generic
JuliaSet container that turns a parameter-plane family into the dynamical
plane of one of its members.
"""

import copy
import time
import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
import logging

from .escape import DEFAULT_PERIODICITY_TOLERANCE, EscapeTimeIterator
from .point_grid import Bounds, PointGrid, DEFAULT_RESOLUTION
from .types import (EscapeKind, EscapeState, OrbitSchema, ParamStack,
                    PointInfo, NO_PARAM, ONE, ZERO)

logger = logging.getLogger(__name__)


@dataclass
class FamilyParameters:
    """Base class for family meta-parameters with validation."""

    def validate(self) -> None:
        """Validate parameter values."""
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to dictionary."""
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FamilyParameters":
        """Create parameters from dictionary."""
        return cls(**data)


class DynamicalFamily(ABC):
    """
    Abstract base class for dynamical families.

    A family owns the grid it is sampled on and an iteration budget. Every
    sampled point is mapped to a parameter (param_map) and a starting
    iterate (start_point), and the orbit of that iterate is classified.
    Methods other than the explicit setters never mutate the instance, so
    a clone can be handed to each worker of a parallel pass.
    """

    name = "family"
    parameters_class = None

    def __init__(self, point_grid: Optional[PointGrid] = None,
                 max_iter: int = 1024, min_iter: int = 0):
        """
        Initialize a family instance.

        Args:
            point_grid: Sampling grid (defaults to the family's default bounds)
            max_iter: Maximum number of iterations per point
            min_iter: Iterations before the escape test is active
        """
        if max_iter <= 0:
            raise ValueError("max_iter must be positive")
        if min_iter < 0 or min_iter > max_iter:
            raise ValueError("min_iter must lie between 0 and max_iter")
        if point_grid is None:
            point_grid = PointGrid.new_by_res_y(DEFAULT_RESOLUTION, self.default_bounds())
        self.point_grid = point_grid
        self.max_iter = max_iter
        self.min_iter = min_iter

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(point_grid={self.point_grid!r}, "
                f"max_iter={self.max_iter}, min_iter={self.min_iter})")

    def get_description(self) -> str:
        """Get a description of this family."""
        return f"{self.name} family"

    # Dynamics

    @abstractmethod
    def map_and_multiplier(self, z: complex, c) -> Tuple[complex, complex]:
        """One iteration step together with df/dz at z."""
        pass

    def map(self, z: complex, c) -> complex:
        return self.map_and_multiplier(z, c)[0]

    def dynamical_derivative(self, z: complex, c) -> complex:
        return self.map_and_multiplier(z, c)[1]

    def gradient(self, z: complex, c) -> Tuple[complex, complex, complex]:
        """
        Map value with both partial derivatives.

        The default treats the parameter as an additive constant, which is
        right for the unicritical polynomial families.

        Returns:
            (f(z), df/dz, df/dc)
        """
        f, df = self.map_and_multiplier(z, c)
        return f, df, ONE

    def parameter_derivative(self, z: complex, c) -> complex:
        return self.gradient(z, c)[2]

    # Coordinates

    def param_map(self, point: complex):
        """Parameter associated with a sampled point."""
        return point

    def param_map_d(self, point: complex) -> Tuple[Any, complex]:
        """Parameter and its derivative with respect to the sampled point."""
        return self.param_map(point), ONE

    @abstractmethod
    def start_point(self, point: complex, c) -> complex:
        """Initial iterate for a sampled point with parameter c."""
        pass

    def start_point_d(self, point: complex, c) -> Tuple[complex, complex, complex]:
        """
        Start point with its derivatives.

        Returns:
            (z0, dz0/dpoint, dz0/dc)
        """
        return self.start_point(point, c), ZERO, ZERO

    def dynam_map(self, point: complex) -> complex:
        """Variable coordinate of a point of the dynamical plane."""
        return point

    def dynam_map_d(self, point: complex) -> Tuple[complex, complex]:
        return self.dynam_map(point), ONE

    # Special points

    def critical_points(self) -> List[complex]:
        return []

    def critical_points_child(self, c) -> List[complex]:
        return []

    def cycles(self, period: int) -> List[complex]:
        return []

    def cycles_child(self, c, period: int) -> List[complex]:
        return []

    def precycles(self, schema: OrbitSchema) -> List[complex]:
        return []

    def precycles_child(self, c, schema: OrbitSchema) -> List[complex]:
        return []

    # Numeric constants

    def degree(self) -> float:
        """Local degree of the first-return map at the escaping cycle."""
        return 2.0

    def escape_radius(self) -> float:
        return 1e10

    def escaping_period(self) -> int:
        return 1

    def periodicity_tolerance(self) -> float:
        return DEFAULT_PERIODICITY_TOLERANCE

    # Bounds

    @abstractmethod
    def default_bounds(self) -> Bounds:
        pass

    def default_julia_bounds(self, point: complex, c) -> Bounds:
        return Bounds.centered_square(2.5)

    def default_selection(self) -> complex:
        return self.default_bounds().center()

    # Classification

    def early_bailout(self, point: complex, c) -> Optional[EscapeState]:
        """Analytic shortcut; None when the orbit has to be iterated."""
        return None

    def encode_escape_result(self, state: EscapeState, c) -> PointInfo:
        """Convert an orbit outcome to its rendering-facing form."""
        if state.kind is EscapeKind.ESCAPING:
            return PointInfo.escaping(state.potential)
        if state.kind is EscapeKind.PERIODIC:
            if state.data.potential is not None:
                return PointInfo.periodic_known_potential(state.data)
            return PointInfo.periodic(state.data)
        if state.kind is EscapeKind.WANDERING:
            return PointInfo.WANDERING
        return PointInfo.BOUNDED

    def iterator(self) -> EscapeTimeIterator:
        return EscapeTimeIterator.for_family(self)

    def run_point(self, point: complex,
                  iterator: Optional[EscapeTimeIterator] = None) -> EscapeState:
        """
        Classify the orbit belonging to a sampled point.

        Poles of the parameter map or of the start point count as immediate
        escape with maximal potential.
        """
        if iterator is None:
            iterator = self.iterator()
        try:
            c = self.param_map(point)
            bailout = self.early_bailout(point, c)
            if bailout is not None:
                return bailout
            z0 = self.start_point(point, c)
        except (ZeroDivisionError, OverflowError, ValueError):
            return EscapeState.escaping(iterator.max_iter)
        return iterator.run(self, z0, c)

    def classify_point(self, point: complex,
                       iterator: Optional[EscapeTimeIterator] = None) -> PointInfo:
        state = self.run_point(point, iterator)
        try:
            c = self.param_map(point)
        except (ZeroDivisionError, OverflowError, ValueError):
            c = None
        return self.encode_escape_result(state, c)

    def compute_rows(self, row_start: int, row_end: int) -> np.ndarray:
        """
        Classify the lattice rows [row_start, row_end).

        Returns:
            Object array of PointInfo with shape (res_x, row_end - row_start)
        """
        iterator = self.iterator()
        row_end = min(row_end, self.point_grid.res_y)
        result = np.empty((self.point_grid.res_x, max(0, row_end - row_start)), dtype=object)
        for (i, j), point in self.point_grid.rows(row_start, row_end):
            result[i, j - row_start] = self.classify_point(point, iterator)
        return result

    def compute(self) -> np.ndarray:
        """
        Classify every lattice sample.

        Returns:
            Object array of PointInfo with shape (res_x, res_y)
        """
        start_time = time.time()
        result = self.compute_rows(0, self.point_grid.res_y)
        logger.info(f"Classified {len(self.point_grid)} points of {self.name} "
                    f"in {time.time() - start_time:.2f}s")
        return result

    def iter_orbit(self, point: complex, max_len: int = 256) -> List[complex]:
        """Orbit of the start point belonging to a sampled point."""
        c = self.param_map(point)
        return list(self.iterator().orbit(self, self.start_point(point, c), c, max_len))

    # Meta-parameters and setters

    def get_meta_params(self):
        return NO_PARAM

    def set_meta_params(self, meta_params) -> None:
        if meta_params is not NO_PARAM:
            raise ValueError(f"{self.name} has no meta-parameters")

    def get_param(self):
        return NO_PARAM

    def set_param(self, param) -> None:
        if param is not NO_PARAM:
            raise ValueError(f"{self.name} has no fixed parameter")

    def set_max_iter(self, max_iter: int) -> None:
        if max_iter <= 0:
            raise ValueError("max_iter must be positive")
        self.max_iter = max_iter
        self.min_iter = min(self.min_iter, max_iter)

    def set_min_iter(self, min_iter: int) -> None:
        if min_iter < 0 or min_iter > self.max_iter:
            raise ValueError("min_iter must lie between 0 and max_iter")
        self.min_iter = min_iter

    def resize_x(self, res_x: int) -> None:
        self.point_grid.resize_x(res_x)

    def resize_y(self, res_y: int) -> None:
        self.point_grid.resize_y(res_y)

    def change_bounds(self, bounds: Bounds) -> None:
        self.point_grid.change_bounds(bounds)

    def reset_bounds(self) -> None:
        self.point_grid = self.point_grid.new_with_same_height(self.default_bounds())

    def clone(self) -> 'DynamicalFamily':
        return copy.deepcopy(self)

    # Derived families

    def is_dynamical(self) -> bool:
        """True when the sampled coordinate is the variable, not a parameter."""
        return False

    def julia_set(self, selection: Optional[complex] = None) -> Optional['JuliaSet']:
        """Dynamical plane of the member selected by a parameter-plane point."""
        if self.is_dynamical():
            return None
        if selection is None:
            selection = self.default_selection()
        return JuliaSet(self, selection)

    def marked_cycle_curve(self, period: int):
        from .covering import CoveringMap, identity_cover
        return CoveringMap(self, identity_cover)

    def dynatomic_curve(self, period: int):
        from .covering import CoveringMap, identity_cover
        return CoveringMap(self, identity_cover)

    def misiurewicz_curve(self, preperiod: int, period: int):
        from .covering import CoveringMap, identity_cover
        return CoveringMap(self, identity_cover)

    # Curves

    def external_ray(self, theta: float, **kwargs) -> Optional[List[complex]]:
        from .rays import external_ray
        return external_ray(self, theta, **kwargs)

    def equipotential(self, point: complex, **kwargs) -> Optional[List[complex]]:
        from .rays import equipotential
        return equipotential(self, point, **kwargs)

    def find_periodic_point(self, point: complex, period: Optional[int] = None) -> Optional[complex]:
        from .rays import find_periodic_point
        return find_periodic_point(self, point, period)

    # Coloring defaults

    def default_coloring(self):
        from ..rendering.coloring import Coloring
        return Coloring.default()

    def internal_potential_coloring(self):
        from ..rendering.coloring import Coloring, InternalPotential
        return Coloring(InternalPotential(self.periodicity_tolerance()))

    def preperiod_period_smooth_coloring(self):
        from ..rendering.coloring import Coloring, PreperiodPeriodSmooth
        return Coloring(PreperiodPeriodSmooth(self.periodicity_tolerance()))


class JuliaSet(DynamicalFamily):
    """
    Dynamical plane of a fixed member of a parent family.

    Owns a clone of the parent and the parameter obtained from the selected
    parent-plane point; every dynamical query is answered by the parent at
    that parameter.
    """

    def __init__(self, parent: DynamicalFamily, selection: Optional[complex] = None):
        """
        Initialize a dynamical plane.

        Args:
            parent: Parameter-plane family (cloned, never mutated)
            selection: Point of the parent's plane selecting the member
        """
        self.parent = parent.clone()
        if selection is None:
            selection = self.parent.default_selection()
        self.selection = complex(selection)
        self.local_param = self.parent.param_map(self.selection)
        grid = PointGrid.new_by_res_y(self.parent.point_grid.res_y, self.default_bounds())
        super().__init__(grid, self.parent.max_iter, self.parent.min_iter)
        self.name = f"{self.parent.name}_julia"

    def map_and_multiplier(self, z: complex, c) -> Tuple[complex, complex]:
        return self.parent.map_and_multiplier(z, c)

    def map(self, z: complex, c) -> complex:
        return self.parent.map(z, c)

    def gradient(self, z: complex, c) -> Tuple[complex, complex, complex]:
        return self.parent.gradient(z, c)

    def param_map(self, point: complex):
        return self.local_param

    def param_map_d(self, point: complex) -> Tuple[Any, complex]:
        return self.local_param, ZERO

    def start_point(self, point: complex, c) -> complex:
        return self.parent.dynam_map(point)

    def start_point_d(self, point: complex, c) -> Tuple[complex, complex, complex]:
        z, dz = self.parent.dynam_map_d(point)
        return z, dz, ZERO

    def critical_points(self) -> List[complex]:
        return self.parent.critical_points_child(self.local_param)

    def cycles(self, period: int) -> List[complex]:
        return self.parent.cycles_child(self.local_param, period)

    def precycles(self, schema: OrbitSchema) -> List[complex]:
        return self.parent.precycles_child(self.local_param, schema)

    def degree(self) -> float:
        return self.parent.degree()

    def escape_radius(self) -> float:
        return self.parent.escape_radius()

    def escaping_period(self) -> int:
        return self.parent.escaping_period()

    def periodicity_tolerance(self) -> float:
        return self.parent.periodicity_tolerance()

    def default_bounds(self) -> Bounds:
        return self.parent.default_julia_bounds(self.selection, self.local_param)

    def encode_escape_result(self, state: EscapeState, c) -> PointInfo:
        return self.parent.encode_escape_result(state, c)

    def get_meta_params(self) -> ParamStack:
        return ParamStack(self.parent.get_meta_params(), self.local_param)

    def set_meta_params(self, meta_params: ParamStack) -> None:
        if not isinstance(meta_params, ParamStack):
            raise ValueError("Julia set meta-parameters must be a ParamStack")
        self.parent.set_meta_params(meta_params.meta_params)
        self.local_param = meta_params.local_param

    def get_param(self):
        return self.local_param

    def set_param(self, param) -> None:
        self.local_param = param

    def is_dynamical(self) -> bool:
        return True

    def get_description(self) -> str:
        return f"Dynamical plane of {self.parent.name} at parameter {self.local_param}"

    def default_coloring(self):
        return self.parent.default_coloring()
